# ABOUTME: Scrape settings shared by the service layer, the CLI, and the config store.
# ABOUTME: Source toggles, per-source timeout, and the OAuth redirect URI.

from dataclasses import dataclass

DEFAULT_SEARCH_TIMEOUT = 30.0


@dataclass(frozen=True)
class ScrapeSettings:
    """User-adjustable scrape behaviour, persisted next to the credentials."""

    enable_bangumi: bool = True
    enable_hanime: bool = True
    search_timeout: float = DEFAULT_SEARCH_TIMEOUT
    redirect_uri: str = ""

    def __post_init__(self) -> None:
        if self.search_timeout <= 0:
            msg = f"search_timeout must be positive, got {self.search_timeout}"
            raise ValueError(msg)
