# ABOUTME: Error taxonomy for authentication, structured search, scraping, and resolution.
# ABOUTME: Each client converts transport and parse failures into one of these kinds.

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from animeta.metadata.types import SourceOutcome


class AnimetaError(Exception):
    """Base class for all animeta errors."""


class AuthErrorKind(str, Enum):
    EXCHANGE_FAILED = "exchange_failed"
    REFRESH_FAILED = "refresh_failed"


class SearchErrorKind(str, Enum):
    UNAUTHORIZED = "unauthorized"
    TRANSPORT = "transport"
    PARSE = "parse"


class ScrapeErrorKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    TRANSPORT = "transport"
    NOT_FOUND = "not_found"


class AuthError(AnimetaError):
    """Raised by the Bangumi token manager when an OAuth2 grant fails."""

    def __init__(self, kind: AuthErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class SearchError(AnimetaError):
    """Raised by the Bangumi client for search and detail failures."""

    def __init__(self, kind: SearchErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class ScrapeError(AnimetaError):
    """Raised by the Hanime client for scrape failures."""

    def __init__(self, kind: ScrapeErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class ResolutionError(AnimetaError):
    """Raised when no source produced a usable record.

    Carries one SourceOutcome per source that was consulted.
    """

    def __init__(self, outcomes: "Iterable[SourceOutcome]") -> None:
        self.outcomes = tuple(outcomes)
        summary = "; ".join(
            f"{o.source}: {o.error_kind or o.status.value}" for o in self.outcomes
        )
        super().__init__(f"No source produced metadata ({summary})")
