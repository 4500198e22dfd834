# ABOUTME: Core metadata data structures shared by every source and the orchestrator.
# ABOUTME: SearchQuery in, CandidateResult per hit, MetadataRecord out, SourceOutcome per source.

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from types import MappingProxyType

MAX_GENRES = 5


@dataclass(frozen=True)
class SearchQuery:
    """A free-text title plus an optional known Bangumi subject id."""

    title: str
    bangumi_id: str | None = None

    def __post_init__(self) -> None:
        title = (self.title or "").strip()
        if not title and not self.bangumi_id:
            raise ValueError("query needs a title or a bangumi_id")
        object.__setattr__(self, "title", title)
        if self.bangumi_id is not None:
            object.__setattr__(self, "bangumi_id", str(self.bangumi_id).strip() or None)


@dataclass(frozen=True)
class CandidateResult:
    """One search hit, in the same shape for every source.

    `url` is only set when the source needs it to locate the detail page
    (Hanime watch pages); Bangumi candidates are addressed by `source_id`.
    """

    name: str
    source: str
    source_id: str | None = None
    image_url: str | None = None
    year: int | None = None
    url: str | None = None


def normalize_genres(genres: Iterable[str], limit: int = MAX_GENRES) -> tuple[str, ...]:
    """Strip, drop blanks, dedupe preserving order, cap at `limit`."""
    seen: list[str] = []
    for genre in genres:
        name = (genre or "").strip()
        if name and name not in seen:
            seen.append(name)
        if len(seen) >= limit:
            break
    return tuple(seen)


@dataclass(frozen=True)
class MetadataRecord:
    """Unified metadata for one title.

    Built once per resolution and never mutated afterwards. Every field except
    the genre tuple and the id mapping may be absent (None).
    """

    name: str | None = None
    overview: str | None = None
    release_date: date | None = None
    genres: tuple[str, ...] = ()
    rating: float | None = None
    image_url: str | None = None
    external_ids: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.rating is not None and not 0.0 <= self.rating <= 10.0:
            msg = f"rating must be between 0.0 and 10.0, got {self.rating}"
            raise ValueError(msg)
        object.__setattr__(self, "genres", normalize_genres(self.genres))
        object.__setattr__(self, "external_ids", MappingProxyType(dict(self.external_ids)))

    @property
    def year(self) -> int | None:
        return self.release_date.year if self.release_date else None

    @property
    def is_empty(self) -> bool:
        """True when no descriptive field was populated."""
        return not any(
            (self.name, self.overview, self.release_date, self.genres, self.rating, self.image_url)
        )


class OutcomeStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SourceOutcome:
    """What happened to one source during a resolution."""

    source: str
    status: OutcomeStatus
    error_kind: str | None = None
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.OK


@dataclass(frozen=True)
class ResolutionResult:
    """A merged record plus the per-source outcomes that produced it."""

    record: MetadataRecord
    outcomes: tuple[SourceOutcome, ...]
