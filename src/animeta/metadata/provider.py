# ABOUTME: MetadataSource protocol defining the contract every upstream client fulfils.
# ABOUTME: Bangumi (bearer token auth) and Hanime (session credential auth) both implement it.

from typing import Protocol, TypeVar, runtime_checkable

from animeta.metadata.types import CandidateResult, MetadataRecord, SearchQuery

AuthT = TypeVar("AuthT", contravariant=True)


@runtime_checkable
class MetadataSource(Protocol[AuthT]):
    """Protocol for metadata lookup sources.

    `search` returns candidates ranked by the upstream, best first, and an
    empty list for a miss. `fetch_detail` takes the reference a candidate
    carries (subject id or watch URL). Both raise the source's own error type
    and never leak transport exceptions.
    """

    @property
    def name(self) -> str: ...

    async def search(
        self, query: SearchQuery, auth: AuthT | None = None
    ) -> list[CandidateResult]: ...

    async def fetch_detail(self, ref: str, auth: AuthT | None = None) -> MetadataRecord: ...
