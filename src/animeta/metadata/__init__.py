# ABOUTME: Metadata package for the shared value types and the source contract.
# ABOUTME: Exports MetadataRecord and friends used throughout animeta.

from animeta.metadata.provider import MetadataSource
from animeta.metadata.types import (
    CandidateResult,
    MetadataRecord,
    OutcomeStatus,
    ResolutionResult,
    SearchQuery,
    SourceOutcome,
)

__all__ = [
    "CandidateResult",
    "MetadataRecord",
    "MetadataSource",
    "OutcomeStatus",
    "ResolutionResult",
    "SearchQuery",
    "SourceOutcome",
]
