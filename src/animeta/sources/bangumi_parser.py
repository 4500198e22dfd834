# ABOUTME: Parsing functions for Bangumi API JSON responses.
# ABOUTME: Converts search hits and subject documents into CandidateResult and MetadataRecord.

from datetime import date, datetime
from typing import Any

from animeta.metadata.types import MAX_GENRES, CandidateResult, MetadataRecord

SOURCE_NAME = "bangumi"

_NULL_DATE = "0000-00-00"


class BangumiParseError(ValueError):
    """Raised when a response does not have the expected top-level shape."""


def display_name(data: dict[str, Any]) -> str | None:
    """Prefer the localized `name_cn` over the original `name`."""
    name_cn = data.get("name_cn")
    if isinstance(name_cn, str) and name_cn.strip():
        return name_cn.strip()
    name = data.get("name")
    if isinstance(name, str) and name.strip():
        return name.strip()
    return None


def _image(data: dict[str, Any], *variants: str) -> str | None:
    images = data.get("images")
    if not isinstance(images, dict):
        return None
    for variant in variants:
        url = images.get(variant)
        if isinstance(url, str) and url:
            return url
    return None


def parse_search_results(data: Any) -> list[CandidateResult]:
    """Parse a search response into candidates, keeping upstream order.

    Accepts either a bare JSON array of hits or the legacy envelope
    `{"results": n, "list": [...]}`. A `null` list means zero hits.
    """
    if isinstance(data, dict):
        hits = data.get("list")
        if hits is None:
            hits = data.get("data", [])
    else:
        hits = data
    if hits is None:
        return []
    if not isinstance(hits, list):
        raise BangumiParseError(f"Expected a list of hits, got {type(hits).__name__}")

    results: list[CandidateResult] = []
    for hit in hits:
        if not isinstance(hit, dict):
            continue
        name = display_name(hit)
        if name is None:
            continue
        subject_id = hit.get("id")
        results.append(
            CandidateResult(
                name=name,
                source=SOURCE_NAME,
                source_id=str(subject_id) if subject_id is not None else None,
                image_url=_image(hit, "common", "large", "medium"),
            )
        )
    return results


def parse_air_date(value: Any) -> date | None:
    """Parse `YYYY-MM-DD`; the `0000-00-00` sentinel and junk become None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    if not value or value == _NULL_DATE:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def parse_rating(data: dict[str, Any]) -> float | None:
    """Extract `rating.score`. Zero is the API's "no votes yet" value."""
    rating = data.get("rating")
    if not isinstance(rating, dict):
        return None
    score = rating.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float, str)):
        return None
    try:
        value = float(score)
    except ValueError:
        return None
    if value <= 0.0 or value > 10.0:
        return None
    return round(value, 1)


def parse_tags(data: dict[str, Any], limit: int = MAX_GENRES) -> list[str]:
    """Tag names in upstream order (most-voted first)."""
    tags = data.get("tags")
    if not isinstance(tags, list):
        return []
    names: list[str] = []
    for tag in tags:
        name = tag.get("name") if isinstance(tag, dict) else None
        if isinstance(name, str) and name.strip() and name.strip() not in names:
            names.append(name.strip())
        if len(names) >= limit:
            break
    return names


def parse_subject(data: Any, subject_id: str | None = None) -> MetadataRecord:
    """Parse a `/v0/subjects/{id}` document into a MetadataRecord.

    Every field is optional; a missing field maps to an absent value.
    """
    if not isinstance(data, dict):
        raise BangumiParseError(f"Expected a subject object, got {type(data).__name__}")

    summary = data.get("summary")
    overview = summary.strip() if isinstance(summary, str) and summary.strip() else None

    resolved_id = data.get("id", subject_id)
    external_ids = {SOURCE_NAME: str(resolved_id)} if resolved_id is not None else {}

    return MetadataRecord(
        name=display_name(data),
        overview=overview,
        release_date=parse_air_date(data.get("date")),
        genres=tuple(parse_tags(data)),
        rating=parse_rating(data),
        image_url=_image(data, "large"),
        external_ids=external_ids,
    )
