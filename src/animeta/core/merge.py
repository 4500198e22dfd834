# ABOUTME: Field-level merge of per-source records into one MetadataRecord.
# ABOUTME: Bangumi is authoritative; Hanime only fills name, overview, and image.

from animeta.metadata.types import MetadataRecord

# Hanime exposes no genres, ratings, or air dates.
FALLBACK_FIELDS = ("name", "overview", "image_url")


def merge_records(
    primary: MetadataRecord | None, fallback: MetadataRecord | None
) -> MetadataRecord | None:
    """Merge the structured-API record with the scraped one.

    Every field the primary populated wins. The fallback contributes only the
    FALLBACK_FIELDS the primary left absent. External ids from both are kept.
    Returns None when neither record carries any descriptive field.
    """
    primary = primary if primary is not None and not primary.is_empty else None
    fallback = fallback if fallback is not None and not fallback.is_empty else None
    if primary is None and fallback is None:
        return None

    base = primary or MetadataRecord()
    fields = {
        "name": base.name,
        "overview": base.overview,
        "release_date": base.release_date,
        "genres": base.genres,
        "rating": base.rating,
        "image_url": base.image_url,
    }
    external_ids = dict(base.external_ids)

    if fallback is not None:
        for name in FALLBACK_FIELDS:
            if fields[name] is None:
                fields[name] = getattr(fallback, name)
        for source, source_id in fallback.external_ids.items():
            external_ids.setdefault(source, source_id)

    return MetadataRecord(**fields, external_ids=external_ids)
