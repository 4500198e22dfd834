# ABOUTME: Pattern extraction for hanime1.me HTML pages.
# ABOUTME: Finds watch links, og meta fields, login walls, and CSRF tokens with fixed regexes.

import html
import re
from urllib.parse import parse_qs, urljoin, urlparse

from animeta.metadata.types import MetadataRecord

SOURCE_NAME = "hanime"

# Absolute or site-relative links to a watch page.
_WATCH_LINK_RE = re.compile(
    r"""href=["']((?:https?://(?:www\.)?hanime1\.me)?/watch\?v=[^"']+)["']""",
    re.IGNORECASE,
)

_META_TEMPLATES = (
    r"""<meta\s+[^>]*?property=["']{prop}["'][^>]*?content=["']([^"']*)["']""",
    r"""<meta\s+[^>]*?content=["']([^"']*)["'][^>]*?property=["']{prop}["']""",
)

_PASSWORD_INPUT_RE = re.compile(r"""<input[^>]+type=["']password["']""", re.IGNORECASE)
_LOGIN_FORM_RE = re.compile(r"""<form[^>]+action=["'][^"']*/login/?["']""", re.IGNORECASE)
_LOGOUT_RE = re.compile(r"""(?:href|action)=["'][^"']*/logout/?["']""", re.IGNORECASE)

_CSRF_PATTERNS = (
    re.compile(r"""<input[^>]+name=["']_token["'][^>]*value=["']([^"']+)["']""", re.IGNORECASE),
    re.compile(r"""<input[^>]+value=["']([^"']+)["'][^>]*name=["']_token["']""", re.IGNORECASE),
    re.compile(r"""<meta\s+name=["']csrf-token["']\s+content=["']([^"']+)["']""", re.IGNORECASE),
)


def find_watch_link(page: str, base_url: str) -> str | None:
    """Return the first watch-page link in a search results page, absolutized."""
    match = _WATCH_LINK_RE.search(page)
    if not match:
        return None
    return urljoin(base_url, html.unescape(match.group(1)))


def video_id(watch_url: str) -> str | None:
    """The `v` query parameter of a watch URL."""
    values = parse_qs(urlparse(watch_url).query).get("v", [])
    return values[0] if values else None


def meta_content(page: str, prop: str) -> str | None:
    """Extract one `<meta property=... content=...>` value, unescaped.

    Attribute order varies between templates, so both orders are tried. A
    blank value counts as absent.
    """
    escaped = re.escape(prop)
    for template in _META_TEMPLATES:
        match = re.search(template.format(prop=escaped), page, re.IGNORECASE)
        if match:
            value = html.unescape(match.group(1)).strip()
            return value or None
    return None


def parse_watch_page(page: str, watch_url: str | None = None) -> MetadataRecord:
    """Build a record from the og:title / og:description / og:image tags.

    Each field is extracted independently; any of them may be absent.
    """
    vid = video_id(watch_url) if watch_url else None
    return MetadataRecord(
        name=meta_content(page, "og:title"),
        overview=meta_content(page, "og:description"),
        image_url=meta_content(page, "og:image"),
        external_ids={SOURCE_NAME: vid} if vid else {},
    )


def is_login_wall(page: str) -> bool:
    """Best-effort detection of the sign-in page served instead of content."""
    return bool(_LOGIN_FORM_RE.search(page) and _PASSWORD_INPUT_RE.search(page))


def is_signed_in(page: str) -> bool:
    """Best-effort detection of a signed-in page (a logout control is present)."""
    return bool(_LOGOUT_RE.search(page)) and not is_login_wall(page)


def find_csrf_token(page: str) -> str | None:
    for pattern in _CSRF_PATTERNS:
        match = pattern.search(page)
        if match:
            return html.unescape(match.group(1))
    return None
