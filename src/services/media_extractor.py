"""Media extraction - turn inconsistent raw media fields into photos, videos and a tour URL."""

import json
from typing import Any, Optional

from src.models.listing import MediaBundle

# Feeds disagree on casing; first hit wins.
URL_KEYS = ("MediaURL", "MediaUrl", "mediaURL", "mediaUrl", "media_url", "url", "URL", "Url")
FORMAT_KEYS = ("format", "Format")

VIDEO_FORMATS = {"video"}
TOUR_MARKERS = ("3d", "virtual", "tour")


def normalize_media_url(url: Any) -> Optional[str]:
    """
    Normalize a media URL to an absolute https/http URL.

    Protocol-relative URLs get https. Scheme-less host paths get https.
    Blank or root-relative values return None.
    """
    if not isinstance(url, str):
        return None
    url = url.strip()
    if not url or " " in url:
        return None
    if url.startswith("//"):
        return f"https:{url}"
    if url.startswith("/"):
        return None
    lowered = url.lower()
    if lowered.startswith("http://") or lowered.startswith("https://"):
        return url
    if "://" in url:
        return None
    return f"https://{url}"


def parse_json_list(value: Any) -> list:
    """Decode a list that may arrive natively or JSON-encoded; anything else is empty."""
    if value is None:
        return []
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except (ValueError, TypeError, RecursionError):
            return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _coerce_item(item: Any) -> Any:
    """Decode string items: JSON object, JSON string, or a bare URL."""
    if not isinstance(item, str):
        return item
    stripped = item.strip()
    if stripped[:1] in ("{", "\""):
        try:
            return json.loads(stripped)
        except ValueError:
            return None
    return stripped


def _item_url(item: Any) -> Optional[str]:
    if isinstance(item, str):
        return normalize_media_url(item)
    if isinstance(item, dict):
        for key in URL_KEYS:
            if item.get(key):
                return normalize_media_url(item[key])
    return None


def _item_kind(item: Any) -> str:
    """Classify as photo, video or tour using the explicit format tag."""
    if not isinstance(item, dict):
        return "photo"
    tag = None
    for key in FORMAT_KEYS:
        if isinstance(item.get(key), str):
            tag = item[key].strip().lower()
            break
    if not tag:
        return "photo"
    if any(marker in tag for marker in TOUR_MARKERS):
        return "tour"
    if tag in VIDEO_FORMATS:
        return "video"
    return "photo"


def extract_media(raw_media: Any, preferred_photo: Any = None) -> MediaBundle:
    """
    Extract media from a raw field of unknown shape.

    Accepts a list of dicts, a JSON string of such a list, a list of
    JSON-encoded item strings, a list of bare URLs, or None. Malformed
    items are skipped and the call never raises.
    """
    photos: list[str] = []
    seen_photos: set[str] = set()
    video_urls: list[str] = []
    virtual_tour_url: Optional[str] = None

    def add_photo(url: Optional[str]) -> None:
        if url and url not in seen_photos:
            seen_photos.add(url)
            photos.append(url)

    add_photo(normalize_media_url(preferred_photo))

    for raw_item in parse_json_list(raw_media):
        try:
            item = _coerce_item(raw_item)
            url = _item_url(item)
            if not url:
                continue
            kind = _item_kind(item)
            if kind == "tour":
                if virtual_tour_url is None:
                    virtual_tour_url = url
            elif kind == "video":
                if url not in video_urls:
                    video_urls.append(url)
            else:
                add_photo(url)
        except Exception:
            # One bad item never spoils the rest
            continue

    return MediaBundle(photos=photos, video_urls=video_urls, virtual_tour_url=virtual_tour_url)
