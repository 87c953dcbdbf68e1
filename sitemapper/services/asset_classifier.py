"""URL naming and asset classification for validated URLs."""
import re
from typing import Dict, Iterable, Optional
from urllib.parse import urlsplit

_CONTENT_TYPE_RULES = (
    (("text/html", "application/xhtml"), "webpage"),
    (("image/",), "image"),
    (("video/",), "video"),
    (("audio/",), "audio"),
    ((
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml",
    ), "document"),
    (("application/json", "application/xml", "text/csv"), "data"),
)

_EXTENSION_RULES = (
    ((".html", ".htm", ".php", ".aspx", ".jsp"), "webpage"),
    ((".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp"), "image"),
    ((".mp4", ".avi", ".mov", ".webm", ".mkv"), "video"),
    ((".mp3", ".wav", ".ogg", ".flac"), "audio"),
    ((".pdf", ".doc", ".docx", ".ppt", ".pptx", ".xls", ".xlsx"), "document"),
    ((".json", ".xml", ".csv", ".sql", ".db"), "data"),
)

_DOC_TYPES = (
    ((".pdf",), "PDF"),
    ((".doc", ".docx"), "Word"),
    ((".ppt", ".pptx"), "PowerPoint"),
    ((".xls", ".xlsx"), "Excel"),
)

_IMAGE_FORMATS = (
    (("jpeg", "jpg"), "JPEG"),
    (("png",), "PNG"),
    (("gif",), "GIF"),
    (("svg",), "SVG"),
)

_SECTIONS = (
    ("civil", "civil-space-section"),
    ("commercial", "commercial-space-section"),
    ("military", "military-space-section"),
    ("launch", "launch-section"),
    ("opinion", "opinion-section"),
)

_CONTENT_CATEGORIES = {
    "article": "News Article",
    "commentary": "Opinion/Commentary",
    "feature": "Feature",
    "press-release": "Press Release",
}

# Asset types for which a page title is worth fetching.
PAGE_LIKE_TYPES = frozenset({"webpage", "article", "commentary", "feature", "homepage"})


def is_page_like(asset_type: str) -> bool:
    return asset_type in PAGE_LIKE_TYPES or "-page" in asset_type or "-section" in asset_type


def extract_url_name(url: Optional[str]) -> str:
    """Human-readable name from the last path segment, or the host for root URLs."""
    if not url:
        return "Unnamed URL"
    try:
        parts = urlsplit(url)
    except ValueError:
        return "Unnamed URL"
    path = parts.path or ""
    if path in ("", "/"):
        return parts.hostname or "Unnamed URL"
    segment = path.rstrip("/").rsplit("/", 1)[-1]
    segment = segment.replace("-", " ").replace("_", " ")
    dot = segment.rfind(".")
    if dot > 0:
        segment = segment[:dot]
    return " ".join(word[:1].upper() + word[1:] for word in segment.split(" "))


def _ends_with(value: str, suffixes: Iterable[str]) -> bool:
    return any(value.endswith(s) for s in suffixes)


def detect_asset_type(url: str, content_type: Optional[str] = None) -> str:
    """Generic asset type from the content type, falling back to the URL extension."""
    if content_type:
        lowered = content_type.lower()
        for needles, asset_type in _CONTENT_TYPE_RULES:
            if any(n in lowered for n in needles):
                return asset_type
    lowered_url = (url or "").lower()
    path = urlsplit(lowered_url).path
    for suffixes, asset_type in _EXTENSION_RULES:
        if _ends_with(path, suffixes):
            return asset_type
    if "." not in path:
        return "webpage"
    return "unknown"


def detect_site_page_type(url: str) -> str:
    """Granular page taxonomy for news-style sites."""
    if not url:
        return "unknown"
    try:
        path = urlsplit(url).path or ""
    except ValueError:
        return "webpage"
    if path in ("", "/"):
        return "homepage"
    path = path.rstrip("/")
    if "/category/" in path:
        return "category-page"
    if "/author/" in path:
        return "author-page"
    if "/tag/" in path:
        return "tag-page"
    if re.fullmatch(r"/\d{4}/\d{2}/\d{2}", path):
        return "date-archive"
    if re.fullmatch(r"/\d{4}/\d{2}", path):
        return "month-archive"
    if re.fullmatch(r"/\d{4}", path):
        return "year-archive"
    for section, page_type in _SECTIONS:
        if f"/{section}/" in path or path == f"/{section}":
            return page_type
    padded = path + "/"
    if any(s in padded for s in ("/commentary/", "-commentary/", "-op-ed/", "/op-ed/")):
        return "commentary"
    if any(s in padded for s in ("/podcast/", "/video/", "-podcast/", "-video/")):
        return "multimedia"
    if "/event/" in padded or "/events/" in padded:
        return "event"
    if any(s in padded for s in ("/feature/", "-feature/", "/special-report/", "-special-report/")):
        return "feature"
    if any(s in padded for s in ("/press-release/", "/pressrelease/", "-press-release/")):
        return "press-release"
    if "." not in path and len(path.split("/")) <= 3:
        return "article"
    return "webpage"


def document_type(url: str) -> Optional[str]:
    path = urlsplit((url or "").lower()).path
    for suffixes, doc_type in _DOC_TYPES:
        if _ends_with(path, suffixes):
            return doc_type
    return None


def image_format(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    lowered = content_type.lower()
    for needles, fmt in _IMAGE_FORMATS:
        if any(n in lowered for n in needles):
            return fmt
    return None


class AssetClassifier:
    """Classifies URLs, using the granular page taxonomy for configured domains."""

    def __init__(self, *, taxonomy_domains: Iterable[str] = ()):
        self.taxonomy_domains = tuple(d.lower() for d in taxonomy_domains)

    def uses_taxonomy(self, url: str) -> bool:
        host = (urlsplit(url or "").hostname or "").lower()
        return any(host == d or host.endswith("." + d) for d in self.taxonomy_domains)

    def classify(self, url: str, content_type: Optional[str] = None) -> str:
        if self.uses_taxonomy(url):
            generic = detect_asset_type(url, content_type)
            if generic in ("webpage", "unknown"):
                return detect_site_page_type(url)
            return generic
        return detect_asset_type(url, content_type)

    def site_metadata(self, url: str, asset_type: str) -> Dict[str, str]:
        if not self.uses_taxonomy(url):
            return {}
        host = (urlsplit(url).hostname or "").lower()
        metadata = {"source": host, "contentType": asset_type}
        category = _CONTENT_CATEGORIES.get(asset_type)
        if category:
            metadata["content_category"] = category
        return metadata
