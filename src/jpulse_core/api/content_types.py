"""Content types for files served by the view router."""

import mimetypes
from pathlib import PurePosixPath

# Expanded as templates
TEMPLATE_TYPES: dict[str, str] = {
    ".shtml": "text/html; charset=utf-8",
    ".html": "text/html; charset=utf-8",
    ".tmpl": "text/html; charset=utf-8",
    ".svg": "image/svg+xml; charset=utf-8",
    ".txt": "text/plain; charset=utf-8",
    ".css": "text/css; charset=utf-8",
    ".js": "application/javascript; charset=utf-8",
}

# Concatenated across layers (framework, site, plugins) before expansion
APPEND_EXTENSIONS = frozenset({".css", ".js"})

# Served byte-for-byte: no i18n pass, no expansion
RAW_TYPES: dict[str, str] = {
    ".json": "application/json; charset=utf-8",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".ico": "image/x-icon",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
    ".ttf": "font/ttf",
    ".otf": "font/otf",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".mp3": "audio/mpeg",
    ".mp4": "video/mp4",
}


def extension_of(path: str) -> str:
    return PurePosixPath(path).suffix.lower()


def is_template(path: str) -> bool:
    return extension_of(path) in TEMPLATE_TYPES


def content_type_for(path: str) -> str:
    """Content type by extension; unknown extensions are guessed, then octet-stream."""
    ext = extension_of(path)
    if ext in TEMPLATE_TYPES:
        return TEMPLATE_TYPES[ext]
    if ext in RAW_TYPES:
        return RAW_TYPES[ext]
    guessed, _ = mimetypes.guess_type(path)
    return guessed or "application/octet-stream"
