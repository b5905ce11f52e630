"""Utilities for naming downloaded resources on disk."""

import re
from pathlib import PurePosixPath
from urllib.parse import urlsplit

DEFAULT_EXTENSION = ".dat"
DEFAULT_BASENAME = "resource"

# Checked in order against the Content-Type header
_CONTENT_TYPE_EXTENSIONS = [
    ("json", ".json"),
    ("csv", ".csv"),
    # xlsx types contain "xml" too
    ("excel", ".xlsx"),
    ("spreadsheet", ".xlsx"),
    ("xml", ".xml"),
    ("zip", ".zip"),
]

_EXTENSION_RE = re.compile(r"^\.[A-Za-z0-9]{1,8}$")


def safe_filename(title: str | None) -> str:
    """Turn a resource title into a filesystem-safe base name.

    Every character outside ``[A-Za-z0-9]`` becomes an underscore; an empty
    title yields ``resource``.
    """
    if not title:
        return DEFAULT_BASENAME
    return re.sub(r"[^a-zA-Z0-9]", "_", title)


def extension_from_url(url: str) -> str | None:
    """Return the URL path's extension when it looks like a real one."""
    suffix = PurePosixPath(urlsplit(url).path).suffix
    if suffix and _EXTENSION_RE.match(suffix) and suffix.lower() != DEFAULT_EXTENSION:
        return suffix
    return None


def extension_from_content_type(content_type: str | None) -> str | None:
    """Sniff an extension from a Content-Type header value."""
    if not content_type:
        return None
    lowered = content_type.lower()
    for marker, ext in _CONTENT_TYPE_EXTENSIONS:
        if marker in lowered:
            return ext
    return None


def guess_extension(url: str, content_type: str | None = None) -> str:
    """URL suffix first, then Content-Type, then ``.dat``."""
    return (
        extension_from_url(url)
        or extension_from_content_type(content_type)
        or DEFAULT_EXTENSION
    )
