"""Pure helpers shared by the converter and its tests."""

from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import quote_plus, urlsplit, urlunsplit


def find_header(lines: Iterable[str], name: str) -> Optional[str]:
    """Return the value of the last ``name:`` header line, or None.

    The prefix match is case-sensitive; the value is everything after the
    first colon with surrounding whitespace removed.
    """

    prefix = f"{name}:"
    value: Optional[str] = None
    for line in lines:
        if line.startswith(prefix):
            value = line.split(":", 1)[1].strip()
    return value or None


def import_extension(filename: str) -> Optional[str]:
    """Text after the last dot of ``filename``; None when there is no dot."""

    if "." not in filename:
        return None
    return filename.rsplit(".", 1)[1]


def remote_upload_path(prefix: str, site: str, contenthash: str, extension: str) -> str:
    return quote_plus(f"{prefix}{site}/{contenthash}.{extension}")


def content_range(size: int) -> str:
    return f"bytes 0-{size - 1}/{size}"


def normalize_url(raw: str) -> str:
    parts = urlsplit(raw.strip())
    if parts.scheme.lower() not in {"http", "https"} or not parts.netloc:
        raise ValueError(f"Not an absolute http(s) URL: {raw!r}")
    return urlunsplit((parts.scheme.lower(), parts.netloc, parts.path or "/", parts.query, parts.fragment))
