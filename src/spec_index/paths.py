"""Local cache layout for remote sources."""
from __future__ import annotations

import os
import posixpath
import re
import urllib.parse

# "/C:/foo" -> "/C-/foo"; the colon is not legal in Windows path segments.
_DRIVE_LETTER = re.compile(r"^/([a-z]):/", re.IGNORECASE)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def url_port(parts: urllib.parse.SplitResult) -> int:
    if parts.port is not None:
        return parts.port
    return _DEFAULT_PORTS.get(parts.scheme, 80)


def cache_dir(root: str, remote_url: str) -> str:
    """Return the local directory caching files fetched from ``remote_url``.

    Laid out as ``<root>/<host>%<port>/<dirname of escaped path>``. Pure;
    touches no filesystem state.
    """
    parts = urllib.parse.urlsplit(remote_url)
    escaped_path = _DRIVE_LETTER.sub(r"/\1-/", parts.path or "/")
    host_dir = f"{parts.hostname or ''}%{url_port(parts)}"
    segments = [s for s in posixpath.dirname(escaped_path).split("/") if s]
    return os.path.join(root, host_dir, *segments)
