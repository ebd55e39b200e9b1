"""HTTP transport used to fill the local spec cache.

Encapsulates request/timeout error handling and the conditional
"reuse the cached file or fetch it again" primitive so the spec index never
talks to ``requests`` directly.
"""
from __future__ import annotations

import gzip
import logging
import os
import time
import zlib
from email.utils import formatdate
from typing import Any, Optional

import requests

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from spec_index.errors import FetchError

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"


def safe_get(url: str, *, context: str, **kwargs: Any) -> requests.Response:
    """Perform a GET request with consistent error handling and DEBUG traces.

    Raises:
        FetchError: on timeout or connection failure.
    """
    safe_target = safe_url(url)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            res = requests.get(url, timeout=Constants.REQUEST_TIMEOUT, **kwargs)
        except requests.Timeout as exc:
            logger.error(
                "%s request timed out after %s seconds",
                context,
                Constants.REQUEST_TIMEOUT,
            )
            raise FetchError(f"timed out fetching {safe_target}", url=safe_target) from exc
        except requests.RequestException as exc:  # includes ConnectionError
            logger.error("%s connection error: %s", context, exc)
            raise FetchError(f"connection error fetching {safe_target}: {exc}", url=safe_target) from exc
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context,
                ),
            )
        return res


def _maybe_gunzip(url: str, body: bytes) -> bytes:
    """Inflate ``.gz`` payloads unless the server already decoded them.

    Raises:
        FetchError: when the body is a truncated or damaged gzip stream.
    """
    if not (url.endswith(".gz") and body[:2] == _GZIP_MAGIC):
        return body
    try:
        return gzip.decompress(body)
    except (OSError, EOFError, zlib.error) as exc:
        logger.error("Damaged gzip body from %s: %s", safe_url(url), exc)
        raise FetchError(f"damaged gzip body from {safe_url(url)}", url=safe_url(url)) from exc


class RemoteFetcher:
    """Blocking fetch-or-reuse transport backed by ``requests``."""

    def __init__(self, max_age: Optional[int] = None, headers: Optional[dict] = None):
        """Initialize the fetcher.

        Args:
            max_age: Seconds a cached file is trusted without contacting the
                remote. Defaults to ``Constants.CACHE_MAX_AGE_SEC``.
            headers: Extra request headers.
        """
        self.max_age = Constants.CACHE_MAX_AGE_SEC if max_age is None else max_age
        self.headers = {"User-Agent": Constants.USER_AGENT}
        if headers:
            self.headers.update(headers)

    def fetch_path(self, url: str, mtime: Optional[float] = None) -> Optional[bytes]:
        """Download ``url``.

        Returns ``None`` when ``mtime`` is given and the server answers
        304 Not Modified.

        Raises:
            FetchError: on transport failure or a non-success status.
        """
        headers = dict(self.headers)
        if mtime is not None:
            headers["If-Modified-Since"] = formatdate(mtime, usegmt=True)

        res = safe_get(url, context="specs", headers=headers)
        if res.status_code == 304 and mtime is not None:
            return None
        if res.status_code != 200:
            raise FetchError(
                f"bad response {res.status_code} fetching {safe_url(url)}",
                url=safe_url(url),
                status_code=res.status_code,
            )
        return _maybe_gunzip(url, res.content)

    def cache_update_path(self, url: str, local_path: str, update: bool = True) -> bytes:
        """Return bytes for ``url``, reusing ``local_path`` while it is fresh.

        The freshly downloaded body is written to ``local_path`` when
        ``update`` is true.
        """
        mtime = None
        if os.path.exists(local_path):
            mtime = os.path.getmtime(local_path)
            if time.time() - mtime < self.max_age:
                if is_debug_enabled(logger):
                    logger.debug(
                        "Local copy fresh",
                        extra=extra_context(
                            event="cache_hit",
                            component="http_client",
                            path=local_path,
                            target=safe_url(url),
                        ),
                    )
                return self._read(local_path)

        try:
            data = self.fetch_path(url, mtime=mtime)
        except FetchError:
            if mtime is None:
                raise
            logger.warning(
                "Remote unavailable, using stale cache %s",
                local_path,
                extra=extra_context(
                    event="http_exception",
                    component="http_client",
                    outcome="stale_fallback",
                    path=local_path,
                    target=safe_url(url),
                ),
            )
            return self._read(local_path)

        if data is None:
            logger.debug(
                "Remote not modified",
                extra=extra_context(
                    event="http_not_modified",
                    component="http_client",
                    path=local_path,
                    target=safe_url(url),
                ),
            )
            if update:
                os.utime(local_path, None)
            return self._read(local_path)

        if update:
            os.makedirs(os.path.dirname(local_path) or ".", exist_ok=True)
            with open(local_path, "wb") as fh:
                fh.write(data)
        return data

    @staticmethod
    def _read(path: str) -> bytes:
        with open(path, "rb") as fh:
            return fh.read()
