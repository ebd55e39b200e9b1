"""Fetch full package descriptors by identity."""
from __future__ import annotations

import logging
import os
import urllib.parse
from typing import Any, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer
from spec_index.blob_cache import Transport
from spec_index.codec import Codec, safe_decode
from spec_index.errors import FetchError
from spec_index.models import NameTuple
from spec_index.paths import cache_dir

logger = logging.getLogger(__name__)


def descriptor_file_name(spec: NameTuple) -> str:
    """``<name>-<version>[-<platform>]<ext>``; generic platforms are omitted."""
    parts = [spec.name]
    if spec.version is not None:
        parts.append(str(spec.version))
    if spec.platform not in (None, *Constants.GENERIC_PLATFORMS):
        parts.append(spec.platform)
    return "-".join(parts) + Constants.DESCRIPTOR_EXT


def source_join(source: str, path: str) -> str:
    """Resolve ``path`` relative to the source base URL."""
    base = source if source.endswith("/") else source + "/"
    return urllib.parse.urljoin(base, path)


class DescriptorFetcher:
    """Materialize descriptors, preferring the uncompressed local copy."""

    def __init__(self, transport: Transport, codec: Codec, cache_root: str, update_cache: bool):
        self.transport = transport
        self.codec = codec
        self.cache_root = cache_root
        self.update_cache = update_cache

    def uri(self, spec: NameTuple, source: str) -> str:
        return source_join(source, Constants.DESCRIPTOR_DIR + descriptor_file_name(spec))

    def remote_url(self, spec: NameTuple, source: str) -> str:
        """The compressed form actually served by ``source``."""
        return self.uri(spec, source) + Constants.DESCRIPTOR_SUFFIX

    def local_path(self, spec: NameTuple, source: str) -> str:
        return os.path.join(cache_dir(self.cache_root, self.uri(spec, source)), descriptor_file_name(spec))

    def _read_local(self, local_spec: str) -> Optional[Any]:
        """Decode the cached descriptor; None means "treat as a miss"."""
        if not os.path.exists(local_spec):
            return None
        with open(local_spec, "rb") as fh:
            result = safe_decode(self.codec, fh.read())
        if result.ok:
            return result.value
        if is_debug_enabled(logger):
            logger.debug(
                "Cached descriptor undecodable, refetching",
                extra=extra_context(
                    event="cache_miss",
                    component="descriptor",
                    outcome="decode_error",
                    path=local_spec,
                ),
            )
        return None

    def fetch(self, spec: NameTuple, source: str) -> Any:
        """Return the decoded descriptor for ``spec`` served by ``source``.

        A remote payload that does not inflate and decode is never persisted.

        Raises:
            FetchError: when the local copy is unusable and the remote fails
                or serves a damaged payload.
        """
        local_spec = self.local_path(spec, source)

        cached = self._read_local(local_spec)
        if cached is not None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Descriptor cache hit",
                    extra=extra_context(event="cache_hit", component="descriptor", path=local_spec),
                )
            return cached

        remote = self.remote_url(spec, source)
        with Timer() as t:
            raw = self.transport.fetch_path(remote)
        logger.debug(
            "Descriptor fetched",
            extra=extra_context(
                event="descriptor_fetched",
                component="descriptor",
                duration_ms=t.duration_ms(),
                target=safe_url(remote),
            ),
        )

        inflated = safe_decode(self.codec, raw, self.codec.decompress)
        result = safe_decode(self.codec, inflated.value) if inflated.ok else inflated
        if not result.ok:
            logger.error(
                "Damaged descriptor from %s",
                safe_url(remote),
                extra=extra_context(
                    event="descriptor_corrupt",
                    component="descriptor",
                    outcome="give_up",
                    target=safe_url(remote),
                ),
            )
            raise FetchError(f"damaged descriptor {safe_url(remote)}", url=safe_url(remote)) from result.error

        if self.update_cache:
            os.makedirs(os.path.dirname(local_spec), exist_ok=True)
            with open(local_spec, "wb") as fh:
                fh.write(inflated.value)

        return result.value
