"""Fetch-or-reuse access to cached remote files with one self-heal retry."""
from __future__ import annotations

import logging
import os
import threading
from typing import Any, Callable, Dict, Optional, Protocol

from common.logging_utils import extra_context, is_debug_enabled, safe_url
from spec_index.codec import Codec, safe_decode
from spec_index.errors import CorruptCacheError

logger = logging.getLogger(__name__)

# A corrupt file is deleted and refetched at most this many times per call.
MAX_SELF_HEAL_RETRIES = 1


class Transport(Protocol):
    """Network collaborator used to fill the cache."""

    def fetch_path(self, url: str) -> bytes:
        ...

    def cache_update_path(self, url: str, local_path: str, update: bool = True) -> bytes:
        ...


class BlobCache:
    """Resolve a remote file through its local copy and decode it.

    Reads and rewrites of one local path are serialized; different paths
    proceed in parallel.
    """

    def __init__(self, transport: Transport, codec: Codec, update_cache: bool):
        self.transport = transport
        self.codec = codec
        self.update_cache = update_cache
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, local_path: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(local_path)
            if lock is None:
                lock = self._locks[local_path] = threading.Lock()
            return lock

    def resolve(
        self,
        remote_url: str,
        local_path: str,
        decoder: Optional[Callable[[bytes], Any]] = None,
    ) -> Any:
        """Return the decoded payload of ``remote_url``.

        ``decoder`` overrides ``codec.decode``; it must raise one of the
        codec's ``decode_errors`` for payloads it rejects.

        Raises:
            FetchError: if nothing is cached and the remote fetch fails.
            CorruptCacheError: if the payload is still undecodable after the
                self-heal retry, or cannot be healed because cache writes are
                disabled.
        """
        with self._lock_for(local_path):
            if self.update_cache:
                os.makedirs(os.path.dirname(local_path), exist_ok=True)

            retries = 0
            while True:
                data = self.transport.cache_update_path(
                    remote_url, local_path, update=self.update_cache
                )
                result = safe_decode(self.codec, data, decoder)
                if result.ok:
                    return result.value

                if not self.update_cache or retries >= MAX_SELF_HEAL_RETRIES:
                    logger.error(
                        "Invalid spec cache file in %s",
                        local_path,
                        extra=extra_context(
                            event="cache_corrupt",
                            component="blob_cache",
                            outcome="give_up",
                            path=local_path,
                            target=safe_url(remote_url),
                        ),
                    )
                    raise CorruptCacheError(local_path) from result.error

                retries += 1
                logger.warning(
                    "Discarding undecodable cache file %s and refetching",
                    local_path,
                    extra=extra_context(
                        event="cache_self_heal",
                        component="blob_cache",
                        attempt=retries,
                        path=local_path,
                        target=safe_url(remote_url),
                    ),
                )
                if is_debug_enabled(logger):
                    logger.debug("Decode error: %s", result.error)
                if os.path.exists(local_path):
                    os.remove(local_path)
