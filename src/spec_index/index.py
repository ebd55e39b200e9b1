"""Load per-source index files into identity tuples."""
from __future__ import annotations

import logging
import os
from typing import Any, List

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from spec_index.blob_cache import BlobCache
from spec_index.descriptor import source_join
from spec_index.models import IndexKind, NameTuple, parse_version
from spec_index.paths import cache_dir

logger = logging.getLogger(__name__)


def index_file_name(kind: IndexKind) -> str:
    return f"{Constants.INDEX_FILES[kind.value]}.{Constants.FORMAT_VERSION}"


def _to_tuple(entry: Any) -> NameTuple:
    """Convert one decoded ``[name, version, platform]`` entry."""
    if isinstance(entry, dict):
        name, raw_version, platform = entry.get("name"), entry.get("version"), entry.get("platform")
    elif isinstance(entry, (list, tuple)) and entry:
        name, raw_version, platform = (list(entry) + [None, None])[:3]
    else:
        raise ValueError(f"malformed index entry: {entry!r}")
    version = parse_version(raw_version)
    if version is None and raw_version not in (None, "") and is_debug_enabled(logger):
        logger.debug("Unparseable version %r for %s", raw_version, name)
    return NameTuple(str(name), version, platform or None)


class IndexLoader:
    """Resolve and decode index files through the blob cache."""

    def __init__(self, blob_cache: BlobCache, cache_root: str):
        self.blob_cache = blob_cache
        self.cache_root = cache_root

    def paths(self, source: str, kind: IndexKind):
        """Return ``(remote_url, local_path)`` for one index file."""
        file_name = index_file_name(kind)
        remote = source_join(source, file_name + Constants.INDEX_SUFFIX)
        local = os.path.join(cache_dir(self.cache_root, remote), file_name)
        return remote, local

    def _decode(self, data: bytes) -> List[NameTuple]:
        decoded = self.blob_cache.codec.decode(data)
        if not isinstance(decoded, list):
            raise ValueError("index did not decode to a list")
        return [_to_tuple(entry) for entry in decoded]

    def load(self, source: str, kind: IndexKind) -> List[NameTuple]:
        """Load the ``kind`` index of ``source``.

        Raises:
            FetchError: if the index is neither cached nor reachable.
            CorruptCacheError: if the index stays undecodable after self-heal.
        """
        remote, local = self.paths(source, kind)
        specs = self.blob_cache.resolve(remote, local, self._decode)
        logger.debug(
            "Index loaded",
            extra=extra_context(
                event="index_loaded",
                component="index",
                kind=kind.value,
                count=len(specs),
                target=safe_url(remote),
            ),
        )
        return specs
