"""Shared fixtures: an in-memory transport and a fetcher wired to it."""

import json
import os
import zlib

import pytest

from spec_index.descriptor import source_join
from spec_index.errors import FetchError
from spec_index.fetcher import SpecFetcher
from spec_index.index import index_file_name
from spec_index.models import IndexKind
from spec_index.platforms import make_platform_match

SOURCE = "https://gems.example.com/"
MIRROR = "http://mirror.example.org:8080/gems/"
LOCAL_PLATFORM = "x86_64-linux"


class FakeTransport:
    """Serves canned payloads; a local file, once present, is always fresh."""

    def __init__(self):
        self.remote = {}
        self.fetched = []
        self.update_calls = []

    def fetch_path(self, url, mtime=None):
        self.fetched.append(url)
        payload = self.remote.get(url)
        if payload is None:
            raise FetchError(f"no route to {url}", url=url)
        return payload

    def cache_update_path(self, url, local_path, update=True):
        self.update_calls.append((url, local_path))
        if os.path.exists(local_path):
            with open(local_path, "rb") as fh:
                return fh.read()
        data = self.fetch_path(url)
        if update:
            os.makedirs(os.path.dirname(local_path), exist_ok=True)
            with open(local_path, "wb") as fh:
                fh.write(data)
        return data

    def serve_index(self, source, kind, entries):
        url = source_join(source, index_file_name(kind) + ".gz")
        self.remote[url] = json.dumps(entries).encode("utf-8")
        return url

    def serve_descriptor(self, source, file_name, descriptor):
        url = source_join(source, f"quick/Marshal.4.8/{file_name}.rz")
        self.remote[url] = zlib.compress(json.dumps(descriptor).encode("utf-8"))
        return url


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def cache_root(tmp_path):
    return str(tmp_path / "specs")


@pytest.fixture
def make_fetcher(transport, cache_root):
    """Build a SpecFetcher over ``sources`` using the fake transport."""

    def _make(sources=(SOURCE,), update_cache=True, platforms=(LOCAL_PLATFORM,)):
        return SpecFetcher(
            sources=list(sources),
            transport=transport,
            cache_root=cache_root,
            update_cache=update_cache,
            platform_match=make_platform_match(platforms),
        )

    return _make


@pytest.fixture
def populated(transport):
    """Serve a small all/latest/prerelease index set on SOURCE."""
    transport.serve_index(SOURCE, IndexKind.ALL, [
        ["rake", "12.3.3", "ruby"],
        ["rake", "13.0.1", "ruby"],
        ["rack", "2.2.3", "ruby"],
        ["nokogiri", "1.11.0", "ruby"],
        ["nokogiri", "1.11.0", "x86_64-linux"],
        ["nokogiri", "1.11.0", "java"],
        ["nokogiri", "1.11.0", "x64-mingw32"],
    ])
    transport.serve_index(SOURCE, IndexKind.LATEST, [
        ["rake", "13.0.1", "ruby"],
        ["rack", "2.2.3", "ruby"],
        ["nokogiri", "1.11.0", "ruby"],
        ["nokogiri", "1.11.0", "java"],
    ])
    transport.serve_index(SOURCE, IndexKind.PRERELEASE, [
        ["rake", "14.0.0.beta1", "ruby"],
        ["rack", "3.0.0.rc1", "ruby"],
    ])
    return transport
