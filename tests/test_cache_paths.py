"""Tests for the local cache directory layout."""

import os

import pytest

from spec_index.paths import cache_dir

ROOT = "/var/cache/specs"


class TestCacheDir:
    """Test mapping remote URLs onto cache directories."""

    def test_host_and_port_namespace(self):
        """Test files are namespaced by host and port."""
        path = cache_dir(ROOT, "https://gems.example.com/specs.4.8.gz")
        assert path == os.path.join(ROOT, "gems.example.com%443")

    def test_explicit_port_and_path_directory(self):
        """Test an explicit port and path directory are kept."""
        path = cache_dir(ROOT, "http://mirror.example.org:8080/gems/quick/Marshal.4.8/rake-13.0.1.gemspec")
        assert path == os.path.join(ROOT, "mirror.example.org%8080", "gems", "quick", "Marshal.4.8")

    def test_default_http_port(self):
        """Test plain http defaults to port 80."""
        path = cache_dir(ROOT, "http://gems.example.com/specs.4.8.gz")
        assert path == os.path.join(ROOT, "gems.example.com%80")

    @pytest.mark.parametrize("url", [
        "file:///C:/gems/specs.4.8.gz",
        "file:///c:/gems/quick/rake.gemspec",
        "http://host:9292/D:/mirror/specs.4.8.gz",
    ])
    def test_drive_letter_never_leaves_a_colon(self, url):
        """Test a drive letter never leaves a colon in the path."""
        path = cache_dir(ROOT, url)
        assert ":" not in path

    def test_drive_letter_rewritten_to_dash(self):
        """Test a drive letter colon becomes a dash."""
        path = cache_dir(ROOT, "http://host:9292/C:/mirror/specs.4.8.gz")
        assert path == os.path.join(ROOT, "host%9292", "C-", "mirror")

    def test_scheme_does_not_change_directory(self):
        """Test the scheme only matters through the port."""
        http = cache_dir(ROOT, "http://gems.example.com:8808/a/specs.4.8.gz")
        https = cache_dir(ROOT, "https://gems.example.com:8808/a/specs.4.8.gz")
        assert http == https

    def test_only_directory_part_of_path_is_used(self):
        """Test the file name is not part of the directory."""
        a = cache_dir(ROOT, "https://gems.example.com/a/specs.4.8.gz")
        b = cache_dir(ROOT, "https://gems.example.com/a/latest_specs.4.8.gz")
        assert a == b
