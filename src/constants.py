"""Constants used in the project."""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    NOT_FOUND = 3


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_SOURCES = ["https://rubygems.org/"]
    CACHE_ROOT = str(Path.home() / ".cache" / "specfetch" / "specs")

    # Index files: <stem>.<format version>[.gz]
    FORMAT_VERSION = "4.8"
    INDEX_FILES = {
        "all": "specs",
        "latest": "latest_specs",
        "prerelease": "prerelease_specs",
    }
    INDEX_SUFFIX = ".gz"

    # Descriptor files: <name>-<version>[-<platform>].<ext>[.rz]
    DESCRIPTOR_DIR = f"quick/Marshal.{FORMAT_VERSION}/"
    DESCRIPTOR_EXT = ".gemspec"
    DESCRIPTOR_SUFFIX = ".rz"
    GENERIC_PLATFORMS = ("", "ruby")

    # Platforms considered installable besides the generic one; None means
    # "derive from the running interpreter".
    LOCAL_PLATFORMS: Optional[list] = None

    # None means "decide from home directory ownership at startup".
    UPDATE_CACHE: Optional[bool] = None

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    CACHE_MAX_AGE_SEC = 300
    USER_AGENT = "specfetch/0.1"

    SUGGESTION_LIMIT = 5

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "SPECFETCH_LOG_LEVEL"
    ENV_CONFIG = "SPECFETCH_CONFIG"
    CONFIG_FILE = "specfetch.yml"


def _config_candidates() -> list:
    """Return YAML config paths in lookup order."""
    candidates = []
    env_path = os.environ.get(Constants.ENV_CONFIG)
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(Path.cwd() / Constants.CONFIG_FILE)
    candidates.append(Path.home() / ".config" / "specfetch" / Constants.CONFIG_FILE)
    return candidates


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first YAML config found (or the explicit ``path``).

    Returns an empty dict when no file exists or the file cannot be parsed.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    candidates = [Path(path).expanduser()] if path else _config_candidates()
    for candidate in candidates:
        if not candidate.is_file():
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Ignoring unreadable config %s: %s", candidate, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level must be a mapping", candidate)
            return {}
        return data
    return {}


def apply_config(cfg: Dict[str, Any]) -> None:
    """Apply recognized config keys onto ``Constants``; unknown keys are ignored."""
    sources = cfg.get("sources")
    if isinstance(sources, list) and sources:
        Constants.DEFAULT_SOURCES = [str(s) for s in sources]

    cache = cfg.get("cache")
    if isinstance(cache, dict):
        if cache.get("root"):
            Constants.CACHE_ROOT = str(Path(str(cache["root"])).expanduser())
        if cache.get("max_age_sec") is not None:
            Constants.CACHE_MAX_AGE_SEC = int(cache["max_age_sec"])
        if isinstance(cache.get("update"), bool):
            Constants.UPDATE_CACHE = cache["update"]

    http = cfg.get("http")
    if isinstance(http, dict) and http.get("timeout") is not None:
        Constants.REQUEST_TIMEOUT = int(http["timeout"])

    platforms = cfg.get("platforms")
    if isinstance(platforms, list):
        Constants.LOCAL_PLATFORMS = [str(p) for p in platforms]


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Read the YAML config and apply it. Returns the raw mapping."""
    cfg = _load_yaml_config(path)
    if cfg:
        apply_config(cfg)
    return cfg
