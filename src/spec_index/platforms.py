"""Platform compatibility for index tuples."""
from __future__ import annotations

import platform as _platform
import sys
from typing import Callable, Iterable, List, Optional

from constants import Constants

PlatformPredicate = Callable[[Optional[str]], bool]

_OS_NAMES = {
    "darwin": "darwin",
    "win32": "mingw32",
    "cygwin": "cygwin",
}


def local_platform() -> str:
    """Return the running interpreter's ``<cpu>-<os>`` string, e.g. ``x86_64-linux``."""
    cpu = (_platform.machine() or "unknown").lower()
    if cpu == "amd64":
        cpu = "x86_64"
    elif cpu == "aarch64" and sys.platform == "darwin":
        cpu = "arm64"
    os_name = _OS_NAMES.get(sys.platform)
    if os_name is None:
        os_name = "linux" if sys.platform.startswith("linux") else sys.platform
    return f"{cpu}-{os_name}"


def is_generic(platform: Optional[str]) -> bool:
    return platform is None or platform in Constants.GENERIC_PLATFORMS


def local_platforms() -> List[str]:
    if Constants.LOCAL_PLATFORMS is not None:
        return list(Constants.LOCAL_PLATFORMS)
    return [local_platform()]


def make_platform_match(platforms: Optional[Iterable[str]] = None) -> PlatformPredicate:
    """Build a predicate accepting the generic platform and ``platforms``.

    When ``platforms`` is None the configured local platforms are used.
    """
    allowed = set(local_platforms() if platforms is None else platforms)

    def platform_match(platform: Optional[str]) -> bool:
        return is_generic(platform) or platform in allowed

    return platform_match
