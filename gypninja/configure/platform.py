# SPDX-License-Identifier: MIT
"""Platform detection.

The Platform describes the host the generated build files are meant for:
its flavor (posix, darwin or windows), the file naming conventions of its
native toolchain, and the value of the ``OS`` build variable.
"""

from __future__ import annotations

import platform as _platform
import sys
from dataclasses import dataclass
from typing import Literal

Flavor = Literal["posix", "darwin", "windows"]


@dataclass(frozen=True)
class Platform:
    """Description of a build platform.

    Attributes:
        system: Platform identifier in ``sys.platform`` form
            (``"linux"``, ``"darwin"``, ``"win32"``, ``"freebsd13"`` ...).
        arch: Machine architecture (``"x86_64"``, ``"arm64"`` ...).
    """

    system: str
    arch: str = ""

    @property
    def flavor(self) -> Flavor:
        """The platform family that drives generator behavior."""
        if self.is_windows:
            return "windows"
        if self.is_macos:
            return "darwin"
        return "posix"

    @property
    def is_windows(self) -> bool:
        return self.system in ("win32", "cygwin") or self.system.startswith("win")

    @property
    def is_macos(self) -> bool:
        return self.system == "darwin"

    @property
    def is_linux(self) -> bool:
        return self.system.startswith("linux")

    @property
    def is_bsd(self) -> bool:
        return "bsd" in self.system

    @property
    def is_posix(self) -> bool:
        return not self.is_windows

    @property
    def os(self) -> str:
        """Value of the ``OS`` build variable."""
        if self.is_windows:
            return "win"
        if self.is_macos:
            return "mac"
        if self.system.startswith("sunos"):
            return "solaris"
        if self.is_linux:
            return "linux"
        if self.is_bsd:
            # freebsd13 -> freebsd
            return self.system.rstrip("0123456789")
        return self.system

    @property
    def exe_suffix(self) -> str:
        return ".exe" if self.is_windows else ""

    @property
    def object_suffix(self) -> str:
        return ".obj" if self.is_windows else ".o"

    @property
    def static_lib_prefix(self) -> str:
        return "" if self.is_windows else "lib"

    @property
    def static_lib_suffix(self) -> str:
        return ".lib" if self.is_windows else ".a"

    @property
    def shared_lib_prefix(self) -> str:
        return "" if self.is_windows else "lib"

    @property
    def shared_lib_suffix(self) -> str:
        if self.is_windows:
            return ".dll"
        if self.is_macos:
            return ".dylib"
        return ".so"

    @property
    def ninja_executable(self) -> str:
        return "ninja.exe" if self.is_windows else "ninja"


def get_platform(system: str | None = None, arch: str | None = None) -> Platform:
    """Return the Platform for ``system`` (default: the running interpreter)."""
    return Platform(
        system=system if system is not None else sys.platform,
        arch=arch if arch is not None else _platform.machine(),
    )
