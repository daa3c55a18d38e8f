# SPDX-License-Identifier: MIT
"""GCC (generic posix) platform policy.

Provides the rule templates for gcc-compatible compilers on posix systems:
- cc / cxx: compile with gcc-style depfiles
- alink: archive objects with ar
- solink / link: link through the compiler driver
- copy: hard link, falling back to a copy
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import TYPE_CHECKING

from gypninja.tools.toolchain import (
    FlagTranslator,
    PlatformPolicy,
    ToolchainVariables,
)

if TYPE_CHECKING:
    from ninja_syntax import Writer

    from gypninja.configure.platform import Platform

# A library given by short name ("m", "pthread") rather than by path or flag
_SHORT_NAME = re.compile(r"^[A-Za-z0-9_+]+$")


class PosixPolicy(PlatformPolicy):
    """Policy for linux, solaris, the BSDs and other posix systems.

    The BSDs default to clang, everything else to gcc.
    """

    def __init__(
        self,
        platform: Platform,
        translator: FlagTranslator | None = None,
        name: str = "posix",
    ) -> None:
        super().__init__(name, platform, translator)

    def default_toolchain(self, target_arch: str | None = None) -> ToolchainVariables:
        if self.platform.is_bsd:
            return ToolchainVariables(cc="clang", cxx="clang++", ar="ar")
        return ToolchainVariables(cc="gcc", cxx="g++", ar="ar")

    def adjust_libraries(self, libraries: Sequence[str]) -> list[str]:
        """Turn short library names into ``-l`` switches."""
        return [
            f"-l{lib}" if _SHORT_NAME.match(lib) else lib for lib in libraries
        ]

    # =========================================================================
    # Rules
    # =========================================================================

    def link_command(self, ld: str) -> str:
        return f"{ld} $ldflags -o $out -Wl,--start-group $in -Wl,--end-group $libs"

    def solink_command(self, ld: str) -> str:
        return (
            f"{ld} -shared $ldflags -o $out "
            "-Wl,--start-group $in -Wl,--end-group $libs"
        )

    def write_rules(self, writer: Writer, use_cxx: bool) -> None:
        ld = "$ldxx" if use_cxx else "$ld"

        writer.rule(
            "cc",
            command=(
                "$cc -MMD -MF $out.d $defines $includes $cflags $cflags_c "
                "-c $in -o $out"
            ),
            description="CC $out",
            depfile="$out.d",
            deps="gcc",
        )
        writer.rule(
            "cxx",
            command=(
                "$cxx -MMD -MF $out.d $defines $includes $cflags $cflags_cc "
                "-c $in -o $out"
            ),
            description="CXX $out",
            depfile="$out.d",
            deps="gcc",
        )
        writer.rule(
            "alink",
            command="rm -f $out && $ar rcs $out $in",
            description="AR $out",
        )
        writer.rule(
            "solink",
            command=self.solink_command(ld),
            description="SOLINK $out",
            pool="link_pool",
        )
        writer.rule(
            "link",
            command=self.link_command(ld),
            description="LINK $out",
            pool="link_pool",
        )
        writer.rule(
            "copy",
            command="ln -f $in $out 2>/dev/null || (rm -rf $out && cp -af $in $out)",
            description="COPY $out",
        )
