# SPDX-License-Identifier: MIT
"""LLVM/clang platform policy for macOS.

Targets on macOS describe their flags through ``xcode_settings``. The
XcodeSettingsTranslator maps the commonly used settings onto clang
switches; the target's plain ``cflags``/``ldflags`` lists are not used.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from gypninja.toolchains.gcc import PosixPolicy
from gypninja.tools.toolchain import (
    FlagTranslator,
    ToolchainVariables,
    TranslatedFlags,
)

if TYPE_CHECKING:
    from gypninja.configure.platform import Platform
    from gypninja.core.target import Target

logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(v) for v in value]


def _is_yes(value: Any) -> bool:
    return str(value).upper() in ("YES", "TRUE", "1")


def _is_no(value: Any) -> bool:
    return str(value).upper() in ("NO", "FALSE", "0")


class XcodeSettingsTranslator:
    """Translate ``xcode_settings`` into clang flags.

    Supported settings:
        ARCHS, GCC_OPTIMIZATION_LEVEL, GCC_GENERATE_DEBUGGING_SYMBOLS,
        GCC_C_LANGUAGE_STANDARD, CLANG_CXX_LANGUAGE_STANDARD,
        CLANG_CXX_LIBRARY, GCC_ENABLE_CPP_EXCEPTIONS, GCC_ENABLE_CPP_RTTI,
        GCC_SYMBOLS_PRIVATE_EXTERN, GCC_TREAT_WARNINGS_AS_ERRORS,
        MACOSX_DEPLOYMENT_TARGET, WARNING_CFLAGS, OTHER_CFLAGS,
        OTHER_CPLUSPLUSFLAGS, OTHER_LDFLAGS
    """

    def translate(self, target: Target) -> TranslatedFlags:
        settings = target.xcode_settings
        flags = TranslatedFlags()
        if not settings:
            return flags

        for arch in _as_list(settings.get("ARCHS")):
            flags.cflags.extend(["-arch", arch])
            flags.ldflags.extend(["-arch", arch])

        if "GCC_OPTIMIZATION_LEVEL" in settings:
            flags.cflags.append(f"-O{settings['GCC_OPTIMIZATION_LEVEL']}")
        if _is_yes(settings.get("GCC_GENERATE_DEBUGGING_SYMBOLS", "NO")):
            flags.cflags.append("-g")
        if _is_yes(settings.get("GCC_SYMBOLS_PRIVATE_EXTERN", "NO")):
            flags.cflags.append("-fvisibility=hidden")
        if _is_yes(settings.get("GCC_TREAT_WARNINGS_AS_ERRORS", "NO")):
            flags.cflags.append("-Werror")

        deployment_target = settings.get("MACOSX_DEPLOYMENT_TARGET")
        if deployment_target:
            flags.cflags.append(f"-mmacosx-version-min={deployment_target}")
            flags.ldflags.append(f"-mmacosx-version-min={deployment_target}")

        flags.cflags.extend(_as_list(settings.get("WARNING_CFLAGS")))
        flags.cflags.extend(_as_list(settings.get("OTHER_CFLAGS")))

        c_std = settings.get("GCC_C_LANGUAGE_STANDARD")
        if c_std:
            flags.cflags_c.append(f"-std={c_std}")

        cxx_std = settings.get("CLANG_CXX_LANGUAGE_STANDARD")
        if cxx_std:
            flags.cflags_cc.append(f"-std={cxx_std}")
        cxx_lib = settings.get("CLANG_CXX_LIBRARY")
        if cxx_lib:
            flags.cflags_cc.append(f"-stdlib={cxx_lib}")
            flags.ldflags.append(f"-stdlib={cxx_lib}")
        if _is_no(settings.get("GCC_ENABLE_CPP_EXCEPTIONS", "YES")):
            flags.cflags_cc.append("-fno-exceptions")
        if _is_no(settings.get("GCC_ENABLE_CPP_RTTI", "YES")):
            flags.cflags_cc.append("-fno-rtti")
        flags.cflags_cc.extend(_as_list(settings.get("OTHER_CPLUSPLUSFLAGS")))

        flags.ldflags.extend(_as_list(settings.get("OTHER_LDFLAGS")))

        logger.debug("xcode_settings of %s: %s", target.label, flags)
        return flags


class DarwinPolicy(PosixPolicy):
    """Policy for macOS: clang, dylibs and frameworks."""

    def __init__(
        self,
        platform: Platform,
        translator: FlagTranslator | None = None,
    ) -> None:
        super().__init__(
            platform,
            translator if translator is not None else XcodeSettingsTranslator(),
            name="darwin",
        )

    def default_toolchain(self, target_arch: str | None = None) -> ToolchainVariables:
        return ToolchainVariables(cc="clang", cxx="clang++", ar="ar")

    def translate_flags(self, target: Target) -> TranslatedFlags:
        # Without xcode_settings a target gets no compiler flags at all
        if not target.xcode_settings:
            return TranslatedFlags()
        return super().translate_flags(target)

    def adjust_libraries(self, libraries: Sequence[str]) -> list[str]:
        """Also turn ``Foo.framework`` paths into ``-framework Foo``."""
        adjusted: list[str] = []
        for lib in libraries:
            if lib.endswith(".framework"):
                name = lib.rsplit("/", 1)[-1][: -len(".framework")]
                adjusted.append(f"-framework {name}")
            else:
                adjusted.extend(super().adjust_libraries([lib]))
        return adjusted

    def link_command(self, ld: str) -> str:
        return f"{ld} $ldflags -o $out $in $libs"

    def solink_command(self, ld: str) -> str:
        return f"{ld} -dynamiclib $ldflags -o $out $in $libs"
