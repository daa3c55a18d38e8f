# SPDX-License-Identifier: MIT
"""Platform policies (posix/gcc, darwin/llvm, windows/msvc)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from gypninja.toolchains.gcc import PosixPolicy
from gypninja.toolchains.llvm import DarwinPolicy, XcodeSettingsTranslator
from gypninja.toolchains.msvc import (
    MsvsProbe,
    MsvsSettingsTranslator,
    WindowsPolicy,
)

if TYPE_CHECKING:
    from gypninja.configure.platform import Platform
    from gypninja.tools.toolchain import FlagTranslator, PlatformPolicy


def get_policy(
    platform: Platform,
    target_arch: str | None = None,
    translator: FlagTranslator | None = None,
) -> PlatformPolicy:
    """Select the policy for a platform's flavor.

    Args:
        platform: Platform build files are generated for.
        target_arch: Target architecture (only used on windows).
        translator: Flag translator replacing the flavor's default.
    """
    flavor = platform.flavor
    if flavor == "windows":
        return WindowsPolicy(platform, translator, target_arch=target_arch)
    if flavor == "darwin":
        return DarwinPolicy(platform, translator)
    return PosixPolicy(platform, translator)


__all__ = [
    "DarwinPolicy",
    "MsvsProbe",
    "MsvsSettingsTranslator",
    "PosixPolicy",
    "WindowsPolicy",
    "XcodeSettingsTranslator",
    "get_policy",
]
