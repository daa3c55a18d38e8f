# SPDX-License-Identifier: MIT
"""Platform policy protocol and base implementation.

A PlatformPolicy bundles everything the generator needs to know about one
platform family: artifact naming, the default compiler/linker/archiver,
translation of platform settings into flags, escaping of defines,
adjustment of library names, the shape of action commands and the generic
ninja rule templates. Switching policies switches all of these atomically.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ninja_syntax import Writer

    from gypninja.configure.platform import Platform
    from gypninja.core.target import Target

logger = logging.getLogger(__name__)

C_EXTENSIONS: frozenset[str] = frozenset([".c"])
CXX_EXTENSIONS: frozenset[str] = frozenset([".cc", ".cpp", ".cxx"])
ASM_EXTENSIONS: frozenset[str] = frozenset([".s", ".S", ".asm"])
COMPILABLE_EXTENSIONS: frozenset[str] = C_EXTENSIONS | CXX_EXTENSIONS | ASM_EXTENSIONS

# Keys of make_global_settings, per toolset
GLOBAL_SETTING_KEYS: dict[str, dict[str, str]] = {
    "target": {"CC": "cc", "CXX": "cxx", "LD": "ld", "AR": "ar"},
    "host": {"CC.host": "cc", "CXX.host": "cxx", "LD.host": "ld", "AR.host": "ar"},
}


@dataclass
class ToolchainVariables:
    """Resolved tool commands for one toolset.

    Attributes:
        cc: C compiler.
        cxx: C++ compiler.
        ld: Linker used when no C++ was compiled.
        ldxx: Linker used when C++ was compiled.
        ar: Archiver.
        extra: Additional platform variables, written before the tools
            (e.g. the architecture-specific compilers on windows).
    """

    cc: str
    cxx: str
    ld: str | None = None
    ldxx: str | None = None
    ar: str = "ar"
    extra: dict[str, str] = field(default_factory=dict)

    def items(self, suffix: str = "") -> list[tuple[str, str]]:
        """(name, value) pairs in the order they are declared."""
        return [
            (f"cc{suffix}", self.cc),
            (f"cxx{suffix}", self.cxx),
            (f"ld{suffix}", self.ld or self.cc),
            (f"ldxx{suffix}", self.ldxx or self.cxx),
            (f"ar{suffix}", self.ar),
        ]


@dataclass
class TranslatedFlags:
    """Flags derived from platform settings dictionaries."""

    cflags: list[str] = field(default_factory=list)
    cflags_c: list[str] = field(default_factory=list)
    cflags_cc: list[str] = field(default_factory=list)
    ldflags: list[str] = field(default_factory=list)
    asmflags: list[str] = field(default_factory=list)


@runtime_checkable
class FlagTranslator(Protocol):
    """Protocol for platform flag translation.

    A translator turns a target's platform settings (``xcode_settings``,
    ``msvs_settings``) into compiler and linker flags.
    """

    def translate(self, target: Target) -> TranslatedFlags:
        """Return the flags for ``target``."""
        ...


class PlatformPolicy(ABC):
    """Abstract base class for platform policies.

    Subclasses provide the toolchain defaults and the rule templates;
    everything else has a posix-flavored default here.
    """

    include_prefix = "-I"
    define_prefix = "-D"

    # Dependency outputs passed to the linker through $libs
    SHARED_LIBRARY_SUFFIXES: tuple[str, ...] = (".dll", ".dylib", ".so")

    def __init__(
        self,
        name: str,
        platform: Platform,
        translator: FlagTranslator | None = None,
    ) -> None:
        """Initialize a policy.

        Args:
            name: Policy name.
            platform: The platform build files are generated for.
            translator: Flag translator; None means targets' own flag
                lists are used.
        """
        self._name = name
        self.platform = platform
        self.translator = translator

    @property
    def name(self) -> str:
        return self._name

    @property
    def windows(self) -> bool:
        return self.platform.is_windows

    @property
    def object_suffix(self) -> str:
        return self.platform.object_suffix

    # =========================================================================
    # Naming
    # =========================================================================

    def product_affixes(self, target_type: str) -> tuple[str, str]:
        """Default (prefix, suffix) of a target type's primary artifact."""
        platform = self.platform
        if target_type == "static_library":
            return platform.static_lib_prefix, platform.static_lib_suffix
        if target_type in ("shared_library", "loadable_module"):
            return platform.shared_lib_prefix, platform.shared_lib_suffix
        if target_type == "executable":
            return "", platform.exe_suffix
        return "", ""

    def source_rule(self, source: str) -> str | None:
        """Rule compiling ``source``, or None if it is not compilable."""
        ext = os.path.splitext(source)[1]
        if ext not in COMPILABLE_EXTENSIONS:
            return None
        if ext in CXX_EXTENSIONS:
            return "cxx"
        return "cc"

    def object_name(self, target_name: str, source_stem: str, rule: str) -> str:
        """Object file name for a source compiled by ``rule``."""
        return f"{target_name}.{source_stem}{self.object_suffix}"

    # =========================================================================
    # Flags
    # =========================================================================

    def translate_flags(self, target: Target) -> TranslatedFlags:
        """Flags for ``target``.

        Without a translator the target's own flag lists are used.
        """
        if self.translator is None:
            return TranslatedFlags(
                cflags=list(target.cflags),
                cflags_c=list(target.cflags_c),
                cflags_cc=list(target.cflags_cc),
                ldflags=list(target.ldflags),
            )
        return self.translator.translate(target)

    def escape_define(self, define: str) -> str:
        """Turn a define into a compiler switch."""
        flag = f"{self.define_prefix}{define}"
        if '"' in flag:
            return f"'{flag}'"
        return flag

    def adjust_libraries(self, libraries: Sequence[str]) -> list[str]:
        """Turn library references into linker arguments."""
        return list(libraries)

    def is_shared_library(self, path: str) -> bool:
        return path.endswith(self.SHARED_LIBRARY_SUFFIXES)

    # =========================================================================
    # Actions
    # =========================================================================

    def action_command(self, base: str, command: str) -> str:
        """Run ``command`` from directory ``base``."""
        return f"cd {base} && {command}"

    # =========================================================================
    # Toolchain
    # =========================================================================

    @abstractmethod
    def default_toolchain(self, target_arch: str | None = None) -> ToolchainVariables:
        """Platform default tools.

        Args:
            target_arch: Requested target architecture, if any.
        """
        ...

    @abstractmethod
    def write_rules(self, writer: Writer, use_cxx: bool) -> None:
        """Write the generic rule templates.

        Args:
            writer: Writer of the master build file.
            use_cxx: True if any target compiled C++.
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.platform.system!r})"


def make_global_value(value: str, top_dir: str) -> str:
    """Resolve a make_global_settings value against the top-level directory."""
    if os.path.isabs(value):
        return value
    return os.path.normpath(os.path.join(top_dir, value))


def _global_overrides(
    settings: Iterable[tuple[str, str]], toolset: str, top_dir: str
) -> dict[str, str]:
    keys = GLOBAL_SETTING_KEYS[toolset]
    overrides: dict[str, str] = {}
    for key, value in settings:
        if key in keys:
            overrides[keys[key]] = make_global_value(value, top_dir)
    return overrides


def resolve_toolchain(
    policy: PlatformPolicy,
    *,
    make_global_settings: Iterable[tuple[str, str]] = (),
    environ: Mapping[str, str] | None = None,
    top_dir: str = ".",
    target_arch: str | None = None,
) -> ToolchainVariables:
    """Resolve the target toolset's tools.

    Precedence (highest to lowest):
        1. Environment: CC_target / CC, CXX_target / CXX, AR_target / AR
        2. make_global_settings: CC, CXX, LD, AR
        3. Platform defaults

    The linker defaults to the C compiler, the C++ linker to the C++
    compiler, unless LD is given.
    """
    environ = environ if environ is not None else os.environ
    tools = policy.default_toolchain(target_arch)
    overrides = _global_overrides(make_global_settings, "target", top_dir)

    cc = overrides.get("cc", tools.cc)
    cxx = overrides.get("cxx", tools.cxx)
    ld = overrides.get("ld", tools.ld)
    ar = overrides.get("ar", tools.ar)

    cc = environ.get("CC_target") or environ.get("CC") or cc
    cxx = environ.get("CXX_target") or environ.get("CXX") or cxx
    ar = environ.get("AR_target") or environ.get("AR") or ar

    resolved = ToolchainVariables(
        cc=cc,
        cxx=cxx,
        ld=ld or cc,
        ldxx=ld or cxx,
        ar=ar,
        extra=dict(tools.extra),
    )
    logger.debug("Target toolchain: %s", resolved)
    return resolved


def resolve_host_toolchain(
    target: ToolchainVariables,
    *,
    make_global_settings: Iterable[tuple[str, str]] = (),
    environ: Mapping[str, str] | None = None,
    top_dir: str = ".",
) -> ToolchainVariables:
    """Resolve the host toolset's tools, starting from the target's.

    Precedence (highest to lowest):
        1. Environment: CC_host (also the linker), CXX_host, AR_host
        2. make_global_settings: CC.host, CXX.host, LD.host, AR.host
        3. The resolved target tools
    """
    environ = environ if environ is not None else os.environ
    overrides = _global_overrides(make_global_settings, "host", top_dir)

    cc = environ.get("CC_host") or overrides.get("cc", target.cc)
    cxx = environ.get("CXX_host") or overrides.get("cxx", target.cxx)
    ld = environ.get("CC_host") or overrides.get("ld") or target.ld
    ldxx = environ.get("CXX_host") or overrides.get("ld") or target.ldxx
    ar = environ.get("AR_host") or overrides.get("ar", target.ar)

    resolved = ToolchainVariables(cc=cc, cxx=cxx, ld=ld, ldxx=ldxx, ar=ar)
    logger.debug("Host toolchain: %s", resolved)
    return resolved
