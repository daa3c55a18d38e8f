# SPDX-License-Identifier: MIT
"""MSVC platform policy (Windows only).

Besides the policy itself this module holds the MsvsSettingsTranslator,
which maps ``msvs_settings`` onto cl/link/ml switches, and the MsvsProbe,
which finds out which Visual Studio is installed.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from gypninja.tools.toolchain import (
    FlagTranslator,
    PlatformPolicy,
    ToolchainVariables,
    TranslatedFlags,
)

if TYPE_CHECKING:
    from ninja_syntax import Writer

    from gypninja.configure.platform import Platform
    from gypninja.core.target import Target

logger = logging.getLogger(__name__)

DEFAULT_TARGET_ARCH = "ia32"

# Architecture to MSVC machine type mapping
MSVC_ARCH_MAP: dict[str, str] = {
    "ia32": "X86",
    "x64": "X64",
    "x86": "X86",
    "arm64": "ARM64",
    # Common aliases
    "amd64": "X64",
    "x86_64": "X64",
    "i386": "X86",
    "i686": "X86",
    "aarch64": "ARM64",
}

# vswhere's installationVersion major -> Visual Studio product year
_VS_VERSIONS: dict[str, str] = {
    "17": "2022",
    "16": "2019",
    "15": "2017",
    "14": "2015",
}


def _find_vswhere() -> Path | None:
    program_files = os.environ.get("ProgramFiles(x86)", r"C:\Program Files (x86)")
    vswhere = (
        Path(program_files) / "Microsoft Visual Studio" / "Installer" / "vswhere.exe"
    )
    return vswhere if vswhere.exists() else None


def _find_msvs_version() -> str | None:
    vswhere = _find_vswhere()
    if vswhere is None:
        return None
    try:
        result = subprocess.run(
            [
                str(vswhere),
                "-latest",
                "-requires",
                "Microsoft.VisualStudio.Component.VC.Tools.x86.x64",
                "-property",
                "installationVersion",
            ],
            capture_output=True,
            text=True,
            timeout=30,
        )
        if result.returncode == 0 and result.stdout.strip():
            major = result.stdout.strip().split(".", 1)[0]
            return _VS_VERSIONS.get(major, major)
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug("vswhere failed: %s", e)
    return None


@dataclass
class MsvsProbe:
    """Late-bound Visual Studio discovery.

    Only consulted when generating for windows. Both values can be
    forced through the environment.

    Attributes:
        environ: Environment to read ``GYP_MSVS_VERSION`` and the
            processor architecture variables from.
    """

    environ: Mapping[str, str]

    def version(self) -> str:
        """Visual Studio version, e.g. ``"2022"``; ``"auto"`` if unknown."""
        forced = self.environ.get("GYP_MSVS_VERSION")
        if forced:
            return forced
        found = _find_msvs_version()
        if found is None:
            logger.debug("No Visual Studio installation found")
            return "auto"
        return found

    def os_bits(self) -> int:
        """Bitness of the operating system (not of this interpreter)."""
        arch = self.environ.get("PROCESSOR_ARCHITEW6432") or self.environ.get(
            "PROCESSOR_ARCHITECTURE", ""
        )
        return 64 if arch.upper() in ("AMD64", "ARM64", "IA64") else 32


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(v) for v in value]


# VCCLCompilerTool enumerations
_OPTIMIZATION = {"0": "/Od", "1": "/O1", "2": "/O2", "3": "/Ox"}
_RUNTIME_LIBRARY = {"0": "/MT", "1": "/MTd", "2": "/MD", "3": "/MDd"}
_EXCEPTION_HANDLING = {"1": "/EHsc", "2": "/EHa"}
_DEBUG_INFORMATION_FORMAT = {"1": "/Z7", "3": "/Zi", "4": "/ZI"}
# VCLinkerTool enumerations
_SUBSYSTEM = {"1": "/SUBSYSTEM:CONSOLE", "2": "/SUBSYSTEM:WINDOWS"}


class MsvsSettingsTranslator:
    """Translate ``msvs_settings`` into cl, link and ml flags.

    Supported tools and settings:
        VCCLCompilerTool: AdditionalOptions, Optimization, RuntimeLibrary,
            WarningLevel, WarnAsError, ExceptionHandling,
            DebugInformationFormat
        VCLinkerTool: AdditionalOptions, GenerateDebugInformation,
            SubSystem, AdditionalLibraryDirectories
        MASM: AdditionalOptions

    The target's plain ``cflags``/``ldflags`` lists are ignored; only the
    translated switches are used. A ``/MACHINE`` switch matching the
    target architecture is always added to the linker flags.
    """

    def __init__(self, target_arch: str | None = None) -> None:
        self.target_arch = target_arch or DEFAULT_TARGET_ARCH

    def translate(self, target: Target) -> TranslatedFlags:
        settings = target.msvs_settings
        flags = TranslatedFlags()

        compiler = settings.get("VCCLCompilerTool") or {}
        for key, table in (
            ("Optimization", _OPTIMIZATION),
            ("RuntimeLibrary", _RUNTIME_LIBRARY),
            ("ExceptionHandling", _EXCEPTION_HANDLING),
            ("DebugInformationFormat", _DEBUG_INFORMATION_FORMAT),
        ):
            value = compiler.get(key)
            if value is not None and str(value) in table:
                flags.cflags.append(table[str(value)])
        if "WarningLevel" in compiler:
            flags.cflags.append(f"/W{compiler['WarningLevel']}")
        if str(compiler.get("WarnAsError", "false")).lower() == "true":
            flags.cflags.append("/WX")
        flags.cflags.extend(_as_list(compiler.get("AdditionalOptions")))

        linker = settings.get("VCLinkerTool") or {}
        if str(linker.get("GenerateDebugInformation", "false")).lower() == "true":
            flags.ldflags.append("/DEBUG")
        subsystem = linker.get("SubSystem")
        if subsystem is not None and str(subsystem) in _SUBSYSTEM:
            flags.ldflags.append(_SUBSYSTEM[str(subsystem)])
        for libdir in _as_list(linker.get("AdditionalLibraryDirectories")):
            flags.ldflags.append(f"/LIBPATH:{libdir}")
        flags.ldflags.extend(_as_list(linker.get("AdditionalOptions")))

        machine = MSVC_ARCH_MAP.get(self.target_arch.lower(), self.target_arch.upper())
        flags.ldflags.append(f"/MACHINE:{machine}")

        masm = settings.get("MASM") or {}
        flags.asmflags.extend(_as_list(masm.get("AdditionalOptions")))

        return flags


def quote_windows_argument(arg: str) -> str:
    """Quote one argument for the MSVC command-line parser."""
    if not arg or re.search(r'[\s"]', arg):
        return '"' + arg.replace('"', '\\"') + '"'
    return arg


class WindowsPolicy(PlatformPolicy):
    """Policy for windows: cl, link, lib and ml run through cmd.exe."""

    include_prefix = "/I"
    define_prefix = "-D"

    def __init__(
        self,
        platform: Platform,
        translator: FlagTranslator | None = None,
        target_arch: str | None = None,
    ) -> None:
        self.target_arch = target_arch or DEFAULT_TARGET_ARCH
        super().__init__(
            "windows",
            platform,
            translator
            if translator is not None
            else MsvsSettingsTranslator(self.target_arch),
        )

    def source_rule(self, source: str) -> str | None:
        if source.endswith(".asm"):
            return "asm"
        return super().source_rule(source)

    def object_name(self, target_name: str, source_stem: str, rule: str) -> str:
        # foo.c and foo.asm would otherwise both produce foo.obj
        if rule == "asm":
            return f"{target_name}.{source_stem}_asm{self.object_suffix}"
        return super().object_name(target_name, source_stem, rule)

    def escape_define(self, define: str) -> str:
        """Escape ``#`` (cl treats it as a comment start) and quote."""
        define = define.replace("#", "\\0043")
        return quote_windows_argument(f"{self.define_prefix}{define}")

    def adjust_libraries(self, libraries: Sequence[str]) -> list[str]:
        """Turn ``-lfoo`` into ``foo.lib`` and DLLs into their import libraries."""
        adjusted: list[str] = []
        for lib in libraries:
            if lib.startswith("-l"):
                lib = lib[2:]
            if lib.endswith(".dll"):
                adjusted.append(f"{lib}.lib")
            elif lib.endswith(".lib") or lib.startswith("/"):
                adjusted.append(lib)
            else:
                adjusted.append(f"{lib}.lib")
        return adjusted

    def action_command(self, base: str, command: str) -> str:
        return f'cmd.exe /s /c "cd {base} & {command}"'

    def default_toolchain(self, target_arch: str | None = None) -> ToolchainVariables:
        arch = target_arch or self.target_arch
        extra = {
            "cl_ia32": "cl.exe",
            "cl_x64": "cl.exe",
            "ml_ia32": "ml.exe",
            "ml_x64": "ml64.exe",
            "mt": "mt.exe",
            "asm": f"$ml_{arch}",
            "python": quote_windows_argument(sys.executable),
        }
        return ToolchainVariables(
            cc=f"$cl_{arch}",
            cxx=f"$cl_{arch}",
            ld="link.exe",
            ar="lib.exe",
            extra=extra,
        )

    def write_rules(self, writer: Writer, use_cxx: bool) -> None:
        ld = "$ldxx" if use_cxx else "$ld"

        writer.rule(
            "cc",
            command=(
                "$cc /nologo /showIncludes /FC $defines $includes $cflags "
                "$cflags_c /c $in /Fo$out"
            ),
            description="CC $out",
            deps="msvc",
        )
        writer.rule(
            "cxx",
            command=(
                "$cxx /nologo /showIncludes /FC $defines $includes $cflags "
                "$cflags_cc /c $in /Fo$out"
            ),
            description="CXX $out",
            deps="msvc",
        )
        writer.rule(
            "asm",
            command="$asm /nologo $asmflags $defines $includes /c /Fo$out $in",
            description="ASM $out",
        )
        writer.rule(
            "alink",
            command="$ar /nologo /ignore:4221 /OUT:$out $in",
            description="LIB $out",
        )
        writer.rule(
            "solink",
            command=f"{ld} /nologo /DLL $ldflags /OUT:$out /IMPLIB:$out.lib $in $libs",
            description="SOLINK $out",
            pool="link_pool",
        )
        writer.rule(
            "link",
            command=f"{ld} /nologo $ldflags /OUT:$out $in $libs",
            description="LINK $out",
            pool="link_pool",
        )
        writer.rule(
            "copy",
            command="$python -m gypninja.util.commands copy $in $out",
            description="COPY $out",
        )
