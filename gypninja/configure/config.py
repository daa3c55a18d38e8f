# SPDX-License-Identifier: MIT
"""Generator configuration.

GeneratorOptions collects the settings the ninja generator reads from the
loader's ``params`` dictionary. calculate_variables() provides the default
build variables (``OS``, library naming, output directories) the loader
needs before it can resolve project files.

The generator itself never reads these variables: product names come from
the platform policies, which follow the same naming conventions.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from gypninja.core.subst import SpecialToken
from gypninja.toolchains.msvc import MsvsProbe

if TYPE_CHECKING:
    from gypninja.configure.platform import Platform

logger = logging.getLogger(__name__)

# Any of these in the environment asks for separate host and target tools
CROSS_COMPILE_VARIABLES = (
    "AR_host",
    "CC_host",
    "CXX_host",
    "LD_host",
    "AR_target",
    "CC_target",
    "CXX_target",
    "LD_target",
)

_PRODUCT_DIR = SpecialToken.PRODUCT_DIR.value

# Variables every project file may use. Directory variables resolve to
# special tokens that are expanded when build files are written.
DEFAULT_VARIABLES: dict[str, str] = {
    "EXECUTABLE_PREFIX": "",
    "EXECUTABLE_SUFFIX": "",
    "STATIC_LIB_PREFIX": "lib",
    "STATIC_LIB_SUFFIX": ".a",
    "SHARED_LIB_PREFIX": "lib",
    "INTERMEDIATE_DIR": SpecialToken.INTERMEDIATE_DIR.value,
    "SHARED_INTERMEDIATE_DIR": f"{_PRODUCT_DIR}/gen",
    "PRODUCT_DIR": _PRODUCT_DIR,
    "CONFIGURATION_NAME": SpecialToken.CONFIGURATION_NAME.value,
    "RULE_INPUT_ROOT": "${root}",
    "RULE_INPUT_DIRNAME": "${dirname}",
    "RULE_INPUT_PATH": "${source}",
    "RULE_INPUT_EXT": "${ext}",
    "RULE_INPUT_NAME": "${name}",
}


def cross_compile_requested(environ: Mapping[str, str] | None = None) -> bool:
    """True if host and target toolsets should get separate tools."""
    environ = environ if environ is not None else os.environ
    if environ.get("GYP_CROSSCOMPILE"):
        return True
    return any(environ.get(name) for name in CROSS_COMPILE_VARIABLES)


def calculate_variables(
    variables: dict[str, Any],
    platform: Platform,
    probe: MsvsProbe | None = None,
) -> dict[str, Any]:
    """Fill in the platform-dependent default variables.

    Existing entries are kept, except on windows where the naming
    variables are always replaced.

    Args:
        variables: Variables to update in place.
        platform: Platform build files are generated for.
        probe: Visual Studio probe; created from the environment when
            needed and not given.

    Returns:
        ``variables``.
    """
    if platform.is_macos:
        variables.setdefault("OS", "mac")
        variables.setdefault("SHARED_LIB_SUFFIX", ".dylib")
        variables.setdefault("SHARED_LIB_DIR", _PRODUCT_DIR)
        variables.setdefault("LIB_DIR", _PRODUCT_DIR)
    elif platform.is_windows:
        if probe is None:
            probe = MsvsProbe(os.environ)
        variables.setdefault("OS", "win")
        variables["EXECUTABLE_SUFFIX"] = platform.exe_suffix
        variables["STATIC_LIB_PREFIX"] = platform.static_lib_prefix
        variables["STATIC_LIB_SUFFIX"] = platform.static_lib_suffix
        variables["SHARED_LIB_PREFIX"] = platform.shared_lib_prefix
        variables["SHARED_LIB_SUFFIX"] = platform.shared_lib_suffix
        variables["MSVS_VERSION"] = probe.version()
        variables["MSVS_OS_BITS"] = probe.os_bits()
    else:
        variables.setdefault("OS", platform.os)
        variables.setdefault("SHARED_LIB_SUFFIX", platform.shared_lib_suffix)
        variables.setdefault("SHARED_LIB_DIR", f"{_PRODUCT_DIR}/lib")
        variables.setdefault("LIB_DIR", f"{_PRODUCT_DIR}/obj")
    return variables


def _option(options: Any, key: str, default: Any = None) -> Any:
    # options is a mapping when read from JSON, an object when built by a loader
    if options is None:
        return default
    if isinstance(options, Mapping):
        return options.get(key, default)
    return getattr(options, key, default)


@dataclass
class GeneratorOptions:
    """Settings of one generator run.

    Attributes:
        toplevel_dir: Top-level source directory; relative
            make_global_settings values are resolved against it.
        generator_output: Directory the output directory is placed in.
        output_dir: Name of the output directory (``out``).
        target_arch: Target architecture (used on windows).
        supports_multiple_toolsets: Write separate host tool variables.
        config: Only generate this configuration.
        jobs: Worker threads used to render per-target files.
        build_files: Build files the user asked for; their targets are
            built by default.
    """

    toplevel_dir: str = "."
    generator_output: str | None = None
    output_dir: str = "out"
    target_arch: str | None = None
    supports_multiple_toolsets: bool = False
    config: str | None = None
    jobs: int = 1
    build_files: list[str] = field(default_factory=list)

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        environ: Mapping[str, str] | None = None,
    ) -> GeneratorOptions:
        """Build options from a loader ``params`` dictionary.

        Recognised keys: ``options`` (``toplevel_dir``,
        ``generator_output``, ``config``, ``jobs`` and optionally
        ``generator_flags``), ``generator_flags`` (``output_dir``,
        ``config``), ``target_arch`` and ``build_files``.
        """
        options = params.get("options")
        flags: dict[str, Any] = dict(_option(options, "generator_flags") or {})
        flags.update(params.get("generator_flags") or {})

        target_arch = params.get("target_arch") or flags.get("target_arch")
        jobs = _option(options, "jobs") or flags.get("jobs") or 1

        result = cls(
            toplevel_dir=_option(options, "toplevel_dir") or ".",
            generator_output=_option(options, "generator_output"),
            output_dir=flags.get("output_dir") or "out",
            target_arch=target_arch,
            supports_multiple_toolsets=cross_compile_requested(environ),
            config=flags.get("config") or _option(options, "config"),
            jobs=max(1, int(jobs)),
            build_files=list(params.get("build_files") or ()),
        )
        logger.debug("Generator options: %s", result)
        return result
