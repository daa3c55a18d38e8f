# SPDX-License-Identifier: MIT
"""Read-only views over resolved target dictionaries.

A target dictionary arrives fully resolved from the project-file loader,
keyed by a qualified name of the form ``path/to/file.gyp:name#toolset``.
The classes here give typed access to one configuration of such a target.
They are built once per configuration and never modified afterwards.
"""

from __future__ import annotations

import posixpath
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from gypninja.core.errors import ConfigurationError, UnknownTargetTypeError

# Valid target types
TargetType = Literal[
    "static_library",
    "shared_library",
    "loadable_module",
    "executable",
    "none",
]

TARGET_TYPES: frozenset[str] = frozenset(
    ["static_library", "shared_library", "loadable_module", "executable", "none"]
)

# Keys that describe the target as a whole rather than a configuration
_NON_CONFIGURATION_KEYS = ("configurations", "default_configuration")


def parse_qualified_target(target: str) -> tuple[str | None, str, str | None]:
    """Split a qualified target name into its parts.

    Args:
        target: Name such as ``"src/foo.gyp:foo#host"``.

    Returns:
        Tuple of (build_file, name, toolset); missing parts are None.
    """
    build_file: str | None = None
    toolset: str | None = None

    if "#" in target:
        target, toolset = target.rsplit("#", 1)
    if ":" in target:
        build_file, target = target.rsplit(":", 1)

    return build_file, target, toolset


def build_file_of(target: str) -> str | None:
    """Return the build file a qualified target was declared in."""
    return parse_qualified_target(target)[0]


@dataclass(frozen=True)
class Action:
    """A custom build step.

    Attributes:
        action_name: Display name, used to derive the rule name.
        inputs: Files the step reads.
        outputs: Files the step produces.
        action: Command tokens.
        message: Human-readable description shown while the step runs.
    """

    action_name: str
    inputs: tuple[str, ...] = ()
    outputs: tuple[str, ...] = ()
    action: tuple[str, ...] = ()
    message: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Action:
        if "action_name" not in data:
            raise ConfigurationError(f"action without action_name: {dict(data)!r}")
        return cls(
            action_name=str(data["action_name"]),
            inputs=tuple(data.get("inputs", ())),
            outputs=tuple(data.get("outputs", ())),
            action=tuple(data.get("action", ())),
            message=data.get("message"),
        )


@dataclass(frozen=True)
class Copy:
    """A file staging step: every file is copied into ``destination``."""

    destination: str
    files: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Copy:
        if "destination" not in data:
            raise ConfigurationError(f"copy without destination: {dict(data)!r}")
        return cls(
            destination=str(data["destination"]),
            files=tuple(data.get("files", ())),
        )


@dataclass(frozen=True)
class Target:
    """One configuration of a build target.

    Attributes:
        qualified_name: Full identifier (``file.gyp:name#toolset``).
        name: Target name.
        toolset: ``"target"`` or ``"host"``.
        build_file: Path of the file that declared the target.
        type: Target type.
        sources: Source files, relative to the declaring directory.
        dependencies: Qualified names of direct dependencies.
        actions: Custom build steps.
        copies: File staging steps.
        make_global_settings: Toolchain overrides as (key, value) pairs.
        xcode_settings: Settings consumed by the darwin flag translator.
        msvs_settings: Settings consumed by the windows flag translator.
    """

    qualified_name: str
    name: str
    toolset: str = "target"
    build_file: str = ""
    type: TargetType = "none"
    sources: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = ()
    actions: tuple[Action, ...] = ()
    copies: tuple[Copy, ...] = ()
    cflags: tuple[str, ...] = ()
    cflags_c: tuple[str, ...] = ()
    cflags_cc: tuple[str, ...] = ()
    ldflags: tuple[str, ...] = ()
    defines: tuple[str, ...] = ()
    include_dirs: tuple[str, ...] = ()
    libraries: tuple[str, ...] = ()
    product_name: str | None = None
    product_prefix: str | None = None
    product_extension: str | None = None
    make_global_settings: tuple[tuple[str, str], ...] = ()
    xcode_settings: Mapping[str, Any] = field(default_factory=dict)
    msvs_settings: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(
        cls,
        qualified_name: str,
        target_dict: Mapping[str, Any],
        config: str | None = None,
    ) -> Target:
        """Build the view of one configuration of a target dictionary.

        The configuration's keys override the target's top-level keys.

        Args:
            qualified_name: Qualified target name.
            target_dict: Resolved target dictionary.
            config: Configuration name, or None to use the top-level keys only.

        Raises:
            ConfigurationError: If the configuration does not exist.
            UnknownTargetTypeError: If the target type is not recognised.
        """
        build_file, name, toolset = parse_qualified_target(qualified_name)
        toolset = toolset or target_dict.get("toolset") or "target"
        location = f"{name}#{toolset}"

        merged = {
            key: value
            for key, value in target_dict.items()
            if key not in _NON_CONFIGURATION_KEYS
        }
        if config is not None:
            configurations = target_dict.get("configurations")
            if configurations is not None:
                if config not in configurations:
                    raise ConfigurationError(
                        f"no configuration named {config!r}", location
                    )
                merged.update(configurations[config] or {})

        target_type = merged.get("type")
        if target_type not in TARGET_TYPES:
            raise UnknownTargetTypeError(str(target_type), location)

        return cls(
            qualified_name=qualified_name,
            name=name,
            toolset=toolset,
            build_file=build_file or "",
            type=target_type,
            sources=_strings(merged.get("sources")),
            dependencies=_strings(merged.get("dependencies")),
            actions=tuple(Action.from_dict(a) for a in merged.get("actions") or ()),
            copies=tuple(Copy.from_dict(c) for c in merged.get("copies") or ()),
            cflags=_strings(merged.get("cflags")),
            cflags_c=_strings(merged.get("cflags_c")),
            cflags_cc=_strings(merged.get("cflags_cc")),
            ldflags=_strings(merged.get("ldflags")),
            defines=_strings(merged.get("defines")),
            include_dirs=_strings(merged.get("include_dirs")),
            libraries=_strings(merged.get("libraries")),
            product_name=merged.get("product_name"),
            product_prefix=merged.get("product_prefix"),
            product_extension=merged.get("product_extension"),
            make_global_settings=tuple(
                (str(key), str(value))
                for key, value in merged.get("make_global_settings") or ()
            ),
            xcode_settings=dict(merged.get("xcode_settings") or {}),
            msvs_settings=dict(merged.get("msvs_settings") or {}),
        )

    @property
    def label(self) -> str:
        """Short description used in log and error messages."""
        return f"{self.name}#{self.toolset}"

    @property
    def src_dir(self) -> str:
        """Directory the target's relative paths are resolved against."""
        return posixpath.dirname(self.build_file.replace("\\", "/"))


def _strings(values: Sequence[Any] | None) -> tuple[str, ...]:
    if not values:
        return ()
    return tuple(str(v) for v in values)
