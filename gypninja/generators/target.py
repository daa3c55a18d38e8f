# SPDX-License-Identifier: MIT
"""Per-target ninja file generation.

A TargetCompiler turns one target of one configuration into a ninja file
placed at ``<config_dir>/obj[.<toolset>]/<postfix>/<name>.ninja``. Within
the file statements come in a fixed order: variables, actions, copies,
objects and finally the link (or archive) step.

Compilers know about each other through a shared mapping of qualified
target names, which is how ``deps()`` reaches the outputs of dependencies.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from ninja_syntax import escape

from gypninja.core.errors import DependencyCycleError, MissingTargetError
from gypninja.core.subst import Expander, PathOps

if TYPE_CHECKING:
    from gypninja.core.target import Target
    from gypninja.generators.writer import NinjaFile
    from gypninja.tools.toolchain import PlatformPolicy

logger = logging.getLogger(__name__)

# Rule run for the primary artifact of each linkable target type
RESULT_RULES: dict[str, str] = {
    "static_library": "alink",
    "shared_library": "solink",
    "loadable_module": "solink",
    "executable": "link",
}

# Archives only take objects; everything else also takes libraries
_ARCHIVE_INPUT = re.compile(r"\.(o|obj)$")
_LINK_INPUT = re.compile(r"\.(o|a|obj|lib)$")


class TargetCompiler:
    """Generates the ninja file of one (target, toolset) pair.

    Example:
        compilers: dict[str, TargetCompiler] = {}
        for index, name in enumerate(target_list):
            compilers[name] = TargetCompiler(
                index, targets[name], compilers, "Default",
                config_dir="out/Default", top_dir=".", policy=policy,
            )
        compilers[name].generate(ninja_file)

    Attributes:
        index: Position of the target in the target list; makes action
            rule names unique.
        target: The target's view in the active configuration.
        config_name: Active configuration name.
        config_dir: Output directory of the configuration.
        top_dir: Top-level source directory.
        policy: Platform policy.
        expander: Special token expansion for this target.
        obj_dir: Directory receiving the target's objects and ninja file.
        filename: Path of the target's ninja file.
        use_cxx: True once a C++ source has been compiled.
    """

    def __init__(
        self,
        index: int,
        target: Target,
        compilers: Mapping[str, TargetCompiler],
        config_name: str,
        config_dir: str,
        top_dir: str,
        policy: PlatformPolicy,
    ) -> None:
        self.index = index
        self.target = target
        self.config_name = config_name
        self.config_dir = config_dir
        self.top_dir = top_dir
        self.policy = policy
        self._compilers = compilers

        src_dir = target.src_dir or "."
        postfix = PathOps(policy.windows).relative(top_dir, src_dir)
        self.expander = Expander(
            config_name,
            src_dir,
            config_dir,
            postfix,
            windows=policy.windows,
        )

        obj = "obj" if target.toolset == "target" else f"obj.{target.toolset}"
        self.obj_dir = self.paths.join(config_dir, obj, postfix)
        self.filename = self.paths.join(self.obj_dir, target.name) + ".ninja"

        self.use_cxx = False
        self._output: list[str] | None = None

    @property
    def paths(self) -> PathOps:
        return self.expander.paths

    @property
    def src_dir(self) -> str:
        return self.expander.src_dir

    @property
    def location(self) -> str:
        return f"{self.target.label} [{self.config_name}]"

    # =========================================================================
    # Outputs
    # =========================================================================

    def primary_output(self) -> str | None:
        """The artifact built by the link step; None for ``none`` targets."""
        target = self.target
        if target.type == "none":
            return None

        prefix, suffix = self.policy.product_affixes(target.type)
        name = target.name
        if target.product_prefix is not None:
            prefix = target.product_prefix
        if target.product_extension:
            suffix = f".{target.product_extension}"
        if target.product_name is not None:
            name = target.product_name

        out = name + suffix
        # "lib" + "libfoo.a" would give "liblibfoo.a"
        if prefix == "lib" and out.startswith("lib"):
            out = out[3:]
        return prefix + out

    def action_outputs(self) -> list[str]:
        outputs: list[str] = []
        for action in self.target.actions:
            outputs.extend(self.expander.src_path(o) for o in action.outputs)
        return outputs

    def copy_outputs(self) -> list[str]:
        outputs: list[str] = []
        for copy in self.target.copies:
            out_dir = self.expander.src_path(copy.destination)
            outputs.extend(
                self.paths.join(out_dir, self.paths.basename(f)) for f in copy.files
            )
        return outputs

    def output(self, _resolving: Sequence[str] = ()) -> list[str]:
        """Everything this target produces, as seen by its dependents.

        The primary artifact comes first, then action outputs and copy
        outputs. A target producing nothing (a pure aggregator) stands for
        the outputs of its dependencies instead.

        Raises:
            DependencyCycleError: If resolving aggregators leads back here.
            MissingTargetError: If a dependency is not known.
        """
        if self._output is not None:
            return list(self._output)

        name = self.target.qualified_name
        if name in _resolving:
            cycle = list(_resolving[_resolving.index(name) :]) + [name]
            raise DependencyCycleError(cycle, self.location)

        result: list[str] = []
        primary = self.primary_output()
        if primary is not None:
            result.append(primary)
        result.extend(self.action_outputs())
        result.extend(self.copy_outputs())

        if not result:
            result = self.deps((*_resolving, name))
            if not result:
                logger.debug("%s produces no output", self.location)

        self._output = result
        return list(result)

    def deps(self, _resolving: Sequence[str] = ()) -> list[str]:
        """Outputs of the direct dependencies, in declaration order.

        Duplicates are kept: with a diamond the shared dependency shows up
        once per path.
        """
        result: list[str] = []
        for dep in self.target.dependencies:
            compiler = self._compilers.get(dep)
            if compiler is None:
                raise MissingTargetError(dep, self.location)
            result.extend(compiler.output(_resolving))
        return result

    def link_deps(self, _resolving: Sequence[str] = ()) -> list[str]:
        """Direct and transitive dependency outputs seen by the link step.

        The walk continues below static libraries and aggregators and stops
        at linked artifacts. Duplicates keep their first position.

        Raises:
            DependencyCycleError: If the walk leads back to this target.
            MissingTargetError: If a dependency is not known.
        """
        name = self.target.qualified_name
        if name in _resolving:
            cycle = list(_resolving[_resolving.index(name) :]) + [name]
            raise DependencyCycleError(cycle, self.location)

        result = self.deps()
        for dep in self.target.dependencies:
            compiler = self._compilers[dep]
            if compiler.target.type in ("static_library", "none"):
                result.extend(compiler.link_deps((*_resolving, name)))
        return list(dict.fromkeys(result))

    def link_libraries(self) -> list[str]:
        """Own libraries followed by those of static library dependencies."""
        libraries = list(self.target.libraries)
        for dep in self.target.dependencies:
            compiler = self._compilers.get(dep)
            if compiler is None:
                raise MissingTargetError(dep, self.location)
            if compiler.target.type == "static_library":
                libraries.extend(compiler.link_libraries())
        return libraries

    # =========================================================================
    # Statements
    # =========================================================================

    def _prepare(self, values: Sequence[str]) -> str:
        return " ".join(self.expander.expand(v) for v in values).strip()

    def write_vars(self, ninja: NinjaFile) -> None:
        """Write the target-local variables.

        Host targets rebind the tools to their ``_host`` variants. Empty
        categories are left out.
        """
        target = self.target
        policy = self.policy

        ninja.section("variables")

        if target.toolset == "host":
            for tool in ("cc", "cxx", "ld", "ldxx", "ar"):
                ninja.variable(tool, f"${tool}_host")

        flags = policy.translate_flags(target)
        includes = [
            policy.include_prefix + self.expander.src_path(d)
            for d in target.include_dirs
        ]
        defines = [policy.escape_define(d) for d in target.defines]

        libs = [d for d in self.deps() if policy.is_shared_library(d)]
        libs.extend(self.link_libraries())
        libs = list(dict.fromkeys(policy.adjust_libraries(libs)))

        for key, values in (
            ("ldflags", flags.ldflags),
            ("libs", libs),
            ("cflags", flags.cflags),
            ("cflags_c", flags.cflags_c),
            ("cflags_cc", flags.cflags_cc),
            ("includes", includes),
        ):
            if values:
                ninja.variable(key, self._prepare(values))
        if defines:
            ninja.variable("defines", escape(self._prepare(defines)))
        if flags.asmflags:
            ninja.variable("asmflags", self._prepare(flags.asmflags))

        ninja.section_end("variables")

    def action_rule_name(self, action_name: str) -> str:
        return re.sub(r"\s", "_", action_name) + f"_{self.index}"

    def write_actions(self, ninja: NinjaFile) -> list[str]:
        """Write one rule and one build statement per action.

        Commands run from the declaring directory; tokens are expanded
        relative to it.

        Returns:
            The actions' outputs.
        """
        actions = self.target.actions
        if not actions:
            return []

        ninja.section("actions")

        deps = self.deps()
        base = self.paths.relative(self.config_dir, self.src_dir)
        to_base = self.paths.relative(self.src_dir, self.config_dir)

        outputs: list[str] = []
        for action in actions:
            rule = self.action_rule_name(action.action_name)
            command = " ".join(self.expander.expand(c, to_base) for c in action.action)
            ninja.rule(
                rule,
                command=escape(self.policy.action_command(base, command)),
                description=action.message,
            )

            inputs = [self.expander.src_path(i) for i in action.inputs]
            action_outputs = [self.expander.src_path(o) for o in action.outputs]
            ninja.build(action_outputs, rule, inputs, order_only=deps)
            outputs.extend(action_outputs)

        ninja.section_end("actions")
        return outputs

    def write_copies(self, ninja: NinjaFile) -> list[str]:
        """Write one ``copy`` statement per staged file.

        Returns:
            The staged files.
        """
        copies = self.target.copies
        if not copies:
            return []

        ninja.section("copies")

        deps = self.deps()
        outputs: list[str] = []
        for copy in copies:
            out_dir = self.expander.src_path(copy.destination)
            for f in copy.files:
                output = self.paths.join(out_dir, self.paths.basename(f))
                ninja.build(output, "copy", self.expander.src_path(f), order_only=deps)
                outputs.append(output)

        ninja.section_end("copies")
        return outputs

    def object_path(self, source: str, rule: str) -> str:
        """Object file of ``source``, relative to the configuration directory.

        Objects mirror the source's directory below ``obj_dir``; absolute
        sources land directly in ``obj_dir``.
        """
        paths = self.paths
        expanded = self.expander.expand(source)
        stem = paths.module.splitext(paths.basename(expanded))[0]
        name = self.policy.object_name(self.target.name, stem, rule)
        subdir = "" if paths.isabs(expanded) else paths.dirname(expanded)
        return paths.relative(self.config_dir, paths.join(self.obj_dir, subdir, name))

    def write_objects(self, ninja: NinjaFile, order_only: Sequence[str]) -> list[str]:
        """Write one compile statement per compilable source.

        Returns:
            The object files.
        """
        ninja.section("objects")

        objects: list[str] = []
        for source in self.target.sources:
            rule = self.policy.source_rule(source)
            if rule is None:
                continue
            if rule == "cxx":
                self.use_cxx = True
            obj = self.object_path(source, rule)
            ninja.build(
                obj,
                rule,
                self.expander.src_path(source),
                order_only=list(order_only),
            )
            objects.append(obj)

        ninja.section_end("objects")
        return objects

    def write_result(
        self, ninja: NinjaFile, objects: Sequence[str], deps: Sequence[str]
    ) -> None:
        """Write the link or archive statement of the primary artifact."""
        ninja.section("result")

        target_type = self.target.type
        rule = RESULT_RULES.get(target_type)
        if rule is not None:
            pattern = _ARCHIVE_INPUT if target_type == "static_library" else _LINK_INPUT
            candidates = [*objects, *deps]
            inputs = [c for c in candidates if pattern.search(c)]
            implicit = [c for c in candidates if not pattern.search(c)]
            ninja.build(
                self.output()[0],
                rule,
                inputs,
                implicit=implicit,
                order_only=list(deps),
            )

        ninja.section_end("result")

    def generate(self, ninja: NinjaFile) -> str:
        """Render the whole ninja file of this target.

        Returns:
            The ninja file's path.
        """
        logger.debug("Generating %s -> %s", self.location, self.filename)
        self.write_vars(ninja)
        own = self.write_actions(ninja) + self.write_copies(ninja)
        objects = self.write_objects(ninja, own + self.deps())
        self.write_result(ninja, objects, list(dict.fromkeys(own + self.link_deps())))
        return self.filename

    def __repr__(self) -> str:
        return f"TargetCompiler({self.location!r})"
