# SPDX-License-Identifier: MIT
"""Ninja build file generator.

For every configuration the generator writes a master file
``<out_dir>/<config>/build.ninja`` holding the tool variables, the rule
templates, one ``subninja`` line per target and the default ``all``
target. Each target gets its own file written by a TargetCompiler.

Example:
    generators = generate_output(target_list, target_dicts, params)
    generators["Default"].build()
"""

from __future__ import annotations

import concurrent.futures
import functools
import logging
import os
import shutil
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import ninja as ninja_package

from gypninja.configure.config import GeneratorOptions
from gypninja.configure.platform import Platform, get_platform
from gypninja.core.errors import ConfigurationError, ToolNotFoundError
from gypninja.core.graph import BuildGraph
from gypninja.core.subst import PathOps
from gypninja.core.target import Target
from gypninja.generators.generator import BaseGenerator
from gypninja.generators.target import TargetCompiler
from gypninja.generators.writer import BuildFileSet, NinjaFile
from gypninja.toolchains import get_policy
from gypninja.tools.toolchain import (
    PlatformPolicy,
    resolve_host_toolchain,
    resolve_toolchain,
)

logger = logging.getLogger(__name__)

# Concurrent link steps
LINK_POOL_DEPTH = 4


@functools.lru_cache(maxsize=None)
def bundled_ninja(executable: str) -> Path:
    """The ninja executable shipped with the ``ninja`` Python distribution.

    Warns once per process.

    Raises:
        ToolNotFoundError: If the distribution carries no executable.
    """
    path = Path(ninja_package.BIN_DIR) / executable
    if not path.exists():
        raise ToolNotFoundError(executable)
    logger.warning(
        "No native `%s` binary is available, using %s; "
        "install ninja for faster incremental builds",
        executable,
        path,
    )
    return path


def find_ninja(platform: Platform) -> str:
    """Locate ninja, falling back to the bundled executable."""
    executable = platform.ninja_executable
    found = shutil.which(executable)
    if found is not None:
        return found
    return str(bundled_ninja(executable))


class NinjaGenerator(BaseGenerator):
    """Generates the build files of one configuration.

    Example:
        graph = BuildGraph(target_list, target_dicts, ["app.gyp"])
        gen = NinjaGenerator(graph, "Default", GeneratorOptions())
        gen.generate()   # writes out/Default/build.ninja and friends

    Attributes:
        graph: The resolved target graph.
        config: Configuration being generated.
        options: Generator options.
        platform: Platform the files are generated for.
        policy: Platform policy.
        environ: Environment consulted for tool overrides.
        compilers: TargetCompiler per qualified target name, filled by
            :meth:`generate`.
        use_cxx: True if any target compiled C++.
    """

    def __init__(
        self,
        graph: BuildGraph,
        config: str,
        options: GeneratorOptions | None = None,
        *,
        platform: Platform | None = None,
        environ: Mapping[str, str] | None = None,
        policy: PlatformPolicy | None = None,
    ) -> None:
        super().__init__("ninja")
        self.graph = graph
        self.config = config
        self.options = options if options is not None else GeneratorOptions()
        self.platform = platform if platform is not None else get_platform()
        self.environ = environ if environ is not None else os.environ
        self.policy = (
            policy
            if policy is not None
            else get_policy(self.platform, self.options.target_arch)
        )
        self.paths = PathOps(self.policy.windows)

        self.compilers: dict[str, TargetCompiler] = {}
        self.use_cxx = False

    @property
    def top_dir(self) -> str:
        return self.options.toplevel_dir or "."

    @property
    def out_dir(self) -> str:
        """``<generator_output>/<output_dir>``, e.g. ``out``."""
        base = self.options.generator_output or "."
        if not self.paths.isabs(base):
            base = self.paths.normalize(base)
        return self.paths.join(base, self.options.output_dir)

    @property
    def config_dir(self) -> str:
        """Directory of this configuration's files, e.g. ``out/Default``."""
        return self.paths.join(self.out_dir, self.config)

    @property
    def master_path(self) -> str:
        return self.paths.join(self.config_dir, "build.ninja")

    def generate(self) -> list[Path]:
        """Render and write every file of the configuration.

        Nothing is written unless all targets render successfully.

        Returns:
            The written paths, master file first.

        Raises:
            ConfigurationError: If the target graph is invalid.
            GenerateError: If a file cannot be written.
        """
        logger.info("Generating configuration %s in %s", self.config, self.config_dir)
        targets = self.graph.targets_for(self.config)

        files = BuildFileSet()
        master = files.add(self.master_path, f"build.ninja [{self.config}]")

        self.write_vars(master, targets)
        self.write_rules_and_targets(master, targets, files)
        self.write_defaults(master)

        written = files.commit()
        logger.info("Wrote %d build files for %s", len(written), self.config)
        return written

    # =========================================================================
    # Master file
    # =========================================================================

    def write_vars(self, master: NinjaFile, targets: Mapping[str, Target]) -> None:
        """Write the tool variables.

        Toolchain overrides from make_global_settings are taken from the
        first target.
        """
        first = targets[self.graph.target_list[0]]
        tools = resolve_toolchain(
            self.policy,
            make_global_settings=first.make_global_settings,
            environ=self.environ,
            top_dir=self.top_dir,
            target_arch=self.options.target_arch,
        )

        master.section("variables")
        for key, value in tools.extra.items():
            master.variable(key, value)
        for key, value in tools.items():
            master.variable(key, value)

        if self.options.supports_multiple_toolsets:
            host = resolve_host_toolchain(
                tools,
                make_global_settings=first.make_global_settings,
                environ=self.environ,
                top_dir=self.top_dir,
            )
            for key, value in host.items("_host"):
                master.variable(key, value)
        master.section_end("variables")

    def create_compilers(self, targets: Mapping[str, Target]) -> dict[str, TargetCompiler]:
        """One TargetCompiler per target, with outputs resolved.

        Outputs are resolved in dependency order so that rendering only
        reads memoized results.
        """
        compilers: dict[str, TargetCompiler] = {}
        for index, name in enumerate(self.graph.target_list):
            compilers[name] = TargetCompiler(
                index,
                targets[name],
                compilers,
                self.config,
                self.config_dir,
                self.top_dir,
                self.policy,
            )
        for name in self.graph.build_order():
            compilers[name].output()
        return compilers

    def render_targets(
        self, compilers: Sequence[TargetCompiler], files: BuildFileSet
    ) -> list[str]:
        """Render the per-target files, on a thread pool if ``jobs`` > 1.

        Returns:
            The per-target file paths in target order.
        """

        def render(compiler: TargetCompiler) -> str:
            ninja = files.add(compiler.filename, compiler.location)
            return compiler.generate(ninja)

        jobs = self.options.jobs
        if jobs <= 1 or len(compilers) <= 1:
            return [render(c) for c in compilers]

        logger.debug("Rendering %d targets with %d workers", len(compilers), jobs)
        with concurrent.futures.ThreadPoolExecutor(max_workers=jobs) as executor:
            return list(executor.map(render, compilers))

    def write_rules_and_targets(
        self,
        master: NinjaFile,
        targets: Mapping[str, Target],
        files: BuildFileSet,
    ) -> None:
        """Render the targets, then write the rules and ``subninja`` lines.

        Rules come after rendering because the link rules depend on
        whether any target compiled C++.
        """
        self.compilers = self.create_compilers(targets)
        ordered = [self.compilers[name] for name in self.graph.target_list]
        filenames = self.render_targets(ordered, files)
        self.use_cxx = any(c.use_cxx for c in ordered)

        master.section("rules")
        master.pool("link_pool", depth=LINK_POOL_DEPTH)
        self.policy.write_rules(master, self.use_cxx)
        master.section_end("rules")

        master.section("targets")
        for filename in filenames:
            master.subninja(self.paths.relative(self.config_dir, filename))
        master.section_end("targets")

    def default_outputs(self) -> list[str]:
        """Outputs built by ``all``.

        For every target declared in a requested build file: its outputs
        and the outputs of its direct dependencies, deduplicated and sorted.
        """
        defaults: set[str] = set()
        for build_file in self.graph.build_files:
            for name in self.graph.targets_in_file(build_file):
                compiler = self.compilers[name]
                defaults.update(compiler.output())
                for dep in compiler.target.dependencies:
                    defaults.update(self.compilers[dep].output())
        return sorted(defaults)

    def write_defaults(self, master: NinjaFile) -> None:
        master.section("defaults")
        master.build("all", "phony", self.default_outputs())
        master.default("all")
        master.section_end("defaults")

    # =========================================================================
    # Running ninja
    # =========================================================================

    def ninja_command(
        self, targets: Sequence[str] = (), jobs: int | None = None
    ) -> list[str]:
        cmd = [find_ninja(self.platform), "-C", self.config_dir]
        if jobs:
            cmd.extend(["-j", str(jobs)])
        cmd.extend(targets)
        return cmd

    def build(self, targets: Sequence[str] = (), jobs: int | None = None) -> int:
        """Run ninja on this configuration.

        Returns:
            Exit code from ninja.
        """
        cmd = self.ninja_command(targets, jobs)
        logger.info("Running: %s", " ".join(cmd))
        return subprocess.run(cmd).returncode

    def clean(self) -> int:
        """Remove this configuration's build outputs with ``ninja -t clean``."""
        if not Path(self.master_path).exists():
            logger.info("No build.ninja found in %s, nothing to clean", self.config_dir)
            return 0
        cmd = [find_ninja(self.platform), "-C", self.config_dir, "-t", "clean"]
        logger.info("Running: %s", " ".join(cmd))
        return subprocess.run(cmd).returncode

    def __repr__(self) -> str:
        return f"NinjaGenerator({self.config!r}, {self.config_dir!r})"


def generate_output(
    target_list: Sequence[str],
    target_dicts: Mapping[str, Mapping[str, Any]],
    params: Mapping[str, Any],
    *,
    platform: Platform | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, NinjaGenerator]:
    """Generate every configuration of a target graph.

    Configurations are taken from the first target unless the options
    restrict generation to one.

    Args:
        target_list: Qualified target names in declaration order.
        target_dicts: Resolved dictionary per qualified target.
        params: Loader parameters (see GeneratorOptions.from_params).
        platform: Platform to generate for (default: the running one).
        environ: Environment for tool overrides (default: os.environ).

    Returns:
        The generator of each configuration, by name.

    Raises:
        ConfigurationError: If there are no targets or the graph is invalid.
    """
    if not target_list:
        raise ConfigurationError("No targets to build!")

    options = GeneratorOptions.from_params(params, environ)
    graph = BuildGraph(target_list, target_dicts, options.build_files)
    graph.validate()

    configs = [options.config] if options.config else graph.configurations()

    generators: dict[str, NinjaGenerator] = {}
    for config in configs:
        generator = NinjaGenerator(
            graph, config, options, platform=platform, environ=environ
        )
        generator.generate()
        generators[config] = generator
    return generators
