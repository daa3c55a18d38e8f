# SPDX-License-Identifier: MIT
"""The resolved target graph handed to the generator.

A BuildGraph wraps the loader's output (the ordered list of qualified
target names, their dictionaries and the originally requested build
files) and provides validation and ordering helpers.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from gypninja.core.errors import (
    ConfigurationError,
    DependencyCycleError,
    MissingTargetError,
)
from gypninja.core.target import Target, build_file_of, parse_qualified_target

logger = logging.getLogger(__name__)


def detect_cycles_in_targets(
    dependencies: Mapping[str, Sequence[str]],
) -> list[list[str]]:
    """Find dependency cycles.

    Args:
        dependencies: Map of target name to the names it depends on.
            Names missing from the map are treated as leaves.

    Returns:
        One list per cycle found, starting and ending with the same name.
    """
    white, grey, black = 0, 1, 2
    color = dict.fromkeys(dependencies, white)
    cycles: list[list[str]] = []

    for root in dependencies:
        if color[root] != white:
            continue
        # Iterative DFS; stack holds (node, iterator over its deps)
        path: list[str] = [root]
        color[root] = grey
        stack = [(root, iter(dependencies[root]))]
        while stack:
            node, deps = stack[-1]
            advanced = False
            for dep in deps:
                state = color.get(dep)
                if state is None:
                    continue
                if state == grey:
                    start = path.index(dep)
                    cycles.append(path[start:] + [dep])
                elif state == white:
                    color[dep] = grey
                    path.append(dep)
                    stack.append((dep, iter(dependencies[dep])))
                    advanced = True
                    break
            if not advanced:
                color[node] = black
                path.pop()
                stack.pop()

    return cycles


def topological_sort_targets(
    dependencies: Mapping[str, Sequence[str]],
) -> list[str]:
    """Order targets so that dependencies come before dependents.

    Ties keep the order of ``dependencies``. The graph must be acyclic.
    """
    order: list[str] = []
    done: set[str] = set()

    for root in dependencies:
        if root in done:
            continue
        stack = [(root, iter(dependencies[root]))]
        seen = {root}
        while stack:
            node, deps = stack[-1]
            for dep in deps:
                if dep in dependencies and dep not in done and dep not in seen:
                    seen.add(dep)
                    stack.append((dep, iter(dependencies[dep])))
                    break
            else:
                stack.pop()
                done.add(node)
                order.append(node)

    return order


class BuildGraph:
    """The full set of targets plus the originally requested build files.

    Example:
        graph = BuildGraph(
            ["a.gyp:app#target", "a.gyp:lib#target"],
            target_dicts,
            build_files=["a.gyp"],
        )
        targets = graph.targets_for("Default")

    Attributes:
        target_list: Qualified target names in declaration order.
        target_dicts: Resolved dictionary per qualified target.
        build_files: Build files the user asked to generate.
    """

    def __init__(
        self,
        target_list: Sequence[str],
        target_dicts: Mapping[str, Mapping[str, Any]],
        build_files: Iterable[str] = (),
    ) -> None:
        self.target_list = list(target_list)
        self.target_dicts = target_dicts
        self.build_files = [_normalize(f) for f in build_files]

    def configurations(self) -> list[str]:
        """Configuration names, taken from the first target."""
        if not self.target_list:
            raise ConfigurationError("No targets to build!")
        first = self.target_dicts[self.target_list[0]]
        configurations = first.get("configurations") or {}
        if not configurations:
            return [first.get("default_configuration", "Default")]
        return list(configurations)

    def targets_for(self, config: str) -> dict[str, Target]:
        """Build the Target views of one configuration.

        Raises:
            ConfigurationError: If the graph is invalid.
        """
        self.validate()
        return {
            name: Target.from_dict(name, self.target_dicts[name], config)
            for name in self.target_list
        }

    def dependencies_of(self, target: str) -> list[str]:
        """Direct dependencies declared at the top level of a target."""
        return list(self.target_dicts[target].get("dependencies") or ())

    def validate(self) -> None:
        """Check that every dependency resolves and that there is no cycle.

        Raises:
            ConfigurationError: If the target list is empty.
            MissingTargetError: If a dependency is not in the graph.
            DependencyCycleError: If the graph contains a cycle.
        """
        if not self.target_list:
            raise ConfigurationError("No targets to build!")

        graph: dict[str, list[str]] = {}
        for name in self.target_list:
            if name not in self.target_dicts:
                raise MissingTargetError(name)
            deps = self._all_dependencies(name)
            for dep in deps:
                if dep not in self.target_dicts:
                    raise MissingTargetError(dep, _label(name))
            graph[name] = deps

        cycles = detect_cycles_in_targets(graph)
        if cycles:
            for cycle in cycles[1:]:
                logger.debug("Additional cycle: %s", " -> ".join(cycle))
            raise DependencyCycleError(cycles[0])

    def build_order(self) -> list[str]:
        """Qualified names sorted so dependencies come first."""
        return topological_sort_targets(
            {name: self._all_dependencies(name) for name in self.target_list}
        )

    def targets_in_file(self, build_file: str) -> list[str]:
        """Targets declared directly in ``build_file``, in declaration order."""
        wanted = _normalize(build_file)
        return [
            name
            for name in self.target_list
            if _normalize(build_file_of(name) or "") == wanted
        ]

    def _all_dependencies(self, name: str) -> list[str]:
        # Dependencies may be overridden per configuration
        target_dict = self.target_dicts[name]
        deps = list(target_dict.get("dependencies") or ())
        for config in (target_dict.get("configurations") or {}).values():
            for dep in (config or {}).get("dependencies") or ():
                if dep not in deps:
                    deps.append(dep)
        return deps

    def __repr__(self) -> str:
        return f"BuildGraph({len(self.target_list)} targets)"


def _normalize(path: str) -> str:
    return posixpath.normpath(path.replace("\\", "/"))


def _label(qualified: str) -> str:
    _, name, toolset = parse_qualified_target(qualified)
    return f"{name}#{toolset or 'target'}"
