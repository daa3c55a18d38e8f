# SPDX-License-Identifier: MIT
"""Generator protocol for build file generation.

A generator takes the resolved target graph for one configuration and
produces build files for a downstream build tool.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class Generator(Protocol):
    """Protocol for build file generators."""

    @property
    def name(self) -> str:
        """Generator name (e.g. 'ninja')."""
        ...

    def generate(self) -> list[Path]:
        """Write the build files.

        Returns:
            Paths of the files written.
        """
        ...


class BaseGenerator:
    """Base class for generators with common functionality."""

    def __init__(self, name: str) -> None:
        """Initialize a generator.

        Args:
            name: Generator name.
        """
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def generate(self) -> list[Path]:
        """Generate build files. Subclasses must implement."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"
