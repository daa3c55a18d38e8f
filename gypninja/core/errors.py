# SPDX-License-Identifier: MIT
"""Custom exceptions for gypninja.

All gypninja exceptions inherit from GypNinjaError, which includes
optional location information (target, toolset, configuration) for
better error messages.
"""

from __future__ import annotations


class GypNinjaError(Exception):
    """Base class for all gypninja exceptions.

    Attributes:
        message: The error message.
        location: Optional description of where the error occurred,
            usually ``"<target>#<toolset> [<config>]"``.
    """

    def __init__(
        self,
        message: str,
        location: str | None = None,
    ) -> None:
        self.message = message
        self.location = location
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ConfigurationError(GypNinjaError):
    """The target graph is invalid for generation.

    Raised before any build file of the affected configuration is written.
    """


class UnknownTargetTypeError(ConfigurationError):
    """A target declares a type the generator does not know.

    Attributes:
        target_type: The offending type string.
    """

    def __init__(
        self,
        target_type: str,
        location: str | None = None,
    ) -> None:
        self.target_type = target_type
        super().__init__(f"unknown target type: {target_type!r}", location)


class MissingTargetError(ConfigurationError):
    """A dependency refers to a target that is not in the graph.

    Attributes:
        target: The qualified name of the missing target.
    """

    def __init__(
        self,
        target: str,
        location: str | None = None,
    ) -> None:
        self.target = target
        super().__init__(f"unresolved dependency: {target}", location)


class DependencyCycleError(ConfigurationError):
    """Circular dependency detected in the target graph.

    Attributes:
        cycle: The targets forming the cycle.
    """

    def __init__(
        self,
        cycle: list[str],
        location: str | None = None,
    ) -> None:
        self.cycle = cycle
        cycle_str = " -> ".join(cycle)
        super().__init__(f"dependency cycle: {cycle_str}", location)


class GenerateError(GypNinjaError):
    """Error while writing build files.

    Attributes:
        path: The file or directory that could not be written.
        cause: The underlying OS error, if any.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        cause: BaseException | None = None,
        location: str | None = None,
    ) -> None:
        self.path = path
        self.cause = cause
        if path:
            message = f"{message}: {path}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message, location)


class ToolNotFoundError(GypNinjaError):
    """Required tool was not found.

    Attributes:
        tool: The name of the tool that was not found.
    """

    def __init__(
        self,
        tool: str,
        location: str | None = None,
    ) -> None:
        self.tool = tool
        super().__init__(f"tool not found: {tool}", location)
