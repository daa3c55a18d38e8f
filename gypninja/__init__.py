# SPDX-License-Identifier: MIT
"""
gypninja: Ninja build files from resolved gyp target graphs.

The loader resolves project files into a graph of target dictionaries;
gypninja turns that graph into one ninja file per target plus a master
``build.ninja`` per configuration.
"""

from __future__ import annotations

__version__ = "0.1.0"

# Re-export commonly used classes for convenient imports
from gypninja.core.errors import (  # noqa: E402
    ConfigurationError,
    DependencyCycleError,
    GenerateError,
    GypNinjaError,
    MissingTargetError,
    ToolNotFoundError,
    UnknownTargetTypeError,
)
from gypninja.core.graph import BuildGraph  # noqa: E402
from gypninja.generators.ninja import NinjaGenerator, generate_output  # noqa: E402

__all__ = [
    "BuildGraph",
    "ConfigurationError",
    "DependencyCycleError",
    "GenerateError",
    "GypNinjaError",
    "MissingTargetError",
    "NinjaGenerator",
    "ToolNotFoundError",
    "UnknownTargetTypeError",
    "__version__",
    "generate_output",
]
