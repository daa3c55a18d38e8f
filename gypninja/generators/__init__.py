# SPDX-License-Identifier: MIT
"""Build file generators for gypninja."""

from gypninja.generators.generator import BaseGenerator, Generator
from gypninja.generators.ninja import NinjaGenerator, generate_output
from gypninja.generators.target import TargetCompiler

__all__ = [
    "BaseGenerator",
    "Generator",
    "NinjaGenerator",
    "TargetCompiler",
    "generate_output",
]
