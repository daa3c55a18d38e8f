# SPDX-License-Identifier: MIT
"""Special path token expansion.

Project files refer to late-bound locations through placeholder tokens
that begin with ``$`` (so the loader treats them as variables) followed by
a character that is invalid in ninja and shell variable names:

- ``$!PRODUCT_DIR`` and ``$!INTERMEDIATE_DIR`` name directories and may
  only appear at the start of a path.
- ``$|CONFIGURATION_NAME`` may appear anywhere in a string.

The Expander resolves these for one target in one configuration before
anything is written to a ninja file. Paths in ninja files are relative to
the configuration's output directory (e.g. ``out/Default``); paths in
project files are relative to the directory of the declaring file.
``src_path()`` translates between the two.
"""

from __future__ import annotations

import functools
import ntpath
import posixpath
import re
from enum import Enum
from types import ModuleType


class SpecialToken(str, Enum):
    """Placeholder tokens understood by the Expander."""

    PRODUCT_DIR = "$!PRODUCT_DIR"
    INTERMEDIATE_DIR = "$!INTERMEDIATE_DIR"
    CONFIGURATION_NAME = "$|CONFIGURATION_NAME"

    @property
    def anchored(self) -> bool:
        """True if the token may only start a path."""
        return self.value.startswith("$!")


# Strings starting with these are command-line switches, not paths
_FLAG_PATTERN = re.compile(r"^[-/]")

_PRODUCT_DIR_WITH_SEP = re.compile(re.escape(SpecialToken.PRODUCT_DIR.value) + r"[\\/]")


class PathOps:
    """Path arithmetic with the separator conventions of one flavor.

    Joins are normalized, so ``join(".", "foo")`` is ``"foo"``.
    """

    def __init__(self, windows: bool = False) -> None:
        self.windows = windows
        self.module: ModuleType = ntpath if windows else posixpath

    def join(self, *parts: str) -> str:
        parts = tuple(p for p in parts if p)
        if not parts:
            return "."
        return self.module.normpath(self.module.join(*parts))

    def relative(self, from_dir: str, to_path: str) -> str:
        """Express ``to_path`` relative to ``from_dir``."""
        return _cached_relative(from_dir, to_path, self.windows)

    def isabs(self, path: str) -> bool:
        return self.module.isabs(path)

    def basename(self, path: str) -> str:
        return self.module.basename(path)

    def dirname(self, path: str) -> str:
        return self.module.dirname(path)

    def normalize(self, path: str) -> str:
        return self.module.normpath(path)


@functools.lru_cache(maxsize=4096)
def _cached_relative(from_dir: str, to_path: str, windows: bool) -> str:
    module = ntpath if windows else posixpath
    return module.relpath(to_path or ".", from_dir or ".")


def clear_relative_cache() -> None:
    """Drop memoized relative paths (the working directory changed)."""
    _cached_relative.cache_clear()


class Expander:
    """Resolves special tokens for one target in one configuration.

    Example:
        expander = Expander(
            config_name="Debug",
            src_dir="src/foo",
            config_dir="out/Debug",
            intermediate_postfix="src/foo",
        )
        expander.expand("$!PRODUCT_DIR/gen/x.h")   # "gen/x.h"
        expander.src_path("x.c")                   # "../../src/foo/x.c"

    Attributes:
        config_name: Active configuration name.
        src_dir: Directory of the file that declared the target.
        config_dir: Output directory of the configuration.
        intermediate_postfix: Path of ``src_dir`` below the top-level
            directory (may start with ``..``).
        paths: Path operations for the platform flavor.
    """

    def __init__(
        self,
        config_name: str,
        src_dir: str,
        config_dir: str,
        intermediate_postfix: str = "",
        *,
        windows: bool = False,
    ) -> None:
        self.config_name = config_name
        self.src_dir = src_dir
        self.config_dir = config_dir
        self.intermediate_postfix = intermediate_postfix
        self.paths = PathOps(windows)

    @property
    def windows(self) -> bool:
        return self.paths.windows

    def expand(self, path: str, product_dir: str = ".") -> str:
        """Replace special tokens in ``path``.

        Args:
            path: Path or command token to expand.
            product_dir: Location of the product directory relative to the
                place the result will be used from.

        Returns:
            The expanded string. On windows, forward slashes are converted
            unless the string is a command-line switch.
        """
        product_token = SpecialToken.PRODUCT_DIR.value
        if product_dir == ".":
            path = _PRODUCT_DIR_WITH_SEP.sub("", path)
        path = path.replace(product_token, product_dir)

        intermediate_token = SpecialToken.INTERMEDIATE_DIR.value
        if intermediate_token in path:
            intermediate_dir = self.paths.join(
                product_dir, self.intermediate_postfix, "gen"
            )
            path = path.replace(intermediate_token, intermediate_dir)

        path = path.replace(SpecialToken.CONFIGURATION_NAME.value, self.config_name)

        if self.windows and not _FLAG_PATTERN.match(path):
            path = path.replace("/", "\\")

        return path

    def src_path(self, path: str) -> str:
        """Translate a project-file path into a path usable in ninja files.

        Token-anchored and absolute paths only get expanded. Other paths
        are resolved against the declaring directory and re-expressed
        relative to the configuration directory.
        """
        if path.startswith("$!"):
            return self.expand(path)
        path = self.expand(path)
        if self.paths.isabs(path):
            return path
        return self.paths.relative(self.config_dir, self.paths.join(self.src_dir, path))

    def __repr__(self) -> str:
        return (
            f"Expander(config={self.config_name!r}, src_dir={self.src_dir!r}, "
            f"config_dir={self.config_dir!r})"
        )
