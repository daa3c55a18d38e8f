# SPDX-License-Identifier: MIT
"""In-memory ninja files and their atomic commit.

Every build file of a configuration is rendered into a NinjaFile (a
``ninja_syntax.Writer`` backed by a string buffer). The BuildFileSet
collects them and writes them to disk only once rendering has finished,
so a failing target never leaves a half-written configuration behind.
"""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Iterator
from pathlib import Path

from ninja_syntax import Writer

from gypninja.core.errors import GenerateError

logger = logging.getLogger(__name__)

# Line width used by ninja_syntax when wrapping long build statements
LINE_WIDTH = 78


class NinjaFile(Writer):
    """A ninja file rendered into memory.

    Example:
        ninja = NinjaFile("out/Default/obj/foo.ninja")
        ninja.variable("cflags", "-O2")
        ninja.build("foo.o", "cc", "../../foo.c")
        text = ninja.getvalue()

    Attributes:
        path: Destination of the file on disk.
        location: Description used in error messages (target, toolset,
            configuration).
    """

    def __init__(self, path: str | Path, location: str | None = None) -> None:
        self.path = Path(path)
        self.location = location
        self._buffer = io.StringIO()
        super().__init__(self._buffer, width=LINE_WIDTH)

    def section(self, name: str) -> None:
        """Open a named block of statements."""
        self.comment(name)

    def section_end(self, name: str) -> None:
        """Close a block opened with :meth:`section`."""
        self.comment(f"end of {name}")
        self.newline()

    def getvalue(self) -> str:
        return self._buffer.getvalue()

    def __repr__(self) -> str:
        return f"NinjaFile({str(self.path)!r})"


class BuildFileSet:
    """The files of one configuration, committed together.

    Files may be added from several threads while rendering.
    """

    def __init__(self) -> None:
        self._files: dict[Path, NinjaFile] = {}
        self._lock = threading.Lock()

    def add(self, path: str | Path, location: str | None = None) -> NinjaFile:
        """Create and register a NinjaFile for ``path``.

        Raises:
            GenerateError: If two build files would share one path.
        """
        ninja = NinjaFile(path, location)
        with self._lock:
            if ninja.path in self._files:
                raise GenerateError(
                    "two build files map to the same path",
                    str(ninja.path),
                    location=location,
                )
            self._files[ninja.path] = ninja
        return ninja

    def commit(self) -> list[Path]:
        """Write every registered file to disk.

        Returns:
            The written paths in registration order.

        Raises:
            GenerateError: If a file or its directory cannot be written.
        """
        written: list[Path] = []
        for path, ninja in self._files.items():
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(ninja.getvalue(), encoding="utf-8")
            except OSError as e:
                raise GenerateError(
                    "cannot write build file", str(path), e, ninja.location
                ) from e
            logger.debug("Wrote %s", path)
            written.append(path)
        return written

    def __iter__(self) -> Iterator[NinjaFile]:
        return iter(list(self._files.values()))

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, path: object) -> bool:
        return Path(path) in self._files if isinstance(path, (str, Path)) else False
