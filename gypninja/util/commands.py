# SPDX-License-Identifier: MIT
"""Helpers run by generated build rules on windows.

The windows ``copy`` rule has no ``ln``/``cp`` to fall back on, so it runs:
    python -m gypninja.util.commands copy <src> <dest>

Files are hard linked when possible and copied otherwise; directories
are mirrored, replacing whatever was at the destination.
"""

from __future__ import annotations

import os
import shutil
import sys
from collections.abc import Sequence
from pathlib import Path


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()


def copy(src: str, dest: str) -> None:
    """Stage ``src`` at ``dest``, creating parent directories as needed."""
    src_path = Path(src)
    dest_path = Path(dest)
    dest_path.parent.mkdir(parents=True, exist_ok=True)
    _remove(dest_path)

    if src_path.is_dir():
        shutil.copytree(src_path, dest_path, symlinks=True)
        return

    try:
        os.link(src_path, dest_path)
    except OSError:
        # Cross-device or unsupported filesystem
        shutil.copy2(src_path, dest_path)


def main(argv: Sequence[str] | None = None) -> int:
    """Command-line entry point."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(
            "Usage: python -m gypninja.util.commands <command> [args...]",
            file=sys.stderr,
        )
        print("Commands: copy", file=sys.stderr)
        return 1

    cmd = args[0]
    if cmd == "copy":
        if len(args) != 3:
            print(
                "Usage: python -m gypninja.util.commands copy <src> <dest>",
                file=sys.stderr,
            )
            return 1
        try:
            copy(args[1], args[2])
        except OSError as e:
            print(f"copy failed: {e}", file=sys.stderr)
            return 1
        return 0

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
