# SPDX-License-Identifier: MIT
"""Tests for gypninja.util.commands."""

import os
from unittest.mock import patch

from gypninja.util.commands import copy, main


class TestCopy:
    def test_copies_file(self, tmp_path):
        src = tmp_path / "a.txt"
        src.write_text("hello")
        dest = tmp_path / "out" / "sub" / "a.txt"

        copy(str(src), str(dest))

        assert dest.read_text() == "hello"

    def test_replaces_existing(self, tmp_path):
        src = tmp_path / "a.txt"
        src.write_text("new")
        dest = tmp_path / "b.txt"
        dest.write_text("old")

        copy(str(src), str(dest))

        assert dest.read_text() == "new"

    def test_falls_back_to_copy(self, tmp_path):
        src = tmp_path / "a.txt"
        src.write_text("hello")
        dest = tmp_path / "b.txt"

        with patch("gypninja.util.commands.os.link", side_effect=OSError("EXDEV")):
            copy(str(src), str(dest))

        assert dest.read_text() == "hello"
        assert os.stat(src).st_ino != os.stat(dest).st_ino

    def test_copies_directory(self, tmp_path):
        src = tmp_path / "data"
        (src / "nested").mkdir(parents=True)
        (src / "nested" / "x.txt").write_text("x")
        dest = tmp_path / "out" / "data"
        dest.mkdir(parents=True)
        (dest / "stale.txt").write_text("stale")

        copy(str(src), str(dest))

        assert (dest / "nested" / "x.txt").read_text() == "x"
        assert not (dest / "stale.txt").exists()


class TestMain:
    def test_copy(self, tmp_path):
        src = tmp_path / "a.txt"
        src.write_text("hello")
        dest = tmp_path / "b.txt"

        assert main(["copy", str(src), str(dest)]) == 0
        assert dest.read_text() == "hello"

    def test_usage(self, capsys):
        assert main([]) == 1
        assert "Usage" in capsys.readouterr().err

    def test_copy_wrong_arguments(self, capsys):
        assert main(["copy", "a"]) == 1
        assert "copy <src> <dest>" in capsys.readouterr().err

    def test_unknown_command(self, capsys):
        assert main(["move", "a", "b"]) == 1
        assert "Unknown command: move" in capsys.readouterr().err

    def test_missing_source(self, tmp_path, capsys):
        assert main(["copy", str(tmp_path / "nope"), str(tmp_path / "b")]) == 1
        assert "copy failed" in capsys.readouterr().err
