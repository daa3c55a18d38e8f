# SPDX-License-Identifier: MIT
"""Tests for gypninja.toolchains.gcc."""

import re

from gypninja.configure.platform import Platform
from gypninja.core.target import Target
from gypninja.generators.writer import NinjaFile
from gypninja.toolchains.gcc import PosixPolicy


def unwrap(content: str) -> str:
    """Join lines wrapped by the ninja writer."""
    return re.sub(r" \$\n +", " ", content)


def render_rules(policy, use_cxx: bool) -> str:
    ninja = NinjaFile("build.ninja")
    policy.write_rules(ninja, use_cxx)
    return unwrap(ninja.getvalue())


class TestPosixPolicy:
    def test_name(self):
        policy = PosixPolicy(Platform("linux"))
        assert policy.name == "posix"
        assert not policy.windows

    def test_default_toolchain_linux(self):
        tools = PosixPolicy(Platform("linux")).default_toolchain()
        assert (tools.cc, tools.cxx, tools.ar) == ("gcc", "g++", "ar")

    def test_default_toolchain_freebsd(self):
        tools = PosixPolicy(Platform("freebsd13")).default_toolchain()
        assert (tools.cc, tools.cxx, tools.ar) == ("clang", "clang++", "ar")

    def test_product_affixes(self):
        policy = PosixPolicy(Platform("linux"))
        assert policy.product_affixes("static_library") == ("lib", ".a")
        assert policy.product_affixes("shared_library") == ("lib", ".so")
        assert policy.product_affixes("loadable_module") == ("lib", ".so")
        assert policy.product_affixes("executable") == ("", "")
        assert policy.product_affixes("none") == ("", "")

    def test_source_rule(self):
        policy = PosixPolicy(Platform("linux"))
        assert policy.source_rule("a.c") == "cc"
        assert policy.source_rule("a.cc") == "cxx"
        assert policy.source_rule("a.cpp") == "cxx"
        assert policy.source_rule("a.cxx") == "cxx"
        assert policy.source_rule("a.S") == "cc"
        assert policy.source_rule("a.s") == "cc"
        assert policy.source_rule("a.h") is None
        assert policy.source_rule("README") is None

    def test_object_name(self):
        policy = PosixPolicy(Platform("linux"))
        assert policy.object_name("foo", "a", "cxx") == "foo.a.o"

    def test_escape_define(self):
        policy = PosixPolicy(Platform("linux"))
        assert policy.escape_define("FOO=1") == "-DFOO=1"
        assert policy.escape_define('NAME="x"') == "'-DNAME=\"x\"'"

    def test_adjust_libraries(self):
        policy = PosixPolicy(Platform("linux"))
        assert policy.adjust_libraries(["m", "-lpthread", "libx.a", "/abs/liby.so"]) == [
            "-lm",
            "-lpthread",
            "libx.a",
            "/abs/liby.so",
        ]

    def test_is_shared_library(self):
        policy = PosixPolicy(Platform("linux"))
        assert policy.is_shared_library("libx.so")
        assert policy.is_shared_library("libx.dylib")
        assert not policy.is_shared_library("libx.a")

    def test_uses_target_flags_without_translator(self):
        policy = PosixPolicy(Platform("linux"))
        target = Target.from_dict(
            "a.gyp:a#target",
            {"type": "executable", "cflags": ["-O2"], "ldflags": ["-pthread"]},
        )
        flags = policy.translate_flags(target)
        assert flags.cflags == ["-O2"]
        assert flags.ldflags == ["-pthread"]
        assert flags.asmflags == []

    def test_action_command(self):
        policy = PosixPolicy(Platform("linux"))
        assert policy.action_command("../../src", "python gen.py") == (
            "cd ../../src && python gen.py"
        )


class TestPosixRules:
    def test_compile_rules(self):
        content = render_rules(PosixPolicy(Platform("linux")), use_cxx=False)
        assert "rule cc\n" in content
        assert (
            "command = $cc -MMD -MF $out.d $defines $includes $cflags $cflags_c "
            "-c $in -o $out"
        ) in content
        assert "rule cxx\n" in content
        assert "$cflags_cc -c $in -o $out" in content
        assert "depfile = $out.d" in content
        assert "deps = gcc" in content

    def test_archive_rule(self):
        content = render_rules(PosixPolicy(Platform("linux")), use_cxx=False)
        assert "command = rm -f $out && $ar rcs $out $in" in content

    def test_link_rules_use_ld_without_cxx(self):
        content = render_rules(PosixPolicy(Platform("linux")), use_cxx=False)
        assert (
            "command = $ld $ldflags -o $out -Wl,--start-group $in "
            "-Wl,--end-group $libs"
        ) in content
        assert "$ldxx" not in content

    def test_link_rules_use_ldxx_with_cxx(self):
        content = render_rules(PosixPolicy(Platform("linux")), use_cxx=True)
        assert "command = $ldxx $ldflags -o $out" in content
        assert "command = $ldxx -shared $ldflags -o $out" in content

    def test_link_rules_in_pool(self):
        content = render_rules(PosixPolicy(Platform("linux")), use_cxx=False)
        assert content.count("pool = link_pool") == 2

    def test_copy_rule(self):
        content = render_rules(PosixPolicy(Platform("linux")), use_cxx=False)
        assert "rule copy\n" in content
        assert "cp -af $in $out" in content
