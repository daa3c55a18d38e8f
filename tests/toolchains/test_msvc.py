# SPDX-License-Identifier: MIT
"""Tests for gypninja.toolchains.msvc."""

import re
import subprocess
from unittest.mock import MagicMock, patch

from gypninja.configure.platform import Platform
from gypninja.core.target import Target
from gypninja.generators.writer import NinjaFile
from gypninja.toolchains.msvc import (
    MsvsProbe,
    MsvsSettingsTranslator,
    WindowsPolicy,
    quote_windows_argument,
)


def make_target(**fields) -> Target:
    target_dict = {"type": "executable"}
    target_dict.update(fields)
    return Target.from_dict("a.gyp:a#target", target_dict)


def render_rules(use_cxx: bool = False) -> str:
    ninja = NinjaFile("build.ninja")
    WindowsPolicy(Platform("win32")).write_rules(ninja, use_cxx)
    return re.sub(r" \$\n +", " ", ninja.getvalue())


class TestQuoteWindowsArgument:
    def test_plain(self):
        assert quote_windows_argument("-DFOO=1") == "-DFOO=1"

    def test_whitespace(self):
        assert quote_windows_argument("-DNAME=a b") == '"-DNAME=a b"'

    def test_quotes(self):
        assert quote_windows_argument('-DNAME="x"') == '"-DNAME=\\"x\\""'


class TestWindowsPolicy:
    def test_default_toolchain_ia32(self):
        tools = WindowsPolicy(Platform("win32")).default_toolchain()
        assert tools.cc == "$cl_ia32"
        assert tools.cxx == "$cl_ia32"
        assert tools.ar == "lib.exe"
        assert tools.ld == "link.exe"
        assert tools.extra["asm"] == "$ml_ia32"
        assert list(tools.extra)[:6] == [
            "cl_ia32",
            "cl_x64",
            "ml_ia32",
            "ml_x64",
            "mt",
            "asm",
        ]
        assert tools.extra["ml_x64"] == "ml64.exe"

    def test_default_toolchain_x64(self):
        tools = WindowsPolicy(Platform("win32"), target_arch="x64").default_toolchain()
        assert tools.cc == "$cl_x64"
        assert tools.extra["asm"] == "$ml_x64"

    def test_product_affixes(self):
        policy = WindowsPolicy(Platform("win32"))
        assert policy.product_affixes("static_library") == ("", ".lib")
        assert policy.product_affixes("shared_library") == ("", ".dll")
        assert policy.product_affixes("executable") == ("", ".exe")

    def test_asm_sources(self):
        policy = WindowsPolicy(Platform("win32"))
        assert policy.source_rule("x.asm") == "asm"
        assert policy.object_name("foo", "x", "asm") == "foo.x_asm.obj"
        assert policy.object_name("foo", "x", "cc") == "foo.x.obj"

    def test_escape_define(self):
        policy = WindowsPolicy(Platform("win32"))
        assert policy.escape_define("FOO=1") == "-DFOO=1"
        assert policy.escape_define("CHAR=#") == "-DCHAR=\\0043"
        assert policy.escape_define("MSG=a b") == '"-DMSG=a b"'

    def test_adjust_libraries(self):
        policy = WindowsPolicy(Platform("win32"))
        assert policy.adjust_libraries(["-lws2_32", "bar.dll", "kernel32.lib", "x"]) == [
            "ws2_32.lib",
            "bar.dll.lib",
            "kernel32.lib",
            "x.lib",
        ]

    def test_action_command(self):
        policy = WindowsPolicy(Platform("win32"))
        assert policy.action_command("..\\..\\src", "python gen.py") == (
            'cmd.exe /s /c "cd ..\\..\\src & python gen.py"'
        )


class TestMsvsSettingsTranslator:
    def test_ignores_plain_flags(self):
        target = make_target(
            cflags=["-Wall"], cflags_cc=["-std=c++17"], ldflags=["-pthread"]
        )
        flags = MsvsSettingsTranslator().translate(target)
        assert flags.cflags == []
        assert flags.cflags_cc == []
        assert flags.ldflags == ["/MACHINE:X86"]

    def test_compiler_settings(self):
        target = make_target(
            msvs_settings={
                "VCCLCompilerTool": {
                    "Optimization": "2",
                    "RuntimeLibrary": 2,
                    "WarningLevel": "3",
                    "WarnAsError": "true",
                    "AdditionalOptions": ["/bigobj"],
                }
            }
        )
        flags = MsvsSettingsTranslator("x64").translate(target)
        assert flags.cflags == ["/O2", "/MD", "/W3", "/WX", "/bigobj"]

    def test_linker_settings(self):
        target = make_target(
            msvs_settings={
                "VCLinkerTool": {
                    "GenerateDebugInformation": "true",
                    "SubSystem": "1",
                    "AdditionalLibraryDirectories": ["lib"],
                }
            }
        )
        flags = MsvsSettingsTranslator("x64").translate(target)
        assert flags.ldflags == [
            "/DEBUG",
            "/SUBSYSTEM:CONSOLE",
            "/LIBPATH:lib",
            "/MACHINE:X64",
        ]

    def test_masm_settings(self):
        target = make_target(msvs_settings={"MASM": {"AdditionalOptions": "/safeseh"}})
        flags = MsvsSettingsTranslator().translate(target)
        assert flags.asmflags == ["/safeseh"]


class TestWindowsRules:
    def test_compile_rules(self):
        content = render_rules()
        assert "rule cc\n" in content
        assert "/showIncludes" in content
        assert "deps = msvc" in content
        assert "rule asm\n" in content
        assert "command = $asm /nologo $asmflags $defines $includes /c /Fo$out $in" in content

    def test_link_rules(self):
        content = render_rules(use_cxx=True)
        assert "command = $ar /nologo /ignore:4221 /OUT:$out $in" in content
        assert "/IMPLIB:$out.lib" in content
        assert "command = $ldxx /nologo $ldflags /OUT:$out $in $libs" in content
        assert content.count("pool = link_pool") == 2

    def test_copy_rule(self):
        content = render_rules()
        assert "command = $python -m gypninja.util.commands copy $in $out" in content


class TestMsvsProbe:
    def test_forced_version(self):
        probe = MsvsProbe({"GYP_MSVS_VERSION": "2019"})
        assert probe.version() == "2019"

    def test_version_from_vswhere(self, tmp_path):
        vswhere = tmp_path / "vswhere.exe"
        vswhere.touch()
        result = MagicMock(returncode=0, stdout="17.8.34330.188\n")
        with (
            patch("gypninja.toolchains.msvc._find_vswhere", return_value=vswhere),
            patch("gypninja.toolchains.msvc.subprocess.run", return_value=result),
        ):
            assert MsvsProbe({}).version() == "2022"

    def test_version_unknown(self):
        with patch("gypninja.toolchains.msvc._find_vswhere", return_value=None):
            assert MsvsProbe({}).version() == "auto"

    def test_vswhere_failure(self, tmp_path):
        with (
            patch(
                "gypninja.toolchains.msvc._find_vswhere",
                return_value=tmp_path / "vswhere.exe",
            ),
            patch(
                "gypninja.toolchains.msvc.subprocess.run",
                side_effect=subprocess.TimeoutExpired("vswhere", 30),
            ),
        ):
            assert MsvsProbe({}).version() == "auto"

    def test_os_bits(self):
        assert MsvsProbe({"PROCESSOR_ARCHITECTURE": "AMD64"}).os_bits() == 64
        assert MsvsProbe({"PROCESSOR_ARCHITECTURE": "x86"}).os_bits() == 32
        assert (
            MsvsProbe(
                {"PROCESSOR_ARCHITECTURE": "x86", "PROCESSOR_ARCHITEW6432": "AMD64"}
            ).os_bits()
            == 64
        )
