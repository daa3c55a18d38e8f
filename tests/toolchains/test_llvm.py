# SPDX-License-Identifier: MIT
"""Tests for gypninja.toolchains.llvm."""

import re

from gypninja.configure.platform import Platform
from gypninja.core.target import Target
from gypninja.generators.writer import NinjaFile
from gypninja.toolchains.llvm import DarwinPolicy, XcodeSettingsTranslator


def make_target(**fields) -> Target:
    target_dict = {"type": "executable"}
    target_dict.update(fields)
    return Target.from_dict("a.gyp:a#target", target_dict)


class TestXcodeSettingsTranslator:
    def test_empty_settings(self):
        flags = XcodeSettingsTranslator().translate(make_target())
        assert flags.cflags == []
        assert flags.ldflags == []

    def test_compiler_settings(self):
        target = make_target(
            xcode_settings={
                "GCC_OPTIMIZATION_LEVEL": "3",
                "GCC_GENERATE_DEBUGGING_SYMBOLS": "YES",
                "OTHER_CFLAGS": ["-fno-strict-aliasing"],
                "WARNING_CFLAGS": ["-Wall"],
                "GCC_SYMBOLS_PRIVATE_EXTERN": "YES",
            }
        )
        flags = XcodeSettingsTranslator().translate(target)
        assert flags.cflags == [
            "-O3",
            "-g",
            "-fvisibility=hidden",
            "-Wall",
            "-fno-strict-aliasing",
        ]

    def test_language_settings(self):
        target = make_target(
            xcode_settings={
                "GCC_C_LANGUAGE_STANDARD": "c99",
                "CLANG_CXX_LANGUAGE_STANDARD": "c++17",
                "CLANG_CXX_LIBRARY": "libc++",
                "GCC_ENABLE_CPP_EXCEPTIONS": "NO",
                "GCC_ENABLE_CPP_RTTI": "NO",
                "OTHER_CPLUSPLUSFLAGS": "-fno-threadsafe-statics",
            }
        )
        flags = XcodeSettingsTranslator().translate(target)
        assert flags.cflags_c == ["-std=c99"]
        assert flags.cflags_cc == [
            "-std=c++17",
            "-stdlib=libc++",
            "-fno-exceptions",
            "-fno-rtti",
            "-fno-threadsafe-statics",
        ]
        assert "-stdlib=libc++" in flags.ldflags

    def test_linker_settings(self):
        target = make_target(
            xcode_settings={
                "ARCHS": ["arm64"],
                "MACOSX_DEPLOYMENT_TARGET": "11.0",
                "OTHER_LDFLAGS": ["-undefined", "dynamic_lookup"],
            }
        )
        flags = XcodeSettingsTranslator().translate(target)
        assert flags.cflags == ["-arch", "arm64", "-mmacosx-version-min=11.0"]
        assert flags.ldflags == [
            "-arch",
            "arm64",
            "-mmacosx-version-min=11.0",
            "-undefined",
            "dynamic_lookup",
        ]


class TestDarwinPolicy:
    def test_default_toolchain(self):
        tools = DarwinPolicy(Platform("darwin")).default_toolchain()
        assert (tools.cc, tools.cxx, tools.ar) == ("clang", "clang++", "ar")

    def test_product_affixes(self):
        policy = DarwinPolicy(Platform("darwin"))
        assert policy.product_affixes("shared_library") == ("lib", ".dylib")
        assert policy.product_affixes("static_library") == ("lib", ".a")

    def test_plain_flags_ignored(self):
        policy = DarwinPolicy(Platform("darwin"))
        flags = policy.translate_flags(make_target(cflags=["-O2"], ldflags=["-x"]))
        assert flags.cflags == []
        assert flags.ldflags == []

    def test_xcode_settings_used(self):
        policy = DarwinPolicy(Platform("darwin"))
        target = make_target(
            cflags=["-O2"], xcode_settings={"GCC_OPTIMIZATION_LEVEL": "s"}
        )
        assert policy.translate_flags(target).cflags == ["-Os"]

    def test_frameworks(self):
        policy = DarwinPolicy(Platform("darwin"))
        libs = policy.adjust_libraries(
            ["$(SDKROOT)/System/Library/Frameworks/Cocoa.framework", "z"]
        )
        assert libs == ["-framework Cocoa", "-lz"]

    def test_rules(self):
        ninja = NinjaFile("build.ninja")
        DarwinPolicy(Platform("darwin")).write_rules(ninja, use_cxx=True)
        content = re.sub(r" \$\n +", " ", ninja.getvalue())
        assert "command = $ldxx $ldflags -o $out $in $libs" in content
        assert "command = $ldxx -dynamiclib $ldflags -o $out $in $libs" in content
        assert "--start-group" not in content
