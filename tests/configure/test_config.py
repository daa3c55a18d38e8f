# SPDX-License-Identifier: MIT
"""Tests for gypninja.configure.config."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from gypninja.configure.config import (
    DEFAULT_VARIABLES,
    GeneratorOptions,
    calculate_variables,
    cross_compile_requested,
)
from gypninja.configure.platform import Platform
from gypninja.toolchains import get_policy


def make_probe(version="2022", bits=64):
    probe = MagicMock()
    probe.version.return_value = version
    probe.os_bits.return_value = bits
    return probe


class TestDefaultVariables:
    def test_directory_tokens(self):
        assert DEFAULT_VARIABLES["PRODUCT_DIR"] == "$!PRODUCT_DIR"
        assert DEFAULT_VARIABLES["INTERMEDIATE_DIR"] == "$!INTERMEDIATE_DIR"
        assert DEFAULT_VARIABLES["SHARED_INTERMEDIATE_DIR"] == "$!PRODUCT_DIR/gen"
        assert DEFAULT_VARIABLES["CONFIGURATION_NAME"] == "$|CONFIGURATION_NAME"

    def test_rule_input_variables(self):
        assert DEFAULT_VARIABLES["RULE_INPUT_PATH"] == "${source}"
        assert DEFAULT_VARIABLES["RULE_INPUT_EXT"] == "${ext}"


class TestCrossCompileRequested:
    def test_empty_environment(self):
        assert not cross_compile_requested({})

    def test_explicit_request(self):
        assert cross_compile_requested({"GYP_CROSSCOMPILE": "1"})

    def test_host_or_target_tools(self):
        assert cross_compile_requested({"CC_host": "gcc"})
        assert cross_compile_requested({"AR_target": "arm-ar"})

    def test_plain_tools_do_not_count(self):
        assert not cross_compile_requested({"CC": "clang", "CC_host": ""})


class TestCalculateVariables:
    def test_linux(self):
        variables = calculate_variables({}, Platform("linux"))
        assert variables["OS"] == "linux"
        assert variables["SHARED_LIB_SUFFIX"] == ".so"
        assert variables["SHARED_LIB_DIR"] == "$!PRODUCT_DIR/lib"
        assert variables["LIB_DIR"] == "$!PRODUCT_DIR/obj"

    def test_keeps_existing_entries(self):
        variables = calculate_variables({"OS": "android"}, Platform("linux"))
        assert variables["OS"] == "android"

    def test_freebsd(self):
        assert calculate_variables({}, Platform("freebsd13"))["OS"] == "freebsd"

    def test_mac(self):
        variables = calculate_variables({}, Platform("darwin"))
        assert variables["OS"] == "mac"
        assert variables["SHARED_LIB_SUFFIX"] == ".dylib"
        assert variables["SHARED_LIB_DIR"] == "$!PRODUCT_DIR"
        assert variables["LIB_DIR"] == "$!PRODUCT_DIR"

    def test_windows(self):
        variables = calculate_variables(
            {"STATIC_LIB_SUFFIX": ".a"}, Platform("win32"), probe=make_probe()
        )
        assert variables["OS"] == "win"
        assert variables["EXECUTABLE_SUFFIX"] == ".exe"
        assert variables["STATIC_LIB_PREFIX"] == ""
        assert variables["STATIC_LIB_SUFFIX"] == ".lib"
        assert variables["SHARED_LIB_SUFFIX"] == ".dll"
        assert variables["MSVS_VERSION"] == "2022"
        assert variables["MSVS_OS_BITS"] == 64

    def test_windows_probes_environment(self):
        with patch("gypninja.configure.config.MsvsProbe") as probe_class:
            probe_class.return_value = make_probe("2019", 32)
            variables = calculate_variables({}, Platform("win32"))
        assert variables["MSVS_VERSION"] == "2019"
        assert variables["MSVS_OS_BITS"] == 32


class TestGeneratorOptions:
    def test_defaults(self):
        options = GeneratorOptions.from_params({}, environ={})
        assert options.toplevel_dir == "."
        assert options.generator_output is None
        assert options.output_dir == "out"
        assert options.config is None
        assert options.jobs == 1
        assert not options.supports_multiple_toolsets

    def test_mapping_options(self):
        params = {
            "options": {
                "toplevel_dir": "src",
                "generator_output": "build",
                "jobs": "4",
            },
            "generator_flags": {"output_dir": "ninja", "config": "Release"},
            "build_files": ["src/app.gyp"],
        }
        options = GeneratorOptions.from_params(params, environ={})
        assert options.toplevel_dir == "src"
        assert options.generator_output == "build"
        assert options.output_dir == "ninja"
        assert options.config == "Release"
        assert options.jobs == 4
        assert options.build_files == ["src/app.gyp"]

    def test_object_options(self):
        loader_options = SimpleNamespace(
            toplevel_dir="top",
            generator_output=None,
            generator_flags={"output_dir": "o", "target_arch": "x64"},
            config="Debug",
        )
        options = GeneratorOptions.from_params({"options": loader_options}, environ={})
        assert options.toplevel_dir == "top"
        assert options.output_dir == "o"
        assert options.target_arch == "x64"
        assert options.config == "Debug"

    def test_params_override_option_flags(self):
        params = {
            "options": {"generator_flags": {"output_dir": "a"}},
            "generator_flags": {"output_dir": "b"},
            "target_arch": "ia32",
        }
        options = GeneratorOptions.from_params(params, environ={})
        assert options.output_dir == "b"
        assert options.target_arch == "ia32"

    def test_jobs_at_least_one(self):
        options = GeneratorOptions.from_params({"options": {"jobs": 0}}, environ={})
        assert options.jobs == 1

    def test_cross_compile(self):
        options = GeneratorOptions.from_params({}, environ={"CXX_host": "g++"})
        assert options.supports_multiple_toolsets


class TestNamingAgreesWithPolicies:
    def check(self, platform):
        variables = calculate_variables(dict(DEFAULT_VARIABLES), platform, make_probe())
        policy = get_policy(platform)
        assert policy.product_affixes("static_library") == (
            variables["STATIC_LIB_PREFIX"],
            variables["STATIC_LIB_SUFFIX"],
        )
        assert policy.product_affixes("shared_library") == (
            variables["SHARED_LIB_PREFIX"],
            variables["SHARED_LIB_SUFFIX"],
        )
        assert policy.product_affixes("executable") == (
            variables["EXECUTABLE_PREFIX"],
            variables["EXECUTABLE_SUFFIX"],
        )

    def test_linux(self):
        self.check(Platform("linux"))

    def test_mac(self):
        self.check(Platform("darwin"))

    def test_windows(self):
        self.check(Platform("win32"))
