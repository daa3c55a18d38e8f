# SPDX-License-Identifier: MIT
"""Command-line interface for gypninja.

The input is a JSON dump of a resolved target graph:
    {
        "target_list": ["app.gyp:app#target", ...],
        "target_dicts": {"app.gyp:app#target": {...}, ...},
        "build_files": ["app.gyp"],
        "toplevel_dir": "."
    }
"""

from __future__ import annotations

import argparse
import json
import logging
import shutil
import sys
from pathlib import Path
from typing import Any

from gypninja.configure.config import GeneratorOptions
from gypninja.core.errors import GypNinjaError
from gypninja.core.graph import BuildGraph
from gypninja.generators.ninja import NinjaGenerator, generate_output

# Set up logging
logger = logging.getLogger("gypninja")


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Configure logging based on verbosity level."""
    if debug:
        level = logging.DEBUG
        fmt = "%(levelname)s: %(name)s: %(message)s"
    elif verbose:
        level = logging.INFO
        fmt = "%(levelname)s: %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s: %(message)s"

    logging.basicConfig(level=level, format=fmt)


def parse_variables(args: list[str]) -> tuple[dict[str, str], list[str]]:
    """Parse KEY=value arguments from a list.

    Args:
        args: List of arguments.

    Returns:
        Tuple of (variables dict, remaining args).
    """
    variables: dict[str, str] = {}
    remaining: list[str] = []

    for arg in args:
        if "=" in arg and not arg.startswith("-"):
            key, _, value = arg.partition("=")
            if key:
                variables[key] = value
            else:
                remaining.append(arg)
        else:
            remaining.append(arg)

    return variables, remaining


def load_graph(path: Path) -> dict[str, Any]:
    """Read a target graph dump.

    Raises:
        GypNinjaError: If the file is unreadable or incomplete.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise GypNinjaError(f"cannot read target graph: {e}") from e
    except json.JSONDecodeError as e:
        raise GypNinjaError(f"invalid target graph {path}: {e}") from e

    if not isinstance(data, dict):
        raise GypNinjaError(f"invalid target graph {path}: not an object")
    for key in ("target_list", "target_dicts"):
        if key not in data:
            raise GypNinjaError(f"invalid target graph {path}: missing {key!r}")
    return data


def make_params(args: argparse.Namespace, data: dict[str, Any]) -> dict[str, Any]:
    """Build loader-style params from the command line and the graph dump."""
    variables, _ = parse_variables(list(getattr(args, "extra", None) or []))
    for define in getattr(args, "define", None) or []:
        defined, _ = parse_variables([define])
        variables.update(defined)

    options = {
        "toplevel_dir": data.get("toplevel_dir") or ".",
        "generator_output": args.generator_output,
        "config": getattr(args, "config", None),
        "jobs": getattr(args, "generate_jobs", None),
    }
    return {
        "options": options,
        "generator_flags": variables,
        "target_arch": variables.get("target_arch"),
        "build_files": data.get("build_files") or [],
    }


def _generate(args: argparse.Namespace) -> dict[str, NinjaGenerator]:
    data = load_graph(Path(args.graph))
    params = make_params(args, data)
    return generate_output(data["target_list"], data["target_dicts"], params)


def cmd_generate(args: argparse.Namespace) -> int:
    """Write the ninja files of every configuration."""
    setup_logging(args.verbose, args.debug)

    try:
        generators = _generate(args)
    except GypNinjaError as e:
        logger.error("%s", e)
        return 1

    for config, generator in generators.items():
        logger.info("Generated %s in %s", config, generator.config_dir)
    return 0


def cmd_build(args: argparse.Namespace) -> int:
    """Generate, then run ninja for one configuration."""
    setup_logging(args.verbose, args.debug)

    try:
        generators = _generate(args)
        config = args.config or next(iter(generators))
        generator = generators[config]
        _, targets = parse_variables(list(args.extra or []))
        return generator.build(targets, jobs=args.jobs)
    except GypNinjaError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("Failed to run ninja: %s", e)
        return 1


def cmd_clean(args: argparse.Namespace) -> int:
    """Clean build outputs.

    Runs ``ninja -t clean`` per configuration, or removes the whole
    output directory with --all.
    """
    setup_logging(args.verbose, args.debug)

    try:
        data = load_graph(Path(args.graph))
        options = GeneratorOptions.from_params(make_params(args, data))
        graph = BuildGraph(
            data["target_list"], data["target_dicts"], options.build_files
        )
        configs = [options.config] if options.config else graph.configurations()
        generators = [NinjaGenerator(graph, c, options) for c in configs]
    except GypNinjaError as e:
        logger.error("%s", e)
        return 1

    if args.all:
        out_dir = Path(generators[0].out_dir)
        if out_dir.exists():
            logger.info("Removing output directory: %s", out_dir)
            shutil.rmtree(out_dir)
        else:
            logger.info("Output directory does not exist: %s", out_dir)
        return 0

    status = 0
    for generator in generators:
        try:
            status = generator.clean() or status
        except (GypNinjaError, OSError) as e:
            logger.error("Failed to run ninja: %s", e)
            return 1
    return status


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to a parser."""
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--debug", action="store_true", help="Debug output")
    parser.add_argument(
        "-g",
        "--graph",
        default="targets.json",
        help="Target graph dump (default: targets.json)",
    )
    parser.add_argument(
        "--generator-output",
        metavar="DIR",
        help="Directory to place the output directory in",
    )
    parser.add_argument(
        "--config", metavar="NAME", help="Only handle this configuration"
    )
    parser.add_argument(
        "-D",
        dest="define",
        action="append",
        metavar="KEY=value",
        help="Set a generator variable (e.g. target_arch=x64, output_dir=out)",
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the gypninja CLI."""
    parser = argparse.ArgumentParser(
        prog="gypninja",
        description="Generate Ninja build files from a resolved target graph.",
        epilog="Run 'gypninja <command> --help' for command-specific help.",
    )
    from gypninja import __version__

    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # gypninja generate
    gen_parser = subparsers.add_parser(
        "generate", help="Generate ninja files from a target graph"
    )
    add_common_args(gen_parser)
    gen_parser.add_argument(
        "--jobs",
        dest="generate_jobs",
        type=int,
        help="Threads used to render per-target files",
    )
    gen_parser.add_argument(
        "extra",
        nargs="*",
        help="Generator variables (KEY=value)",
    )
    gen_parser.set_defaults(func=cmd_generate)

    # gypninja build
    build_parser = subparsers.add_parser(
        "build", help="Generate, then build with ninja"
    )
    add_common_args(build_parser)
    build_parser.add_argument("-j", "--jobs", type=int, help="Number of parallel jobs")
    build_parser.add_argument(
        "extra", nargs="*", help="Targets to build and generator variables (KEY=value)"
    )
    build_parser.set_defaults(func=cmd_build)

    # gypninja clean
    clean_parser = subparsers.add_parser("clean", help="Clean build outputs")
    add_common_args(clean_parser)
    clean_parser.add_argument(
        "-a", "--all", action="store_true", help="Remove the entire output directory"
    )
    clean_parser.set_defaults(func=cmd_clean)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    result: int = args.func(args)
    return result


if __name__ == "__main__":
    sys.exit(main())
