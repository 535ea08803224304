"""
Command-line interface for jbuild.

This module provides the `jbuild` CLI tool for building Java projects.
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from jbuild import __version__
from jbuild.build import PipelineOrchestrator
from jbuild.cli_utils import (
    BannerFormatter,
    ErrorFormatter,
    PathValidator,
    setup_logging,
)
from jbuild.config import BuildConfig, BuildConfigError, ProjectLayout


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    mode: Optional[str] = None
    run: bool = False
    simple: bool = False
    verbose: bool = False


def build_command(args: BuildArgs) -> None:
    """Build a Java project.

    Examples:
        jbuild build                   # Build the current directory
        jbuild build examples/hello    # Build a specific project
        jbuild build -m release        # Build without debug information
        jbuild build --run             # Run the program after building
        jbuild build --verbose         # Verbose output
    """
    try:
        config = BuildConfig.load(args.project_dir).with_overrides(
            mode=args.mode,
            run_after_build=True if args.run else None,
            simple_output=True if args.simple else None,
        )
    except BuildConfigError as e:
        ErrorFormatter.print_error("Invalid configuration", str(e))
        BannerFormatter.print_build_failed()
        sys.exit(1)

    if not config.simple_output:
        print(f"jbuild v{__version__}")
        print()

    try:
        layout = ProjectLayout.for_project(args.project_dir, config.program_name)
        orchestrator = PipelineOrchestrator(config, layout, verbose=args.verbose)

        if config.simple_output:
            print("Building project...")
            print()
        else:
            if args.verbose:
                print(f"Building project: {layout.project_dir}")
            for line in orchestrator.describe_tools():
                print(line)
            print()

        result = orchestrator.build()

        if not result.success:
            if result.output:
                ErrorFormatter.print_tool_output(result.output)
            ErrorFormatter.print_error(
                f"Stage '{result.failed_stage}' failed" if result.failed_stage else "Build failed",
                result.message,
            )
            BannerFormatter.print_build_failed()
            sys.exit(1)

        BannerFormatter.print_build_successful(result.build_time)

        if config.run_after_build:
            orchestrator.run_program()

        sys.exit(0)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def main() -> None:
    """jbuild - build tool for Java projects."""
    parser = argparse.ArgumentParser(
        prog="jbuild",
        description="jbuild - build tool for Java projects",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"jbuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser(
        "build",
        help="Build the project into build/release",
    )
    build_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    build_parser.add_argument(
        "-m",
        "--mode",
        default=None,
        choices=["debug", "release"],
        help="Build mode (default: from jbuild.ini, else debug)",
    )
    build_parser.add_argument(
        "-r",
        "--run",
        action="store_true",
        help="Run the program after a successful build",
    )
    build_parser.add_argument(
        "-s",
        "--simple",
        action="store_true",
        help="Only print the build outcome",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose build output",
    )

    parsed_args = parser.parse_args()

    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    PathValidator.validate_project_dir(parsed_args.project_dir)
    setup_logging(parsed_args.verbose)

    if parsed_args.command == "build":
        build_args = BuildArgs(
            project_dir=parsed_args.project_dir,
            mode=parsed_args.mode,
            run=parsed_args.run,
            simple=parsed_args.simple,
            verbose=parsed_args.verbose,
        )
        build_command(build_args)


if __name__ == "__main__":
    main()
