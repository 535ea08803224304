"""CLI utility functions for jbuild.

This module provides common utilities used by the CLI including:
- Logging setup
- Error handling and formatting
- Banner output
- Project directory validation
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_console_handler: Optional[logging.Handler] = None


def setup_logging(verbose: bool = False) -> None:
    """Send diagnostics to stderr; DEBUG when verbose, WARNING otherwise.

    Calling it again only changes the level.
    """
    global _console_handler

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    if _console_handler is not None and _console_handler in logger.handlers:
        return

    _console_handler = logging.StreamHandler(sys.stderr)
    _console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_console_handler)


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "File not found")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_tool_output(output: str) -> None:
        """Print captured tool output verbatim between rulers."""
        print("############################")
        print("ERRORS")
        print()
        print(output.rstrip("\n"))
        print("############################")

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        ErrorFormatter.print_error("Error: File not found", str(error))
        print("Make sure you're in a project directory with a src/ directory.")
        sys.exit(1)

    @staticmethod
    def handle_permission_error(error: PermissionError) -> None:
        ErrorFormatter.print_error("Error: Permission denied", str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class BannerFormatter:
    """Formats and displays banner messages with borders."""

    DEFAULT_WIDTH = 40

    @staticmethod
    def format_banner(message: str, width: int = DEFAULT_WIDTH) -> str:
        """Format a banner message with dashed top and bottom borders.

        Args:
            message: The message to display (can be multi-line)
            width: Width of the borders in characters

        Returns:
            Formatted banner string with borders
        """
        border = "-" * width
        return "\n".join([border, *message.split("\n"), border])

    @staticmethod
    def print_build_failed() -> None:
        print()
        print(f"{ErrorFormatter.RED}BUILD FAILED{ErrorFormatter.RESET}")

    @staticmethod
    def print_build_successful(build_time: float) -> None:
        print()
        print(BannerFormatter.format_banner(
            f"BUILD SUCCESSFUL\nTOTAL BUILD TIME : {build_time:.3f} SECONDS"
        ))


class PathValidator:
    """Validates project paths and directories."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that project directory exists and is a directory.

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not project_dir.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path does not exist: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
        if not project_dir.is_dir():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path is not a directory: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
