"""Build utilities for jbuild.

This module provides the console reporter used by every stage to print
progress, and size formatting helpers.
"""

from typing import Optional


def format_kb(size_bytes: int) -> str:
    """Format a byte count the way stage reports show sizes (e.g. '1.500 kb.')."""
    return f"{size_bytes / 1024.0:.3f} kb."


def plural(count: int, singular: str, plural_form: Optional[str] = None) -> str:
    if count == 1:
        return f"{count} {singular}"
    return f"{count} {plural_form or singular + 's'}"


class BuildReporter:
    """Prints stage headings and details unless simple output is requested.

    Output format:
        > Compiling sources (release)...
        \t-> Created 3 class files.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled

    def stage(self, title: str) -> None:
        if self.enabled:
            print(f"> {title}")

    def detail(self, message: str) -> None:
        if self.enabled:
            print(f"\t-> {message}")

    def blank(self) -> None:
        if self.enabled:
            print()
