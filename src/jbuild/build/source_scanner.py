"""
Source tree discovery for Java projects.

This module handles:
- Walking the src/ tree and collecting every .java file in lexicographic order
- Detecting the program entry point by looking for a main method marker
- Counting source files and lines
- Writing the source manifest consumed by javac and javadoc (@sources.txt)

One walk serves all three purposes so the tree is read only once.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..config import ProjectLayout
from .build_utils import BuildReporter
from .stage import BuildStageError

logger = logging.getLogger(__name__)

SOURCE_EXTENSION = ".java"

ENTRY_POINT_MARKER = "public static void main("

# Passed through to the archiver when the program has no main class
NO_ENTRY_POINT = "--NoMainFound--"


class SourceScannerError(BuildStageError):
    """Raised when source scanning fails."""
    pass


@dataclass
class ScanResult:
    """Outcome of scanning the source tree."""

    manifest_path: Path
    sources: List[Path] = field(default_factory=list)
    entry_point: str = NO_ENTRY_POINT
    entry_point_count: int = 0
    line_count: int = 0

    @property
    def file_count(self) -> int:
        return len(self.sources)

    @property
    def has_entry_point(self) -> bool:
        return self.entry_point != NO_ENTRY_POINT

    @property
    def multiple_entry_points(self) -> bool:
        return self.entry_point_count > 1


def count_lines(content: str) -> int:
    """Naive line count: newline split, trailing empty pieces dropped.

    Comments and blank lines in the middle of a file are counted.
    """
    return len(content.rstrip("\n").split("\n"))


def entry_point_name(source_file: Path) -> str:
    """Compilation unit name of a source file ('Main.java' -> 'Main')."""
    return source_file.name.split(".")[0]


class SourceScanner:
    """
    Scans src/ and writes the source manifest.

    The scanner:
    1. Lists the whole src/ subtree, sorted by full path
    2. Keeps files ending in .java
    3. Reads each file once for the line count and entry point marker
    4. Writes sources.txt with one absolute path per line
    """

    def __init__(self, layout: ProjectLayout, reporter: Optional[BuildReporter] = None):
        """
        Initialize source scanner.

        Args:
            layout: Project layout (src dir and manifest location)
            reporter: Console reporter for stage output
        """
        self.layout = layout
        self.reporter = reporter or BuildReporter(enabled=False)

    def scan(self, configured_entry_point: Optional[str] = None) -> ScanResult:
        """
        Scan the source tree.

        Args:
            configured_entry_point: Entry point from jbuild.ini. When set,
                detection is skipped and this name is used as is.

        Returns:
            ScanResult with sources, entry point and counts

        Raises:
            SourceScannerError: If src/ is missing or the manifest cannot be written
        """
        self.reporter.stage("Analyzing your source tree...")

        src_dir = self.layout.src_dir
        if not src_dir.is_dir():
            raise SourceScannerError(f"No src directory found in {self.layout.project_dir}. Please create one.")

        result = ScanResult(manifest_path=self.layout.source_manifest)
        if configured_entry_point:
            result.entry_point = configured_entry_point

        for source in self._list_sources(src_dir):
            result.sources.append(source)
            content = self._read_source(source)
            result.line_count += count_lines(content)

            if configured_entry_point is None and ENTRY_POINT_MARKER in content:
                if result.entry_point_count == 0:
                    result.entry_point = entry_point_name(source)
                result.entry_point_count += 1

        self._write_manifest(result.manifest_path, result.sources)
        self._report(result, configured_entry_point is not None)
        return result

    def _list_sources(self, src_dir: Path) -> List[Path]:
        paths = sorted(src_dir.rglob("*"), key=str)
        return [
            p.absolute() for p in paths
            if p.is_file() and str(p).endswith(SOURCE_EXTENSION)
        ]

    def _read_source(self, source: Path) -> str:
        try:
            return source.read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            raise SourceScannerError(f"Failed to read {source}: {e}") from e

    def _write_manifest(self, manifest_path: Path, sources: List[Path]) -> None:
        # Rebuilt from scratch every run
        text = "".join(f"{source}\n" for source in sources)
        try:
            manifest_path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise SourceScannerError(f"Failed to write source manifest {manifest_path}: {e}") from e
        logger.debug(f"Wrote {len(sources)} entries to {manifest_path}")

    def _report(self, result: ScanResult, configured: bool) -> None:
        self.reporter.detail(f"Total of {result.file_count} source files found.")
        self.reporter.detail(
            f"Total lines of code are {result.line_count} (including whitespaces and comments)."
        )
        if result.has_entry_point:
            source = "configured" if configured else "detected"
            self.reporter.detail(f"Entry point is '{result.entry_point}' ({source}).")
            if result.multiple_entry_points:
                logger.warning(
                    f"{result.entry_point_count} entry points found, using '{result.entry_point}'"
                )
                self.reporter.detail(
                    f"Note that there are {result.entry_point_count} entry points in your program."
                )
        else:
            # Library builds have no main class
            self.reporter.detail("No entry point found.")
