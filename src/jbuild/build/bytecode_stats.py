"""Bytecode statistics from javap listings.

This module runs javap over the compiled classes and derives developer-facing
counts (instructions, method calls, field writes, allocations) plus one
readable listing per class.

Design:
    - Best-effort heuristic: the listing is classified line by line, it is
      not parsed as a grammar
    - parse_listing() is pure so it can be tested against captured output
    - The stage never gates the build; the orchestrator runs it as DEGRADED
    - The javap scratch file is always removed
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from tqdm import tqdm

from ..config import ProjectLayout
from .build_utils import BuildReporter
from .stage import BuildStageError
from .tool_invoker import ToolInvoker

logger = logging.getLogger(__name__)

SEGMENT_MARKER = "Compiled from"

BYTECODE_SUFFIX = ".bytecode"


class BytecodeStatsError(BuildStageError):
    """Raised when the bytecode listing cannot be produced or written."""
    pass


@dataclass
class BytecodeStats:
    """Counters and per-class listings extracted from javap output."""

    instruction_count: int = 0
    method_call_count: int = 0
    field_write_count: int = 0
    allocation_count: int = 0
    classes: Dict[str, str] = field(default_factory=dict)


def _classify_instructions(lines: List[str], stats: BytecodeStats) -> None:
    for line in lines:
        if ":" not in line or line.lower() in ("code", "table"):
            continue
        stats.instruction_count += 1

        stripped = line.strip()
        if "Code:" in stripped:
            continue
        tokens = stripped.split()
        if len(tokens) < 2:
            continue
        op = tokens[1]
        if op == "new":
            stats.allocation_count += 1
        elif "invoke" in op:
            stats.method_call_count += 1
        elif op == "putfield":
            stats.field_write_count += 1


def _declared_name(lines: List[str]) -> Optional[str]:
    """Name following 'class' or 'interface' on the first line mentioning either."""
    for line in lines:
        if "class" in line or "interface" in line:
            words = line.split()
            for i, word in enumerate(words):
                if word in ("class", "interface") and i + 1 < len(words):
                    return words[i + 1]
            # Only the first candidate line is considered
            return None
    return None


def parse_listing(text: str) -> BytecodeStats:
    """
    Parse combined `javap -c -p` output.

    Args:
        text: Full listing for any number of class files

    Returns:
        BytecodeStats with counters and a class name -> listing mapping.
        Segments without a class or interface declaration are skipped.
    """
    stats = BytecodeStats()
    _classify_instructions(text.splitlines(), stats)

    for segment in text.split(SEGMENT_MARKER):
        if not segment.strip():
            continue
        lines = segment.splitlines()
        name = _declared_name(lines)
        if name is None:
            continue
        # First line is the rest of 'Compiled from "Foo.java"'
        stats.classes[name] = "".join(f"{line}\n" for line in lines[1:])

    return stats


def bytecode_file_name(class_name: str) -> str:
    """File name for a class listing; generic brackets are not valid in file names."""
    return class_name.replace("<", "").replace(">", "") + BYTECODE_SUFFIX


class BytecodeStatsExtractor:
    """Runs javap once over all class files and writes per-class listings."""

    def __init__(
        self,
        invoker: ToolInvoker,
        javap: str,
        layout: ProjectLayout,
        reporter: Optional[BuildReporter] = None,
        show_progress: bool = False
    ):
        """
        Initialize extractor.

        Args:
            invoker: Tool invoker used to run javap
            javap: javap executable
            layout: Project layout (scratch file and bytecode dir)
            reporter: Console reporter for stage output
            show_progress: Show a progress bar while writing listings
        """
        self.invoker = invoker
        self.javap = javap
        self.layout = layout
        self.reporter = reporter or BuildReporter(enabled=False)
        self.show_progress = show_progress

    def extract(self, class_files: Sequence[Path]) -> BytecodeStats:
        """
        Disassemble class files and write <ClassName>.bytecode listings.

        Args:
            class_files: Compiled class files

        Returns:
            BytecodeStats for the whole program

        Raises:
            BytecodeStatsError: If javap fails or listings cannot be written
        """
        self.reporter.stage("Generating readable bytecode files for easier debugging...")

        try:
            self.layout.bytecode_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BytecodeStatsError(f"Failed to create bytecode directory: {e}") from e

        scratch = self.layout.bytecode_scratch
        try:
            cmd = [self.javap, "-c", "-p"] + [str(Path(f).absolute()) for f in class_files]
            try:
                result = self.invoker.run(cmd, output_file=scratch)
            except OSError as e:
                raise BytecodeStatsError(f"Failed to capture javap output: {e}") from e
            if not result.success:
                raise BytecodeStatsError(
                    f"javap exited with code {result.returncode}",
                    output=result.output
                )

            stats = parse_listing(result.output)
            self.write_listings(stats)
        finally:
            self._remove_scratch(scratch)

        self.reporter.detail(f"Total of {stats.instruction_count} bytecode instructions.")
        self.reporter.detail(f"Total of {stats.method_call_count} function calls.")
        self.reporter.detail(f"Total of {stats.field_write_count} fields.")
        self.reporter.detail(
            f"Total of {stats.allocation_count} 'new' calls (likely resulting in heap allocations)."
        )
        return stats

    def write_listings(self, stats: BytecodeStats) -> List[Path]:
        """Write one listing file per class into build/bytecode."""
        written = []
        items = tqdm(
            sorted(stats.classes.items()),
            desc="Writing bytecode listings",
            unit="class",
            disable=not self.show_progress,
        )
        for class_name, listing in items:
            path = self.layout.bytecode_dir / bytecode_file_name(class_name)
            try:
                path.write_text(listing, encoding="utf-8")
            except OSError as e:
                raise BytecodeStatsError(f"Failed to write {path.name}: {e}") from e
            written.append(path)
        return written

    def _remove_scratch(self, scratch: Path) -> None:
        try:
            scratch.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Failed to delete {scratch}: {e}")
            self.reporter.detail(f"Failed to delete {scratch.name} file.")
