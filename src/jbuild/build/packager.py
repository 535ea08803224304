"""Executable jar packaging.

This module writes the archive manifest descriptor and runs the jar tool over
build/classes to produce the runnable artifact.

Design:
    - Packaged layout (any subdirectory in build/classes): every class file is
      listed explicitly and the entry point is resolved to its dotted name
    - Unpackaged layout: a *.class wildcard is passed instead of a file list
    - The "no entry point" sentinel is passed through unchanged
    - A missing or empty artifact means the archiver failed
"""

import glob
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from ..config import ProjectLayout
from .build_utils import BuildReporter, format_kb
from .source_scanner import NO_ENTRY_POINT
from .stage import BuildStageError
from .tool_invoker import ToolInvocationError, ToolInvoker

logger = logging.getLogger(__name__)

CLASS_WILDCARD = "*.class"

# Created-By value when the compiler version cannot be queried
FALLBACK_CREATED_BY = "java"


class PackagerError(BuildStageError):
    """Raised when the executable jar cannot be created."""
    pass


@dataclass
class PackageResult:
    """Result of packaging the compiled classes."""

    artifact_path: Path
    size: int
    uses_packages: bool


def build_manifest_text(dependency_names: Sequence[str], created_by: str) -> str:
    """
    Build the archive manifest descriptor.

    Example:
        Manifest-Version: 1.0
        Class-Path: libs/A.jar libs/B.jar
        Created-By: javac 17.0.2
    """
    lines = ["Manifest-Version: 1.0"]
    if dependency_names:
        lines.append("Class-Path: " + " ".join(f"libs/{name}" for name in dependency_names))
    lines.append(f"Created-By: {created_by}")
    return "".join(f"{line}\n" for line in lines)


def uses_packages(classes_dir: Path) -> bool:
    """True when compiled output is organised in package directories."""
    if not classes_dir.is_dir():
        return False
    return any(child.is_dir() for child in classes_dir.iterdir())


def qualified_class_name(class_file: Path, classes_dir: Path) -> str:
    """'build/classes/com/acme/Main.class' -> 'com.acme.Main'."""
    relative = class_file.relative_to(classes_dir)
    return ".".join(relative.with_suffix("").parts)


class Packager:
    """Wrapper for the jar tool."""

    def __init__(
        self,
        invoker: ToolInvoker,
        jar: str,
        javac: str,
        layout: ProjectLayout,
        reporter: Optional[BuildReporter] = None
    ):
        """
        Initialize packager.

        Args:
            invoker: Tool invoker used to run jar and javac -version
            jar: jar executable
            javac: javac executable (queried for the Created-By line)
            layout: Project layout
            reporter: Console reporter for stage output
        """
        self.invoker = invoker
        self.jar = jar
        self.javac = javac
        self.layout = layout
        self.reporter = reporter or BuildReporter(enabled=False)

    def compiler_version(self) -> str:
        """Output of `javac -version`, or 'java' if javac cannot be started."""
        try:
            result = self.invoker.run([self.javac, "-version"])
        except ToolInvocationError as e:
            logger.debug(f"Could not query compiler version: {e}")
            return FALLBACK_CREATED_BY
        return result.output.strip() or FALLBACK_CREATED_BY

    def build_command(self, entry_point: str, class_files: Sequence[Path]) -> List[str]:
        """
        Build the jar command line, run from build/classes.

        Raises:
            PackagerError: If a named entry point has no matching class file
        """
        classes_dir = self.layout.classes_dir
        cmd = [
            self.jar,
            "cfme",
            f"../{self.layout.program_name}",
            f"../{self.layout.manifest_descriptor.name}",
        ]

        if not uses_packages(classes_dir):
            cmd.extend([entry_point, CLASS_WILDCARD])
            return cmd

        cmd.append(self.resolve_entry_point(entry_point, class_files))
        cmd.extend(str(f.relative_to(classes_dir)) for f in class_files)
        return cmd

    def resolve_entry_point(self, entry_point: str, class_files: Sequence[Path]) -> str:
        if entry_point == NO_ENTRY_POINT:
            return entry_point

        wanted = f"{entry_point}.class"
        for class_file in class_files:
            if class_file.name == wanted:
                return qualified_class_name(class_file, self.layout.classes_dir)
        raise PackagerError(f"Main class '{entry_point}' does not exist.")

    def package(self, entry_point: str, dependency_names: Sequence[str]) -> PackageResult:
        """
        Create build/<program> from build/classes.

        Args:
            entry_point: Entry point name or NO_ENTRY_POINT
            dependency_names: Jar names found in libs/

        Returns:
            PackageResult with artifact path and size

        Raises:
            PackagerError: If jar fails or produces an empty artifact
        """
        self.reporter.stage("Building executable...")

        manifest_text = build_manifest_text(dependency_names, self.compiler_version())
        try:
            self.layout.manifest_descriptor.write_text(manifest_text, encoding="utf-8")
        except OSError as e:
            raise PackagerError(f"Failed to write manifest descriptor: {e}") from e

        classes_dir = self.layout.classes_dir
        class_files = self.layout.class_files()
        packaged = uses_packages(classes_dir)
        cmd = self.build_command(entry_point, class_files)
        if packaged:
            self.reporter.detail("Java packages are used.")
        else:
            self.reporter.detail("No java packages are used.")
            cmd = self._expand_wildcard(cmd, classes_dir)

        result = self.invoker.run(cmd, cwd=classes_dir)
        if not result.success:
            raise PackagerError(
                f"jar exited with code {result.returncode}",
                output=result.output
            )

        artifact = self.layout.artifact_path
        size = artifact.stat().st_size if artifact.is_file() else 0
        if size == 0:
            raise PackagerError("Failed to create executable.", output=result.output)

        self.reporter.detail(f"Size of executable is {format_kb(size)}")
        return PackageResult(artifact_path=artifact, size=size, uses_packages=packaged)

    def _expand_wildcard(self, cmd: List[str], classes_dir: Path) -> List[str]:
        # The Windows java launcher expands wildcards itself; elsewhere that
        # is the shell's job and no shell is involved here.
        if os.name == "nt" or CLASS_WILDCARD not in cmd:
            return cmd
        index = cmd.index(CLASS_WILDCARD)
        matches = sorted(glob.glob(CLASS_WILDCARD, root_dir=str(classes_dir)))
        return cmd[:index] + (matches or [CLASS_WILDCARD]) + cmd[index + 1:]
