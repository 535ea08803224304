"""
javac wrapper for compiling the source manifest.

This module builds the javac command line (classpath, debug flag, output
directory, encoding), runs it through the ToolInvoker and counts the
generated class files.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..config import BuildConfigError, ProjectLayout
from .build_utils import BuildReporter
from .stage import BuildStageError
from .tool_invoker import ToolInvoker, ToolResult

logger = logging.getLogger(__name__)

# At most this many errors are reported by javac
MAX_ERRORS = 5

DEBUG_FLAGS = {
    "debug": "-g",
    "release": "-g:none",
}


class CompilerError(BuildStageError):
    """Raised when javac fails or its output directory cannot be prepared."""
    pass


@dataclass
class CompileResult:
    """Result of compiling the source manifest."""

    tool_result: ToolResult
    class_count: int = 0
    anonymous_class_count: int = 0

    @property
    def success(self) -> bool:
        return self.tool_result.success

    @property
    def output(self) -> str:
        return self.tool_result.output


def default_path_separator() -> str:
    """Classpath separator of the host platform."""
    return ";" if os.name == "nt" else ":"


def build_classpath(dependency_names: Sequence[str], separator: str) -> Optional[str]:
    """
    Join dependency jar names into a javac classpath.

    Example:
        build_classpath(["A.jar", "B.jar"], ":")  # 'libs/A.jar:libs/B.jar'

    Returns:
        The classpath string, or None when there are no dependencies
    """
    if not dependency_names:
        return None
    return separator.join(f"libs/{name}" for name in dependency_names)


def debug_flag(mode: str) -> str:
    """
    Map the build mode to javac's debug information flag.

    Raises:
        BuildConfigError: If mode is neither 'debug' nor 'release'
    """
    flag = DEBUG_FLAGS.get(mode.lower())
    if flag is None:
        raise BuildConfigError(f"Mode can only be set to 'debug' or 'release', got '{mode}'")
    return flag


class Compiler:
    """
    Wrapper for javac.

    The whole program is compiled in one invocation from the source manifest
    (javac @sources.txt). Success is decided by javac's exit code only.
    """

    def __init__(
        self,
        invoker: ToolInvoker,
        javac: str,
        layout: ProjectLayout,
        encoding: str = "UTF-8",
        path_separator: Optional[str] = None,
        reporter: Optional[BuildReporter] = None
    ):
        """
        Initialize compiler.

        Args:
            invoker: Tool invoker used to run javac
            javac: javac executable
            layout: Project layout
            encoding: Source file encoding passed to javac
            path_separator: Classpath separator (defaults to the host's)
            reporter: Console reporter for stage output
        """
        self.invoker = invoker
        self.javac = javac
        self.layout = layout
        self.encoding = encoding
        self.path_separator = path_separator or default_path_separator()
        self.reporter = reporter or BuildReporter(enabled=False)

    def build_command(
        self,
        manifest_path: Path,
        dependency_names: Sequence[str],
        mode: str
    ) -> List[str]:
        """
        Build the javac command line.

        Raises:
            BuildConfigError: If mode is invalid
        """
        flag = debug_flag(mode)
        cmd = [self.javac]

        classpath = build_classpath(dependency_names, self.path_separator)
        if classpath is not None:
            cmd.extend(["-classpath", classpath])

        cmd.append(f"@{manifest_path}")
        cmd.extend([
            "-Xdiags:verbose",
            "-Xlint:deprecation",
            "-Xmaxerrs", str(MAX_ERRORS),
            "-nowarn",
            flag,
            "-d", str(self.layout.classes_dir),
            "-encoding", self.encoding,
        ])
        return cmd

    def compile(
        self,
        manifest_path: Path,
        dependency_names: Sequence[str],
        mode: str
    ) -> CompileResult:
        """
        Compile every source listed in the manifest.

        Args:
            manifest_path: Path to sources.txt
            dependency_names: Jar names found in libs/
            mode: 'debug' or 'release'

        Returns:
            CompileResult with class file counts

        Raises:
            BuildConfigError: If mode is invalid (raised before javac runs)
            CompilerError: If javac exits non-zero or build/classes cannot be created
        """
        cmd = self.build_command(manifest_path, dependency_names, mode)
        self.reporter.stage(f"Parsing and emitting bytecode instructions ({mode.lower()})...")

        try:
            self.layout.classes_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CompilerError(f"Failed to create classes directory: {e}") from e

        # Run from the project dir so libs/ entries on the classpath resolve
        tool_result = self.invoker.run(cmd, cwd=self.layout.project_dir)

        if not tool_result.success:
            self.reporter.detail("COMPILATION ERROR")
            raise CompilerError(
                f"javac exited with code {tool_result.returncode}",
                output=tool_result.output
            )

        class_count, anonymous_count = self.count_class_files()
        self.reporter.detail(f"Created {class_count} class files.")
        self.reporter.detail(f"Created {anonymous_count} anonymous class files.")

        return CompileResult(
            tool_result=tool_result,
            class_count=class_count,
            anonymous_class_count=anonymous_count
        )

    def count_class_files(self) -> Tuple[int, int]:
        """
        Count generated class files.

        Returns:
            (top-level class count, anonymous/inner class count); names
            containing '$' are synthetic
        """
        top_level = 0
        anonymous = 0
        for class_file in self.layout.class_files():
            if "$" in class_file.name:
                anonymous += 1
            else:
                top_level += 1
        return top_level, anonymous
