"""External tool invocation.

This module runs the JDK executables (javac, javap, jar, javadoc, java) as
child processes and hands their merged stdout/stderr back as text.

Design:
    - stderr is always merged into stdout
    - Output can be redirected to a file (read back afterwards) or captured
      line by line in memory, optionally echoed live
    - No timeout: the call blocks until the child exits
    - A child that cannot be started is a ToolInvocationError, never retried
    - On KeyboardInterrupt the whole child process tree is terminated
"""

import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import psutil

from ..interrupt_utils import handle_keyboard_interrupt_properly
from .stage import BuildStageError

logger = logging.getLogger(__name__)


class ToolInvocationError(BuildStageError):
    """Raised when an external tool cannot be started."""
    pass


@dataclass
class ToolResult:
    """Captured output and exit status of one tool run."""

    output: str
    returncode: int

    @property
    def success(self) -> bool:
        return self.returncode == 0


def resolve_executable(override: Optional[str], default_name: str) -> str:
    """Pick the executable for a tool.

    Args:
        override: Configured path, or None to use the environment
        default_name: Executable name looked up on PATH (e.g. "javac")

    Returns:
        The string to use as argv[0]
    """
    if override:
        return override
    return shutil.which(default_name) or default_name


def terminate_process_tree(pid: int) -> int:
    """Terminate a process and all of its children.

    Returns:
        Number of processes signalled
    """
    try:
        root = psutil.Process(pid)
    except psutil.NoSuchProcess:
        return 0

    processes = root.children(recursive=True) + [root]
    signalled = 0
    for proc in processes:
        try:
            proc.terminate()
            signalled += 1
        except psutil.NoSuchProcess:
            pass

    _gone, alive = psutil.wait_procs(processes, timeout=3)
    for proc in alive:
        try:
            proc.kill()
            logger.warning(f"Force killed stubborn process {proc.pid}")
        except psutil.NoSuchProcess:
            pass
    return signalled


class ToolInvoker:
    """Runs external tools synchronously with merged output capture."""

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Path] = None,
        output_file: Optional[Path] = None,
        echo: bool = False
    ) -> ToolResult:
        """Run a tool and wait for it to exit.

        Args:
            args: Executable followed by its arguments
            cwd: Working directory for the child (None keeps ours)
            output_file: If given, the merged output is written to this file
                and read back once the child exits
            echo: Print each output line as it arrives (in-memory mode only)

        Returns:
            ToolResult with the full output text and exit code

        Raises:
            ToolInvocationError: If the process cannot be started
        """
        cmd = [str(arg) for arg in args]
        logger.debug(f"Running: {' '.join(cmd)} (cwd={cwd or '.'})")

        if output_file is not None:
            return self._run_to_file(cmd, cwd, Path(output_file))
        return self._run_captured(cmd, cwd, echo)

    def _run_to_file(self, cmd: List[str], cwd: Optional[Path], output_file: Path) -> ToolResult:
        with open(output_file, "wb") as out:
            process = self._start(cmd, cwd, stdout=out)
            returncode = self._wait(process)

        output = output_file.read_bytes().decode("utf-8", errors="replace")
        logger.debug(f"{Path(cmd[0]).name} exited with {returncode}")
        return ToolResult(output=output, returncode=returncode)

    def _run_captured(self, cmd: List[str], cwd: Optional[Path], echo: bool) -> ToolResult:
        process = self._start(cmd, cwd, stdout=subprocess.PIPE)
        lines: List[str] = []
        try:
            assert process.stdout is not None
            for raw in process.stdout:
                line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                if echo:
                    print(line)
                    sys.stdout.flush()
                lines.append(line + "\n")
        except KeyboardInterrupt as ke:
            terminate_process_tree(process.pid)
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker
        finally:
            if process.stdout is not None:
                process.stdout.close()

        returncode = self._wait(process)
        logger.debug(f"{Path(cmd[0]).name} exited with {returncode}")
        return ToolResult(output="".join(lines), returncode=returncode)

    def _start(self, cmd: List[str], cwd: Optional[Path], stdout) -> subprocess.Popen:
        try:
            return subprocess.Popen(
                cmd,
                cwd=str(cwd) if cwd else None,
                stdout=stdout,
                stderr=subprocess.STDOUT,
            )
        except OSError as e:
            raise ToolInvocationError(f"Failed to start '{cmd[0]}': {e}") from e

    def _wait(self, process: subprocess.Popen) -> int:
        try:
            return process.wait()
        except KeyboardInterrupt as ke:
            terminate_process_tree(process.pid)
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker
