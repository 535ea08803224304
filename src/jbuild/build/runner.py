"""Run the released program after a successful build."""

import logging

from ..config import ProjectLayout
from .tool_invoker import ToolInvoker, ToolResult

logger = logging.getLogger(__name__)


class ProgramRunner:
    """Launches `java -ea -jar <program>` from build/release with live output."""

    def __init__(self, invoker: ToolInvoker, java: str, layout: ProjectLayout):
        self.invoker = invoker
        self.java = java
        self.layout = layout

    def run(self) -> ToolResult:
        """
        Run the program and echo its output as it arrives.

        Raises:
            ToolInvocationError: If the JVM cannot be started
        """
        cmd = [self.java, "-ea", "-jar", self.layout.program_name]
        result = self.invoker.run(cmd, cwd=self.layout.release_dir, echo=True)
        if not result.success:
            logger.info(f"Program exited with code {result.returncode}")
        return result
