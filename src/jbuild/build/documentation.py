"""javadoc wrapper.

Generates API documentation for every source in the manifest into
build/documentation.
"""

from pathlib import Path
from typing import Optional

from ..config import ProjectLayout
from .build_utils import BuildReporter
from .stage import BuildStageError
from .tool_invoker import ToolInvoker


class DocumentationError(BuildStageError):
    """Raised when javadoc fails."""
    pass


class DocumentationGenerator:
    """Runs javadoc over the source manifest."""

    def __init__(
        self,
        invoker: ToolInvoker,
        javadoc: str,
        layout: ProjectLayout,
        reporter: Optional[BuildReporter] = None
    ):
        self.invoker = invoker
        self.javadoc = javadoc
        self.layout = layout
        self.reporter = reporter or BuildReporter(enabled=False)

    def generate(self, manifest_path: Path) -> Path:
        """
        Generate documentation.

        Returns:
            The documentation directory

        Raises:
            DocumentationError: If the directory cannot be created or javadoc fails
        """
        self.reporter.stage("Generating JavaDoc for your project...")
        out_dir = self.layout.documentation_dir
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DocumentationError(f"Failed to create javadoc directory: {e}") from e

        cmd = [self.javadoc, f"@{manifest_path}", "-d", str(out_dir)]
        result = self.invoker.run(cmd, cwd=self.layout.project_dir)
        if not result.success:
            raise DocumentationError("Failed to generate documentation.", output=result.output)

        self.reporter.detail("Documentation generated.")
        return out_dir
