"""Release assembly.

Copies the built jar, its dependency jars and the resource files into
build/release. Resources are flattened: res/a/b/file.txt ends up as
release/res/file.txt.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..config import ProjectLayout
from .build_utils import BuildReporter, format_kb, plural
from .stage import BuildStageError

logger = logging.getLogger(__name__)


class ReleaseError(BuildStageError):
    """Raised when the release layout cannot be created."""
    pass


@dataclass
class ReleaseResult:
    """Summary of the assembled release."""

    release_dir: Path
    library_count: int = 0
    resource_count: int = 0
    total_size: Optional[int] = None


def directory_size(path: Path) -> int:
    """Sum of the sizes of every file under path."""
    total = 0
    for root, _dirs, files in os.walk(path, onerror=_raise):
        for name in files:
            total += (Path(root) / name).stat().st_size
    return total


def _raise(error: OSError) -> None:
    raise error


class ReleaseAssembler:
    """Builds the build/release directory from the packaged artifact."""

    def __init__(self, layout: ProjectLayout, reporter: Optional[BuildReporter] = None):
        self.layout = layout
        self.reporter = reporter or BuildReporter(enabled=False)

    def assemble(self, artifact_path: Path) -> ReleaseResult:
        """
        Assemble the release directory.

        Args:
            artifact_path: The packaged jar in build/

        Returns:
            ReleaseResult with counts and total size

        Raises:
            ReleaseError: If a directory or the artifact cannot be created/copied
        """
        self.reporter.stage("Packaging release...")
        release_dir = self.layout.release_dir
        self._mkdir(release_dir, "release")

        try:
            shutil.copy2(artifact_path, release_dir / artifact_path.name)
        except OSError as e:
            raise ReleaseError(f"Failed to copy executable to release directory: {e}") from e

        result = ReleaseResult(release_dir=release_dir)
        result.library_count = self._copy_libraries(release_dir / "libs")

        self._remove_transient(artifact_path)
        result.resource_count = self._copy_resources(release_dir / "res")

        try:
            result.total_size = directory_size(release_dir)
            self.reporter.detail(f"The full size of your release is {format_kb(result.total_size)}")
        except OSError as e:
            logger.warning(f"Failed to calculate release size: {e}")
            self.reporter.detail("Failed to calculate size of your release.")

        return result

    def _copy_libraries(self, target: Path) -> int:
        if not self.layout.libs_dir.is_dir():
            self.reporter.detail("Your program does not use any libraries.")
            return 0

        self._mkdir(target, "libs")
        archives = self.layout.dependency_archives()
        for archive in archives:
            try:
                shutil.copy2(archive, target / archive.name)
            except OSError as e:
                raise ReleaseError(
                    f"Failed to copy dependency {archive.name} to release/libs directory: {e}"
                ) from e
        self.reporter.detail(f"Program uses {plural(len(archives), 'library', 'libraries')}.")
        return len(archives)

    def _copy_resources(self, target: Path) -> int:
        res_dir = self.layout.res_dir
        if not res_dir.is_dir():
            self.reporter.detail("Program does not use any resource files.")
            return 0

        self._mkdir(target, "resource")
        count = 0
        for resource in sorted(res_dir.rglob("*"), key=str):
            if not resource.is_file():
                continue
            # Flattened; same-named files overwrite each other
            try:
                shutil.copy2(resource, target / resource.name)
            except OSError as e:
                raise ReleaseError(f"Failed to copy resource {resource.name}: {e}") from e
            count += 1
        self.reporter.detail("Copied all resources to the release.")
        return count

    def _remove_transient(self, artifact_path: Path) -> None:
        for path in (self.layout.manifest_descriptor, artifact_path):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to delete {path}: {e}")

    def _mkdir(self, path: Path, label: str) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ReleaseError(f"Failed to create {label} directory: {e}") from e
