"""Build directory preparation.

Every build starts from an empty build/ directory: it is created when
missing, otherwise everything inside it is removed.
"""

import logging
import shutil
from typing import Optional

from ..config import ProjectLayout
from .build_utils import BuildReporter
from .stage import BuildStageError

logger = logging.getLogger(__name__)


class BuildDirError(BuildStageError):
    """Raised when build/ cannot be created or cleaned."""
    pass


def prepare_build_dir(layout: ProjectLayout, reporter: Optional[BuildReporter] = None) -> int:
    """
    Create or empty the build directory.

    Returns:
        Number of files deleted (0 when the directory was just created)

    Raises:
        BuildDirError: If the directory cannot be created or cleaned
    """
    reporter = reporter or BuildReporter(enabled=False)
    build_dir = layout.build_dir

    if not build_dir.exists():
        reporter.stage("Creating build directory...")
        try:
            build_dir.mkdir(parents=True)
        except OSError as e:
            raise BuildDirError(f"Failed to create build directory: {e}") from e
        reporter.detail("Creation successfully.")
        return 0

    reporter.stage("Cleaning build directory...")
    deleted = 0
    try:
        for child in sorted(build_dir.iterdir()):
            if child.is_dir() and not child.is_symlink():
                deleted += sum(1 for p in child.rglob("*") if p.is_file())
                shutil.rmtree(child)
            else:
                child.unlink()
                deleted += 1
    except OSError as e:
        raise BuildDirError(f"Failed to clean the build directory: {e}") from e

    logger.debug(f"Removed {deleted} files from {build_dir}")
    if deleted == 0:
        reporter.detail("Nothing to delete.")
    else:
        reporter.detail(f"Deleted {deleted} files.")
    return deleted
