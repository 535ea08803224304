"""Configuration parsing modules for jbuild."""

from .build_config import (
    CONFIG_FILE_NAME,
    BuildConfig,
    BuildConfigError,
    ToolPaths,
)
from .layout import ProjectLayout

__all__ = [
    "BuildConfig",
    "BuildConfigError",
    "CONFIG_FILE_NAME",
    "ProjectLayout",
    "ToolPaths",
]
