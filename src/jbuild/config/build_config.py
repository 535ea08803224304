"""
jbuild.ini configuration parser.

This module parses the optional jbuild.ini file in a project directory and
turns it into an immutable BuildConfig that is handed to every build stage.
"""

import configparser
import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

# Written in place of a value to mean "not set, use the default"
UNSET = "---"

CONFIG_FILE_NAME = "jbuild.ini"

VALID_MODES = ("debug", "release")

TOOL_NAMES = ("javac", "javap", "jar", "java", "javadoc")

BUILD_KEYS = (
    "program_name",
    "entry_point",
    "mode",
    "encoding",
    "documentation",
    "bytecode_details",
    "run_after_build",
    "simple_output",
    "log",
)


class BuildConfigError(Exception):
    """Exception raised for jbuild.ini configuration errors."""

    pass


@dataclass(frozen=True)
class ToolPaths:
    """Configured executable overrides; None means resolve from PATH."""

    javac: Optional[str] = None
    javap: Optional[str] = None
    jar: Optional[str] = None
    java: Optional[str] = None
    javadoc: Optional[str] = None

    def get(self, tool_name: str) -> Optional[str]:
        return getattr(self, tool_name)


@dataclass(frozen=True)
class BuildConfig:
    """
    Immutable build settings.

    Example jbuild.ini:
        [build]
        program_name = Game.jar
        mode = release

        [tools]
        javac = /opt/jdk-17/bin/javac

    Usage:
        config = BuildConfig.load(Path("."))
        config.mode  # 'release'
    """

    program_name: str = "Program.jar"
    entry_point: Optional[str] = None
    mode: str = "debug"
    encoding: str = "UTF-8"
    documentation: bool = False
    bytecode_details: bool = True
    run_after_build: bool = False
    simple_output: bool = False
    log: bool = False
    tools: ToolPaths = field(default_factory=ToolPaths)

    @classmethod
    def load(cls, project_dir: Path) -> "BuildConfig":
        """
        Load configuration from project_dir/jbuild.ini.

        A missing file is not an error; defaults are used.

        Args:
            project_dir: Project root directory

        Returns:
            BuildConfig with file values applied over defaults

        Raises:
            BuildConfigError: If the file cannot be parsed or a value is invalid
        """
        ini_path = Path(project_dir) / CONFIG_FILE_NAME
        if not ini_path.exists():
            return cls()
        return cls.from_file(ini_path)

    @classmethod
    def from_file(cls, ini_path: Path) -> "BuildConfig":
        parser = configparser.ConfigParser(interpolation=None)
        try:
            parser.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise BuildConfigError(f"Failed to parse {ini_path}: {e}") from e

        build = dict(parser["build"]) if parser.has_section("build") else {}
        tools = dict(parser["tools"]) if parser.has_section("tools") else {}
        return cls.from_dict(build, tools)

    @classmethod
    def from_dict(
        cls,
        build: Dict[str, str],
        tools: Optional[Dict[str, str]] = None
    ) -> "BuildConfig":
        """
        Build a validated config from raw [build] and [tools] values.

        Raises:
            BuildConfigError: On invalid values or unknown keys
        """
        defaults = cls()
        values = {k.lower(): v.strip() for k, v in build.items()}
        for key in values:
            if key not in BUILD_KEYS:
                raise BuildConfigError(
                    f"Unknown key '{key}' in [build]. "
                    + f"Known keys: {', '.join(BUILD_KEYS)}"
                )

        mode = values.get("mode", defaults.mode)
        if mode.lower() not in VALID_MODES:
            raise BuildConfigError(
                f"Mode can only be set to 'debug' or 'release', got '{mode}'"
            )

        config = cls(
            program_name=_optional(values.get("program_name")) or defaults.program_name,
            entry_point=_optional(values.get("entry_point")),
            mode=mode.lower(),
            encoding=_optional(values.get("encoding")) or defaults.encoding,
            documentation=_yes_no(values, "documentation", defaults.documentation),
            bytecode_details=_yes_no(values, "bytecode_details", defaults.bytecode_details),
            run_after_build=_yes_no(values, "run_after_build", defaults.run_after_build),
            simple_output=_yes_no(values, "simple_output", defaults.simple_output),
            log=_yes_no(values, "log", defaults.log),
            tools=_parse_tools(tools or {}),
        )
        return config

    def with_overrides(
        self,
        mode: Optional[str] = None,
        run_after_build: Optional[bool] = None,
        simple_output: Optional[bool] = None
    ) -> "BuildConfig":
        """Return a copy with command-line overrides applied."""
        changes: Dict[str, object] = {}
        if mode is not None:
            if mode.lower() not in VALID_MODES:
                raise BuildConfigError(
                    f"Mode can only be set to 'debug' or 'release', got '{mode}'"
                )
            changes["mode"] = mode.lower()
        if run_after_build is not None:
            changes["run_after_build"] = run_after_build
        if simple_output is not None:
            changes["simple_output"] = simple_output
        return dataclasses.replace(self, **changes)


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == UNSET:
        return None
    return value


def _yes_no(values: Dict[str, str], key: str, default: bool) -> bool:
    raw = values.get(key)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered == "yes":
        return True
    if lowered == "no":
        return False
    raise BuildConfigError(f"{key} can only be set to 'yes' or 'no', got '{raw}'")


def _parse_tools(tools: Dict[str, str]) -> ToolPaths:
    overrides: Dict[str, Optional[str]] = {}
    for key, raw in tools.items():
        name = key.lower()
        if name not in TOOL_NAMES:
            raise BuildConfigError(
                f"Unknown tool '{key}' in [tools]. "
                + f"Known tools: {', '.join(TOOL_NAMES)}"
            )
        value = _optional(raw)
        if value is not None and not Path(value).exists():
            raise BuildConfigError(f"Specified {name} executable does not exist: {value}")
        overrides[name] = value
    return ToolPaths(**overrides)
