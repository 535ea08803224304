"""Project directory layout for jbuild.

Layout Structure:
    <project>/
    ├── jbuild.ini              # Optional configuration
    ├── jbuild.log              # Optional build log
    ├── sources.txt             # Source manifest (transient)
    ├── bytecode_tmp.txt        # Disassembler scratch output (transient)
    ├── src/                    # Java sources (required)
    ├── libs/                   # Dependency jars (optional)
    ├── res/                    # Resource files (optional)
    └── build/
        ├── classes/            # Compiled .class files
        ├── bytecode/           # <ClassName>.bytecode listings
        ├── documentation/      # javadoc output
        ├── Manifest.txt        # Archive manifest descriptor (transient)
        ├── <program>.jar       # Pre-release artifact (transient)
        └── release/
            ├── <program>.jar
            ├── libs/
            └── res/            # Flattened resources
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List


@dataclass(frozen=True)
class ProjectLayout:
    """Fixed paths of a jbuild project, all derived from the project directory."""

    project_dir: Path
    program_name: str = "Program.jar"

    @classmethod
    def for_project(cls, project_dir: Path, program_name: str = "Program.jar") -> "ProjectLayout":
        return cls(project_dir=Path(project_dir).resolve(), program_name=program_name)

    @property
    def src_dir(self) -> Path:
        return self.project_dir / "src"

    @property
    def libs_dir(self) -> Path:
        return self.project_dir / "libs"

    @property
    def res_dir(self) -> Path:
        return self.project_dir / "res"

    @property
    def source_manifest(self) -> Path:
        return self.project_dir / "sources.txt"

    @property
    def bytecode_scratch(self) -> Path:
        return self.project_dir / "bytecode_tmp.txt"

    @property
    def log_file(self) -> Path:
        return self.project_dir / "jbuild.log"

    @property
    def build_dir(self) -> Path:
        return self.project_dir / "build"

    @property
    def classes_dir(self) -> Path:
        return self.build_dir / "classes"

    @property
    def bytecode_dir(self) -> Path:
        return self.build_dir / "bytecode"

    @property
    def documentation_dir(self) -> Path:
        return self.build_dir / "documentation"

    @property
    def release_dir(self) -> Path:
        return self.build_dir / "release"

    @property
    def manifest_descriptor(self) -> Path:
        return self.build_dir / "Manifest.txt"

    @property
    def artifact_path(self) -> Path:
        return self.build_dir / self.program_name

    def dependency_archives(self) -> List[Path]:
        """
        List dependency jars in libs/, sorted by name.

        Returns an empty list when libs/ does not exist.
        """
        if not self.libs_dir.is_dir():
            return []
        return sorted(
            (p for p in self.libs_dir.iterdir() if p.is_file() and p.suffix.lower() == ".jar"),
            key=lambda p: p.name
        )

    def dependency_names(self) -> List[str]:
        return [p.name for p in self.dependency_archives()]

    def class_files(self) -> List[Path]:
        """All compiled .class files under build/classes in lexicographic order."""
        if not self.classes_dir.is_dir():
            return []
        return sorted(
            (p for p in self.classes_dir.rglob("*.class") if p.is_file()),
            key=str
        )
