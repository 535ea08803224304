"""
Build orchestration for jbuild projects.

This module coordinates the entire build, from preparing build/ to assembling
build/release. It integrates all build system components:
- Build directory preparation
- Source scanning and manifest generation
- Documentation (javadoc, optional)
- Compilation (javac)
- Bytecode statistics (javap, optional, never fails the build)
- Packaging (jar)
- Release assembly
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..build_log import BuildLog
from ..config import BuildConfig, BuildConfigError, ProjectLayout
from ..config.build_config import TOOL_NAMES
from .build_dir import prepare_build_dir
from .build_utils import BuildReporter
from .bytecode_stats import BytecodeStats, BytecodeStatsExtractor
from .compiler import CompileResult, Compiler
from .documentation import DocumentationGenerator
from .packager import PackageResult, Packager
from .release import ReleaseAssembler, ReleaseResult
from .runner import ProgramRunner
from .source_scanner import ScanResult, SourceScanner
from .stage import BuildStageError, PipelineStage, StagePolicy
from .tool_invoker import ToolInvocationError, ToolInvoker, resolve_executable

logger = logging.getLogger(__name__)


class BuildOrchestratorError(BuildStageError):
    """Raised when a stage runs without the results it depends on."""
    pass


@dataclass
class BuildContext:
    """Results accumulated while the pipeline runs, one per build."""

    config: BuildConfig
    layout: ProjectLayout
    deleted_files: int = 0
    scan: Optional[ScanResult] = None
    compile: Optional[CompileResult] = None
    bytecode: Optional[BytecodeStats] = None
    package: Optional[PackageResult] = None
    release: Optional[ReleaseResult] = None
    degraded_stages: List[str] = field(default_factory=list)


@dataclass
class BuildResult:
    """Result of a complete build operation."""

    success: bool
    build_time: float
    message: str
    output: str = ""
    failed_stage: Optional[str] = None
    context: Optional[BuildContext] = None


class PipelineOrchestrator:
    """
    Orchestrates the complete build of a Java project.

    The pipeline is an ordered list of stages (see stages()):
    1. prepare        create or empty build/                 (fatal)
    2. scan           list sources, write sources.txt        (fatal)
    3. documentation  javadoc, when enabled                  (fatal)
    4. compile        javac @sources.txt                     (fatal)
    5. bytecode       javap statistics, when enabled         (degraded)
    6. package        jar cfme                               (fatal)
    7. release        build/release layout                   (fatal)

    Example usage:
        config = BuildConfig.load(Path("."))
        orchestrator = PipelineOrchestrator(config, ProjectLayout.for_project(Path(".")))
        result = orchestrator.build()
        if result.success and config.run_after_build:
            orchestrator.run_program()
    """

    def __init__(
        self,
        config: BuildConfig,
        layout: ProjectLayout,
        invoker: Optional[ToolInvoker] = None,
        verbose: bool = False,
        path_separator: Optional[str] = None
    ):
        """
        Initialize build orchestrator.

        Args:
            config: Immutable build configuration
            layout: Project layout
            invoker: Tool invoker (a new ToolInvoker by default)
            verbose: Show progress bars and debug details
            path_separator: Classpath separator override (host default if None)
        """
        self.config = config
        self.layout = layout
        self.invoker = invoker or ToolInvoker()
        self.verbose = verbose
        self.path_separator = path_separator
        self.reporter = BuildReporter(enabled=not config.simple_output)
        self.executables: Dict[str, str] = {
            name: resolve_executable(config.tools.get(name), name) for name in TOOL_NAMES
        }

    def stages(self) -> List[PipelineStage]:
        """The build pipeline, in execution order."""
        return [
            PipelineStage("prepare", self._prepare),
            PipelineStage("scan", self._scan),
            PipelineStage(
                "documentation", self._document,
                enabled=lambda config: config.documentation
            ),
            PipelineStage("compile", self._compile),
            PipelineStage(
                "bytecode", self._bytecode,
                policy=StagePolicy.DEGRADED,
                enabled=lambda config: config.bytecode_details
            ),
            PipelineStage("package", self._package),
            PipelineStage("release", self._release),
        ]

    def describe_tools(self) -> List[str]:
        """One line per tool saying whether the global or a configured executable is used."""
        lines = []
        for name in TOOL_NAMES:
            override = self.config.tools.get(name)
            if override:
                lines.append(f"Using following {name} executable: {override}")
            else:
                lines.append(f"Using your global {name} executable.")
        return lines

    def build(self) -> BuildResult:
        """
        Execute the pipeline.

        Stops at the first failing fatal stage; degraded stage failures are
        reported and skipped. Transient files are removed on every path.

        Returns:
            BuildResult with build status, failing stage output and timing
        """
        start_time = time.time()
        context = BuildContext(config=self.config, layout=self.layout)
        current = None

        try:
            for stage in self.stages():
                if not stage.enabled(self.config):
                    logger.debug(f"Skipping disabled stage '{stage.name}'")
                    continue
                current = stage.name
                self._run_stage(stage, context)
                self.reporter.blank()

            result = BuildResult(
                success=True,
                build_time=time.time() - start_time,
                message="Build successful",
                context=context
            )

        except (BuildStageError, BuildConfigError) as e:
            logger.debug(f"Stage '{current}' failed: {e}")
            result = BuildResult(
                success=False,
                build_time=time.time() - start_time,
                message=str(e),
                output=getattr(e, "output", ""),
                failed_stage=current,
                context=context
            )
        except Exception as e:
            logger.exception(f"Unexpected error in stage '{current}'")
            result = BuildResult(
                success=False,
                build_time=time.time() - start_time,
                message=f"Unexpected error: {e}",
                failed_stage=current,
                context=context
            )
        finally:
            self._remove_transient_files()

        self._record_history(result)
        return result

    def run_program(self) -> int:
        """
        Run the released program with live output.

        Never changes the build outcome.

        Returns:
            The program's exit code (-1 if the JVM could not be started)
        """
        print()
        print("Running your program after the build...")
        print("----------")
        runner = ProgramRunner(self.invoker, self.executables["java"], self.layout)
        try:
            result = runner.run()
        except ToolInvocationError as e:
            print(f"Failed to run your program because of '{e}'")
            return -1
        if not result.success:
            print("Failed to run your program.")
        return result.returncode

    def _run_stage(self, stage: PipelineStage, context: BuildContext) -> None:
        try:
            stage.run(context)
        except BuildStageError as e:
            if stage.is_fatal:
                raise
            logger.warning(f"Stage '{stage.name}' failed and was skipped: {e}")
            if e.output:
                logger.debug(e.output)
            self.reporter.detail(f"Skipped: {e}")
            context.degraded_stages.append(stage.name)

    # Stages

    def _prepare(self, context: BuildContext) -> None:
        context.deleted_files = prepare_build_dir(self.layout, self.reporter)

    def _scan(self, context: BuildContext) -> None:
        scanner = SourceScanner(self.layout, self.reporter)
        context.scan = scanner.scan(configured_entry_point=self.config.entry_point)

    def _document(self, context: BuildContext) -> None:
        scan = self._require(context.scan, "documentation", "scan")
        generator = DocumentationGenerator(
            self.invoker, self.executables["javadoc"], self.layout, self.reporter
        )
        generator.generate(scan.manifest_path)

    def _compile(self, context: BuildContext) -> None:
        scan = self._require(context.scan, "compile", "scan")
        compiler = Compiler(
            self.invoker,
            self.executables["javac"],
            self.layout,
            encoding=self.config.encoding,
            path_separator=self.path_separator,
            reporter=self.reporter
        )
        context.compile = compiler.compile(
            scan.manifest_path, self.layout.dependency_names(), self.config.mode
        )

    def _bytecode(self, context: BuildContext) -> None:
        self._require(context.compile, "bytecode", "compile")
        extractor = BytecodeStatsExtractor(
            self.invoker,
            self.executables["javap"],
            self.layout,
            reporter=self.reporter,
            show_progress=self.verbose
        )
        context.bytecode = extractor.extract(self.layout.class_files())

    def _package(self, context: BuildContext) -> None:
        scan = self._require(context.scan, "package", "scan")
        self._require(context.compile, "package", "compile")
        packager = Packager(
            self.invoker,
            self.executables["jar"],
            self.executables["javac"],
            self.layout,
            self.reporter
        )
        context.package = packager.package(scan.entry_point, self.layout.dependency_names())

    def _release(self, context: BuildContext) -> None:
        package = self._require(context.package, "release", "package")
        assembler = ReleaseAssembler(self.layout, self.reporter)
        context.release = assembler.assemble(package.artifact_path)

    # Helpers

    @staticmethod
    def _require(value, stage: str, dependency: str):
        if value is None:
            raise BuildOrchestratorError(
                f"Stage '{stage}' requires the '{dependency}' stage to run first"
            )
        return value

    def _remove_transient_files(self) -> None:
        for path in (self.layout.source_manifest, self.layout.bytecode_scratch):
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to delete {path}: {e}")
                self.reporter.detail(f"Failed to delete {path.name} file.")

    def _record_history(self, result: BuildResult) -> None:
        if not self.config.log:
            return
        history = BuildLog(self.layout.log_file)
        try:
            if result.success:
                history.record_success(result.build_time)
            else:
                history.record_failure()
        except OSError as e:
            logger.warning(f"Failed to write build log {self.layout.log_file}: {e}")
