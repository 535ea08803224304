"""
Build system components for jbuild.

This module provides the build pipeline implementation including:
- Source discovery and manifest generation
- Compilation (javac)
- Bytecode statistics (javap)
- Packaging (jar)
- Release assembly
- Build orchestration
"""

from .bytecode_stats import BytecodeStats, BytecodeStatsError, BytecodeStatsExtractor, parse_listing
from .compiler import CompileResult, Compiler, CompilerError, build_classpath
from .orchestrator import BuildContext, BuildOrchestratorError, BuildResult, PipelineOrchestrator
from .packager import PackageResult, Packager, PackagerError
from .release import ReleaseAssembler, ReleaseError, ReleaseResult
from .source_scanner import NO_ENTRY_POINT, ScanResult, SourceScanner, SourceScannerError
from .stage import BuildStageError, PipelineStage, StagePolicy
from .tool_invoker import ToolInvocationError, ToolInvoker, ToolResult

__all__ = [
    'BuildContext',
    'BuildOrchestratorError',
    'BuildResult',
    'BuildStageError',
    'BytecodeStats',
    'BytecodeStatsError',
    'BytecodeStatsExtractor',
    'CompileResult',
    'Compiler',
    'CompilerError',
    'NO_ENTRY_POINT',
    'PackageResult',
    'Packager',
    'PackagerError',
    'PipelineOrchestrator',
    'PipelineStage',
    'ReleaseAssembler',
    'ReleaseError',
    'ReleaseResult',
    'ScanResult',
    'SourceScanner',
    'SourceScannerError',
    'StagePolicy',
    'ToolInvocationError',
    'ToolInvoker',
    'ToolResult',
    'build_classpath',
    'parse_listing',
]
