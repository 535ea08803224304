"""
Unit tests for PipelineOrchestrator.

The JDK is replaced by a fake invoker that emulates javac, javap and jar on
the file system, so the whole pipeline runs without external tools.
"""

from pathlib import Path

import pytest

from jbuild.build.orchestrator import PipelineOrchestrator
from jbuild.build.stage import StagePolicy
from jbuild.build.tool_invoker import ToolResult
from jbuild.config import BuildConfig, ProjectLayout

MAIN_SOURCE = """public class Main {
    public static void main(String[] args) {
        System.out.println(Util.greet());
    }
}
"""

UTIL_SOURCE = """class Util {
    static String greet() { return "hi"; }
}
"""

JAVAP_LISTING = """Compiled from "Main.java"
public class Main {
  public static void main(java.lang.String[]);
    Code:
       0: invokestatic  #7                  // Method Util.greet:()Ljava/lang/String;
       3: return
}
"""


class FakeJdk:
    """Emulates the JDK tools, dispatching on the executable name."""

    def __init__(self, javac_returncode=0, javap_returncode=0, jar_returncode=0, javadoc_returncode=0):
        self.javac_returncode = javac_returncode
        self.javap_returncode = javap_returncode
        self.jar_returncode = jar_returncode
        self.javadoc_returncode = javadoc_returncode
        self.calls = []

    def run(self, args, cwd=None, output_file=None, echo=False):
        cmd = [str(a) for a in args]
        self.calls.append(cmd)
        tool = Path(cmd[0]).stem

        if tool == "javac" and cmd[1:] == ["-version"]:
            return ToolResult(output="javac 17.0.2\n", returncode=0)
        if tool == "javac":
            return self._javac(cmd)
        if tool == "javap":
            return self._javap(output_file)
        if tool == "jar":
            return self._jar(cmd, cwd)
        if tool == "java":
            return ToolResult(output="hi\n", returncode=0)
        if tool == "javadoc":
            return ToolResult(output="", returncode=self.javadoc_returncode)
        raise AssertionError(f"Unexpected tool {cmd[0]}")

    def _javac(self, cmd):
        if self.javac_returncode != 0:
            return ToolResult(
                output="Main.java:3: error: ';' expected\n1 error\n",
                returncode=self.javac_returncode,
            )
        manifest = Path(next(a for a in cmd if a.startswith("@"))[1:])
        classes_dir = Path(cmd[cmd.index("-d") + 1])
        for line in manifest.read_text().splitlines():
            (classes_dir / (Path(line).stem + ".class")).write_bytes(b"\xca\xfe\xba\xbe")
        return ToolResult(output="", returncode=0)

    def _javap(self, output_file):
        output_file.write_text(JAVAP_LISTING)
        return ToolResult(output=JAVAP_LISTING, returncode=self.javap_returncode)

    def _jar(self, cmd, cwd):
        if self.jar_returncode != 0:
            return ToolResult(output="jar failed\n", returncode=self.jar_returncode)
        (Path(cwd) / cmd[2]).write_bytes(b"PK\x03\x04" + b"\x00" * 100)
        return ToolResult(output="", returncode=0)

    def tool_calls(self, name):
        return [c for c in self.calls if Path(c[0]).stem == name]


class TestPipelineOrchestrator:
    """Test suite for PipelineOrchestrator."""

    @pytest.fixture
    def project(self, tmp_path):
        src = tmp_path / "src"
        src.mkdir()
        (src / "Main.java").write_text(MAIN_SOURCE)
        (src / "Util.java").write_text(UTIL_SOURCE)
        return tmp_path

    @pytest.fixture
    def layout(self, project):
        return ProjectLayout.for_project(project)

    def make(self, layout, jdk, **config):
        return PipelineOrchestrator(
            BuildConfig(**config), layout, invoker=jdk, path_separator=":"
        )

    def test_stage_order_and_policies(self, layout):
        orchestrator = self.make(layout, FakeJdk())

        stages = orchestrator.stages()

        assert [s.name for s in stages] == [
            "prepare", "scan", "documentation", "compile", "bytecode", "package", "release",
        ]
        policies = {s.name: s.policy for s in stages}
        assert policies["bytecode"] is StagePolicy.DEGRADED
        assert all(p is StagePolicy.FATAL for n, p in policies.items() if n != "bytecode")

    def test_end_to_end_success(self, layout, capsys):
        """Test a two-file project in release mode produces a release jar."""
        jdk = FakeJdk()
        orchestrator = self.make(layout, jdk, mode="release")

        result = orchestrator.build()

        assert result.success, result.message
        assert result.failed_stage is None
        assert result.build_time >= 0
        assert [p.name for p in layout.release_dir.iterdir()] == ["Program.jar"]

        javac = [c for c in jdk.tool_calls("javac") if c[1:] != ["-version"]]
        assert len(javac) == 1
        assert "-g:none" in javac[0]
        assert "-classpath" not in javac[0]

        out = capsys.readouterr().out
        assert "Total of 2 source files found." in out
        assert "Entry point is 'Main' (detected)." in out
        assert "Your program does not use any libraries." in out
        assert "Program does not use any resource files." in out

    def test_transient_files_removed_on_success(self, layout):
        result = self.make(layout, FakeJdk()).build()

        assert result.success
        assert not layout.source_manifest.exists()
        assert not layout.bytecode_scratch.exists()
        assert not layout.manifest_descriptor.exists()
        assert not layout.artifact_path.exists()

    def test_compile_failure(self, layout):
        """Test a javac failure stops the pipeline and carries its output."""
        jdk = FakeJdk(javac_returncode=1)

        result = self.make(layout, jdk).build()

        assert not result.success
        assert result.failed_stage == "compile"
        assert "';' expected" in result.output
        assert not layout.source_manifest.exists()
        assert jdk.tool_calls("jar") == []
        assert not layout.release_dir.exists()

    def test_bytecode_failure_is_degraded(self, layout):
        """Test a javap failure is reported and the build still succeeds."""
        result = self.make(layout, FakeJdk(javap_returncode=1)).build()

        assert result.success
        assert result.context.degraded_stages == ["bytecode"]
        assert (layout.release_dir / "Program.jar").exists()
        assert not layout.bytecode_scratch.exists()

    def test_bytecode_stage_disabled(self, layout):
        jdk = FakeJdk()

        result = self.make(layout, jdk, bytecode_details=False).build()

        assert result.success
        assert jdk.tool_calls("javap") == []
        assert result.context.bytecode is None

    def test_bytecode_listings_written(self, layout):
        result = self.make(layout, FakeJdk()).build()

        assert result.context.bytecode.method_call_count == 1
        assert (layout.bytecode_dir / "Main.bytecode").exists()

    def test_packaging_failure(self, layout):
        result = self.make(layout, FakeJdk(jar_returncode=2)).build()

        assert not result.success
        assert result.failed_stage == "package"
        assert "jar failed" in result.output

    def test_missing_src_fails_scan(self, tmp_path):
        layout = ProjectLayout.for_project(tmp_path)

        result = self.make(layout, FakeJdk()).build()

        assert not result.success
        assert result.failed_stage == "scan"
        assert "No src directory" in result.message

    def test_dependencies_on_classpath_and_in_release(self, layout):
        layout.libs_dir.mkdir()
        (layout.libs_dir / "B.jar").write_bytes(b"b")
        (layout.libs_dir / "A.jar").write_bytes(b"a")
        jdk = FakeJdk()

        result = self.make(layout, jdk).build()

        assert result.success
        javac = [c for c in jdk.tool_calls("javac") if c[1:] != ["-version"]][0]
        assert javac[1:3] == ["-classpath", "libs/A.jar:libs/B.jar"]
        assert result.context.release.library_count == 2

    def test_stale_build_output_cleaned(self, layout):
        stale = layout.classes_dir / "Stale.class"
        stale.parent.mkdir(parents=True)
        stale.write_bytes(b"")

        result = self.make(layout, FakeJdk()).build()

        assert result.context.deleted_files == 1
        assert not stale.exists()

    def test_simple_output_is_quiet(self, layout, capsys):
        result = self.make(layout, FakeJdk(), simple_output=True).build()

        assert result.success
        assert capsys.readouterr().out == ""

    def test_build_log(self, layout):
        """Test one history line is appended per build."""
        self.make(layout, FakeJdk(), log=True).build()
        self.make(layout, FakeJdk(javac_returncode=1), log=True).build()

        lines = layout.log_file.read_text().splitlines()
        assert len(lines) == 2
        assert "-> BUILD SUCCESSFUL TOOK" in lines[0]
        assert lines[1].endswith("-> BUILD FAILED")

    def test_no_build_log_by_default(self, layout):
        self.make(layout, FakeJdk()).build()

        assert not layout.log_file.exists()

    def test_run_program(self, layout, capsys):
        jdk = FakeJdk()
        orchestrator = self.make(layout, jdk)
        orchestrator.build()

        assert orchestrator.run_program() == 0
        java = jdk.tool_calls("java")
        assert java[0][1:] == ["-ea", "-jar", "Program.jar"]
        assert "Running your program after the build..." in capsys.readouterr().out

    def test_run_program_failure_does_not_raise(self, layout, capsys):
        class CrashingJdk(FakeJdk):
            def run(self, args, cwd=None, output_file=None, echo=False):
                if Path(str(args[0])).stem == "java":
                    return ToolResult(output="Exception in thread main\n", returncode=1)
                return super().run(args, cwd, output_file, echo)

        orchestrator = self.make(layout, CrashingJdk())
        assert orchestrator.build().success

        assert orchestrator.run_program() == 1
        assert "Failed to run your program." in capsys.readouterr().out

    def test_describe_tools(self, layout, tmp_path):
        javac = tmp_path / "javac"
        javac.write_text("")
        config = BuildConfig.from_dict({}, {"javac": str(javac)})
        orchestrator = PipelineOrchestrator(config, layout, invoker=FakeJdk())

        lines = orchestrator.describe_tools()

        assert lines[0] == f"Using following javac executable: {javac}"
        assert "Using your global jar executable." in lines

    def test_documentation_stage(self, layout):
        """Test javadoc runs before javac when documentation is enabled."""
        jdk = FakeJdk()

        result = self.make(layout, jdk, documentation=True).build()

        assert result.success
        tools = [Path(c[0]).stem for c in jdk.calls]
        assert tools.index("javadoc") < tools.index("javac")
        javadoc = jdk.tool_calls("javadoc")[0]
        assert javadoc[1:] == [f"@{layout.source_manifest}", "-d", str(layout.documentation_dir)]
        assert layout.documentation_dir.is_dir()

    def test_documentation_failure_is_fatal(self, layout):
        jdk = FakeJdk(javadoc_returncode=1)

        result = self.make(layout, jdk, documentation=True).build()

        assert not result.success
        assert result.failed_stage == "documentation"
        assert [c for c in jdk.tool_calls("javac") if c[1:] != ["-version"]] == []
