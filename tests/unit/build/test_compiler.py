"""
Unit tests for Compiler class.

Tests the javac wrapper functionality with a mocked tool invoker.
"""

import pytest
from unittest.mock import Mock

from jbuild.build.compiler import (
    Compiler,
    CompilerError,
    build_classpath,
    debug_flag,
)
from jbuild.build.tool_invoker import ToolResult
from jbuild.config import BuildConfigError, ProjectLayout


class TestCompiler:
    """Test suite for Compiler class."""

    @pytest.fixture
    def layout(self, tmp_path):
        (tmp_path / "src").mkdir()
        return ProjectLayout.for_project(tmp_path)

    @pytest.fixture
    def manifest(self, layout):
        path = layout.source_manifest
        path.write_text(str(layout.src_dir / "Main.java") + "\n")
        return path

    @pytest.fixture
    def invoker(self):
        invoker = Mock()
        invoker.run.return_value = ToolResult(output="", returncode=0)
        return invoker

    @pytest.fixture
    def compiler(self, invoker, layout):
        return Compiler(invoker, "javac", layout, path_separator=":")

    def test_command_without_dependencies(self, compiler, layout, manifest):
        """Test the classpath argument is omitted when libs/ is empty."""
        cmd = compiler.build_command(manifest, [], "debug")

        assert cmd == [
            "javac",
            f"@{manifest}",
            "-Xdiags:verbose",
            "-Xlint:deprecation",
            "-Xmaxerrs", "5",
            "-nowarn",
            "-g",
            "-d", str(layout.classes_dir),
            "-encoding", "UTF-8",
        ]

    def test_command_with_dependencies(self, compiler, manifest):
        """Test dependencies are joined into a classpath before the manifest."""
        cmd = compiler.build_command(manifest, ["A.jar", "B.jar"], "debug")

        assert cmd[1:4] == ["-classpath", "libs/A.jar:libs/B.jar", f"@{manifest}"]

    def test_command_windows_separator(self, invoker, layout, manifest):
        """Test the separator can be set for Windows hosts."""
        compiler = Compiler(invoker, "javac", layout, path_separator=";")

        cmd = compiler.build_command(manifest, ["A.jar", "B.jar"], "debug")

        assert cmd[2] == "libs/A.jar;libs/B.jar"

    def test_release_mode_strips_debug_info(self, compiler, manifest):
        cmd = compiler.build_command(manifest, [], "release")

        assert "-g:none" in cmd
        assert "-g" not in cmd

    def test_custom_encoding(self, invoker, layout, manifest):
        compiler = Compiler(invoker, "javac", layout, encoding="ISO-8859-1")

        cmd = compiler.build_command(manifest, [], "debug")

        assert cmd[-2:] == ["-encoding", "ISO-8859-1"]

    def test_invalid_mode_rejected_before_invocation(self, compiler, invoker, manifest):
        """Test an invalid mode never reaches javac."""
        with pytest.raises(BuildConfigError):
            compiler.compile(manifest, [], "fast")

        invoker.run.assert_not_called()

    def test_compile_success_counts_classes(self, compiler, invoker, layout, manifest):
        """Test class files and anonymous class files are counted."""
        def fake_javac(cmd, cwd=None, **kwargs):
            classes = layout.classes_dir
            (classes / "Main.class").write_bytes(b"\xca\xfe")
            (classes / "Main$1.class").write_bytes(b"\xca\xfe")
            (classes / "pkg").mkdir()
            (classes / "pkg" / "Util.class").write_bytes(b"\xca\xfe")
            return ToolResult(output="", returncode=0)

        invoker.run.side_effect = fake_javac

        result = compiler.compile(manifest, [], "debug")

        assert result.success
        assert result.class_count == 2
        assert result.anonymous_class_count == 1
        assert layout.classes_dir.is_dir()

    def test_compile_runs_from_project_dir(self, compiler, invoker, layout, manifest):
        compiler.compile(manifest, ["A.jar"], "release")

        args, kwargs = invoker.run.call_args
        assert kwargs["cwd"] == layout.project_dir
        assert args[0][0] == "javac"

    def test_compile_failure_carries_output(self, compiler, invoker, manifest, capsys):
        """Test a non-zero exit raises with the full compiler output."""
        output = "Main.java:3: error: ';' expected\n1 error\n"
        invoker.run.return_value = ToolResult(output=output, returncode=1)
        compiler.reporter.enabled = True

        with pytest.raises(CompilerError) as exc_info:
            compiler.compile(manifest, [], "debug")

        assert exc_info.value.output == output
        assert "COMPILATION ERROR" in capsys.readouterr().out

    def test_exit_code_is_the_only_failure_signal(self, compiler, invoker, manifest):
        """Test output mentioning errors does not fail a zero exit."""
        invoker.run.return_value = ToolResult(output="warning: no error here\n", returncode=0)

        result = compiler.compile(manifest, [], "debug")

        assert result.success
        assert "warning" in result.output


class TestCompilerHelpers:
    """Tests for classpath and debug flag helpers."""

    def test_build_classpath_empty(self):
        assert build_classpath([], ":") is None

    def test_build_classpath_no_trailing_separator(self):
        assert build_classpath(["A.jar", "B.jar"], ":") == "libs/A.jar:libs/B.jar"
        assert build_classpath(["A.jar", "B.jar"], ";") == "libs/A.jar;libs/B.jar"
        assert build_classpath(["Only.jar"], ":") == "libs/Only.jar"

    def test_debug_flag(self):
        assert debug_flag("debug") == "-g"
        assert debug_flag("release") == "-g:none"
        assert debug_flag("RELEASE") == "-g:none"

    def test_debug_flag_invalid(self):
        with pytest.raises(BuildConfigError, match="debug"):
            debug_flag("optimized")
