"""Tests for the protojar command-line interface."""

import io
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from protojar.cli import CompileArgs, ScanArgs, build_parser, compile_command, main, scan_command

PROTOC = "/usr/local/bin/protoc"


def _console() -> Console:
    return Console(file=io.StringIO(), width=200, color_system=None)


@pytest.fixture(autouse=True)
def _no_protoc_env(monkeypatch):
    monkeypatch.delenv("PROTOJAR_PROTOC", raising=False)


@pytest.fixture
def mock_protoc():
    with patch("protojar.runner.shutil.which", return_value=PROTOC), patch("protojar.runner.subprocess.run") as mock_run:
        mock_run.return_value = subprocess.CompletedProcess([PROTOC], returncode=0, stdout="", stderr="")
        yield mock_run


class TestParser:
    """Tests for argument parsing."""

    def test_compile_flags(self, tmp_path):
        args = build_parser().parse_args(
            [
                "compile",
                str(tmp_path),
                "-s",
                "a.proto",
                "--source",
                "b.proto",
                "-I",
                "inc",
                "-o",
                "gen",
                "-l",
                "python",
                "--protoc",
                "/opt/protoc",
                "--timeout",
                "12.5",
                "--no-clear",
                "--always-extract",
                "-v",
                "-a",
                "lib.jar",
                "--classpath-file",
                "cp.txt",
                "--artifact-dir",
                "target/dependency",
            ]
        )

        assert args.command == "compile"
        assert args.project_dir == tmp_path
        assert args.sources == ["a.proto", "b.proto"]
        assert args.include_paths == ["inc"]
        assert args.output == "gen"
        assert args.language == "python"
        assert args.protoc == "/opt/protoc"
        assert args.timeout == 12.5
        assert args.clear is False
        assert args.always_extract is True
        assert args.verbose is True
        assert args.artifacts == ["lib.jar"]
        assert args.classpath_files == ["cp.txt"]
        assert args.artifact_dirs == ["target/dependency"]

    def test_unset_flags_are_none(self, tmp_path):
        args = build_parser().parse_args(["compile", str(tmp_path)])

        assert args.sources is None
        assert args.include_paths is None
        assert args.clear is None
        assert args.always_extract is None
        assert args.verbose is None
        assert args.artifacts == []

    def test_scan_flags(self, tmp_path):
        args = build_parser().parse_args(["scan", str(tmp_path), "--table"])
        assert args.command == "scan"
        assert args.table is True


class TestMain:
    """Tests for main() dispatch and exit codes."""

    def test_no_command_shows_help(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert "protojar" in capsys.readouterr().out

    def test_missing_project_dir(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["compile", str(tmp_path / "nope")])
        assert exc_info.value.code == 2

    def test_compile_exit_code_propagated(self, project_dir, mock_protoc):
        (project_dir / "a.proto").write_text("x")
        mock_protoc.return_value = subprocess.CompletedProcess([PROTOC], returncode=3, stdout="", stderr="bad")

        with pytest.raises(SystemExit) as exc_info:
            main(["compile", str(project_dir), "-s", "a.proto"])

        assert exc_info.value.code == 3

    def test_log_file_receives_output(self, project_dir, make_jar, tmp_path):
        jar = make_jar("dep.jar", {"foo/dep.proto": "dep"})
        log_path = tmp_path / "protojar.log"

        with pytest.raises(SystemExit) as exc_info:
            main(["scan", str(project_dir), "-a", str(jar), "--log-file", str(log_path)])

        assert exc_info.value.code == 0
        text = log_path.read_text(encoding="utf-8")
        assert "[dep.jar] foo/dep.proto" in text
        assert "1 proto file(s) in 1 archive(s)" in text

    def test_log_file_unwritable(self, project_dir, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["scan", str(project_dir), "--log-file", str(tmp_path / "missing" / "protojar.log")])
        assert exc_info.value.code == 2


class TestCompileCommand:
    """Tests for compile_command()."""

    def test_compiles_with_staged_archive(self, project_dir, make_jar, mock_protoc):
        (project_dir / "a.proto").write_text('import "foo/dep.proto";')
        jar = make_jar("dep.jar", {"foo/dep.proto": "dep"})
        console = _console()

        code = compile_command(CompileArgs(project_dir=project_dir, artifacts=[str(jar)], sources=["a.proto"]), console)

        assert code == 0
        assert (project_dir / "target" / "protos" / "foo" / "dep.proto").exists()
        argv = mock_protoc.call_args[0][0]
        assert f"--proto_path={project_dir / 'target' / 'protos'}" in argv
        assert "protoc exited with 0" in console.file.getvalue()

    def test_sources_from_ini(self, project_dir, mock_protoc):
        (project_dir / "a.proto").write_text("x")
        (project_dir / "protojar.ini").write_text("[protojar]\nsources = a.proto\nlanguage = cpp\n")

        code = compile_command(CompileArgs(project_dir=project_dir), _console())

        assert code == 0
        argv = mock_protoc.call_args[0][0]
        assert f"--cpp_out={project_dir / 'src' / 'main' / 'cpp'}" in argv

    def test_nothing_to_compile_succeeds(self, project_dir, mock_protoc):
        console = _console()

        code = compile_command(CompileArgs(project_dir=project_dir), console)

        assert code == 0
        mock_protoc.assert_not_called()
        assert "nothing compiled" in console.file.getvalue()

    def test_compiler_killed_by_signal(self, project_dir, mock_protoc):
        (project_dir / "a.proto").write_text("x")
        mock_protoc.return_value = subprocess.CompletedProcess([PROTOC], returncode=-11, stdout="", stderr="")

        code = compile_command(CompileArgs(project_dir=project_dir, sources=["a.proto"]), _console())

        assert code == 139

    def test_missing_compiler_fails(self, project_dir):
        (project_dir / "a.proto").write_text("x")

        with patch("protojar.runner.shutil.which", return_value=None):
            code = compile_command(CompileArgs(project_dir=project_dir, sources=["a.proto"]), _console())

        assert code == 1

    def test_percent_in_ini_output(self, project_dir, mock_protoc):
        (project_dir / "a.proto").write_text("x")
        (project_dir / "protojar.ini").write_text("[protojar]\nsources = a.proto\noutput = gen/50%\n")

        code = compile_command(CompileArgs(project_dir=project_dir), _console())

        assert code == 0
        argv = mock_protoc.call_args[0][0]
        assert f"--java_out={project_dir / 'gen' / '50%'}" in argv

    def test_config_error_is_usage_error(self, project_dir):
        (project_dir / "protojar.ini").write_text("[protojar]\nclear = maybe\n")

        assert compile_command(CompileArgs(project_dir=project_dir), _console()) == 2

    def test_unreadable_classpath_file_is_usage_error(self, project_dir):
        args = CompileArgs(project_dir=project_dir, classpath_files=["missing-cp.txt"])

        assert compile_command(args, _console()) == 2

    def test_interrupt(self, project_dir):
        with patch("protojar.cli.ProtocPipeline") as mock_pipeline:
            mock_pipeline.return_value.execute.side_effect = KeyboardInterrupt
            code = compile_command(CompileArgs(project_dir=project_dir), _console())

        assert code == 130


class TestScanCommand:
    """Tests for scan_command()."""

    def test_lists_entries(self, project_dir, make_jar):
        jar = make_jar("dep.jar", {"foo/dep.proto": "dep", "Foo.class": b""})
        console = _console()

        code = scan_command(ScanArgs(project_dir=project_dir, artifacts=[str(jar)], table=True), console)

        assert code == 0
        text = console.file.getvalue()
        assert "dep.jar" in text
        assert "foo/dep.proto" in text
        assert "Foo.class" not in text

    def test_plain_listing(self, project_dir, make_jar):
        from protojar import output

        stream = io.StringIO()
        output.init_timer(stream)
        jar = make_jar("dep.jar", {"foo/dep.proto": "dep"})

        code = scan_command(ScanArgs(project_dir=project_dir, artifacts=[str(jar)]))

        assert code == 0
        assert "[dep.jar] foo/dep.proto" in stream.getvalue()
        assert "1 proto file(s) in 1 archive(s)" in stream.getvalue()

    def test_artifact_dir(self, project_dir, make_jar):
        jar = make_jar("dep.jar", {"x.proto": "x"})
        dependency_dir = project_dir / "target" / "dependency"
        dependency_dir.mkdir(parents=True)
        jar.rename(dependency_dir / "dep.jar")
        console = _console()

        code = scan_command(ScanArgs(project_dir=project_dir, artifact_dirs=["target/dependency"], table=True), console)

        assert code == 0
        assert "x.proto" in console.file.getvalue()


def test_project_dir_default_is_cwd():
    args = build_parser().parse_args(["scan"])
    assert args.project_dir == Path.cwd()
