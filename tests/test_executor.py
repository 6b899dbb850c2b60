import io
import os
import sys

import pytest

from minish.builtins import ShellExit
from minish.executor import (
    NO_NEWLINE_MARK,
    RedirectionError,
    execute,
    find_in_path,
    open_redirections,
    resolve_program,
    run_builtin,
)
from minish.parser import parse_line
from minish.state import Command, Shell

PY = sys.executable


def py(code, **extra):
    return Command(name=PY, args=[PY, "-c", code], **extra)


UPPER = "import sys; sys.stdout.write(sys.stdin.read().upper())"


@pytest.fixture
def shell(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return Shell.from_environ(os.environ)


def run(shell, commands):
    out, err = io.StringIO(), io.StringIO()
    status = execute(shell, commands, out, err)
    return status, out.getvalue(), err.getvalue()


def test_find_in_path_searches_directories(tmp_path):
    bindir = tmp_path / "bin"
    bindir.mkdir()
    (bindir / "tool").write_text("")
    shell = Shell(env=[f"PATH=/nonexistent:{bindir}"])
    assert find_in_path(shell, "tool") == f"{bindir}/tool"
    assert find_in_path(shell, "missing") is None


def test_find_in_path_uses_last_path_entry(tmp_path):
    first = tmp_path / "a"
    second = tmp_path / "b"
    first.mkdir()
    second.mkdir()
    (first / "tool").write_text("")
    (second / "tool").write_text("")
    shell = Shell(env=[f"PATH={first}", f"PATH={second}"])
    assert find_in_path(shell, "tool") == f"{second}/tool"
    assert find_in_path(Shell(env=["HOME=/x"]), "tool") is None


def test_resolve_program():
    shell = Shell(env=["PATH=/nonexistent"])
    assert resolve_program(shell, Command(name="/bin/thing")) == "/bin/thing"
    assert resolve_program(shell, Command(name="./run")) == "./run"
    assert resolve_program(shell, Command(name="echo")) is None
    assert resolve_program(shell, Command()) is None


def test_open_redirections_output_order(shell, tmp_path):
    cmd = Command(out_red=["a.txt", "b.txt"], order=["a.txt", "b.txt"])
    with open_redirections(cmd, None, None) as (src, dst):
        dst.write(b"data")
        assert src is None
    assert (tmp_path / "a.txt").read_bytes() == b""
    assert (tmp_path / "b.txt").read_bytes() == b"data"


def test_open_redirections_append_and_input(shell, tmp_path):
    (tmp_path / "log").write_bytes(b"one")
    (tmp_path / "in").write_bytes(b"abc")
    cmd = Command(append=["log"], in_red=["in"], order=["in", "log"])
    with open_redirections(cmd, None, None) as (src, dst):
        dst.write(b"two")
        assert src.read() == b"abc"
    assert (tmp_path / "log").read_bytes() == b"onetwo"


def test_open_redirections_missing_input(shell):
    cmd = Command(in_red=["nope"], order=["nope"])
    with pytest.raises(RedirectionError) as info:
        with open_redirections(cmd, None, None):
            pass
    assert info.value.filename == "nope"


def test_run_builtin_echo_flag_mark():
    shell = Shell()
    out, err = io.StringIO(), io.StringIO()
    run_builtin(shell, Command(name="echo", args=["echo", "-n", "a", "b"]), out, err)
    assert out.getvalue() == "a b" + NO_NEWLINE_MARK


def test_run_builtin_unknown_name_does_nothing():
    shell = Shell(exit_status=9)
    out, err = io.StringIO(), io.StringIO()
    run_builtin(shell, Command(name="$?", args=["$?"]), out, err)
    assert out.getvalue() == ""
    assert shell.exit_status == 9


def test_run_builtin_exit_raises():
    shell = Shell()
    out, err = io.StringIO(), io.StringIO()
    with pytest.raises(ShellExit) as info:
        run_builtin(shell, Command(name="exit", args=["exit", "7"]), out, err)
    assert info.value.status == 7
    assert out.getvalue() == "exit\n"


def test_execute_echo(shell):
    status, out, _ = run(shell, parse_line(shell, "echo hello"))
    assert (status, out) == (0, "hello\n")


def test_execute_external_program(shell):
    status, out, _ = run(shell, [py("print('hi')")])
    assert (status, out) == (0, "hi\n")


def test_execute_program_pipeline(shell):
    status, out, _ = run(shell, [py("print('hi')"), py(UPPER)])
    assert (status, out) == (0, "HI\n")


def test_execute_builtin_feeds_program(shell):
    status, out, _ = run(shell, [Command(name="echo", args=["echo", "hello"]), py(UPPER)])
    assert (status, out) == (0, "HELLO\n")


def test_execute_exit_status(shell):
    status, _, _ = run(shell, [py("import sys; sys.exit(3)")])
    assert status == 3
    assert shell.exit_status == 3


def test_execute_command_not_found(shell):
    status, _, err = run(shell, parse_line(shell, "nosuchcmd_xyz"))
    assert status == 127
    assert "nosuchcmd_xyz: command not found" in err


def test_execute_directory(shell, tmp_path):
    status, _, err = run(shell, [Command(name=str(tmp_path), args=[str(tmp_path)])])
    assert status == 126
    assert "is a directory" in err


def test_execute_permission_denied(shell, tmp_path):
    script = tmp_path / "script"
    script.write_text("")
    script.chmod(0o644)
    status, _, err = run(shell, [Command(name=str(script), args=[str(script)])])
    assert status == 126
    assert "permission denied" in err


def test_execute_output_redirection(shell, tmp_path):
    status, out, _ = run(shell, parse_line(shell, "echo hi > out.txt"))
    assert status == 0
    assert out == ""
    assert (tmp_path / "out.txt").read_text() == "hi\n"


def test_execute_input_redirection(shell, tmp_path):
    (tmp_path / "in.txt").write_text("abc")
    status, out, _ = run(shell, [py(UPPER, in_red=["in.txt"], order=["in.txt"])])
    assert (status, out) == (0, "ABC")


def test_execute_missing_input_file(shell):
    status, _, err = run(shell, [py(UPPER, in_red=["gone"], order=["gone"])])
    assert status == 1
    assert err.startswith("open:")


def test_export_in_pipeline_does_not_persist(shell):
    run(shell, parse_line(shell, "export AAA=1 | echo x"))
    assert shell.lookup("AAA") is None
    run(shell, parse_line(shell, "export AAA=1"))
    assert shell.lookup("AAA") == "1"


def test_parent_builtin_status_overridden_by_earlier_stage(shell, tmp_path):
    sub = tmp_path / "sub"
    sub.mkdir()
    commands = [py("import sys; sys.exit(4)"), Command(name="cd", args=["cd", str(sub)])]
    status, _, _ = run(shell, commands)
    assert status == 4
    assert os.path.samefile(os.getcwd(), sub)


def test_parent_exit_propagates(shell):
    with pytest.raises(ShellExit) as info:
        run(shell, [Command(name="exit", args=["exit", "5"])])
    assert info.value.status == 5