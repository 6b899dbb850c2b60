from minish.state import Command, Shell, Token, TokenType


def make_shell():
    return Shell.from_environ(
        {"USER": "alice", "HOME": "/home/alice", "PATH": "/usr/bin:/bin"}
    )


def test_from_mapping_builds_entries():
    shell = make_shell()
    assert "PATH=/usr/bin:/bin" in shell.env
    assert shell.user == "alice"
    assert shell.home == "/home/alice"


def test_from_entries_keeps_order():
    entries = ["B=2", "A=1", "FLAG"]
    shell = Shell.from_environ(entries)
    assert shell.env == entries
    assert shell.home is None


def test_from_environ_copies_list():
    entries = ["A=1"]
    shell = Shell.from_environ(entries)
    shell.env.append("B=2")
    assert entries == ["A=1"]


def test_is_env_matches_prefix():
    shell = make_shell()
    assert shell.is_env("PATH")
    assert shell.is_env("PA")
    assert not shell.is_env("MISSING")


def test_lookup_requires_equals():
    shell = make_shell()
    assert shell.lookup("PATH") == "/usr/bin:/bin"
    assert shell.lookup("PAT") is None


def test_lookup_empty_value():
    shell = Shell.from_environ(["EMPTY=", "NOVALUE"])
    assert shell.lookup("EMPTY") == ""
    assert shell.lookup("NOVALUE") is None


def test_lookup_first_match_wins():
    shell = Shell.from_environ(["X=first", "X=second"])
    assert shell.lookup("X") == "first"


def test_reset_clears_line_state():
    shell = make_shell()
    shell.line = "ls | wc"
    shell.tokens = [Token(TokenType.CMD, "ls")]
    shell.commands = [Command(name="ls", args=["ls"])]
    shell.exit_status = 3
    shell.reset()
    assert shell.line is None
    assert shell.tokens == []
    assert shell.commands == []
    assert shell.exit_status == 3
    assert shell.lookup("USER") == "alice"


def test_commands_do_not_share_lists():
    first = Command()
    second = Command()
    first.args.append("x")
    assert second.args == []