# minish

A small interactive shell. It reads command lines at a prompt, splits them
into pipelines, expands variables and runs each command either as a built-in
or as an external program found on the shell's `PATH`.

## Installing

    pip install .

## Running

    minish

Type commands at the `Minishell ➜` prompt. The session ends at end of input
(Ctrl-D), or with `exit`, whose status becomes the program's exit code.
Ctrl-C at the prompt starts a fresh line. When Python's `readline` module is
available, input lines can be edited.

## What it understands

- Pipelines: `ls -l | grep py | wc -l`
- Redirections: `< file`, `> file`, `>> file`, also written glued to the
  target (`>out.txt`). They are applied in the order written: every output
  file is created or truncated, and the last one of each direction wins.
- Single and double quotes; unbalanced quotes are reported as
  `parse error; unbalanced quotes` with status 1.
- Variable expansion of `$NAME` and `$?` (the last exit status) outside
  single quotes. A word that expands to nothing is dropped.
- Built-ins: `echo` (with `-n`, `-nn`, ...), `cd` (no argument or `~` goes
  to `HOME`), `pwd`, `env`, `export` (with no arguments it lists the
  environment sorted, as `export -x NAME=value` lines), `unset`, `exit`
  (an optional numeric status, taken modulo 256) and `clear`.

`cd`, `export`, `unset`, `env` and `exit` change or read the shell itself
only when they are the last command of a line; earlier in a pipeline they
run on a copy of the shell and their changes are lost.

Syntax errors — a leading, trailing or doubled `|`, or a redirection with
no target — are reported and set the exit status to 2. A command that
cannot be found sets 127; a directory, or a file that cannot be executed,
sets 126.

## Using it from Python

```python
import os
import sys

from minish.cli import run_line
from minish.state import Shell

shell = Shell.from_environ(os.environ)
status = run_line(shell, "echo hello | cat", sys.stdout, sys.stderr)
```

`run_line` returns the exit status; the `exit` built-in raises
`minish.builtins.ShellExit`, whose `status` attribute holds the code.

The stages can also be used on their own:

- `minish.parser.parse_line(shell, line)` checks a line and returns its
  `Command` objects, raising `minish.syntax.ShellSyntaxError` on bad syntax.
- `minish.tokenizer.tokenize(shell, line)` returns typed `Token`s and
  `minish.parser.build_commands(tokens)` groups them into commands.
- `minish.expansion.expand_var(shell, value)` expands variables against the
  shell's environment.
- `minish.executor.execute(shell, commands, stdout, stderr)` runs a
  pipeline and returns its status.

## What it does not do

- Here-documents (`<< END`) are read at a `> ` prompt until a line starting
  with the delimiter, and the lines are written, without newlines, to
  `temp_here.txt` in the working directory, which is removed after each
  command line. The collected text is not given to the command as its input.
- There is no globbing, no `&&`, `||` or `;`, no background jobs or job
  control, no redirection of standard error and no scripts: only lines typed
  at the prompt are run.

## Tests

    pip install .[test]
    pytest