"""Commands the shell runs itself rather than as external programs."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
from collections.abc import MutableMapping, Sequence
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import IO, BinaryIO, TextIO

from .parsing import (
    OutputRedirect,
    expand_variable,
    extract_output_redirect,
    strip_quotes,
)

_INPUT_OPERATOR = "<"
_OUTPUT_OPERATORS = {">": False, ">>": True}
_EXPORT_USAGE = "Usage: export VAR=VALUE"


def _create_file(path: str, flags: int) -> int:
    return os.open(path, flags, 0o644)


def _open_redirect(redirect: OutputRedirect, binary: bool = False) -> IO:
    mode = ("a" if redirect.append else "w") + ("b" if binary else "")
    return open(redirect.path, mode, opener=_create_file)


def _report(stream: TextIO, context: str, exc: OSError) -> None:
    print(f"{context}: {exc.strerror or exc}", file=stream)


@dataclass
class CatPlan:
    """The files, input source and output target of one ``cat`` command."""

    files: list[str] = field(default_factory=list)
    input_path: str | None = None
    output: OutputRedirect | None = None


def pwd(out: TextIO | None = None) -> None:
    """Print the current working directory."""
    print(os.getcwd(), file=sys.stdout if out is None else out)


def echo(
    args: Sequence[str],
    out: TextIO | None = None,
    environ: MutableMapping[str, str] | None = None,
) -> None:
    """Print the arguments, expanding ``$NAME`` words and removing quotes.

    A ``>`` or ``>>`` sends the line to a file; words after the file name
    are ignored. Raises ``ValueError`` when the file name is missing and
    ``OSError`` when the file cannot be opened.
    """
    words, redirect = extract_output_redirect(args[1:])
    text = " ".join(strip_quotes(expand_variable(word, environ)) for word in words)
    if redirect is None:
        print(text, file=sys.stdout if out is None else out)
        return
    with _open_redirect(redirect) as target:
        print(text, file=target)


def cd(args: Sequence[str], environ: MutableMapping[str, str] | None = None) -> None:
    """Change directory; no argument or ``~`` means ``$HOME``.

    Raises ``ValueError`` when ``HOME`` is needed but unset, and
    ``OSError`` when the directory cannot be entered.
    """
    env = os.environ if environ is None else environ
    target = args[1] if len(args) > 1 else "~"
    if target == "~":
        home = env.get("HOME")
        if home is None:
            raise ValueError("HOME not set")
        target = home
    os.chdir(target)


def export(
    args: Sequence[str],
    environ: MutableMapping[str, str] | None = None,
    out: TextIO | None = None,
) -> None:
    """Set a variable from a ``VAR=VALUE`` argument and confirm it.

    Raises ``ValueError`` when the variable name is empty.
    """
    stream = sys.stdout if out is None else out
    if len(args) < 2 or "=" not in args[1]:
        print(_EXPORT_USAGE, file=stream)
        return
    name, _, value = args[1].partition("=")
    if not name:
        raise ValueError("Invalid argument")
    env = os.environ if environ is None else environ
    env[name] = value
    print(f"Exported: {name}={value}", file=stream)


def parse_cat_args(args: Sequence[str]) -> CatPlan:
    """Separate the file names of a ``cat`` command from its redirections.

    The last ``<`` and the last ``>``/``>>`` win. Raises ``ValueError`` when
    an operator has no file name after it.
    """
    plan = CatPlan()
    words = iter(args[1:])
    for word in words:
        if word != _INPUT_OPERATOR and word not in _OUTPUT_OPERATORS:
            plan.files.append(word)
            continue
        path = next(words, None)
        if path is None:
            raise ValueError(f"No file specified after {word}")
        if word == _INPUT_OPERATOR:
            plan.input_path = path
        else:
            plan.output = OutputRedirect(path, _OUTPUT_OPERATORS[word])
    return plan


def cat(
    args: Sequence[str],
    stdin: BinaryIO | None = None,
    stdout: BinaryIO | None = None,
    stderr: TextIO | None = None,
) -> None:
    """Copy the named files, or the input when none are named, to the output.

    Files that cannot be opened are reported and skipped; a redirection
    that cannot be opened stops the command.
    """
    errors = sys.stderr if stderr is None else stderr
    try:
        plan = parse_cat_args(args)
    except ValueError as exc:
        print(exc, file=errors)
        return

    with ExitStack() as stack:
        if plan.input_path is not None:
            try:
                source = stack.enter_context(open(plan.input_path, "rb"))
            except OSError as exc:
                _report(errors, "Failed to open input file", exc)
                return
        else:
            source = sys.stdin.buffer if stdin is None else stdin

        if plan.output is not None:
            try:
                sink = stack.enter_context(_open_redirect(plan.output, binary=True))
            except OSError as exc:
                how = "appending" if plan.output.append else "overwriting"
                _report(errors, f"Failed to open output file for {how}", exc)
                return
        else:
            sink = sys.stdout.buffer if stdout is None else stdout

        if not plan.files:
            shutil.copyfileobj(source, sink)
        for name in plan.files:
            try:
                handle = open(name, "rb")
            except OSError as exc:
                _report(errors, "Failed to open input file", exc)
                continue
            with handle:
                shutil.copyfileobj(handle, sink)
        sink.flush()


def _strip_grep_quotes(arg: str) -> str:
    return strip_quotes(arg) if len(arg) >= 2 else arg


def grep(args: Sequence[str], stdin=None, stdout=None) -> subprocess.CompletedProcess:
    """Run ``grep`` with the quotes around each argument removed."""
    argv = ["grep", *(_strip_grep_quotes(arg) for arg in args[1:])]
    return subprocess.run(argv, stdin=stdin, stdout=stdout, check=False)


def find(args: Sequence[str], stdout=None) -> subprocess.CompletedProcess:
    """Run ``find PATH -name PATTERN``; PATH defaults to ``.``, PATTERN to ``*``."""
    path = args[1] if len(args) > 1 else "."
    pattern = args[2] if len(args) > 2 else "*"
    return subprocess.run(
        ["find", path, "-name", pattern], stdout=stdout, check=False
    )