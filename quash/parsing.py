"""Splitting command lines into words, pipeline stages and redirections."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

MAX_ARG_COUNT = 100
MAX_PIPELINE_LENGTH = 100

_QUOTES = ("'", '"')
_REDIRECT_OPERATORS = {">": False, ">>": True}


@dataclass(frozen=True)
class OutputRedirect:
    """Where a command's standard output goes, and whether it appends."""

    path: str
    append: bool = False


def tokenize(line: str) -> list[str]:
    """Split a line on spaces, dropping empty words.

    At most ``MAX_ARG_COUNT - 1`` words are kept; reaching that limit is
    reported on standard error and the rest of the line is ignored.
    """
    words = [word for word in line.split(" ") if word]
    limit = MAX_ARG_COUNT - 1
    if len(words) >= limit:
        print("Error: Too many arguments", file=sys.stderr)
        words = words[:limit]
    return words


def split_pipeline(line: str) -> list[list[str]]:
    """Split a line on ``|`` and tokenize every non-empty stage."""
    segments = [segment for segment in line.split("|") if segment]
    return [tokenize(segment) for segment in segments[:MAX_PIPELINE_LENGTH]]


def split_background(line: str) -> tuple[str, bool]:
    """Remove a trailing ``&`` and report whether it was there."""
    if line.endswith("&"):
        return line[:-1], True
    return line, False


def strip_quotes(arg: str) -> str:
    """Remove one pair of matching single or double quotes around a word."""
    if arg and arg[0] in _QUOTES and arg[-1] == arg[0]:
        return arg[1:-1]
    return arg


def expand_variable(arg: str, environ: Mapping[str, str] | None = None) -> str:
    """Replace a word of the form ``$NAME`` by the variable's value.

    An unset variable expands to the empty string; other words are
    returned unchanged.
    """
    if not arg.startswith("$"):
        return arg
    env = os.environ if environ is None else environ
    return env.get(arg[1:], "")


def extract_output_redirect(
    args: Sequence[str],
) -> tuple[list[str], OutputRedirect | None]:
    """Find the first ``>`` or ``>>`` and split it off the command.

    Returns the words before the operator and the redirect target; words
    after the target are dropped. Raises ``ValueError`` when the operator
    has no file after it.
    """
    for index, word in enumerate(args):
        if word in _REDIRECT_OPERATORS:
            if index + 1 >= len(args):
                raise ValueError("No file specified for redirection")
            redirect = OutputRedirect(args[index + 1], _REDIRECT_OPERATORS[word])
            return list(args[:index]), redirect
    return list(args), None