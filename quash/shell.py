"""The interactive shell: reading lines and dispatching commands."""

from __future__ import annotations

import io
import os
import subprocess
import sys
from collections.abc import Callable, MutableMapping, Sequence
from contextlib import ExitStack

from . import builtins as shell_builtins
from .jobs import JobTable
from .parsing import (
    extract_output_redirect,
    split_background,
    split_pipeline,
    tokenize,
)

MAX_INPUT_SIZE = 1024
PROMPT = "quash$ "
BANNER = "WELCOME TO QUASH"


class ShellExit(Exception):
    """Raised by the ``exit`` command to leave the shell."""

    def __init__(self, code: int = 0) -> None:
        super().__init__(code)
        self.code = code


def _has_fileno(stream) -> bool:
    try:
        stream.fileno()
    except (AttributeError, OSError, ValueError):
        return False
    return True


def _describe(exc: BaseException) -> str:
    return getattr(exc, "strerror", None) or str(exc)


def _create_file(path: str, flags: int) -> int:
    return os.open(path, flags, 0o644)


class _EncodedReader(io.RawIOBase):
    """Bytes read lazily from a text stream."""

    def __init__(self, text) -> None:
        self._text = text
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending:
            chunk = self._text.read(8192)
            if not chunk:
                return 0
            self._pending = chunk.encode()
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


class Shell:
    """A command interpreter with built-ins, pipelines and background jobs."""

    def __init__(
        self,
        stdin=None,
        stdout=None,
        stderr=None,
        environ: MutableMapping[str, str] | None = None,
    ) -> None:
        self.stdin = sys.stdin if stdin is None else stdin
        self.stdout = sys.stdout if stdout is None else stdout
        self.stderr = sys.stderr if stderr is None else stderr
        self.environ = os.environ if environ is None else environ
        self.jobs = JobTable()
        self._builtins: dict[str, Callable[[Sequence[str]], None]] = {
            "pwd": self._pwd,
            "echo": self._echo,
            "cd": self._cd,
            "jobs": self._jobs,
            "export": self._export,
            "grep": self._grep,
            "cat": self._cat,
            "kill": self._kill,
        }

    def _print(self, text: str = "") -> None:
        print(text, file=self.stdout)

    def _error(self, text: str) -> None:
        print(text, file=self.stderr)

    def _child_stdin(self):
        return self.stdin if _has_fileno(self.stdin) else subprocess.DEVNULL

    def _child_stdout(self):
        self.stdout.flush()
        return self.stdout if _has_fileno(self.stdout) else None

    def _write_bytes(self, data: bytes | None) -> None:
        if data:
            self.stdout.write(data.decode(errors="replace"))
            self.stdout.flush()

    def _env(self) -> dict[str, str]:
        return dict(self.environ)

    def execute_line(self, line: str) -> None:
        """Run one input line, as a pipeline when it holds ``|``."""
        if "|" in line:
            self.run_pipeline(split_pipeline(line))
        else:
            self.execute_command(line)

    def execute_command(self, line: str) -> None:
        """Run a single command, in the background when it ends with ``&``."""
        line, background = split_background(line)
        args = tokenize(line)
        if not args:
            self._error("No command found to execute")
            return
        if self.run_builtin(args):
            return
        self.run_external(args, background)

    def run_builtin(self, args: Sequence[str]) -> bool:
        """Run a built-in command; return False when it is not one."""
        name = args[0]
        if name == "exit":
            raise ShellExit(0)
        handler = self._builtins.get(name)
        if handler is None:
            return False
        handler(args)
        return True

    def _pwd(self, args: Sequence[str]) -> None:
        try:
            shell_builtins.pwd(self.stdout)
        except OSError as exc:
            self._error(f"getcwd() error: {_describe(exc)}")

    def _echo(self, args: Sequence[str]) -> None:
        try:
            shell_builtins.echo(args, self.stdout, self.environ)
        except ValueError as exc:
            self._error(str(exc))
        except OSError as exc:
            self._error(f"Failed to open output file: {_describe(exc)}")

    def _cd(self, args: Sequence[str]) -> None:
        try:
            shell_builtins.cd(args, self.environ)
        except ValueError as exc:
            self._error(str(exc))
        except OSError as exc:
            self._error(f"chdir: {_describe(exc)}")

    def _jobs(self, args: Sequence[str]) -> None:
        for line in self.jobs.report():
            self._print(line)

    def _export(self, args: Sequence[str]) -> None:
        try:
            shell_builtins.export(args, self.environ, self.stdout)
        except (ValueError, OSError) as exc:
            self._error(f"export failed: {_describe(exc)}")

    def _grep(self, args: Sequence[str]) -> None:
        target = self._child_stdout()
        try:
            result = shell_builtins.grep(
                args,
                self._child_stdin(),
                subprocess.PIPE if target is None else target,
            )
        except OSError as exc:
            self._error(f"Exec failed for grep: {_describe(exc)}")
            return
        if target is None:
            self._write_bytes(result.stdout)

    def _cat(self, args: Sequence[str]) -> None:
        source = getattr(self.stdin, "buffer", None) or _EncodedReader(self.stdin)
        self.stdout.flush()
        sink = getattr(self.stdout, "buffer", None)
        captured = sink is None
        if captured:
            sink = io.BytesIO()
        shell_builtins.cat(args, source, sink, self.stderr)
        if captured:
            self._write_bytes(sink.getvalue())

    def _kill(self, args: Sequence[str]) -> None:
        try:
            self._print(self.jobs.handle_kill(args))
        except OSError as exc:
            self._error(f"Failed to kill job by ID: {_describe(exc)}")

    def run_pipeline(self, commands: Sequence[Sequence[str]]) -> None:
        """Run the stages one after another, each fed the previous output."""
        data = b""
        for position, argv in enumerate(commands):
            last = position == len(commands) - 1
            target = self._child_stdout() if last else None
            feed = {"stdin": self._child_stdin()} if position == 0 else {"input": data}
            if not argv:
                self._error("execvp failed: empty command")
                data = b""
                continue
            try:
                result = subprocess.run(
                    list(argv),
                    stdout=subprocess.PIPE if target is None else target,
                    env=self._env(),
                    check=False,
                    **feed,
                )
            except OSError as exc:
                self._error(f"execvp failed: {_describe(exc)}")
                data = b""
                continue
            data = result.stdout or b""
            if last and target is None:
                self._write_bytes(data)

    def run_external(self, args: Sequence[str], background: bool):
        """Start a program, honouring ``>``/``>>``; return its process or None."""
        try:
            argv, redirect = extract_output_redirect(args)
        except ValueError as exc:
            self._error(str(exc))
            return None
        if not argv:
            self._error("execvp failed: empty command")
            return None

        with ExitStack() as stack:
            if redirect is not None:
                mode = "ab" if redirect.append else "wb"
                try:
                    target = stack.enter_context(
                        open(redirect.path, mode, opener=_create_file)
                    )
                except OSError as exc:
                    self._error(f"Failed to open output file: {_describe(exc)}")
                    return None
            else:
                target = self._child_stdout()
            capture = target is None and not background
            try:
                process = subprocess.Popen(
                    argv,
                    stdin=self._child_stdin(),
                    stdout=subprocess.PIPE if capture else target,
                    env=self._env(),
                )
            except OSError as exc:
                self._error(f"execvp failed: {_describe(exc)}")
                return None

        if background:
            try:
                job = self.jobs.add(process, argv[0])
            except RuntimeError as exc:
                self._print(str(exc))
            else:
                self._print(f"Background job started: {job}")
            return process

        output, _ = process.communicate()
        if capture:
            self._write_bytes(output)
        return process

    def loop(self) -> int:
        """Read and run lines until ``exit`` or end of input; return the status."""
        self._print(BANNER)
        self._print()
        while True:
            self.stdout.write(PROMPT)
            self.stdout.flush()
            line = self.stdin.readline(MAX_INPUT_SIZE - 1)
            if not line:
                return 0
            try:
                self.execute_line(line.split("\n", 1)[0])
            except ShellExit as exc:
                return exc.code


def main(argv: Sequence[str] | None = None) -> int:
    """Start an interactive shell on the standard streams."""
    return Shell().loop()


if __name__ == "__main__":
    sys.exit(main())