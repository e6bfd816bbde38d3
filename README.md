# quash

`quash` is a small interactive shell for POSIX systems. It reads one line at a
time, runs its built-in commands itself and starts everything else as a child
process. It needs nothing beyond the Python standard library.

## Installing

```
pip install .
```

## Running

```
quash
```

The shell prints `WELCOME TO QUASH`, then shows the `quash$ ` prompt before
each line. It keeps reading until `exit` is entered or input ends.

## What it understands

- **Words** are separated by single spaces. Lines are read up to 1023
  characters, and at most 99 words of a command are kept (going over is
  reported as `Error: Too many arguments`).
- **External commands**: any program on `PATH`, e.g. `ls -l`. They get the
  shell's current environment, including variables set with `export`.
- **Pipelines**: `ls | sort | head`. The stages run one after another; each
  stage's whole output is collected and then given to the next stage as its
  input.
- **Output redirection** for external commands and `echo`: `cmd > file`
  overwrites the file and `cmd >> file` appends to it. Only the first `>` or
  `>>` counts, and any words after the file name are dropped.
- **Background jobs**: a trailing `&` (`sleep 10&` or `sleep 10 &`) starts the
  command without waiting and records it in the job table, printing
  `Background job started: [ID] PID COMMAND`.

### Built-in commands

| Command | Effect |
|---|---|
| `pwd` | print the working directory |
| `cd [dir]` | change directory; with no argument or `~`, go to `$HOME` |
| `echo args...` | print the arguments; a word `$NAME` becomes the variable's value (empty if unset), and one pair of surrounding quotes is removed from each word; supports `>` and `>>` |
| `export VAR=VALUE` | set an environment variable and print `Exported: VAR=VALUE` |
| `jobs` | list every background job as `Running`, `Completed` or `Terminated by signal N` |
| `kill %JOBID` / `kill PID` | send SIGKILL to a running background job, chosen by job id or by process id |
| `cat [files...]` | copy the files, or standard input when none are named, to the output; supports `<`, `>` and `>>`; files that cannot be opened are reported and skipped |
| `grep args...` | run the system `grep` after removing surrounding quotes from its arguments |
| `exit` | leave the shell |

Job ids start at 1 and are not reused; finished jobs stay in the `jobs` list.
`kill` only acts on jobs the shell started in the background.

## Using it from Python

```python
import io
from quash.shell import Shell

out = io.StringIO()
shell = Shell(stdout=out, environ={"HOME": "/tmp"})
shell.execute_line("echo hello > greeting.txt")
shell.execute_line("echo $HOME")
print(out.getvalue())          # "/tmp\n"
```

`Shell` takes optional `stdin`, `stdout`, `stderr` and `environ` arguments.
`Shell.loop()` runs the read-and-execute loop and returns the exit status;
`exit` inside a line raises `quash.shell.ShellExit`.

The pieces can also be used on their own:

- `quash.parsing`: `tokenize`, `split_pipeline`, `split_background`,
  `strip_quotes`, `expand_variable`, `extract_output_redirect` and the
  `OutputRedirect` record.
- `quash.builtins`: `pwd`, `echo`, `cd`, `export`, `cat`, `parse_cat_args`
  (returning a `CatPlan`), `grep` and `find` (which runs
  `find PATH -name PATTERN`, defaulting to `.` and `*`; the shell itself does
  not offer it as a command).
- `quash.jobs.JobTable`: tracks background processes, with `add`,
  `find_by_id`, `find_by_pid`, `remove`, `report`, `reap`, `kill_job`,
  `kill_pid` and `handle_kill`.

## What it does not do

- There is no quoting in the command line itself: quotes do not group words,
  and only `echo` and `grep` strip them.
- There is no globbing, no `$NAME` expansion outside `echo`, and no input
  redirection (`<`) except for `cat`.
- Pipeline stages do not run at the same time, so a stage that never ends
  (such as `yes | head`) blocks the shell.
- There is no `fg`, `bg` or signal handling for the foreground process, no
  command history and no line editing.

## Running the tests

```
pip install .[test]
pytest
```