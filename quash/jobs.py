"""Background job bookkeeping: listing, reaping and killing jobs."""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

MAX_JOBS = 100

_USAGE = "Usage: kill <PID> or kill %<JOBID>"
_ATOI = re.compile(r"[ \t\n\v\f\r]*([+-]?[0-9]+)")
_DIGITS = frozenset("0123456789")


class _Process(Protocol):
    pid: int

    def poll(self) -> int | None: ...

    def kill(self) -> None: ...

    def wait(self, timeout: float | None = None) -> int: ...


def _atoi(text: str) -> int:
    """Read a leading integer the way the C library does, 0 if there is none."""
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


class JobState(Enum):
    """Whether a job is still being tracked as running."""

    RUNNING = "Running"
    DONE = "Completed"


@dataclass
class Job:
    """One background command started by the shell."""

    job_id: int
    pid: int
    command: str
    process: _Process = field(repr=False, compare=False)
    state: JobState = JobState.RUNNING

    @property
    def active(self) -> bool:
        return self.state is JobState.RUNNING

    def __str__(self) -> str:
        return f"[{self.job_id}] {self.pid} {self.command}"


class JobTable:
    """The shell's list of background jobs.

    Job ids start at 1 and are never reused; finished jobs stay listed.
    """

    def __init__(self, capacity: int = MAX_JOBS) -> None:
        self.capacity = capacity
        self._jobs: list[Job] = []

    def __iter__(self) -> Iterator[Job]:
        return iter(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)

    def add(self, process: _Process, command: str) -> Job:
        """Record a started process; raises ``RuntimeError`` when full."""
        if len(self._jobs) >= self.capacity:
            raise RuntimeError("Failed to add job: Maximum job limit reached")
        job = Job(len(self._jobs) + 1, process.pid, command, process)
        self._jobs.append(job)
        return job

    def find_by_id(self, job_id: int) -> Job | None:
        """Return the active job with this id, if any."""
        return next(
            (job for job in self._jobs if job.job_id == job_id and job.active), None
        )

    def find_by_pid(self, pid: int) -> Job | None:
        """Return the first active job with this process id, if any."""
        return next((job for job in self._jobs if job.pid == pid and job.active), None)

    def remove(self, pid: int) -> None:
        """Mark the first job with this process id as no longer running."""
        for job in self._jobs:
            if job.pid == pid:
                job.state = JobState.DONE
                return

    def report(self) -> list[str]:
        """Describe every job, updating those that have finished."""
        lines = []
        for job in self._jobs:
            if not job.active:
                lines.append(f"{job} - Completed")
                continue
            code = job.process.poll()
            if code is None:
                lines.append(f"{job} - Running")
            elif code >= 0:
                job.state = JobState.DONE
                lines.append(f"{job} - Completed")
            else:
                job.state = JobState.DONE
                lines.append(f"{job} - Terminated by signal {-code}")
        return lines or ["No jobs found"]

    def reap(self) -> list[str]:
        """Mark finished jobs as done and describe the ones just finished."""
        lines = []
        for job in self._jobs:
            if job.active and job.process.poll() is not None:
                job.state = JobState.DONE
                lines.append(f"Completed: {job}")
        return lines

    def kill_job(self, job_id: int) -> str:
        """Send SIGKILL to the active job with this id.

        Errors from the operating system propagate and leave the job active.
        """
        job = self.find_by_id(job_id)
        if job is None:
            return f"Job ID {job_id} not found"
        job.process.kill()
        job.state = JobState.DONE
        return f"Job [{job_id}] with PID {job.pid} has been terminated"

    def kill_pid(self, pid: int) -> str:
        """Kill the active job with this process id and wait for it."""
        job = self.find_by_pid(pid)
        if job is None:
            return f"No active job with PID {pid} found"
        job.process.kill()
        job.process.wait()
        job.state = JobState.DONE
        return f"Job with PID {pid} terminated"

    def handle_kill(self, args: Sequence[str]) -> str:
        """Run the ``kill`` command: ``kill <PID>`` or ``kill %<JOBID>``."""
        if len(args) < 2:
            return _USAGE
        target = args[1]
        if target.startswith("%"):
            job_id = _atoi(target[1:])
            if job_id > 0:
                return self.kill_job(job_id)
            return f"Invalid job ID: {target}"
        if not all(char in _DIGITS for char in target):
            return f"Invalid PID: {target}"
        pid = _atoi(target)
        job = self.find_by_pid(pid)
        if job is None:
            return f"Process {pid} not found in active jobs list"
        return self.kill_job(job.job_id)