import subprocess
import sys

import pytest

from quash.jobs import MAX_JOBS, Job, JobState, JobTable


class FakeProcess:
    def __init__(self, pid, returncode=None, fail_kill=False):
        self.pid = pid
        self.returncode = returncode
        self.fail_kill = fail_kill
        self.kill_calls = 0
        self.wait_calls = 0

    def poll(self):
        return self.returncode

    def kill(self):
        if self.fail_kill:
            raise PermissionError("denied")
        self.kill_calls += 1
        self.returncode = -9

    def wait(self, timeout=None):
        self.wait_calls += 1
        return self.returncode


def make_table(*processes, names=None):
    table = JobTable()
    jobs = []
    for index, process in enumerate(processes):
        command = names[index] if names else f"cmd{index}"
        jobs.append(table.add(process, command))
    return table, jobs


def test_add_assigns_sequential_ids():
    table, jobs = make_table(FakeProcess(101), FakeProcess(202))
    assert [job.job_id for job in jobs] == [1, 2]
    assert [job.pid for job in jobs] == [101, 202]
    assert len(table) == 2
    assert list(table) == jobs
    assert all(job.state is JobState.RUNNING for job in jobs)


def test_add_respects_capacity():
    table = JobTable(capacity=2)
    table.add(FakeProcess(1), "a")
    table.add(FakeProcess(2), "b")
    with pytest.raises(RuntimeError, match="Maximum job limit reached"):
        table.add(FakeProcess(3), "c")
    assert len(table) == 2


def test_default_capacity_is_max_jobs():
    assert JobTable().capacity == MAX_JOBS


def test_job_str_format():
    job = Job(3, 77, "sleep", FakeProcess(77))
    assert str(job) == "[3] 77 sleep"
    assert job.active


def test_report_empty():
    assert JobTable().report() == ["No jobs found"]


def test_report_running_job():
    table, (job,) = make_table(FakeProcess(42), names=["sleep"])
    assert table.report() == [f"{job} - Running"]
    assert job.active


def test_report_completed_job_stays_completed():
    process = FakeProcess(42)
    table, (job,) = make_table(process)
    process.returncode = 0
    assert table.report() == [f"{job} - Completed"]
    assert not job.active
    assert table.report() == [f"{job} - Completed"]


def test_report_signalled_job_then_completed():
    process = FakeProcess(42)
    table, (job,) = make_table(process)
    process.returncode = -15
    assert table.report() == [f"{job} - Terminated by signal 15"]
    assert table.report() == [f"{job} - Completed"]


def test_reap_reports_each_finished_job_once():
    done = FakeProcess(1, returncode=0)
    running = FakeProcess(2)
    table, (first, second) = make_table(done, running)
    assert table.reap() == [f"Completed: {first}"]
    assert second.active
    assert table.reap() == []


def test_remove_marks_job_inactive():
    table, (job,) = make_table(FakeProcess(55))
    table.remove(55)
    assert not job.active
    assert table.find_by_pid(55) is None
    assert table.find_by_id(job.job_id) is None


def test_find_by_id_and_pid():
    table, (first, second) = make_table(FakeProcess(10), FakeProcess(20))
    assert table.find_by_id(2) is second
    assert table.find_by_pid(10) is first
    assert table.find_by_id(9) is None
    assert table.find_by_pid(99) is None


def test_kill_job_success():
    process = FakeProcess(10)
    table, (job,) = make_table(process)
    message = table.kill_job(job.job_id)
    assert message == f"Job [{job.job_id}] with PID {job.pid} has been terminated"
    assert process.kill_calls == 1
    assert not job.active


def test_kill_job_not_found():
    table, _ = make_table(FakeProcess(10))
    assert table.kill_job(7) == "Job ID 7 not found"


def test_kill_job_failure_keeps_job_active():
    table, (job,) = make_table(FakeProcess(10, fail_kill=True))
    with pytest.raises(PermissionError):
        table.kill_job(job.job_id)
    assert job.active


def test_kill_pid_waits_for_process():
    process = FakeProcess(10)
    table, (job,) = make_table(process)
    assert table.kill_pid(10) == f"Job with PID {job.pid} terminated"
    assert process.kill_calls == 1
    assert process.wait_calls == 1
    assert not job.active


def test_kill_pid_not_found():
    table = JobTable()
    assert table.kill_pid(31) == "No active job with PID 31 found"


def test_handle_kill_usage():
    message = JobTable().handle_kill(["kill"])
    assert message.startswith("Usage: kill <PID>")


def test_handle_kill_by_job_id():
    table, (first, second) = make_table(FakeProcess(10), FakeProcess(20))
    message = table.handle_kill(["kill", "%2"])
    assert message == f"Job [2] with PID {second.pid} has been terminated"
    assert first.active
    assert not second.active


def test_handle_kill_job_id_with_trailing_text():
    table, (_, second) = make_table(FakeProcess(10), FakeProcess(20))
    table.handle_kill(["kill", "%2x"])
    assert not second.active


@pytest.mark.parametrize("target", ["%0", "%abc", "%-1", "%"])
def test_handle_kill_invalid_job_id(target):
    table, (job,) = make_table(FakeProcess(10))
    assert table.handle_kill(["kill", target]) == f"Invalid job ID: {target}"
    assert job.active


def test_handle_kill_by_pid():
    table, (job,) = make_table(FakeProcess(4321))
    message = table.handle_kill(["kill", "4321"])
    assert message == f"Job [{job.job_id}] with PID 4321 has been terminated"
    assert not job.active


def test_handle_kill_unknown_pid():
    table, _ = make_table(FakeProcess(10))
    message = table.handle_kill(["kill", "999"])
    assert message == "Process 999 not found in active jobs list"


@pytest.mark.parametrize("target", ["12a", "-5", "abc"])
def test_handle_kill_invalid_pid(target):
    table, (job,) = make_table(FakeProcess(12))
    assert table.handle_kill(["kill", target]) == f"Invalid PID: {target}"
    assert job.active


def test_handle_kill_inactive_job_is_not_found():
    table, (job,) = make_table(FakeProcess(10))
    table.remove(10)
    assert table.handle_kill(["kill", "%1"]) == "Job ID 1 not found"


def test_kill_pid_with_real_process():
    process = subprocess.Popen(
        [sys.executable, "-c", "import time; time.sleep(60)"]
    )
    try:
        table = JobTable()
        job = table.add(process, "python")
        assert table.kill_pid(process.pid) == f"Job with PID {process.pid} terminated"
        assert process.returncode is not None
        assert not job.active
    finally:
        if process.poll() is None:
            process.kill()
            process.wait()