"""Shared fixtures: an in-memory process table standing in for the OS."""

import pytest

from grim.models import ProcessInfo, ProcessSnapshot


def make_proc(
    pid: int,
    name: str,
    cmd: tuple[str, ...] | None = None,
    parent_pid: int | None = None,
    cpu_usage: float = 1.0,
    memory: int = 1024,
    uptime: int = 10,
) -> ProcessInfo:
    """Build a ProcessInfo with sensible defaults."""
    return ProcessInfo(
        pid=pid,
        name=name,
        cmd=cmd if cmd is not None else (f"/usr/bin/{name}",),
        cpu_usage=cpu_usage,
        memory=memory,
        uptime=uptime,
        parent_pid=parent_pid,
    )


class FakeProvider:
    """Process provider over a dict; terminated processes disappear."""

    def __init__(self, processes=(), failing=()) -> None:
        """Initialize the FakeProvider over ``processes``."""
        self.processes = {proc.pid: proc for proc in processes}
        self.failing = set(failing)
        self.terminated: list[int] = []
        self.snapshots_taken = 0

    def snapshot(self) -> ProcessSnapshot:
        """Return the current table and count the call."""
        self.snapshots_taken += 1
        return ProcessSnapshot(self.processes.values())

    def refresh_one(self, pid: int):
        """Return the process, or None once it is gone."""
        return self.processes.get(pid)

    def terminate(self, pid: int) -> bool:
        """Remove the process unless it is marked as failing."""
        if pid in self.failing or pid not in self.processes:
            return False
        del self.processes[pid]
        self.terminated.append(pid)
        return True


class ScriptedAnswers:
    """Confirmation source that replays canned answers."""

    def __init__(self, *answers: bool) -> None:
        """Initialize with the answers to give, in order."""
        self.answers = list(answers)
        self.prompts: list[str] = []

    def confirm(self, prompt: str) -> bool:
        """Record the prompt; decline once the answers run out."""
        self.prompts.append(prompt)
        return self.answers.pop(0) if self.answers else False


@pytest.fixture
def processes() -> list[ProcessInfo]:
    """A small process tree: a shell with two children and some browsers."""
    return [
        make_proc(1, "init", ("/sbin/init",)),
        make_proc(100, "bash", ("/bin/bash", "--login"), parent_pid=1),
        make_proc(101, "python3", ("python3", "server.py"), parent_pid=100),
        make_proc(102, "sleep", ("sleep", "60"), parent_pid=100),
        make_proc(200, "chrome", ("/opt/chrome/chrome",), parent_pid=1),
        make_proc(201, "chrome", ("/opt/chrome/chrome", "--type=renderer"), parent_pid=200),
        make_proc(202, "Chrome_Helper", ("/opt/chrome/helper",), parent_pid=200),
        make_proc(300, "node", ("node", "/srv/chrome-devtools/index.js"), parent_pid=1),
    ]


@pytest.fixture
def snapshot(processes) -> ProcessSnapshot:
    """Snapshot of the process tree."""
    return ProcessSnapshot(processes)


@pytest.fixture
def provider(processes) -> FakeProvider:
    """FakeProvider over the process tree."""
    return FakeProvider(processes)
