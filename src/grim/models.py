"""Data models for grim."""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ProcessInfo:
    """Immutable point-in-time view of a single process."""

    pid: int
    name: str
    cmd: tuple[str, ...]
    cpu_usage: float  # 0.0 - 100.0 * core_count
    memory: int  # Kilobytes
    uptime: int  # Seconds
    parent_pid: int | None = None

    @property
    def command_line(self) -> str:
        """Command line tokens joined with single spaces."""
        return " ".join(self.cmd)


class ProcessSnapshot(Mapping[int, ProcessInfo]):
    """
    Read-only mapping of pid to ProcessInfo.

    Iteration follows the order the provider yielded the processes in. A pid
    from an older snapshot may refer to a different process in a newer one.
    """

    __slots__ = ("_processes",)

    def __init__(self, processes: Iterable[ProcessInfo] = ()) -> None:
        """Initialize the snapshot, keyed by pid in iteration order."""
        self._processes: dict[int, ProcessInfo] = {proc.pid: proc for proc in processes}

    def __getitem__(self, pid: int) -> ProcessInfo:
        """Return the process with ``pid``."""
        return self._processes[pid]

    def __iter__(self) -> Iterator[int]:
        """Iterate pids in provider order."""
        return iter(self._processes)

    def __len__(self) -> int:
        """Return the number of processes."""
        return len(self._processes)

    def __repr__(self) -> str:
        """Return a short summary with the process count."""
        return f"ProcessSnapshot({len(self._processes)} processes)"

    def children_of(self, pid: int) -> list[ProcessInfo]:
        """Direct children of ``pid``, sorted by pid."""
        children = [proc for proc in self._processes.values() if proc.parent_pid == pid]
        return sorted(children, key=lambda proc: proc.pid)


@dataclass(slots=True, frozen=True)
class MatchCriteria:
    """How pattern targets are compared against process names."""

    exact: bool = False


@dataclass(slots=True, frozen=True)
class Candidate:
    """A process selected for a kill decision."""

    pid: int
    name: str
    cmd: tuple[str, ...] = ()

    @classmethod
    def from_process(cls, proc: ProcessInfo) -> "Candidate":
        """Candidate carrying the identity fields of ``proc``."""
        return cls(pid=proc.pid, name=proc.name, cmd=proc.cmd)


@dataclass(slots=True, frozen=True)
class KillOutcome:
    """Result of a single terminate attempt."""

    pid: int
    name: str
    killed: bool


@dataclass(slots=True, frozen=True)
class KillFlags:
    """Mode flags consulted by the kill policy."""

    force: bool = False
    kill_children: bool = False


def count_killed(outcomes: Iterable[KillOutcome]) -> int:
    """Number of outcomes whose terminate call succeeded."""
    return sum(1 for outcome in outcomes if outcome.killed)
