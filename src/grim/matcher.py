"""Resolve user supplied targets against a process snapshot."""

from collections.abc import Iterable

from grim.errors import ConfigurationError
from grim.models import Candidate, MatchCriteria, ProcessInfo, ProcessSnapshot


def parse_pid(target: str) -> int | None:
    """
    Return the pid a target names, or None if it is a pattern.

    Only plain ASCII digits name a pid; "1_000", " 17" and non-ASCII digits
    are patterns.
    """
    if target.isascii() and target.isdecimal():
        return int(target)
    return None


def matches_pattern(proc: ProcessInfo, pattern: str, criteria: MatchCriteria) -> bool:
    """Case-insensitive name (and, unless exact, command line) match."""
    pattern = pattern.lower()
    name = proc.name.lower()
    if criteria.exact:
        return name == pattern
    return pattern in name or pattern in proc.command_line.lower()


def match_target(
    snapshot: ProcessSnapshot,
    target: str,
    criteria: MatchCriteria = MatchCriteria(),
) -> list[Candidate]:
    """
    Find the processes a single target refers to.

    Numeric targets are pid lookups and never fall back to pattern matching,
    whatever the criteria say.
    """
    pid = parse_pid(target)
    if pid is not None:
        proc = snapshot.get(pid)
        return [Candidate.from_process(proc)] if proc is not None else []

    return [
        Candidate.from_process(proc)
        for proc in snapshot.values()
        if matches_pattern(proc, target, criteria)
    ]


def match_targets(
    snapshot: ProcessSnapshot,
    targets: Iterable[str],
    criteria: MatchCriteria = MatchCriteria(),
) -> list[Candidate]:
    """
    Union the matches of every target, one candidate per pid.

    Candidates come back in snapshot order so a process matched by several
    targets is acted on once per pass.
    """
    targets = list(targets)
    if not targets:
        raise ConfigurationError("Missing targets for grim (PIDs or process names)")

    matched: set[int] = set()
    for target in targets:
        matched.update(candidate.pid for candidate in match_target(snapshot, target, criteria))

    return [Candidate.from_process(snapshot[pid]) for pid in snapshot if pid in matched]
