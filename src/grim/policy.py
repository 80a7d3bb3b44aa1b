"""Kill decisions: confirmation, children first, then the target."""

import logging
import sys
from collections.abc import Sequence
from typing import Protocol, TextIO

from grim.models import Candidate, KillFlags, KillOutcome, ProcessInfo, ProcessSnapshot
from grim.provider import ProcessProvider

logger = logging.getLogger(__name__)

AFFIRMATIVE_ANSWERS = frozenset({"y", "yes"})


def is_affirmative(answer: str) -> bool:
    """Only 'y' or 'yes' (any case) confirm; everything else declines."""
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


class ConfirmationSource(Protocol):
    """Something that can answer a yes/no question."""

    def confirm(self, prompt: str) -> bool:
        """Return True if the answer to ``prompt`` is yes."""
        ...


class StreamConfirmation:
    """Ask on one text stream and read a line from another (stdin by default)."""

    def __init__(self, stdin: TextIO | None = None, stdout: TextIO | None = None) -> None:
        """Initialize with explicit streams, or stdin/stdout."""
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout

    def confirm(self, prompt: str) -> bool:
        """Write ``prompt`` and read one line as the answer."""
        self._stdout.write(prompt)
        self._stdout.flush()
        # EOF reads as an empty answer
        return is_affirmative(self._stdin.readline())


def confirmation_prompt(has_children: bool, kill_children: bool) -> str:
    """Build the y/N question shown before a scripted kill."""
    suffix = " and its children" if kill_children and has_children else ""
    return f"⚠️  Kill this process{suffix}? (y/N): "


class KillPolicy:
    """
    Decide whether a candidate dies and carry the decision out.

    With ``kill_children`` set, direct children are terminated before the
    target. A failed child kill never stops the remaining children or the
    target; every terminate call is independent.
    """

    def __init__(
        self,
        provider: ProcessProvider,
        flags: KillFlags,
        confirmation: ConfirmationSource | None = None,
    ) -> None:
        """
        Initialize the KillPolicy.

        Args:
            provider: Where terminate calls go.
            flags: Force and kill-children modes.
            confirmation: Answers the scripted y/N prompt. Defaults to stdin.
        """
        self._provider = provider
        self._confirmation = confirmation or StreamConfirmation()
        self.flags = flags

    def kill_sequence(
        self,
        pid: int,
        name: str,
        children: Sequence[ProcessInfo] = (),
    ) -> list[KillOutcome]:
        """Terminate children (if enabled) and then ``pid``, in that order."""
        outcomes: list[KillOutcome] = []

        if self.flags.kill_children:
            for child in children:
                killed = self._provider.terminate(child.pid)
                if not killed:
                    logger.debug("Ignoring failed kill of child PID %d", child.pid)
                outcomes.append(KillOutcome(pid=child.pid, name=child.name, killed=killed))

        killed = self._provider.terminate(pid)
        if not killed:
            logger.debug("Failed to kill PID %d (%s)", pid, name)
        outcomes.append(KillOutcome(pid=pid, name=name, killed=killed))
        return outcomes

    def kill_in_snapshot(self, snapshot: ProcessSnapshot, pid: int) -> list[KillOutcome]:
        """
        Kill sequence for a pid using that snapshot's parent links.

        A pid missing from the snapshot is left alone: the number may already
        belong to a different process.
        """
        proc = snapshot.get(pid)
        if proc is None:
            logger.info("PID %d is no longer in the snapshot, not killing", pid)
            return []
        return self.kill_sequence(pid, proc.name, snapshot.children_of(pid))

    def resolve(
        self,
        candidate: Candidate,
        children: Sequence[ProcessInfo] = (),
    ) -> list[KillOutcome] | None:
        """
        Confirm (unless forced) and kill a candidate.

        Returns None when the user declined, otherwise the outcome of every
        terminate attempt.
        """
        if not self.flags.force:
            prompt = confirmation_prompt(bool(children), self.flags.kill_children)
            if not self._confirmation.confirm(prompt):
                logger.info("User declined to kill PID %d", candidate.pid)
                return None

        return self.kill_sequence(candidate.pid, candidate.name, children)
