"""Scripted (one-shot and watch) kill loop."""

import logging
import sys
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import TextIO

from grim.config import GrimConfig
from grim.matcher import match_targets
from grim.models import Candidate, KillOutcome, ProcessInfo, ProcessSnapshot, count_killed
from grim.policy import ConfirmationSource, KillPolicy, StreamConfirmation
from grim.provider import ProcessProvider

logger = logging.getLogger(__name__)


class RunPhase(Enum):
    """Phases of the scripted loop."""

    POLLING = "polling"
    PER_TARGET_KILL = "per-target-kill"
    STOP_CHECK = "stop-check"
    WAIT_INTERVAL = "wait-interval"
    DONE = "done"


class StopReason(Enum):
    """Why the loop reached DONE."""

    MAX_KILLS = "max-kills"
    TIMEOUT = "timeout"
    SINGLE_PASS = "single-pass"


@dataclass(slots=True, frozen=True)
class RunState:
    """Counters for one invocation."""

    total_killed: int = 0
    started_at: float = 0.0
    elapsed: float = 0.0
    passes: int = 0


def max_kills_reached(state: RunState, config: GrimConfig) -> bool:
    """True once the kill budget, if any, is used up."""
    return config.max_kills is not None and state.total_killed >= config.max_kills


def stop_reason(state: RunState, config: GrimConfig) -> StopReason | None:
    """
    Decide whether the loop is done after a pass.

    Checked in order: kill budget, time budget, then single-pass mode.
    """
    if max_kills_reached(state, config):
        return StopReason.MAX_KILLS
    if config.timeout is not None and state.elapsed >= config.timeout:
        return StopReason.TIMEOUT
    if not config.watch:
        return StopReason.SINGLE_PASS
    return None


class ScriptedRunner:
    """
    Drives POLLING -> PER_TARGET_KILL -> STOP_CHECK -> WAIT_INTERVAL passes.

    Stop conditions are only checked between passes, so a kill sequence that
    has started always finishes.
    """

    def __init__(
        self,
        config: GrimConfig,
        provider: ProcessProvider,
        confirmation: ConfirmationSource | None = None,
        out: TextIO | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the ScriptedRunner. Clock, sleep and output are injectable for tests."""
        self._config = config
        self._provider = provider
        self._out = out or sys.stdout
        self._clock = clock
        self._sleep = sleep
        self._policy = KillPolicy(
            provider, config.flags, confirmation or StreamConfirmation(stdout=self._out)
        )
        self.phase = RunPhase.POLLING

    def run(self) -> RunState:
        """Run until a stop condition holds and return the final counters."""
        state = RunState(started_at=self._clock())
        snapshot = ProcessSnapshot()
        candidates: list[Candidate] = []
        self.phase = RunPhase.POLLING

        while self.phase is not RunPhase.DONE:
            if self.phase is RunPhase.POLLING:
                snapshot = self._provider.snapshot()
                candidates = match_targets(snapshot, self._config.targets, self._config.criteria)
                logger.debug("Pass %d: %d candidate(s)", state.passes + 1, len(candidates))
                self.phase = RunPhase.PER_TARGET_KILL

            elif self.phase is RunPhase.PER_TARGET_KILL:
                state = self.kill_pass(snapshot, candidates, state)
                self.phase = RunPhase.STOP_CHECK

            elif self.phase is RunPhase.STOP_CHECK:
                state = replace(state, elapsed=self._clock() - state.started_at)
                reason = stop_reason(state, self._config)
                if reason is None:
                    self.phase = RunPhase.WAIT_INTERVAL
                else:
                    self._report_stop(reason)
                    self.phase = RunPhase.DONE

            elif self.phase is RunPhase.WAIT_INTERVAL:
                self.countdown(self._config.interval)
                self.phase = RunPhase.POLLING

        self._write(f"🎯 Finished. Total processes killed: {state.total_killed}\n")
        return state

    def kill_pass(
        self,
        snapshot: ProcessSnapshot,
        candidates: Sequence[Candidate],
        state: RunState,
    ) -> RunState:
        """Apply the kill policy to each candidate of one pass."""
        for candidate in candidates:
            if max_kills_reached(state, self._config):
                logger.debug("Kill budget exhausted, leaving remaining candidates")
                break

            # Stats are refreshed, parent/child links stay from the polled snapshot
            proc = self._provider.refresh_one(candidate.pid)
            if proc is None:
                logger.debug("PID %d vanished before it could be examined", candidate.pid)
                continue

            children = snapshot.children_of(candidate.pid)
            self._report_process(proc, children)

            outcomes = self._policy.resolve(candidate, children)
            if outcomes is None:
                self._write(f"⏭️  Skipping PID {candidate.pid}\n")
                continue

            self._report_outcomes(outcomes)
            state = replace(state, total_killed=state.total_killed + count_killed(outcomes))

        return replace(state, passes=state.passes + 1)

    def countdown(self, seconds: int) -> None:
        """Wait ``seconds`` one second at a time, showing what is left."""
        for remaining in range(seconds, 0, -1):
            self._write(f"\r⏳ Checking again in {remaining}... ")
            self._sleep(1)
        self._write("\n")

    def _report_process(self, proc: ProcessInfo, children: Sequence[ProcessInfo]) -> None:
        """Print the refreshed stats and children of a candidate."""
        lines = [
            "",
            "🔍 Found process:",
            f"    PID:        {proc.pid}",
            f"    Name:       {proc.name}",
            f"    Cmd:        {proc.command_line}",
            f"    CPU usage:  {proc.cpu_usage:.2f}%",
            f"    Memory:     {proc.memory / 1024:.2f} MB",
            f"    Uptime:     {proc.uptime} sec",
            f"    Parent PID: {proc.parent_pid or 0}",
        ]
        if children:
            lines.append(f"⚠️  Has {len(children)} child(ren):")
            lines.extend(f"      ↳ PID {child.pid} - {child.name}" for child in children)
        else:
            lines.append("    Child processes: (none)")
        self._write("\n".join(lines) + "\n")

    def _report_outcomes(self, outcomes: Sequence[KillOutcome]) -> None:
        """Print successful child kills and the result for the target."""
        # The target is always the last outcome, children come before it
        *children, target = outcomes
        for child in children:
            if child.killed:
                self._write(f"✅ Killed child PID {child.pid} - {child.name}\n")
        if target.killed:
            self._write(f"✅ Killed PID {target.pid} ({target.name})\n")
        else:
            self._write(f"❌ Failed to kill PID {target.pid} ({target.name})\n")

    def _report_stop(self, reason: StopReason) -> None:
        """Print why the loop stopped, if it was a limit."""
        if reason is StopReason.MAX_KILLS:
            self._write(f"🎉 Reached max kill count ({self._config.max_kills}). Exiting.\n")
        elif reason is StopReason.TIMEOUT:
            self._write(f"⏰ Timeout of {self._config.timeout}s reached. Exiting.\n")

    def _write(self, text: str) -> None:
        """Write to the output stream and flush."""
        self._out.write(text)
        self._out.flush()
