"""
Interactive session state machine.

Everything here is pure: key presses and snapshots go in, a new SessionState
plus a tuple of effects comes out. The textual app executes the effects and
renders the SessionView, which keeps the modal logic testable without a
terminal or a live process table.
"""

from dataclasses import dataclass, replace
from enum import Enum

from grim.models import ProcessInfo, ProcessSnapshot

CPU_THRESHOLDS = (20.0, 50.0)  # percent
MEMORY_THRESHOLDS = (50_000, 200_000)  # kilobytes


class Mode(Enum):
    """Which modal state the session is in."""

    NORMAL = "normal"
    FILTER_EDIT = "filter"
    CONFIRM = "confirm"


class Level(Enum):
    """Severity bucket used to colour cpu and memory cells."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(slots=True, frozen=True)
class KeyPress:
    """A key event, named the way textual names keys."""

    key: str
    character: str | None = None


@dataclass(slots=True, frozen=True)
class ConfirmDialog:
    pid: int
    yes_selected: bool = True


@dataclass(slots=True, frozen=True)
class SessionState:
    """UI state of the interactive browser."""

    mode: Mode = Mode.NORMAL
    selected_index: int = 0
    filter_text: str = ""
    confirm: ConfirmDialog | None = None
    kill_children: bool = False
    force: bool = False
    total_killed: int = 0


@dataclass(slots=True, frozen=True)
class KillRequest:
    """Run the kill sequence for ``pid``."""

    pid: int


@dataclass(slots=True, frozen=True)
class QuitRequest:
    """End the session."""


Effect = KillRequest | QuitRequest


@dataclass(slots=True, frozen=True)
class Transition:
    state: SessionState
    effects: tuple[Effect, ...] = ()


def visible_processes(snapshot: ProcessSnapshot, filter_text: str) -> list[ProcessInfo]:
    """Processes whose name contains ``filter_text`` (case-insensitive)."""
    if not filter_text:
        return list(snapshot.values())
    needle = filter_text.lower()
    return [proc for proc in snapshot.values() if needle in proc.name.lower()]


def clamp_selection(state: SessionState, visible_count: int) -> SessionState:
    """Pull the selection back inside the visible list."""
    if visible_count <= 0:
        index = 0
    else:
        index = min(max(state.selected_index, 0), visible_count - 1)
    if index == state.selected_index:
        return state
    return replace(state, selected_index=index)


def selected_process(state: SessionState, visible: list[ProcessInfo]) -> ProcessInfo | None:
    """The highlighted process, or None when nothing is visible."""
    if not visible:
        return None
    return visible[state.selected_index]


def refresh(state: SessionState, snapshot: ProcessSnapshot) -> SessionState:
    """
    Reclamp after a new snapshot arrived.

    A confirmation dialog whose process left the snapshot is closed without
    a kill, so a reused pid is never confirmed by accident.
    """
    if state.confirm is not None and state.confirm.pid not in snapshot:
        state = replace(state, mode=Mode.NORMAL, confirm=None)
    return clamp_selection(state, len(visible_processes(snapshot, state.filter_text)))


def record_kills(state: SessionState, killed: int) -> SessionState:
    """Add successful kills to the session total."""
    if killed <= 0:
        return state
    return replace(state, total_killed=state.total_killed + killed)


def handle_key(state: SessionState, key: KeyPress, snapshot: ProcessSnapshot) -> Transition:
    """Apply one key press. The selection is reclamped on the way out."""
    visible = visible_processes(snapshot, state.filter_text)

    if state.mode is Mode.CONFIRM:
        transition = _handle_confirm(state, key)
    elif state.mode is Mode.FILTER_EDIT:
        transition = _handle_filter(state, key)
    else:
        transition = _handle_normal(state, key, visible)

    new_state = refresh(transition.state, snapshot)
    if new_state is transition.state:
        return transition
    return Transition(new_state, transition.effects)


def _handle_normal(state: SessionState, key: KeyPress, visible: list[ProcessInfo]) -> Transition:
    """Navigation, toggles, filter entry, kill and quit."""
    if key.key in ("up", "down"):
        step = -1 if key.key == "up" else 1
        moved = replace(state, selected_index=state.selected_index + step)
        return Transition(clamp_selection(moved, len(visible)))

    char = key.character
    if char == "q":
        return Transition(state, (QuitRequest(),))
    if char == "c":
        return Transition(replace(state, kill_children=not state.kill_children))
    if char == "f":
        return Transition(replace(state, force=not state.force))
    if char == "/" or key.key == "slash":
        return Transition(replace(state, mode=Mode.FILTER_EDIT, filter_text=""))
    if char == "k":
        proc = selected_process(state, visible)
        if proc is None:
            return Transition(state)
        if state.force:
            return Transition(state, (KillRequest(proc.pid),))
        return Transition(replace(state, mode=Mode.CONFIRM, confirm=ConfirmDialog(proc.pid)))

    return Transition(state)


def _handle_filter(state: SessionState, key: KeyPress) -> Transition:
    """Edit the filter text; every printable key is text here."""
    if key.key == "enter":
        return Transition(replace(state, mode=Mode.NORMAL))
    if key.key == "escape":
        return Transition(replace(state, mode=Mode.NORMAL, filter_text=""))
    if key.key == "backspace":
        return Transition(replace(state, filter_text=state.filter_text[:-1]))
    if key.character and key.character.isprintable():
        return Transition(replace(state, filter_text=state.filter_text + key.character))
    return Transition(state)


def _handle_confirm(state: SessionState, key: KeyPress) -> Transition:
    """Yes/no dialog: arrows toggle, enter decides, escape cancels."""
    dialog = state.confirm
    if dialog is None:
        return Transition(replace(state, mode=Mode.NORMAL))

    if key.key in ("left", "right"):
        toggled = replace(dialog, yes_selected=not dialog.yes_selected)
        return Transition(replace(state, confirm=toggled))
    if key.key == "enter":
        closed = replace(state, mode=Mode.NORMAL, confirm=None)
        if dialog.yes_selected:
            return Transition(closed, (KillRequest(dialog.pid),))
        return Transition(closed)
    if key.key == "escape":
        return Transition(replace(state, mode=Mode.NORMAL, confirm=None))
    return Transition(state)


# --- View model ---


@dataclass(slots=True, frozen=True)
class ProcessRow:
    pid: int
    name: str
    cpu_usage: float
    memory: int
    uptime: int
    cpu_level: Level
    memory_level: Level


@dataclass(slots=True, frozen=True)
class DialogView:
    title: str
    yes_selected: bool


@dataclass(slots=True, frozen=True)
class SessionView:
    """Everything the renderer draws for one frame."""

    title: str
    rows: tuple[ProcessRow, ...]
    selected_index: int | None
    details: str
    footer: str
    filter_box: str | None = None
    dialog: DialogView | None = None


def level_for(value: float, thresholds: tuple[float, float]) -> Level:
    """Bucket ``value`` against a (low, high) threshold pair."""
    low, high = thresholds
    if value < low:
        return Level.LOW
    if value < high:
        return Level.MEDIUM
    return Level.HIGH


def describe_process(proc: ProcessInfo, snapshot: ProcessSnapshot) -> str:
    """Details pane text for one process."""
    children = snapshot.children_of(proc.pid)
    if children:
        child_lines = "".join(f" ↳ {child.pid} ({child.name})\n" for child in children)
    else:
        child_lines = " (none)\n"
    return (
        f"PID: {proc.pid}\n"
        f"Name: {proc.name}\n"
        f"CMD: {proc.command_line}\n"
        f"Parent PID: {proc.parent_pid or 0}\n"
        f"CPU: {proc.cpu_usage:.2f}%\n"
        f"MEM: {proc.memory} KB\n"
        f"Uptime: {proc.uptime}s\n"
        f"Children:\n{child_lines}"
    )


def footer_text(state: SessionState) -> str:
    """Key help plus the current toggles and kill count."""
    def on_off(flag: bool) -> str:
        """Render a flag as on or off."""
        return "on" if flag else "off"

    return (
        f"[↑↓] Move  [k] Kill  [c] children={on_off(state.kill_children)}  "
        f"[f] force={on_off(state.force)}  [/] filter  [q] Quit | "
        f"Total killed: {state.total_killed}"
    )


def build_view(state: SessionState, snapshot: ProcessSnapshot) -> SessionView:
    """Build the frame to draw for ``state`` over ``snapshot``."""
    visible = visible_processes(snapshot, state.filter_text)
    state = clamp_selection(state, len(visible))

    rows = tuple(
        ProcessRow(
            pid=proc.pid,
            name=proc.name,
            cpu_usage=proc.cpu_usage,
            memory=proc.memory,
            uptime=proc.uptime,
            cpu_level=level_for(proc.cpu_usage, CPU_THRESHOLDS),
            memory_level=level_for(proc.memory, MEMORY_THRESHOLDS),
        )
        for proc in visible
    )

    proc = selected_process(state, visible)
    details = describe_process(proc, snapshot) if proc is not None else "No process selected."

    dialog = None
    if state.mode is Mode.CONFIRM and state.confirm is not None:
        target = snapshot.get(state.confirm.pid)
        title = f"Kill PID {target.pid} ({target.name})?" if target is not None else ""
        dialog = DialogView(title=title, yes_selected=state.confirm.yes_selected)

    return SessionView(
        title=f"Processes [{len(visible)} shown]",
        rows=rows,
        selected_index=state.selected_index if visible else None,
        details=details,
        footer=footer_text(state),
        filter_box=state.filter_text if state.mode is Mode.FILTER_EDIT else None,
        dialog=dialog,
    )
