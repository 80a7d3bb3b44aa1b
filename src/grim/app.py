"""grim - interactive process browser built on Textual."""

import logging

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Static

from grim.models import KillFlags, ProcessSnapshot, count_killed
from grim.policy import KillPolicy
from grim.provider import ProcessProvider
from grim.session import (
    KeyPress,
    KillRequest,
    Level,
    QuitRequest,
    SessionState,
    SessionView,
    build_view,
    handle_key,
    record_kills,
    refresh as refresh_session,
)

logger = logging.getLogger(__name__)

LEVEL_STYLES = {
    Level.LOW: "green",
    Level.MEDIUM: "yellow",
    Level.HIGH: "red",
}

REFRESH_INTERVAL = 0.2  # seconds


class ProcessList(DataTable, can_focus=False):
    """Process table; the session, not the table, owns the cursor."""


class ProcessTable(Container):
    """Container for the filtered process list."""

    DEFAULT_CSS = """
    ProcessTable {
        width: 70%;
        border: solid $primary;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield ProcessList(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", ProcessList)
        table.cursor_type = "row"

        table.add_column("PID", key="pid", width=8)
        table.add_column("Name", key="name", width=18)
        table.add_column("CPU", key="cpu", width=8)
        table.add_column("MEM", key="mem", width=12)
        table.add_column("UP", key="uptime")

    def show(self, view: SessionView) -> None:
        """Replace the rows with the ones in ``view`` and move the cursor."""
        self.border_title = view.title
        table = self.query_one("#process-table", ProcessList)
        table.clear()
        for row in view.rows:
            table.add_row(
                str(row.pid),
                row.name,
                Text(f"{row.cpu_usage:>4.1f}%", style=LEVEL_STYLES[row.cpu_level]),
                Text(f"{row.memory:>6} KB", style=LEVEL_STYLES[row.memory_level]),
                f"{row.uptime}s",
                key=str(row.pid),
            )
        if view.selected_index is not None:
            table.move_cursor(row=view.selected_index)


class ConfirmBox(Container):
    """Centered yes/no dialog."""

    DEFAULT_CSS = """
    ConfirmBox {
        layer: dialog;
        dock: top;
        width: 100%;
        height: 100%;
        align: center middle;
        background: $background 50%;
        display: none;
    }

    #dialog-box {
        width: 60%;
        height: auto;
        border: solid $warning;
        background: $surface;
        padding: 1;
    }

    #dialog-title, #dialog-choices {
        width: 100%;
        content-align: center middle;
    }
    """

    def compose(self) -> ComposeResult:
        """Compose the dialog box."""
        yield Container(
            Static(id="dialog-title"),
            Static(id="dialog-choices"),
            id="dialog-box",
        )

    def show(self, title: str, yes_selected: bool) -> None:
        """Show the dialog with the chosen button highlighted."""
        yes_style = "bold black on green" if yes_selected else ""
        no_style = "" if yes_selected else "bold black on red"
        choices = Text.assemble(("  [ Yes ]  ", yes_style), "    ", ("  [ No ]  ", no_style))
        self.query_one("#dialog-title", Static).update(Text(title))
        self.query_one("#dialog-choices", Static).update(choices)
        self.display = True


class GrimApp(App[int]):
    """Interactive grim session. ``run()`` returns the number of processes killed."""

    TITLE = "grim"
    SUB_TITLE = "Interactive Process Terminator"

    CSS = """
    Screen {
        layout: vertical;
        layers: base dialog;
    }

    #filter-box {
        height: 3;
        border: solid $accent;
        border-title-color: $accent;
        display: none;
    }

    #main {
        height: 1fr;
    }

    #details {
        width: 30%;
        border: solid $primary;
        padding: 0 1;
    }

    #footer {
        height: 2;
        border-top: solid $primary;
    }
    """

    def __init__(
        self,
        provider: ProcessProvider,
        kill_children: bool = False,
        force: bool = False,
        refresh_interval: float = REFRESH_INTERVAL,
    ) -> None:
        """Initialize the GrimApp."""
        super().__init__()
        self._provider = provider
        self._refresh_interval = refresh_interval
        self.snapshot = ProcessSnapshot()
        self.session = SessionState(kill_children=kill_children, force=force)

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Static(id="filter-box")
        yield Horizontal(
            ProcessTable(),
            Static(id="details"),
            id="main",
        )
        yield Static(id="footer")
        yield ConfirmBox(id="confirm-dialog")

    def on_mount(self) -> None:
        """Take the first snapshot and refresh on a timer."""
        self.query_one("#filter-box", Static).border_title = "Filter (ESC to cancel)"
        self.refresh_snapshot()
        self.set_interval(self._refresh_interval, self.refresh_snapshot)

    def refresh_snapshot(self) -> None:
        """Replace the snapshot wholesale and reclamp the selection."""
        try:
            self.snapshot = self._provider.snapshot()
        except Exception:
            # Keep showing the previous snapshot
            logger.exception("Failed to collect process snapshot")
            return
        self.session = refresh_session(self.session, self.snapshot)
        self.render_view()

    def on_key(self, event: events.Key) -> None:
        """Feed key presses through the session state machine."""
        transition = handle_key(self.session, KeyPress(event.key, event.character), self.snapshot)
        self.session = transition.state

        for effect in transition.effects:
            if isinstance(effect, KillRequest):
                self.kill_process(effect.pid)
            elif isinstance(effect, QuitRequest):
                self.exit(self.session.total_killed)
                return

        event.stop()
        self.render_view()

    def kill_process(self, pid: int) -> None:
        """Run the kill sequence for ``pid`` against the current snapshot."""
        flags = KillFlags(force=self.session.force, kill_children=self.session.kill_children)
        outcomes = KillPolicy(self._provider, flags).kill_in_snapshot(self.snapshot, pid)
        killed = count_killed(outcomes)
        self.session = record_kills(self.session, killed)
        logger.info("Killed %d process(es) for PID %d", killed, pid)

    def render_view(self) -> None:
        """Draw the current SessionView."""
        view = build_view(self.session, self.snapshot)

        self.query_one(ProcessTable).show(view)
        self.query_one("#details", Static).update(Text(view.details))
        self.query_one("#footer", Static).update(Text(view.footer))

        filter_box = self.query_one("#filter-box", Static)
        filter_box.display = view.filter_box is not None
        filter_box.update(Text(view.filter_box or ""))

        dialog = self.query_one(ConfirmBox)
        if view.dialog is None:
            dialog.display = False
        else:
            dialog.show(view.dialog.title, view.dialog.yes_selected)
