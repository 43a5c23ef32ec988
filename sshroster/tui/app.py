from __future__ import annotations

import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional, Sequence

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.timer import Timer
from textual.widgets import Header, Static

from sshroster.config import Config
from sshroster.connection_store import ConnectionStore, RuntimeConnectionItem, Status, derive_items
from sshroster.errors import RosterIOError, RosterParseError
from sshroster.platform_utils import get_data_dir
from sshroster.tui.controller import InteractionController, Mode
from sshroster.tui.editor import EditorMode, Field, RecordEditor
from sshroster.tui.launcher import SessionLauncher, SessionOutcome
from sshroster.tui.selection import SelectionList

LOG = logging.getLogger(__name__)

HELP_TEXT = (
    "↓↑/jk move · ← unselect · →/Enter ssh · f sshfs · g/G top/bottom · "
    "n new · e edit · d delete · r reload · q quit"
)


def format_row(item: RuntimeConnectionItem, selected: bool) -> str:
    """List row text: cursor, label and host, with X marking an unavailable host."""
    prefix = ">" if selected else " "
    marker = " X" if item.status is Status.NOT_AVAILABLE else ""
    return f"{prefix} {item.label} {item.host}{marker}"


class ConnectionList(Static):
    """Connection rows with the cursor row highlighted."""

    def show(self, selection: SelectionList[RuntimeConnectionItem]) -> None:
        if not selection.items:
            self.update(Text("No connections. Press n to add one.", style="dim"))
            return

        height = self.size.height or len(selection.items)
        start, stop = selection.visible_range(height)
        text = Text()
        for idx in range(start, stop):
            item = selection.items[idx]
            selected = idx == selection.current_index
            style = "red" if item.status is Status.NOT_AVAILABLE else ""
            if selected:
                style = f"{style} bold reverse yellow".strip()
            text.append(format_row(item, selected), style=style)
            if idx < stop - 1:
                text.append("\n")
        self.update(text)


class DetailsPanel(Static):
    """Shows information about the selected connection."""

    def show_empty(self, message: str = "Please select the connection") -> None:
        self.update(message)

    def show_connection(self, item: Optional[RuntimeConnectionItem]) -> None:
        if item is None:
            self.show_empty()
            return
        if item.status is Status.NOT_AVAILABLE:
            self.update(Text(f"NotAvailable - {item.host}", style="red"))
            return
        self.update(item.display())


class EditorForm(Static):
    """Modal form for the record editor."""

    def show_editor(self, editor: RecordEditor) -> None:
        title = "Edit connection" if editor.mode is EditorMode.EDIT else "New connection"
        text = Text(title, style="bold")
        text.append("\n\n")
        for field in Field:
            value = editor.value(field)
            if field is Field.PASSWORD:
                value = "*" * len(value)
            active = field is editor.active_field
            marker = "▶ " if active else "  "
            text.append(f"{marker}{field.title + ':':<10}", style="bold" if active else "")
            text.append(value, style="underline" if active else "")
            if active:
                text.append("█", style="blink")
            text.append("\n")
        text.append("\nTab next field · Enter save · Esc cancel", style="dim")
        self.update(text)


class ConfirmPrompt(Static):
    def show_item(self, item: RuntimeConnectionItem) -> None:
        self.update(f"Are you sure you want to delete the connection '{item.label}'? (y/n)")


class StatusBar(Static):
    """Single-line status indicator."""

    def set_message(self, message: str, *, error: bool = False) -> None:
        self.set_class(error, "error")
        self.update(message or "")


class SshRosterApp(App[Optional[SessionOutcome]]):
    """Textual front end driving :class:`InteractionController`."""

    TITLE = "SSH Manager"
    ENABLE_COMMAND_PALETTE = False
    CSS = """
    Screen {
        layers: base overlay;
    }

    #body {
        height: 1fr;
    }

    #list-panel {
        width: 70%;
    }

    #details-panel {
        width: 30%;
        border-left: solid $secondary;
        padding: 0 1;
    }

    .panel-title {
        text-style: bold;
        content-align: center middle;
        width: 100%;
        background: $boost;
    }

    #connection-list, #details {
        height: 1fr;
    }

    #help {
        height: 1;
        content-align: center middle;
        width: 100%;
        color: $text-muted;
    }

    #status {
        height: 1;
        padding: 0 1;
        background: $boost;
    }

    #status.error {
        background: $error;
        color: $text;
    }

    #overlay {
        layer: overlay;
        width: 100%;
        height: 100%;
        align: center middle;
        display: none;
    }

    #editor-form, #confirm {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: round $secondary;
        display: none;
    }

    #confirm {
        border: round $error;
    }
    """

    BINDINGS = [
        # Tab and Esc belong to the controller, not to focus handling.
        Binding("tab", "forward_key('tab')", show=False, priority=True),
        Binding("escape", "forward_key('escape')", show=False, priority=True),
    ]

    def __init__(
        self,
        store: ConnectionStore,
        *,
        items: Optional[List[RuntimeConnectionItem]] = None,
        config: Optional[Config] = None,
        exit_after_session: bool = False,
        launcher: Optional[SessionLauncher] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.config = config
        if launcher is None:
            launcher = SessionLauncher(
                self.suspend,
                ssh_config=config.get_ssh_config() if config else None,
                mount_root=config.get_sshfs_config().get("mount_root") if config else None,
            )
        self.controller = InteractionController(
            store,
            launcher,
            items=items,
            notify=self.set_status,
            exit_after_session=exit_after_session,
        )
        self._status_timer: Optional[Timer] = None

    # --------------------------------------------------------------------- UI
    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="body"):
            with Vertical(id="list-panel"):
                yield Static("Connections list", classes="panel-title")
                yield ConnectionList(id="connection-list")
            with Vertical(id="details-panel"):
                yield Static("Connection info", classes="panel-title")
                yield DetailsPanel(id="details")
        yield Static(HELP_TEXT, id="help")
        yield StatusBar(id="status")
        with Container(id="overlay"):
            yield EditorForm(id="editor-form")
            yield ConfirmPrompt(id="confirm")

    def on_mount(self) -> None:
        self.status_bar = self.query_one(StatusBar)
        self.connection_list = self.query_one(ConnectionList)
        self.details_panel = self.query_one(DetailsPanel)
        self.editor_form = self.query_one(EditorForm)
        self.confirm_prompt = self.query_one(ConfirmPrompt)
        self.overlay = self.query_one("#overlay", Container)
        self.refresh_view()

    def on_resize(self, event: events.Resize) -> None:
        if hasattr(self, "connection_list"):
            self.call_after_refresh(self.refresh_view)

    def refresh_view(self) -> None:
        controller = self.controller
        self.connection_list.show(controller.selection)
        self.details_panel.show_connection(controller.selection.selected_item)

        editing = controller.mode is Mode.EDITING
        pending = controller.pending_deletion
        self.overlay.display = editing or pending is not None
        self.editor_form.display = editing
        self.confirm_prompt.display = pending is not None
        if editing:
            self.editor_form.show_editor(controller.editor)
        if pending is not None:
            self.confirm_prompt.show_item(pending)

    # ----------------------------------------------------------------- events
    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self.dispatch_to_controller(event.key, event.character if event.is_printable else None)

    def action_forward_key(self, key: str) -> None:
        self.dispatch_to_controller(key, None)

    def dispatch_to_controller(self, key: str, character: Optional[str]) -> None:
        result = self.controller.handle_key(key, character)
        if result is not None:
            self.exit(result.outcome)
            return
        self.refresh_view()

    # ----------------------------------------------------------------- status
    def set_status(self, message: str, *, error: bool = False, persist: bool = False) -> None:
        if not hasattr(self, "status_bar"):
            return
        if self._status_timer:
            self._status_timer.stop()
            self._status_timer = None
        self.status_bar.set_message(message, error=error)
        if not persist:
            self._status_timer = self.set_timer(6, self._clear_status, name="status-clear")

    def _clear_status(self) -> None:
        self.status_bar.set_message("")
        self._status_timer = None


def setup_logging(level: int, log_dir: Optional[str] = None) -> None:
    """Log to a rotating file; the terminal belongs to the TUI."""
    log_dir = log_dir or get_data_dir()
    os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = RotatingFileHandler(
        os.path.join(log_dir, 'sshroster.log'),
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)

    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('sshroster').setLevel(level)


def load_initial_items(store: ConnectionStore) -> List[RuntimeConnectionItem]:
    """A missing file is an empty roster; a malformed one is fatal."""
    if not os.path.exists(store.path):
        LOG.info("Connection file %s does not exist yet", store.path)
        return []
    return derive_items(store.load())


def parse_args(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(description="Terminal directory of SSH connection profiles")
    parser.add_argument(
        "--config",
        help="Path to config.json (default: ~/.config/sshroster/config.json)",
    )
    parser.add_argument(
        "--data",
        help="Path to the connections JSON file (overrides path_to_data_json)",
    )
    parser.add_argument(
        "--exit-after-session",
        action="store_true",
        help="Quit after an ssh/sshfs session instead of returning to the list",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Python logging level (default: INFO, DEBUG when debug_enabled)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Shortcut for --log-level DEBUG",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    args = parse_args(argv)
    config = Config(args.config)

    if args.verbose or config.get_setting("debug_enabled", False):
        level = logging.DEBUG
    else:
        level = logging.INFO
    if args.log_level:
        level = getattr(logging, str(args.log_level).upper(), level)
    setup_logging(level)

    store = ConnectionStore(args.data or config.data_file)
    try:
        items = load_initial_items(store)
    except (RosterIOError, RosterParseError) as exc:
        LOG.error("Cannot start: %s", exc)
        print(f"sshroster: {exc}", file=sys.stderr)
        return 1

    exit_after_session = args.exit_after_session or bool(config.get_setting("exit_after_session", False))
    app = SshRosterApp(store, items=items, config=config, exit_after_session=exit_after_session)
    try:
        outcome = app.run()
    except KeyboardInterrupt:
        return 0
    if outcome is not None and not outcome.ok:
        return 1
    return 0


__all__ = ["main", "SshRosterApp"]


if __name__ == "__main__":
    sys.exit(main())
