"""
Key dispatch for the connection list, the record editor and the delete prompt.

The controller owns a single :class:`Mode` flag and routes every key through
:meth:`InteractionController.handle_key`.  It does not draw anything; the
Textual app re-renders from the controller's state after each key.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from sshroster.connection_store import ConnectionStore, RuntimeConnectionItem, derive_items
from sshroster.errors import RosterIOError, RosterParseError
from sshroster.tui.editor import EditorMode, RecordEditor
from sshroster.tui.launcher import SessionLauncher, SessionOutcome
from sshroster.tui.selection import SelectionList

logger = logging.getLogger(__name__)

NotifyFunc = Callable[..., None]


class Mode(Enum):
    BROWSING = "browsing"
    EDITING = "editing"
    CONFIRMING_DELETION = "confirming-deletion"


@dataclass
class ExitRequest:
    """Returned by :meth:`InteractionController.handle_key` when the app should stop."""

    outcome: Optional[SessionOutcome] = None


def _log_notify(message: str, *, error: bool = False) -> None:
    if error:
        logger.error(message)
    else:
        logger.info(message)


class InteractionController:
    def __init__(
        self,
        store: ConnectionStore,
        launcher: SessionLauncher,
        *,
        items: Optional[List[RuntimeConnectionItem]] = None,
        notify: Optional[NotifyFunc] = None,
        exit_after_session: bool = False,
    ):
        self.store = store
        self.launcher = launcher
        self.selection: SelectionList[RuntimeConnectionItem] = SelectionList(items or [])
        self.editor = RecordEditor()
        self.mode = Mode.BROWSING
        self.notify: NotifyFunc = notify or _log_notify
        self.exit_after_session = exit_after_session

    @property
    def items(self) -> List[RuntimeConnectionItem]:
        return self.selection.items

    @property
    def pending_deletion(self) -> Optional[RuntimeConnectionItem]:
        if self.mode is not Mode.CONFIRMING_DELETION:
            return None
        return self.selection.selected_item

    # --------------------------------------------------------------- dispatch
    def handle_key(self, key: str, character: Optional[str] = None) -> Optional[ExitRequest]:
        if self.mode is Mode.EDITING:
            return self._handle_editing(key, character)
        if self.mode is Mode.CONFIRMING_DELETION:
            return self._handle_confirming(key, character)
        return self._handle_browsing(key, character)

    def _handle_browsing(self, key: str, character: Optional[str]) -> Optional[ExitRequest]:
        sel = self.selection
        if key in ("q", "escape"):
            return ExitRequest()
        if key in ("j", "down"):
            sel.next()
        elif key in ("k", "up"):
            sel.previous()
        elif key in ("h", "left"):
            sel.unselect()
        elif key == "g" or key == "home":
            sel.go_top()
        elif character == "G" or key == "end":
            sel.go_bottom()
        elif key in ("l", "right", "enter"):
            return self.connect_shell()
        elif key == "f":
            return self.connect_sshfs()
        elif key == "n":
            self.editor.open_create()
            self.mode = Mode.EDITING
        elif key == "e":
            self.start_editing()
        elif key == "d":
            if sel.selected_item is not None:
                self.mode = Mode.CONFIRMING_DELETION
        elif key == "r":
            if self.reload():
                self.notify(f"Loaded {len(self.items)} connection(s)")
        return None

    def _handle_editing(self, key: str, character: Optional[str]) -> None:
        if key == "escape":
            self.cancel_editing()
        elif key == "enter":
            self.commit()
        else:
            self.editor.handle_key(key, character)
        return None

    def _handle_confirming(self, key: str, character: Optional[str]) -> None:
        index = self.selection.current_index
        self.mode = Mode.BROWSING
        if key == "y" and index is not None:
            self.delete(index)
        return None

    # ----------------------------------------------------------------- editor
    def start_editing(self) -> bool:
        item = self.selection.selected_item
        if item is None:
            return False
        self.editor.open_edit(item, self.selection.current_index)
        self.mode = Mode.EDITING
        return True

    def cancel_editing(self) -> None:
        self.editor.reset()
        self.mode = Mode.BROWSING

    def commit(self) -> bool:
        problem = self.editor.validate()
        if problem:
            self.notify(problem, error=True)
            return False

        record = self.editor.to_record()
        try:
            if self.editor.mode is EditorMode.EDIT:
                self.store.update_or_append(
                    record,
                    key=self.editor.original_host,
                    position=self.editor.source_index,
                )
            else:
                self.store.append(record)
        except RosterIOError as exc:
            logger.error("Failed to save connection: %s", exc)
            self.notify(f"Failed to save connection: {exc}", error=True)
        else:
            self.reload()
            self.notify(f"Saved {record.label}")

        self.editor.reset()
        self.mode = Mode.BROWSING
        return True

    # ---------------------------------------------------------------- storage
    def reload(self) -> bool:
        """Re-read the store; on failure the current list stays on screen."""
        try:
            items = self.store.reload()
        except (RosterIOError, RosterParseError) as exc:
            logger.error("Failed to reload connections: %s", exc)
            self.notify(str(exc), error=True)
            return False
        self.selection.set_items(items)
        return True

    def delete(self, index: int) -> None:
        records = [item.to_record() for item in self.items]
        label = records[index].label
        try:
            self.store.delete_at(index, records)
        except RosterIOError as exc:
            logger.error("Failed to delete connection: %s", exc)
            self.notify(f"Failed to delete {label}: {exc}", error=True)
            self.selection.set_items(derive_items(records))
            return
        if self.reload():
            self.notify(f"Deleted {label}")

    # ---------------------------------------------------------------- session
    def connect_shell(self) -> Optional[ExitRequest]:
        item = self.selection.selected_item
        if item is None or not item.available:
            return None
        return self._after_session(self.launcher.connect_shell(item))

    def connect_sshfs(self) -> Optional[ExitRequest]:
        item = self.selection.selected_item
        if item is None or not item.available:
            return None
        return self._after_session(self.launcher.connect_sshfs(item))

    def _after_session(self, outcome: SessionOutcome) -> Optional[ExitRequest]:
        if self.exit_after_session:
            return ExitRequest(outcome)
        self.mode = Mode.BROWSING
        self.notify(outcome.summary(), error=not outcome.ok)
        return None


__all__ = ["ExitRequest", "InteractionController", "Mode"]
