from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from sshroster.connection_store import DEFAULT_PORT, ConnectionRecord, RuntimeConnectionItem


class Field(Enum):
    LABEL = "label"
    HOST = "host"
    PORT = "port"
    USER = "user"
    PASSWORD = "password"

    @property
    def title(self) -> str:
        return self.value.capitalize()

    def next(self) -> "Field":
        order = list(Field)
        return order[(order.index(self) + 1) % len(order)]


class EditorMode(Enum):
    CREATE = "create"
    EDIT = "edit"


class RecordEditor:
    """
    Working copy of a connection record shown in the modal form.

    The editor only knows about per-character edits and field cycling; commit
    and cancel (Enter/Esc) belong to the interaction controller, which reads
    :meth:`to_record` and the captured ``original_host``/``source_index`` to
    decide what to write.
    """

    def __init__(self):
        self.buffers: Dict[Field, str] = {}
        self.reset()

    def reset(self) -> None:
        self.buffers = {f: "" for f in Field}
        self.active_field = Field.LABEL
        self.mode = EditorMode.CREATE
        self.original_host: Optional[str] = None
        self.source_index: Optional[int] = None
        self.details: Optional[str] = None

    def open_create(self) -> None:
        self.reset()
        self.buffers[Field.PORT] = DEFAULT_PORT

    def open_edit(self, item: RuntimeConnectionItem, index: Optional[int] = None) -> None:
        self.reset()
        self.mode = EditorMode.EDIT
        self.buffers.update(
            {
                Field.LABEL: item.label,
                Field.HOST: item.host,
                Field.PORT: item.port,
                Field.USER: item.user,
                Field.PASSWORD: item.password,
            }
        )
        self.original_host = item.host
        self.source_index = index
        self.details = item.to_record().details

    # ------------------------------------------------------------------ edits
    def value(self, field: Field) -> str:
        return self.buffers[field]

    def insert(self, char: str) -> None:
        self.buffers[self.active_field] += char

    def backspace(self) -> None:
        self.buffers[self.active_field] = self.buffers[self.active_field][:-1]

    def cycle(self) -> None:
        self.active_field = self.active_field.next()

    def handle_key(self, key: str, character: Optional[str] = None) -> bool:
        """Apply one key; returns False when the key means nothing to the form."""
        if key == "tab":
            self.cycle()
        elif key == "backspace":
            self.backspace()
        elif character and character.isprintable():
            self.insert(character)
        else:
            return False
        return True

    # ---------------------------------------------------------------- results
    def validate(self) -> Optional[str]:
        if not self.buffers[Field.LABEL].strip():
            return "Label is required."
        if not self.buffers[Field.HOST].strip():
            return "Host is required."
        port = self.buffers[Field.PORT].strip()
        if port:
            try:
                value = int(port)
            except ValueError:
                return "Port must be a number between 1 and 65535."
            if not 1 <= value <= 65535:
                return "Port must be a number between 1 and 65535."
        return None

    def to_record(self) -> ConnectionRecord:
        def optional(field: Field) -> Optional[str]:
            return self.buffers[field] or None

        return ConnectionRecord(
            label=self.buffers[Field.LABEL],
            host=self.buffers[Field.HOST],
            port=optional(Field.PORT),
            user=optional(Field.USER),
            password=optional(Field.PASSWORD),
            details=self.details,
        )


__all__ = ["EditorMode", "Field", "RecordEditor"]
