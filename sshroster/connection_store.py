"""
JSON persistence for connection records.

The store keeps the canonical ordered list of :class:`ConnectionRecord` in a
single JSON array.  Every mutation is a whole-file rewrite: the new document is
written to a temporary file next to the target and swapped in with
``os.replace`` so a crash mid-write never leaves a truncated store behind.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from sshroster.errors import RosterIOError, RosterParseError

logger = logging.getLogger(__name__)

DEFAULT_PORT = "22"
DEFAULT_USER = "root"

_OPTIONAL_FIELDS = ("port", "user", "password", "details")


@dataclass
class ConnectionRecord:
    """A connection profile exactly as it is stored on disk."""

    label: str
    host: str
    port: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    details: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any, *, index: int = 0, path: Optional[str] = None) -> "ConnectionRecord":
        if not isinstance(data, dict):
            raise RosterParseError(f"Entry {index} is not an object", path)
        values: Dict[str, Optional[str]] = {}
        for name in ("label", "host"):
            value = data.get(name)
            if not isinstance(value, str):
                raise RosterParseError(f"Entry {index} is missing a string '{name}'", path)
            values[name] = value
        for name in _OPTIONAL_FIELDS:
            value = data.get(name)
            if value is not None and not isinstance(value, str):
                raise RosterParseError(f"Entry {index} has a non-string '{name}'", path)
            values[name] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, str]:
        data = {"label": self.label, "host": self.host}
        for name in _OPTIONAL_FIELDS:
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


class Status(Enum):
    AVAILABLE = "Available"
    NOT_AVAILABLE = "NotAvailable"


@dataclass
class RuntimeConnectionItem:
    """Display view of a record with every optional field resolved."""

    label: str
    host: str
    port: str
    user: str
    password: str
    details: str
    status: Status
    record: ConnectionRecord = field(repr=False, compare=False)

    @classmethod
    def from_record(cls, record: ConnectionRecord) -> "RuntimeConnectionItem":
        return cls(
            label=record.label,
            host=record.host,
            port=record.port or DEFAULT_PORT,
            user=record.user or DEFAULT_USER,
            password=record.password or "",
            details=record.details or "",
            status=Status.AVAILABLE if record.host.strip() else Status.NOT_AVAILABLE,
            record=record,
        )

    def to_record(self) -> ConnectionRecord:
        return self.record

    @property
    def available(self) -> bool:
        return self.status is Status.AVAILABLE

    def display(self) -> str:
        lines = [
            f"Label:    {self.label}",
            f"Host:     {self.host}",
            f"Port:     {self.port}",
            f"User:     {self.user}",
            f"Password: {'set' if self.password else 'none'}",
        ]
        if self.details:
            lines.append("")
            lines.append(self.details)
        return "\n".join(lines)


def derive_items(records: Sequence[ConnectionRecord]) -> List[RuntimeConnectionItem]:
    return [RuntimeConnectionItem.from_record(record) for record in records]


class ConnectionStore:
    """Reads and rewrites the connection file at *path*."""

    def __init__(self, path: str):
        self.path = os.path.abspath(os.path.expanduser(path))

    # ------------------------------------------------------------------ reads
    def load(self) -> List[ConnectionRecord]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                content = f.read()
        except OSError as exc:
            raise RosterIOError(f"Failed to read {self.path}: {exc}", self.path) from exc

        try:
            data = json.loads(content)
        except ValueError as exc:
            raise RosterParseError(f"Failed to parse {self.path}: {exc}", self.path) from exc

        if not isinstance(data, list):
            raise RosterParseError(f"{self.path} does not contain a JSON array", self.path)

        records = [ConnectionRecord.from_dict(entry, index=i, path=self.path) for i, entry in enumerate(data)]
        logger.debug("Loaded %d connection(s) from %s", len(records), self.path)
        return records

    def reload(self) -> List[RuntimeConnectionItem]:
        return derive_items(self.load())

    def _load_or_empty(self) -> List[ConnectionRecord]:
        try:
            return self.load()
        except RosterIOError:
            logger.debug("No readable connection file at %s; starting from an empty list", self.path)
            return []
        except RosterParseError as exc:
            logger.warning("Ignoring unparsable connection file: %s", exc)
            return []

    # ----------------------------------------------------------------- writes
    def append(self, record: ConnectionRecord) -> None:
        records = self._load_or_empty()
        records.append(record)
        self.write_all(records)
        logger.info("Added connection %r (%s)", record.label, record.host)

    def update_or_append(
        self,
        record: ConnectionRecord,
        key: Optional[str] = None,
        position: Optional[int] = None,
    ) -> None:
        """Replace the record whose host equals *key* in place, or append.

        *key* defaults to ``record.host``.  When *position* points at a record
        carrying the key host, that one is replaced even if an earlier record
        shares the host.
        """
        host = record.host if key is None else key
        records = self._load_or_empty()

        target: Optional[int] = None
        if position is not None and 0 <= position < len(records) and records[position].host == host:
            target = position
        else:
            for idx, existing in enumerate(records):
                if existing.host == host:
                    target = idx
                    break

        if target is None:
            records.append(record)
            logger.info("No connection with host %r; appended %r", host, record.label)
        else:
            records[target] = record
            logger.info("Updated connection %d (%r)", target, record.label)
        self.write_all(records)

    def delete_at(self, index: int, collection: List[ConnectionRecord]) -> ConnectionRecord:
        """Remove ``collection[index]`` and rewrite the file from *collection*.

        The removal from *collection* stands even when the write fails.
        """
        removed = collection.pop(index)
        self.write_all(collection)
        logger.info("Deleted connection %r", removed.label)
        return removed

    def write_all(self, records: Sequence[ConnectionRecord]) -> None:
        payload = json.dumps([record.to_dict() for record in records], indent=2)
        directory = os.path.dirname(self.path) or "."
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".connections-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as exc:
            raise RosterIOError(f"Failed to write {self.path}: {exc}", self.path) from exc
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.debug("Could not remove temporary file %s", tmp_path)
        logger.debug("Wrote %d connection(s) to %s", len(records), self.path)


__all__ = [
    "ConnectionRecord",
    "ConnectionStore",
    "RuntimeConnectionItem",
    "Status",
    "derive_items",
    "DEFAULT_PORT",
    "DEFAULT_USER",
]
