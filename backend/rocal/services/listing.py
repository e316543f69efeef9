from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from rocal.schemas.records import RecordBase
from rocal.services.record_kinds import RecordKind, format_number, get_kind_config

EMPTY_TITLE = "No records"
EMPTY_HINT = "Add a new one"
LOADING_TITLE = "Loading records..."


@dataclass(frozen=True)
class DisplayItem:
    icon: str
    label: str
    value: str


@dataclass(frozen=True)
class RecordRow:
    id: int | str
    title: str
    details: tuple[DisplayItem, ...]
    notes: str | None


@dataclass(frozen=True)
class PendingDeletion:
    record_id: int | str
    name: str

    @property
    def title(self) -> str:
        return "Delete"

    @property
    def message(self) -> str:
        return f'Are you sure you want to delete "{self.name}"? This action cannot be undone.'


def _display_value(value: Any) -> str:
    if value is None or value == "":
        return "—"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(value)
    return str(value)


class RecordList:
    """Read-only rendering of the records it is given, with edit/delete hooks."""

    def __init__(
        self,
        kind: RecordKind | str,
        records: Sequence[RecordBase] | None,
        *,
        on_edit: Callable[[RecordBase], Any],
        on_delete: Callable[[int | str], Any],
    ) -> None:
        self.config = get_kind_config(kind)
        self.records = records
        self._on_edit = on_edit
        self._on_delete = on_delete

    @property
    def state(self) -> str:
        if self.records is None:
            return "loading"
        if not self.records:
            return "empty"
        return "ready"

    def rows(self) -> list[RecordRow]:
        rows: list[RecordRow] = []
        for record in self.records or []:
            details = tuple(
                DisplayItem(icon=item.icon, label=item.label, value=_display_value(getattr(record, item.field, None)))
                for item in self.config.display
            )
            rows.append(RecordRow(id=record.id, title=record.name, details=details, notes=record.notes or None))
        return rows

    def find(self, record_id: int | str) -> RecordBase | None:
        for record in self.records or []:
            if str(record.id) == str(record_id):
                return record
        return None

    def edit(self, record_id: int | str) -> bool:
        record = self.find(record_id)
        if record is None:
            return False
        self._on_edit(record)
        return True

    def request_delete(self, record_id: int | str) -> PendingDeletion | None:
        record = self.find(record_id)
        if record is None:
            return None
        return PendingDeletion(record_id=record.id, name=record.name)

    def confirm(self, pending: PendingDeletion) -> Any:
        return self._on_delete(pending.record_id)

    def dismiss(self, pending: PendingDeletion) -> None:
        return None
