from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any

from rocal.core.errors import AuthRequiredError, RecordValidationError, StoreError
from rocal.schemas.records import RecordBase
from rocal.services.notifications import Notifier
from rocal.services.record_kinds import FieldSpec, RecordKind, format_number, get_kind_config
from rocal.services.session import SessionManager
from rocal.services.store import RecordStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_number(raw: str | None, label: str, field: str | None = None) -> float | None:
    cleaned = (raw or "").strip()
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        raise RecordValidationError(f"{label} must be a number.", field=field) from None
    if not math.isfinite(value):
        raise RecordValidationError(f"{label} must be a number.", field=field)
    return value


class RecordForm:
    """Create/edit form shared by every record kind.

    The field set comes from the kind table. ``submit`` validates, writes to
    the store and closes the form; any failure is reported through the
    notifier and leaves the form open with the user's input intact.
    """

    def __init__(
        self,
        kind: RecordKind | str,
        *,
        session: SessionManager,
        store: RecordStore,
        notifier: Notifier,
        record: RecordBase | None = None,
        on_done: Callable[[], Any] | None = None,
        on_close: Callable[[], Any] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = get_kind_config(kind)
        self.record = record
        self._session = session
        self._store = store
        self._notifier = notifier
        self._on_done = on_done
        self._on_close = on_close
        self._clock = clock
        self.values = self._initial_values()
        self.error: str | None = None
        self.is_open = True

    @property
    def kind(self) -> RecordKind:
        return self.config.kind

    @property
    def fields(self) -> tuple[FieldSpec, ...]:
        return self.config.form_fields

    @property
    def is_editing(self) -> bool:
        return self.record is not None

    @property
    def title(self) -> str:
        return f"{'Edit' if self.is_editing else 'Add'} {self.config.singular}"

    def _initial_values(self) -> dict[str, str]:
        values: dict[str, str] = {}
        for field in self.fields:
            current = getattr(self.record, field.name, None) if self.record is not None else None
            if current is None:
                values[field.name] = ""
            elif field.is_numeric:
                values[field.name] = format_number(current)
            else:
                values[field.name] = str(current)
        return values

    def set_value(self, name: str, value: str | None) -> None:
        if name not in self.values:
            raise KeyError(f"Unknown field for {self.config.label}: {name}")
        self.values[name] = value or ""

    def update(self, values: Mapping[str, str | None]) -> None:
        for name in self.values:
            if name in values:
                self.values[name] = values[name] or ""

    def build_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for field in self.fields:
            raw = self.values.get(field.name, "")
            cleaned = raw.strip()
            if field.required and not cleaned:
                raise RecordValidationError(f"{field.label} is required.", field=field.name)
            if field.is_numeric:
                payload[field.name] = parse_number(cleaned, field.label, field.name)
            else:
                payload[field.name] = cleaned or None
        return payload

    def submit(self) -> bool:
        try:
            identity = self._session.identity
            if identity is None:
                raise AuthRequiredError()
            payload = self.build_payload()
            now = self._clock()
            if self.record is not None:
                self._store.update(self.kind, self.record.id, {**payload, "updated_at": now})
                self._notifier.success("Record updated")
            else:
                self._store.insert(self.kind, {**payload, "created_at": now, "created_by": identity.id})
                self._notifier.success("Record added")
        except (AuthRequiredError, RecordValidationError, StoreError) as exc:
            logger.warning("Could not save %s: %s", self.config.singular, exc)
            self.error = str(exc)
            self._notifier.error("Error", str(exc))
            return False
        self.error = None
        if self._on_done is not None:
            self._on_done()
        self.close()
        return True

    def cancel(self) -> None:
        self.close()

    def close(self) -> None:
        self.is_open = False
        if self._on_close is not None:
            self._on_close()
