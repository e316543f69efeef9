from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from rocal.core.errors import AuthRequiredError, RecordValidationError, StoreError
from rocal.schemas.auth import Identity
from rocal.schemas.records import RecordBase
from rocal.services.forms import RecordForm, parse_number
from rocal.services.listing import RecordList
from rocal.services.notifications import Notifier
from rocal.services.record_kinds import (
    DEFAULT_KIND,
    KindConfig,
    RecordKind,
    get_kind_config,
    numeric_value,
)
from rocal.services.session import SessionManager
from rocal.services.store import RecordStore

logger = logging.getLogger(__name__)

FILTER_FIELDS = ("search", "notes", "min_price", "max_price")
BOUND_LABELS = {"min_price": "Minimum", "max_price": "Maximum"}


class RecordFilter(BaseModel):
    search: str = ""
    notes: str = ""
    min_price: str = ""
    max_price: str = ""

    @model_validator(mode="after")
    def validate_bounds(self) -> "RecordFilter":
        self.bounds()
        return self

    @property
    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in FILTER_FIELDS)

    def bounds(self) -> tuple[float | None, float | None]:
        return (
            parse_number(self.min_price, BOUND_LABELS["min_price"], "min_price"),
            parse_number(self.max_price, BOUND_LABELS["max_price"], "max_price"),
        )


def _default_filters() -> dict[RecordKind, RecordFilter]:
    return {kind: RecordFilter() for kind in RecordKind}


class DashboardState(BaseModel):
    active_tab: RecordKind = DEFAULT_KIND
    filters: dict[RecordKind, RecordFilter] = Field(default_factory=_default_filters)

    @field_validator("filters", mode="after")
    @classmethod
    def fill_missing_kinds(cls, value: dict[RecordKind, RecordFilter]) -> dict[RecordKind, RecordFilter]:
        for kind in RecordKind:
            value.setdefault(kind, RecordFilter())
        return value

    def to_session(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_session(cls, data: Mapping[str, Any] | None) -> "DashboardState":
        if not data:
            return cls()
        try:
            return cls.model_validate(data)
        except ValueError:
            logger.warning("Discarding unreadable dashboard state")
            return cls()


def matches_filter(record: RecordBase, record_filter: RecordFilter, numeric_field: str) -> bool:
    search = record_filter.search.lower()
    if search and search not in (record.name or "").lower():
        return False
    notes = record_filter.notes.lower()
    if notes and notes not in (record.notes or "").lower():
        return False
    minimum, maximum = record_filter.bounds()
    value = numeric_value(record, numeric_field)
    if minimum is not None and value < minimum:
        return False
    if maximum is not None and value > maximum:
        return False
    return True


def filter_records(
    records: Sequence[RecordBase],
    record_filter: RecordFilter,
    numeric_field: str,
) -> list[RecordBase]:
    return [record for record in records if matches_filter(record, record_filter, numeric_field)]


@dataclass(frozen=True)
class Aggregates:
    count: int
    total: float
    average: float


def compute_aggregates(records: Sequence[RecordBase], numeric_field: str) -> Aggregates:
    total = sum(numeric_value(record, numeric_field) for record in records)
    count = len(records)
    average = total / count if count else 0.0
    return Aggregates(count=count, total=total, average=average)


class DashboardController:
    """View-model of the dashboard page.

    Loads the three tables when an identity is available, keeps one filter
    set per record kind, and reloads everything after each mutation.
    """

    def __init__(
        self,
        store: RecordStore,
        session: SessionManager,
        notifier: Notifier,
        state: DashboardState | None = None,
    ) -> None:
        self._store = store
        self._session = session
        self.notifier = notifier
        self.state = state or DashboardState()
        self.records: dict[RecordKind, list[RecordBase]] = {kind: [] for kind in RecordKind}
        self.loaded = False
        self.form: RecordForm | None = None
        self._generation = 0
        self._unsubscribe = session.subscribe(self._on_identity_change)
        if session.identity is not None:
            self.load()

    def close(self) -> None:
        self._unsubscribe()

    def _on_identity_change(self, identity: Identity | None) -> None:
        if identity is None:
            self.records = {kind: [] for kind in RecordKind}
            self.loaded = False
            self.form = None
            return
        self.load()

    @property
    def active_tab(self) -> RecordKind:
        return self.state.active_tab

    @property
    def active_config(self) -> KindConfig:
        return get_kind_config(self.active_tab)

    def select_tab(self, kind: RecordKind | str) -> None:
        self.state.active_tab = get_kind_config(kind).kind
        self.form = None

    def filters_for(self, kind: RecordKind | str) -> RecordFilter:
        return self.state.filters[get_kind_config(kind).kind]

    @property
    def active_filter(self) -> RecordFilter:
        return self.filters_for(self.active_tab)

    def set_filter(self, name: str, value: str | None) -> bool:
        return self.update_filters({name: value})

    def update_filters(self, values: Mapping[str, str | None]) -> bool:
        unknown = [name for name in values if name not in FILTER_FIELDS]
        if unknown:
            raise KeyError(f"Unknown filter field(s): {', '.join(unknown)}")
        candidate = self.active_filter.model_copy(
            update={name: (value or "") for name, value in values.items()}
        )
        try:
            candidate.bounds()
        except RecordValidationError as exc:
            self.notifier.error("Invalid filter", str(exc))
            return False
        self.state.filters[self.active_tab] = candidate
        return True

    def clear_filters(self) -> None:
        self.state.filters[self.active_tab] = RecordFilter()

    def current_records(self) -> list[RecordBase]:
        return self.records[self.active_tab]

    def filtered_records(self) -> list[RecordBase]:
        return filter_records(self.current_records(), self.active_filter, self.active_config.numeric_field)

    def aggregates(self) -> Aggregates:
        return compute_aggregates(self.current_records(), self.active_config.numeric_field)

    def load(self) -> bool:
        # A reload started while this one is in flight (from a store call or
        # an identity listener) bumps the generation; the older result is dropped.
        self._generation += 1
        generation = self._generation
        try:
            with ThreadPoolExecutor(max_workers=len(RecordKind)) as executor:
                futures = {kind: executor.submit(self._store.select, kind) for kind in RecordKind}
                results = {kind: list(future.result()) for kind, future in futures.items()}
        except StoreError as exc:
            if generation != self._generation:
                return False
            logger.warning("Dashboard load failed: %s", exc)
            self.records = {kind: [] for kind in RecordKind}
            self.loaded = False
            self.notifier.error("Error loading data", str(exc))
            return False
        if generation != self._generation:
            logger.info("Discarding stale dashboard load %s", generation)
            return False
        self.records = results
        self.loaded = True
        return True

    def reload(self) -> bool:
        return self.load()

    def delete(self, record_id: int | str) -> bool:
        kind = self.active_tab
        try:
            if self._session.identity is None:
                raise AuthRequiredError()
            self._store.delete(kind, record_id)
        except (AuthRequiredError, StoreError) as exc:
            logger.warning("Could not delete %s %s: %s", kind.value, record_id, exc)
            self.notifier.error("Error", str(exc))
            return False
        self.reload()
        self.notifier.success("Record deleted")
        return True

    def find_record(self, record_id: int | str) -> RecordBase | None:
        for record in self.current_records():
            if str(record.id) == str(record_id):
                return record
        return None

    def open_form(self, record_id: int | str | None = None) -> RecordForm | None:
        record = None
        if record_id is not None:
            record = self.find_record(record_id)
            if record is None:
                self.notifier.error("Error", "Record not found.")
                return None
        self.form = RecordForm(
            self.active_tab,
            session=self._session,
            store=self._store,
            notifier=self.notifier,
            record=record,
            on_done=self.reload,
            on_close=self._close_form,
        )
        return self.form

    def _close_form(self) -> None:
        self.form = None

    def record_list(self) -> RecordList:
        return RecordList(
            self.active_tab,
            None if self._session.loading else self.filtered_records(),
            on_edit=lambda record: self.open_form(record.id),
            on_delete=self.delete,
        )
