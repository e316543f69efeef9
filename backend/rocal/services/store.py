from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import Any, Protocol

from pydantic import ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rocal.clients.supabase import SupabaseClient, SupabaseError
from rocal.core.config import settings
from rocal.core.errors import StoreError
from rocal.db.session import SessionLocal
from rocal.models.records import Material, PieceWorkJob, RecordColumnsMixin, Supplier
from rocal.repositories import records as records_repo
from rocal.schemas.records import RecordBase
from rocal.services.record_kinds import RecordKind, get_kind_config

NOT_FOUND_MESSAGE = "Record not found."


def _sql_error_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class RecordStore(Protocol):
    def select(self, kind: RecordKind) -> list[RecordBase]: ...

    def insert(self, kind: RecordKind, values: dict[str, Any]) -> RecordBase: ...

    def update(self, kind: RecordKind, record_id: int | str, values: dict[str, Any]) -> RecordBase: ...

    def delete(self, kind: RecordKind, record_id: int | str) -> None: ...


class SqlRecordStore:
    MODELS: dict[RecordKind, type[RecordColumnsMixin]] = {
        RecordKind.SUPPLIERS: Supplier,
        RecordKind.MATERIALS: Material,
        RecordKind.PIECEWORK: PieceWorkJob,
    }

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def _to_schema(self, kind: RecordKind, record: RecordColumnsMixin) -> RecordBase:
        return get_kind_config(kind).schema.model_validate(records_repo.to_dict(record))

    def _get_or_raise(self, db: Session, kind: RecordKind, record_id: int | str) -> RecordColumnsMixin:
        try:
            parsed_id = int(record_id)
        except (TypeError, ValueError):
            raise StoreError(NOT_FOUND_MESSAGE, status_code=404) from None
        record = records_repo.get_record(db, self.MODELS[kind], parsed_id)
        if record is None:
            raise StoreError(NOT_FOUND_MESSAGE, status_code=404)
        return record

    def select(self, kind: RecordKind) -> list[RecordBase]:
        try:
            with self._session_factory() as db:
                rows = records_repo.list_records(db, self.MODELS[kind])
                return [self._to_schema(kind, row) for row in rows]
        except SQLAlchemyError as exc:
            raise StoreError(_sql_error_message(exc)) from exc

    def insert(self, kind: RecordKind, values: dict[str, Any]) -> RecordBase:
        try:
            with self._session_factory() as db:
                record = records_repo.create_record(db, self.MODELS[kind], values)
                return self._to_schema(kind, record)
        except SQLAlchemyError as exc:
            raise StoreError(_sql_error_message(exc)) from exc

    def update(self, kind: RecordKind, record_id: int | str, values: dict[str, Any]) -> RecordBase:
        try:
            with self._session_factory() as db:
                record = self._get_or_raise(db, kind, record_id)
                record = records_repo.update_record(db, record=record, values=values)
                return self._to_schema(kind, record)
        except SQLAlchemyError as exc:
            raise StoreError(_sql_error_message(exc)) from exc

    def delete(self, kind: RecordKind, record_id: int | str) -> None:
        try:
            with self._session_factory() as db:
                record = self._get_or_raise(db, kind, record_id)
                records_repo.delete_record(db, record=record)
        except SQLAlchemyError as exc:
            raise StoreError(_sql_error_message(exc)) from exc


def _to_wire(values: dict[str, Any]) -> dict[str, Any]:
    wire: dict[str, Any] = {}
    for key, value in values.items():
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        wire[to_camel(key)] = value
    return wire


class SupabaseRecordStore:
    def __init__(
        self,
        client: SupabaseClient,
        table_names: dict[str, str],
        access_token: str | None = None,
    ) -> None:
        self._client = client
        self._table_names = table_names
        self._access_token = access_token

    def _table(self, kind: RecordKind) -> str:
        return self._table_names.get(kind.value, kind.value)

    def _to_schema(self, kind: RecordKind, row: dict[str, Any]) -> RecordBase:
        try:
            return get_kind_config(kind).schema.model_validate(row)
        except ValidationError as exc:
            raise StoreError(f"Unreadable row in {self._table(kind)}: {exc.errors()[0]['msg']}") from exc

    def select(self, kind: RecordKind) -> list[RecordBase]:
        try:
            rows = self._client.select(self._table(kind), access_token=self._access_token)
        except SupabaseError as exc:
            raise StoreError(exc.message, status_code=exc.status_code) from exc
        return [self._to_schema(kind, row) for row in rows]

    def insert(self, kind: RecordKind, values: dict[str, Any]) -> RecordBase:
        row = {key: value for key, value in values.items() if key != "id"}
        try:
            created = self._client.insert(self._table(kind), _to_wire(row), access_token=self._access_token)
        except SupabaseError as exc:
            raise StoreError(exc.message, status_code=exc.status_code) from exc
        if created is None:
            raise StoreError("Insert returned no record.")
        return self._to_schema(kind, created)

    def update(self, kind: RecordKind, record_id: int | str, values: dict[str, Any]) -> RecordBase:
        changes = {key: value for key, value in values.items() if key not in records_repo.IMMUTABLE_COLUMNS}
        try:
            updated = self._client.update(
                self._table(kind),
                record_id,
                _to_wire(changes),
                access_token=self._access_token,
            )
        except SupabaseError as exc:
            raise StoreError(exc.message, status_code=exc.status_code) from exc
        if updated is None:
            raise StoreError(NOT_FOUND_MESSAGE, status_code=404)
        return self._to_schema(kind, updated)

    def delete(self, kind: RecordKind, record_id: int | str) -> None:
        try:
            deleted = self._client.delete(self._table(kind), record_id, access_token=self._access_token)
        except SupabaseError as exc:
            raise StoreError(exc.message, status_code=exc.status_code) from exc
        if deleted is None:
            raise StoreError(NOT_FOUND_MESSAGE, status_code=404)


def build_supabase_client() -> SupabaseClient:
    return SupabaseClient(
        settings.required_supabase_url,
        settings.required_supabase_anon_key,
        timeout_s=settings.supabase_timeout_s,
    )


def build_record_store(access_token: str | None = None) -> RecordStore:
    if settings.store_backend == "supabase":
        return SupabaseRecordStore(build_supabase_client(), settings.table_names, access_token=access_token)
    return SqlRecordStore(SessionLocal)
