from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from rocal.models.records import RecordColumnsMixin

IMMUTABLE_COLUMNS = frozenset({"id", "created_at", "created_by"})

RecordModel = type[RecordColumnsMixin]


def _column_names(model: RecordModel) -> set[str]:
    return {column.key for column in model.__table__.columns}


def list_records(db: Session, model: RecordModel) -> list[RecordColumnsMixin]:
    stmt = select(model).order_by(model.created_at.desc(), model.id.desc())
    return list(db.scalars(stmt).all())


def get_record(db: Session, model: RecordModel, record_id: int) -> RecordColumnsMixin | None:
    return db.get(model, record_id)


def create_record(db: Session, model: RecordModel, values: dict[str, Any]) -> RecordColumnsMixin:
    columns = _column_names(model) - {"id"}
    record = model(**{key: value for key, value in values.items() if key in columns})
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def update_record(db: Session, *, record: RecordColumnsMixin, values: dict[str, Any]) -> RecordColumnsMixin:
    columns = _column_names(type(record)) - IMMUTABLE_COLUMNS
    for key, value in values.items():
        if key in columns:
            setattr(record, key, value)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def delete_record(db: Session, *, record: RecordColumnsMixin) -> None:
    db.delete(record)
    db.commit()


def to_dict(record: RecordColumnsMixin) -> dict[str, Any]:
    return {key: getattr(record, key) for key in _column_names(type(record))}
