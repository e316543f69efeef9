from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


def lenient_text(value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    return str(value)


def lenient_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


class RecordBase(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )

    id: int | str
    name: str
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    created_by: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("notes", "created_by", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str | None:
        return lenient_text(value)


class SupplierRead(RecordBase):
    phone: str | None = None
    supplier_type: str | None = None
    cost: float | None = None

    @field_validator("cost", mode="before")
    @classmethod
    def coerce_cost(cls, value: Any) -> float | None:
        return lenient_number(value)

    @field_validator("phone", "supplier_type", mode="before")
    @classmethod
    def coerce_details(cls, value: Any) -> str | None:
        return lenient_text(value)


class MaterialRead(RecordBase):
    unit: str | None = None
    price: float | None = None
    category: str | None = None

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, value: Any) -> float | None:
        return lenient_number(value)

    @field_validator("unit", "category", mode="before")
    @classmethod
    def coerce_details(cls, value: Any) -> str | None:
        return lenient_text(value)


class PieceWorkJobRead(RecordBase):
    worker: str | None = None
    cost: float | None = None
    status: str | None = None

    @field_validator("cost", mode="before")
    @classmethod
    def coerce_cost(cls, value: Any) -> float | None:
        return lenient_number(value)

    @field_validator("worker", "status", mode="before")
    @classmethod
    def coerce_details(cls, value: Any) -> str | None:
        return lenient_text(value)
