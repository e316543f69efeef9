from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from rocal.schemas.records import MaterialRead, PieceWorkJobRead, RecordBase, SupplierRead


class RecordKind(str, Enum):
    SUPPLIERS = "suppliers"
    MATERIALS = "materials"
    PIECEWORK = "piecework"


FIELD_TYPES = ("text", "number")


@dataclass(frozen=True)
class FieldSpec:
    name: str
    label: str
    type: str = "text"
    required: bool = False
    multiline: bool = False

    @property
    def is_numeric(self) -> bool:
        return self.type == "number"


@dataclass(frozen=True)
class DisplayField:
    field: str
    icon: str
    label: str


@dataclass(frozen=True)
class KindConfig:
    kind: RecordKind
    label: str
    singular: str
    fields: tuple[FieldSpec, ...]
    numeric_field: str
    display: tuple[DisplayField, ...]
    schema: type[RecordBase]

    @property
    def form_fields(self) -> tuple[FieldSpec, ...]:
        return self.fields + (NOTES_FIELD,)

    @property
    def required_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(field for field in self.form_fields if field.required)


NOTES_FIELD = FieldSpec("notes", "Notes", multiline=True)

KIND_CONFIGS: dict[RecordKind, KindConfig] = {
    RecordKind.SUPPLIERS: KindConfig(
        kind=RecordKind.SUPPLIERS,
        label="Suppliers",
        singular="supplier",
        fields=(
            FieldSpec("name", "Name", required=True),
            FieldSpec("phone", "Phone", required=True),
            FieldSpec("supplier_type", "Type", required=True),
            FieldSpec("cost", "Cost", type="number", required=True),
        ),
        numeric_field="cost",
        display=(
            DisplayField("phone", "phone", "Phone"),
            DisplayField("supplier_type", "tag", "Type"),
            DisplayField("cost", "dollar", "Cost"),
        ),
        schema=SupplierRead,
    ),
    RecordKind.MATERIALS: KindConfig(
        kind=RecordKind.MATERIALS,
        label="Materials",
        singular="material",
        fields=(
            FieldSpec("name", "Material name", required=True),
            FieldSpec("unit", "Unit"),
            FieldSpec("price", "Price", type="number"),
            FieldSpec("category", "Category"),
        ),
        numeric_field="price",
        display=(
            DisplayField("unit", "package", "Unit"),
            DisplayField("price", "dollar", "Price"),
            DisplayField("category", "tag", "Category"),
        ),
        schema=MaterialRead,
    ),
    RecordKind.PIECEWORK: KindConfig(
        kind=RecordKind.PIECEWORK,
        label="Piece work",
        singular="piece-work job",
        fields=(
            FieldSpec("name", "Job", required=True),
            FieldSpec("worker", "Worker"),
            FieldSpec("cost", "Cost", type="number"),
            FieldSpec("status", "Status"),
        ),
        numeric_field="cost",
        display=(
            DisplayField("worker", "user", "Worker"),
            DisplayField("cost", "dollar", "Cost"),
            DisplayField("status", "tag", "Status"),
        ),
        schema=PieceWorkJobRead,
    ),
}

DEFAULT_KIND = RecordKind.SUPPLIERS


def get_kind_config(kind: RecordKind | str) -> KindConfig:
    return KIND_CONFIGS[parse_kind(kind)]


def parse_kind(value: RecordKind | str | None, default: RecordKind | None = None) -> RecordKind:
    if isinstance(value, RecordKind):
        return value
    cleaned = (value or "").strip().lower()
    try:
        return RecordKind(cleaned)
    except ValueError:
        if default is not None:
            return default
        raise ValueError(f"Record kind must be one of: {', '.join(kind.value for kind in RecordKind)}.") from None


def numeric_value(record: object, field: str) -> float:
    value = getattr(record, field, None)
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(parsed) else parsed


def format_number(value: float | int | None) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return str(int(value))
    return str(value)
