from __future__ import annotations

import pytest

from rocal.schemas.records import MaterialRead, SupplierRead
from rocal.services.record_kinds import (
    DEFAULT_KIND,
    KIND_CONFIGS,
    RecordKind,
    format_number,
    get_kind_config,
    numeric_value,
    parse_kind,
)


def test_every_kind_has_a_config_with_notes_last():
    assert set(KIND_CONFIGS) == set(RecordKind)
    for config in KIND_CONFIGS.values():
        assert config.form_fields[-1].name == "notes"
        assert config.form_fields[0].name == "name"
        assert any(field.name == config.numeric_field and field.is_numeric for field in config.fields)


def test_required_fields_per_kind():
    assert [field.name for field in get_kind_config("suppliers").required_fields] == [
        "name",
        "phone",
        "supplier_type",
        "cost",
    ]
    assert [field.name for field in get_kind_config("materials").required_fields] == ["name"]
    assert [field.name for field in get_kind_config("piecework").required_fields] == ["name"]


def test_numeric_field_per_kind():
    assert get_kind_config(RecordKind.SUPPLIERS).numeric_field == "cost"
    assert get_kind_config(RecordKind.MATERIALS).numeric_field == "price"
    assert get_kind_config(RecordKind.PIECEWORK).numeric_field == "cost"


def test_parse_kind_accepts_strings_and_falls_back():
    assert parse_kind(" Materials ") is RecordKind.MATERIALS
    assert parse_kind("nope", default=DEFAULT_KIND) is RecordKind.SUPPLIERS
    with pytest.raises(ValueError, match="Record kind must be one of"):
        parse_kind("nope")


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, 0.0), (12.5, 12.5), ("7", 7.0), ("abc", 0.0), (float("nan"), 0.0), (True, 0.0)],
)
def test_numeric_value_treats_missing_and_garbage_as_zero(value, expected):
    record = MaterialRead.model_construct(id=1, name="x", price=value)

    assert numeric_value(record, "price") == expected


def test_format_number_drops_trailing_zero():
    assert format_number(150.0) == "150"
    assert format_number(12.5) == "12.5"
    assert format_number(None) == ""


def test_record_schema_reads_camel_case_rows():
    record = SupplierRead.model_validate(
        {
            "id": 3,
            "name": "Aceros",
            "phone": "555",
            "supplierType": "metal",
            "cost": 100,
            "createdBy": "u1",
            "createdAt": "2024-05-01T10:00:00+00:00",
            "unexpected": "ignored",
        }
    )

    assert record.supplier_type == "metal"
    assert record.created_by == "u1"
    assert record.created_at is not None
    assert record.cost == 100.0
