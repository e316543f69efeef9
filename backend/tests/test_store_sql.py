from __future__ import annotations

from datetime import datetime

import pytest

from rocal.core.errors import StoreError
from rocal.services.dashboard import DashboardController
from rocal.services.record_kinds import RecordKind, get_kind_config

SUBMITTED = {
    RecordKind.SUPPLIERS: {
        "name": "Aceros del Norte",
        "phone": "555-0101",
        "supplier_type": "steel",
        "cost": "1500.5",
        "notes": "Net 30",
    },
    RecordKind.MATERIALS: {
        "name": "Cemento",
        "unit": "bag",
        "price": "5",
        "category": "binders",
        "notes": "Grey, 50 kg",
    },
    RecordKind.PIECEWORK: {
        "name": "Tiling",
        "worker": "Luis",
        "cost": "320",
        "status": "open",
        "notes": "Kitchen floor",
    },
}


def _supplier(**overrides):
    values = {
        "name": "Aceros del Norte",
        "phone": "555-0101",
        "supplier_type": "steel",
        "cost": 1500.0,
        "notes": None,
        "created_at": datetime(2024, 5, 1, 10, 0),
        "created_by": "1",
    }
    values.update(overrides)
    return values


def test_insert_then_select_returns_fields_and_fresh_id(sql_store):
    created = sql_store.insert(RecordKind.SUPPLIERS, {**_supplier(), "id": 999})

    records = sql_store.select(RecordKind.SUPPLIERS)

    assert [record.id for record in records] == [created.id]
    assert created.id != 999
    stored = records[0]
    assert stored.name == "Aceros del Norte"
    assert stored.cost == 1500.0
    assert isinstance(stored.cost, float)
    assert stored.created_by == "1"


def test_select_orders_newest_first(sql_store):
    sql_store.insert(RecordKind.MATERIALS, {"name": "Old", "created_at": datetime(2024, 1, 1), "created_by": "1"})
    sql_store.insert(RecordKind.MATERIALS, {"name": "New", "created_at": datetime(2024, 6, 1), "created_by": "1"})

    assert [record.name for record in sql_store.select(RecordKind.MATERIALS)] == ["New", "Old"]


def test_update_preserves_id_and_creator(sql_store):
    created = sql_store.insert(RecordKind.SUPPLIERS, _supplier())

    updated = sql_store.update(
        RecordKind.SUPPLIERS,
        created.id,
        {"cost": 1750.0, "created_by": "someone-else", "id": 42, "updated_at": datetime(2024, 6, 1)},
    )

    assert updated.id == created.id
    assert updated.created_by == "1"
    assert updated.cost == 1750.0
    assert updated.updated_at == datetime(2024, 6, 1)


def test_delete_twice_reports_not_found(sql_store):
    created = sql_store.insert(RecordKind.PIECEWORK, {"name": "Plastering", "created_by": "1"})

    sql_store.delete(RecordKind.PIECEWORK, created.id)

    assert sql_store.select(RecordKind.PIECEWORK) == []
    with pytest.raises(StoreError) as excinfo:
        sql_store.delete(RecordKind.PIECEWORK, created.id)
    assert excinfo.value.is_not_found


def test_update_with_non_numeric_id_is_not_found(sql_store):
    with pytest.raises(StoreError, match="Record not found"):
        sql_store.update(RecordKind.MATERIALS, "abc", {"name": "x"})


def test_missing_required_column_becomes_store_error(sql_store):
    with pytest.raises(StoreError):
        sql_store.insert(RecordKind.SUPPLIERS, {"name": "No phone", "created_by": "1"})


def test_tables_are_independent(sql_store):
    sql_store.insert(RecordKind.MATERIALS, {"name": "Cement", "price": 5.0, "created_by": "1"})

    assert sql_store.select(RecordKind.SUPPLIERS) == []
    assert sql_store.select(RecordKind.PIECEWORK) == []
    assert len(sql_store.select(RecordKind.MATERIALS)) == 1


@pytest.mark.parametrize("kind", list(RecordKind))
def test_submitted_form_comes_back_after_reload(kind, sql_store, session_manager, notifier):
    controller = DashboardController(sql_store, session_manager, notifier)
    controller.select_tab(kind)
    form = controller.open_form()
    form.update(SUBMITTED[kind])

    assert form.submit() is True

    [record] = controller.current_records()
    assert record.id is not None
    assert record.created_by == session_manager.identity.id
    assert record.created_at is not None
    for field in get_kind_config(kind).form_fields:
        submitted = SUBMITTED[kind][field.name]
        stored = getattr(record, field.name)
        if field.is_numeric:
            assert isinstance(stored, float)
            assert stored == float(submitted)
        else:
            assert stored == submitted
    controller.close()
