from __future__ import annotations

from rocal.services.listing import EMPTY_HINT, EMPTY_TITLE, RecordList
from rocal.services.record_kinds import RecordKind


def _list(records, edits=None, deletes=None):
    edits = edits if edits is not None else []
    deletes = deletes if deletes is not None else []
    return RecordList(RecordKind.SUPPLIERS, records, on_edit=edits.append, on_delete=deletes.append)


def test_states():
    assert _list(None).state == "loading"
    assert _list([]).state == "empty"
    assert EMPTY_TITLE == "No records"
    assert EMPTY_HINT == "Add a new one"


def test_rows_follow_display_template(fake_store):
    fake_store.add(RecordKind.SUPPLIERS, name="Aceros", phone="555", supplier_type="steel", cost=1500.0, notes="Net 30")
    record_list = _list(fake_store.select(RecordKind.SUPPLIERS))

    row = record_list.rows()[0]

    assert record_list.state == "ready"
    assert row.title == "Aceros"
    assert [(item.icon, item.value) for item in row.details] == [
        ("phone", "555"),
        ("tag", "steel"),
        ("dollar", "1500"),
    ]
    assert row.notes == "Net 30"


def test_missing_values_render_as_dash(fake_store):
    fake_store.add(RecordKind.SUPPLIERS, name="Bare")
    row = _list(fake_store.select(RecordKind.SUPPLIERS)).rows()[0]

    assert all(item.value == "—" for item in row.details)
    assert row.notes is None


def test_edit_hands_record_to_callback(fake_store):
    fake_store.add(RecordKind.SUPPLIERS, name="Aceros")
    records = fake_store.select(RecordKind.SUPPLIERS)
    edits = []

    assert _list(records, edits=edits).edit(str(records[0].id)) is True
    assert edits == [records[0]]
    assert _list(records, edits=edits).edit("missing") is False


def test_delete_requires_confirmation(fake_store):
    fake_store.add(RecordKind.SUPPLIERS, name="Aceros")
    records = fake_store.select(RecordKind.SUPPLIERS)
    deletes = []
    record_list = _list(records, deletes=deletes)

    pending = record_list.request_delete(records[0].id)

    assert pending is not None
    assert pending.message == 'Are you sure you want to delete "Aceros"? This action cannot be undone.'
    assert deletes == []

    record_list.dismiss(pending)
    assert deletes == []

    record_list.confirm(pending)
    assert deletes == [records[0].id]


def test_request_delete_unknown_id_returns_none(fake_store):
    assert _list([]).request_delete(1) is None
