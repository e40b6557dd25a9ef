from datetime import datetime, timezone

from app.core.merge import drop_record, empty_view, merge_local, merge_remote, sort_by_date_desc
from app.core.normalize import normalize_record
from app.schemas.record import Receipt


def receipt(id, amount=100, date="2024-01-01", **extra):
    return {"id": id, "amount": amount, "date": date, **extra}


def wire(view):
    return [r.to_wire() for r in view.records]


def test_remote_overrides_local():
    view = merge_local(empty_view("receipts"), [receipt("1", amount=100)])
    view = merge_remote(view, [receipt("1", amount=200)])

    assert len(view) == 1
    assert view.get("1").amount == 200


def test_local_never_overrides_remote():
    view = merge_remote(empty_view("receipts"), [receipt("1", amount=200)])
    view = merge_local(view, [receipt("1", amount=100)])

    assert len(view) == 1
    assert view.get("1").amount == 200

    # still sticky after another local refresh
    view = merge_local(view, [receipt("1", amount=300), receipt("2")])
    assert view.get("1").amount == 200
    assert view.get("2") is not None


def test_latest_remote_batch_wins():
    view = merge_remote(empty_view("receipts"), [receipt("5", amount=10, clientName="First")])
    view = merge_remote(view, [receipt("5", amount=20, clientName="Second")])

    matching = [r for r in view.records if r.id == "5"]
    assert len(matching) == 1
    assert matching[0].amount == 20
    assert matching[0].client_name == "Second"


def test_merge_remote_is_idempotent():
    batch = [receipt("1", date="2024-01-01"), receipt("2", amount="PKR 5,000", date="2024-02-01")]
    once = merge_remote(empty_view("receipts"), batch)
    twice = merge_remote(once, batch)

    assert wire(once) == wire(twice)


def test_undated_remote_record_is_restamped_on_every_push():
    # a record without a date gets "now" each time it is normalized
    once = merge_remote(empty_view("receipts"), [{"id": "1", "amount": 5}])
    twice = merge_remote(once, [{"id": "1", "amount": 5}])

    assert twice.ids() == ["1"]
    assert twice.get("1").amount == 5
    assert twice.get("1").date >= once.get("1").date


def test_sorted_by_date_descending():
    view = empty_view("receipts")
    for d in ["2024-01-01", "2024-03-01", "2024-02-01"]:
        view = merge_remote(view, [receipt(d, date=d)])

    assert [r.date.strftime("%Y-%m-%d") for r in view.records] == ["2024-03-01", "2024-02-01", "2024-01-01"]


def test_sort_mixes_date_representations():
    batch = [
        receipt("ms", date=1706745600000),               # 2024-02-01
        receipt("naive", date=datetime(2024, 3, 1)),
        receipt("iso", date="2024-01-15T08:00:00+05:00"),
    ]
    view = merge_remote(empty_view("receipts"), batch)
    assert view.ids() == ["naive", "ms", "iso"]


def test_records_without_id_are_skipped():
    view = merge_remote(empty_view("receipts"), [receipt("1"), receipt("2")])
    assert len(view) == 2

    view = merge_remote(view, [{"amount": 5, "date": "2024-01-01"}])
    assert len(view) == 2

    view = merge_local(view, [{"id": None, "amount": 5}])
    assert len(view) == 2


def test_non_list_batches_are_ignored():
    view = merge_remote(empty_view("receipts"), [receipt("1")])

    assert merge_remote(view, None) is view
    assert merge_remote(view, {"id": "2"}) is view
    assert merge_local(view, "receipts") is view


def test_non_mapping_entries_are_dropped():
    view = merge_remote(empty_view("receipts"), [receipt("1"), None, "junk", 3])
    assert view.ids() == ["1"]


def test_identifiers_compared_as_strings():
    view = merge_local(empty_view("receipts"), [receipt(1, amount=100)])
    view = merge_remote(view, [receipt("1", amount=200)])

    assert view.ids() == ["1"]
    assert view.get(1).amount == 200


def test_every_merged_record_is_normalized():
    view = merge_local(empty_view("receipts"), [{"id": "a", "amount": "PKR 12,345", "date": "bad"}])
    view = merge_remote(view, [{"id": "b", "amount": None}])

    for r in view.records:
        assert isinstance(r, Receipt)
        assert isinstance(r.amount, int)
        assert r.date.tzinfo is not None
    assert view.get("a").amount == 12345


def test_merge_keeps_union_of_ids():
    view = merge_local(empty_view("receipts"), [receipt("1"), receipt("2")])
    view = merge_remote(view, [receipt("3")])
    view = merge_local(view, [receipt("4")])

    assert sorted(view.ids()) == ["1", "2", "3", "4"]


def test_remote_deletion_is_not_reflected():
    view = merge_remote(empty_view("receipts"), [receipt("1"), receipt("2")])
    view = merge_remote(view, [receipt("1")])
    assert sorted(view.ids()) == ["1", "2"]


def test_stale_revision_is_ignored():
    view = merge_remote(empty_view("receipts"), [receipt("1", amount=200, revision=2)])
    view = merge_remote(view, [receipt("1", amount=100, revision=1)])
    assert view.get("1").amount == 200

    # equal revisions still apply
    view = merge_remote(view, [receipt("1", amount=250, revision=2)])
    assert view.get("1").amount == 250

    # without a token on both sides the push wins unconditionally
    view = merge_remote(view, [receipt("1", amount=50)])
    assert view.get("1").amount == 50


def test_local_revision_never_blocks_remote():
    view = merge_local(empty_view("receipts"), [receipt("1", amount=100, revision=5)])
    assert view.remote_keys == set()

    view = merge_remote(view, [receipt("1", amount=200, revision=3)])
    assert view.get("1").amount == 200
    assert view.remote_keys == {"1"}

    # from here on the token orders later pushes
    view = merge_remote(view, [receipt("1", amount=300, revision=2)])
    assert view.get("1").amount == 200

    # and local refreshes keep the remote origin
    view = merge_local(view, [receipt("1", amount=100, revision=9), receipt("2")])
    assert view.get("1").amount == 200
    assert view.remote_keys == {"1"}


def test_other_collections_use_their_record_type():
    view = merge_remote(empty_view("employees"), [{"id": "e1", "salary": "40,000", "joinedOn": "2021"}])
    employee = view.get("e1")
    assert employee.salary == 40000
    assert employee.to_wire()["joinedOn"] == "2021"


def test_drop_record():
    view = merge_remote(empty_view("receipts"), [receipt("1"), receipt("2")])
    dropped = drop_record(view, "1")

    assert dropped.ids() == ["2"]
    assert dropped.remote_keys == {"2"}
    assert drop_record(dropped, "missing") is dropped


def test_merge_returns_new_view():
    view = empty_view("receipts")
    merged = merge_remote(view, [receipt("1")])

    assert merged is not view
    assert len(view) == 0


def test_sort_by_date_desc_helper():
    records = [
        normalize_record(receipt("old", date="2023-01-01")),
        normalize_record(receipt("new", date="2025-01-01")),
    ]
    assert [r.id for r in sort_by_date_desc(records)] == ["new", "old"]
    assert records[0].date == datetime(2023, 1, 1, tzinfo=timezone.utc)
