import pytest

from courtsync.core.exceptions import MissingIdentity
from courtsync.schemas.case_record import CaseRecord, NaturalKey, OrderEntry
from courtsync.services.record_reconciler import ActionKind, RecordReconciler, merge_orders
from fakes import InMemoryStore


def order(url=None, date="01-01-2024", order_type="ORDER", document_ref=None):
    return OrderEntry(judgment_date=date, order_type=order_type, source_url=url, document_ref=document_ref)


def case(**overrides):
    values = dict(diary_number="123/2020", court="Delhi High Court", case_type="CA", city="New Delhi")
    values.update(overrides)
    return CaseRecord(**values)


def apply(store, action):
    if action.kind == ActionKind.INSERT:
        return store.insert(action.record)
    if not action.is_noop:
        store.merge_orders(action.existing_id, action.record.orders, action.changed_fields)
    return action.existing_id


def test_new_case_is_inserted():
    store = InMemoryStore()
    action = RecordReconciler().reconcile(case(orders=[order("url1")]), store.lookup_by_natural_key)

    assert action.kind == ActionKind.INSERT
    assert action.existing_id is None
    assert [o.identity_key for o in action.added_orders] == ["url1"]


def test_missing_identity_is_refused():
    store = InMemoryStore()
    with pytest.raises(MissingIdentity):
        RecordReconciler().reconcile(case(diary_number=""), store.lookup_by_natural_key)
    with pytest.raises(MissingIdentity):
        RecordReconciler().reconcile(case(court="  "), store.lookup_by_natural_key)


def test_orders_are_merged_by_identity_key():
    store = InMemoryStore()
    store.add(case(orders=[order("url1")]))

    action = RecordReconciler().reconcile(case(orders=[order("url1"), order("url2")]), store.lookup_by_natural_key)

    assert action.kind == ActionKind.MERGE
    assert [o.identity_key for o in action.record.orders] == ["url1", "url2"]
    assert [o.identity_key for o in action.added_orders] == ["url2"]


def test_reconciling_twice_adds_nothing_the_second_time():
    store = InMemoryStore()
    reconciler = RecordReconciler()
    candidate = case(orders=[order("url1"), order(None, date="02-02-2024", order_type="judgement")], petitioner="Ram")

    apply(store, reconciler.reconcile(candidate, store.lookup_by_natural_key))
    second = reconciler.reconcile(candidate, store.lookup_by_natural_key)

    assert second.kind == ActionKind.MERGE
    assert second.is_noop
    assert len(store.all()) == 1
    assert len(store.all()[0].orders) == 2


def test_identity_keys_stay_distinct():
    store = InMemoryStore()
    reconciler = RecordReconciler()
    batches = [
        [order("a"), order("b"), order("a")],
        [order("b"), order("c")],
        [order(None, date="1/2/2024"), order(None, date="01-02-2024")],
    ]
    for batch in batches:
        apply(store, reconciler.reconcile(case(orders=batch), store.lookup_by_natural_key))

    keys = [o.identity_key for o in store.all()[0].orders]
    assert len(keys) == len(set(keys))
    assert keys == ["a", "b", "c", "ORDER|01-02-2024"]


def test_non_empty_metadata_is_never_overwritten():
    store = InMemoryStore()
    store.add(case(petitioner="Ram", respondent="", bench="", advocates="Mr. A"))

    action = RecordReconciler().reconcile(
        case(petitioner="Someone Else", respondent="Shyam", bench="", advocates=""),
        store.lookup_by_natural_key,
    )

    assert action.changed_fields == {"respondent": "Shyam"}
    assert action.record.petitioner == "Ram"
    assert action.record.advocates == "Mr. A"
    assert action.record.respondent == "Shyam"


def test_untyped_candidate_finds_typed_record():
    store = InMemoryStore()
    store.add(case(case_type="CA"))

    action = RecordReconciler().reconcile(case(case_type=""), store.lookup_by_natural_key)

    assert action.kind == ActionKind.MERGE
    assert action.record.case_type == "CA"


def test_typed_candidate_fills_untyped_record():
    store = InMemoryStore()
    store.add(case(case_type=""))

    action = RecordReconciler().reconcile(case(case_type="CA"), store.lookup_by_natural_key)

    assert action.kind == ActionKind.MERGE
    assert action.changed_fields["case_type"] == "CA"


def test_different_case_types_are_different_cases():
    store = InMemoryStore()
    store.add(case(case_type="CA"))

    action = RecordReconciler().reconcile(case(case_type="CS"), store.lookup_by_natural_key)

    assert action.kind == ActionKind.INSERT


def test_location_is_compared_only_when_both_sides_have_one():
    store = InMemoryStore()
    store.add(case(court="District Court", case_type="CS", city="", district="Saket"))

    same = RecordReconciler().reconcile(case(court="District Court", case_type="CS", city=""), store.lookup_by_natural_key)
    other = RecordReconciler().reconcile(
        case(court="District Court", case_type="CS", city="", district="Rohini"), store.lookup_by_natural_key
    )

    assert same.kind == ActionKind.MERGE
    assert other.kind == ActionKind.INSERT


def test_exact_case_type_is_preferred():
    key = NaturalKey(diary_number="123/2020", court="Delhi High Court", case_type="CA", location="New Delhi")
    untyped = case(case_type="")
    typed = case(case_type="CA")
    assert key.matches(untyped) and key.matches(typed)
    assert key.rank(typed) < key.rank(untyped)


def test_document_ref_is_backfilled():
    existing = [order("url1"), order("url2", document_ref="blob/2.pdf")]
    incoming = [order("url1", document_ref="blob/1.pdf"), order("url2", document_ref="blob/other.pdf")]

    merged, added, backfilled = merge_orders(existing, incoming)

    assert added == []
    assert [o.document_ref for o in merged] == ["blob/1.pdf", "blob/2.pdf"]
    assert [o.identity_key for o in backfilled] == ["url1"]
    # The stored list is not mutated in place
    assert existing[0].document_ref is None


def test_upload_after_failure_keeps_identity():
    without_ref = order("https://court.example/o.pdf")
    with_ref = order("https://court.example/o.pdf", document_ref="judgement-pdf/o.pdf")
    assert without_ref.identity_key == with_ref.identity_key
