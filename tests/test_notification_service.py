import pytest
from pydantic import ValidationError

from courtsync.models.notification import Notification
from courtsync.schemas.case_record import CaseRecord, NaturalKey, OrderEntry
from courtsync.schemas.notification import SubscriptionCreate
from courtsync.services.notification_service import NotificationService, notification_message

ORDER = OrderEntry(judgment_date="05-03-2024", order_type="JUDGEMENT", source_url="https://court.example/1.pdf")


def make_case(**overrides):
    values = dict(diary_number="123/2020", court="Delhi High Court", case_type="CA", city="New Delhi", orders=[ORDER])
    values.update(overrides)
    return CaseRecord(**values)


def follow(service, user_id, **overrides):
    values = dict(user_id=user_id, diary_number="123/2020", court="Delhi High Court", email=f"{user_id}@example.com")
    values.update(overrides)
    return service.subscribe(SubscriptionCreate(**values))


def test_subscribers_follow_the_natural_key(db):
    service = NotificationService(db)
    follow(service, "any-type")
    follow(service, "same-type", case_type="ca", city="new delhi")
    follow(service, "other-type", case_type="CS")
    follow(service, "other-court", court="Supreme Court")
    follow(service, "other-city", city="Mumbai")

    found = service.find_subscribers(NaturalKey(diary_number="123/2020", court="Delhi High Court", case_type="CA", location="New Delhi"))

    assert sorted(s.user_id for s in found) == ["any-type", "same-type"]


def test_one_pending_row_per_subscriber_and_order(db):
    service = NotificationService(db)
    follow(service, "alice")
    follow(service, "bob", email=None, country_code="+91", mobile_number="9876543210")
    second = OrderEntry(judgment_date="06-03-2024", order_type="ORDER", source_url="https://court.example/2.pdf")

    queued = service.notify_new_orders(make_case(), [ORDER, second], case_id="case-1")

    assert queued == 4
    rows = db.query(Notification).all()
    assert {(n.user_id, n.order_key) for n in rows} == {
        ("alice", "https://court.example/1.pdf"),
        ("alice", "https://court.example/2.pdf"),
        ("bob", "https://court.example/1.pdf"),
        ("bob", "https://court.example/2.pdf"),
    }
    assert {n.status for n in rows} == {"pending"}
    assert {n.case_id for n in rows} == {"case-1"}
    bob = [n for n in rows if n.user_id == "bob"][0]
    assert (bob.method, bob.contact) == ("whatsapp", "+919876543210")
    alice = [n for n in rows if n.user_id == "alice"][0]
    assert (alice.method, alice.contact) == ("email", "alice@example.com")
    assert len(service.get_notifications(user_id="alice")) == 2


def test_no_subscribers_no_rows(db):
    service = NotificationService(db)
    assert service.notify_new_orders(make_case(), [ORDER]) == 0
    assert service.notify_new_orders(make_case(), []) == 0
    assert db.query(Notification).count() == 0


def test_message_names_case_type_date_and_link():
    assert notification_message(make_case(), ORDER) == (
        "New judgement available for your case CA/123/2020 dated 05-03-2024: https://court.example/1.pdf"
    )
    untyped = make_case(case_type="")
    bare = OrderEntry(order_type="ORDER")
    assert notification_message(untyped, bare) == "New order available for your case 123/2020: N/A"


def test_subscription_needs_a_contact():
    with pytest.raises(ValidationError):
        SubscriptionCreate(user_id="u1", diary_number="123/2020", court="Delhi High Court")
