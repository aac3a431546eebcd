"""Queue notifications for users who follow a case.

A subscription names a diary number and court, and optionally a case type and
location; it follows the case under the same loose rules the store uses to
match records. One pending notification row is written per subscriber and new
order. Sending them (WhatsApp, email) is left to a delivery worker.
"""
from typing import List, Optional, Tuple
import uuid

from loguru import logger
from sqlalchemy.orm import Session

from courtsync.models.case_subscription import CaseSubscription
from courtsync.models.notification import Notification
from courtsync.schemas.case_record import CaseRecord, NaturalKey, OrderEntry
from courtsync.schemas.notification import SubscriptionCreate

PENDING = "pending"


def subscription_key(subscription: CaseSubscription) -> NaturalKey:
    return NaturalKey(
        diary_number=subscription.diary_number or "",
        court=subscription.court or "",
        case_type=subscription.case_type or "",
        location=subscription.city or subscription.district or "",
    )


def contact_for(subscription: CaseSubscription) -> Tuple[str, Optional[str]]:
    """WhatsApp when the user gave a mobile number, email otherwise"""
    if subscription.mobile_number:
        return "whatsapp", f"{subscription.country_code or ''}{subscription.mobile_number}"
    return "email", subscription.email


def notification_message(record: CaseRecord, order: OrderEntry) -> str:
    identifier = f"{record.case_type}/{record.diary_number}" if record.case_type else record.diary_number
    kind = (order.order_type or "order").lower()
    message = f"New {kind} available for your case {identifier}"
    if order.judgment_date:
        message += f" dated {order.judgment_date}"
    return f"{message}: {order.source_url or order.document_ref or 'N/A'}"


class NotificationService:
    def __init__(self, db: Session):
        self.db = db

    def subscribe(self, subscription: SubscriptionCreate) -> CaseSubscription:
        db_subscription = CaseSubscription(id=str(uuid.uuid4()), **subscription.model_dump())
        try:
            self.db.add(db_subscription)
            self.db.commit()
        except Exception as db_error:
            self.db.rollback()
            logger.error(f"Database error while saving subscription: {str(db_error)}")
            raise
        self.db.refresh(db_subscription)
        logger.info(f"User {subscription.user_id} now follows {subscription.diary_number} at {subscription.court}")
        return db_subscription

    def find_subscribers(self, key: NaturalKey) -> List[CaseSubscription]:
        candidates = (
            self.db.query(CaseSubscription)
            .filter(CaseSubscription.diary_number == key.diary_number)
            .order_by(CaseSubscription.created_at, CaseSubscription.id)
            .all()
        )
        return [s for s in candidates if key.overlaps(subscription_key(s))]

    def notify_new_orders(self, record: CaseRecord, orders: List[OrderEntry], case_id: Optional[str] = None) -> int:
        """Write a pending notification per subscriber and order; returns how many"""
        if not orders:
            return 0
        subscribers = self.find_subscribers(record.natural_key)
        if not subscribers:
            logger.debug(f"No users follow {record.diary_number} at {record.court}, skipping notifications")
            return 0

        notifications = []
        for subscription in subscribers:
            method, contact = contact_for(subscription)
            if not contact:
                logger.warning(f"Subscription {subscription.id} has no contact, skipping")
                continue
            for order in orders:
                notifications.append(Notification(
                    id=str(uuid.uuid4()),
                    user_id=subscription.user_id,
                    case_id=case_id,
                    diary_number=record.diary_number,
                    court=record.court,
                    method=method,
                    contact=contact,
                    message=notification_message(record, order),
                    order_key=order.identity_key,
                    status=PENDING,
                ))

        try:
            self.db.add_all(notifications)
            self.db.commit()
        except Exception as db_error:
            self.db.rollback()
            logger.error(f"Database error while saving notifications: {str(db_error)}")
            raise
        logger.info(f"Queued {len(notifications)} notifications for {record.diary_number} ({len(subscribers)} users)")
        return len(notifications)

    def get_notifications(self, user_id: Optional[str] = None, status: Optional[str] = None, limit: int = 100) -> List[Notification]:
        query = self.db.query(Notification)
        if user_id:
            query = query.filter(Notification.user_id == user_id)
        if status:
            query = query.filter(Notification.status == status)
        return query.order_by(Notification.created_at.desc()).limit(limit).all()
