from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from loguru import logger

from courtsync.core.database import get_db
from courtsync.schemas.notification import Notification, Subscription, SubscriptionCreate
from courtsync.services.notification_service import NotificationService

router = APIRouter()

@router.post("/", response_model=Subscription, status_code=201)
def create_subscription(subscription: SubscriptionCreate, db: Session = Depends(get_db)):
    """
    Follow a case: new orders on it queue a notification for this user
    """
    try:
        return NotificationService(db).subscribe(subscription)
    except SQLAlchemyError as e:
        logger.error(f"Error saving subscription: {e}")
        raise HTTPException(status_code=500, detail="Error saving subscription")

@router.get("/notifications", response_model=List[Notification])
def get_notifications(
    user_id: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """Get queued notifications, newest first"""
    return NotificationService(db).get_notifications(user_id=user_id, status=status, limit=limit)
