from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
from courtsync.core.base import Base

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    case_id = Column(String, index=True)
    diary_number = Column(String, nullable=False)
    court = Column(String, nullable=False)
    method = Column(String, nullable=False)
    contact = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    order_key = Column(String, nullable=False)
    status = Column(String, nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
