from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from courtsync.core.base import Base

class CaseSubscription(Base):
    __tablename__ = "user_cases"

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)
    diary_number = Column(String, nullable=False, index=True)
    court = Column(String, nullable=False)
    # Empty means the user follows the diary number at any case type or location
    case_type = Column(String, nullable=False, default="")
    city = Column(String, nullable=False, default="")
    district = Column(String, nullable=False, default="")
    email = Column(String)
    country_code = Column(String)
    mobile_number = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
