from sqlalchemy import Column, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func
from courtsync.core.base import Base

class CaseDetail(Base):
    __tablename__ = "case_details"
    # Unknown key parts are stored as "" so the constraint also covers them
    __table_args__ = (
        UniqueConstraint("diary_number", "court", "case_type", "city", "district", name="uq_case_details_natural_key"),
    )

    id = Column(String, primary_key=True, index=True)
    diary_number = Column(String, nullable=False, index=True)
    court = Column(String, nullable=False, index=True)
    case_type = Column(String, nullable=False, default="")
    city = Column(String, nullable=False, default="")
    district = Column(String, nullable=False, default="")
    case_number = Column(String)
    case_year = Column(String)
    parties = Column(String)
    petitioner = Column(String)
    respondent = Column(String)
    advocates = Column(String)
    bench = Column(String)
    judgment_by = Column(String)
    serial_number = Column(String)
    establishment_code = Column(String)
    source = Column(String)
    orders = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
