from sqlalchemy import Column, String, Integer, DateTime, Text
from sqlalchemy.sql import func
from courtsync.core.base import Base

class ScrapingLog(Base):
    __tablename__ = "scraping_log"

    id = Column(String, primary_key=True, index=True)
    date_time = Column(DateTime, nullable=False)
    source = Column(String, nullable=False)
    status = Column(String, nullable=False)
    rows_seen = Column(Integer, nullable=False, default=0)
    rows_rejected = Column(Integer, nullable=False, default=0)
    records_inserted = Column(Integer, nullable=False, default=0)
    records_merged = Column(Integer, nullable=False, default=0)
    orders_added = Column(Integer, nullable=False, default=0)
    total_records = Column(Integer, nullable=False, default=0)
    error_message = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
