from datetime import datetime
from typing import List, Optional
import uuid

from loguru import logger
from sqlalchemy.orm import Session

from courtsync.models.scraping_log import ScrapingLog
from courtsync.schemas.run_summary import RunSummary


class ScrapingLogService:
    def __init__(self, db: Session):
        self.db = db

    def record_run(self, summary: RunSummary) -> ScrapingLog:
        """Save one log entry for a finished pipeline run"""
        log_entry = ScrapingLog(
            id=str(uuid.uuid4()),
            date_time=summary.started_at or datetime.now(),
            source=summary.source,
            status=summary.status.value,
            rows_seen=summary.rows_seen,
            rows_rejected=summary.rows_rejected,
            records_inserted=summary.records_inserted,
            records_merged=summary.records_merged,
            orders_added=summary.orders_added,
            total_records=summary.total_records,
            error_message=summary.error_message,
        )
        try:
            self.db.add(log_entry)
            self.db.commit()
        except Exception as db_error:
            self.db.rollback()
            logger.error(f"Database error while saving log: {str(db_error)}")
            raise
        self.db.refresh(log_entry)
        logger.info(f"Saved scraping log {log_entry.id} for {summary.source}: {summary.status.value}")
        return log_entry

    def get_logs(self, source: Optional[str] = None, limit: int = 100) -> List[ScrapingLog]:
        query = self.db.query(ScrapingLog)
        if source:
            query = query.filter(ScrapingLog.source == source)
        return query.order_by(ScrapingLog.date_time.desc()).limit(limit).all()
