from datetime import datetime
from enum import Enum
from typing import Dict, Optional
from pydantic import BaseModel


class RunStatus(str, Enum):
    COMPLETED = "Completed"
    NO_RECORDS_FOUND = "NoRecordsFound"
    CAPTCHA_EXHAUSTED = "CaptchaExhausted"
    ABORTED_BY_CANCELLATION = "AbortedByCancellation"
    FAILED = "Failed"


class RunSummary(BaseModel):
    source: str = ""
    status: RunStatus = RunStatus.COMPLETED
    rows_seen: int = 0
    rows_accepted: int = 0
    rows_rejected: int = 0
    rejections: Dict[str, int] = {}
    records_inserted: int = 0
    records_merged: int = 0
    records_unchanged: int = 0
    records_failed: int = 0
    orders_added: int = 0
    orders_backfilled: int = 0
    documents_uploaded: int = 0
    notifications_queued: int = 0
    captcha_attempts: int = 0
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    def reject(self, reason: str) -> None:
        self.rows_rejected += 1
        self.rejections[reason] = self.rejections.get(reason, 0) + 1

    @property
    def total_records(self) -> int:
        return self.records_inserted + self.records_merged

    class Config:
        json_schema_extra = {
            "example": {
                "source": "delhi_high_court_orders",
                "status": "Completed",
                "rows_seen": 12,
                "rows_accepted": 11,
                "rows_rejected": 1,
                "rejections": {"header_row": 1},
                "records_inserted": 4,
                "records_merged": 7,
                "records_unchanged": 0,
                "records_failed": 0,
                "orders_added": 11,
                "orders_backfilled": 0,
                "documents_uploaded": 3,
                "notifications_queued": 2,
                "captcha_attempts": 2,
                "error_message": None,
            }
        }
