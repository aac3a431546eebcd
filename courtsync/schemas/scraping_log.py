from datetime import datetime
from typing import Optional
from pydantic import BaseModel

class ScrapingLog(BaseModel):
    id: str
    date_time: datetime
    source: str
    status: str
    rows_seen: int
    rows_rejected: int
    records_inserted: int
    records_merged: int
    orders_added: int
    total_records: int
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        json_schema_extra = {
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "date_time": "2025-03-14T12:00:00",
                "source": "delhi_high_court_orders",
                "status": "Completed",
                "rows_seen": 25,
                "rows_rejected": 1,
                "records_inserted": 10,
                "records_merged": 14,
                "orders_added": 24,
                "total_records": 24,
                "error_message": None,
                "created_at": "2025-03-14T12:00:00"
            }
        }
