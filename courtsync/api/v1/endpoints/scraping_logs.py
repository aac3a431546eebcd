from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from loguru import logger

from courtsync.core.database import get_db
from courtsync.schemas.scraping_log import ScrapingLog as ScrapingLogSchema
from courtsync.services.scraping_log_service import ScrapingLogService

router = APIRouter()

@router.get("/", response_model=List[ScrapingLogSchema])
def get_scraping_logs(source: Optional[str] = None, limit: int = 100, db: Session = Depends(get_db)):
    """
    Get scraping logs from the database, newest first
    """
    try:
        return ScrapingLogService(db).get_logs(source=source, limit=limit)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching scraping logs: {e}")
        raise HTTPException(status_code=500, detail="Error fetching scraping logs")
