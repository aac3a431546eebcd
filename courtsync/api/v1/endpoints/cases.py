from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional

from courtsync.core.database import get_db
from courtsync.schemas.case_record import CaseRecord
from courtsync.services.case_store import CaseStore

router = APIRouter()

@router.get("/", response_model=List[CaseRecord])
def get_cases(
    court: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    """Get stored cases, newest first"""
    return CaseStore(db).list_cases(court=court, skip=skip, limit=limit)

@router.get("/lookup", response_model=List[CaseRecord])
def lookup_cases(
    diary_number: str,
    court: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """Get every case filed under a diary number, optionally for one court"""
    return CaseStore(db).find_by_diary(diary_number, court=court)

@router.get("/{case_id}", response_model=CaseRecord)
def get_case(
    case_id: str,
    db: Session = Depends(get_db)
):
    """Get a specific case by id"""
    case = CaseStore(db).get_case(case_id)
    if not case:
        raise HTTPException(status_code=404, detail="Case not found")
    return case
