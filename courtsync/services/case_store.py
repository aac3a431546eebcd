from typing import Dict, List, Optional
import uuid

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from courtsync.core.exceptions import DuplicateKey
from courtsync.models.case_detail import CaseDetail
from courtsync.schemas.case_record import CaseRecord, NaturalKey, OrderEntry


def _orders_json(orders: List[OrderEntry]) -> list:
    return [order.model_dump() for order in orders]


class CaseStore:
    def __init__(self, db: Session):
        self.db = db

    def _to_record(self, db_case: CaseDetail) -> CaseRecord:
        return CaseRecord.model_validate(db_case)

    def lookup_by_natural_key(self, key: NaturalKey) -> Optional[CaseRecord]:
        """Find the stored case best matching key.

        Candidates are narrowed on diary number in SQL; court names compare
        case-insensitively and the looser case type and location rules are
        applied here. When several cases match equally well, e.g. an untyped
        key against stored CA and CS cases, the oldest one wins.
        """
        candidates = (
            self.db.query(CaseDetail)
            .filter(CaseDetail.diary_number == key.diary_number)
            .order_by(CaseDetail.created_at, CaseDetail.id)
            .all()
        )
        records = [self._to_record(c) for c in candidates]
        matches = [r for r in records if key.matches(r)]
        if not matches:
            return None
        # min keeps the first of equal ranks, i.e. the oldest
        best = min(matches, key=key.rank)
        tied = [r for r in matches if key.rank(r) == key.rank(best)]
        if len(tied) > 1:
            logger.warning(
                f"{len(tied)} stored cases match {key.diary_number} at {key.court} equally "
                f"(case types {sorted(r.case_type for r in tied)}), using the oldest {best.id}"
            )
        return best

    def insert(self, record: CaseRecord) -> str:
        """Insert a new case and return its id; raises DuplicateKey when the natural key is taken"""
        db_case = CaseDetail(
            id=str(uuid.uuid4()),
            **record.model_dump(exclude={"id", "orders", "created_at", "updated_at"}),
            orders=_orders_json(record.orders),
        )
        try:
            self.db.add(db_case)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Case {record.diary_number} at {record.court} already exists: {e.orig}")
            raise DuplicateKey(f"{record.diary_number} at {record.court}") from e
        self.db.refresh(db_case)
        logger.info(f"Inserted case {record.diary_number} ({record.case_type or 'untyped'}) at {record.court} with {len(record.orders)} orders")
        return db_case.id

    def merge_orders(self, case_id: str, orders: List[OrderEntry], fields: Optional[Dict[str, str]] = None) -> CaseRecord:
        """Replace the order list of a case and fill the given metadata fields"""
        db_case = self.db.query(CaseDetail).filter(CaseDetail.id == case_id).first()
        if db_case is None:
            raise LookupError(f"Case {case_id} not found")
        try:
            for field, value in (fields or {}).items():
                setattr(db_case, field, value)
            # A new list so the JSON column is flagged dirty
            db_case.orders = _orders_json(orders)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(db_case)
        return self._to_record(db_case)

    def get_case(self, case_id: str) -> Optional[CaseRecord]:
        db_case = self.db.query(CaseDetail).filter(CaseDetail.id == case_id).first()
        return self._to_record(db_case) if db_case else None

    def find_by_diary(self, diary_number: str, court: Optional[str] = None) -> List[CaseRecord]:
        query = self.db.query(CaseDetail).filter(CaseDetail.diary_number == diary_number)
        if court:
            query = query.filter(CaseDetail.court == court)
        return [self._to_record(c) for c in query.all()]

    def list_cases(self, court: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[CaseRecord]:
        query = self.db.query(CaseDetail)
        if court:
            query = query.filter(CaseDetail.court == court)
        cases = query.order_by(CaseDetail.created_at.desc()).offset(skip).limit(limit).all()
        return [self._to_record(c) for c in cases]
