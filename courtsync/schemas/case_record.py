from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, field_validator

from courtsync.utils.text import normalize_date

# Scalar fields a later scrape may fill in but never overwrite
MERGEABLE_FIELDS = (
    "case_type",
    "city",
    "district",
    "case_number",
    "case_year",
    "parties",
    "petitioner",
    "respondent",
    "advocates",
    "bench",
    "judgment_by",
    "serial_number",
    "establishment_code",
    "source",
)


def _same(left: str, right: str) -> bool:
    return left.strip().casefold() == right.strip().casefold()


class OrderEntry(BaseModel):
    judgment_date: str = ""
    order_type: str = ""
    source_url: Optional[str] = None
    document_ref: Optional[str] = None

    @property
    def identity_key(self) -> str:
        if self.source_url:
            return self.source_url
        if self.document_ref:
            return self.document_ref
        return f"{self.order_type.strip().upper()}|{normalize_date(self.judgment_date)}"


class NaturalKey(BaseModel):
    """Business identity of a case across independent scrapes.

    An empty case_type or location means "unknown" and matches anything, so a
    case first seen without its type is still found by a later typed scrape.
    """
    diary_number: str
    court: str
    case_type: str = ""
    location: str = ""

    class Config:
        frozen = True

    @property
    def is_complete(self) -> bool:
        return bool(self.diary_number.strip() and self.court.strip())

    def matches(self, record: "CaseRecord") -> bool:
        return self.overlaps(record.natural_key)

    def overlaps(self, other: "NaturalKey") -> bool:
        """Same diary number and court; case type and location only when both sides know them"""
        if other.diary_number.strip() != self.diary_number.strip():
            return False
        if not _same(other.court, self.court):
            return False
        if self.case_type and other.case_type and not _same(other.case_type, self.case_type):
            return False
        if self.location and other.location and not _same(other.location, self.location):
            return False
        return True

    def rank(self, record: "CaseRecord") -> int:
        """Lower is a better match: exact case type first, then exact location"""
        score = 0
        if not (self.case_type and _same(record.case_type, self.case_type)):
            score += 2
        if not (self.location and _same(record.location, self.location)):
            score += 1
        return score


class CaseRecord(BaseModel):
    id: Optional[str] = None
    diary_number: str = ""
    case_type: str = ""
    court: str = ""
    city: str = ""
    district: str = ""
    case_number: str = ""
    case_year: str = ""
    parties: str = ""
    petitioner: str = ""
    respondent: str = ""
    advocates: str = ""
    bench: str = ""
    judgment_by: str = ""
    serial_number: str = ""
    establishment_code: str = ""
    source: str = ""
    orders: List[OrderEntry] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @field_validator(
        "diary_number", "court", *MERGEABLE_FIELDS, mode="before"
    )
    @classmethod
    def none_as_empty(cls, v):
        return "" if v is None else v

    @property
    def location(self) -> str:
        return self.city or self.district

    @property
    def natural_key(self) -> NaturalKey:
        return NaturalKey(
            diary_number=self.diary_number.strip(),
            court=self.court.strip(),
            case_type=self.case_type.strip(),
            location=self.location.strip(),
        )
