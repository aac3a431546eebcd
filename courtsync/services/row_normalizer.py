"""Turn raw table rows into CaseRecord candidates.

Court sites print the same facts in different shapes: case details as
"W.P.(C)/123/2024" on one portal and "CS 45/2023" on the next, parties in one
"A Vs B" cell or in two cells. The normalizer is pure; it only rejects rows
that carry no case at all (header echoes, empty rows).
"""
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel

from courtsync.core.exceptions import MalformedRow
from courtsync.schemas.case_record import CaseRecord, OrderEntry
from courtsync.utils.text import clean_text, normalize_date

RawRow = Dict[str, Any]

HEADER_TOKENS = ("serial", "s.no", "sr.")
PARTY_SEPARATOR = " Vs "

_TYPE = r"(?P<type>[A-Za-z][A-Za-z0-9.()&\s]*?)"
_NUMBER_YEAR = r"(?P<number>\d+)\s*/\s*(?P<year>\d{4})"

# Ordered, first match wins
CASE_DETAIL_PATTERNS = (
    re.compile(rf"^{_TYPE}\s*/\s*{_NUMBER_YEAR}$"),
    re.compile(rf"^{_TYPE}\s+{_NUMBER_YEAR}$"),
    re.compile(rf"^{_TYPE}\s*-\s*{_NUMBER_YEAR}$"),
)
BARE_YEAR = re.compile(r"(?<!\d)(\d{4})(?!\d)")
DIARY_PATTERN = re.compile(r"^\d+\s*/\s*\d{4}$")


class RejectionReason(str, Enum):
    MISSING_IDENTIFIER = "missing_identifier"
    HEADER_ROW = "header_row"
    EMPTY_CONTENT = "empty_content"


class FieldMapping(BaseModel):
    """Which RawRow key holds which fact. None means the site has no such cell."""
    primary: str = "serial_number"
    diary_number: Optional[str] = None
    case_type: Optional[str] = None
    case_details: Optional[str] = "case_details"
    parties: Optional[str] = None
    petitioner: Optional[str] = None
    respondent: Optional[str] = None
    advocates: Optional[str] = None
    bench: Optional[str] = None
    judgment_by: Optional[str] = None
    judgment_date: Optional[str] = None
    order_link: Optional[str] = None
    order_type: Optional[str] = None
    default_order_type: str = "ORDER"


class RowContext(BaseModel):
    court: str
    bench: str = ""
    city: str = ""
    district: str = ""
    establishment_code: str = ""
    searched_at: Optional[datetime] = None
    source: str = ""
    # Used for rows without a date cell, e.g. a judgments-by-date listing
    judgment_date: str = ""


def decompose_case_details(text: str) -> Tuple[str, str, str]:
    """Split case details into (case_type, number, year).

    When no known shape matches, only a bare four digit year is recovered.
    """
    text = clean_text(text)
    if not text:
        return "", "", ""
    for pattern in CASE_DETAIL_PATTERNS:
        match = pattern.match(text)
        if match:
            case_type = clean_text(match.group("type")).upper()
            return case_type, match.group("number"), match.group("year")
    year = BARE_YEAR.search(text)
    return "", "", year.group(1) if year else ""


def split_parties(text: str) -> Tuple[str, str]:
    text = clean_text(text)
    if PARTY_SEPARATOR in text:
        petitioner, respondent = text.split(PARTY_SEPARATOR, 1)
        return petitioner.strip(), respondent.strip()
    return text, ""


def is_header_echo(text: str) -> bool:
    folded = text.casefold()
    return any(token in folded for token in HEADER_TOKENS)


def _links(value: Any) -> List[Dict[str, str]]:
    if not value:
        return []
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [link for link in value if isinstance(link, dict)]
    text = clean_text(value)
    if text.startswith("http"):
        return [{"text": "", "href": text}]
    return []


class RowNormalizer:
    def __init__(self, mapping: FieldMapping):
        self.mapping = mapping

    def _cell(self, row: RawRow, field: str) -> str:
        key = getattr(self.mapping, field)
        if not key:
            return ""
        value = row.get(key)
        if isinstance(value, dict):
            value = value.get("text", "")
        elif isinstance(value, list):
            value = " ".join(str(v.get("text", "")) if isinstance(v, dict) else str(v) for v in value)
        return clean_text(value)

    def _orders(self, row: RawRow, context: RowContext) -> List[OrderEntry]:
        judgment_date = normalize_date(self._cell(row, "judgment_date") or context.judgment_date)
        order_type = (self._cell(row, "order_type") or self.mapping.default_order_type).upper()
        links = _links(row.get(self.mapping.order_link)) if self.mapping.order_link else []

        orders = []
        seen = set()
        for link in links:
            href = clean_text(link.get("href"))
            if not href or href in seen:
                continue
            seen.add(href)
            orders.append(OrderEntry(judgment_date=judgment_date, order_type=order_type, source_url=href))

        if not orders and judgment_date:
            orders.append(OrderEntry(judgment_date=judgment_date, order_type=order_type))
        return orders

    def normalize(self, row: RawRow, context: RowContext) -> CaseRecord:
        """Build a candidate record from one row; raises MalformedRow"""
        primary = self._cell(row, "primary")
        if not primary:
            raise MalformedRow(RejectionReason.MISSING_IDENTIFIER, f"empty {self.mapping.primary}")
        if is_header_echo(primary):
            raise MalformedRow(RejectionReason.HEADER_ROW, primary)

        case_details = self._cell(row, "case_details")
        parties = self._cell(row, "parties")
        petitioner = self._cell(row, "petitioner")
        respondent = self._cell(row, "respondent")
        if parties and not (petitioner or respondent):
            petitioner, respondent = split_parties(parties)

        if not (petitioner or respondent or case_details):
            raise MalformedRow(RejectionReason.EMPTY_CONTENT, f"row {primary} has no parties or case details")

        case_type, case_number, case_year = decompose_case_details(case_details)

        diary_number = self._cell(row, "diary_number")
        if diary_number and not DIARY_PATTERN.match(diary_number):
            diary_type, diary_no, diary_year = decompose_case_details(diary_number)
            if diary_no:
                diary_number = f"{diary_no}/{diary_year}"
                case_type = case_type or diary_type
        elif not diary_number and case_number and case_year:
            diary_number = f"{case_number}/{case_year}"
        diary_number = diary_number.replace(" ", "")

        explicit_type = self._cell(row, "case_type").upper()

        return CaseRecord(
            diary_number=diary_number,
            case_type=explicit_type or case_type,
            court=context.court,
            city=context.city,
            district=context.district,
            case_number=case_number,
            case_year=case_year,
            parties=parties or (f"{petitioner}{PARTY_SEPARATOR}{respondent}" if respondent else petitioner),
            petitioner=petitioner,
            respondent=respondent,
            advocates=self._cell(row, "advocates"),
            bench=self._cell(row, "bench") or context.bench,
            judgment_by=self._cell(row, "judgment_by"),
            serial_number=primary,
            establishment_code=context.establishment_code,
            source=context.source,
            orders=self._orders(row, context),
        )
