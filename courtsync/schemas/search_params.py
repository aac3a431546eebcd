from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, field_validator, model_validator

DATE_FORMAT = "%d-%m-%Y"


def parse_form_date(value: str) -> date:
    return datetime.strptime(value, DATE_FORMAT).date()


class SearchParams(BaseModel):
    """What to search for on a court site.

    Dates use the dd-mm-yyyy format the portals expect. With neither a date,
    a range nor a diary number the search defaults to today's orders.
    """
    date: Optional[str] = None
    from_date: Optional[str] = None
    to_date: Optional[str] = None
    diary_number: Optional[str] = None
    case_type: Optional[str] = None
    court: Optional[str] = None
    bench: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    establishment_code: Optional[str] = None

    @field_validator("date", "from_date", "to_date")
    @classmethod
    def check_date_format(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        try:
            parse_form_date(v)
        except ValueError:
            raise ValueError("Date format must be dd-mm-yyyy (e.g., 01-01-2025)")
        return v

    @field_validator("diary_number")
    @classmethod
    def check_diary_number(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        parts = [p.strip() for p in v.split("/")]
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            raise ValueError(f'Invalid diary number format. Expected format: "1234/2025", got: "{v}"')
        return "/".join(parts)

    @model_validator(mode="after")
    def check_range(self) -> "SearchParams":
        if bool(self.from_date) != bool(self.to_date):
            raise ValueError("from_date and to_date must be given together")
        if self.from_date and parse_form_date(self.from_date) > parse_form_date(self.to_date):
            raise ValueError("from_date must not be after to_date")
        if not (self.date or self.from_date or self.diary_number):
            self.date = date.today().strftime(DATE_FORMAT)
        return self
