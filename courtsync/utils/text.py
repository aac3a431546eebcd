import re
from typing import Any

LINK_NOISE_PATTERN = re.compile(r"\s*opens in new window\s*", re.IGNORECASE)
WHITESPACE_PATTERN = re.compile(r"\s+")
DATE_PATTERN = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})$")


def clean_text(value: Any) -> str:
    """Collapse whitespace and drop screen-reader link noise from a cell value"""
    if value is None:
        return ""
    text = str(value).replace("\xa0", " ")
    text = LINK_NOISE_PATTERN.sub(" ", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def normalize_date(value: Any) -> str:
    """Normalize d/m/yyyy, d.m.yyyy and d-m-yyyy to dd-mm-yyyy.

    Anything else is returned cleaned but otherwise untouched, court sites
    print dates in too many shapes to reject the unknown ones.
    """
    text = clean_text(value)
    match = DATE_PATTERN.match(text)
    if not match:
        return text
    day, month, year = match.groups()
    return f"{int(day):02d}-{int(month):02d}-{year}"
