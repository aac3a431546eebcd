"""Classification of post-submit page errors.

Court portals have no structured error API: a rejected CAPTCHA and an empty
result set both surface as text in the same error element. Matching that text
against a per-site keyword table is a deliberately fuzzy boundary, kept in one
place so each site's table can be tested on its own.
"""
from enum import Enum
from typing import Iterable, Optional, Protocol

DEFAULT_CAPTCHA_KEYWORDS = ("invalid", "incorrect", "captcha")


class ErrorKind(str, Enum):
    NONE = "None"
    WRONG_ANSWER = "WrongAnswer"
    SITE_ERROR = "SiteError"
    ORACLE_FAILURE = "OracleFailure"


class PageState(Protocol):
    def has_error_indicator(self) -> bool: ...

    def error_text(self) -> Optional[str]: ...


class ErrorClassifier:
    def __init__(self, captcha_keywords: Iterable[str] = DEFAULT_CAPTCHA_KEYWORDS):
        self.captcha_keywords = tuple(k.casefold() for k in captcha_keywords)

    def classify_text(self, text: Optional[str]) -> ErrorKind:
        # A visible but empty error element is treated as a rejected answer;
        # the attempt budget bounds the cost of being wrong about it.
        if not text or not text.strip():
            return ErrorKind.WRONG_ANSWER
        folded = text.casefold()
        if any(keyword in folded for keyword in self.captcha_keywords):
            return ErrorKind.WRONG_ANSWER
        return ErrorKind.SITE_ERROR

    def classify(self, page_state: PageState) -> ErrorKind:
        if not page_state.has_error_indicator():
            return ErrorKind.NONE
        return self.classify_text(page_state.error_text())
