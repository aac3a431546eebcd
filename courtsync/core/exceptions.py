"""Error taxonomy shared by the solver, normalizer, reconciler and pipeline.

Recoverable errors (MalformedRow, MissingIdentity, DuplicateKey, UploadFailed)
are handled by the pipeline per row. SiteError and CaptchaExhausted end a run.
"""
from typing import Optional


class CourtSyncError(Exception):
    """Base class for every error raised by courtsync"""


class OracleUnavailable(CourtSyncError):
    """The vision oracle could not be reached or returned an unusable payload"""


class SiteError(CourtSyncError):
    """The court site reported a non-CAPTCHA condition such as "no records found"."""

    def __init__(self, message: str, attempt: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.attempt = attempt


class CaptchaExhausted(CourtSyncError):
    """The attempt budget was consumed without the site accepting an answer"""

    def __init__(self, attempts: int, last_error_kind: Optional[str] = None):
        super().__init__(f"CAPTCHA not accepted after {attempts} attempts (last error: {last_error_kind})")
        self.attempts = attempts
        self.last_error_kind = last_error_kind


class MalformedRow(CourtSyncError):
    def __init__(self, reason, detail: str = ""):
        super().__init__(f"{reason.value}: {detail}" if detail else reason.value)
        self.reason = reason
        self.detail = detail


class MissingIdentity(CourtSyncError):
    """The record has no diary number or court, so it cannot be located"""


class DuplicateKey(CourtSyncError):
    """A concurrent insert for the same natural key won the race"""


class UploadFailed(CourtSyncError):
    """The blob store rejected a document upload"""
