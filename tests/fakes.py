"""Hand-written stand-ins for the site, oracle, stores and notifier"""
from typing import Dict, List, Optional
import uuid

import requests

from courtsync.core.exceptions import DuplicateKey, UploadFailed
from courtsync.schemas.case_record import CaseRecord, NaturalKey, OrderEntry


class FakePage:
    def __init__(self, error: Optional[str] = None):
        self.error = error

    def has_error_indicator(self) -> bool:
        return self.error is not None

    def error_text(self) -> Optional[str]:
        return self.error


class FakeDriver:
    def __init__(self, pages=None, rows=None, requires_captcha=True, broken_documents=()):
        self.pages = list(pages or [])
        self.rows = list(rows or [])
        self.requires_captcha = requires_captcha
        self.broken_documents = set(broken_documents)
        self.searches = []
        self.submitted = []
        self.captures = 0
        self.refreshes = 0
        self.downloads = []

    def search(self, params):
        self.searches.append(params)

    def capture_challenge_image(self) -> bytes:
        self.captures += 1
        return b"captcha-image"

    def submit_answer(self, text: str) -> FakePage:
        self.submitted.append(text)
        return self.pages.pop(0) if self.pages else FakePage()

    def refresh_challenge(self):
        self.refreshes += 1

    def extract_rows(self):
        return list(self.rows)

    def fetch_document(self, url: str) -> bytes:
        self.downloads.append(url)
        if url in self.broken_documents:
            raise requests.exceptions.ConnectionError(f"cannot reach {url}")
        return b"%PDF-1.4 " + url.encode()


class FakeOracle:
    """Returns scripted answers; an exception in the script is raised instead"""

    def __init__(self, answers):
        self.answers = list(answers)
        self.calls = 0

    def solve(self, image_bytes: bytes) -> str:
        self.calls += 1
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class InMemoryStore:
    def __init__(self):
        self.records: Dict[str, CaseRecord] = {}
        self.inserts = 0
        self.merges = 0
        # Records another pipeline "inserts" just before our next insert
        self.race: List[CaseRecord] = []

    def _exact(self, record: CaseRecord):
        for stored in self.records.values():
            if (stored.diary_number, stored.court, stored.case_type, stored.city, stored.district) == (
                record.diary_number, record.court, record.case_type, record.city, record.district
            ):
                return stored
        return None

    def lookup_by_natural_key(self, key: NaturalKey) -> Optional[CaseRecord]:
        matches = [r for r in self.records.values() if key.matches(r)]
        if not matches:
            return None
        return min(matches, key=key.rank).model_copy(deep=True)

    def add(self, record: CaseRecord) -> str:
        record_id = str(uuid.uuid4())
        self.records[record_id] = record.model_copy(update={"id": record_id}, deep=True)
        return record_id

    def insert(self, record: CaseRecord) -> str:
        while self.race:
            self.add(self.race.pop(0))
        if self._exact(record):
            raise DuplicateKey(record.diary_number)
        self.inserts += 1
        return self.add(record)

    def merge_orders(self, case_id: str, orders: List[OrderEntry], fields=None) -> CaseRecord:
        self.merges += 1
        stored = self.records[case_id]
        update = dict(fields or {})
        update["orders"] = [o.model_copy() for o in orders]
        self.records[case_id] = stored.model_copy(update=update, deep=True)
        return self.records[case_id]

    def all(self) -> List[CaseRecord]:
        return list(self.records.values())


class FakeBlobStore:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.blobs: Dict[str, bytes] = {}

    def upload(self, data: bytes, path: str) -> str:
        if self.fail:
            raise UploadFailed(f"bucket unavailable for {path}")
        self.blobs[path] = data
        return path


class FakeResponse:
    def __init__(self, text: str = "", content: bytes = b"", status_code: int = 200, json_data=None):
        self.text = text
        self.content = content or text.encode()
        self.status_code = status_code
        self._json = json_data

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeSession:
    """requests.Session look-alike answering from a url -> response(s) table"""

    def __init__(self, routes):
        self.routes = {url: list(r) if isinstance(r, list) else [r] for url, r in routes.items()}
        self.headers = {}
        self.calls = []
        self.closed = False

    def _respond(self, url):
        responses = self.routes.get(url)
        if not responses:
            return FakeResponse(status_code=404)
        return responses.pop(0) if len(responses) > 1 else responses[0]

    def get(self, url, timeout=None, **kwargs):
        self.calls.append(("GET", url, None))
        return self._respond(url)

    def post(self, url, data=None, timeout=None, **kwargs):
        self.calls.append(("POST", url, data if data is not None else kwargs.get("json")))
        return self._respond(url)

    def close(self):
        self.closed = True


class FakeNotifier:
    """Records one notification per followed case and new order"""

    def __init__(self, followed=()):
        self.followed = set(followed)
        self.sent = []

    def notify_new_orders(self, record: CaseRecord, orders: List[OrderEntry], case_id=None) -> int:
        if record.diary_number not in self.followed:
            return 0
        for order in orders:
            self.sent.append((case_id, record.diary_number, order.identity_key))
        return len(orders)
