"""Generic court-site driver over requests and BeautifulSoup.

Every supported portal follows the same shape: a search form, an image
CAPTCHA served from the same session, a results table and an error element.
A SiteConfig holds the per-site URLs, form field names and selectors.
"""
from typing import Any, Dict, List, Optional
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from loguru import logger
from pydantic import BaseModel

from courtsync.core.config import settings
from courtsync.schemas.search_params import SearchParams
from courtsync.services.error_classifier import DEFAULT_CAPTCHA_KEYWORDS
from courtsync.services.row_normalizer import FieldMapping
from courtsync.utils.html_table import find_hidden_inputs, parse_table_rows
from courtsync.utils.text import clean_text

HIDDEN_STYLES = ("display:none", "visibility:hidden")


class SiteConfig(BaseModel):
    name: str
    court: str
    base_url: str
    form_path: str
    submit_path: Optional[str] = None
    captcha_image_path: Optional[str] = None
    captcha_field: Optional[str] = None
    # Static form values, then SearchParams attribute -> form field name
    form_fields: Dict[str, str] = {}
    param_fields: Dict[str, str] = {}
    carry_hidden_inputs: bool = True
    error_selector: str = "#errSpan"
    table_selector: str = "table"
    columns: Optional[List[Optional[str]]] = None
    label_attribute: Optional[str] = None
    link_selector: str = "a[href]"
    mapping: FieldMapping = FieldMapping()
    captcha_keywords: List[str] = list(DEFAULT_CAPTCHA_KEYWORDS)
    answer_length: List[int] = [6, 6]
    numeric_answer: bool = False
    bench: str = ""
    city: str = ""
    district: str = ""

    @property
    def requires_captcha(self) -> bool:
        return bool(self.captcha_image_path and self.captcha_field)

    def url(self, path: Optional[str]) -> str:
        return urljoin(self.base_url, path or self.form_path)


class HtmlPageState:
    """Outcome of a form submission, read from the returned HTML"""

    def __init__(self, html: str, error_selector: str):
        self.html = html or ""
        self._error = None
        if error_selector:
            soup = BeautifulSoup(self.html, "html.parser")
            self._error = soup.select_one(error_selector)

    def has_error_indicator(self) -> bool:
        if self._error is None:
            return False
        style = (self._error.get("style") or "").replace(" ", "").lower()
        if any(hidden in style for hidden in HIDDEN_STYLES):
            return False
        return bool(clean_text(self._error.get_text(" ")))

    def error_text(self) -> Optional[str]:
        if self._error is None:
            return None
        return clean_text(self._error.get_text(" ")) or None


class HttpFormSiteAdapter:
    def __init__(self, config: SiteConfig, session: Optional[requests.Session] = None, timeout: Optional[float] = None):
        self.config = config
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({
            "User-Agent": settings.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Referer": config.url(config.form_path),
        })
        self._form_data: Dict[str, str] = {}
        self._challenge_image: Optional[bytes] = None
        self._result_html: Optional[str] = None

    @property
    def requires_captcha(self) -> bool:
        return self.config.requires_captcha

    def _build_form(self, params: SearchParams, initial_html: str) -> Dict[str, str]:
        data = {}
        if self.config.carry_hidden_inputs:
            data.update(find_hidden_inputs(initial_html))
        data.update(self.config.form_fields)
        values = params.model_dump()
        # Range-only forms get a single day as from == to
        if values["date"] and not values["from_date"]:
            values["from_date"] = values["to_date"] = values["date"]
        for attribute, field_name in self.config.param_fields.items():
            if values.get(attribute):
                data[field_name] = values[attribute]
        return data

    def _post(self, extra: Dict[str, str]) -> str:
        url = self.config.url(self.config.submit_path)
        logger.info(f"Submitting search form to {url}")
        response = self.session.post(url, data={**self._form_data, **extra}, timeout=self.timeout)
        response.raise_for_status()
        logger.info(f"Search request completed with status code: {response.status_code}, {len(response.text)} bytes")
        return response.text

    def search(self, params: SearchParams) -> None:
        """Open the search form and fill it from params.

        Sites without a CAPTCHA are submitted right away.
        """
        url = self.config.url(self.config.form_path)
        logger.info(f"Fetching search page from {url}")
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()

        self._form_data = self._build_form(params, response.text)
        self._challenge_image = None
        self._result_html = None
        logger.info(f"Prepared form for {self.config.name}: {sorted(self._form_data)}")

        if not self.requires_captcha:
            self._result_html = self._post({})

    def capture_challenge_image(self) -> bytes:
        if self._challenge_image is None:
            url = self.config.url(self.config.captcha_image_path)
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            self._challenge_image = response.content
            logger.debug(f"Fetched CAPTCHA image ({len(self._challenge_image)} bytes)")
        return self._challenge_image

    def refresh_challenge(self) -> None:
        self._challenge_image = None
        self.capture_challenge_image()

    def submit_answer(self, text: str) -> HtmlPageState:
        html = self._post({self.config.captcha_field: text})
        # The site issues a new challenge for every submission
        self._challenge_image = None
        self._result_html = html
        return HtmlPageState(html, self.config.error_selector)

    def extract_rows(self) -> List[Dict[str, Any]]:
        if self._result_html is None:
            raise RuntimeError("extract_rows called before a search was submitted")
        return parse_table_rows(
            self._result_html,
            table_selector=self.config.table_selector,
            columns=self.config.columns,
            label_attribute=self.config.label_attribute,
            link_selector=self.config.link_selector,
            base_url=self.config.base_url,
        )

    def result_page(self) -> HtmlPageState:
        """Error state of the last result page, for sites submitted without a CAPTCHA"""
        return HtmlPageState(self._result_html or "", self.config.error_selector)

    def fetch_document(self, url: str) -> bytes:
        response = self.session.get(urljoin(self.config.base_url, url), timeout=self.timeout)
        response.raise_for_status()
        return response.content

    def close(self) -> None:
        self.session.close()
