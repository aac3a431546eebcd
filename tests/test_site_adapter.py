import pytest
import requests

from courtsync.schemas.search_params import SearchParams
from courtsync.services.row_normalizer import FieldMapping
from courtsync.utils.site_adapter import HtmlPageState, HttpFormSiteAdapter, SiteConfig
from courtsync.utils.sites import SITES, get_site
from fakes import FakeResponse, FakeSession

BASE = "https://court.example/"
FORM_PAGE = '<form><input type="hidden" name="csrf" value="tok"></form>'
RESULTS = """
<span id="errSpan" style="display:none"></span>
<table class="results">
  <tr><td>1</td><td>CA/123/2020</td><td>Ram Vs Shyam</td><td><a href="orders/1.pdf">View</a></td></tr>
</table>
"""
REJECTED = '<span id="errSpan" style="display: block">Invalid Captcha</span>'


def make_config(**overrides):
    values = dict(
        name="test_site",
        court="Test Court",
        base_url=BASE,
        form_path="search.php",
        submit_path="results.php",
        captcha_image_path="captcha.png",
        captcha_field="captcha",
        form_fields={"court_code": "7"},
        param_fields={"from_date": "from", "to_date": "to", "diary_number": "diary"},
        table_selector="table.results",
        columns=["serial_number", "case_details", "parties", "order_link"],
        mapping=FieldMapping(case_details="case_details", parties="parties", order_link="order_link"),
    )
    values.update(overrides)
    return SiteConfig(**values)


def make_adapter(results=FakeResponse(RESULTS), images=(b"img-1", b"img-2", b"img-3"), **overrides):
    session = FakeSession({
        BASE + "search.php": FakeResponse(FORM_PAGE),
        BASE + "captcha.png": [FakeResponse(content=image) for image in images],
        BASE + "results.php": results,
        BASE + "orders/1.pdf": FakeResponse(content=b"%PDF-1.4"),
    })
    return HttpFormSiteAdapter(make_config(**overrides), session=session), session


def test_search_builds_form_from_params_and_hidden_inputs():
    adapter, session = make_adapter(results=FakeResponse(RESULTS))
    adapter.search(SearchParams(date="05-03-2024"))
    adapter.submit_answer("abc123")

    method, url, data = session.calls[-1]
    assert (method, url) == ("POST", BASE + "results.php")
    assert data == {"csrf": "tok", "court_code": "7", "from": "05-03-2024", "to": "05-03-2024", "captcha": "abc123"}


def test_challenge_image_is_reused_until_refreshed():
    adapter, session = make_adapter(results=FakeResponse(REJECTED))
    adapter.search(SearchParams(date="05-03-2024"))

    assert adapter.capture_challenge_image() == b"img-1"
    assert adapter.capture_challenge_image() == b"img-1"
    adapter.refresh_challenge()
    assert adapter.capture_challenge_image() == b"img-2"


def test_rejected_answer_shows_error_indicator():
    adapter, _ = make_adapter(results=FakeResponse(REJECTED))
    adapter.search(SearchParams(date="05-03-2024"))

    page = adapter.submit_answer("wrong1")

    assert page.has_error_indicator()
    assert page.error_text() == "Invalid Captcha"


def test_accepted_answer_and_rows():
    adapter, _ = make_adapter(results=FakeResponse(RESULTS))
    adapter.search(SearchParams(date="05-03-2024"))

    page = adapter.submit_answer("abc123")
    rows = adapter.extract_rows()

    assert not page.has_error_indicator()
    assert rows[0]["case_details"] == "CA/123/2020"
    assert rows[0]["order_link"] == {"text": "View", "href": BASE + "orders/1.pdf"}
    assert adapter.fetch_document(rows[0]["order_link"]["href"]) == b"%PDF-1.4"


def test_site_without_captcha_submits_on_search():
    adapter, session = make_adapter(results=FakeResponse(RESULTS), captcha_image_path=None, captcha_field=None)

    assert not adapter.requires_captcha
    adapter.search(SearchParams(date="05-03-2024"))

    assert [c[0] for c in session.calls] == ["GET", "POST"]
    assert len(adapter.extract_rows()) == 1
    assert not adapter.result_page().has_error_indicator()


def test_http_errors_propagate():
    adapter, _ = make_adapter(results=FakeResponse(status_code=503))
    adapter.search(SearchParams(date="05-03-2024"))
    with pytest.raises(requests.exceptions.HTTPError):
        adapter.submit_answer("abc123")


def test_extract_before_search_is_an_error():
    adapter, _ = make_adapter()
    with pytest.raises(RuntimeError):
        adapter.extract_rows()


def test_page_state_without_error_element():
    page = HtmlPageState("<p>results</p>", "#errSpan")
    assert not page.has_error_indicator()
    assert page.error_text() is None


def test_registry():
    assert get_site("supreme_court_judgments").numeric_answer
    assert all(config.name == name for name, config in SITES.items())
    with pytest.raises(ValueError):
        get_site("unknown_court")
