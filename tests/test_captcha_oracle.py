import base64

import pytest
import requests

from courtsync.core.exceptions import OracleUnavailable
from courtsync.utils.captcha_oracle import VisionOracleClient
from fakes import FakeResponse, FakeSession

URL = "https://oracle.example/v1/chat/completions"


def make_client(response):
    session = FakeSession({URL: response})
    client = VisionOracleClient(api_key="sk-test", base_url="https://oracle.example/v1/", model="vision-mini", session=session)
    return client, session


def test_solve_posts_data_url_and_returns_text():
    client, session = make_client(FakeResponse(json_data={"choices": [{"message": {"content": " x7Kp2q \n"}}]}))

    assert client.solve(b"\x89PNG") == "x7Kp2q"

    method, url, payload = session.calls[0]
    assert (method, url) == ("POST", URL)
    assert payload["model"] == "vision-mini"
    image_part = payload["messages"][0]["content"][1]
    assert image_part["image_url"]["url"] == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()


@pytest.mark.parametrize("response", [
    FakeResponse(status_code=500),
    FakeResponse(json_data={"error": "quota"}),
    FakeResponse(json_data={"choices": []}),
    FakeResponse(text="<html>gateway</html>"),
    FakeResponse(json_data={"choices": [{"message": {"content": None}}]}),
])
def test_bad_responses_raise_oracle_unavailable(response):
    client, _ = make_client(response)
    with pytest.raises(OracleUnavailable):
        client.solve(b"img")


def test_transport_failure_raises_oracle_unavailable(monkeypatch):
    def refuse(self, *args, **kwargs):
        raise requests.exceptions.ConnectionError("connection refused")

    monkeypatch.setattr(requests.Session, "post", refuse)
    client = VisionOracleClient(api_key="sk-test")

    with pytest.raises(OracleUnavailable):
        client.solve(b"img")


def test_missing_api_key():
    client = VisionOracleClient(api_key="", session=FakeSession({}))
    with pytest.raises(OracleUnavailable):
        client.solve(b"img")
