import base64
from typing import Optional

import requests
from loguru import logger

from courtsync.core.config import settings
from courtsync.core.exceptions import OracleUnavailable

TEXT_CAPTCHA_PROMPT = (
    "This is a CAPTCHA image with exactly {length} alphanumeric characters (letters and numbers). "
    "The text may be distorted, rotated, or have noise. Ignore any background noise or lines and "
    "look carefully at each character. Reply with ONLY the {length}-character code, no spaces or punctuation."
)
ARITHMETIC_CAPTCHA_PROMPT = (
    "This CAPTCHA image shows a simple arithmetic expression. "
    "Reply with ONLY the integer result, no words or punctuation."
)


class VisionOracleClient:
    """
    Solve image CAPTCHAs with an OpenAI-compatible vision chat model.

    The client makes one request per call and does not retry; the solver's
    attempt budget decides whether to ask again.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        prompt: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.url = f"{(base_url or settings.ORACLE_BASE_URL).rstrip('/')}{settings.ORACLE_CHAT_COMPLETIONS_URL}"
        self.model = model or settings.ORACLE_MODEL
        self.timeout = timeout or settings.ORACLE_TIMEOUT
        self.prompt = prompt or TEXT_CAPTCHA_PROMPT.format(length=6)
        self.session = session or requests.Session()

    def solve(self, image_bytes: bytes) -> str:
        if not self.api_key:
            raise OracleUnavailable("OPENAI_API_KEY is not configured")

        data_url = "data:image/png;base64," + base64.b64encode(image_bytes).decode("ascii")
        payload = {
            "model": self.model,
            "messages": [{
                "role": "user",
                "content": [
                    {"type": "text", "text": self.prompt},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            }],
            "max_tokens": 10,
            "temperature": 0.1,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            logger.info(f"Asking {self.model} to read a CAPTCHA image ({len(image_bytes)} bytes)")
            response = self.session.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            answer = response.json()["choices"][0]["message"]["content"]
        except requests.exceptions.RequestException as e:
            logger.error(f"Error calling CAPTCHA oracle: {e}")
            raise OracleUnavailable(str(e)) from e
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Malformed CAPTCHA oracle response: {e}")
            raise OracleUnavailable(f"Malformed oracle response: {e}") from e

        if not isinstance(answer, str):
            raise OracleUnavailable("Oracle returned no text answer")
        logger.info(f"Oracle answered {answer.strip()!r}")
        return answer.strip()
