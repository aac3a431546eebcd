"""CAPTCHA challenge resolution.

One `resolve` call walks the AwaitingImage -> Solving -> Submitted cycle until
the site accepts an answer, reports a non-CAPTCHA error, or the attempt budget
runs out. The solver never retries past a SiteError.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from loguru import logger

from courtsync.core.exceptions import CaptchaExhausted, OracleUnavailable, SiteError
from courtsync.services.error_classifier import ErrorClassifier, ErrorKind, PageState
from courtsync.services.retry_policy import RetryPolicy

ALPHANUMERIC_NOISE = re.compile(r"[^A-Za-z0-9]")
SIGNED_INTEGER = re.compile(r"-?\d+")


class ChallengeState(str, Enum):
    AWAITING_IMAGE = "AwaitingImage"
    SOLVING = "Solving"
    SUBMITTED = "Submitted"
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    SITE_ERRORED = "SiteErrored"
    EXHAUSTED = "Exhausted"


class Oracle(Protocol):
    def solve(self, image_bytes: bytes) -> str: ...


class ChallengeDriver(Protocol):
    def capture_challenge_image(self) -> bytes: ...

    def submit_answer(self, text: str) -> PageState: ...


@dataclass
class AnswerFormat:
    """Accepted shape of an answer: a length window and a charset.

    Text captchas are alphanumeric; arithmetic captchas ("4 + 7 = ?") expect an
    integer, possibly negative.
    """
    min_length: int = 6
    max_length: int = 6
    numeric: bool = False

    def sanitize(self, raw: str) -> str:
        raw = (raw or "").strip()
        if self.numeric:
            match = SIGNED_INTEGER.search(raw)
            return match.group(0) if match else ""
        return ALPHANUMERIC_NOISE.sub("", raw)

    def accepts(self, answer: str) -> bool:
        return self.min_length <= len(answer) <= self.max_length


@dataclass
class CaptchaChallenge:
    image_bytes: bytes
    attempt_number: int
    max_attempts: int
    last_error_kind: ErrorKind = ErrorKind.NONE


@dataclass
class ChallengeResult:
    answer: str
    attempts: int
    page_state: PageState


class ChallengeSolver:
    def __init__(
        self,
        oracle: Oracle,
        classifier: Optional[ErrorClassifier] = None,
        policy: Optional[RetryPolicy] = None,
        answer_format: Optional[AnswerFormat] = None,
    ):
        self.oracle = oracle
        self.classifier = classifier or ErrorClassifier()
        self.policy = policy or RetryPolicy()
        self.answer_format = answer_format or AnswerFormat()
        self.state = ChallengeState.AWAITING_IMAGE

    def _ask_oracle(self, challenge: CaptchaChallenge) -> Optional[str]:
        self.state = ChallengeState.SOLVING
        try:
            raw = self.oracle.solve(challenge.image_bytes)
        except OracleUnavailable as e:
            logger.warning(f"CAPTCHA attempt {challenge.attempt_number}/{challenge.max_attempts}: oracle unavailable: {e}")
            return None
        answer = self.answer_format.sanitize(raw)
        if not self.answer_format.accepts(answer):
            logger.warning(
                f"CAPTCHA attempt {challenge.attempt_number}/{challenge.max_attempts}: "
                f"oracle answer {raw!r} does not fit the expected format"
            )
            return None
        return answer

    def resolve(self, driver: ChallengeDriver) -> ChallengeResult:
        """Solve the challenge currently shown by `driver`.

        Returns the accepted answer. Raises SiteError as soon as the site
        reports a non-CAPTCHA error and CaptchaExhausted when the budget is
        spent on wrong answers or oracle failures.
        """
        max_attempts = self.policy.max_attempts
        last_kind = ErrorKind.NONE

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                self.policy.wait()

            self.state = ChallengeState.AWAITING_IMAGE
            challenge = CaptchaChallenge(
                image_bytes=driver.capture_challenge_image(),
                attempt_number=attempt,
                max_attempts=max_attempts,
                last_error_kind=last_kind,
            )

            answer = self._ask_oracle(challenge)
            if answer is None:
                kind = ErrorKind.ORACLE_FAILURE
            else:
                self.state = ChallengeState.SUBMITTED
                page_state = driver.submit_answer(answer)
                kind = self.classifier.classify(page_state)
                logger.info(f"CAPTCHA attempt {attempt}/{max_attempts}: submitted {answer!r}, result {kind.value}")

                if kind == ErrorKind.NONE:
                    self.state = ChallengeState.ACCEPTED
                    return ChallengeResult(answer=answer, attempts=attempt, page_state=page_state)

                if kind == ErrorKind.SITE_ERROR:
                    self.state = ChallengeState.SITE_ERRORED
                    message = page_state.error_text() or "Site reported an error"
                    logger.warning(f"Site error after CAPTCHA attempt {attempt}: {message}")
                    raise SiteError(message, attempt=attempt)

                self.state = ChallengeState.REJECTED

            last_kind = kind
            if not self.policy.should_retry(kind, attempt):
                break

            # Only a rejected answer needs a fresh image; after an oracle
            # failure the current challenge is still valid
            if kind == ErrorKind.WRONG_ANSWER and hasattr(driver, "refresh_challenge"):
                driver.refresh_challenge()

        self.state = ChallengeState.EXHAUSTED
        logger.error(f"CAPTCHA not solved after {max_attempts} attempts, last error {last_kind.value}")
        raise CaptchaExhausted(attempts=max_attempts, last_error_kind=last_kind.value)
