"""Authenticated async client for the course content and progress API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from quizgate.api.msgspec_utils import decode_error_body, decode_payload
from quizgate.config import Settings
from quizgate.core.exceptions import ApiError, NetworkError
from quizgate.schema.progress import CourseOutline, CourseProgress
from quizgate.schema.quiz import LessonDetail, QuizAttempt, QuizResult
from quizgate.schema.requests import AnswerEntry, CompleteLessonRequest, SubmissionRequest

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str | None]


class LearningApiClient:
  """Thin transport over the learner-facing API.

  The caller owns authentication: a token provider is injected instead of reading
  stored credentials, so tests can swap in an `httpx.MockTransport`.
  """

  def __init__(self, http_client: httpx.AsyncClient, *, token_provider: TokenProvider | None = None) -> None:
    self._http = http_client
    self._token_provider = token_provider

  @classmethod
  def from_settings(cls, settings: Settings, *, token_provider: TokenProvider | None = None, transport: httpx.AsyncBaseTransport | None = None) -> LearningApiClient:
    """Build a client against the configured base URL."""
    # A None timeout disables httpx's default deadline; hung requests stay pending.
    http_client = httpx.AsyncClient(base_url=settings.api_base_url, timeout=settings.request_timeout_seconds, transport=transport, trust_env=False)
    return cls(http_client, token_provider=token_provider)

  async def __aenter__(self) -> LearningApiClient:
    return self

  async def __aexit__(self, *exc_info: object) -> None:
    await self.aclose()

  async def aclose(self) -> None:
    await self._http.aclose()

  def _headers(self) -> dict[str, str]:
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    token = self._token_provider() if self._token_provider else None
    if token:
      headers["Authorization"] = f"Bearer {token}"
    return headers

  async def _request(self, method: str, path: str, *, json: Any = None) -> bytes | None:
    """Send one request and return the raw body, or None for 204 responses."""
    try:
      response = await self._http.request(method, path, json=json, headers=self._headers())
    except httpx.RequestError as exc:
      logger.warning("API request failed method=%s path=%s error=%s", method, path, exc)
      raise NetworkError(f"Request failed: {exc}") from exc

    if response.status_code == 204:
      return None

    if response.is_error:
      body = decode_error_body(response.content)
      message = body.message
      if isinstance(message, list):
        message = "; ".join(message)
      message = message or body.error or "Request failed"
      logger.info("API error method=%s path=%s status=%s code=%s message=%s", method, path, response.status_code, body.code, message)
      raise ApiError(response.status_code, message, code=body.code)

    return response.content

  async def fetch_attempts(self, lesson_id: str) -> list[QuizAttempt]:
    """Return the learner's attempt history for a quiz lesson, in server order."""
    path = f"/lessons/{lesson_id}/attempts"
    return decode_payload(await self._request("GET", path), list[QuizAttempt], source=path)

  async def submit_answers(self, lesson_id: str, answers: list[AnswerEntry]) -> QuizResult:
    """Send one batch of canonical answers and return the scored result."""
    path = f"/lessons/{lesson_id}/submit"
    request = SubmissionRequest(answers=answers)
    return decode_payload(await self._request("POST", path, json=request.to_wire()), QuizResult, source=path)

  async def reset_attempts(self, lesson_id: str, user_id: str) -> None:
    """Clear a learner's attempt history; callers must re-fetch history afterwards."""
    await self._request("POST", f"/lessons/{lesson_id}/reset-attempts/{user_id}")

  async def fetch_course_progress(self, course_id: str) -> CourseProgress:
    path = f"/progress/courses/{course_id}"
    return decode_payload(await self._request("GET", path), CourseProgress, source=path)

  async def fetch_lesson(self, module_id: str, lesson_id: str) -> LessonDetail:
    path = f"/modules/{module_id}/lessons/{lesson_id}"
    return decode_payload(await self._request("GET", path), LessonDetail, source=path)

  async def fetch_course(self, course_id: str) -> CourseOutline:
    path = f"/courses/{course_id}"
    return decode_payload(await self._request("GET", path), CourseOutline, source=path)

  async def mark_lesson_complete(self, lesson_id: str) -> None:
    """Record manual completion of a text, video or pdf lesson."""
    await self._request("POST", "/progress/complete", json=CompleteLessonRequest(lesson_id=lesson_id).to_wire())
