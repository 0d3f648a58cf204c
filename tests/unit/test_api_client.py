from __future__ import annotations

import json

import httpx
import pytest

from quizgate.api.client import LearningApiClient
from quizgate.config import Settings
from quizgate.core.exceptions import ApiError, MalformedResponseError, NetworkError
from quizgate.schema.requests import AnswerEntry


def _settings(**overrides) -> Settings:
  values = {
    "api_base_url": "http://test/api",
    "request_timeout_seconds": None,
    "shuffle_seed": None,
    "debug": False,
    "log_dir": "./logs",
    "log_max_bytes": 1024,
    "log_backup_count": 1,
  }
  values.update(overrides)
  return Settings(**values)


@pytest.mark.anyio
async def test_requests_carry_bearer_token(fake_api, api_client):
  await api_client.fetch_attempts("quiz-1")
  request = fake_api.requests[-1]
  assert request.url.path == "/api/lessons/quiz-1/attempts"
  assert request.headers["Authorization"] == "Bearer learner-token"


@pytest.mark.anyio
async def test_missing_token_sends_no_authorization_header(fake_api):
  client = LearningApiClient.from_settings(_settings(), token_provider=lambda: None, transport=httpx.MockTransport(fake_api.handler))
  async with client:
    await client.fetch_attempts("quiz-1")
  assert "Authorization" not in fake_api.requests[-1].headers


@pytest.mark.anyio
async def test_submission_body_uses_camel_case(fake_api, api_client):
  fake_api.correct = {"q1": 0, "q2": {0, 2}}
  result = await api_client.submit_answers("quiz-1", [AnswerEntry(question_id="q1", selected_option_index=0), AnswerEntry(question_id="q2", selected_option_indices=[2, 0])])

  body = json.loads(fake_api.requests_to("POST", "/submit")[0].content)
  assert body == {"answers": [{"questionId": "q1", "selectedOptionIndex": 0}, {"questionId": "q2", "selectedOptionIndices": [0, 2]}]}
  assert result.correct_answers == 2
  assert result.result_for("q2").correct_set() == frozenset({0, 2})


@pytest.mark.anyio
async def test_no_content_responses_return_none(fake_api, api_client):
  assert await api_client.reset_attempts("quiz-1", "user-1") is None
  assert await api_client.mark_lesson_complete("lesson-9") is None
  assert json.loads(fake_api.requests_to("POST", "/progress/complete")[0].content) == {"lessonId": "lesson-9"}
  assert fake_api.completed == ["lesson-9"]


@pytest.mark.anyio
async def test_error_status_raises_api_error_with_message(fake_api, api_client):
  with pytest.raises(ApiError) as excinfo:
    await api_client.fetch_lesson("m1", "missing")
  assert excinfo.value.status_code == 404
  assert excinfo.value.message == "Lesson not found"
  assert isinstance(excinfo.value, NetworkError)


@pytest.mark.anyio
async def test_list_messages_are_joined(fake_api, api_client):
  fake_api.overrides[("GET", "/lessons/quiz-1/attempts")] = httpx.Response(400, json={"message": ["lessonId must be a UUID", "bad request"], "code": "VALIDATION"})
  with pytest.raises(ApiError) as excinfo:
    await api_client.fetch_attempts("quiz-1")
  assert excinfo.value.message == "lessonId must be a UUID; bad request"
  assert excinfo.value.code == "VALIDATION"


@pytest.mark.anyio
async def test_error_without_body_gets_generic_message(fake_api, api_client):
  fake_api.overrides[("GET", "/lessons/quiz-1/attempts")] = httpx.Response(502, content=b"<html>bad gateway</html>")
  with pytest.raises(ApiError) as excinfo:
    await api_client.fetch_attempts("quiz-1")
  assert excinfo.value.status_code == 502
  assert excinfo.value.message == "Request failed"


@pytest.mark.anyio
async def test_mistyped_body_raises_malformed_response(fake_api, api_client):
  fake_api.overrides[("GET", "/lessons/quiz-1/attempts")] = httpx.Response(200, json=[{"id": "a1", "score": "high", "passed": True, "createdAt": "2026-01-01T00:00:00Z"}])
  with pytest.raises(MalformedResponseError):
    await api_client.fetch_attempts("quiz-1")


@pytest.mark.anyio
async def test_inconsistent_result_counts_are_rejected(fake_api, api_client):
  fake_api.overrides[("POST", "/lessons/quiz-1/submit")] = httpx.Response(201, json={"totalQuestions": 1, "correctAnswers": 2, "score": 1.0, "passed": True})
  with pytest.raises(MalformedResponseError):
    await api_client.submit_answers("quiz-1", [AnswerEntry(question_id="q1", selected_option_index=0)])


@pytest.mark.anyio
async def test_transport_failure_becomes_network_error():
  def handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)

  client = LearningApiClient(httpx.AsyncClient(base_url="http://test/api", transport=httpx.MockTransport(handler)))
  async with client:
    with pytest.raises(NetworkError) as excinfo:
      await client.fetch_course("course-1")
  assert not isinstance(excinfo.value, ApiError)


@pytest.mark.anyio
async def test_course_and_lesson_payloads_decode(fake_api, api_client):
  fake_api.courses["course-1"] = {"id": "course-1", "title": "Course", "modules": [{"id": "m1", "title": "M1", "order": 1, "lessons": [{"id": "l1", "title": "L1", "order": 1}]}]}
  fake_api.lessons["l1"] = {
    "id": "l1",
    "title": "Quiz",
    "type": "quiz",
    "moduleId": "m1",
    "passMarkPercentage": 70,
    "maxAttempts": 3,
    "quizQuestions": [{"id": "q1", "questionText": "Pick one", "options": ["a", "b"], "order": 1}],
  }

  outline = await api_client.fetch_course("course-1")
  lesson = await api_client.fetch_lesson("m1", "l1")

  assert outline.modules[0].lessons[0].id == "l1"
  assert lesson.is_quiz
  assert lesson.quiz_questions[0].question_text == "Pick one"
  assert fake_api.requests[-1].url.path == "/api/modules/m1/lessons/l1"
