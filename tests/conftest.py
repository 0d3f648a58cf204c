"""Shared fixtures: an in-memory course API served through httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from quizgate.api.client import LearningApiClient
from quizgate.schema.quiz import QuizQuestion
from quizgate.services.permutation import PermutationGenerator

API_PREFIX = "/api"


@pytest.fixture
def anyio_backend():
  return "asyncio"


def make_question(question_id: str, options: list[str], *, order: int = 0, multi: bool = False) -> QuizQuestion:
  return QuizQuestion(id=question_id, question_text=f"Question {question_id}?", options=tuple(options), order=order, multi_select=multi)


class FixedOrderGenerator(PermutationGenerator):
  """Generator returning preset display orders so tests control where options land."""

  def __init__(self, *, question_order: tuple[int, ...] | None = None, option_orders: dict[str, tuple[int, ...]] | None = None) -> None:
    super().__init__(seed=0)
    self._question_order = question_order
    self._option_orders = option_orders or {}

  def question_order(self, count: int, generation: int, *, randomize: bool) -> tuple[int, ...]:
    if randomize and self._question_order is not None:
      return self._question_order
    return super().question_order(count, generation, randomize=False)

  def option_order(self, question: QuizQuestion, generation: int, *, randomize: bool) -> tuple[int, ...]:
    if randomize and question.id in self._option_orders:
      return self._option_orders[question.id]
    return super().option_order(question, generation, randomize=False)


class FakeLearningApi:
  """Minimal stand-in for the content/progress backend, including scoring and attempt caps."""

  def __init__(self) -> None:
    self.correct: dict[str, int | set[int]] = {}
    self.pass_mark = 0
    self.max_attempts = 0
    self.show_correct_answers = True
    self.ceiling_code: str | None = None
    self.attempts: list[dict[str, Any]] = []
    self.progress: dict[str, Any] | None = None
    self.lessons: dict[str, dict[str, Any]] = {}
    self.courses: dict[str, dict[str, Any]] = {}
    self.overrides: dict[tuple[str, str], httpx.Response] = {}
    self.requests: list[httpx.Request] = []
    self.submissions: list[dict[str, Any]] = []
    self.completed: list[str] = []

  def requests_to(self, method: str, suffix: str) -> list[httpx.Request]:
    return [request for request in self.requests if request.method == method and request.url.path.endswith(suffix)]

  def _grade(self, body: dict[str, Any]) -> httpx.Response:
    if self.max_attempts > 0 and len(self.attempts) >= self.max_attempts:
      payload: dict[str, Any] = {"message": f"Maximum number of attempts ({self.max_attempts}) reached"}
      if self.ceiling_code:
        payload["code"] = self.ceiling_code
      return httpx.Response(400, json=payload)

    self.submissions.append(body)
    results = []
    correct_count = 0
    for entry in body["answers"]:
      expected = self.correct[entry["questionId"]]
      item: dict[str, Any] = {"questionId": entry["questionId"]}
      if isinstance(expected, set):
        is_correct = set(entry["selectedOptionIndices"]) == expected
        item.update(selectedOptionIndices=entry["selectedOptionIndices"], multiSelect=True, correctOptionIndices=sorted(expected) if self.show_correct_answers else None)
      else:
        is_correct = entry["selectedOptionIndex"] == expected
        item.update(selectedOptionIndex=entry["selectedOptionIndex"], multiSelect=False, correctOptionIndex=expected if self.show_correct_answers else None)
      item["isCorrect"] = is_correct
      correct_count += int(is_correct)
      results.append(item)

    total = len(body["answers"])
    score = correct_count / total
    passed = score * 100 >= (self.pass_mark or 100)
    self.attempts.insert(0, {"id": f"attempt-{len(self.attempts) + 1}", "score": score, "passed": passed, "createdAt": f"2026-01-{len(self.attempts) + 1:02d}T10:00:00Z"})
    return httpx.Response(
      201,
      json={
        "totalQuestions": total,
        "correctAnswers": correct_count,
        "score": score,
        "passed": passed,
        "passMarkPercentage": self.pass_mark,
        "maxAttempts": self.max_attempts,
        "attemptsTaken": len(self.attempts),
        "showCorrectAnswers": self.show_correct_answers,
        "results": results,
      },
    )

  def _complete(self, lesson_id: str) -> None:
    self.completed.append(lesson_id)
    if self.progress is None:
      return
    for module in self.progress["modules"]:
      for lesson in module["lessons"]:
        if lesson["lessonId"] == lesson_id:
          lesson["completed"] = True

  def handler(self, request: httpx.Request) -> httpx.Response:
    self.requests.append(request)
    path = request.url.path.removeprefix(API_PREFIX)
    override = self.overrides.get((request.method, path))
    if override is not None:
      return override

    parts = path.strip("/").split("/")
    if request.method == "GET" and parts[0] == "lessons" and parts[-1] == "attempts":
      return httpx.Response(200, json=self.attempts)
    if request.method == "POST" and parts[0] == "lessons" and parts[-1] == "submit":
      response = self._grade(json.loads(request.content))
      if response.status_code == 201 and (response.json()["passed"] or self.pass_mark == 0):
        self._complete(parts[1])
      return response
    if request.method == "POST" and parts[0] == "lessons" and parts[2] == "reset-attempts":
      self.attempts.clear()
      return httpx.Response(204)
    if request.method == "GET" and parts[:2] == ["progress", "courses"]:
      if self.progress is None:
        return httpx.Response(404, json={"message": "Course not found"})
      return httpx.Response(200, json=self.progress)
    if request.method == "POST" and parts == ["progress", "complete"]:
      self._complete(json.loads(request.content)["lessonId"])
      return httpx.Response(204)
    if request.method == "GET" and parts[0] == "modules" and parts[2] == "lessons":
      lesson = self.lessons.get(parts[3])
      if lesson is None:
        return httpx.Response(404, json={"message": "Lesson not found"})
      return httpx.Response(200, json=lesson)
    if request.method == "GET" and parts[0] == "courses":
      course = self.courses.get(parts[1])
      if course is None:
        return httpx.Response(404, json={"message": "Course not found"})
      return httpx.Response(200, json=course)
    return httpx.Response(404, json={"message": f"No route for {request.method} {path}"})


@pytest.fixture
def fake_api() -> FakeLearningApi:
  return FakeLearningApi()


@pytest.fixture
async def api_client(fake_api):
  http_client = httpx.AsyncClient(base_url=f"http://test{API_PREFIX}", transport=httpx.MockTransport(fake_api.handler))
  async with LearningApiClient(http_client, token_provider=lambda: "learner-token") as client:
    yield client
