"""Lesson page state: lesson content, navigation, gating and the quiz session.

All fetches for a page are keyed by the (lesson, module, course) identifiers the
view was asked to show. A result that resolves after the view has moved on is
dropped instead of being applied to the wrong lesson.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from quizgate.api.client import LearningApiClient
from quizgate.core.exceptions import MalformedResponseError, NetworkError, QuizGateError
from quizgate.schema.progress import CourseProgress
from quizgate.schema.quiz import LessonDetail, QuizResult, QuizSettings
from quizgate.services.gating import compute_locked, lesson_completed
from quizgate.services.navigation import LessonRef, NextLessonGate, build_lesson_sequence, neighbours, next_lesson_gate
from quizgate.services.permutation import PermutationGenerator
from quizgate.services.quiz_session import QuizSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ViewKey:
  lesson_id: str
  module_id: str
  course_id: str | None = None


@dataclass
class LessonPage:
  key: ViewKey
  lesson: LessonDetail
  previous: LessonRef | None = None
  next: LessonRef | None = None
  locked: frozenset[str] = frozenset()
  next_locked: bool = False
  completed: bool = False
  quiz_passed: bool = False

  @property
  def next_gate(self) -> NextLessonGate:
    return next_lesson_gate(self.lesson, self.next, next_locked=self.next_locked, completed=self.completed, quiz_passed=self.quiz_passed)

  def apply_locked(self, locked: frozenset[str]) -> None:
    self.locked = locked
    self.next_locked = self.next is not None and self.next.id in locked


class LessonView:
  """Owns the state of the lesson currently on screen."""

  def __init__(self, client: LearningApiClient, *, generator: PermutationGenerator | None = None) -> None:
    self._client = client
    self._generator = generator
    self._key: ViewKey | None = None
    self.page: LessonPage | None = None
    self.quiz: QuizSession | None = None

  @property
  def key(self) -> ViewKey | None:
    return self._key

  def _is_current(self, key: ViewKey) -> bool:
    return self._key == key

  async def _fetch_neighbours(self, key: ViewKey) -> tuple[LessonRef | None, LessonRef | None]:
    if key.course_id is None:
      return None, None
    outline = await self._client.fetch_course(key.course_id)
    return neighbours(build_lesson_sequence(outline), key.lesson_id)

  async def _fetch_progress(self, course_id: str | None) -> CourseProgress | None:
    if course_id is None:
      return None
    try:
      return await self._client.fetch_course_progress(course_id)
    except (NetworkError, MalformedResponseError) as exc:
      # Without progress nothing is locked; the backend still enforces completion.
      logger.warning("Course progress unavailable course=%s error=%s", course_id, exc)
      return None

  async def load(self, lesson_id: str, module_id: str, course_id: str | None = None) -> LessonPage | None:
    """Load a lesson page. Returns None when a newer load superseded this one."""
    key = ViewKey(lesson_id=lesson_id, module_id=module_id, course_id=course_id)
    self._key = key
    self.page = None
    self.quiz = None

    try:
      lesson, (previous, following), progress = await asyncio.gather(self._client.fetch_lesson(module_id, lesson_id), self._fetch_neighbours(key), self._fetch_progress(course_id))
    except QuizGateError:
      if not self._is_current(key):
        logger.debug("Ignoring failed load for superseded lesson=%s", lesson_id)
        return None
      raise

    if not self._is_current(key):
      logger.debug("Discarding superseded load lesson=%s", lesson_id)
      return None

    locked = compute_locked(progress) if progress is not None else frozenset()
    done = lesson_completed(progress, lesson_id) if progress is not None else False
    page = LessonPage(key=key, lesson=lesson, previous=previous, next=following, completed=done, quiz_passed=done)
    page.apply_locked(locked)
    self.page = page

    if lesson.is_quiz:
      quiz = QuizSession(self._client, lesson.id, lesson.quiz_questions, QuizSettings.from_lesson(lesson), generator=self._generator, on_completed=self._quiz_completed_callback(key))
      self.quiz = quiz
      await quiz.open()
      if not self._is_current(key):
        return None
    return page

  def _quiz_completed_callback(self, key: ViewKey):
    async def _on_completed(result: QuizResult) -> None:
      await self.quiz_passed(key)

    return _on_completed

  async def quiz_passed(self, key: ViewKey | None = None) -> None:
    """Record that the current quiz lesson is complete and recompute gating."""
    key = key or self._key
    if key is None or not self._is_current(key) or self.page is None:
      return
    self.page.quiz_passed = True
    self.page.next_locked = False
    await self.refresh_progress()

  async def refresh_progress(self) -> frozenset[str]:
    """Re-fetch progress and rebuild the locked set from scratch."""
    key = self._key
    if key is None or self.page is None:
      return frozenset()
    progress = await self._fetch_progress(key.course_id)
    if not self._is_current(key) or self.page is None:
      return frozenset()
    if progress is None:
      return self.page.locked
    self.page.apply_locked(compute_locked(progress))
    if lesson_completed(progress, key.lesson_id):
      self.page.completed = True
    return self.page.locked

  async def mark_complete(self) -> None:
    """Manually complete a text, video or pdf lesson. Quizzes complete only by submission."""
    if self.page is None or self._key is None:
      raise ValueError("No lesson is loaded.")
    if self.page.lesson.is_quiz:
      raise ValueError("Quiz lessons are completed by submitting the quiz.")
    key = self._key
    await self._client.mark_lesson_complete(key.lesson_id)
    if not self._is_current(key):
      return
    self.page.completed = True
    await self.refresh_progress()
