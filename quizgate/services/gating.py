"""Lesson locking behind unpassed gating quizzes."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from quizgate.schema.progress import CourseProgress, LessonProgressRecord, ModuleProgress

QUIZ_LESSON_TYPE = "quiz"

T = TypeVar("T")


@dataclass(frozen=True)
class GatingState:
  """Locked lessons plus the gate responsible for them."""

  locked: frozenset[str]
  blocking_lesson_id: str | None = None

  def is_locked(self, lesson_id: str) -> bool:
    return lesson_id in self.locked


def _stable_order(items: Sequence[T], order_of: Callable[[T], int | None]) -> list[T]:
  # A missing order key falls back to the item's position in the snapshot.
  def sort_key(pair: tuple[int, T]) -> tuple[int, int]:
    position, item = pair
    order = order_of(item)
    return (position if order is None else order, position)

  return [item for _, item in sorted(enumerate(items), key=sort_key)]


def flatten_progress(progress: CourseProgress) -> list[tuple[ModuleProgress, LessonProgressRecord]]:
  """Return (module, lesson) pairs in the order the learner sees them, across module boundaries."""
  pairs: list[tuple[ModuleProgress, LessonProgressRecord]] = []
  for module in _stable_order(progress.modules, lambda module: module.order):
    for lesson in _stable_order(module.lessons, lambda lesson: lesson.order):
      pairs.append((module, lesson))
  return pairs


def is_gate(lesson: LessonProgressRecord) -> bool:
  """A gate is an incomplete quiz lesson with a positive pass mark."""
  return lesson.lesson_type == QUIZ_LESSON_TYPE and (lesson.pass_mark_percentage or 0) > 0 and not lesson.completed


def compute_gating(progress: CourseProgress) -> GatingState:
  """Lock every lesson after the first unfinished gate; the gate itself stays reachable."""
  locked: set[str] = set()
  blocking: str | None = None
  for _, lesson in flatten_progress(progress):
    if blocking is not None:
      locked.add(lesson.lesson_id)
    elif is_gate(lesson):
      blocking = lesson.lesson_id
  return GatingState(locked=frozenset(locked), blocking_lesson_id=blocking)


def compute_locked(progress: CourseProgress) -> frozenset[str]:
  """Return the ids of lessons currently locked by an unfinished gating quiz."""
  return compute_gating(progress).locked


def lesson_completed(progress: CourseProgress, lesson_id: str) -> bool:
  for _, lesson in flatten_progress(progress):
    if lesson.lesson_id == lesson_id:
      return lesson.completed
  return False
