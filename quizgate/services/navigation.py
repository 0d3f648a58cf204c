"""Previous/next lesson navigation across a course outline."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from quizgate.schema.progress import CourseOutline
from quizgate.schema.quiz import LessonDetail


@dataclass(frozen=True)
class LessonRef:
  id: str
  title: str
  module_id: str


class GateReason(str, Enum):
  QUIZ_NOT_PASSED = "quiz_not_passed"
  PRIOR_QUIZ_REQUIRED = "prior_quiz_required"


_GATE_MESSAGES = {
  GateReason.QUIZ_NOT_PASSED: "Pass the quiz to continue",
  GateReason.PRIOR_QUIZ_REQUIRED: "Complete the required quiz to continue",
}


@dataclass(frozen=True)
class NextLessonGate:
  blocked: bool
  reason: GateReason | None = None

  @property
  def message(self) -> str | None:
    return _GATE_MESSAGES.get(self.reason) if self.reason else None


OPEN = NextLessonGate(blocked=False)


def build_lesson_sequence(outline: CourseOutline) -> list[LessonRef]:
  """Flatten the outline by module order, then lesson order within each module."""
  sequence: list[LessonRef] = []
  for module in sorted(outline.modules, key=lambda module: module.order):
    for lesson in sorted(module.lessons, key=lambda lesson: lesson.order):
      sequence.append(LessonRef(id=lesson.id, title=lesson.title, module_id=module.id))
  return sequence


def neighbours(sequence: Sequence[LessonRef], lesson_id: str) -> tuple[LessonRef | None, LessonRef | None]:
  """Return the lessons before and after `lesson_id`; (None, None) when it is not in the course."""
  for index, ref in enumerate(sequence):
    if ref.id == lesson_id:
      previous = sequence[index - 1] if index > 0 else None
      following = sequence[index + 1] if index + 1 < len(sequence) else None
      return previous, following
  return None, None


def next_lesson_gate(lesson: LessonDetail, next_ref: LessonRef | None, *, next_locked: bool, completed: bool = False, quiz_passed: bool = False) -> NextLessonGate:
  """Explain whether the "next lesson" control is disabled, and why."""
  if next_ref is None:
    return OPEN
  # The lesson's own gate takes precedence over an earlier one.
  if lesson.is_quiz and (lesson.pass_mark_percentage or 0) > 0 and not completed and not quiz_passed:
    return NextLessonGate(blocked=True, reason=GateReason.QUIZ_NOT_PASSED)
  if next_locked:
    return NextLessonGate(blocked=True, reason=GateReason.PRIOR_QUIZ_REQUIRED)
  return OPEN
