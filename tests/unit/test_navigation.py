from __future__ import annotations

import msgspec

from quizgate.schema.progress import CourseOutline
from quizgate.schema.quiz import LessonDetail
from quizgate.services.navigation import OPEN, GateReason, LessonRef, build_lesson_sequence, neighbours, next_lesson_gate


def _outline() -> CourseOutline:
  return msgspec.convert(
    {
      "id": "course-1",
      "title": "Course",
      "modules": [
        {"id": "m2", "title": "Second", "order": 2, "lessons": [{"id": "B1", "title": "B1", "order": 1}]},
        {"id": "m1", "title": "First", "order": 1, "lessons": [{"id": "A2", "title": "A2", "order": 2}, {"id": "A1", "title": "A1", "order": 1}]},
      ],
    },
    CourseOutline,
  )


def _lesson(lesson_type: str = "text", pass_mark=None) -> LessonDetail:
  return LessonDetail(id="A2", title="A2", type=lesson_type, module_id="m1", pass_mark_percentage=pass_mark)


def test_sequence_follows_module_then_lesson_order():
  sequence = build_lesson_sequence(_outline())
  assert [(ref.id, ref.module_id) for ref in sequence] == [("A1", "m1"), ("A2", "m1"), ("B1", "m2")]


def test_neighbours_cross_module_boundaries():
  sequence = build_lesson_sequence(_outline())
  previous, following = neighbours(sequence, "A2")
  assert previous.id == "A1"
  assert following == LessonRef(id="B1", title="B1", module_id="m2")
  assert neighbours(sequence, "A1")[0] is None
  assert neighbours(sequence, "B1")[1] is None
  assert neighbours(sequence, "missing") == (None, None)


def test_unpassed_quiz_blocks_next_with_quiz_reason():
  next_ref = LessonRef(id="B1", title="B1", module_id="m2")
  gate = next_lesson_gate(_lesson("quiz", 70), next_ref, next_locked=True)
  assert gate.blocked
  assert gate.reason is GateReason.QUIZ_NOT_PASSED
  assert gate.message == "Pass the quiz to continue"


def test_passed_quiz_opens_next():
  next_ref = LessonRef(id="B1", title="B1", module_id="m2")
  assert next_lesson_gate(_lesson("quiz", 70), next_ref, next_locked=False, quiz_passed=True) == OPEN
  assert next_lesson_gate(_lesson("quiz", 70), next_ref, next_locked=False, completed=True) == OPEN


def test_earlier_gate_blocks_next_with_prior_quiz_reason():
  next_ref = LessonRef(id="B1", title="B1", module_id="m2")
  gate = next_lesson_gate(_lesson("text"), next_ref, next_locked=True)
  assert gate.reason is GateReason.PRIOR_QUIZ_REQUIRED
  assert gate.message == "Complete the required quiz to continue"


def test_last_lesson_has_no_gate():
  assert next_lesson_gate(_lesson("quiz", 70), None, next_locked=False) == OPEN
  assert OPEN.message is None
