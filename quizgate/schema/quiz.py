"""Wire structures for quiz lessons, attempts and scored results."""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Annotated, Literal

import msgspec

LessonType = Literal["video", "text", "quiz", "pdf"]


class QuizQuestion(msgspec.Struct, rename="camel", kw_only=True, frozen=True):
  """One question as shown to the learner; correct answers are never included."""

  id: str
  question_text: str
  options: Annotated[tuple[str, ...], msgspec.Meta(min_length=2, description="Option texts in canonical order")]
  order: int = 0
  multi_select: bool | None = None

  @property
  def is_multi(self) -> bool:
    return bool(self.multi_select)


class QuizAttempt(msgspec.Struct, rename="camel", kw_only=True, frozen=True):
  """A scored attempt recorded by the backend."""

  id: str
  score: Annotated[float, msgspec.Meta(ge=0, le=1)]
  passed: bool
  created_at: datetime.datetime


class QuizResultItem(msgspec.Struct, rename="camel", kw_only=True, frozen=True):
  question_id: str
  is_correct: bool
  selected_option_index: int | None = None
  selected_option_indices: list[int] | None = None
  correct_option_index: int | None = None
  correct_option_indices: list[int] | None = None
  multi_select: bool | None = None

  def correct_set(self) -> frozenset[int] | None:
    """Return canonical correct indices, or None when the lesson hides them."""
    if self.multi_select:
      if self.correct_option_indices is None:
        return None
      return frozenset(self.correct_option_indices)
    if self.correct_option_index is None:
      return None
    return frozenset({self.correct_option_index})


class QuizResult(msgspec.Struct, rename="camel", kw_only=True, frozen=True):
  """Scored response to a submission."""

  total_questions: int
  correct_answers: int
  score: Annotated[float, msgspec.Meta(ge=0, le=1)]
  passed: bool
  pass_mark_percentage: float = 0
  max_attempts: int = 0
  attempts_taken: int = 0
  show_correct_answers: bool = True
  results: list[QuizResultItem] = msgspec.field(default_factory=list)

  def __post_init__(self):
    if self.correct_answers > self.total_questions:
      raise ValueError("correctAnswers cannot exceed totalQuestions")

  def result_for(self, question_id: str) -> QuizResultItem | None:
    for item in self.results:
      if item.question_id == question_id:
        return item
    return None

  @property
  def score_percentage(self) -> int:
    return round(self.score * 100)


class LessonDetail(msgspec.Struct, rename="camel", kw_only=True, frozen=True):
  """Lesson payload returned by the content API."""

  id: str
  title: str
  type: LessonType
  module_id: str
  content: str | None = None
  notes: str | None = None
  video_filename: str | None = None
  pdf_filename: str | None = None
  pass_mark_percentage: float | None = None
  max_attempts: int | None = None
  randomize_questions: bool | None = None
  randomize_answers: bool | None = None
  show_correct_answers: bool | None = None
  allow_retry_after_pass: bool | None = None
  quiz_questions: list[QuizQuestion] = msgspec.field(default_factory=list)

  @property
  def is_quiz(self) -> bool:
    return self.type == "quiz"


@dataclass(frozen=True)
class QuizSettings:
  """Normalized quiz configuration with absent values resolved to their defaults."""

  pass_mark_percentage: float = 0
  max_attempts: int = 0
  randomize_questions: bool = False
  randomize_answers: bool = False
  show_correct_answers: bool = True
  allow_retry_after_pass: bool = False

  @property
  def has_pass_mark(self) -> bool:
    return self.pass_mark_percentage > 0

  @property
  def has_attempt_cap(self) -> bool:
    return self.max_attempts > 0

  @classmethod
  def from_lesson(cls, lesson: LessonDetail) -> QuizSettings:
    # Missing and null flags fall back the same way the learner view always treated them.
    return cls(
      pass_mark_percentage=lesson.pass_mark_percentage or 0,
      max_attempts=lesson.max_attempts or 0,
      randomize_questions=bool(lesson.randomize_questions),
      randomize_answers=bool(lesson.randomize_answers),
      show_correct_answers=lesson.show_correct_answers is not False,
      allow_retry_after_pass=bool(lesson.allow_retry_after_pass),
    )
