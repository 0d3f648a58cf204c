"""Quiz attempt sessions and answer submission."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Literal

from quizgate.api.client import LearningApiClient
from quizgate.core.exceptions import AnswerValidationError, EligibilityExhaustedError, MalformedResponseError, NetworkError
from quizgate.schema.quiz import QuizAttempt, QuizQuestion, QuizResult, QuizSettings
from quizgate.schema.requests import AnswerEntry
from quizgate.services.eligibility import (
  Eligibility,
  EligibilityState,
  after_submission,
  can_retry,
  compute_eligibility,
  force_locked,
  is_attempt_ceiling_error,
  needs_attempt_history,
  refresh_eligibility,
)
from quizgate.services.index_mapper import DisplayMapping
from quizgate.services.permutation import PermutationGenerator, canonical_question_order

logger = logging.getLogger(__name__)

INCOMPLETE_ANSWERS_MESSAGE = "Please answer all questions before submitting."
EMPTY_QUIZ_MESSAGE = "This quiz has no questions to submit."

Selection = int | frozenset[int]
OptionMarking = Literal["correct", "incorrect", "selected", "submitted", "neutral"]
CompletionCallback = Callable[[QuizResult], Awaitable[None] | None]


@dataclass
class AttemptSession:
  """State for one quiz visit: frozen display orders plus canonical selections.

  Display orders are computed once in `create`; re-reading them never reshuffles.
  """

  lesson_id: str
  generation: int
  questions: tuple[QuizQuestion, ...]
  question_mapping: DisplayMapping[QuizQuestion]
  option_mappings: dict[str, DisplayMapping[str]]
  selections: dict[str, Selection] = field(default_factory=dict)
  result: QuizResult | None = None

  @classmethod
  def create(cls, lesson_id: str, questions: Sequence[QuizQuestion], settings: QuizSettings, generator: PermutationGenerator, generation: int) -> AttemptSession:
    canonical = tuple(canonical_question_order(questions))
    ids = [question.id for question in canonical]
    if len(set(ids)) != len(ids):
      raise ValueError(f"Quiz {lesson_id} has duplicate question ids.")

    question_order = generator.question_order(len(canonical), generation, randomize=settings.randomize_questions)
    option_mappings = {question.id: DisplayMapping(generator.option_order(question, generation, randomize=settings.randomize_answers), question.options) for question in canonical}
    return cls(lesson_id=lesson_id, generation=generation, questions=canonical, question_mapping=DisplayMapping(question_order, canonical), option_mappings=option_mappings)

  @property
  def is_submitted(self) -> bool:
    return self.result is not None

  def displayed_questions(self) -> list[QuizQuestion]:
    return [question for question, _ in self.question_mapping.display_items()]

  def displayed_options(self, question_id: str) -> list[tuple[str, int]]:
    """Return (option text, canonical index) pairs in the order shown to the learner."""
    return self._mapping(question_id).display_items()

  def question(self, question_id: str) -> QuizQuestion:
    for question in self.questions:
      if question.id == question_id:
        return question
    raise ValueError(f"Unknown question {question_id}.")

  def _mapping(self, question_id: str) -> DisplayMapping[str]:
    try:
      return self.option_mappings[question_id]
    except KeyError:
      raise ValueError(f"Unknown question {question_id}.") from None

  def select(self, question_id: str, display_index: int) -> None:
    """Record a single-select choice, stored as its canonical option index."""
    if self.result is not None:
      return
    if self.question(question_id).is_multi:
      raise ValueError(f"Question {question_id} is multi-select; use toggle().")
    self.selections[question_id] = self._mapping(question_id).to_canonical(display_index)

  def toggle(self, question_id: str, display_index: int) -> None:
    """Flip one option of a multi-select question in or out of the canonical selection set."""
    if self.result is not None:
      return
    if not self.question(question_id).is_multi:
      raise ValueError(f"Question {question_id} is single-select; use select().")
    canonical = self._mapping(question_id).to_canonical(display_index)
    current = self.selections.get(question_id)
    chosen = set(current) if isinstance(current, frozenset) else set()
    chosen ^= {canonical}
    if chosen:
      self.selections[question_id] = frozenset(chosen)
    else:
      self.selections.pop(question_id, None)

  def is_selected(self, question_id: str, canonical_index: int) -> bool:
    selection = self.selections.get(question_id)
    if isinstance(selection, frozenset):
      return canonical_index in selection
    return selection == canonical_index

  def missing_answers(self) -> list[str]:
    return [question.id for question in self.questions if question.id not in self.selections]

  def build_answers(self) -> list[AnswerEntry]:
    """Build the canonical payload, one entry per question in canonical order."""
    if not self.questions:
      raise AnswerValidationError(EMPTY_QUIZ_MESSAGE)
    missing = self.missing_answers()
    if missing:
      raise AnswerValidationError(INCOMPLETE_ANSWERS_MESSAGE)

    answers: list[AnswerEntry] = []
    for question in self.questions:
      selection = self.selections[question.id]
      if isinstance(selection, frozenset):
        answers.append(AnswerEntry(question_id=question.id, selected_option_indices=sorted(selection)))
      else:
        answers.append(AnswerEntry(question_id=question.id, selected_option_index=selection))
    return answers

  def option_marking(self, question_id: str, canonical_index: int) -> OptionMarking:
    """Highlight for one option, keyed by canonical index so shuffling never shifts it."""
    selected = self.is_selected(question_id, canonical_index)
    if self.result is None:
      return "selected" if selected else "neutral"

    item = self.result.result_for(question_id)
    if item is None:
      return "submitted" if selected else "neutral"
    if not self.result.show_correct_answers:
      return "submitted" if selected else "neutral"

    correct = item.correct_set()
    if correct is None:
      return "submitted" if selected else "neutral"
    if canonical_index in correct:
      return "correct"
    if item.multi_select:
      return "incorrect" if selected else "neutral"
    return "incorrect" if selected and not item.is_correct else "neutral"


class QuizSession:
  """Drives one quiz lesson: eligibility, selections, submission and retries."""

  def __init__(
    self,
    client: LearningApiClient,
    lesson_id: str,
    questions: Sequence[QuizQuestion],
    settings: QuizSettings,
    *,
    generator: PermutationGenerator | None = None,
    on_completed: CompletionCallback | None = None,
  ) -> None:
    self._client = client
    self._lesson_id = lesson_id
    self._questions = tuple(questions)
    self._settings = settings
    self._generator = generator or PermutationGenerator()
    self._on_completed = on_completed
    self.history: list[QuizAttempt] = []
    self.eligibility = Eligibility(state=EligibilityState.UNKNOWN, max_attempts=settings.max_attempts, pass_mark_percentage=settings.pass_mark_percentage)
    self.error: str | None = None
    self.attempt = AttemptSession.create(lesson_id, self._questions, settings, self._generator, generation=0)

  @property
  def lesson_id(self) -> str:
    return self._lesson_id

  @property
  def settings(self) -> QuizSettings:
    return self._settings

  @property
  def can_submit(self) -> bool:
    return self.eligibility.can_submit and not self.attempt.is_submitted

  @property
  def can_retry(self) -> bool:
    return can_retry(self.eligibility, self.attempt.result, self._settings)

  async def open(self) -> Eligibility:
    """Load attempt history (when limits apply) and compute the starting eligibility."""
    if not needs_attempt_history(self._settings):
      self.eligibility = compute_eligibility([], self._settings)
      return self.eligibility

    try:
      self.history = await self._client.fetch_attempts(self._lesson_id)
    except (NetworkError, MalformedResponseError) as exc:
      # Treat an unreadable history as "no prior attempts" rather than blocking the quiz.
      logger.warning("Attempt history unavailable lesson=%s error=%s", self._lesson_id, exc)
      self.history = []
    self.eligibility = compute_eligibility(self.history, self._settings)
    logger.info("Quiz opened lesson=%s state=%s %s", self._lesson_id, self.eligibility.state.value, self.eligibility.summary or "")
    return self.eligibility

  async def refresh_history(self) -> Eligibility:
    """Re-fetch history after a submission or an administrative reset."""
    if not needs_attempt_history(self._settings):
      return self.eligibility
    try:
      self.history = await self._client.fetch_attempts(self._lesson_id)
    except (NetworkError, MalformedResponseError) as exc:
      logger.warning("Attempt history refresh failed lesson=%s error=%s", self._lesson_id, exc)
      return self.eligibility
    self.eligibility = refresh_eligibility(self.eligibility, self.history, self._settings)
    return self.eligibility

  async def reset_attempts(self, user_id: str) -> Eligibility:
    """Ask the backend to clear this learner's attempts, then rebuild state from a fresh fetch."""
    await self._client.reset_attempts(self._lesson_id, user_id)
    self.attempt = AttemptSession.create(self._lesson_id, self._questions, self._settings, self._generator, generation=self.attempt.generation + 1)
    self.error = None
    self.eligibility = Eligibility(state=EligibilityState.UNKNOWN, max_attempts=self._settings.max_attempts, pass_mark_percentage=self._settings.pass_mark_percentage)
    return await self.open()

  def select(self, question_id: str, display_index: int) -> None:
    self.attempt.select(question_id, display_index)

  def toggle(self, question_id: str, display_index: int) -> None:
    self.attempt.toggle(question_id, display_index)

  async def submit(self) -> QuizResult:
    """Validate, send the canonical answers, and fold the scored result into session state."""
    if self.attempt.is_submitted:
      raise AnswerValidationError("This attempt has already been submitted; retry to answer again.")
    if not self.eligibility.can_submit:
      raise EligibilityExhaustedError(self.eligibility.message or "Submission is not available.")

    try:
      answers = self.attempt.build_answers()
    except AnswerValidationError as exc:
      self.error = str(exc)
      raise

    self.error = None
    previous = self.eligibility
    self.eligibility = Eligibility(
      state=EligibilityState.SUBMITTING, attempts_used=previous.attempts_used, max_attempts=previous.max_attempts, pass_mark_percentage=previous.pass_mark_percentage, has_passed=previous.has_passed
    )
    attempt = self.attempt

    try:
      result = await self._client.submit_answers(self._lesson_id, answers)
    except NetworkError as exc:
      self.error = str(exc)
      if is_attempt_ceiling_error(exc):
        self.eligibility = force_locked(previous)
        raise EligibilityExhaustedError(self.eligibility.message or str(exc)) from exc
      # Leave selections untouched so the learner can resubmit as-is.
      self.eligibility = previous
      raise
    except MalformedResponseError as exc:
      self.error = str(exc)
      self.eligibility = previous
      raise
    except BaseException:
      # Any other failure, cancellation included, must not leave the session stuck in SUBMITTING.
      self.eligibility = previous
      raise

    if attempt is not self.attempt:
      logger.info("Dropping result for superseded attempt lesson=%s generation=%s", self._lesson_id, attempt.generation)
      return result

    attempt.result = result
    self.eligibility = after_submission(previous, result)
    logger.info("Quiz scored lesson=%s score=%s passed=%s attempts=%s/%s", self._lesson_id, result.score, result.passed, result.attempts_taken, result.max_attempts)

    # Without a pass mark any submission completes the lesson.
    if result.passed or not self._settings.has_pass_mark:
      await self._signal_completed(result)

    await self.refresh_history()
    return result

  async def _signal_completed(self, result: QuizResult) -> None:
    if self._on_completed is None:
      return
    outcome = self._on_completed(result)
    if inspect.isawaitable(outcome):
      await outcome

  def retry(self) -> AttemptSession:
    """Start a new attempt with a fresh shuffle; the old session is discarded, not mutated."""
    if not self.can_retry:
      raise EligibilityExhaustedError(self.eligibility.message or "Retry is not available for this quiz.")
    self.attempt = AttemptSession.create(self._lesson_id, self._questions, self._settings, self._generator, generation=self.attempt.generation + 1)
    self.error = None
    self.eligibility = compute_eligibility(self.history, self._settings)
    return self.attempt
