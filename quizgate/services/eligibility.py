"""Attempt eligibility for quiz lessons.

Eligibility is derived from the attempt history the backend reports plus the
lesson's pass mark and attempt cap. The backend stays authoritative: a
submission it rejects for exceeding the attempt ceiling forces the lockout even
when local counts disagree.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, replace
from enum import Enum

from quizgate.core.exceptions import ApiError
from quizgate.schema.quiz import QuizAttempt, QuizResult, QuizSettings

logger = logging.getLogger(__name__)

ATTEMPTS_EXHAUSTED_CODE = "ATTEMPTS_EXHAUSTED"
# Wording of the API's ceiling error; only consulted when no structured code is present.
ATTEMPT_CEILING_PHRASE = "maximum number of attempts"


class EligibilityState(str, Enum):
  UNKNOWN = "unknown"
  ELIGIBLE = "eligible"
  SUBMITTING = "submitting"
  SCORED = "scored"
  LOCKED = "locked"
  PASSED_LOCKED = "passed_locked"


@dataclass(frozen=True)
class Eligibility:
  """Submit/retry availability for one quiz lesson."""

  state: EligibilityState
  attempts_used: int = 0
  max_attempts: int = 0
  pass_mark_percentage: float = 0
  has_passed: bool = False

  @property
  def can_submit(self) -> bool:
    return self.state is EligibilityState.ELIGIBLE

  @property
  def is_locked(self) -> bool:
    return self.state is EligibilityState.LOCKED

  @property
  def message(self) -> str | None:
    """Learner-facing explanation for a disabled submission, if any."""
    if self.state is EligibilityState.LOCKED:
      # The cap can be unknown locally when only the server's ceiling error revealed it.
      used = f"all {self.max_attempts} attempts" if self.max_attempts > 0 else "all of your attempts"
      return f"You have used {used}. Contact your administrator to reset your attempts."
    if self.state is EligibilityState.PASSED_LOCKED:
      return "You have already passed this quiz."
    return None

  @property
  def summary(self) -> str | None:
    """Pass mark and attempt usage banner, shown only when either limit is configured."""
    parts: list[str] = []
    if self.pass_mark_percentage > 0:
      parts.append(f"Pass mark: {self.pass_mark_percentage:g}%.")
    if self.max_attempts > 0:
      parts.append(f"Attempts: {self.attempts_used}/{self.max_attempts} used.")
    return " ".join(parts) or None


def needs_attempt_history(settings: QuizSettings) -> bool:
  """History only matters when a pass mark or an attempt cap is configured."""
  return settings.has_pass_mark or settings.has_attempt_cap


def compute_eligibility(history: Sequence[QuizAttempt], settings: QuizSettings) -> Eligibility:
  """Derive eligibility from the full attempt history; ordering of `history` is irrelevant."""
  attempts_used = len(history)
  has_passed = any(attempt.passed for attempt in history)
  base = Eligibility(state=EligibilityState.ELIGIBLE, attempts_used=attempts_used, max_attempts=settings.max_attempts, pass_mark_percentage=settings.pass_mark_percentage, has_passed=has_passed)

  if settings.has_attempt_cap and attempts_used >= settings.max_attempts and not has_passed:
    return replace(base, state=EligibilityState.LOCKED)

  if settings.has_pass_mark and has_passed and not settings.allow_retry_after_pass:
    return replace(base, state=EligibilityState.PASSED_LOCKED)

  return base


def after_submission(current: Eligibility, result: QuizResult) -> Eligibility:
  """Transition out of SUBMITTING once the scored result arrives."""
  attempts_used = max(current.attempts_used, result.attempts_taken)
  max_attempts = result.max_attempts or current.max_attempts
  scored = replace(current, state=EligibilityState.SCORED, attempts_used=attempts_used, max_attempts=max_attempts, has_passed=current.has_passed or result.passed)
  if result.max_attempts > 0 and result.attempts_taken >= result.max_attempts and not result.passed:
    return replace(scored, state=EligibilityState.LOCKED)
  return scored


def refresh_eligibility(current: Eligibility, history: Sequence[QuizAttempt], settings: QuizSettings) -> Eligibility:
  """Fold a re-fetched history into the current state.

  LOCKED is sticky until the history itself is reset, and a scored session stays
  SCORED so its result keeps rendering; only the counters move.
  """
  computed = compute_eligibility(history, settings)
  if current.state is EligibilityState.LOCKED and not computed.has_passed:
    return replace(computed, state=EligibilityState.LOCKED, attempts_used=max(computed.attempts_used, current.attempts_used))
  if current.state is EligibilityState.SCORED:
    return replace(current, attempts_used=max(computed.attempts_used, current.attempts_used), has_passed=current.has_passed or computed.has_passed)
  return computed


def force_locked(current: Eligibility) -> Eligibility:
  return replace(current, state=EligibilityState.LOCKED)


def is_attempt_ceiling_error(exc: Exception) -> bool:
  """Return whether a failed submission means the server-side attempt ceiling was hit.

  A structured error code wins; the message match is a fallback for API versions
  that do not send one.
  """
  if isinstance(exc, ApiError) and exc.code:
    return exc.code == ATTEMPTS_EXHAUSTED_CODE
  matched = ATTEMPT_CEILING_PHRASE in str(exc).lower()
  if matched:
    logger.info("Attempt ceiling inferred from error message: %s", exc)
  return matched


def can_retry(eligibility: Eligibility, result: QuizResult | None, settings: QuizSettings) -> bool:
  """Retry is open unless locked out; after a pass only when the lesson allows it."""
  if eligibility.state in {EligibilityState.LOCKED, EligibilityState.SUBMITTING, EligibilityState.PASSED_LOCKED}:
    return False
  if result is not None and result.passed:
    return settings.allow_retry_after_pass
  return True
