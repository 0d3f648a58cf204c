"""Error taxonomy for quiz operations and API access."""

from __future__ import annotations


class QuizGateError(Exception):
  """Base class for every error raised by the engine."""


class AnswerValidationError(QuizGateError):
  """Raised locally when a submission is incomplete; never reaches the network."""


class NetworkError(QuizGateError):
  """Raised when a request to the content/progress API fails."""


class ApiError(NetworkError):
  """Raised when the API answers with a non-success status."""

  def __init__(self, status_code: int, message: str, *, code: str | None = None) -> None:
    super().__init__(message)
    self.status_code = status_code
    self.message = message
    self.code = code

  def __repr__(self) -> str:
    return f"ApiError(status_code={self.status_code!r}, message={self.message!r}, code={self.code!r})"


class MalformedResponseError(QuizGateError):
  """Raised when a response body does not match the expected structure."""


class EligibilityExhaustedError(QuizGateError):
  """Raised when the learner may not submit another attempt."""
