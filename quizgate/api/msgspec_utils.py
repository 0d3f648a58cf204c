"""Helpers for decoding API response bodies into msgspec structures."""

from __future__ import annotations

from typing import TypeVar

import msgspec

from quizgate.core.exceptions import MalformedResponseError

T = TypeVar("T")


def decode_payload(payload: bytes | None, response_type: type[T], *, source: str) -> T:
  """Decode a JSON response body into `response_type`, rejecting partial or mistyped data."""
  if not payload:
    raise MalformedResponseError(f"Empty response body from {source}.")
  try:
    return msgspec.json.decode(payload, type=response_type)
  except msgspec.ValidationError as exc:
    raise MalformedResponseError(f"Invalid response from {source}: {exc}") from exc
  except msgspec.DecodeError as exc:
    raise MalformedResponseError(f"Response from {source} is not valid JSON: {exc}") from exc


class ErrorBody(msgspec.Struct):
  """Error envelope returned by the API on non-success responses."""

  message: str | list[str] | None = None
  code: str | None = None
  error: str | None = None


def decode_error_body(payload: bytes) -> ErrorBody:
  """Best-effort decode of an error envelope; unknown shapes yield an empty body."""
  if not payload:
    return ErrorBody()
  try:
    return msgspec.json.decode(payload, type=ErrorBody)
  except (msgspec.ValidationError, msgspec.DecodeError):
    return ErrorBody()
