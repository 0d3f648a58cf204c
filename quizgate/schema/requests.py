from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator, model_validator
from pydantic.alias_generators import to_camel


class AnswerEntry(BaseModel):
  """One canonical answer in a submission batch."""

  question_id: StrictStr = Field(min_length=1, description="Canonical question identifier.")
  selected_option_index: StrictInt | None = Field(default=None, ge=0, description="Canonical option index for single-select questions.")
  selected_option_indices: list[StrictInt] | None = Field(default=None, min_length=1, description="Canonical option indices for multi-select questions.")
  model_config = ConfigDict(extra="forbid", frozen=True, alias_generator=to_camel, populate_by_name=True)

  @field_validator("selected_option_indices")
  @classmethod
  def normalize_indices(cls, value: list[int] | None) -> list[int] | None:
    if value is None:
      return value
    if any(index < 0 for index in value):
      raise ValueError("Option indices must be non-negative.")
    # Send a stable, duplicate-free ordering so identical selections produce identical payloads.
    return sorted(set(value))

  @model_validator(mode="after")
  def require_single_selection_shape(self) -> AnswerEntry:
    has_single = self.selected_option_index is not None
    has_multi = self.selected_option_indices is not None
    if has_single == has_multi:
      raise ValueError("Exactly one of selectedOptionIndex or selectedOptionIndices must be set.")
    return self


class SubmissionRequest(BaseModel):
  """Batch of answers sent to the scoring endpoint."""

  answers: list[AnswerEntry] = Field(min_length=1)
  model_config = ConfigDict(extra="forbid", frozen=True)

  @model_validator(mode="after")
  def reject_duplicate_questions(self) -> SubmissionRequest:
    seen: set[str] = set()
    for entry in self.answers:
      if entry.question_id in seen:
        raise ValueError(f"Duplicate answer for question {entry.question_id}.")
      seen.add(entry.question_id)
    return self

  def to_wire(self) -> dict[str, Any]:
    return self.model_dump(by_alias=True, exclude_none=True)


class CompleteLessonRequest(BaseModel):
  lesson_id: StrictStr = Field(min_length=1)
  model_config = ConfigDict(extra="forbid", frozen=True, alias_generator=to_camel, populate_by_name=True)

  def to_wire(self) -> dict[str, Any]:
    return self.model_dump(by_alias=True)
