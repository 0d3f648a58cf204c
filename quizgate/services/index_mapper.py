"""Mapping between display positions and canonical indices."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Generic, TypeVar

from quizgate.services.permutation import is_permutation

T = TypeVar("T")


class DisplayMapping(Generic[T]):
  """Wraps a permutation whose entry at display position i is a canonical index.

  Selection state, payloads and correctness marking work on canonical indices;
  only rendering should walk the display order.
  """

  def __init__(self, permutation: Sequence[int], items: Sequence[T]) -> None:
    if not is_permutation(permutation, len(items)):
      raise ValueError(f"Permutation {list(permutation)} is not a bijection on {len(items)} items.")
    self._order = tuple(permutation)
    self._items = tuple(items)
    self._position = {canonical: display for display, canonical in enumerate(self._order)}

  def __len__(self) -> int:
    return len(self._order)

  @property
  def order(self) -> tuple[int, ...]:
    return self._order

  def display(self, display_index: int) -> T:
    """Return the canonical item rendered at `display_index`."""
    return self._items[self.to_canonical(display_index)]

  def to_canonical(self, display_index: int) -> int:
    if not 0 <= display_index < len(self._order):
      raise IndexError(f"Display index {display_index} out of range.")
    return self._order[display_index]

  def to_display(self, canonical_index: int) -> int:
    try:
      return self._position[canonical_index]
    except KeyError:
      raise IndexError(f"Canonical index {canonical_index} out of range.") from None

  def display_items(self) -> list[tuple[T, int]]:
    """Return (item, canonical index) pairs in display order."""
    return [(self._items[canonical], canonical) for canonical in self._order]
