"""Reconstructible shuffles for quiz questions and answer options."""

from __future__ import annotations

import random
import secrets
from collections.abc import Iterable

from quizgate.schema.quiz import QuizQuestion

QUESTION_SCOPE = "questions"


def fisher_yates(n: int, rng: random.Random) -> list[int]:
  """Return a uniformly random permutation of range(n).

  Walks from the last index down to 1, swapping each slot with a uniformly chosen
  index at or before it, so each of the n! orderings is equally likely.
  """
  if n < 0:
    raise ValueError("Permutation length must be non-negative.")
  indices = list(range(n))
  for i in range(n - 1, 0, -1):
    j = rng.randrange(i + 1)
    indices[i], indices[j] = indices[j], indices[i]
  return indices


def identity(n: int) -> list[int]:
  if n < 0:
    raise ValueError("Permutation length must be non-negative.")
  return list(range(n))


def is_permutation(order: Iterable[int], n: int) -> bool:
  """Return whether `order` is a bijection on range(n)."""
  values = list(order)
  return len(values) == n and set(values) == set(range(n))


def canonical_question_order(questions: Iterable[QuizQuestion]) -> list[QuizQuestion]:
  """Sort questions by their order key; ties keep input order."""
  return sorted(questions, key=lambda question: question.order)


class PermutationGenerator:
  """Derives display orderings from a session seed and a shuffle generation.

  Every ordering comes from its own RNG keyed by (seed, generation, scope), so the
  same pair always rebuilds the same display while each retry (a new generation)
  draws an independent one.
  """

  def __init__(self, seed: int | None = None) -> None:
    self._seed = seed if seed is not None else secrets.randbits(64)

  @property
  def seed(self) -> int:
    return self._seed

  def _rng(self, generation: int, scope: str) -> random.Random:
    return random.Random(f"{self._seed}:{generation}:{scope}")

  def question_order(self, count: int, generation: int, *, randomize: bool) -> tuple[int, ...]:
    if not randomize:
      return tuple(identity(count))
    return tuple(fisher_yates(count, self._rng(generation, QUESTION_SCOPE)))

  def option_order(self, question: QuizQuestion, generation: int, *, randomize: bool) -> tuple[int, ...]:
    count = len(question.options)
    if not randomize:
      return tuple(identity(count))
    return tuple(fisher_yates(count, self._rng(generation, f"options:{question.id}")))
