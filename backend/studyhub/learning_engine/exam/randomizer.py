"""Deterministic question selection for exam sessions."""

import random
from typing import Sequence, TypeVar

from studyhub.learning_engine.errors import InsufficientQuestionsError

Q = TypeVar("Q")


def new_seed() -> int:
    """Seed captured on the session so its order can be reproduced."""
    return random.SystemRandom().randint(0, 2**31 - 1)


def select_questions(
    pool: Sequence[Q],
    count: int,
    seed: int,
    allow_truncation: bool = False,
) -> list[Q]:
    """
    Draw ``count`` distinct questions from ``pool`` in a seeded random order.

    The pool is sorted by id first so the same pool and seed always produce the
    same sequence regardless of database row order.

    Raises:
        InsufficientQuestionsError: the pool is smaller than ``count`` and
            truncation is not allowed (or the pool is empty)
    """
    available = len(pool)
    if available == 0 or (available < count and not allow_truncation):
        raise InsufficientQuestionsError(count, available)

    ordered = sorted(pool, key=lambda q: str(q.id))
    rng = random.Random(seed)
    rng.shuffle(ordered)
    return ordered[: min(count, available)]
