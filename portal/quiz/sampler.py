import random
from typing import Sequence, TypeVar

T = TypeVar("T")


def sample_questions(questions: Sequence[T], count: int, rng: random.Random | None = None) -> list[T]:
    """Return `count` distinct questions in random order (all of them if fewer exist).

    Every question gets an independent key in [0, 1); the set is sorted by key and
    cut to `count`. Calling again reshuffles, so a retake may change both the
    order and, when `count` < len(questions), which questions were left out.
    """
    rng = rng or random
    keyed = [(rng.random(), idx, q) for idx, q in enumerate(questions)]
    keyed.sort(key=lambda entry: (entry[0], entry[1]))
    return [q for _, _, q in keyed[:max(count, 0)]]
