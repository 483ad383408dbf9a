"""
SM-2 spaced repetition scheduling.

https://en.wikipedia.org/wiki/SuperMemo#SM-2
"""

import math
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Any


@dataclass
class SM2Result:
    """Next review state for an item."""

    repetitions: int
    easiness: float
    interval: int
    next_review: str
    recalled: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def compute_sm2(
    quality: float,
    repetitions: int | None = None,
    easiness: float | None = None,
    interval: int | None = None,
    today: date | None = None,
) -> SM2Result:
    """Compute the next SM-2 state given a 0-5 quality response.

    Missing previous state is treated as a brand-new item.
    """
    q = max(0, min(5, math.floor(quality + 0.5)))
    reps = repetitions if repetitions is not None else 0
    ef = easiness if easiness is not None else 2.5
    ivl = interval if interval is not None else 0

    ef = max(1.3, ef + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)))

    if q < 3:
        reps = 0
        ivl = 1
    else:
        reps += 1
        if reps == 1:
            ivl = 1
        elif reps == 2:
            ivl = 6
        else:
            ivl = math.floor(ivl * ef + 0.5)

    next_review = (today or date.today()) + timedelta(days=ivl)

    return SM2Result(
        repetitions=reps,
        easiness=round(ef, 2),
        interval=ivl,
        next_review=next_review.isoformat(),
        recalled=q >= 3,
    )
