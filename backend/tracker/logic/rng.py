"""
Random seat assignment for the opening draw.

Only the outcome matters here: a uniformly random permutation of the four
seats and a uniformly random dealer seat. Production draws use the OS
entropy source; tests inject a seeded random.Random.
"""

import random

from tracker.logic.settings import NUM_PLAYERS

_system_random = random.SystemRandom()


def seat_permutation(rng: random.Random | None = None) -> tuple[int, ...]:
    """Return a uniformly random permutation of the seat indices (Fisher-Yates via shuffle)."""
    order = list(range(NUM_PLAYERS))
    (rng or _system_random).shuffle(order)
    return tuple(order)


def choose_dealer(rng: random.Random | None = None) -> int:
    """Return a uniformly random seat index in [0, 4)."""
    return (rng or _system_random).randrange(NUM_PLAYERS)
