"""The Secret Santa draw: shuffle the participants and chain them in a ring."""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence

from secretsanta.domain import GiverReceiverPair, Magic, Person

MIN_PARTICIPANTS = 2


class TooFewParticipantsError(ValueError):
    """Raised when a draw is attempted with fewer than two participants."""

    def __init__(self, message: str = "not enough participants") -> None:
        super().__init__(message)


def calculate(participants: Iterable[Person], rng: random.Random | None = None) -> Magic:
    """Shuffle the participants and pair each one with the next, wrapping around.

    The input is not modified. ``rng`` defaults to the module-level generator.
    """
    people = list(participants)
    if len(people) < MIN_PARTICIPANTS:
        raise TooFewParticipantsError()

    (rng or random).shuffle(people)
    return Magic(pairs=tuple(make_pairs(people)))


def make_pairs(participants: Sequence[Person]) -> list[GiverReceiverPair]:
    """Pair every participant with the one after it; the last gives to the first."""
    people = list(participants)
    if not people:
        return []
    receivers = people[1:] + people[:1]
    return [
        GiverReceiverPair(giver=giver, receiver=receiver)
        for giver, receiver in zip(people, receivers)
    ]