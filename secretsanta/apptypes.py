"""Application-level records and their conversion to and from the domain."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import IntEnum

from secretsanta import domain


class ChatType(IntEnum):
    """Kind of Telegram chat as far as the game is concerned."""

    UNSUPPORTED = 0
    GROUP = 1
    PRIVATE = 2


@dataclass(frozen=True)
class Person:
    """A Telegram user."""

    telegram_user_id: int

    def to_domain(self) -> domain.Person:
        return domain.Person(telegram_user_id=self.telegram_user_id)


@dataclass(frozen=True)
class Chat:
    """A chat as seen by the application layer."""

    admin: Person
    telegram_chat_id: int
    chat_type: ChatType = ChatType.UNSUPPORTED
    participants: tuple[Person, ...] = field(default_factory=tuple)

    def is_not_a_group(self) -> bool:
        return self.chat_type != ChatType.GROUP

    def is_private(self) -> bool:
        return self.chat_type == ChatType.PRIVATE

    def is_unsupported(self) -> bool:
        return self.chat_type == ChatType.UNSUPPORTED

    def to_domain(self) -> domain.Chat:
        return domain.Chat(admin=self.admin.to_domain(), telegram_chat_id=self.telegram_chat_id)


@dataclass(frozen=True)
class GiverReceiverPair:
    """One giver and the receiver drawn for them."""

    giver: Person
    receiver: Person


@dataclass(frozen=True)
class Magic:
    """The full result of a draw."""

    pairs: tuple[GiverReceiverPair, ...] = field(default_factory=tuple)


def person_from_domain(person: domain.Person) -> Person:
    return Person(telegram_user_id=person.telegram_user_id)


def persons_from_domain(persons: Iterable[domain.Person]) -> list[Person]:
    return [person_from_domain(p) for p in persons]


def pair_from_domain(pair: domain.GiverReceiverPair) -> GiverReceiverPair:
    return GiverReceiverPair(
        giver=person_from_domain(pair.giver),
        receiver=person_from_domain(pair.receiver),
    )


def pairs_from_domain(pairs: Iterable[domain.GiverReceiverPair]) -> list[GiverReceiverPair]:
    return [pair_from_domain(p) for p in pairs]


def magic_from_domain(magic: domain.Magic) -> Magic:
    return Magic(pairs=tuple(pairs_from_domain(magic.pairs)))