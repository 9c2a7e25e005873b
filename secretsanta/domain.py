"""Core domain records: chats, people and the draw results."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Person:
    """A Telegram user taking part in a chat."""

    telegram_user_id: int


@dataclass(frozen=True)
class Chat:
    """A Telegram group chat with the admin who registered it."""

    admin: Person
    telegram_chat_id: int


@dataclass(frozen=True)
class GiverReceiverPair:
    """One assignment: ``giver`` prepares a present for ``receiver``."""

    giver: Person
    receiver: Person


@dataclass(frozen=True)
class Magic:
    """The full result of a draw."""

    pairs: tuple[GiverReceiverPair, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MagicVersion:
    """One round of the game within a chat."""

    chat: Chat
    id: int = 0