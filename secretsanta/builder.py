"""Turns Telegram messages into application records and builds reply texts."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from secretsanta.apptypes import Chat, ChatType, Person
from secretsanta.telegram_api import (
    CHAT_GROUP,
    CHAT_PRIVATE,
    CHAT_SUPERGROUP,
    Message,
    TelegramChat,
    User,
)

LIST_IS_EMPTY_MESSAGE = "No one person has enroll yet."

ENROLL_SUCCESS_TEMPLATE = "Congratulations!\n{first} {last} is having part in Secret Santa."
DISENROLL_SUCCESS_TEMPLATE = "Sad to see you leaving =(\n{first} {last} is not in game from now."
RECEIVER_TEMPLATE = "Hey! Your target is `{first} {last}{username}`"

MAGIC_TEXT = (
    "Ho-ho-ho!\nLet's the Christmas begin 🎁\n"
    "All of you should receive the private message from me!\n"
    "If not, press @secrethellsantabot and press start or restart. "
    "After that you could press the /my command."
)

START_TEXT = (
    "Ho-ho-ho!\nWelcome guys and Merry Christmas 🎁\n\nTo start game, every "
    "one who wants to participate need to send message /enroll to the chat, also, you need "
    "to allow me to write to you in direct. Press @secrethellsantabot and press start or restart.\n"
    "After that, my inviter should begin the MAGIC (send message /magic)."
)

HELP_TEXT = (
    "/enroll - enroll the game\n"
    "/disenroll - stop your enroll (only before magic starts)\n"
    "/list - list all enrolling people\n"
    "/magic - start the game (only admin)\n"
    "/my - Secret Santa will resend magic info for you (only in private chat with me)\n"
    "/help - show this message\n"
    "/start - register new chat (don't work with private messages)\n"
)

RESTART_CHAT_TEXT = (
    "Ho-ho-ho!\nMagic already happened!\n"
    "If you wanna to make MAGIC again, do the restart command."
)


class BuildError(ValueError):
    """A message lacks the sender or chat needed to build a record."""


class _MemberLookup(Protocol):
    def get_chat_member(self, chat_id: int, user_id: int) -> User: ...


def _username_suffix(user: User) -> str:
    return f" (@{user.username})" if user.username else ""


class MessageBuilder:
    """Builds application records from messages and the bot's reply texts."""

    def __init__(self, api: _MemberLookup) -> None:
        self._api = api

    def build_person(self, message: Message) -> Person:
        """Return the message's sender as an application person."""
        if message.sender is None:
            raise BuildError("user is nil")
        if message.chat is None:
            raise BuildError("chat is nil")
        return Person(telegram_user_id=message.sender.id)

    def build_chat(self, message: Message) -> Chat:
        """Return the message's chat, with the sender as its admin."""
        try:
            person = self.build_person(message)
        except BuildError as exc:
            raise BuildError(f"build person from message: {exc}") from exc
        assert message.chat is not None
        return Chat(
            admin=person,
            telegram_chat_id=message.chat.id,
            chat_type=self.chat_type(message.chat),
        )

    def chat_type(self, chat: TelegramChat) -> ChatType:
        """Map a Telegram chat kind onto the game's chat types."""
        if chat.type in (CHAT_GROUP, CHAT_SUPERGROUP):
            return ChatType.GROUP
        if chat.type == CHAT_PRIVATE:
            return ChatType.PRIVATE
        return ChatType.UNSUPPORTED

    def enroll_success_text(self, user: User) -> str:
        return ENROLL_SUCCESS_TEMPLATE.format(first=user.first_name, last=user.last_name)

    def disenroll_success_text(self, user: User) -> str:
        return DISENROLL_SUCCESS_TEMPLATE.format(first=user.first_name, last=user.last_name)

    def participants_text(self, chat: Chat, participants: Sequence[Person]) -> str:
        """One line per participant with their name and, if set, username."""
        if not participants:
            return LIST_IS_EMPTY_MESSAGE
        lines = []
        for participant in participants:
            user = self._api.get_chat_member(chat.telegram_chat_id, participant.telegram_user_id)
            lines.append(f"{user.first_name} {user.last_name}{_username_suffix(user)}")
        return "\n".join(lines)

    def receiver_text(self, chat: Chat, receiver: Person) -> str:
        """The private message that tells a giver who their receiver is."""
        user = self._api.get_chat_member(chat.telegram_chat_id, receiver.telegram_user_id)
        return RECEIVER_TEMPLATE.format(
            first=user.first_name, last=user.last_name, username=_username_suffix(user)
        )

    def magic_text(self) -> str:
        return MAGIC_TEXT

    def start_text(self) -> str:
        return START_TEXT

    def help_text(self) -> str:
        return HELP_TEXT

    def restart_chat_text(self) -> str:
        return RESTART_CHAT_TEXT