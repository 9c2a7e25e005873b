"""The Telegram front end: routes bot commands to the application."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from secretsanta.application import Application
from secretsanta.builder import BuildError, MessageBuilder
from secretsanta.errors import AlreadyExistsError, NotFoundError
from secretsanta.telegram_api import Message, TelegramError, Update, User

ENROLL_COMMAND = "/enroll"
DISENROLL_COMMAND = "/disenroll"
LIST_COMMAND = "/list"
MAGIC_COMMAND = "/magic"
MY_COMMAND = "/my"
HELP_COMMAND = "/help"
START_COMMAND = "/start"

FORBIDDEN_MESSAGE = "Forbidden: bot was blocked by the user"
START_IN_PRIVATE_TEXT = "Please start me in private!"


class _Api(Protocol):
    def get_me(self) -> User: ...

    def send_message(self, chat_id: int, text: str) -> Message: ...

    def get_chat_member(self, chat_id: int, user_id: int) -> User: ...

    def get_updates(self, offset: int | None = None, timeout: int = 0) -> list[Update]: ...


class _Logger(Protocol):
    def error(self, msg: str, *args: Any) -> None: ...


def is_forbidden(error: BaseException) -> bool:
    """Whether the first Telegram error in the cause chain says the bot was blocked."""
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, TelegramError):
            return current.message == FORBIDDEN_MESSAGE
        seen.add(id(current))
        current = current.__cause__
    return False


class SantaBot:
    """Answers the game's commands in Telegram chats."""

    def __init__(
        self,
        api: _Api,
        application: Application,
        logger: _Logger,
        poll_timeout: int = 10,
        retry_delay: float = 1.0,
    ) -> None:
        self._api = api
        self._application = application
        self._logger = logger
        self._builder = MessageBuilder(api)
        self._poll_timeout = poll_timeout
        self._retry_delay = retry_delay
        self.me = api.get_me()
        self._routes: dict[str, Callable[[Message], None]] = {
            ENROLL_COMMAND: self.enroll,
            DISENROLL_COMMAND: self.disenroll,
            LIST_COMMAND: self.list_participants,
            MAGIC_COMMAND: self.magic,
            MY_COMMAND: self.my,
            HELP_COMMAND: self.help,
            START_COMMAND: self.start,
        }

    def run(self, stop_event: threading.Event) -> None:
        """Poll for updates and handle them until ``stop_event`` is set."""
        offset: int | None = None
        while not stop_event.is_set():
            try:
                updates = self._api.get_updates(offset, self._poll_timeout)
            except TelegramError as exc:
                self._logger.error("failed get updates", "error", str(exc))
                stop_event.wait(self._retry_delay)
                continue
            for update in updates:
                offset = update.update_id + 1
                self.dispatch(update)

    def dispatch(self, update: Update) -> None:
        """Route one update to its handler, logging any failure."""
        message = update.message
        if message is None:
            return
        if self.is_me_a_new_member(message.new_chat_members):
            handler: Callable[[Message], None] | None = self.start
        else:
            handler = self._routes.get(message.command)
        if handler is None:
            return
        try:
            handler(message)
        except Exception as exc:  # noqa: BLE001 - every handler failure is logged
            self._logger.error(
                "failed handle handler",
                "message", message.text,
                "chat", message.chat,
                "sender", message.sender,
                "error", str(exc),
            )

    def _reply(self, message: Message, text: str) -> None:
        if message.chat is None:
            raise BuildError("chat is nil")
        self._api.send_message(message.chat.id, text)

    def enroll(self, message: Message) -> None:
        person = self._builder.build_person(message)
        chat = self._builder.build_chat(message)
        try:
            self._application.commands.enroll.handle(chat, person)
        except AlreadyExistsError:
            return
        assert message.sender is not None
        self._reply(message, self._builder.enroll_success_text(message.sender))

    def disenroll(self, message: Message) -> None:
        person = self._builder.build_person(message)
        chat = self._builder.build_chat(message)
        try:
            self._application.commands.disenroll.handle(chat, person)
        except AlreadyExistsError:
            return
        assert message.sender is not None
        self._reply(message, self._builder.disenroll_success_text(message.sender))

    def list_participants(self, message: Message) -> None:
        chat = self._builder.build_chat(message)
        participants = self._application.queries.list_participants.handle(chat)
        self._reply(message, self._builder.participants_text(chat, participants))

    def magic(self, message: Message) -> None:
        person = self._builder.build_person(message)
        chat = self._builder.build_chat(message)
        try:
            self._application.commands.magic.handle(chat, person)
        except AlreadyExistsError:
            self._reply(message, self._builder.restart_chat_text())
            return

        result = self._application.queries.get_magic.handle(chat, person)
        for pair in result.pairs:
            text = self._builder.receiver_text(chat, pair.receiver)
            self._api.send_message(pair.giver.telegram_user_id, text)

        self._reply(message, self._builder.magic_text())

    def my(self, message: Message) -> None:
        giver = self._builder.build_person(message)
        chat = self._builder.build_chat(message)
        try:
            receiver = self._application.queries.get_my_receiver.handle(chat, giver)
        except NotFoundError:
            return

        text = self._builder.receiver_text(chat, receiver)
        try:
            self._api.send_message(giver.telegram_user_id, text)
        except TelegramError as exc:
            if is_forbidden(exc):
                self._reply(message, START_IN_PRIVATE_TEXT)
            raise

    def help(self, message: Message) -> None:
        self._reply(message, self._builder.help_text())

    def start(self, message: Message) -> None:
        chat = self._builder.build_chat(message)
        try:
            self._application.commands.register_new_chat_and_version.handle(chat)
        except AlreadyExistsError:
            return
        self._reply(message, self._builder.start_text())

    def is_me_a_new_member(self, users: Iterable[User]) -> bool:
        """Whether the bot itself is among the users who joined."""
        return any(user.id == self.me.id for user in users)