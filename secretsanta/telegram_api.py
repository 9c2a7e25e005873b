"""A small client for the Telegram Bot API and the records it returns."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import requests

API_HOST = "api.telegram.org"

CHAT_PRIVATE = "private"
CHAT_GROUP = "group"
CHAT_SUPERGROUP = "supergroup"
CHAT_CHANNEL = "channel"

_REQUEST_MARGIN = 10.0


class TelegramError(Exception):
    """A failed Bot API call, carrying the API's description and error code."""

    def __init__(self, message: str, code: int = 0) -> None:
        super().__init__(message if not code else f"telegram: {message} ({code})")
        self.message = message
        self.code = code


@dataclass(frozen=True)
class User:
    """A Telegram user or bot."""

    id: int
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    is_bot: bool = False

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> User:
        return cls(
            id=int(data["id"]),
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            username=data.get("username", ""),
            is_bot=bool(data.get("is_bot", False)),
        )


@dataclass(frozen=True)
class TelegramChat:
    """A Telegram chat as reported by the Bot API."""

    id: int
    type: str = ""
    title: str = ""

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> TelegramChat:
        return cls(
            id=int(data["id"]),
            type=data.get("type", ""),
            title=data.get("title", ""),
        )


@dataclass(frozen=True)
class Message:
    """An incoming or sent message."""

    message_id: int
    chat: TelegramChat | None = None
    sender: User | None = None
    text: str = ""
    new_chat_members: tuple[User, ...] = field(default_factory=tuple)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Message:
        chat = data.get("chat")
        sender = data.get("from")
        return cls(
            message_id=int(data.get("message_id", 0)),
            chat=TelegramChat.from_json(chat) if chat is not None else None,
            sender=User.from_json(sender) if sender is not None else None,
            text=data.get("text", ""),
            new_chat_members=tuple(
                User.from_json(member) for member in data.get("new_chat_members", ())
            ),
        )

    @property
    def command(self) -> str:
        """The bot command the message starts with, without any ``@botname`` suffix."""
        if not self.text.startswith("/"):
            return ""
        word = self.text.split(maxsplit=1)[0]
        return word.split("@", 1)[0]


@dataclass(frozen=True)
class Update:
    """One update delivered by ``getUpdates``."""

    update_id: int
    message: Message | None = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Update:
        message = data.get("message")
        return cls(
            update_id=int(data["update_id"]),
            message=Message.from_json(message) if message is not None else None,
        )


class TelegramApi:
    """Calls Bot API methods over HTTPS."""

    def __init__(
        self,
        token: str,
        session: requests.Session | None = None,
        host: str = API_HOST,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = f"https://{host}/bot{token}"
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout

    def _call(self, method: str, params: Mapping[str, Any] | None = None,
              timeout: float | None = None) -> Any:
        url = f"{self._base_url}/{method}"
        try:
            response = self._session.post(
                url, json=dict(params or {}), timeout=timeout or self._timeout
            )
            payload = response.json()
        except requests.RequestException as exc:
            raise TelegramError(f"{method}: {exc}") from exc
        except ValueError as exc:
            raise TelegramError(f"{method}: invalid response: {exc}") from exc

        if not isinstance(payload, Mapping):
            raise TelegramError(f"{method}: invalid response")
        if not payload.get("ok"):
            raise TelegramError(
                payload.get("description", "unknown error"),
                int(payload.get("error_code", 0)),
            )
        return payload.get("result")

    def get_me(self) -> User:
        """Return the bot's own user."""
        return User.from_json(self._call("getMe"))

    def send_message(self, chat_id: int, text: str) -> Message:
        """Send ``text`` to a chat or, given a user id, to a private chat."""
        return Message.from_json(self._call("sendMessage", {"chat_id": chat_id, "text": text}))

    def get_chat_member(self, chat_id: int, user_id: int) -> User:
        """Return the user behind a member of a chat."""
        result = self._call("getChatMember", {"chat_id": chat_id, "user_id": user_id})
        return User.from_json(result["user"])

    def get_updates(self, offset: int | None = None, timeout: int = 0) -> list[Update]:
        """Long-poll for updates newer than ``offset``."""
        params: dict[str, Any] = {"timeout": timeout}
        if offset is not None:
            params["offset"] = offset
        result = self._call("getUpdates", params, timeout=timeout + _REQUEST_MARGIN)
        return [Update.from_json(item) for item in result or ()]