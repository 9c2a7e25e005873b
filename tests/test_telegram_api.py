import pytest
import requests

from secretsanta.telegram_api import (
    CHAT_GROUP,
    Message,
    TelegramApi,
    TelegramChat,
    TelegramError,
    Update,
    User,
)


class _Response:
    def __init__(self, payload):
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _Session:
    def __init__(self, *payloads):
        self.payloads = list(payloads)
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append((url, json, timeout))
        payload = self.payloads.pop(0)
        if isinstance(payload, requests.RequestException):
            raise payload
        return _Response(payload)


def test_get_me_parses_user_and_calls_method():
    session = _Session({"ok": True, "result": {"id": 42, "is_bot": True, "first_name": "Santa"}})
    api = TelegramApi("token", session=session)

    me = api.get_me()

    assert me == User(id=42, first_name="Santa", is_bot=True)
    url, params, _ = session.calls[0]
    assert url.endswith("/bottoken/getMe")
    assert params == {}


def test_send_message_passes_chat_and_text():
    session = _Session(
        {"ok": True, "result": {"message_id": 7, "chat": {"id": -5, "type": "group"}, "text": "hi"}}
    )
    api = TelegramApi("token", session=session)

    message = api.send_message(-5, "hi")

    assert session.calls[0][1] == {"chat_id": -5, "text": "hi"}
    assert message.message_id == 7
    assert message.chat == TelegramChat(id=-5, type=CHAT_GROUP)


def test_get_chat_member_returns_user():
    session = _Session(
        {
            "ok": True,
            "result": {
                "status": "member",
                "user": {"id": 3, "first_name": "Ann", "last_name": "Lee", "username": "ann"},
            },
        }
    )
    api = TelegramApi("token", session=session)

    user = api.get_chat_member(-1, 3)

    assert user == User(id=3, first_name="Ann", last_name="Lee", username="ann")
    assert session.calls[0][1] == {"chat_id": -1, "user_id": 3}


def test_api_error_carries_description_and_code():
    description = "Forbidden: bot was blocked by the user"
    session = _Session({"ok": False, "error_code": 403, "description": description})
    api = TelegramApi("token", session=session)

    with pytest.raises(TelegramError) as info:
        api.send_message(1, "hello")

    assert info.value.message == description
    assert info.value.code == 403


def test_network_failure_becomes_telegram_error():
    session = _Session(requests.ConnectionError("down"))
    api = TelegramApi("token", session=session)

    with pytest.raises(TelegramError):
        api.get_me()


def test_invalid_json_becomes_telegram_error():
    session = _Session(ValueError("not json"))
    api = TelegramApi("token", session=session)

    with pytest.raises(TelegramError):
        api.get_me()


def test_get_updates_sends_offset_and_parses_updates():
    session = _Session(
        {
            "ok": True,
            "result": [
                {
                    "update_id": 10,
                    "message": {
                        "message_id": 1,
                        "from": {"id": 9, "first_name": "Bob"},
                        "chat": {"id": -3, "type": "supergroup"},
                        "text": "/enroll",
                    },
                },
                {"update_id": 11},
            ],
        }
    )
    api = TelegramApi("token", session=session)

    updates = api.get_updates(offset=10, timeout=5)

    _, params, request_timeout = session.calls[0]
    assert params == {"offset": 10, "timeout": 5}
    assert request_timeout > 5
    assert [u.update_id for u in updates] == [10, 11]
    assert updates[0].message.sender.id == 9
    assert updates[1].message is None


def test_update_from_json_reads_new_members():
    update = Update.from_json(
        {
            "update_id": 1,
            "message": {
                "message_id": 2,
                "chat": {"id": -8, "type": "group"},
                "new_chat_members": [{"id": 100, "is_bot": True}, {"id": 101}],
            },
        }
    )

    assert [u.id for u in update.message.new_chat_members] == [100, 101]
    assert update.message.sender is None


@pytest.mark.parametrize(
    ("text", "command"),
    [("/my", "/my"), ("/magic@somebot now", "/magic"), ("hello", ""), ("", "")],
)
def test_message_command(text, command):
    assert Message(message_id=1, text=text).command == command