import random

import pytest

from secretsanta.apptypes import Chat, ChatType, Person
from secretsanta.commands import (
    DisEnrollHandler,
    EnrollHandler,
    MagicHandler,
    RegisterMagicVersionHandler,
    RegisterNewChatAndVersionHandler,
)
from secretsanta.errors import (
    AlreadyExistsError,
    ChatIsPrivateError,
    ChatTypeUnsupportedError,
    ForbiddenError,
    NotEnoughParticipantsError,
    ServiceIsNoneError,
)
from secretsanta.sqlite_storage import SqliteStorage
from secretsanta.storage import RecordNotFoundError, StorageError

ADMIN = Person(telegram_user_id=10)
CHAT_ID = -500


def group_chat(chat_type=ChatType.GROUP, admin=ADMIN):
    return Chat(admin=admin, telegram_chat_id=CHAT_ID, chat_type=chat_type)


@pytest.fixture
def storage():
    with SqliteStorage() as store:
        yield store


@pytest.fixture
def registered(storage):
    RegisterNewChatAndVersionHandler(storage).handle(group_chat())
    return storage


def participants(storage):
    def op(tx):
        version = tx.get_latest_magic_version(group_chat().to_domain())
        return tx.list_participants(version)

    return [p.telegram_user_id for p in storage.do_operation_on_tx(op)]


def stored_magic(storage):
    def op(tx):
        version = tx.get_latest_magic_version(group_chat().to_domain())
        return tx.get_magic(version)

    return storage.do_operation_on_tx(op)


@pytest.mark.parametrize(
    "handler_cls",
    [
        RegisterNewChatAndVersionHandler,
        RegisterMagicVersionHandler,
        EnrollHandler,
        DisEnrollHandler,
        MagicHandler,
    ],
)
def test_handler_requires_service(handler_cls):
    with pytest.raises(ServiceIsNoneError):
        handler_cls(None)


def test_register_new_chat_rejects_private(storage):
    with pytest.raises(ChatIsPrivateError):
        RegisterNewChatAndVersionHandler(storage).handle(group_chat(ChatType.PRIVATE))


def test_register_new_chat_rejects_unsupported(storage):
    with pytest.raises(ChatTypeUnsupportedError):
        RegisterNewChatAndVersionHandler(storage).handle(group_chat(ChatType.UNSUPPORTED))


def test_register_new_chat_creates_chat_and_round(registered):
    def op(tx):
        chat = tx.get_chat_by_telegram_id(CHAT_ID)
        return chat, tx.get_latest_magic_version(chat)

    chat, version = registered.do_operation_on_tx(op)
    assert chat.admin.telegram_user_id == ADMIN.telegram_user_id
    assert version.chat == chat
    assert version.id > 0


def test_register_new_chat_twice_already_exists(registered):
    with pytest.raises(AlreadyExistsError):
        RegisterNewChatAndVersionHandler(registered).handle(group_chat())


def test_register_magic_version_opens_new_round(registered):
    def latest(tx):
        return tx.get_latest_magic_version(group_chat().to_domain()).id

    first = registered.do_operation_on_tx(latest)
    RegisterMagicVersionHandler(registered).handle(group_chat())
    second = registered.do_operation_on_tx(latest)
    assert second > first


def test_register_magic_version_rejects_private(storage):
    with pytest.raises(ChatTypeUnsupportedError):
        RegisterMagicVersionHandler(storage).handle(group_chat(ChatType.PRIVATE))


def test_new_round_has_no_participants(registered):
    EnrollHandler(registered).handle(group_chat(), Person(1))
    RegisterMagicVersionHandler(registered).handle(group_chat())
    assert participants(registered) == []


def test_enroll_adds_participants_in_order(registered):
    handler = EnrollHandler(registered)
    for user_id in (3, 1, 2):
        handler.handle(group_chat(), Person(user_id))
    assert participants(registered) == [3, 1, 2]


def test_enroll_twice_already_exists(registered):
    handler = EnrollHandler(registered)
    handler.handle(group_chat(), Person(1))
    with pytest.raises(AlreadyExistsError):
        handler.handle(group_chat(), Person(1))
    assert participants(registered) == [1]


def test_enroll_unknown_chat(storage):
    with pytest.raises(RecordNotFoundError):
        EnrollHandler(storage).handle(group_chat(), Person(1))


def test_enroll_rejects_private(registered):
    with pytest.raises(ChatTypeUnsupportedError):
        EnrollHandler(registered).handle(group_chat(ChatType.PRIVATE), Person(1))


def test_disenroll_removes_participant(registered):
    EnrollHandler(registered).handle(group_chat(), Person(1))
    EnrollHandler(registered).handle(group_chat(), Person(2))
    DisEnrollHandler(registered).handle(group_chat(), Person(1))
    assert participants(registered) == [2]


def test_reenroll_after_disenroll(registered):
    EnrollHandler(registered).handle(group_chat(), Person(1))
    DisEnrollHandler(registered).handle(group_chat(), Person(1))
    EnrollHandler(registered).handle(group_chat(), Person(1))
    assert participants(registered) == [1]


def test_disenroll_not_enrolled_fails(registered):
    with pytest.raises(StorageError):
        DisEnrollHandler(registered).handle(group_chat(), Person(7))


def test_disenroll_rejects_unsupported(registered):
    with pytest.raises(ChatTypeUnsupportedError):
        DisEnrollHandler(registered).handle(group_chat(ChatType.UNSUPPORTED), Person(1))


def test_magic_forbidden_for_non_admin(registered):
    with pytest.raises(ForbiddenError):
        MagicHandler(registered).handle(group_chat(), Person(99))


def test_magic_rejects_private(registered):
    with pytest.raises(ChatTypeUnsupportedError):
        MagicHandler(registered).handle(group_chat(ChatType.PRIVATE), ADMIN)


def test_magic_needs_two_participants(registered):
    EnrollHandler(registered).handle(group_chat(), Person(1))
    with pytest.raises(NotEnoughParticipantsError):
        MagicHandler(registered).handle(group_chat(), ADMIN)
    with pytest.raises(RecordNotFoundError):
        stored_magic(registered)


def test_magic_stores_a_ring(registered):
    ids = [1, 2, 3, 4, 5]
    for user_id in ids:
        EnrollHandler(registered).handle(group_chat(), Person(user_id))

    MagicHandler(registered, rng=random.Random(3)).handle(group_chat(), ADMIN)

    magic = stored_magic(registered)
    givers = [p.giver.telegram_user_id for p in magic.pairs]
    receivers = [p.receiver.telegram_user_id for p in magic.pairs]
    assert sorted(givers) == ids
    assert sorted(receivers) == ids
    assert all(p.giver != p.receiver for p in magic.pairs)


def test_magic_twice_already_exists(registered):
    for user_id in (1, 2):
        EnrollHandler(registered).handle(group_chat(), Person(user_id))
    handler = MagicHandler(registered)
    handler.handle(group_chat(), ADMIN)
    first = stored_magic(registered)
    with pytest.raises(AlreadyExistsError):
        handler.handle(group_chat(), ADMIN)
    assert stored_magic(registered) == first