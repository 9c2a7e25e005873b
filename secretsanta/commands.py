"""Application commands that change the state of a chat's game."""

from __future__ import annotations

import random

from secretsanta import draw
from secretsanta.apptypes import Chat, Person
from secretsanta.domain import Chat as DomainChat
from secretsanta.domain import MagicVersion
from secretsanta.errors import (
    AlreadyExistsError,
    ChatIsPrivateError,
    ChatTypeUnsupportedError,
    ForbiddenError,
    NotEnoughParticipantsError,
    ServiceIsNoneError,
)
from secretsanta.storage import RecordExistsError, RecordNotFoundError, Storage, Tx


class _Handler:
    def __init__(self, service: Storage | None) -> None:
        if service is None:
            raise ServiceIsNoneError()
        self._service = service


def _require_group(chat: Chat) -> None:
    if chat.is_not_a_group():
        raise ChatTypeUnsupportedError()


class RegisterNewChatAndVersionHandler(_Handler):
    """Registers a group chat and opens its first round."""

    def handle(self, chat: Chat) -> None:
        if chat.is_private():
            raise ChatIsPrivateError()
        _require_group(chat)

        chat_to_save = chat.to_domain()

        def operation(tx: Tx) -> None:
            try:
                tx.insert_chat(chat_to_save)
            except RecordExistsError as exc:
                raise AlreadyExistsError() from exc
            tx.insert_new_magic_version(MagicVersion(chat=chat_to_save))

        self._service.do_operation_on_tx(operation)


class RegisterMagicVersionHandler(_Handler):
    """Opens a new round for an already registered group chat."""

    def handle(self, chat: Chat) -> None:
        _require_group(chat)

        version = MagicVersion(chat=chat.to_domain())
        self._service.do_operation_on_tx(lambda tx: tx.insert_new_magic_version(version))


class EnrollHandler(_Handler):
    """Enrols a person in the latest round of a chat."""

    def handle(self, chat: Chat, participant: Person) -> None:
        _require_group(chat)

        person = participant.to_domain()

        def operation(tx: Tx) -> None:
            chat_to_participate = tx.get_chat_by_telegram_id(chat.telegram_chat_id)
            version = tx.get_latest_magic_version(chat_to_participate)
            try:
                tx.insert_participant(version, person)
            except RecordExistsError as exc:
                raise AlreadyExistsError() from exc

        self._service.do_operation_on_tx(operation)


class DisEnrollHandler(_Handler):
    """Withdraws a person from the latest round of a chat."""

    def handle(self, chat: Chat, participant: Person) -> None:
        _require_group(chat)

        domain_chat = chat.to_domain()
        person = participant.to_domain()

        def operation(tx: Tx) -> None:
            version = tx.get_latest_magic_version(domain_chat)
            tx.delete_participant(version, person)

        self._service.do_operation_on_tx(operation)


class MagicHandler(_Handler):
    """Draws the pairs for the latest round; only the chat admin may do it."""

    def __init__(self, service: Storage | None, rng: random.Random | None = None) -> None:
        super().__init__(service)
        self._rng = rng

    def handle(self, chat: Chat, caller: Person) -> None:
        _require_group(chat)
        if chat.admin.telegram_user_id != caller.telegram_user_id:
            raise ForbiddenError()

        domain_chat = chat.to_domain()
        self._service.do_locked_operation_on_tx(
            chat.admin.telegram_user_id,
            lambda tx: self._calculate_and_insert(tx, domain_chat),
        )

    def _calculate_and_insert(self, tx: Tx, domain_chat: DomainChat) -> None:
        version = tx.get_latest_magic_version(domain_chat)

        try:
            tx.get_magic(version)
        except RecordNotFoundError:
            pass
        else:
            raise AlreadyExistsError()

        participants = tx.list_participants(version)
        try:
            magic = draw.calculate(participants, self._rng)
        except draw.TooFewParticipantsError as exc:
            raise NotEnoughParticipantsError() from exc

        tx.insert_magic(version, magic)