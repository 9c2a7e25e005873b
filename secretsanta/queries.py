"""Application queries that read the state of a chat's game."""

from __future__ import annotations

from secretsanta.apptypes import (
    Chat,
    Magic,
    Person,
    magic_from_domain,
    person_from_domain,
    persons_from_domain,
)
from secretsanta.errors import (
    ChatTypeUnsupportedError,
    ForbiddenError,
    NotFoundError,
    ServiceIsNoneError,
)
from secretsanta.storage import RecordNotFoundError, Storage, Tx


class _Handler:
    def __init__(self, service: Storage | None) -> None:
        if service is None:
            raise ServiceIsNoneError()
        self._service = service


class GetMagicHandler(_Handler):
    """Returns the draw of the latest round; only the chat admin may ask."""

    def handle(self, chat: Chat, caller: Person) -> Magic:
        if chat.is_not_a_group():
            raise ChatTypeUnsupportedError()
        if chat.admin.telegram_user_id != caller.telegram_user_id:
            raise ForbiddenError()

        domain_chat = chat.to_domain()

        def operation(tx: Tx) -> Magic:
            version = tx.get_latest_magic_version(domain_chat)
            try:
                domain_magic = tx.get_magic(version)
            except RecordNotFoundError as exc:
                raise NotFoundError() from exc
            return magic_from_domain(domain_magic)

        return self._service.do_locked_operation_on_tx(chat.admin.telegram_user_id, operation)


class GetMyReceiverHandler(_Handler):
    """Returns the receiver drawn for a giver in the latest round."""

    def handle(self, chat: Chat, giver: Person) -> Person:
        if chat.is_not_a_group():
            raise ChatTypeUnsupportedError()

        domain_chat = chat.to_domain()
        domain_giver = giver.to_domain()

        def operation(tx: Tx) -> Person:
            version = tx.get_latest_magic_version(domain_chat)
            try:
                receiver = tx.get_magic_recipient(version, domain_giver)
            except RecordNotFoundError as exc:
                raise NotFoundError() from exc
            return person_from_domain(receiver)

        return self._service.do_locked_operation_on_tx(chat.admin.telegram_user_id, operation)


class ListParticipantsHandler(_Handler):
    """Lists everyone enrolled in the latest round of a chat."""

    def handle(self, chat: Chat) -> list[Person]:
        if chat.is_not_a_group():
            raise ChatTypeUnsupportedError()

        domain_chat = chat.to_domain()

        def operation(tx: Tx) -> list[Person]:
            version = tx.get_latest_magic_version(domain_chat)
            return persons_from_domain(tx.list_participants(version))

        return self._service.do_operation_on_tx(operation)