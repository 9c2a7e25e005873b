"""Storage contract for chats, participants and draw results."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TypeVar

from secretsanta.domain import Chat, Magic, MagicVersion, Person

T = TypeVar("T")


class StorageError(Exception):
    """Base class for storage failures."""


class RecordNotFoundError(StorageError):
    """The requested record is absent."""

    def __init__(self, message: str = "not found") -> None:
        super().__init__(message)


class RecordExistsError(StorageError):
    """The record being inserted is already present."""

    def __init__(self, message: str = "already exists") -> None:
        super().__init__(message)


class Tx(ABC):
    """Operations available inside one storage transaction."""

    @abstractmethod
    def lock(self, lock_id: int) -> None:
        """Take a transaction-scoped lock identified by ``lock_id``."""

    @abstractmethod
    def insert_chat(self, chat: Chat) -> None:
        """Store a chat, restoring it if it was deleted.

        Raises RecordExistsError if an active chat with the same id exists.
        """

    @abstractmethod
    def get_chat_by_telegram_id(self, telegram_chat_id: int) -> Chat:
        """Return the active chat with this id or raise RecordNotFoundError."""

    @abstractmethod
    def insert_new_magic_version(self, version: MagicVersion) -> MagicVersion:
        """Open a new round for the version's chat and return it with its id."""

    @abstractmethod
    def get_latest_magic_version(self, chat: Chat) -> MagicVersion:
        """Return the newest active round of a chat or raise RecordNotFoundError."""

    @abstractmethod
    def insert_participant(self, version: MagicVersion, person: Person) -> None:
        """Enrol a person, restoring a withdrawn enrolment.

        Raises RecordExistsError if the person is already enrolled.
        """

    @abstractmethod
    def delete_participant(self, version: MagicVersion, person: Person) -> None:
        """Withdraw a person's enrolment; fails unless exactly one row changes."""

    @abstractmethod
    def list_participants(self, version: MagicVersion) -> list[Person]:
        """Return everyone enrolled in the round."""

    @abstractmethod
    def insert_magic(self, version: MagicVersion, magic: Magic) -> None:
        """Store every pair of a draw."""

    @abstractmethod
    def get_magic(self, version: MagicVersion) -> Magic:
        """Return the round's draw or raise RecordNotFoundError if there is none."""

    @abstractmethod
    def get_magic_recipient(self, version: MagicVersion, giver: Person) -> Person:
        """Return the receiver drawn for ``giver`` or raise RecordNotFoundError."""


class Storage(ABC):
    """Runs operations inside transactions."""

    @abstractmethod
    def do_operation_on_tx(self, operation: Callable[[Tx], T]) -> T:
        """Run ``operation`` in a transaction, committing on success.

        The transaction is rolled back and the exception re-raised on failure.
        """

    def do_locked_operation_on_tx(self, lock_id: int, operation: Callable[[Tx], T]) -> T:
        """Run ``operation`` in a transaction after taking the lock ``lock_id``."""

        def locked(tx: Tx) -> T:
            tx.lock(lock_id)
            return operation(tx)

        return self.do_operation_on_tx(locked)