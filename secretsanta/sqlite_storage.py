"""SQLite-backed storage for chats, rounds, participants and draw results."""

from __future__ import annotations

import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from os import PathLike
from typing import Any, TypeVar

from secretsanta.domain import Chat, GiverReceiverPair, Magic, MagicVersion, Person
from secretsanta.storage import (
    RecordExistsError,
    RecordNotFoundError,
    Storage,
    StorageError,
    Tx,
)

T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS chats (
    id INTEGER PRIMARY KEY,
    admin_user_id INTEGER NOT NULL,
    deleted INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS magic_chat_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    chat_id INTEGER NOT NULL,
    deleted INTEGER NOT NULL DEFAULT 0
);
CREATE TABLE IF NOT EXISTS magic_participants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    magic_chat_history_id INTEGER NOT NULL,
    participant_user_id INTEGER NOT NULL,
    deleted INTEGER NOT NULL DEFAULT 0,
    UNIQUE (magic_chat_history_id, participant_user_id)
);
CREATE TABLE IF NOT EXISTS magic_results (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    magic_chat_history_id INTEGER NOT NULL,
    participant_giver_id INTEGER,
    participant_receiver_id INTEGER,
    deleted INTEGER NOT NULL DEFAULT 0
);
"""

_INSERT_CHAT = "INSERT OR IGNORE INTO chats (id, admin_user_id, deleted) VALUES (?, ?, 0)"
_RESTORE_CHAT = "UPDATE chats SET deleted = 0 WHERE id = ?"
_SELECT_DELETED_CHAT = "SELECT admin_user_id, deleted FROM chats WHERE id = ?"
_SELECT_CHAT_BY_ID = "SELECT admin_user_id FROM chats WHERE id = ? AND deleted = 0"

_INSERT_MAGIC_VERSION = "INSERT INTO magic_chat_history (chat_id, deleted) VALUES (?, 0)"
_SELECT_LATEST_MAGIC_VERSION = (
    "SELECT id FROM magic_chat_history WHERE chat_id = ? AND deleted = 0 "
    "ORDER BY id DESC LIMIT 1"
)

_SELECT_ENROLLED_PARTICIPANTS = (
    "SELECT participant_user_id FROM magic_participants "
    "WHERE magic_chat_history_id = ? AND deleted = 0 ORDER BY id"
)
_INSERT_PARTICIPANT = (
    "INSERT OR IGNORE INTO magic_participants "
    "(magic_chat_history_id, participant_user_id, deleted) VALUES (?, ?, 0)"
)
_RESTORE_PARTICIPANT = "UPDATE magic_participants SET deleted = 0 WHERE id = ?"
_SELECT_DELETED_PARTICIPANT = (
    "SELECT id, deleted FROM magic_participants "
    "WHERE magic_chat_history_id = ? AND participant_user_id = ?"
)
_DELETE_PARTICIPANT = (
    "UPDATE magic_participants SET deleted = 1 "
    "WHERE magic_chat_history_id = ? AND participant_user_id = ?"
)

_INSERT_MAGIC_PAIR = """
INSERT INTO magic_results
(magic_chat_history_id, participant_giver_id, participant_receiver_id, deleted)
SELECT :version,
(SELECT id FROM magic_participants
 WHERE participant_user_id = :giver AND magic_chat_history_id = :version AND deleted = 0),
(SELECT id FROM magic_participants
 WHERE participant_user_id = :receiver AND magic_chat_history_id = :version AND deleted = 0),
0
"""

_MAGIC_PAIRS_BASE = """
WITH filtered_magic AS (
    SELECT id, participant_giver_id, participant_receiver_id FROM magic_results
    WHERE magic_chat_history_id = :version AND deleted = 0
),
filtered_participants AS (
    SELECT id, participant_user_id FROM magic_participants
    WHERE magic_chat_history_id = :version AND deleted = 0
)
"""

_SELECT_MAGIC_PAIRS = _MAGIC_PAIRS_BASE + """
SELECT giver.participant_user_id, receiver.participant_user_id
FROM filtered_magic m
LEFT JOIN filtered_participants giver ON giver.id = m.participant_giver_id
LEFT JOIN filtered_participants receiver ON receiver.id = m.participant_receiver_id
ORDER BY m.id
"""

_SELECT_MAGIC_PAIR_BY_GIVER = _MAGIC_PAIRS_BASE + """
SELECT receiver.participant_user_id
FROM filtered_magic m
LEFT JOIN filtered_participants giver ON giver.id = m.participant_giver_id
LEFT JOIN filtered_participants receiver ON receiver.id = m.participant_receiver_id
WHERE giver.participant_user_id = :giver
"""


class SqliteTx(Tx):
    """Operations run on one open SQLite transaction."""

    def __init__(self, connection: sqlite3.Connection, storage: SqliteStorage) -> None:
        self._connection = connection
        self._storage = storage
        self._held_locks: list[threading.RLock] = []

    def _execute(self, what: str, query: str, params: Any = ()) -> sqlite3.Cursor:
        try:
            return self._connection.execute(query, params)
        except sqlite3.Error as exc:
            raise StorageError(f"{what}: {exc}") from exc

    def _release_locks(self) -> None:
        while self._held_locks:
            self._held_locks.pop().release()

    def lock(self, lock_id: int) -> None:
        lock = self._storage._lock_for(lock_id)
        lock.acquire()
        self._held_locks.append(lock)

    def insert_chat(self, chat: Chat) -> None:
        row = self._execute(
            "query row select chat", _SELECT_DELETED_CHAT, (chat.telegram_chat_id,)
        ).fetchone()
        if row is None:
            self._execute(
                "exec insert chat",
                _INSERT_CHAT,
                (chat.telegram_chat_id, chat.admin.telegram_user_id),
            )
            return
        _, deleted = row
        if not deleted:
            raise RecordExistsError()
        self._execute("exec restore chat", _RESTORE_CHAT, (chat.telegram_chat_id,))

    def get_chat_by_telegram_id(self, telegram_chat_id: int) -> Chat:
        row = self._execute(
            "query row select chat", _SELECT_CHAT_BY_ID, (telegram_chat_id,)
        ).fetchone()
        if row is None:
            raise RecordNotFoundError()
        return Chat(admin=Person(telegram_user_id=row[0]), telegram_chat_id=telegram_chat_id)

    def insert_new_magic_version(self, version: MagicVersion) -> MagicVersion:
        cursor = self._execute(
            "exec insert magic version",
            _INSERT_MAGIC_VERSION,
            (version.chat.telegram_chat_id,),
        )
        return MagicVersion(chat=version.chat, id=cursor.lastrowid or 0)

    def get_latest_magic_version(self, chat: Chat) -> MagicVersion:
        row = self._execute(
            "exec select latest magic version",
            _SELECT_LATEST_MAGIC_VERSION,
            (chat.telegram_chat_id,),
        ).fetchone()
        if row is None:
            raise RecordNotFoundError()
        return MagicVersion(chat=chat, id=row[0])

    def list_participants(self, version: MagicVersion) -> list[Person]:
        rows = self._execute(
            "query enrolled participants", _SELECT_ENROLLED_PARTICIPANTS, (version.id,)
        )
        return [Person(telegram_user_id=user_id) for (user_id,) in rows]

    def insert_participant(self, version: MagicVersion, person: Person) -> None:
        row = self._execute(
            "query row select participant",
            _SELECT_DELETED_PARTICIPANT,
            (version.id, person.telegram_user_id),
        ).fetchone()
        if row is None:
            self._execute(
                "exec insert participant",
                _INSERT_PARTICIPANT,
                (version.id, person.telegram_user_id),
            )
            return
        row_id, deleted = row
        if not deleted:
            raise RecordExistsError()
        self._execute("exec restore participant", _RESTORE_PARTICIPANT, (row_id,))

    def delete_participant(self, version: MagicVersion, person: Person) -> None:
        cursor = self._execute(
            "exec delete participant",
            _DELETE_PARTICIPANT,
            (version.id, person.telegram_user_id),
        )
        if cursor.rowcount != 1:
            raise StorageError(f"invalid amount rows affected on delete: {cursor.rowcount}")

    def insert_magic(self, version: MagicVersion, magic: Magic) -> None:
        for pair in magic.pairs:
            cursor = self._execute(
                "insert magic pair",
                _INSERT_MAGIC_PAIR,
                {
                    "version": version.id,
                    "giver": pair.giver.telegram_user_id,
                    "receiver": pair.receiver.telegram_user_id,
                },
            )
            if cursor.rowcount != 1:
                raise StorageError(
                    f"invalid amount rows affected on insert: {cursor.rowcount}"
                )

    def get_magic(self, version: MagicVersion) -> Magic:
        rows = self._execute(
            "query select magic pairs", _SELECT_MAGIC_PAIRS, {"version": version.id}
        ).fetchall()
        if not rows:
            raise RecordNotFoundError()
        pairs = []
        for giver_id, receiver_id in rows:
            if giver_id is None or receiver_id is None:
                raise StorageError("scan row: magic pair refers to a missing participant")
            pairs.append(
                GiverReceiverPair(
                    giver=Person(telegram_user_id=giver_id),
                    receiver=Person(telegram_user_id=receiver_id),
                )
            )
        return Magic(pairs=tuple(pairs))

    def get_magic_recipient(self, version: MagicVersion, giver: Person) -> Person:
        row = self._execute(
            "query select magic pair",
            _SELECT_MAGIC_PAIR_BY_GIVER,
            {"version": version.id, "giver": giver.telegram_user_id},
        ).fetchone()
        if row is None:
            raise RecordNotFoundError()
        if row[0] is None:
            raise StorageError("scan row: magic pair refers to a missing participant")
        return Person(telegram_user_id=row[0])


class SqliteStorage(Storage):
    """Storage kept in an SQLite database; transactions run one at a time."""

    def __init__(self, database: str | PathLike[str] = ":memory:") -> None:
        try:
            self._connection = sqlite3.connect(
                database, isolation_level=None, check_same_thread=False
            )
            self._connection.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise StorageError(f"open database: {exc}") from exc
        self._tx_lock = threading.RLock()
        self._locks_guard = threading.Lock()
        self._locks: dict[int, threading.RLock] = {}

    def __enter__(self) -> SqliteStorage:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _lock_for(self, lock_id: int) -> threading.RLock:
        with self._locks_guard:
            return self._locks.setdefault(lock_id, threading.RLock())

    @contextmanager
    def _transaction(self) -> Iterator[SqliteTx]:
        with self._tx_lock:
            try:
                self._connection.execute("BEGIN")
            except sqlite3.Error as exc:
                raise StorageError(f"begin tx: {exc}") from exc
            tx = SqliteTx(self._connection, self)
            try:
                yield tx
            except BaseException as exc:
                try:
                    self._connection.execute("ROLLBACK")
                except sqlite3.Error as rollback_exc:
                    raise StorageError(
                        f"rollback tx on do operation: {exc}: {rollback_exc}"
                    ) from exc
                raise
            else:
                try:
                    self._connection.execute("COMMIT")
                except sqlite3.Error as exc:
                    raise StorageError(f"commit tx: {exc}") from exc
            finally:
                tx._release_locks()

    def do_operation_on_tx(self, operation: Callable[[Tx], T]) -> T:
        with self._transaction() as tx:
            return operation(tx)

    def do_locked_operation_on_tx(self, lock_id: int, operation: Callable[[Tx], T]) -> T:
        def locked(tx: Tx) -> T:
            tx.lock(lock_id)
            return operation(tx)

        return self.do_operation_on_tx(locked)

    def close(self) -> None:
        """Close the underlying database connection."""
        self._connection.close()