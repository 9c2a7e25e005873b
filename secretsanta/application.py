"""Wires the storage, commands and queries into one application."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from os import PathLike

from secretsanta.commands import (
    DisEnrollHandler,
    EnrollHandler,
    MagicHandler,
    RegisterMagicVersionHandler,
    RegisterNewChatAndVersionHandler,
)
from secretsanta.queries import GetMagicHandler, GetMyReceiverHandler, ListParticipantsHandler
from secretsanta.sqlite_storage import SqliteStorage


@dataclass(frozen=True)
class ServiceConfig:
    """Where the chat data is kept and, optionally, the generator used for draws."""

    database: str | PathLike[str] = ":memory:"
    rng: random.Random | None = field(default=None, compare=False)


@dataclass(frozen=True)
class Commands:
    """Handlers that change a chat's game."""

    register_new_chat_and_version: RegisterNewChatAndVersionHandler
    register_magic_version: RegisterMagicVersionHandler
    enroll: EnrollHandler
    disenroll: DisEnrollHandler
    magic: MagicHandler


@dataclass(frozen=True)
class Queries:
    """Handlers that read a chat's game."""

    get_magic: GetMagicHandler
    get_my_receiver: GetMyReceiverHandler
    list_participants: ListParticipantsHandler


@dataclass(frozen=True)
class Application:
    """Every command and query of the game."""

    commands: Commands
    queries: Queries


def new_application(config: ServiceConfig) -> Application:
    """Open the storage named by ``config`` and build all handlers over it."""
    storage = SqliteStorage(config.database)
    return Application(
        commands=Commands(
            register_new_chat_and_version=RegisterNewChatAndVersionHandler(storage),
            register_magic_version=RegisterMagicVersionHandler(storage),
            enroll=EnrollHandler(storage),
            disenroll=DisEnrollHandler(storage),
            magic=MagicHandler(storage, config.rng),
        ),
        queries=Queries(
            get_magic=GetMagicHandler(storage),
            get_my_receiver=GetMyReceiverHandler(storage),
            list_participants=ListParticipantsHandler(storage),
        ),
    )