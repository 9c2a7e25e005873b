"""Errors raised by the application commands and queries."""

from __future__ import annotations


class _AppError(Exception):
    default_message = ""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class ChatTypeUnsupportedError(_AppError):
    """The chat is not a group chat."""

    default_message = "chat type is unsupported"


class ChatIsPrivateError(_AppError):
    """The chat is a private conversation with the bot."""

    default_message = "chat is private"


class ForbiddenError(_AppError):
    """The caller may not perform the operation."""

    default_message = "forbidden"


class NotEnoughParticipantsError(_AppError):
    """Too few people are enrolled for a draw."""

    default_message = "not enough participants"


class NotFoundError(_AppError):
    """The requested record does not exist."""

    default_message = "not found"


class AlreadyExistsError(_AppError):
    """The record being created already exists."""

    default_message = "already exists"


class ServiceIsNoneError(ValueError):
    """A handler was created without a storage service."""

    def __init__(self, message: str = "service is nil") -> None:
        super().__init__(message)