"""Structured JSON logging, one record per line."""

from __future__ import annotations

import dataclasses
import errno
import json
import sys
from collections.abc import Callable, Iterable, Iterator
from datetime import datetime
from typing import Any, TextIO

LEVEL_KEY = "_l"
TIME_KEY = "_t"
MESSAGE_KEY = "_m"
IGNORED_KEY = "ignored"

_HARMLESS_SYNC_ERRNOS = frozenset({errno.ENOTTY, errno.EINVAL})


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.astimezone()
    text = moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{moment.microsecond // 1000:03d}"
    offset = moment.utcoffset()
    return text + ("Z" if not offset else moment.strftime("%z"))


def _encode(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return str(value)


def _pairs(args: Iterable[Any]) -> Iterator[tuple[str, Any]]:
    items = iter(args)
    for key in items:
        try:
            value = next(items)
        except StopIteration:
            yield IGNORED_KEY, key
            return
        yield str(key), value


class JsonLogger:
    """Writes JSON log records with level, time, message and key-value fields."""

    def __init__(
        self,
        stream: TextIO | None = None,
        clock: Callable[[], datetime] | None = None,
        fields: Iterable[tuple[str, Any]] = (),
    ) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self._clock = clock or _local_now
        self._fields = tuple(fields)

    def _write(self, level: str, msg: str, fields: Iterable[tuple[str, Any]]) -> None:
        record: dict[str, Any] = {
            LEVEL_KEY: level,
            TIME_KEY: _format_time(self._clock()),
            MESSAGE_KEY: msg,
        }
        record.update(self._fields)
        record.update(fields)
        self._stream.write(json.dumps(record, ensure_ascii=False, default=_encode) + "\n")

    def info(self, msg: str, *args: Any) -> None:
        """Log ``msg`` with alternating keys and values."""
        self._write("info", msg, _pairs(args))

    def infof(self, msg: str, *args: Any) -> None:
        """Log ``msg`` formatted with ``args``."""
        self._write("info", msg % args if args else msg, ())

    def error(self, msg: str, *args: Any) -> None:
        """Log ``msg`` at error level with alternating keys and values."""
        self._write("error", msg, _pairs(args))

    def errorf(self, msg: str, *args: Any) -> None:
        """Log ``msg`` at error level, formatted with ``args``."""
        self._write("error", msg % args if args else msg, ())

    def with_fields(self, *args: Any) -> JsonLogger:
        """Return a logger that adds these key-value fields to every record."""
        return JsonLogger(self._stream, self._clock, self._fields + tuple(_pairs(args)))

    def close(self) -> None:
        """Flush the stream; errors meaning the stream cannot be synced are ignored."""
        try:
            self._stream.flush()
        except OSError as exc:
            if exc.errno in _HARMLESS_SYNC_ERRNOS:
                return
            raise