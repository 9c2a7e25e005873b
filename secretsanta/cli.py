"""Command-line entry point that runs the bot until interrupted."""

from __future__ import annotations

import argparse
import os
import signal
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from secretsanta.application import ServiceConfig, new_application
from secretsanta.bot import SantaBot
from secretsanta.logs import JsonLogger
from secretsanta.storage import StorageError
from secretsanta.telegram_api import TelegramApi, TelegramError

TOKEN_VARIABLE = "TELEGRAM_TOKEN"
DATABASE_VARIABLE = "DATABASE_PATH"


class ConfigError(ValueError):
    """A required setting is missing from the environment."""


@dataclass(frozen=True)
class Config:
    """Settings read from the environment."""

    telegram_token: str = field(repr=False)
    database: str


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Read the bot token and database path; both are required."""
    env = os.environ if environ is None else environ
    for name in (TOKEN_VARIABLE, DATABASE_VARIABLE):
        if name not in env:
            raise ConfigError(
                f"config unmarshal: required environment variable {name} is not set"
            )
    return Config(telegram_token=env[TOKEN_VARIABLE], database=env[DATABASE_VARIABLE])


def stop_event_on_signals(*signals: signal.Signals) -> threading.Event:
    """Return an event that is set when any of ``signals`` arrives."""
    event = threading.Event()

    def handler(signum: int, frame: object) -> None:
        event.set()

    for sig in signals:
        signal.signal(sig, handler)
    return event


def _run(logger: JsonLogger) -> None:
    config = load_config()
    logger.info("Config inited")

    application = new_application(ServiceConfig(database=config.database))
    bot = SantaBot(TelegramApi(config.telegram_token), application, logger)

    logger.info("Starting application")
    stop_event = stop_event_on_signals(signal.SIGINT, signal.SIGTERM)
    bot.run(stop_event)
    logger.info("Application stopped")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Secret Santa bot; configuration comes from the environment."""
    parser = argparse.ArgumentParser(
        prog="secretsantabot",
        description=(
            "Run the Secret Santa Telegram bot. "
            f"Reads {TOKEN_VARIABLE} and {DATABASE_VARIABLE} from the environment."
        ),
    )
    parser.parse_args(argv)

    logger = JsonLogger()
    status = 0
    try:
        _run(logger)
    except (ConfigError, StorageError, TelegramError) as exc:
        logger.error("application failed", "error", str(exc))
        status = 1
    finally:
        logger.close()
    return status