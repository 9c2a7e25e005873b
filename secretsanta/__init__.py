"""Secret Santa draws for Telegram group chats, stored in SQLite."""

__version__ = "0.1.0"