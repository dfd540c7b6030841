"""Storage for chat users and messages."""

from __future__ import annotations

import os
import sqlite3
import threading
from types import TracebackType

from chatline.envfile import dotenv_get

_MASK = (1 << 64) - 1


class DatabaseError(Exception):
    """A database operation failed."""


class InvalidPassword(Exception):
    """The password does not match the one stored for the user."""


class UsernameTaken(Exception):
    """A user with this name already exists."""


def djb2_hash(text: str) -> int:
    """Return the 64-bit djb2 hash of the UTF-8 bytes of ``text``.

    Bytes are added as signed chars, so values above 127 count as negative.
    """
    value = 5381
    for byte in text.encode("utf-8"):
        signed = byte - 256 if byte >= 128 else byte
        value = (value * 33 + signed) & _MASK
    return value


class ChatDatabase:
    """Users and chat messages kept in an SQLite database."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(os.fspath(path), check_same_thread=False)
        except sqlite3.Error as exc:
            raise DatabaseError(f"Can't connect to database: {exc}") from exc
        self._execute(
            "CREATE TABLE IF NOT EXISTS users (name TEXT NOT NULL, password TEXT)",
            (),
            "Can't create table for users",
        )

    @classmethod
    def from_env(cls, env_path: str | os.PathLike[str] = ".env") -> ChatDatabase:
        """Open the database named by ``DB_NAME`` in the environment file."""
        name = dotenv_get("DB_NAME", env_path)
        if not name:
            raise DatabaseError("DB_NAME is not set in the environment file")
        return cls(name)

    def _execute(self, sql: str, params: tuple, error_message: str) -> list[tuple]:
        with self._lock:
            try:
                with self._conn:
                    return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                raise DatabaseError(f"{error_message}: {exc}") from exc

    def start_chat(self) -> None:
        """Create the chat message table if it doesn't exist."""
        self._execute(
            "CREATE TABLE IF NOT EXISTS chat ("
            "username TEXT NOT NULL, "
            "message TEXT NOT NULL, "
            "time TIMESTAMP DEFAULT CURRENT_TIMESTAMP)",
            (),
            "Can't create table for chat",
        )

    def insert_new_user(self, name: str, password: str) -> None:
        """Register a user; raises UsernameTaken if the name exists."""
        rows = self._execute(
            "SELECT name FROM users WHERE name = ?", (name,), "Can't select username"
        )
        if rows:
            raise UsernameTaken(f"Username {name!r} already being taken")
        self._execute(
            "INSERT INTO users (name, password) VALUES (?, ?)",
            (name, str(djb2_hash(password))),
            "Can't insert new user",
        )

    def insert_new_message(self, username: str, message: str) -> None:
        """Store a chat message sent by ``username``."""
        self._execute(
            "INSERT INTO chat (username, message) VALUES (?, ?)",
            (username, message),
            "Can't insert new message",
        )

    def get_password(self, username: str) -> int | None:
        """Return the stored password hash for ``username``, or None."""
        rows = self._execute(
            "SELECT password FROM users WHERE name = ?",
            (username,),
            "Can't select password",
        )
        if not rows:
            return None
        return int(rows[0][0])

    def user_login(self, username: str, password: str) -> None:
        """Log a user in, registering unknown names on first use.

        Raises InvalidPassword if the user exists with another password.
        """
        stored = self.get_password(username)
        if stored is None:
            self.insert_new_user(username, password)
            return
        if djb2_hash(password) != stored:
            raise InvalidPassword("Invalid password")

    def messages(self) -> list[tuple[str, str]]:
        """Return all stored (username, message) pairs in insertion order."""
        rows = self._execute(
            "SELECT username, message FROM chat ORDER BY rowid",
            (),
            "Can't select messages",
        )
        return [(user, text) for user, text in rows]

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    def __enter__(self) -> ChatDatabase:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()