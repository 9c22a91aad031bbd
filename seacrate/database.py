"""Storage of secrets, folders and instance metadata in SQLite."""

from __future__ import annotations

import posixpath
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path

from seacrate.config import DatabaseConfiguration
from seacrate.errors import (
    OverridingFolderError,
    OverridingSecretError,
    SecretDuplicateKeyError,
    SecretNotFoundError,
)
from seacrate.models import Folder, FolderContent, Meta, Secret

ROOT_FOLDER = "/"

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS folders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        path TEXT NOT NULL UNIQUE,
        parent_folder TEXT,
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS secrets (
        key TEXT NOT NULL,
        value TEXT NOT NULL,
        folder TEXT NOT NULL REFERENCES folders(path),
        created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (key, folder)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS meta (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
)


class MetaNotFoundError(LookupError):
    """No metadata is stored under the requested key."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"no meta found at this key ({key})")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_time(text: str) -> datetime:
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _join(base: str, element: str) -> str:
    """Join two relative path elements, ignoring empty ones, and clean the result."""
    parts = [part for part in (base, element) if part]
    if not parts:
        return ""
    return posixpath.normpath("/".join(parts))


def split_secret_key(key: str) -> tuple[list[str], str, str]:
    """Split a secret key into ``(folders, parent_folder, secret_key)``.

    ``folders`` lists every folder leading to the secret, outermost first.
    """
    if key.count("/") == 1:
        return [], ROOT_FOLDER, key.replace("/", "")
    last_slash = key.rfind("/")
    if last_slash < 0:
        raise ValueError(f"secret key must contain a '/' ({key})")

    secret_key = key[last_slash + 1 :]
    parent_folder = key[:last_slash]

    folders = []
    current = ""
    for element in parent_folder.split("/"):
        current = _join(current, element)
        if current:
            folders.append(f"/{current}")
    return folders, parent_folder, secret_key


class DatabaseEngine:
    """A SQLite-backed store of folders, secrets and metadata."""

    def __init__(self, path: str | Path) -> None:
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(
            str(path), isolation_level=None, check_same_thread=False
        )
        self._conn.execute("PRAGMA foreign_keys = ON")
        self.init_schema()

    def init_schema(self) -> None:
        """Create the tables and the root folder if they are missing."""
        with self._lock:
            for statement in _SCHEMA:
                self._conn.execute(statement)
            self._conn.execute(
                "INSERT INTO folders (path, created_at) VALUES (?, ?) "
                "ON CONFLICT DO NOTHING",
                (ROOT_FOLDER, _now()),
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> DatabaseEngine:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # Metadata

    def create_meta(self, key: str, value: str) -> None:
        """Store a new metadata entry; an existing key is an error."""
        with self._lock:
            self._conn.execute("INSERT INTO meta VALUES (?, ?)", (key, value))

    def get_meta(self, key: str) -> Meta:
        with self._lock:
            row = self._conn.execute(
                "SELECT key, value FROM meta WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            raise MetaNotFoundError(key)
        return Meta(key=row[0], value=row[1])

    def delete_meta(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM meta WHERE key = ?", (key,))

    # Folders

    def _folder_exists(self, path: str) -> bool:
        (count,) = self._conn.execute(
            "SELECT COUNT(id) FROM folders WHERE path = ?", (path,)
        ).fetchone()
        return count > 0

    def _folder_is_empty(self, path: str) -> bool:
        (folders,) = self._conn.execute(
            "SELECT COUNT(id) FROM folders WHERE parent_folder = ?", (path,)
        ).fetchone()
        if folders > 0:
            return False
        (stored,) = self._conn.execute(
            "SELECT COUNT(key) FROM secrets WHERE folder = ?", (path,)
        ).fetchone()
        return stored == 0

    def _create_folders(self, folders: list[str]) -> None:
        parent = ROOT_FOLDER
        for folder in folders:
            if not self._folder_exists(folder):
                self._conn.execute(
                    "INSERT INTO folders (path, parent_folder, created_at) "
                    "VALUES (?, ?, ?)",
                    (folder, parent, _now()),
                )
            parent = folder

    def _get_folder(self, path: str) -> Folder:
        row = self._conn.execute(
            "SELECT id, path, parent_folder, created_at FROM folders WHERE path = ?",
            (path,),
        ).fetchone()
        if row is None:
            raise LookupError(f"no folder found at this path ({path})")
        return Folder(
            id=row[0],
            full_path=row[1],
            parent_folder=row[2] or "",
            created_at=_parse_time(row[3]),
        )

    def _delete_empty_folders(self, path: str) -> None:
        """Delete ``path`` and then its ancestors for as long as they are empty."""
        while path != ROOT_FOLDER:
            folder = self._get_folder(path)
            if not self._folder_is_empty(folder.full_path):
                break
            self._conn.execute(
                "DELETE FROM folders WHERE path = ?", (folder.full_path,)
            )
            path = folder.parent_folder

    def _list_folder(self, path: str) -> list[FolderContent]:
        secrets = self._conn.execute(
            "SELECT key, created_at FROM secrets WHERE folder = ?", (path,)
        ).fetchall()
        folders = self._conn.execute(
            "SELECT path, created_at FROM folders WHERE parent_folder = ?", (path,)
        ).fetchall()
        return [
            FolderContent(key=name, type="secret", created_at=_parse_time(created))
            for name, created in secrets
        ] + [
            FolderContent(key=name, type="folder", created_at=_parse_time(created))
            for name, created in folders
        ]

    # Secrets

    def _secret_exists(self, key: str, folder: str) -> bool:
        (count,) = self._conn.execute(
            "SELECT COUNT(key) FROM secrets WHERE key = ? AND folder = ?",
            (key, folder),
        ).fetchone()
        return count > 0

    def _any_ancestor_is_secret(self, path: str) -> bool:
        parts = path.split("/")
        for end in range(len(parts) - 1, 0, -1):
            parent = "/".join(parts[:end]) or ROOT_FOLDER
            if self._secret_exists(parts[end], parent):
                return True
        return False

    def create_secret(self, key: str, value: str) -> None:
        """Store ``value`` at ``key``, creating the folders leading to it."""
        folders, parent_folder, secret_key = split_secret_key(key)
        with self._lock:
            if self._secret_exists(secret_key, parent_folder):
                raise SecretDuplicateKeyError(key)
            if self._folder_exists(key):
                raise OverridingFolderError(key)
            if parent_folder != ROOT_FOLDER and self._any_ancestor_is_secret(
                parent_folder
            ):
                raise OverridingSecretError(key)

            self._create_folders(folders)
            moment = _now()
            self._conn.execute(
                "INSERT INTO secrets (key, value, folder, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?)",
                (secret_key, value, parent_folder, moment, moment),
            )

    def get_secret(self, key: str) -> Secret | list[FolderContent]:
        """Return the secret at ``key``, or the listing of the folder at ``key``.

        A listing holds the folder's secrets first, then its sub-folders.
        """
        _, parent_folder, secret_key = split_secret_key(key)
        with self._lock:
            if self._secret_exists(secret_key, parent_folder):
                row = self._conn.execute(
                    "SELECT key, value, created_at, updated_at FROM secrets "
                    "WHERE key = ? AND folder = ?",
                    (secret_key, parent_folder),
                ).fetchone()
                return Secret(
                    key=row[0],
                    value=row[1],
                    created_at=_parse_time(row[2]),
                    updated_at=_parse_time(row[3]),
                )
            if self._folder_exists(key):
                return self._list_folder(key)
        raise SecretNotFoundError(key)

    def delete_secret(self, key: str) -> None:
        """Delete the secret at ``key`` and any folders it leaves empty."""
        _, parent_folder, secret_key = split_secret_key(key)
        with self._lock:
            if not self._secret_exists(secret_key, parent_folder):
                raise SecretNotFoundError(key)
            self._conn.execute(
                "DELETE FROM secrets WHERE key = ? AND folder = ?",
                (secret_key, parent_folder),
            )
            self._delete_empty_folders(parent_folder)


def open_database(config: DatabaseConfiguration) -> DatabaseEngine:
    """Open the database file named by ``config`` (in memory when unnamed)."""
    return DatabaseEngine(config.database or ":memory:")