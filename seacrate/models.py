"""Records stored by the database and sent back by the API."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


def _format_time(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    text = moment.isoformat()
    if text.endswith("+00:00"):
        return text[: -len("+00:00")] + "Z"
    return text


@dataclass
class Folder:
    """A folder holding secrets and other folders."""

    id: int
    full_path: str
    parent_folder: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "full_path": self.full_path,
            "parent_folder": self.parent_folder,
            "created_at": _format_time(self.created_at),
        }


@dataclass
class FolderContent:
    """One entry in a folder listing: a secret or a sub-folder."""

    key: str
    type: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "type": self.type,
            "created_at": _format_time(self.created_at),
        }


@dataclass
class Meta:
    """A key/value pair of instance metadata."""

    key: str
    value: str


@dataclass
class Secret:
    """A stored secret."""

    key: str
    value: str
    created_at: datetime
    updated_at: datetime
    folder: str = ""
    parent_folder: str = ""

    def to_dict(self) -> dict:
        result: dict = {"key": self.key}
        if self.folder:
            result["folder"] = self.folder
        if self.parent_folder:
            result["parent_folder"] = self.parent_folder
        result["value"] = self.value
        result["created_at"] = _format_time(self.created_at)
        result["updated_at"] = _format_time(self.updated_at)
        return result


@dataclass
class ErrorResponse:
    """Body of an error reply."""

    error: str
    details: str = ""

    def to_dict(self) -> dict:
        result = {"error": self.error}
        if self.details:
            result["details"] = self.details
        return result


@dataclass
class MessageResponse:
    """Body of a plain informational reply."""

    details: str

    def to_dict(self) -> dict:
        return {"details": self.details}