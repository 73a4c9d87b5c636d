"""Data model for conversion jobs and ephemeral remote state."""

from __future__ import annotations

import hashlib
import mimetypes
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, Mapping, Optional

from .interfaces import SourceFile


class ConversionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ConversionStatus.COMPLETE, ConversionStatus.FAILED)


@dataclass(frozen=True)
class RemoteUploadSession:
    upload_url: str


@dataclass(frozen=True)
class RemoteItemHandle:
    item_id: str


OFFICE_MIMETYPES: Dict[str, str] = {
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "odt": "application/vnd.oasis.opendocument.text",
    "ods": "application/vnd.oasis.opendocument.spreadsheet",
    "odp": "application/vnd.oasis.opendocument.presentation",
}


class LocalSourceFile:
    """Source file backed by a path on the local filesystem."""

    def __init__(self, path: str | Path, *, mimetype: str | None = None, filename: str | None = None) -> None:
        self._path = Path(path)
        self._filename = filename or self._path.name
        self._mimetype = mimetype
        self._contenthash: str | None = None

    @property
    def path(self) -> Path:
        return self._path

    def get_filename(self) -> str:
        return self._filename

    def get_filesize(self) -> int:
        return self._path.stat().st_size

    def get_mimetype(self) -> str:
        if self._mimetype:
            return self._mimetype
        extension = self._filename.rsplit(".", 1)[-1].lower() if "." in self._filename else ""
        if extension in OFFICE_MIMETYPES:
            return OFFICE_MIMETYPES[extension]
        guessed, _ = mimetypes.guess_type(self._filename)
        return guessed or "application/octet-stream"

    def get_contenthash(self) -> str:
        if self._contenthash is None:
            digest = hashlib.sha1()
            with self._path.open("rb") as handle:
                for chunk in iter(lambda: handle.read(65536), b""):
                    digest.update(chunk)
            self._contenthash = digest.hexdigest()
        return self._contenthash

    def get_content_stream(self) -> BinaryIO:
        return self._path.open("rb")


@dataclass
class ConversionJob:
    """In-memory conversion record.

    Hosts that persist conversions implement the same mutation methods on
    their own record type; ``on_update`` lets a host hook persistence into
    this one.
    """

    source_file: SourceFile
    target_format: str
    status: ConversionStatus = ConversionStatus.PENDING
    status_message: Optional[str] = None
    destination_file: Optional[Path] = None
    errors: Dict[str, Any] = field(default_factory=dict)
    on_update: Optional[Callable[["ConversionJob"], None]] = field(default=None, repr=False, compare=False)

    def set_status(self, status: ConversionStatus) -> None:
        self.status = ConversionStatus(status)

    def set_status_message(self, message: str | None) -> None:
        self.status_message = message

    def store_destination_from_path(self, path: Path) -> None:
        self.destination_file = Path(path)

    def update(self) -> None:
        if self.on_update is not None:
            self.on_update(self)

    def get_errors(self) -> Mapping[str, Any]:
        return dict(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "filename": self.source_file.get_filename(),
            "target_format": self.target_format,
            "status": self.status.value,
            "status_message": self.status_message,
            "destination_file": str(self.destination_file) if self.destination_file else None,
        }
