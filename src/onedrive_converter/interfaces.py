"""Contracts the converter expects from its host application."""

from __future__ import annotations

from pathlib import Path
from typing import Any, BinaryIO, Mapping, Optional, Protocol

from .transport import TransportResponse


class SourceFile(Protocol):
    def get_filename(self) -> str:
        ...

    def get_filesize(self) -> int:
        ...

    def get_mimetype(self) -> str:
        ...

    def get_contenthash(self) -> str:
        ...

    def get_content_stream(self) -> BinaryIO:
        """Return a fresh binary stream positioned at the start of the content."""


class ConversionRecord(Protocol):
    source_file: SourceFile
    target_format: str

    def set_status(self, status: Any) -> None:
        ...

    def set_status_message(self, message: str | None) -> None:
        ...

    def store_destination_from_path(self, path: Path) -> None:
        ...

    def update(self) -> None:
        ...

    def get_errors(self) -> Mapping[str, Any]:
        ...


class HttpClient(Protocol):
    def request(
        self,
        method: str,
        url: str,
        *,
        data: Any = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        allow_redirects: bool = True,
    ) -> TransportResponse:
        ...

    def put(self, url: str, data: Any = None, **kwargs: Any) -> TransportResponse:
        ...

    def download(
        self, url: str, filepath: str | Path, *, timeout: float | None = None, max_redirects: int = 5
    ) -> bool:
        ...

    def close(self) -> None:
        ...


class Issuer(Protocol):
    id: str

    def is_enabled(self) -> bool:
        ...

    def is_system_account_connected(self) -> bool:
        ...


class CredentialProvider(Protocol):
    def get_issuer(self, issuer_id: str) -> Optional[Issuer]:
        ...

    def get_system_client(self, issuer: Issuer) -> Optional[HttpClient]:
        """Return a client authenticated as the issuer's system account, or None.

        The converter closes the client once the run is over.
        """


class TempDirProvider(Protocol):
    def make_request_directory(self) -> Path:
        """Return a new directory unique to this call; the host reclaims it."""
