"""Shared pytest fixtures for the OneDrive converter tests."""

from __future__ import annotations

import io
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from onedrive_converter.config import ConversionSettings, GraphSettings, Settings
from onedrive_converter.converter import OneDriveConverter
from onedrive_converter.credentials import StaticIssuer
from onedrive_converter.transport import TransportResponse

GRAPH_BASE = "https://graph.test/v1.0/"
UPLOAD_URL = "https://upload.test/session/abc"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def _response(
    status: int = 200,
    payload: Any = None,
    *,
    header_lines: Optional[List[str]] = None,
    content: Optional[bytes] = None,
) -> TransportResponse:
    if content is None:
        content = json.dumps(payload).encode("utf-8") if payload is not None else b""
    return TransportResponse(
        status_code=status,
        reason="",
        headers={},
        content=content,
        url="https://response.test/",
        header_lines=list(header_lines or []),
    )


@dataclass
class RecordedCall:
    method: str
    url: str
    headers: Dict[str, str]
    body: Any
    timeout: Optional[float]
    allow_redirects: bool


class FakeHttpClient:
    """Routes requests by (method, url fragment) to canned responses or errors."""

    def __init__(
        self,
        routes: Optional[Dict[Tuple[str, str], Any]] = None,
        *,
        download_result: bool = True,
        download_bytes: bytes = b"%PDF-1.4 converted",
    ) -> None:
        self.routes = dict(routes or {})
        self.download_result = download_result
        self.download_bytes = download_bytes
        self.calls: List[RecordedCall] = []
        self.downloads: List[Tuple[str, Path, Optional[float], int]] = []
        self.closed = 0

    def request(self, method, url, *, data=None, headers=None, timeout=None, allow_redirects=True):
        body = data.read() if hasattr(data, "read") else data
        self.calls.append(RecordedCall(method, url, dict(headers or {}), body, timeout, allow_redirects))
        for (route_method, marker), outcome in self.routes.items():
            if route_method == method and marker in url:
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise AssertionError(f"unexpected request {method} {url}")

    def put(self, url, data=None, **kwargs):
        return self.request("PUT", url, data=data, **kwargs)

    def download(self, url, filepath, *, timeout=None, max_redirects=5):
        self.downloads.append((url, Path(filepath), timeout, max_redirects))
        if self.download_result:
            Path(filepath).write_bytes(self.download_bytes)
        return self.download_result

    def close(self) -> None:
        self.closed += 1

    def calls_for(self, method: str) -> List[RecordedCall]:
        return [call for call in self.calls if call.method == method]


class FakeSourceFile:
    def __init__(
        self,
        filename: str = "report.docx",
        *,
        content: bytes = b"docx-bytes",
        mimetype: str = DOCX_MIME,
        contenthash: str = "abc123",
        size: Optional[int] = None,
    ) -> None:
        self._filename = filename
        self._content = content
        self._mimetype = mimetype
        self._contenthash = contenthash
        self._size = size if size is not None else len(content)

    def get_filename(self) -> str:
        return self._filename

    def get_filesize(self) -> int:
        return self._size

    def get_mimetype(self) -> str:
        return self._mimetype

    def get_contenthash(self) -> str:
        return self._contenthash

    def get_content_stream(self):
        return io.BytesIO(self._content)


class FakeCredentials:
    def __init__(self, client: FakeHttpClient, issuers: Optional[Dict[str, StaticIssuer]] = None) -> None:
        self.client = client
        self.issuers = issuers if issuers is not None else {"onedrive": StaticIssuer(id="onedrive")}
        self.issuer_lookups: List[str] = []

    def get_issuer(self, issuer_id: str):
        self.issuer_lookups.append(issuer_id)
        return self.issuers.get(issuer_id)

    def get_system_client(self, issuer):
        return self.client


class FakeTempDirs:
    def __init__(self, base: Path) -> None:
        self._base = base
        self.created: List[Path] = []

    def make_request_directory(self) -> Path:
        path = self._base / f"request_{len(self.created)}"
        path.mkdir(parents=True)
        self.created.append(path)
        return path


@pytest.fixture()
def make_response() -> Callable[..., TransportResponse]:
    return _response


@pytest.fixture()
def conversion_settings(tmp_path) -> ConversionSettings:
    return ConversionSettings(
        issuer_id="onedrive",
        access_token="token-123",
        site_shortname="mysite",
        work_dir=str(tmp_path / "work"),
    )


@pytest.fixture()
def graph_settings() -> GraphSettings:
    return GraphSettings(api_base_url=GRAPH_BASE, request_timeout_sec=30)


@pytest.fixture()
def test_settings(conversion_settings, graph_settings, tmp_path) -> Settings:
    return Settings(
        service_name="onedrive-converter-test",
        environment="test",
        conversion=conversion_settings,
        graph=graph_settings,
        logging={"level": "DEBUG", "log_dir": str(tmp_path / "logs")},
    )


@pytest.fixture()
def drive_routes() -> Dict[Tuple[str, str], Any]:
    """Routes for a drive API that accepts every step."""

    return {
        ("POST", "createUploadSession"): _response(200, {"uploadUrl": UPLOAD_URL}),
        ("PUT", UPLOAD_URL): _response(201, {"id": "ITEM-1"}),
        ("GET", "/content?format="): _response(
            302,
            header_lines=[
                "HTTP/1.1 302 Found",
                "Cache-Control: private",
                "Location: https://download.test/ITEM-1.pdf?token=xyz",
            ],
        ),
        ("DELETE", "/me/drive/items/"): _response(204),
    }


@pytest.fixture()
def auth_client(drive_routes) -> FakeHttpClient:
    return FakeHttpClient(drive_routes)


@pytest.fixture()
def anon_client(drive_routes) -> FakeHttpClient:
    return FakeHttpClient({("PUT", UPLOAD_URL): drive_routes[("PUT", UPLOAD_URL)]})


@pytest.fixture()
def temp_dirs(tmp_path) -> FakeTempDirs:
    return FakeTempDirs(tmp_path / "requests")


@pytest.fixture()
def build_converter(conversion_settings, graph_settings, auth_client, anon_client, temp_dirs):
    def _build(*, settings: Optional[ConversionSettings] = None, credentials=None, anonymous=None):
        return OneDriveConverter(
            settings or conversion_settings,
            graph_settings,
            credentials or FakeCredentials(auth_client),
            temp_dirs=temp_dirs,
            anonymous_client_factory=lambda: anonymous or anon_client,
        )

    return _build


@pytest.fixture()
def source_file() -> FakeSourceFile:
    return FakeSourceFile()


@pytest.fixture()
def fake_source_file() -> Callable[..., FakeSourceFile]:
    return FakeSourceFile


@pytest.fixture()
def fake_http_client() -> Callable[..., FakeHttpClient]:
    return FakeHttpClient


@pytest.fixture()
def fake_credentials() -> Callable[..., FakeCredentials]:
    return FakeCredentials
