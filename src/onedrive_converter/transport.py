"""HTTP transport used for every exchange with the drive API."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Mapping

from requests import Response, Session
from requests.exceptions import RequestException

from .errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    reason: str
    headers: Mapping[str, str]
    content: bytes
    url: str
    header_lines: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON; raises ``ValueError`` for anything else."""
        return json.loads(self.text)

    @classmethod
    def from_response(cls, response: Response) -> "TransportResponse":
        lines = [f"HTTP/1.1 {response.status_code} {response.reason or ''}".rstrip()]
        lines.extend(f"{name}: {value}" for name, value in response.headers.items())
        return cls(
            status_code=response.status_code,
            reason=response.reason or "",
            headers=dict(response.headers),
            content=response.content or b"",
            url=response.url,
            header_lines=lines,
        )


class HttpTransport:
    """Thin wrapper around a ``requests`` session with per-call timeouts.

    A transport is created per conversion run and is not shared between
    threads.
    """

    name = "anonymous"

    def __init__(
        self,
        *,
        timeout: float = 60,
        verify: bool = True,
        headers: Mapping[str, str] | None = None,
        session: Session | None = None,
    ) -> None:
        self._timeout = timeout
        self._verify = verify
        self._session = session or Session()
        if headers:
            self._session.headers.update(headers)

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request_headers(self, headers: Mapping[str, str] | None) -> dict[str, str]:
        return dict(headers or {})

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
        try:
            response = self._session.request(
                method.upper(),
                url,
                data=data,
                headers=self._request_headers(headers),
                timeout=timeout or self._timeout,
                allow_redirects=allow_redirects,
                verify=self._verify,
            )
        except RequestException as exc:
            raise TransportError(f"{method.upper()} {url} failed: {exc}", url=url) from exc
        return TransportResponse.from_response(response)

    def get(self, url: str, **kwargs: Any) -> TransportResponse:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, data: Any = None, **kwargs: Any) -> TransportResponse:
        return self.request("POST", url, data=data, **kwargs)

    def put(self, url: str, data: Any = None, **kwargs: Any) -> TransportResponse:
        return self.request("PUT", url, data=data, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> TransportResponse:
        return self.request("DELETE", url, **kwargs)

    def download(
        self,
        url: str,
        filepath: str | Path,
        *,
        timeout: float | None = None,
        max_redirects: int = 5,
    ) -> bool:
        """Stream ``url`` into ``filepath``; returns False on any failure."""

        dest_path = Path(filepath)
        self._session.max_redirects = max_redirects
        try:
            response = self._session.get(
                url,
                headers=self._request_headers(None),
                timeout=timeout or self._timeout,
                stream=True,
                allow_redirects=True,
                verify=self._verify,
            )
            with response:
                if response.status_code >= 400:
                    logger.warning(
                        "Download failed",
                        extra={"url": url, "status": response.status_code},
                    )
                    return False
                dest_path.parent.mkdir(parents=True, exist_ok=True)
                with dest_path.open("wb") as fh:
                    for chunk in response.iter_content(chunk_size=8192):
                        if chunk:
                            fh.write(chunk)
        except (RequestException, OSError) as exc:
            logger.warning("Download request failed", extra={"url": url, "error": str(exc)})
            return False
        return True


class OAuthTransport(HttpTransport):
    """Transport that attaches a bearer token to every request.

    ``token`` may be a string or a callable returning the current token so
    that the host can refresh credentials between calls.
    """

    name = "authenticated"

    def __init__(self, token: str | Callable[[], str], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._token = token

    def access_token(self) -> str:
        return self._token() if callable(self._token) else self._token

    def _request_headers(self, headers: Mapping[str, str] | None) -> dict[str, str]:
        merged = super()._request_headers(headers)
        merged.setdefault("Authorization", f"Bearer {self.access_token()}")
        return merged
