"""Static credential provider for hosts that already hold an access token."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from tempfile import mkdtemp
from typing import Callable, Mapping, Optional

from .config import ConversionSettings, GraphSettings
from .transport import OAuthTransport


@dataclass(frozen=True)
class StaticIssuer:
    id: str
    enabled: bool = True
    connected: bool = True

    def is_enabled(self) -> bool:
        return self.enabled

    def is_system_account_connected(self) -> bool:
        return self.connected


class StaticCredentialProvider:
    """Resolves issuers from a fixed mapping and hands out bearer-token clients."""

    def __init__(
        self,
        issuers: Mapping[str, StaticIssuer],
        token: str | Callable[[], str],
        *,
        timeout: float = 60,
        verify: bool = True,
    ) -> None:
        self._issuers = dict(issuers)
        self._token = token
        self._timeout = timeout
        self._verify = verify

    def get_issuer(self, issuer_id: str) -> Optional[StaticIssuer]:
        return self._issuers.get(issuer_id)

    def get_system_client(self, issuer: StaticIssuer) -> Optional[OAuthTransport]:
        if not issuer.is_system_account_connected():
            return None
        return OAuthTransport(self._token, timeout=self._timeout, verify=self._verify)

    @classmethod
    def from_settings(cls, conversion: ConversionSettings, graph: GraphSettings) -> "StaticCredentialProvider":
        issuers = {}
        if conversion.issuer_id:
            issuers[conversion.issuer_id] = StaticIssuer(
                id=conversion.issuer_id,
                connected=bool(conversion.access_token),
            )
        return cls(
            issuers,
            conversion.access_token or "",
            timeout=graph.request_timeout_sec,
            verify=graph.verify_tls,
        )


class WorkDirTempProvider:
    """Creates a fresh directory under ``work_dir`` for every request."""

    def __init__(self, work_dir: str | Path) -> None:
        self._work_dir = Path(work_dir)

    def make_request_directory(self) -> Path:
        self._work_dir.mkdir(parents=True, exist_ok=True)
        return Path(mkdtemp(prefix="request_", dir=self._work_dir))
