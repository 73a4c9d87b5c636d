"""Client for the three drive API operations the converter needs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from string import Formatter
from typing import Any, Dict, List, Mapping

from .errors import RemoteCallFailed, TransportError
from .interfaces import HttpClient
from .monitoring import record_remote_call

logger = logging.getLogger(__name__)

RESPONSE_JSON = "json"
RESPONSE_HEADERS = "headers"


@dataclass(frozen=True)
class Endpoint:
    path: str
    method: str
    response: str

    def arguments(self) -> List[str]:
        return [name for _, name, _, _ in Formatter().parse(self.path) if name]


ENDPOINTS: Dict[str, Endpoint] = {
    "create_upload": Endpoint(
        path="me/drive/special/approot:/{filename}:/createUploadSession",
        method="POST",
        response=RESPONSE_JSON,
    ),
    "convert": Endpoint(
        path="me/drive/items/{itemid}/content?format={format}",
        method="GET",
        response=RESPONSE_HEADERS,
    ),
    "delete": Endpoint(
        path="me/drive/items/{itemid}",
        method="DELETE",
        response=RESPONSE_JSON,
    ),
}


class ConversionServiceClient:
    """Maps operation names onto drive API requests.

    ``convert`` returns the raw response header lines because the result
    location is only carried in the ``Location`` header; the other
    operations return the decoded JSON body (an empty dict for empty bodies).
    """

    def __init__(self, client: HttpClient, *, base_url: str, timeout: float | None = None) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout

    def build_url(self, operation: str, params: Mapping[str, Any]) -> str:
        endpoint = self._endpoint(operation)
        missing = [name for name in endpoint.arguments() if name not in params]
        if missing:
            raise ValueError(f"Missing parameters for {operation}: {', '.join(missing)}")
        path = endpoint.path.format(**{k: str(v) for k, v in params.items()})
        return self._base_url + path.lstrip("/")

    def call(self, operation: str, params: Mapping[str, Any], body: str | bytes | None = None) -> Any:
        endpoint = self._endpoint(operation)
        url = self.build_url(operation, params)
        headers = {"Content-Type": "application/json"} if body is not None else {}

        try:
            response = self._client.request(
                endpoint.method,
                url,
                data=body,
                headers=headers,
                timeout=self._timeout,
                allow_redirects=endpoint.response != RESPONSE_HEADERS,
            )
        except TransportError:
            record_remote_call(operation, "transport_error")
            raise

        if response.status_code >= 400:
            record_remote_call(operation, "http_error")
            logger.warning(
                "Drive API call failed",
                extra={"operation": operation, "status": response.status_code},
            )
            raise RemoteCallFailed(response.status_code, response.text, operation=operation)

        record_remote_call(operation, "success")
        if endpoint.response == RESPONSE_HEADERS:
            return list(response.header_lines)

        if not response.content.strip():
            return {}
        try:
            payload = response.json()
        except ValueError:
            snippet = response.text[:200].replace("\n", " ")
            logger.warning(
                "Drive API returned a non-JSON body",
                extra={"operation": operation, "body": snippet},
            )
            return {}
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def _endpoint(operation: str) -> Endpoint:
        if operation not in ENDPOINTS:
            raise ValueError(f"Unknown drive API operation: {operation}")
        return ENDPOINTS[operation]
