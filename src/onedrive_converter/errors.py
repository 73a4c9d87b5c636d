"""Error code registry and exception types for conversion failures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


CATEGORY_CONFIGURATION = "configuration"
CATEGORY_INPUT = "input"
CATEGORY_REMOTE_PROTOCOL = "remote_protocol"
CATEGORY_TRANSPORT = "transport"
CATEGORY_DOWNLOAD = "download"
CATEGORY_INTERNAL = "internal"


@dataclass(frozen=True)
class ErrorCodeSpec:
    code: str
    message: str
    status: int
    category: str


class ErrorRegistry:
    def __init__(self) -> None:
        self._codes: Dict[str, ErrorCodeSpec] = {}

    def register(self, spec: ErrorCodeSpec) -> None:
        if spec.code in self._codes:
            raise ValueError(f"Error code {spec.code} already registered")
        self._codes[spec.code] = spec

    def get(self, code: str) -> ErrorCodeSpec:
        if code not in self._codes:
            raise KeyError(f"Unknown error code: {code}")
        return self._codes[code]

    def to_dict(self) -> Dict[str, ErrorCodeSpec]:
        return dict(self._codes)


ERRORS = ErrorRegistry()


def register_default_errors() -> None:
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_ISSUER_NOT_SET",
            message="The OAuth 2 issuer for the OneDrive converter has not been configured",
            status=4001,
            category=CATEGORY_CONFIGURATION,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_ISSUER_INVALID",
            message="The configured OAuth 2 issuer could not be found",
            status=4002,
            category=CATEGORY_CONFIGURATION,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_MALFORMED_FILENAME",
            message="The source filename has no extension to convert from",
            status=4101,
            category=CATEGORY_INPUT,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_SOURCE_UNREADABLE",
            message="The source file could not be read",
            status=4102,
            category=CATEGORY_INPUT,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_UPLOAD_PREP_FAILED",
            message="Could not create an upload session on OneDrive",
            status=5001,
            category=CATEGORY_REMOTE_PROTOCOL,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_UPLOAD_FAILED",
            message="The file could not be uploaded to OneDrive",
            status=5002,
            category=CATEGORY_REMOTE_PROTOCOL,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_NO_DOWNLOAD_URL",
            message="OneDrive did not return a download location for the converted file",
            status=5003,
            category=CATEGORY_REMOTE_PROTOCOL,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_TRANSPORT",
            message="A network error occurred while talking to OneDrive",
            status=5101,
            category=CATEGORY_TRANSPORT,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_DOWNLOAD_FAILED",
            message="The converted file could not be downloaded from OneDrive",
            status=5201,
            category=CATEGORY_DOWNLOAD,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_CONVERSION_FAILED",
            message="The test document conversion failed",
            status=5301,
            category=CATEGORY_REMOTE_PROTOCOL,
        )
    )
    ERRORS.register(
        ErrorCodeSpec(
            code="ERR_UNEXPECTED",
            message="An unexpected error interrupted the conversion",
            status=5401,
            category=CATEGORY_INTERNAL,
        )
    )


register_default_errors()


def message_for(code: str, *, detail: Optional[str] = None) -> str:
    spec = ERRORS.get(code)
    if detail:
        return f"{spec.message}: {detail}"
    return spec.message


class ConverterError(RuntimeError):
    """Base class for errors raised by the converter package."""


class TransportError(ConverterError):
    """Raised when a request never produced an HTTP response."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class RemoteCallFailed(ConverterError):
    """Raised when the drive API answers with an HTTP error status."""

    def __init__(self, status: int, body: str, *, operation: str | None = None) -> None:
        super().__init__(f"{operation or 'request'} failed ({status}): {body}")
        self.status = status
        self.body = body
        self.operation = operation


class ConversionFailedError(ConverterError):
    """Raised by the diagnostic path when a conversion ends in FAILED."""

    def __init__(self, code: str, errors: Mapping[str, Any]) -> None:
        super().__init__(message_for(code, detail=errors.get("statusmessage")))
        self.code = code
        self.errors: Dict[str, Any] = dict(errors)

    def to_dict(self) -> Dict[str, Any]:
        spec = ERRORS.get(self.code)
        return {
            "status": "failure",
            "error_code": spec.code,
            "error_status": spec.status,
            "message": spec.message,
            "errors": dict(self.errors),
        }
