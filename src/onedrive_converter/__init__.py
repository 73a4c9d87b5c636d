"""Document converter backed by the OneDrive drive conversion API."""

from __future__ import annotations

from .capabilities import CapabilityRegistry, CapabilityTable
from .converter import OneDriveConverter, create_converter
from .errors import ConversionFailedError, ConverterError, RemoteCallFailed, TransportError
from .models import ConversionJob, ConversionStatus, LocalSourceFile

__all__ = [
    "CapabilityRegistry",
    "CapabilityTable",
    "ConversionFailedError",
    "ConversionJob",
    "ConversionStatus",
    "ConverterError",
    "LocalSourceFile",
    "OneDriveConverter",
    "RemoteCallFailed",
    "TransportError",
    "create_converter",
]
