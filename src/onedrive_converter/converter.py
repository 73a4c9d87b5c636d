"""Convert documents between formats using a OneDrive drive.

The drive API does the actual conversion: the source is uploaded into the
application folder, fetched back in the requested format through the
``Location`` the API redirects to, and the uploaded copy is deleted again.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .capabilities import CapabilityRegistry, CapabilityTable
from .config import ConversionSettings, GraphSettings, Settings, get_settings
from .credentials import StaticCredentialProvider, WorkDirTempProvider
from .errors import (
    ConversionFailedError,
    ConverterError,
    RemoteCallFailed,
    TransportError,
    message_for,
)
from .interfaces import ConversionRecord, CredentialProvider, HttpClient, Issuer, SourceFile, TempDirProvider
from .models import (
    OFFICE_MIMETYPES,
    ConversionJob,
    ConversionStatus,
    LocalSourceFile,
    RemoteItemHandle,
    RemoteUploadSession,
)
from .monitoring import record_conversion_completed, record_upload_attempt
from .rest import ConversionServiceClient
from .transport import HttpTransport
from .utils import content_range, find_header, import_extension, normalize_url, remote_upload_path

logger = logging.getLogger(__name__)

DOCX_MIMETYPE = OFFICE_MIMETYPES["docx"]


class _StepFailed(Exception):
    def __init__(self, code: str, detail: str | None = None) -> None:
        super().__init__(code)
        self.code = code
        self.detail = detail


@dataclass(frozen=True)
class UploadStrategy:
    name: str
    client: HttpClient


@dataclass(frozen=True)
class UploadAttempt:
    strategy: str
    item_id: Optional[str] = None
    error: Optional[str] = None


class OneDriveConverter:
    def __init__(
        self,
        settings: ConversionSettings,
        graph: GraphSettings,
        credentials: CredentialProvider,
        *,
        temp_dirs: TempDirProvider | None = None,
        capabilities: CapabilityTable | None = None,
        anonymous_client_factory: Callable[[], HttpClient] | None = None,
    ) -> None:
        self._settings = settings
        self._graph = graph
        self._credentials = credentials
        self._temp_dirs = temp_dirs or WorkDirTempProvider(settings.work_dir)
        self._anonymous_client_factory = anonymous_client_factory or self._default_anonymous_client
        self.registry = CapabilityRegistry(
            capabilities or CapabilityTable(settings.supported_formats),
            issuer_id=settings.issuer_id,
            credentials=credentials,
        )

    def supports(self, source: str, target: str) -> bool:
        return self.registry.supports(source, target)

    def describe_supported_conversions(self) -> str:
        return self.registry.describe_supported_conversions()

    def is_available(self) -> bool:
        return self.registry.is_available()

    def poll_status(self, job: ConversionRecord) -> ConversionRecord:
        """Conversions finish inside ``convert``; there is nothing to poll."""
        return job

    def convert(self, job: ConversionRecord) -> ConversionRecord:
        """Run the whole conversion for ``job`` and leave it COMPLETE or FAILED."""

        job.set_status(ConversionStatus.IN_PROGRESS)
        try:
            self._run(job)
        except _StepFailed as failure:
            self._fail(job, failure.code, failure.detail)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error during conversion")
            self._fail(job, "ERR_UNEXPECTED", f"{type(exc).__name__}: {exc}")
        return job

    def _run(self, job: ConversionRecord) -> None:
        issuer_id = self._settings.issuer_id
        if not issuer_id:
            raise _StepFailed("ERR_ISSUER_NOT_SET")

        issuer = self._credentials.get_issuer(issuer_id)
        if issuer is None:
            raise _StepFailed("ERR_ISSUER_INVALID")

        client = self._system_client(issuer)
        try:
            self._run_with_client(job, client)
        finally:
            _close_client(client)

    def _system_client(self, issuer: Issuer) -> HttpClient:
        try:
            client = self._credentials.get_system_client(issuer)
        except Exception as exc:  # noqa: BLE001
            raise _StepFailed("ERR_ISSUER_INVALID", str(exc)) from exc
        if client is None:
            raise _StepFailed("ERR_ISSUER_INVALID", "system account is not connected")
        return client

    def _run_with_client(self, job: ConversionRecord, client: HttpClient) -> None:
        service = ConversionServiceClient(
            client,
            base_url=self._graph.api_base_url,
            timeout=self._graph.request_timeout_sec,
        )

        source = job.source_file
        filename = source.get_filename()
        extension = import_extension(filename)
        if extension is None:
            raise _StepFailed("ERR_MALFORMED_FILENAME", filename)

        session = self._create_upload_session(service, source, extension)
        item = self._upload(session, source, client)

        try:
            destination = self._convert_and_download(service, client, item, job.target_format)
            job.store_destination_from_path(destination)
            self._complete(job, item, destination)
        finally:
            self._delete_remote_item(service, item)

    def serve_test_document(self, fixture: str | Path | None = None) -> Path:
        """Convert the test document to PDF and return the converted file path.

        Raises ``ConversionFailedError`` with the record's errors and status
        message when the conversion fails.
        """

        fixture_path = Path(fixture or self._settings.test_fixture_path)
        job = ConversionJob(
            source_file=LocalSourceFile(fixture_path, mimetype=DOCX_MIMETYPE),
            target_format="pdf",
        )
        self.convert(job)

        if job.status is ConversionStatus.FAILED or job.destination_file is None:
            errors = dict(job.get_errors())
            errors["statusmessage"] = job.status_message
            raise ConversionFailedError("ERR_CONVERSION_FAILED", errors)
        return job.destination_file

    def _create_upload_session(
        self, service: ConversionServiceClient, source: SourceFile, extension: str
    ) -> RemoteUploadSession:
        try:
            contenthash = source.get_contenthash()
        except OSError as exc:
            raise _StepFailed("ERR_SOURCE_UNREADABLE", str(exc)) from exc

        # Namespaced per site so it never clashes with a OneDrive repository plugin.
        params = {
            "filename": remote_upload_path(
                self._settings.path_prefix,
                self._settings.site_shortname,
                contenthash,
                extension,
            ),
        }
        behaviour = {"item": {"@microsoft.graph.conflictBehavior": self._settings.conflict_behavior}}

        try:
            response = service.call("create_upload", params, json.dumps(behaviour))
        except TransportError as exc:
            raise _StepFailed("ERR_TRANSPORT", str(exc)) from exc
        except RemoteCallFailed as exc:
            raise _StepFailed("ERR_UPLOAD_PREP_FAILED", f"HTTP {exc.status}") from exc

        upload_url = response.get("uploadUrl") if isinstance(response, dict) else None
        if not upload_url:
            raise _StepFailed("ERR_UPLOAD_PREP_FAILED")
        return RemoteUploadSession(upload_url=str(upload_url))

    def _upload(self, session: RemoteUploadSession, source: SourceFile, client: HttpClient) -> RemoteItemHandle:
        try:
            size = source.get_filesize()
            mimetype = source.get_mimetype()
        except OSError as exc:
            raise _StepFailed("ERR_SOURCE_UNREADABLE", str(exc)) from exc
        headers = {
            "Content-type": mimetype,
            "Content-Range": content_range(size),
        }

        anonymous = self._anonymous_client_factory()
        try:
            # Personal accounts reject auth headers on the upload URL, work accounts need them.
            strategies = [
                UploadStrategy("anonymous", anonymous),
                UploadStrategy("authenticated", client),
            ]
            attempts: List[UploadAttempt] = []
            for strategy in strategies:
                attempt = self._attempt_upload(strategy, session.upload_url, source, headers)
                attempts.append(attempt)
                record_upload_attempt(strategy.name, "success" if attempt.item_id else "failure")
                if attempt.item_id:
                    return RemoteItemHandle(item_id=attempt.item_id)
                logger.info(
                    "Upload attempt did not return an item id",
                    extra={"strategy": strategy.name, "error": attempt.error},
                )
        finally:
            _close_client(anonymous)

        reasons = "; ".join(f"{attempt.strategy}: {attempt.error}" for attempt in attempts)
        raise _StepFailed("ERR_UPLOAD_FAILED", reasons or None)

    def _attempt_upload(
        self, strategy: UploadStrategy, upload_url: str, source: SourceFile, headers: dict[str, str]
    ) -> UploadAttempt:
        try:
            with source.get_content_stream() as stream:
                response = strategy.client.put(
                    upload_url,
                    data=stream,
                    headers=headers,
                    timeout=self._graph.request_timeout_sec,
                )
        except (ConverterError, OSError) as exc:
            return UploadAttempt(strategy=strategy.name, error=str(exc))

        if response.status_code >= 400:
            return UploadAttempt(strategy=strategy.name, error=f"HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError:
            return UploadAttempt(strategy=strategy.name, error="response is not JSON")

        item_id = payload.get("id") if isinstance(payload, dict) else None
        if not item_id:
            return UploadAttempt(strategy=strategy.name, error="response has no id")
        return UploadAttempt(strategy=strategy.name, item_id=str(item_id))

    def _convert_and_download(
        self,
        service: ConversionServiceClient,
        client: HttpClient,
        item: RemoteItemHandle,
        target_format: str,
    ) -> Path:
        params = {"itemid": item.item_id, "format": target_format}
        try:
            headers = service.call("convert", params)
        except TransportError as exc:
            raise _StepFailed("ERR_TRANSPORT", str(exc)) from exc
        except RemoteCallFailed as exc:
            raise _StepFailed("ERR_NO_DOWNLOAD_URL", f"HTTP {exc.status}") from exc

        location = find_header(headers, "Location")
        if not location:
            raise _StepFailed("ERR_NO_DOWNLOAD_URL")

        try:
            source_url = normalize_url(location)
        except ValueError as exc:
            raise _StepFailed("ERR_DOWNLOAD_FAILED", str(exc)) from exc

        try:
            download_to = self._temp_dirs.make_request_directory() / f"{item.item_id}.{target_format}"
        except OSError as exc:
            raise _StepFailed("ERR_DOWNLOAD_FAILED", str(exc)) from exc
        success = client.download(
            source_url,
            download_to,
            timeout=self._settings.download_timeout_sec,
            max_redirects=self._settings.max_redirects,
        )
        if not success:
            raise _StepFailed("ERR_DOWNLOAD_FAILED")
        return download_to

    def _complete(self, job: ConversionRecord, item: RemoteItemHandle, destination: Path) -> None:
        job.set_status(ConversionStatus.COMPLETE)
        job.set_status_message(None)
        record_conversion_completed(ConversionStatus.COMPLETE.value)
        logger.info(
            "Conversion complete",
            extra={"item_id": item.item_id, "destination": str(destination)},
        )
        try:
            job.update()
        except Exception:  # noqa: BLE001
            logger.exception("Failed to persist completed conversion", extra={"item_id": item.item_id})

    def _delete_remote_item(self, service: ConversionServiceClient, item: RemoteItemHandle) -> None:
        try:
            service.call("delete", {"itemid": item.item_id})
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to delete uploaded item",
                extra={"item_id": item.item_id, "error": str(exc)},
            )

    def _fail(self, job: ConversionRecord, code: str, detail: str | None = None) -> ConversionRecord:
        message = message_for(code, detail=detail)
        job.set_status(ConversionStatus.FAILED)
        job.set_status_message(message)
        record_conversion_completed(ConversionStatus.FAILED.value)
        logger.warning("Conversion failed", extra={"error_code": code, "detail": detail})
        return job

    def _default_anonymous_client(self) -> HttpClient:
        return HttpTransport(timeout=self._graph.request_timeout_sec, verify=self._graph.verify_tls)


def create_converter(
    settings: Settings | None = None,
    *,
    credentials: CredentialProvider | None = None,
    temp_dirs: TempDirProvider | None = None,
) -> OneDriveConverter:
    """Build a converter from settings, defaulting to the static token provider."""

    settings = settings or get_settings()
    if credentials is None:
        credentials = StaticCredentialProvider.from_settings(settings.conversion, settings.graph)
    return OneDriveConverter(
        settings.conversion,
        settings.graph,
        credentials,
        temp_dirs=temp_dirs,
    )


def _close_client(client: HttpClient) -> None:
    try:
        client.close()
    except Exception as exc:  # noqa: BLE001
        logger.warning("Failed to close HTTP client", extra={"error": str(exc)})
