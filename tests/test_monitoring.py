"""Unit tests for conversion metrics."""

from __future__ import annotations

from onedrive_converter.models import ConversionJob
from onedrive_converter.monitoring import (
    ensure_metrics_server,
    record_conversion_completed,
    record_remote_call,
    record_upload_attempt,
)


class _CounterStub:
    def __init__(self) -> None:
        self.calls: list[dict[str, str]] = []
        self.count = 0

    def labels(self, **kwargs):
        self.calls.append(kwargs)
        return self

    def inc(self) -> None:
        self.count += 1


def test_ensure_metrics_server_runs_once(monkeypatch):
    starts: list[int] = []
    monkeypatch.setattr("onedrive_converter.monitoring._metrics_started", False)
    monkeypatch.setattr("onedrive_converter.monitoring.start_http_server", lambda port: starts.append(port))

    ensure_metrics_server(9999)
    ensure_metrics_server(9999)

    assert starts == [9999]


def test_record_metrics_increment(monkeypatch):
    completed = _CounterStub()
    calls = _CounterStub()
    uploads = _CounterStub()
    monkeypatch.setattr("onedrive_converter.monitoring.CONVERSIONS_COMPLETED", completed)
    monkeypatch.setattr("onedrive_converter.monitoring.REMOTE_CALLS", calls)
    monkeypatch.setattr("onedrive_converter.monitoring.UPLOAD_ATTEMPTS", uploads)

    record_conversion_completed("complete")
    record_remote_call("convert", "success")
    record_upload_attempt("anonymous", "failure")

    assert completed.calls == [{"status": "complete"}]
    assert calls.calls == [{"operation": "convert", "outcome": "success"}]
    assert uploads.calls == [{"strategy": "anonymous", "outcome": "failure"}]
    assert completed.count == calls.count == uploads.count == 1


def test_conversion_records_metrics(monkeypatch, build_converter, anon_client, make_response, source_file):
    completed: list[str] = []
    uploads: list[tuple[str, str]] = []
    calls: list[tuple[str, str]] = []
    monkeypatch.setattr("onedrive_converter.converter.record_conversion_completed", completed.append)
    monkeypatch.setattr(
        "onedrive_converter.converter.record_upload_attempt", lambda s, o: uploads.append((s, o))
    )
    monkeypatch.setattr("onedrive_converter.rest.record_remote_call", lambda op, o: calls.append((op, o)))
    anon_client.routes[("PUT", "https://upload.test/session/abc")] = make_response(403)

    build_converter().convert(ConversionJob(source_file=source_file, target_format="pdf"))

    assert completed == ["complete"]
    assert uploads == [("anonymous", "failure"), ("authenticated", "success")]
    assert calls == [("create_upload", "success"), ("convert", "success"), ("delete", "success")]
