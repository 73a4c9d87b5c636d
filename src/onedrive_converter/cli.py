"""Command line entry point for checking and running OneDrive conversions."""

from __future__ import annotations

import argparse
import shutil
from pathlib import Path

from .config import get_settings
from .converter import OneDriveConverter, create_converter
from .errors import ConversionFailedError
from .logging import configure_logging
from .models import ConversionJob, ConversionStatus, LocalSourceFile
from .monitoring import ensure_metrics_server


def handle_supported(converter: OneDriveConverter, args: argparse.Namespace) -> int:
    print(converter.describe_supported_conversions().strip())
    return 0


def handle_check(converter: OneDriveConverter, args: argparse.Namespace) -> int:
    if converter.supports(args.source, args.target):
        print(f"{args.source} => {args.target} is supported.")
        return 0
    print(f"{args.source} => {args.target} is not supported.")
    return 1


def handle_status(converter: OneDriveConverter, args: argparse.Namespace) -> int:
    if converter.is_available():
        print("OneDrive converter is available.")
        return 0
    print("OneDrive converter is not available: check issuer id and access token.")
    return 1


def _deliver(result: Path, output: str | None) -> Path:
    if not output:
        return result
    target = Path(output)
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(result, target)
    return target


def handle_convert(converter: OneDriveConverter, args: argparse.Namespace) -> int:
    source = Path(args.file)
    if not source.exists():
        raise SystemExit(f"Input file not found: {source}")

    job = ConversionJob(source_file=LocalSourceFile(source), target_format=args.format)
    converter.convert(job)
    if job.status is not ConversionStatus.COMPLETE or job.destination_file is None:
        print(f"Conversion failed: {job.status_message}")
        return 1

    print(f"Converted {source.name} -> {_deliver(job.destination_file, args.output)}")
    return 0


def handle_test_document(converter: OneDriveConverter, args: argparse.Namespace) -> int:
    try:
        result = converter.serve_test_document()
    except ConversionFailedError as exc:
        print(f"Test conversion failed: {exc.to_dict()}")
        return 1
    print(f"Test document converted -> {_deliver(result, args.output)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Convert documents using OneDrive.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    supported_parser = subparsers.add_parser("supported", help="List supported conversions")
    supported_parser.set_defaults(func=handle_supported)

    check_parser = subparsers.add_parser("check", help="Check whether a conversion is supported")
    check_parser.add_argument("source", help="Source file extension, e.g. docx")
    check_parser.add_argument("target", help="Target format, e.g. pdf")
    check_parser.set_defaults(func=handle_check)

    status_parser = subparsers.add_parser("status", help="Report whether the converter is usable")
    status_parser.set_defaults(func=handle_status)

    convert_parser = subparsers.add_parser("convert", help="Convert a local file")
    convert_parser.add_argument("file", help="Path of the file to convert")
    convert_parser.add_argument("--format", default="pdf", help="Target format (default: %(default)s)")
    convert_parser.add_argument("--output", help="Copy the converted file to this path")
    convert_parser.set_defaults(func=handle_convert)

    test_parser = subparsers.add_parser("test-document", help="Convert the bundled test document")
    test_parser.add_argument("--output", help="Copy the converted PDF to this path")
    test_parser.set_defaults(func=handle_test_document)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.logging, to_file=False)
    if settings.monitoring.enabled:
        ensure_metrics_server(settings.monitoring.prometheus_port)

    return args.func(create_converter(settings), args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
