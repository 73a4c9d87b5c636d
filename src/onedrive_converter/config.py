"""Centralized settings and configuration loading utilities."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SUPPORTED_FORMATS: Dict[str, List[str]] = {
    "pdf": [
        "csv",
        "doc",
        "docx",
        "odp",
        "ods",
        "odt",
        "pot",
        "potm",
        "potx",
        "pps",
        "ppsx",
        "ppsxm",
        "ppt",
        "pptm",
        "pptx",
        "rtf",
        "xls",
        "xlsx",
    ],
}

DEFAULT_TEST_FIXTURE = Path(__file__).resolve().parent / "fixtures" / "conversion_test.docx"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    log_dir: str = "./logs"
    max_log_file_size_mb: int = 100
    backup_count: int = 7


class GraphSettings(BaseModel):
    api_base_url: str = "https://graph.microsoft.com/v1.0/"
    request_timeout_sec: float = Field(60, gt=0)
    verify_tls: bool = True


class ConversionSettings(BaseModel):
    issuer_id: str | None = None
    access_token: str | None = None
    site_shortname: str = "site"
    path_prefix: str = "_fileconverter_onedrive_"
    conflict_behavior: str = "rename"
    download_timeout_sec: float = Field(15, gt=0)
    max_redirects: int = Field(5, ge=0)
    work_dir: str = "/tmp/onedrive_converter"
    supported_formats: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_SUPPORTED_FORMATS.items()}
    )
    test_fixture_path: str = str(DEFAULT_TEST_FIXTURE)


class MonitoringSettings(BaseModel):
    enabled: bool = False
    prometheus_port: int = 9092


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="ONEDRIVE_", env_nested_delimiter="__", extra="allow")

    service_name: str = "onedrive-converter"
    environment: str = "dev"

    logging: LoggingSettings = LoggingSettings()
    graph: GraphSettings = GraphSettings()
    conversion: ConversionSettings = ConversionSettings()
    monitoring: MonitoringSettings = MonitoringSettings()

    @staticmethod
    def load_yaml_config_file(file_path: str | Path | None) -> Dict[str, Any]:
        if not file_path:
            return {}
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        import yaml  # lazy import for optional dependency

        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
        if not isinstance(data, dict):
            raise ValueError("Configuration YAML must produce a mapping")
        return data

    @classmethod
    def from_source(cls, *, config_file: str | None = None, **overrides: Any) -> "Settings":
        base_data = cls.load_yaml_config_file(config_file)
        base_data.update(overrides)
        return cls(**base_data)


@lru_cache
def get_settings() -> Settings:
    cfg_file = os.getenv("ONEDRIVE_CONFIG_FILE")
    if cfg_file:
        return Settings.from_source(config_file=cfg_file)

    default_path = Path.cwd() / "config" / "settings.yaml"
    if default_path.exists():
        return Settings.from_source(config_file=str(default_path))

    return Settings()


def reload_settings() -> None:
    get_settings.cache_clear()
