"""Pytest package configuration for shared test artifacts."""

from __future__ import annotations

import os
from pathlib import Path

_WORK_ROOT = Path(__file__).resolve().parent / "artifacts" / "work"

os.environ.setdefault("ONEDRIVE_CONVERSION__WORK_DIR", str(_WORK_ROOT))
