"""Shared pytest fixtures for config-governance tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from config_governance.observability import shutdown_logging

REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    shutdown_logging()
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def sample_config_dir() -> Path:
    """Checked-in governed documents under ``config/``."""
    return REPO_ROOT / "config"
