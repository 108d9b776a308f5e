"""Shared fixtures for the IndexSense test suite."""

from __future__ import annotations

import pytest

from indexsense.config import reset_config


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch: pytest.MonkeyPatch):
    """Every test starts from default configuration."""
    for name in (
        "INDEXSENSE_CONFIG_FILE",
        "INDEXSENSE_MAX_SUBQUERY_DEPTH",
        "INDEXSENSE_SCAN_EXTENSIONS",
        "INDEXSENSE_SKIP_DIRS",
        "INDEXSENSE_OUTPUT_DIR",
        "INDEXSENSE_QUOTE_IDENTIFIERS",
        "INDEXSENSE_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def task_columns() -> list[str]:
    """Columns of a multi-tenant task table."""
    return ["id", "tenant_id", "status", "priority", "created_at"]


@pytest.fixture
def user_columns() -> list[str]:
    """Columns of a users table."""
    return ["id", "email", "username", "status", "deleted_at", "created_at"]
