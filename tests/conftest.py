# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from collections.abc import Generator
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from edutransfer.core.config import TransferSettings, clear_settings_cache
from edutransfer.infrastructure.database.models import TransferStatus
from edutransfer.infrastructure.notifications import reset_transfer_notifier
from edutransfer.utils.datetime import days_from_now, utc_now


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (uses a database)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Mark tests by the directory they live in."""
    for item in items:
        parts = item.path.parts
        if "unit" in parts:
            item.add_marker(pytest.mark.unit)
        elif "integration" in parts:
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep cached settings and the notifier singleton from leaking between tests."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.delenv("SMTP_HOST", raising=False)
    clear_settings_cache()
    reset_transfer_notifier()
    yield
    clear_settings_cache()
    reset_transfer_notifier()


@pytest.fixture
def transfer_settings() -> TransferSettings:
    """Provide transfer settings with defaults."""
    return TransferSettings()


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def origin_school_id() -> str:
    """Provide the id of the school a student leaves."""
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def destination_school_id() -> str:
    """Provide the id of the school a student joins."""
    return "550e8400-e29b-41d4-a716-446655440001"


@pytest.fixture
def sample_student_id() -> str:
    """Provide a sample student ID for testing."""
    return "550e8400-e29b-41d4-a716-446655440002"


@pytest.fixture
def make_transfer(origin_school_id, sample_student_id):
    """Build an in-memory transfer stand-in for guard tests."""

    def _make(**overrides) -> MagicMock:
        transfer = MagicMock()
        transfer.id = str(uuid4())
        transfer.student_id = sample_student_id
        transfer.from_school_id = origin_school_id
        transfer.to_school_id = None
        transfer.tac = "TAC-ABCDEFGH-1234"
        transfer.tac_generated_at = utc_now()
        transfer.tac_expires_at = days_from_now(30)
        transfer.tac_used_at = None
        transfer.tac_used_by = None
        transfer.status = TransferStatus.PENDING
        for key, value in overrides.items():
            setattr(transfer, key, value)
        return transfer

    return _make
