"""Shared fixtures for unit tests."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from fakes import FakeGateway, FakeStore


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def mock_kopf_event():
    """Capture Kubernetes events instead of posting them."""
    with patch("acm_import_operator.utils.events.kopf.event") as mock_event:
        yield mock_event
