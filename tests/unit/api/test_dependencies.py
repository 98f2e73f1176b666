"""Unit tests for API dependency factories."""

from unittest.mock import AsyncMock
from uuid import uuid4

from api.v1 import dependencies
from core.config import settings


def test_discovery_coordinator_uses_configured_poll_interval(monkeypatch):
    directory, likes = AsyncMock(), AsyncMock()
    monkeypatch.setattr(dependencies, "get_directory_service", lambda: directory)
    monkeypatch.setattr(dependencies, "get_like_service", lambda: likes)

    coordinator = dependencies.create_discovery_coordinator(uuid4(), "session-1")

    assert coordinator.poll_interval_s == settings.discovery_poll_interval_s
    assert not coordinator.running
    assert coordinator.state.candidates == []
