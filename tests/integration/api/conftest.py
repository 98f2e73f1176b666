"""Fixtures for API integration tests."""

from collections.abc import Awaitable, Callable
from typing import Any

import pytest
from httpx import AsyncClient

from domain.entities.event import Event


@pytest.fixture
def join(client: AsyncClient, event: Event) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Join the running event; returns the joined payload plus session headers."""

    async def factory(**profile: Any) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "first_name": "Alex",
            "age": 25,
            "gender_identity": "woman",
            "interested_in": "everyone",
        }
        fields.update(profile)
        response = await client.post(
            "/api/v1/sessions/join",
            json={"event_code": event.event_code, "profile": fields},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        data["headers"] = {
            "X-Event-Id": data["event_id"],
            "X-Session-Id": data["session_id"],
        }
        return data

    return factory
