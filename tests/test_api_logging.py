from __future__ import annotations

import json
import logging

import httpx
import pytest

from apps.api.main import app


def _events(caplog: pytest.LogCaptureFixture) -> list[dict[str, object]]:
    return [json.loads(record.message) for record in caplog.records if record.name == "maskops.api"]


@pytest.mark.anyio
async def test_api_logs_request_id_for_success(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="maskops.api")

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.post("/v1/format", json={"pattern": "00", "value": "12"})

    assert response.status_code == 200
    request_id = response.headers["X-Maskops-Request-Id"]
    events = [event for event in _events(caplog) if event["request_id"] == request_id]
    assert [event["event"] for event in events] == ["start", "done"]
    assert events[0]["route"] == "format"
    assert events[1]["status_code"] == 200
    assert isinstance(events[1]["total_ms"], int)


@pytest.mark.anyio
async def test_api_logs_error_code_for_failure(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="maskops.api")

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.post("/v1/format", json={"pattern": "--"})

    assert response.status_code == 400
    request_id = response.headers["X-Maskops-Request-Id"]
    errors = [
        event
        for event in _events(caplog)
        if event["request_id"] == request_id and event["event"] == "error"
    ]
    assert len(errors) == 1
    assert errors[0]["error_code"] == "INVALID_PATTERN"
    assert errors[0]["status_code"] == 400
