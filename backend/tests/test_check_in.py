"""
Tests for door check-in: scanning, manual check-in and rejections.
"""

from datetime import datetime

import pytest
from httpx import AsyncClient
from prometheus_client import REGISTRY


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def _register(client: AsyncClient, event_id: int, email: str) -> dict:
    response = await client.post(f"/api/v1/events/{event_id}/register", json={"userEmail": email})
    assert response.status_code == 201
    return response.json()


async def _ticket_payload(client: AsyncClient, event_id: int, registration_id: int) -> str:
    response = await client.post(
        f"/api/v1/events/{event_id}/generateQR",
        json={"registrationId": registration_id},
    )
    assert response.status_code == 200
    return response.json()["payload"]


async def _scan(client: AsyncClient, event_id: int, scanned: str):
    return await client.patch(
        f"/api/v1/events/{event_id}/qr-check-in",
        json={"registrationHash": scanned},
    )


@pytest.mark.asyncio
async def test_single_seat_event_door_flow(client: AsyncClient, single_seat_event):
    """One seat: the first registrant gets in once, the second never gets a seat."""
    ann = await _register(client, single_seat_event.id, "ann@example.com")
    assert ann["paymentStatus"] == "paid"

    response = await client.post(
        f"/api/v1/events/{single_seat_event.id}/register",
        json={"userEmail": "ben@example.com"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "CAPACITY_EXCEEDED"

    scanned = await _ticket_payload(client, single_seat_event.id, ann["id"])

    first = await _scan(client, single_seat_event.id, scanned)
    assert first.status_code == 200
    assert first.json()["userEmail"] == "ann@example.com"
    assert first.json()["registrationId"] == ann["id"]

    second = await _scan(client, single_seat_event.id, scanned)
    assert second.status_code == 409
    body = second.json()
    assert body["code"] == "ALREADY_CHECKED_IN"
    assert body["registrationId"] == ann["id"]
    assert body["userEmail"] == "ann@example.com"
    assert _parse_timestamp(body["checkedInAt"]) == _parse_timestamp(first.json()["checkedInAt"])


@pytest.mark.asyncio
async def test_scan_malformed_code(client: AsyncClient, test_event):
    response = await _scan(client, test_event.id, "https://example.com/not-a-ticket")
    assert response.status_code == 400
    assert response.json()["code"] == "MALFORMED_TICKET"


@pytest.mark.asyncio
async def test_scan_empty_code(client: AsyncClient, test_event):
    response = await _scan(client, test_event.id, "")
    assert response.status_code == 400
    assert response.json()["code"] == "MALFORMED_TICKET"


@pytest.mark.asyncio
async def test_scan_unknown_registration(client: AsyncClient, test_event):
    response = await _scan(
        client,
        test_event.id,
        f"registrationId:9999;eventId:{test_event.id};userEmail:ghost@example.com;instance:0",
    )
    assert response.status_code == 404
    assert response.json()["code"] == "UNKNOWN_TICKET"


@pytest.mark.asyncio
async def test_scan_tampered_payload(client: AsyncClient, test_event):
    registration = await _register(client, test_event.id, "cleo@example.com")

    response = await _scan(
        client,
        test_event.id,
        f"registrationId:{registration['id']};eventId:{test_event.id};"
        "userEmail:mallory@example.com;instance:0",
    )
    assert response.status_code == 404
    assert response.json()["code"] == "UNKNOWN_TICKET"


@pytest.mark.asyncio
async def test_scan_ticket_at_wrong_event(client: AsyncClient, test_event, other_event):
    registration = await _register(client, other_event.id, "drew@example.com")
    scanned = await _ticket_payload(client, other_event.id, registration["id"])

    response = await _scan(client, test_event.id, scanned)
    assert response.status_code == 409
    assert response.json()["code"] == "WRONG_EVENT"
    assert response.json()["ticketEventId"] == other_event.id

    # The ticket is still good at its own door
    response = await _scan(client, other_event.id, scanned)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_scan_at_unknown_event(client: AsyncClient):
    labels = {"outcome": "event_not_found"}
    before = REGISTRY.get_sample_value("check_in_attempts_total", labels) or 0.0

    response = await _scan(
        client,
        99999,
        "registrationId:1;eventId:99999;userEmail:eve@example.com;instance:0",
    )
    assert response.status_code == 404
    assert response.json()["code"] == "EVENT_NOT_FOUND"

    # Counted like every other rejected scan
    assert REGISTRY.get_sample_value("check_in_attempts_total", labels) == before + 1


@pytest.mark.asyncio
async def test_manual_check_in(client: AsyncClient, test_event):
    registration = await _register(client, test_event.id, "fay@example.com")

    response = await client.patch(
        f"/api/v1/events/{test_event.id}/check-in",
        json={"registrationId": registration["id"]},
    )
    assert response.status_code == 200
    assert response.json()["userEmail"] == "fay@example.com"

    # Scanning afterwards sees the manual check-in
    scanned = await _ticket_payload(client, test_event.id, registration["id"])
    response = await _scan(client, test_event.id, scanned)
    assert response.status_code == 409
    assert response.json()["code"] == "ALREADY_CHECKED_IN"


@pytest.mark.asyncio
async def test_manual_check_in_unknown_registration(client: AsyncClient, test_event):
    response = await client.patch(
        f"/api/v1/events/{test_event.id}/check-in",
        json={"registrationId": 31337},
    )
    assert response.status_code == 404
    assert response.json()["code"] == "REGISTRATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_registration_list_shows_check_ins(client: AsyncClient, test_event):
    arrived = await _register(client, test_event.id, "gus@example.com")
    await _register(client, test_event.id, "hal@example.com")

    scanned = await _ticket_payload(client, test_event.id, arrived["id"])
    checked = await _scan(client, test_event.id, scanned)
    assert checked.status_code == 200

    response = await client.get(f"/api/v1/events/{test_event.id}/registrationlist")
    rows = {r["userEmail"]: r for r in response.json()}
    assert rows["gus@example.com"]["checkedIn"] is True
    assert _parse_timestamp(rows["gus@example.com"]["checkedInAt"]) == _parse_timestamp(
        checked.json()["checkedInAt"]
    )
    assert rows["hal@example.com"]["checkedIn"] is False
