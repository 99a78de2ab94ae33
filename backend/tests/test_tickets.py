"""
Tests for the ticket payload format, QR rendering and ticket endpoints.
"""

import asyncio
import base64

import pytest
from httpx import AsyncClient
from sqlalchemy import select, func

from app.models.ticket import Ticket
from app.services.errors import MalformedTicket
from app.services.ticket_codec import TicketPayload, render_ticket_image

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_payload_wire_format():
    payload = TicketPayload(registration_id=12, event_id=3, user_email="ann@example.com", instance=0)
    assert payload.encode() == "registrationId:12;eventId:3;userEmail:ann@example.com;instance:0"


def test_payload_parse_round_trip():
    payload = TicketPayload(registration_id=981, event_id=77, user_email="o'brien+vip@example.com", instance=2)
    assert TicketPayload.parse(payload.encode()) == payload


def test_payload_parse_ignores_surrounding_whitespace():
    parsed = TicketPayload.parse("  registrationId:5;eventId:9;userEmail:zoe@example.com;instance:0\n")
    assert parsed == TicketPayload(5, 9, "zoe@example.com", 0)


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "   ",
        "hello world",
        "registrationId:5;eventId:9;userEmail:zoe@example.com",
        "registrationId:5;eventId:9;userEmail:zoe@example.com;instance:0;extra:1",
        "eventId:9;registrationId:5;userEmail:zoe@example.com;instance:0",
        "registrationId:five;eventId:9;userEmail:zoe@example.com;instance:0",
        "registrationId:-5;eventId:9;userEmail:zoe@example.com;instance:0",
        "registrationId:5;eventId:9;userEmail:;instance:0",
        "registrationId=5;eventId:9;userEmail:zoe@example.com;instance:0",
        "registrationid:5;eventId:9;userEmail:zoe@example.com;instance:0",
    ],
)
def test_payload_parse_rejects_malformed(raw):
    with pytest.raises(MalformedTicket):
        TicketPayload.parse(raw)


def test_render_ticket_image_is_png():
    image = render_ticket_image("registrationId:1;eventId:1;userEmail:ann@example.com;instance:0")
    assert image.startswith(PNG_SIGNATURE)


async def _register(client: AsyncClient, event_id: int, email: str) -> dict:
    response = await client.post(f"/api/v1/events/{event_id}/register", json={"userEmail": email})
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_generate_ticket(client: AsyncClient, test_event):
    registration = await _register(client, test_event.id, "mia@example.com")

    response = await client.post(
        f"/api/v1/events/{test_event.id}/generateQR",
        json={"registrationId": registration["id"]},
    )
    assert response.status_code == 200
    ticket = response.json()
    assert ticket["registrationId"] == registration["id"]
    assert ticket["eventId"] == test_event.id
    assert ticket["userEmail"] == "mia@example.com"
    assert ticket["instance"] == 0
    assert ticket["payload"] == (
        f"registrationId:{registration['id']};eventId:{test_event.id};"
        "userEmail:mia@example.com;instance:0"
    )
    assert base64.b64decode(ticket["imageBase64"]).startswith(PNG_SIGNATURE)


@pytest.mark.asyncio
async def test_generate_ticket_is_idempotent(client: AsyncClient, test_event, db_session):
    registration = await _register(client, test_event.id, "noah@example.com")

    first = await client.post(
        f"/api/v1/events/{test_event.id}/generateQR",
        json={"registrationId": registration["id"]},
    )
    second = await client.post(
        f"/api/v1/events/{test_event.id}/generateQR",
        json={"registrationId": registration["id"]},
    )
    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()

    count = await db_session.scalar(select(func.count()).select_from(Ticket))
    assert count == 1


@pytest.mark.asyncio
async def test_generate_ticket_unknown_registration(client: AsyncClient, test_event):
    response = await client.post(
        f"/api/v1/events/{test_event.id}/generateQR",
        json={"registrationId": 424242},
    )
    assert response.status_code == 404
    assert response.json()["code"] == "REGISTRATION_NOT_FOUND"


@pytest.mark.asyncio
async def test_generate_ticket_for_other_events_registration(client: AsyncClient, test_event, other_event):
    registration = await _register(client, test_event.id, "olga@example.com")

    response = await client.post(
        f"/api/v1/events/{other_event.id}/generateQR",
        json={"registrationId": registration["id"]},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_tickets_for_user(client: AsyncClient, test_event, other_event):
    mine = await _register(client, test_event.id, "pat@example.com")
    theirs = await _register(client, test_event.id, "quinn@example.com")
    elsewhere = await _register(client, other_event.id, "pat@example.com")
    for event_id, registration in ((test_event.id, mine), (test_event.id, theirs), (other_event.id, elsewhere)):
        await client.post(
            f"/api/v1/events/{event_id}/generateQR",
            json={"registrationId": registration["id"]},
        )

    response = await client.get(
        f"/api/v1/events/{test_event.id}/event-qrcodes",
        params={"userEmail": "PAT@example.com"},
    )
    assert response.status_code == 200
    tickets = response.json()
    assert len(tickets) == 1
    assert tickets[0]["registrationId"] == mine["id"]
    assert tickets[0]["imageBase64"]


@pytest.mark.asyncio
async def test_list_tickets_none_issued(client: AsyncClient, test_event):
    response = await client.get(
        f"/api/v1/events/{test_event.id}/event-qrcodes",
        params={"userEmail": "rue@example.com"},
    )
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_lookup_ticket_by_scanned_text(client: AsyncClient, test_event):
    registration = await _register(client, test_event.id, "sam@example.com")
    issued = await client.post(
        f"/api/v1/events/{test_event.id}/generateQR",
        json={"registrationId": registration["id"]},
    )
    scanned = issued.json()["payload"]

    response = await client.get(
        f"/api/v1/events/{test_event.id}/qr-registration",
        params={"registrationHash": f" {scanned} "},
    )
    assert response.status_code == 200
    assert response.json()["isRegistered"] is True
    assert response.json()["data"]["registrationId"] == registration["id"]

    response = await client.get(
        f"/api/v1/events/{test_event.id}/qr-registration",
        params={"registrationHash": "registrationId:1;eventId:1;userEmail:x@example.com;instance:0"},
    )
    assert response.json() == {"isRegistered": False, "data": None}


@pytest.mark.asyncio
async def test_generate_ticket_times_out(client: AsyncClient, test_event, monkeypatch, db_session):
    registration = await _register(client, test_event.id, "tess@example.com")

    async def slow_issue(*args, **kwargs):
        await asyncio.sleep(5)

    monkeypatch.setattr("app.api.routes.tickets.issue_ticket", slow_issue)

    response = await client.post(
        f"/api/v1/events/{test_event.id}/generateQR",
        json={"registrationId": registration["id"]},
        headers={"X-Request-Timeout": "0.05"},
    )
    assert response.status_code == 504
    assert response.json()["code"] == "REQUEST_TIMEOUT"

    count = await db_session.scalar(select(func.count()).select_from(Ticket))
    assert count == 0
