"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags rush        # Registration rush on a small event
  locust -f locustfile.py --tags door        # Double scans at the door
  locust -f locustfile.py --tags throughput  # Event list cache
  locust -f locustfile.py --tags edge        # Bad input
  locust -f locustfile.py                    # All tests
"""

import random
import threading
from datetime import datetime, timezone, timedelta

from locust import HttpUser, task, between, tag, events

RUSH_SEATS = 10

# Shared state
EVENT_IDS = []
RUSH_EVENT_ID = None
DOOR_EVENT_ID = None
DOOR_TICKETS = []
_setup_lock = threading.Lock()


def random_email(prefix: str = "load") -> str:
    return f"{prefix}_{random.randint(10000, 999999)}@test.com"


def event_body(title: str, capacity: int, days_ahead: int = 30) -> dict:
    start = datetime.now(timezone.utc) + timedelta(days=days_ahead)
    return {
        "title": title,
        "description": "Load test event",
        "location": "Test Venue",
        "startTime": start.isoformat(),
        "endTime": (start + timedelta(hours=2)).isoformat(),
        "capacity": capacity,
        "cost": 0,
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print(f"SETUP: rush event has {RUSH_SEATS} seats")
    print("=" * 60)


class RegistrationRushUser(HttpUser):
    """
    TEST 1: Registration rush - many users, 10 seats

    Run: locust -f locustfile.py --tags rush -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM registrations WHERE event_id = X;
    Should be exactly 10
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global RUSH_EVENT_ID
        with _setup_lock:
            if RUSH_EVENT_ID is None:
                resp = self.client.post("/api/v1/events/", json=event_body("Rush Event", RUSH_SEATS))
                if resp.status_code == 201:
                    RUSH_EVENT_ID = resp.json()["id"]
                    print(f"\n✓ Created event {RUSH_EVENT_ID} with {RUSH_SEATS} seats\n")
        self.email = random_email("rush")

    @tag("rush")
    @task
    def register(self):
        """Everyone fights for the same seats; retries by the same user are duplicates."""
        if RUSH_EVENT_ID is None:
            return

        with self.client.post(
            f"/api/v1/events/{RUSH_EVENT_ID}/register",
            json={"userEmail": self.email},
            name="/api/v1/events/{id}/register [rush]",
            catch_response=True,
        ) as resp:
            code = resp.json().get("code") if resp.status_code != 201 else None
            if resp.status_code == 201:
                resp.success()
            elif code in ("CAPACITY_EXCEEDED", "ALREADY_REGISTERED"):
                resp.success()  # Expected outcomes
            else:
                resp.failure(f"Unexpected: {resp.status_code} {code}")


class DoorScannerUser(HttpUser):
    """
    TEST 2: Door scanners - several scanners read the same tickets

    Run: locust -f locustfile.py --tags door -u 20 -r 10 --run-time 30s

    Each ticket must be admitted once; every other scan answers ALREADY_CHECKED_IN.
    """
    wait_time = between(0, 0.2)

    def on_start(self):
        global DOOR_EVENT_ID
        with _setup_lock:
            if DOOR_EVENT_ID is None:
                resp = self.client.post("/api/v1/events/", json=event_body("Door Event", 0))
                if resp.status_code != 201:
                    return
                DOOR_EVENT_ID = resp.json()["id"]
                for _ in range(50):
                    reg = self.client.post(
                        f"/api/v1/events/{DOOR_EVENT_ID}/register",
                        json={"userEmail": random_email("door")},
                    )
                    if reg.status_code != 201:
                        continue
                    ticket = self.client.post(
                        f"/api/v1/events/{DOOR_EVENT_ID}/generateQR",
                        json={"registrationId": reg.json()["id"]},
                    )
                    if ticket.status_code == 200:
                        DOOR_TICKETS.append(ticket.json()["payload"])

    @tag("door")
    @task
    def scan(self):
        if DOOR_EVENT_ID is None or not DOOR_TICKETS:
            return

        with self.client.patch(
            f"/api/v1/events/{DOOR_EVENT_ID}/qr-check-in",
            json={"registrationHash": random.choice(DOOR_TICKETS)},
            name="/api/v1/events/{id}/qr-check-in",
            catch_response=True,
        ) as resp:
            if resp.status_code == 200:
                resp.success()
            elif resp.status_code == 409 and resp.json().get("code") == "ALREADY_CHECKED_IN":
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false, run again

    Compare avg response time and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        page = random.randint(1, 5)
        resp = self.client.get(
            f"/api/v1/events/?page={page}&pageSize=20",
            name="/api/v1/events/ [cached]",
        )
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, allowed):
        if resp.status_code in allowed:
            resp.success()
        else:
            resp.failure(f"Expected {allowed}, got {resp.status_code}")

    @tag("edge")
    @task
    def register_unknown_event(self):
        with self.client.post(
            "/api/v1/events/999999/register",
            json={"userEmail": random_email()},
            catch_response=True,
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def register_bad_email(self):
        with self.client.post(
            "/api/v1/events/1/register",
            json={"userEmail": "not-an-email"},
            catch_response=True,
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post(
            "/api/v1/events/1/register",
            data="not json at all",
            catch_response=True,
        ) as resp:
            self._expect(resp, [400])

    @tag("edge")
    @task
    def scan_garbage(self):
        with self.client.patch(
            "/api/v1/events/1/qr-check-in",
            json={"registrationHash": "https://example.com/?q=1"},
            catch_response=True,
        ) as resp:
            self._expect(resp, [400, 404])

    @tag("edge")
    @task
    def scan_unknown_ticket(self):
        with self.client.patch(
            "/api/v1/events/1/qr-check-in",
            json={"registrationHash": "registrationId:999999;eventId:1;userEmail:nobody@test.com;instance:0"},
            catch_response=True,
        ) as resp:
            self._expect(resp, [404])


class RealisticUser(HttpUser):
    """
    TEST 5: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing
      - Some registrations and ticket downloads
      - Rare creates
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.email = random_email("visitor")

    @task(50)
    def browse_events(self):
        resp = self.client.get("/api/v1/events/?page=1&pageSize=20&upcomingOnly=true")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @task(20)
    def view_event(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @task(10)
    def register_and_get_ticket(self):
        if not EVENT_IDS:
            return
        event_id = random.choice(EVENT_IDS)
        resp = self.client.post(
            f"/api/v1/events/{event_id}/register",
            json={"userEmail": self.email},
            name="/api/v1/events/{id}/register",
        )
        if resp.status_code == 201:
            self.client.post(
                f"/api/v1/events/{event_id}/generateQR",
                json={"registrationId": resp.json()["id"]},
                name="/api/v1/events/{id}/generateQR",
            )

    @task(3)
    def create_event(self):
        resp = self.client.post(
            "/api/v1/events/",
            json=event_body(f"Event {random.randint(1, 10000)}", random.randint(10, 500), random.randint(1, 90)),
        )
        if resp.status_code == 201:
            EVENT_IDS.append(resp.json()["id"])
