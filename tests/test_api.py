from __future__ import annotations

from massage_pos.broadcast import RedisBoardSink, serialize_snapshot
from tests.utils import FOOT, OIL, THAI


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "healthy"}


def test_roster_endpoints(client) -> None:
    therapists = client.get("/therapists").json()
    assert [t["name"] for t in therapists] == ["Lisa", "Sarah", "Emma", "Anna"]
    assert therapists[0]["certifiedServices"] == [THAI]
    assert therapists[0]["isBusy"] is False

    response = client.post("/therapists/Anna/clock-in", json={"time": "9:30"})
    assert response.status_code == 200
    assert response.json()["clockedInAt"] == "09:30"

    response = client.post("/therapists/Lisa/clock-out", json={"comment": "  lunch  "})
    assert response.json()["clockedIn"] is False
    assert response.json()["clockOutComment"] == "lunch"

    board = client.get("/board").json()
    assert board["queue"] == ["Sarah", "Emma", "Anna"]
    assert board["nextIndex"] == 0

    assert client.post("/therapists/Nobody/clock-in").status_code == 404

    services = client.get("/services").json()
    assert services[0] == {"id": "1", "name": "Thai", "price": 400, "duration": 60, "label": "Thai 400"}


def test_tagged_union_dispatch(client) -> None:
    response = client.post("/entries", json={"mode": "auto", "serviceId": THAI})
    assert response.status_code == 201
    body = response.json()
    assert body["entries"][0]["therapist"] == "Lisa"
    assert body["entries"][0]["serviceName"] == "Thai"
    assert body["warnings"] == []

    response = client.post(
        "/entries",
        json={"mode": "group", "members": [{"serviceId": FOOT}, {"serviceId": OIL}]},
    )
    assert response.status_code == 201
    assert [e["therapist"] for e in response.json()["entries"]] == ["Sarah", "Emma"]

    response = client.post("/entries", json={"mode": "teleport", "serviceId": THAI})
    assert response.status_code == 422

    response = client.post("/entries", json={"mode": "group", "members": []})
    assert response.status_code == 422


def test_manual_warning_is_returned(client) -> None:
    response = client.post(
        "/entries/manual", json={"serviceId": FOOT, "therapist": "Lisa", "time": "10:30"}
    )

    assert response.status_code == 201
    body = response.json()
    assert body["entries"][0]["therapist"] == "Sarah"
    assert body["warnings"][0]["code"] == "certification_mismatch"
    assert body["warnings"][0]["entryId"] == body["entries"][0]["id"]


def test_invalid_clock_time_is_rejected(client) -> None:
    response = client.post("/entries/manual", json={"serviceId": THAI, "time": "25:00"})
    assert response.status_code == 422


def test_assignment_errors_map_to_status_codes(client) -> None:
    response = client.post("/entries/auto", json={"serviceId": "99"})
    assert response.status_code == 404
    assert response.json()["code"] == "unknown_service"

    client.post("/entries/auto", json={"serviceId": FOOT})
    response = client.post("/entries/auto", json={"serviceId": FOOT})
    assert response.status_code == 409
    assert response.json()["code"] == "no_eligible_therapist"

    response = client.post(
        "/entries/scheduled",
        json={"serviceId": FOOT, "therapist": "Lisa", "scheduledTime": "2026-03-14T18:00:00"},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "certification_mismatch"


def test_next_therapist_preview(client) -> None:
    body = client.get("/entries/next-therapist", params={"serviceId": FOOT}).json()
    assert body == {"serviceId": FOOT, "therapist": "Sarah", "canAssign": True}

    client.post("/entries/auto", json={"serviceId": FOOT})
    body = client.get("/entries/next-therapist", params={"serviceId": FOOT}).json()
    assert body["therapist"] is None
    assert body["canAssign"] is False


def test_end_extend_and_chain(client) -> None:
    entry = client.post("/entries/auto", json={"serviceId": THAI}).json()["entries"][0]

    extended = client.post(f"/entries/{entry['id']}/extend", json={"minutes": 30}).json()
    assert extended["price"] == 600
    assert extended["originalPrice"] == 400
    assert extended["extendedMinutes"] == 30

    assert client.post(f"/entries/{entry['id']}/extend", json={"minutes": 0}).status_code == 422

    chained = client.post(f"/entries/{entry['id']}/chain", json={"serviceId": THAI}).json()
    assert chained["entries"][0]["time"] == "11:30"
    assert chained["entries"][0]["round"] == 2

    ended = client.post(f"/entries/{entry['id']}/end").json()
    assert ended["endTime"] == "10:00"
    assert client.post(f"/entries/{entry['id']}/end").status_code == 409

    assert len(client.get("/entries").json()) == 2


def test_scheduled_booking_and_manual_activation(client, clock) -> None:
    response = client.post(
        "/entries/scheduled",
        json={"serviceId": THAI, "therapist": "Lisa", "scheduledTime": "2026-03-14T12:00:00"},
    )
    assert response.status_code == 201
    booking = response.json()["entries"][0]
    assert booking["isScheduled"] is True
    assert booking["round"] is None

    assert client.post("/entries/activation/run").json() == {"activated": 0, "entries": []}

    clock.set(12, 5)
    body = client.post("/entries/activation/run").json()
    assert body["activated"] == 1
    assert body["entries"][0]["time"] == "12:05"
    assert body["entries"][0]["isScheduled"] is False

    response = client.post(
        "/entries/scheduled",
        json={"serviceId": THAI, "therapist": "Sarah", "scheduledTime": "2026-03-14T09:00:00"},
    )
    assert response.status_code == 422
    assert response.json()["code"] == "invalid_schedule"


def test_payment_endpoints(client) -> None:
    entries = client.post(
        "/entries/group", json={"members": [{"serviceId": THAI}, {"serviceId": OIL}]}
    ).json()["entries"]

    response = client.post(
        "/payments/groups/1",
        json={"entries": [{"entryId": entries[0]["id"], "payments": [{"amount": 400}]}]},
    )
    assert response.status_code == 409

    for entry in entries:
        client.post(f"/entries/{entry['id']}/end")

    response = client.post(
        "/payments/groups/1",
        json={
            "entries": [
                {"entryId": entries[0]["id"], "payments": [{"amount": 400}]},
                {"entryId": entries[1]["id"], "payments": [{"method": "Card", "amount": 500}]},
            ]
        },
    )
    assert response.status_code == 200
    assert response.json()["paymentStatus"] == "paid"

    summary = client.get("/payments/groups/1").json()
    assert summary["paid"] == 900
    assert summary["entries"][0]["paymentDetails"][0]["verified"] is True

    response = client.post(
        f"/payments/entries/{entries[0]['id']}",
        json={"payments": [{"method": "Crypto", "amount": 10}]},
    )
    assert response.status_code == 422


def test_redis_sink_publishes_board_json(session) -> None:
    class FakeRedis:
        def __init__(self):
            self.values = {}
            self.messages = []

        def set(self, key, value):
            self.values[key] = value

        def publish(self, channel, message):
            self.messages.append((channel, message))

    fake = FakeRedis()
    sink = RedisBoardSink(key="board", channel="board-changed", client_factory=lambda: fake)
    session.create_auto_entry(THAI)

    assert sink(session.snapshot()) is True
    assert fake.values["board"] == serialize_snapshot(session.snapshot())
    assert fake.messages[0][0] == "board-changed"
    assert '"currentRound":1' in fake.values["board"]


def test_redis_sink_fails_open(session) -> None:
    def unavailable():
        raise ConnectionError("redis down")

    sink = RedisBoardSink(client_factory=unavailable)
    assert sink(session.snapshot()) is False
