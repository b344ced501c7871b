"""
Integration tests for the Order Wrapped HTTP endpoints.
"""
from datetime import date

import pytest

from wrapped import repository
from wrapped.routers import captures as captures_router
from wrapped.routers import orders as orders_router


def _ingest(client, *raw_emails):
    return client.post("/api/emails/ingest", json={"raw_emails": list(raw_emails)})


def _receipt(message_id, amount):
    return (
        "From: DoorDash <no-reply@doordash.com>\n"
        "Subject: Final receipt for Lev from Chipotle\n"
        "Date: Mon, 01 Dec 2025 12:00:00 +0000\n"
        f"Message-ID: <{message_id}@doordash.com>\n\n"
        f"1x Burrito Bowl ${amount}\nFinal total charged ${amount}\n"
    )


class TestService:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestEmailIngest:
    def test_ingest_success(self, client, target_email, bimi_email, uber_email):
        resp = _ingest(client, target_email, bimi_email, uber_email)
        assert resp.status_code == 200
        body = resp.json()
        assert body["received"] == 3
        assert body["parsed"] == 2
        assert body["duplicates"] == 0
        assert body["total_orders"] == 2
        assert [o["restaurant_name"] for o in body["orders"]] == ["Target", "Bimi Poke"]

    @pytest.mark.parametrize("raw_emails", [[], ["   ", ""]])
    def test_ingest_empty(self, client, raw_emails):
        resp = client.post("/api/emails/ingest", json={"raw_emails": raw_emails})
        assert resp.status_code == 400

    def test_ingest_missing_field(self, client):
        assert client.post("/api/emails/ingest", json={}).status_code == 422

    def test_reingest_counts_duplicates(self, client, target_email):
        _ingest(client, target_email)
        body = _ingest(client, target_email).json()
        assert body["duplicates"] == 1
        assert body["total_orders"] == 1

    def test_oversized_amount_does_not_sink_batch(self, client):
        resp = _ingest(
            client,
            _receipt("ok", "15.00"),
            _receipt("huge", "99999999999999999999.00"),
        )
        assert resp.status_code == 200
        assert resp.json()["total_orders"] == 2

        ok = client.get("/api/orders/okdoordashcom").json()
        assert ok["total_price"] == 1500
        huge = client.get("/api/orders/hugedoordashcom").json()
        assert huge["total_price"] == 0
        assert huge["items"] == []

    def test_ingest_holds_write_lock(self, client, target_email, monkeypatch):
        held = []
        merge = orders_router.ingest_emails

        def _recording(existing, raw_emails):
            held.append(repository.write_lock.locked())
            return merge(existing, raw_emails)

        monkeypatch.setattr(orders_router, "ingest_emails", _recording)
        assert _ingest(client, target_email).status_code == 200
        assert held == [True]
        assert not repository.write_lock.locked()


class TestOrders:
    def test_list_empty(self, client):
        resp = client.get("/api/orders")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_list_after_ingest(self, client, target_email, bimi_email):
        _ingest(client, bimi_email, target_email)
        resp = client.get("/api/orders")
        assert resp.status_code == 200
        assert [o["id"] for o in resp.json()] == [
            "abc123targetdoordashcom",
            "bimipoke42doordashcom",
        ]

    def test_get_one(self, client, target_email):
        _ingest(client, target_email)
        resp = client.get("/api/orders/abc123targetdoordashcom")
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_price"] == 4058
        assert body["fees"]["tip"] == 569
        assert body["source"] == "email"

    def test_get_not_found(self, client):
        resp = client.get("/api/orders/nonexistent")
        assert resp.status_code == 404

    def test_clear(self, client, target_email):
        _ingest(client, target_email)
        resp = client.delete("/api/orders")
        assert resp.status_code == 200
        assert resp.json()["removed"] == 1
        assert client.get("/api/orders").json() == []


class TestStats:
    def test_empty(self, client):
        body = client.get("/api/stats").json()
        assert body["total_orders"] == 0
        assert body["top_restaurants"] == []

    def test_after_ingest(self, client, target_email, bimi_email):
        _ingest(client, target_email, bimi_email)
        body = client.get("/api/stats").json()
        assert body["total_orders"] == 2
        assert body["total_spent"] == pytest.approx(93.51)
        assert body["total_items"] == 4
        assert body["unique_restaurants"] == 2
        assert body["most_expensive"]["restaurant_name"] == "Bimi Poke"
        assert body["day_counts"] == {"Sunday": 1, "Thursday": 1}


class TestCaptures:
    def test_capture_success(self, client, capture_payload):
        resp = client.post(
            "/api/captures",
            json={"source_type": "fetch", "url": "https://example.test/graphql", "data": capture_payload},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["snapshot_id"]
        assert body["new_orders"] == 2
        assert body["total_orders"] == 2

        friends = client.get("/api/stats").json()["top_friends"]
        assert [f["name"] for f in friends] == ["Ana Lopez"]

    def test_capture_merges_with_emails(self, client, capture_payload, target_email):
        _ingest(client, target_email)
        body = client.post("/api/captures", json={"data": capture_payload}).json()
        assert body["duplicates"] == 0
        assert body["total_orders"] == 3

    def test_capture_twice(self, client, capture_payload):
        client.post("/api/captures", json={"data": capture_payload})
        body = client.post("/api/captures", json={"data": capture_payload}).json()
        assert body["duplicates"] == 2
        assert body["total_orders"] == 2

    def test_capture_empty(self, client):
        assert client.post("/api/captures", json={"data": {}}).status_code == 400

    def test_non_finite_number_skips_only_that_order(self, client):
        raw = '{"data": {"orders": [{"id": "bad", "items": [{"quantity": 1e400}]}, {"id": "ok-1"}]}}'
        resp = client.post(
            "/api/captures", content=raw, headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 200
        assert resp.json()["new_orders"] == 1
        assert [o["id"] for o in client.get("/api/orders").json()] == ["ok1"]

    def test_capture_holds_write_lock(self, client, capture_payload, monkeypatch):
        held = []
        merge = captures_router.ingest_capture

        def _recording(existing, payload):
            held.append(repository.write_lock.locked())
            return merge(existing, payload)

        monkeypatch.setattr(captures_router, "ingest_capture", _recording)
        client.post("/api/captures", json={"data": capture_payload})
        assert held == [True]

    def test_without_variables_no_next_page(self, client, capture_payload):
        body = client.post("/api/captures", json={"data": capture_payload}).json()
        assert body["next_variables"] is None

    def test_history_pages_until_short_page(self, client, capture_payload):
        first = client.post(
            "/api/captures",
            json={"data": capture_payload, "variables": {"offset": 0, "limit": 2}},
        ).json()
        assert first["next_variables"] == {"offset": 2, "limit": 2}

        last = client.post(
            "/api/captures",
            json={"data": {"data": {"orders": []}}, "variables": first["next_variables"]},
        ).json()
        assert last["next_variables"] is None
        assert client.get("/api/captures/checkpoint").json() == {
            "last_fetch_date": date.today().isoformat()
        }

        again = client.post(
            "/api/captures",
            json={"data": capture_payload, "variables": {"offset": 0, "limit": 2}},
        ).json()
        assert again["next_variables"] is None


class TestCheckpoint:
    def test_initially_unset(self, client):
        resp = client.get("/api/captures/checkpoint")
        assert resp.status_code == 200
        assert resp.json() == {"last_fetch_date": None}

    def test_set_explicit(self, client):
        resp = client.put("/api/captures/checkpoint", json={"last_fetch_date": "2025-12-20"})
        assert resp.json() == {"last_fetch_date": "2025-12-20"}
        assert client.get("/api/captures/checkpoint").json() == {"last_fetch_date": "2025-12-20"}

    def test_set_defaults_to_today(self, client):
        resp = client.put("/api/captures/checkpoint", json={})
        assert resp.json() == {"last_fetch_date": date.today().isoformat()}
