"""Route tests for the delivery API (TestClient over in-memory SQLite)."""

from fastapi.testclient import TestClient

from app.main import app
from app.modules.delivery.dependencies import get_delivery_service

BASE = "/api/v1/delivery"


def _create_payload(**overrides):
    payload = {
        "pickup_latitude": 1.0,
        "pickup_longitude": 1.0,
        "dropOff_latitude": 2.0,
        "dropOff_longitude": 2.0,
        "username": "alice",
    }
    payload.update(overrides)
    return payload


def _create(client, **overrides):
    response = client.post(f"{BASE}/create-delivery", json=_create_payload(**overrides))
    assert response.status_code == 200, response.text
    return response.json()


class TestDeliveryLifecycle:
    def test_full_scenario(self, client):
        created = _create(client)
        assert created["status"] == "DELIVERY_STATUS_CREATED"
        assert created["account"] == "alice"
        delivery_id = created["delivery"]

        pickup = client.post(f"{BASE}/pickup-package", json={"drone": "d1"})
        assert pickup.status_code == 200
        body = pickup.json()
        assert body["delivery"] == delivery_id
        assert body["status"] == "DELIVERY_STATUS_HEADED_TO_DROP_OFF"
        assert body["drone"] == "d1"
        assert (body["pickup_latitude"], body["dropOff_latitude"]) == (1.0, 2.0)

        completed = client.post(f"{BASE}/complete-delivery/{delivery_id}")
        assert completed.status_code == 200
        assert completed.json()["success"] is True

        fetched = client.get(f"{BASE}/deliveries/{delivery_id}").json()
        assert fetched["status"] == "DELIVERY_STATUS_COMPLETED"
        assert fetched["drone"] == "d1"

        confirmed = client.post(f"{BASE}/confirm-delivery/{delivery_id}", json={"signature": "sig"})
        assert confirmed.status_code == 200
        body = confirmed.json()
        assert body["delivery"] == delivery_id
        assert body["signature"] == "sig"
        assert body["finger_print"] is None

    def test_cancel_after_pickup_is_invalid_status_change(self, client):
        delivery_id = _create(client)["delivery"]
        client.post(f"{BASE}/pickup-package", json={"drone": "d1"})

        response = client.post(f"{BASE}/cancel-delivery/{delivery_id}")

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATUS_CHANGE"
        status = client.get(f"{BASE}/deliveries/{delivery_id}").json()["status"]
        assert status == "DELIVERY_STATUS_HEADED_TO_DROP_OFF"

    def test_cancel_created(self, client):
        delivery_id = _create(client)["delivery"]

        response = client.post(f"{BASE}/cancel-delivery/{delivery_id}")

        assert response.status_code == 200
        status = client.get(f"{BASE}/deliveries/{delivery_id}").json()["status"]
        assert status == "DELIVERY_STATUS_CANCELED"


class TestValidationAndErrors:
    def test_create_missing_username_is_bad_request(self, client):
        response = client.post(f"{BASE}/create-delivery", json=_create_payload(username=None))

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "BAD_REQUEST"
        assert client.get(f"{BASE}/deliveries", params={"username": "alice"}).json()["count"] == 0

    def test_malformed_body_is_bad_request(self, client):
        response = client.post(
            f"{BASE}/create-delivery", json=_create_payload(pickup_latitude="north")
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "BAD_REQUEST"

    def test_get_missing_is_not_found(self, client):
        response = client.get(f"{BASE}/deliveries/999")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_complete_missing_is_not_found(self, client):
        assert client.post(f"{BASE}/complete-delivery/999").status_code == 404

    def test_confirm_missing_is_not_found(self, client):
        response = client.post(f"{BASE}/confirm-delivery/999", json={"finger_print": "fp"})

        assert response.status_code == 404

    def test_confirm_without_proof_is_bad_request(self, client):
        delivery_id = _create(client)["delivery"]

        response = client.post(f"{BASE}/confirm-delivery/{delivery_id}", json={})

        assert response.status_code == 400

    def test_pickup_without_deliveries_returns_error_sentinel(self, client):
        response = client.post(f"{BASE}/pickup-package", json={"drone": "d1"})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "DELIVERY_STATUS_ERROR"
        assert body["delivery"] == "error"
        assert body["pickup_latitude"] is None


class TestPartialUpdates:
    def test_update_drone(self, client):
        delivery_id = _create(client)["delivery"]

        response = client.put(f"{BASE}/update-drone/{delivery_id}", json={"drone": "d5"})

        assert response.status_code == 200
        assert client.get(f"{BASE}/deliveries/{delivery_id}").json()["drone"] == "d5"

    def test_update_status_follows_transition_table(self, client):
        delivery_id = _create(client)["delivery"]

        skipped = client.put(
            f"{BASE}/update-status/{delivery_id}", json={"status": "DELIVERY_STATUS_COMPLETED"}
        )
        assert skipped.status_code == 409

        advanced = client.put(
            f"{BASE}/update-status/{delivery_id}", json={"status": "DELIVERY_STATUS_HEADED_TO_DROP_OFF"}
        )
        assert advanced.status_code == 200
        status = client.get(f"{BASE}/deliveries/{delivery_id}").json()["status"]
        assert status == "DELIVERY_STATUS_HEADED_TO_DROP_OFF"

    def test_update_status_unknown_value(self, client):
        delivery_id = _create(client)["delivery"]

        response = client.put(f"{BASE}/update-status/{delivery_id}", json={"status": "LOST"})

        assert response.status_code == 400


class TestListing:
    def test_list_by_username(self, client):
        _create(client)
        _create(client, username="bob")
        _create(client)

        body = client.get(f"{BASE}/deliveries", params={"username": "alice"}).json()

        assert body["count"] == 2
        assert {d["account"] for d in body["deliveries"]} == {"alice"}

    def test_list_unknown_is_empty(self, client):
        body = client.get(f"{BASE}/deliveries", params={"username": "ghost"}).json()

        assert body["deliveries"] == []


class TestHealth:
    def test_app_health_checks_database(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    def test_module_health(self, client):
        body = client.get(f"{BASE}/health").json()

        assert body["service"] == "delivery"


class TestErrorEnvelopes:
    def test_oversized_id_is_not_found(self, client):
        response = client.get(f"{BASE}/deliveries/99999999999999999999999")

        assert response.status_code == 404
        assert response.json()["error_code"] == "NOT_FOUND"

    def test_nan_coordinate_is_bad_request(self, client):
        body = (
            '{"pickup_latitude": NaN, "pickup_longitude": 1.0, '
            '"dropOff_latitude": 2.0, "dropOff_longitude": 2.0, "username": "alice"}'
        )

        response = client.post(
            f"{BASE}/create-delivery", content=body, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "BAD_REQUEST"
        assert client.get(f"{BASE}/deliveries", params={"username": "alice"}).json()["count"] == 0

    def test_complete_before_pickup_is_invalid_status_change(self, client):
        delivery_id = _create(client)["delivery"]

        response = client.post(f"{BASE}/complete-delivery/{delivery_id}")

        assert response.status_code == 409
        assert response.json()["error_code"] == "INVALID_STATUS_CHANGE"
        status = client.get(f"{BASE}/deliveries/{delivery_id}").json()["status"]
        assert status == "DELIVERY_STATUS_CREATED"

    def test_duplicate_confirmation_is_conflict(self, client):
        delivery_id = _create(client)["delivery"]
        first = client.post(f"{BASE}/confirm-delivery/{delivery_id}", json={"signature": "sig"})
        assert first.status_code == 200

        response = client.post(f"{BASE}/confirm-delivery/{delivery_id}", json={"finger_print": "fp"})

        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

    def test_unexpected_error_is_internal_error_envelope(self):
        class BrokenService:
            async def get_delivery(self, delivery_id):
                raise RuntimeError("store unavailable")

        app.dependency_overrides[get_delivery_service] = lambda: BrokenService()
        try:
            response = TestClient(app, raise_server_exceptions=False).get(f"{BASE}/deliveries/1")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "INTERNAL_ERROR"
        assert "store unavailable" not in body["message"]


class TestRoot:
    def test_root_lists_delivery_statuses(self, client):
        body = client.get("/").json()

        assert body["delivery_api"] == "/api/v1/delivery"
        assert "DELIVERY_STATUS_CREATED" in body["delivery_statuses"]
        assert "DELIVERY_STATUS_ERROR" not in body["delivery_statuses"]
