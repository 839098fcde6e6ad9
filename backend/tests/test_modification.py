import pytest

from booking_api.core.errors import (
    E_NOTHING_TO_UPDATE,
    E_RESERVATION_CANCELLED,
    E_RESERVATION_NOT_FOUND,
    E_SERVICE_MODIFY,
    E_SERVICE_NOT_FOUND,
    S_MODIFIED_ALL,
    S_MODIFIED_PARTIAL,
)
from booking_api.db.repositories import OrderRepository, ServiceRepository
from booking_api.services.booking import BookingService
from booking_api.services.modification import ModificationService


@pytest.fixture
def booking(db, messages, make_booking, make_room):
    payload = make_booking(service={"room": [make_room(), make_room(identifier="ROOM-2")]})
    _, body = BookingService(db, messages).create("acme", payload)
    return body


@pytest.fixture
def modifier(db, messages):
    return ModificationService(db, messages)


class TestModification:
    def test_header_update_bumps_version(self, db, modifier, booking):
        status, body = modifier.modify(booking["id"], "acme", {"status": "confirmed", "locator": "LOC123"})

        assert status == 200
        assert body["status"] == S_MODIFIED_ALL
        assert body["version"] == 2
        assert body["hash"] == booking["hash"]
        order = OrderRepository(db).get_by_id(booking["id"])
        assert order.status == "confirmed"
        assert order.locator == "LOC123"
        # untouched columns keep their values
        assert order.attendant == "Ana Souza"

    def test_each_modification_adds_one(self, modifier, booking):
        modifier.modify(booking["id"], "acme", {"notes": "first"})
        _, body = modifier.modify(booking["id"], "acme", {"notes": "second"})
        assert body["version"] == 3

    def test_service_update(self, db, modifier, booking):
        room_id = booking["services"]["created"][0]["id"]
        payload = {"service": {"room": [{"id": room_id, "price": 800}]}}

        status, body = modifier.modify(booking["id"], "acme", payload)

        assert status == 200
        assert body["status"] == S_MODIFIED_ALL
        assert body["version"] == 2
        assert body["services"]["details"] == {"created": 1, "failed": 0}
        assert ServiceRepository(db).get_by_id(room_id).price == 800.0

    def test_partial_service_failure(self, modifier, booking):
        room_id = booking["services"]["created"][0]["id"]
        payload = {"service": {"room": [{"id": room_id, "price": 800}, {"id": 9999, "price": 1}]}}

        status, body = modifier.modify(booking["id"], "acme", payload)

        assert status == 200
        assert body["status"] == S_MODIFIED_PARTIAL
        assert body["services"]["failed"][0]["code"] == E_SERVICE_NOT_FOUND

    def test_all_service_updates_failing_rolls_back(self, db, modifier, booking):
        payload = {"status": "confirmed", "service": {"room": [{"id": 9999, "price": 1}]}}

        status, body = modifier.modify(booking["id"], "acme", payload)

        assert status == 400
        assert body["error"] == E_SERVICE_MODIFY
        order = OrderRepository(db).get_by_id(booking["id"])
        assert order.version == 1
        assert order.status == "pending"

    def test_unknown_reservation(self, modifier, booking):
        status, body = modifier.modify(booking["id"], "other-channel", {"status": "confirmed"})
        assert status == 404
        assert body["error"] == E_RESERVATION_NOT_FOUND

    def test_nothing_to_update(self, modifier, booking):
        status, body = modifier.modify(booking["id"], "acme", {})
        assert status == 400
        assert body["error"] == E_NOTHING_TO_UPDATE

    def test_cancellation_is_final(self, modifier, booking):
        status, _ = modifier.modify(booking["id"], "acme", {"status": "cancelled"})
        assert status == 200

        status, body = modifier.modify(booking["id"], "acme", {"status": "confirmed"})
        assert status == 400
        assert body["error"] == E_RESERVATION_CANCELLED
