from datetime import date, datetime, timedelta, timezone

import pytest

from booking_api.core.errors import (
    BookingError,
    E_END_BEFORE_START,
    E_IDENTIFIER_REQUIRED,
    E_INVALID_DATE,
    E_NOTHING_TO_UPDATE,
    E_PERIOD_REQUIRED,
    E_RESERVATION_CANCELLED,
    E_RESERVATION_NOT_FOUND,
    E_START_IN_PAST,
)
from booking_api.services.reservation import (
    ReservationWriter,
    generate_hash,
    prepare_header_row,
    prepare_header_update_row,
    validate_header,
)


def _codes(header, today=None):
    with pytest.raises(BookingError) as exc:
        validate_header(header, today=today)
    return exc.value.code


class TestValidateHeader:
    def test_valid_header(self, make_booking):
        validate_header(make_booking())

    def test_identifier_required(self, make_booking):
        assert _codes(make_booking(identifier="")) == E_IDENTIFIER_REQUIRED

    def test_period_required(self, make_booking):
        assert _codes(make_booking(period={"start": "2030-01-01"})) == E_PERIOD_REQUIRED
        assert _codes(make_booking(period=None)) == E_PERIOD_REQUIRED

    def test_unparsable_dates(self, make_booking):
        assert _codes(make_booking(period={"start": "soon", "end": "2030-01-02"})) == E_INVALID_DATE

    def test_end_equal_to_start_fails(self, make_booking):
        period = {"start": "2030-01-01T10:00:00", "end": "2030-01-01T10:00:00"}
        assert _codes(make_booking(period=period)) == E_END_BEFORE_START

    def test_end_one_millisecond_after_start_passes(self, make_booking):
        start = datetime(2030, 1, 1, 10)
        validate_header(make_booking(period={"start": start, "end": start + timedelta(milliseconds=1)}))

    def test_sale_may_not_start_in_the_past(self, make_booking):
        past = datetime.now(timezone.utc).date() - timedelta(days=2)
        period = {"start": past.isoformat(), "end": (past + timedelta(days=3)).isoformat()}
        assert _codes(make_booking(period=period)) == E_START_IN_PAST

    def test_sale_starting_today_passes(self, make_booking):
        today = date(2030, 5, 1)
        period = {"start": "2030-05-01T08:00:00", "end": "2030-05-03"}
        validate_header(make_booking(period=period), today=today)

    def test_sale_start_compared_in_its_own_offset(self, make_booking):
        # 01:00 at +05:00 is the previous day in UTC
        period = {"start": "2030-05-01T01:00:00+05:00", "end": "2030-05-03T12:00:00+05:00"}
        validate_header(make_booking(period=period), today=date(2030, 5, 1))
        assert _codes(make_booking(period=period), today=date(2030, 5, 2)) == E_START_IN_PAST

    def test_sale_starting_now_with_offset_passes(self, make_booking):
        tz = timezone(timedelta(hours=14))
        start = datetime.now(tz).replace(hour=0, minute=30, second=0, microsecond=0)
        period = {"start": start.isoformat(), "end": (start + timedelta(days=2)).isoformat()}
        validate_header(make_booking(period=period))

    def test_past_start_allowed_for_quotes(self, make_booking):
        period = {"start": "2020-01-01", "end": "2020-01-05"}
        validate_header(make_booking(type="quote", period=period))


class TestHeaderRows:
    def test_hash_is_32_hex(self):
        value = generate_hash()
        assert len(value) == 32
        int(value, 16)
        assert generate_hash() != value

    def test_prepare_header_row(self, make_booking):
        row = prepare_header_row("acme", make_booking(), "a" * 32)

        assert row["channel"] == "acme"
        assert row["identifier"] == "RES-1001"
        assert row["version"] == 1
        assert row["sales_channel"] == "web"
        assert row["attendant"] == "Ana Souza"
        assert row["attendant_id"] == 7
        assert row["user_name"] == "Carlos Lima"
        assert row["price"] == 1200.0
        assert row["cost"] == 1200.0
        assert row["discount"] == 0.0
        assert row["source"] == "manual"
        # absent identities are omitted, never written as NULL
        assert "company" not in row
        assert "agent_id" not in row

    def test_update_row_only_contains_provided_fields(self):
        row = prepare_header_update_row({"status": "confirmed"}, version=3)
        assert set(row) == {"status", "version", "updated"}
        assert row["version"] == 3

    def test_update_row_empty(self):
        assert prepare_header_update_row({}, version=2) == {}
        assert set(prepare_header_update_row({}, version=2, allow_empty=True)) == {"version", "updated"}


class TestReservationWriter:
    def test_create_and_read_back(self, db, make_booking):
        writer = ReservationWriter(db)
        header = writer.create("acme", make_booking())

        assert header["id"] is not None
        assert header["channel"] == "acme"
        assert header["identifier"] == "RES-1001"
        assert header["version"] == 1
        assert len(header["hash"]) == 32
        assert header["status"] == "pending"

    def test_check_duplicate(self, db, make_booking):
        writer = ReservationWriter(db)
        header = writer.create("acme", make_booking())

        assert writer.check_duplicate("acme", "RES-1001") == {
            "id": header["id"], "hash": header["hash"], "version": 1,
        }
        assert writer.check_duplicate("other", "RES-1001") is None

    def test_update_bumps_version_and_keeps_hash(self, db, make_booking):
        writer = ReservationWriter(db)
        header = writer.create("acme", make_booking())
        order = writer.load_for_update(header["id"], "acme")

        updated = writer.update(order, {"status": "confirmed", "notes": "late check-in"})

        assert updated["version"] == 2
        assert updated["hash"] == header["hash"]
        assert updated["status"] == "confirmed"

    def test_update_without_fields(self, db, make_booking):
        writer = ReservationWriter(db)
        header = writer.create("acme", make_booking())
        order = writer.load_for_update(header["id"], "acme")

        with pytest.raises(BookingError) as exc:
            writer.update(order, {})
        assert exc.value.code == E_NOTHING_TO_UPDATE

    def test_load_for_update_errors(self, db, make_booking):
        writer = ReservationWriter(db)
        header = writer.create("acme", make_booking(status="cancelled"))

        with pytest.raises(BookingError) as exc:
            writer.load_for_update(header["id"], "other-channel")
        assert exc.value.code == E_RESERVATION_NOT_FOUND

        with pytest.raises(BookingError) as exc:
            writer.load_for_update(header["id"], "acme")
        assert exc.value.code == E_RESERVATION_CANCELLED
