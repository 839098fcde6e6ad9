import pytest

from booking_api.core.errors import BookingError, E_MAIN_PAX_INCOMPLETE
from booking_api.services.pax import (
    flatten_pax_ids,
    main_passenger,
    missing_main_fields,
    normalize_directory,
    resolve_pax,
    validate_main_passengers,
)


class TestFlattenPaxIds:
    def test_scalar(self):
        assert flatten_pax_ids("PAX1") == ["PAX1"]

    def test_nested_lists(self):
        assert flatten_pax_ids([["PAX1", "PAX2"], "PAX3", [["PAX4"]]]) == ["PAX1", "PAX2", "PAX3", "PAX4"]

    def test_object_references_and_numbers(self):
        assert flatten_pax_ids([{"id": "PAX1"}, 2]) == ["PAX1", "2"]

    def test_empty(self):
        assert flatten_pax_ids(None) == []
        assert flatten_pax_ids([]) == []


class TestResolvePax:
    def test_resolves_in_assignment_order(self, make_pax):
        directory = {"PAX1": make_pax(main=True), "PAX2": make_pax(first="Pedro")}
        pax_list, pax_info = resolve_pax(["PAX2", "PAX1"], directory)

        assert [p["id"] for p in pax_list] == ["PAX2", "PAX1"]
        assert set(pax_info) == {"PAX1", "PAX2"}
        assert pax_info["PAX1"]["main"] is True
        assert pax_info["PAX2"]["document"] == {"type": "CPF", "number": "12345678900"}

    def test_unknown_ids_are_skipped(self, make_pax):
        pax_list, _ = resolve_pax(["PAX1", "GHOST"], {"PAX1": make_pax()})
        assert [p["id"] for p in pax_list] == ["PAX1"]

    def test_duplicates_collapse(self, make_pax):
        pax_list, _ = resolve_pax([["PAX1"], "PAX1"], {"PAX1": make_pax()})
        assert len(pax_list) == 1

    def test_unnamed_passengers_are_dropped_when_enabled(self, make_pax):
        directory = {"PAX1": make_pax(), "PAX2": make_pax(first="", last="")}
        pax_list, _ = resolve_pax(["PAX1", "PAX2"], directory, drop_unnamed=True)
        assert [p["id"] for p in pax_list] == ["PAX1"]

        pax_list, _ = resolve_pax(["PAX1", "PAX2"], directory, drop_unnamed=False)
        assert [p["id"] for p in pax_list] == ["PAX1", "PAX2"]

    def test_directory_as_list(self, make_pax):
        directory = [dict(make_pax(), id="PAX1")]
        assert set(normalize_directory(directory)) == {"PAX1"}
        pax_list, _ = resolve_pax("PAX1", directory)
        assert pax_list[0]["firstName"] == "Maria"

    def test_main_passenger(self, make_pax):
        pax_list, _ = resolve_pax(["PAX2", "PAX1"], {"PAX1": make_pax(main=True), "PAX2": make_pax()})
        assert main_passenger(pax_list)["id"] == "PAX1"
        assert main_passenger([]) is None


class TestMainPassengerValidation:
    def test_complete_main_passes(self, make_pax):
        validate_main_passengers({"PAX1": make_pax(main=True)})

    def test_main_without_document_fails(self, make_pax):
        with pytest.raises(BookingError) as exc:
            validate_main_passengers({"PAX1": make_pax(main=True, document=None)})
        assert exc.value.code == E_MAIN_PAX_INCOMPLETE
        assert "document" in exc.value.detail

    def test_document_without_number_is_missing(self, make_pax):
        assert missing_main_fields(make_pax(main=True, document={"type": "CPF"})) == ["document"]

    def test_non_main_without_document_passes(self, make_pax):
        validate_main_passengers({"PAX1": make_pax(main=False, document=None, gender="")})

    def test_reports_every_missing_field(self, make_pax):
        detail = make_pax(main=True, birthdate="", gender=None)
        assert missing_main_fields(detail) == ["birthdate", "gender"]

    def test_list_entry_without_id_is_still_checked(self, make_pax):
        directory = [dict(make_pax(), id="PAX1"), make_pax(main=True, document=None)]
        with pytest.raises(BookingError) as exc:
            validate_main_passengers(directory)
        assert exc.value.code == E_MAIN_PAX_INCOMPLETE
        assert exc.value.detail.startswith("#2")
