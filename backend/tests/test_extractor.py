from booking_api.services.extractor import count, extract_all, get_by_type_and_index


class TestExtractor:
    def test_extract_all_keeps_payload_order(self):
        payload = {
            "service": {
                "transfer": [{"identifier": "T1"}],
                "room": [{"identifier": "R1"}, {"identifier": "R2"}],
            }
        }
        items = extract_all(payload)

        assert [(i["type"], i["originalIndex"], i["identifier"]) for i in items] == [
            ("transfer", 0, "T1"),
            ("room", 0, "R1"),
            ("room", 1, "R2"),
        ]
        assert all(i["serviceGroup"] == i["type"] for i in items)

    def test_items_are_copies(self):
        original = {"identifier": "R1"}
        items = extract_all({"service": {"room": [original]}})
        assert "type" not in original
        assert items[0]["type"] == "room"

    def test_non_list_groups_and_entries_are_skipped(self):
        payload = {"service": {"room": {"identifier": "bad"}, "note": ["text", {"identifier": "N1"}]}}
        items = extract_all(payload)

        assert len(items) == 1
        assert items[0]["identifier"] == "N1"
        assert items[0]["originalIndex"] == 1

    def test_missing_service_block(self):
        assert extract_all({}) == []
        assert extract_all({"service": None}) == []
        assert count({"service": {"room": []}}) == 0

    def test_count(self):
        payload = {"service": {"room": [{}, {}], "ticket": [{}]}}
        assert count(payload) == 3
        assert count(payload, "room") == 2
        assert count(payload, "flight") == 0

    def test_get_by_type_and_index(self):
        payload = {"service": {"transfer": [{"identifier": "T1"}, {"identifier": "T2"}]}}
        assert get_by_type_and_index(payload, "transfer", 1) == {"identifier": "T2"}
        assert get_by_type_and_index(payload, "transfer", 2) is None
        assert get_by_type_and_index(payload, "room", 0) is None
        assert get_by_type_and_index(payload, "transfer", -1) is None
