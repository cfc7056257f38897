from reportwriter.domain.header import parse_headers, total_width
from reportwriter.domain.record import decode_entry
from reportwriter.headers.rows import CSV_MISSING, SHEET_MISSING, map_record
from reportwriter.pipeline.observability import SCHEMA_MISMATCH

HEADERS = parse_headers(["Alpha", "Bravo", {"Echo": ["Foxtrot", "Hotel"]}])


def test_map_record_fills_missing_columns() -> None:
    record = decode_entry({"Alpha": "A1", "Echo": {"Foxtrot": "F1", "Hotel": "H1"}})

    assert map_record(record, HEADERS, CSV_MISSING) == ["A1", "", "F1", "H1"]
    assert map_record(record, HEADERS, SHEET_MISSING) == ["A1", None, "F1", "H1"]


def test_row_width_always_matches_headers() -> None:
    records = [
        {},
        {"Alpha": 1},
        {"Echo": {"Hotel": 2}},
        {"Zulu": 9, "Bravo": 3},
        {"Alpha": 1, "Bravo": 2, "Echo": {"Foxtrot": 3, "Hotel": 4, "India": 5}},
    ]
    for data in records:
        row = map_record(decode_entry(data), HEADERS, CSV_MISSING)
        assert len(row) == total_width(HEADERS)


def test_child_order_follows_headers_not_record() -> None:
    record = decode_entry({"Echo": {"Hotel": "H", "Foxtrot": "F"}})
    assert map_record(record, HEADERS, "") == ["", "", "F", "H"]


def test_null_values_count_as_missing() -> None:
    record = decode_entry({"Alpha": None, "Bravo": 0, "Echo": {"Foxtrot": None, "Hotel": False}})
    assert map_record(record, HEADERS, "") == ["", 0, "", False]


def test_shape_mismatch_yields_missing_and_reports() -> None:
    events = []
    record = decode_entry({"Alpha": {"x": 1}, "Echo": "flat"})

    row = map_record(record, HEADERS, "", events.append)

    assert row == ["", "", "", ""]
    assert [e.type for e in events] == [SCHEMA_MISMATCH, SCHEMA_MISMATCH]
    assert [e.payload["stage"] for e in events] == ["row", "row"]


def test_childless_nested_header_maps_to_no_columns() -> None:
    headers = parse_headers(["Alpha", {"Echo": []}])
    record = decode_entry({"Alpha": "A1", "Echo": {"Foxtrot": "F1"}})

    assert map_record(record, headers, "") == ["A1"]
