import csv
import io

import pytest

from reportwriter.domain.header import parse_headers
from reportwriter.io.cache import CacheWriter
from reportwriter.io.writers.csv_writer import CsvTabularWriter

HEADERS = parse_headers(["Alpha", "Bravo", {"Echo": ["Foxtrot", "Hotel"]}])


def test_positional_row_uses_rfc4180_quoting() -> None:
    out = io.StringIO()
    writer = CsvTabularWriter(stream=out)

    writer.write_row(["a", "b", "c,", "d"])
    writer.finalize()

    assert out.getvalue() == 'a,b,"c,",d\n'


def test_headers_and_records_line_up(tmp_path) -> None:
    out = io.StringIO()
    writer = CsvTabularWriter(stream=out)

    writer.write_headers(HEADERS)
    writer.write_row({"Alpha": "A1", "Echo": {"Foxtrot": "F1", "Hotel": "H1"}, "Zulu": 1}, HEADERS)
    writer.finalize()

    assert out.getvalue() == "Alpha,Bravo,Echo,\n,,Foxtrot,Hotel\nA1,,F1,H1\n"
    assert writer.rows_written == 1


def test_headerless_record_writes_its_own_values() -> None:
    out = io.StringIO()
    writer = CsvTabularWriter(stream=out)

    writer.write_row({"Alpha": "x", "Echo": {"Foxtrot": 1}})
    writer.write_row(42)

    assert out.getvalue() == 'x,"{""Foxtrot"": 1}"\n'
    assert writer.rows_written == 1


def test_csv_cannot_insert_headers_above_rows() -> None:
    writer = CsvTabularWriter(stream=io.StringIO())
    with pytest.raises(ValueError, match="cannot insert headers"):
        writer.write_headers(HEADERS, init_row=1)


def test_writer_requires_exactly_one_target(tmp_path) -> None:
    with pytest.raises(ValueError, match="exactly one of dest or stream"):
        CsvTabularWriter()
    with pytest.raises(ValueError, match="exactly one of dest or stream"):
        CsvTabularWriter(tmp_path / "out.csv", stream=io.StringIO())


def test_prepare_streams_cache_and_skips_separators(tmp_path) -> None:
    cache = tmp_path / "report.cache"
    cache_writer = CacheWriter(cache)
    cache_writer.append([{"Alpha": "A1", "Bravo": "B1"}])
    cache_writer.append_separator()
    cache_writer.append([{"Echo": {"Hotel": "H2"}}, ["r1", "r2", "r3", "r4"]])

    dest = tmp_path / "out" / "report.csv"
    writer = CsvTabularWriter(dest)
    assert writer.prepare(cache, HEADERS) == dest
    assert not dest.exists()
    writer.finalize()

    with open(dest, newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))

    assert rows == [
        ["Alpha", "Bravo", "Echo", ""],
        ["", "", "Foxtrot", "Hotel"],
        ["A1", "B1", "", ""],
        ["", "", "", "H2"],
        ["r1", "r2", "r3", "r4"],
    ]
    assert cache.exists()


def test_abort_discards_partial_output(tmp_path) -> None:
    dest = tmp_path / "report.csv"
    writer = CsvTabularWriter(dest)
    writer.write_headers(HEADERS)
    writer.abort()

    assert not dest.exists()
    assert list(tmp_path.iterdir()) == []


def test_csv_writer_honors_configured_encoding(tmp_path) -> None:
    dest = tmp_path / "out.csv"
    writer = CsvTabularWriter(dest, encoding="utf-8-sig")
    writer.write_headers(parse_headers(["Alpha"]))
    writer.finalize()

    raw = dest.read_bytes()
    assert raw.startswith(b"\xef\xbb\xbf")
    assert raw.endswith(b"Alpha\n")


def test_quotes_and_commas_survive_a_csv_round_trip() -> None:
    out = io.StringIO()
    writer = CsvTabularWriter(stream=out)

    writer.write_row(['a"b', "c,", "d"])

    assert out.getvalue() == '"a""b","c,",d\n'
    assert next(csv.reader(io.StringIO(out.getvalue()))) == ['a"b', "c,", "d"]


def test_empty_header_list_writes_no_blank_lines() -> None:
    out = io.StringIO()
    writer = CsvTabularWriter(stream=out)
    headers = parse_headers([{"Echo": []}])

    writer.write_headers(())
    writer.write_headers(headers)
    writer.write_row({"Echo": {"Foxtrot": 1}}, headers)

    assert out.getvalue() == ""
    assert writer.rows_written == 0


def test_booleans_render_as_one_and_empty() -> None:
    out = io.StringIO()
    writer = CsvTabularWriter(stream=out)
    headers = parse_headers(["Alpha", "Bravo", "Charlie"])

    writer.write_row({"Alpha": True, "Bravo": False, "Charlie": 0}, headers)

    assert out.getvalue() == "1,,0\n"
