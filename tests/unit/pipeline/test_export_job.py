import csv
import logging

import pytest
from openpyxl import load_workbook

from reportwriter.config.export import ExportConfig
from reportwriter.domain.header import NestedHeader, SimpleHeader, parse_headers
from reportwriter.io.cache import CacheWriter
from reportwriter.io.output import resolve_output_target
from reportwriter.pipeline.export import ExportJob
from reportwriter.pipeline.observability import (
    SCHEMA_MISMATCH,
    ExportEvent,
    ObserverRegistry,
    default_observer_registry,
)


@pytest.fixture
def cache(tmp_path):
    path = tmp_path / "report.cache"
    writer = CacheWriter(path)
    writer.append(
        [
            {"Alpha": "A1", "Bravo": "B1"},
            {"Alpha": "A2", "Echo": {"Foxtrot": "F2"}},
        ]
    )
    writer.append_separator()
    writer.append([{"Echo": {"Hotel": "H3"}, "Bravo": "B3"}])
    with path.open("a", encoding="utf-8") as fh:
        fh.write("{broken\n")
    return path


def _job(cache_path, **settings):
    config = ExportConfig(**settings)
    return ExportJob(config, resolve_output_target(cache_path, config))


def test_collect_headers_discovers_schema(cache) -> None:
    headers = _job(cache).collect_headers(cache)

    assert headers == (
        SimpleHeader("Alpha"),
        SimpleHeader("Bravo"),
        NestedHeader("Echo", ("Foxtrot", "Hotel")),
    )


def test_csv_export_round_trip(cache, tmp_path) -> None:
    result = _job(cache).run(cache)

    assert result.path == (tmp_path / "report.csv").resolve()
    assert result.rows_written == 3
    assert result.skipped_lines == 1
    with open(result.path, newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows == [
        ["Alpha", "Bravo", "Echo", ""],
        ["", "", "Foxtrot", "Hotel"],
        ["A1", "B1", "", ""],
        ["A2", "", "F2", ""],
        ["", "B3", "", "H3"],
    ]
    assert cache.exists()


def test_supplied_headers_skip_discovery(cache) -> None:
    job = _job(cache, headers=["Bravo", {"Echo": ["Hotel"]}])
    with pytest.MonkeyPatch.context() as mp:
        mp.setattr(job, "collect_headers", lambda _path: pytest.fail("discovery ran"))
        result = job.run(cache)

    with open(result.path, newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows[:2] == [["Bravo", "Echo"], ["", "Hotel"]]
    assert rows[2:] == [["B1", ""], ["", ""], ["B3", "H3"]]


def test_xlsx_export_with_freeze_and_cache_removal(cache) -> None:
    result = _job(cache, format="xlsx", freeze_headers=True, remove_cache=True).run(cache)

    wb = load_workbook(result.path)
    ws = wb.active
    assert ws.freeze_panes == "A3"
    assert sorted(str(r) for r in ws.merged_cells.ranges) == ["A1:A2", "B1:B2", "C1:D1"]
    assert ws["A4"].value == "A2"
    assert ws["A4"].border.bottom.style == "thin"
    assert not cache.exists()


def test_schema_mismatches_are_counted_and_warned_once(tmp_path, caplog) -> None:
    path = tmp_path / "mixed.cache"
    CacheWriter(path).append(
        [
            {"Alpha": 1},
            {"Alpha": {"x": 1}},
            {"Alpha": {"y": 2}},
        ]
    )
    job = _job(path, headers=["Alpha"])

    with caplog.at_level(logging.WARNING, logger="reportwriter"):
        result = job.run(path)

    assert result.schema_mismatches == 2
    warnings = [r for r in caplog.records if "Schema mismatch" in r.getMessage()]
    assert len(warnings) == 1


def test_failed_write_leaves_no_output(cache, tmp_path) -> None:
    job = _job(cache)
    headers = parse_headers(["Alpha"])

    def _boom(*_args, **_kwargs):
        raise OSError("disk full")

    with pytest.MonkeyPatch.context() as mp:
        mp.setattr("reportwriter.io.writers.csv_writer.CsvTabularWriter.write_row", _boom)
        with pytest.raises(OSError, match="disk full"):
            job.run(cache, headers=headers)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["report.cache"]


def test_custom_observers_receive_events(cache) -> None:
    seen: list[ExportEvent] = []
    registry = ObserverRegistry()
    registry.register("capture", lambda _logger: seen.append)
    config = ExportConfig(headers=[{"Alpha": ["x"]}])
    job = ExportJob(config, resolve_output_target(cache, config), observers=registry)

    job.run(cache)

    assert {e.type for e in seen} >= {SCHEMA_MISMATCH}


def test_default_registry_is_quiet_above_warning() -> None:
    logger = logging.getLogger("reportwriter.tests.quiet")
    logger.setLevel(logging.ERROR)
    assert default_observer_registry().build(logger) is None


def test_progress_wraps_discovery_and_write_passes(cache) -> None:
    labels = []

    def _progress(entries, label):
        labels.append(label)
        return entries

    config = ExportConfig()
    job = ExportJob(config, resolve_output_target(cache, config), progress=_progress)
    result = job.run(cache)

    assert labels == ["Collecting headers", "Writing rows"]
    assert result.rows_written == 3


def test_childless_nested_field_keeps_its_column_position(tmp_path) -> None:
    path = tmp_path / "order.cache"
    CacheWriter(path).append([{"Echo": {}, "Alpha": "A1"}, {"Echo": {"Foxtrot": "F2"}}])

    result = _job(path).run(path)

    with open(result.path, newline="", encoding="utf-8") as fh:
        rows = list(csv.reader(fh))
    assert rows == [
        ["Echo", "Alpha"],
        ["Foxtrot", ""],
        ["", "A1"],
        ["F2", ""],
    ]
