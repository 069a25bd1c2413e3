import os
from datetime import datetime, timezone

import pytest

from farm_market.services.report_store import (
    DirectoryReportStore,
    MemoryReportStore,
    ReportStorageError,
    match_report_file,
)

KEY = "price_history_1_3_2023-01-01_2023-01-31"
FIXED = datetime(2024, 5, 1, 8, 30, 0, tzinfo=timezone.utc)


def _write(payload: bytes):
    def writer(sink):
        sink.write(payload)
    return writer


@pytest.fixture(params=["memory", "directory"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryReportStore(clock=lambda: FIXED)
    return DirectoryReportStore(tmp_path / "reports", clock=lambda: FIXED)


def _read(store, report) -> bytes:
    return b"".join(store.iter_bytes(report))


def test_latest_is_none_before_any_render(store):
    assert store.latest(KEY) is None


def test_put_then_latest_returns_published_file(store):
    report = store.put(KEY, _write(b"first"))
    assert report.filename.startswith(KEY + "_")
    assert report.filename.endswith(".xlsx")
    assert store.latest(KEY) == report
    assert _read(store, report) == b"first"


def test_repeated_renders_get_distinct_increasing_stamps(store):
    # the clock is frozen, so uniqueness comes from the store itself
    first = store.put(KEY, _write(b"one"))
    second = store.put(KEY, _write(b"two"))
    assert first.filename != second.filename
    assert second.stamp > first.stamp
    latest = store.latest(KEY)
    assert latest == second
    assert _read(store, latest) == b"two"


def test_keys_sharing_a_prefix_do_not_collide(store):
    store.put("harvests_1_2_all_all", _write(b"a"))
    assert store.latest("harvests_1_2_all") is None
    assert store.latest("harvests_1_2") is None
    assert store.latest("harvests_1_2_all_all") is not None


def test_match_report_file_requires_exact_stamp():
    assert match_report_file(KEY, f"{KEY}_20240501_083000_000000.xlsx", ".xlsx") is not None
    assert match_report_file(KEY, f"{KEY}_20240501_083000.xlsx", ".xlsx") is None
    assert match_report_file(KEY, f"{KEY}_20240501_083000_000000.xlsx.part", ".xlsx") is None
    assert match_report_file(KEY, f"{KEY}_x_20240501_083000_000000.xlsx", ".xlsx") is None


def test_latest_orders_by_stamp_not_listing(tmp_path):
    store = DirectoryReportStore(tmp_path)
    for stamp in ["20230105_000000_000000", "20231231_235959_999999", "20230601_120000_000000"]:
        (tmp_path / f"{KEY}_{stamp}.xlsx").write_bytes(stamp.encode())
    latest = store.latest(KEY)
    assert latest.stamp == "20231231_235959_999999"


def test_failed_writer_leaves_nothing_behind(tmp_path):
    store = DirectoryReportStore(tmp_path)

    def boom(sink):
        sink.write(b"partial")
        raise RuntimeError("render exploded")

    with pytest.raises(RuntimeError):
        store.put(KEY, boom)
    assert os.listdir(tmp_path) == []
    assert store.latest(KEY) is None


def test_in_progress_temp_files_are_invisible(tmp_path):
    store = DirectoryReportStore(tmp_path)
    (tmp_path / f".{KEY}.abc123.part").write_bytes(b"half")
    assert store.latest(KEY) is None


def test_missing_directory_means_not_found(tmp_path):
    store = DirectoryReportStore(tmp_path / "reports")
    os.rmdir(tmp_path / "reports")
    assert store.latest(KEY) is None


def test_unreadable_directory_raises_storage_error(tmp_path, monkeypatch):
    store = DirectoryReportStore(tmp_path)

    def denied(path):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(os, "scandir", denied)
    with pytest.raises(ReportStorageError):
        store.latest(KEY)


def test_memory_store_lists_published_names():
    store = MemoryReportStore(clock=lambda: FIXED)
    report = store.put(KEY, _write(b"x"))
    assert store.filenames() == [report.filename]
    assert report.stamp == "20240501_083000_000000"
