import os
from datetime import timedelta

import pytest

from farm_market.jobs import report_dispatcher
from farm_market.jobs.report_dispatcher import LAST_EXCEPTIONS, LAST_EXCEPTIONS_MAX, ReportDispatcher
from farm_market.jobs.report_job import ReportJob
from farm_market.models.db.enums import ReportType
from farm_market.services.report_renderer import ReportDataset
from farm_market.services.report_store import DirectoryReportStore, MemoryReportStore
from farm_market.utils import utc_now

KEY = "harvests_2_5_2023-01-01_2023-01-31"


def _job(rows=None) -> ReportJob:
    return ReportJob(
        report_type=ReportType.HARVESTS,
        key=KEY,
        dataset=ReportDataset(sheet_title="Harvest Report", columns=("No", "Qty"), rows=rows or [(1, 10)]),
        correlation_id="test-req",
    )


def test_dispatch_returns_nothing_and_file_appears_after_drain():
    store = MemoryReportStore()
    dispatcher = ReportDispatcher(store, max_workers=1)
    assert dispatcher.dispatch(_job()) is None
    dispatcher.shutdown(wait=True)
    report = store.latest(KEY)
    assert report is not None
    assert report.filename.startswith(KEY + "_")


def test_failing_render_leaves_no_file_and_is_recorded(tmp_path):
    LAST_EXCEPTIONS.clear()
    store = DirectoryReportStore(tmp_path)

    def broken_renderer(dataset, sink):
        sink.write(b"PK")
        raise RuntimeError("disk full")

    dispatcher = ReportDispatcher(store, max_workers=1, renderer=broken_renderer)
    dispatcher.dispatch(_job())
    dispatcher.shutdown(wait=True)

    assert os.listdir(tmp_path) == []
    assert store.latest(KEY) is None
    assert LAST_EXCEPTIONS[-1]["key"] == KEY
    assert LAST_EXCEPTIONS[-1]["type"] == "RuntimeError"
    LAST_EXCEPTIONS.clear()


def test_invalid_dataset_fails_in_background_only():
    LAST_EXCEPTIONS.clear()
    store = MemoryReportStore()
    dispatcher = ReportDispatcher(store, max_workers=1)
    # one value for two columns: render raises, dispatch does not
    dispatcher.dispatch(_job(rows=[(1,)]))
    dispatcher.shutdown(wait=True)
    assert store.latest(KEY) is None
    assert LAST_EXCEPTIONS and LAST_EXCEPTIONS[-1]["type"] == "ValueError"
    LAST_EXCEPTIONS.clear()


def test_concurrent_renders_of_same_key_produce_distinct_files():
    store = MemoryReportStore()
    dispatcher = ReportDispatcher(store, max_workers=4)
    for _ in range(5):
        dispatcher.dispatch(_job())
    dispatcher.shutdown(wait=True)
    assert len(store.filenames()) == 5


def test_closed_dispatcher_refuses_jobs():
    dispatcher = ReportDispatcher(MemoryReportStore(), max_workers=1)
    dispatcher.shutdown(wait=True)
    assert dispatcher.snapshot()["closed"] is True
    with pytest.raises(RuntimeError):
        dispatcher.dispatch(_job())


def test_snapshot_reports_idle_pool():
    dispatcher = ReportDispatcher(MemoryReportStore(), max_workers=3)
    snap = dispatcher.snapshot()
    assert snap == {"max_workers": 3, "in_flight": 0, "closed": False}
    dispatcher.shutdown(wait=True)


def test_render_timing_includes_queue_wait(monkeypatch):
    recorded = []
    monkeypatch.setattr(
        report_dispatcher,
        "log_performance",
        lambda operation, duration_ms, additional_data=None: recorded.append((operation, duration_ms, additional_data)),
    )
    job = _job()
    job.requested_at = utc_now() - timedelta(seconds=2)

    dispatcher = ReportDispatcher(MemoryReportStore(), max_workers=1)
    dispatcher.dispatch(job)
    dispatcher.shutdown(wait=True)

    assert len(recorded) == 1
    operation, duration_ms, data = recorded[0]
    assert operation == "render_report"
    assert duration_ms >= 0
    assert data["key"] == KEY
    assert data["queued_ms"] >= 2000


def test_exception_log_keeps_only_most_recent_entries():
    LAST_EXCEPTIONS.clear()

    def broken_renderer(dataset, sink):
        raise RuntimeError("boom")

    dispatcher = ReportDispatcher(MemoryReportStore(), max_workers=2, renderer=broken_renderer)
    for _ in range(LAST_EXCEPTIONS_MAX + 20):
        dispatcher.dispatch(_job())
    dispatcher.shutdown(wait=True)

    assert len(LAST_EXCEPTIONS) == LAST_EXCEPTIONS_MAX
    assert dispatcher.snapshot()["in_flight"] == 0
    LAST_EXCEPTIONS.clear()


def test_rejected_submit_does_not_leak_in_flight_count(monkeypatch):
    dispatcher = ReportDispatcher(MemoryReportStore(), max_workers=1)

    def refuse(*args, **kwargs):
        raise RuntimeError("cannot schedule new futures after shutdown")

    monkeypatch.setattr(dispatcher._executor, "submit", refuse)
    with pytest.raises(RuntimeError):
        dispatcher.dispatch(_job())
    assert dispatcher.snapshot()["in_flight"] == 0
    monkeypatch.undo()
    dispatcher.shutdown(wait=True)
