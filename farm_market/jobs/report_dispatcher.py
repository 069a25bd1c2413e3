"""Fire-and-forget background rendering of report jobs.

``dispatch`` hands a job to a bounded thread pool and returns ``None``. The
caller gets no future and no completion signal: a successful render shows up
as a new file in the report store, a failed one shows up nowhere except the
logs and ``LAST_EXCEPTIONS``. Clients find out by polling the fetch endpoint.
"""
from __future__ import annotations

import threading
import time
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from farm_market.config import REPORT_SETTINGS
from farm_market.jobs.report_job import ReportJob
from farm_market.services.report_renderer import render_report
from farm_market.services.report_store import ReportStore
from farm_market.utils import get_logger, log_performance, utc_now, elapsed_ms

logger = get_logger(__name__)

# Debug instrumentation store (test visibility); never exposed over HTTP
LAST_EXCEPTIONS_MAX = 100
LAST_EXCEPTIONS: deque[dict] = deque(maxlen=LAST_EXCEPTIONS_MAX)


class ReportDispatcher:
    def __init__(
        self,
        store: ReportStore,
        *,
        max_workers: Optional[int] = None,
        renderer: Callable = render_report,
    ) -> None:
        self.store = store
        self.max_workers = int(max_workers or REPORT_SETTINGS.get("max_workers", 4))  # type: ignore[arg-type]
        self._renderer = renderer
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="report-render")
        self._lock = threading.Lock()
        self._in_flight = 0
        self._closed = False

    def dispatch(self, job: ReportJob) -> None:
        """Schedule ``job`` and return immediately; the outcome is never reported back."""
        with self._lock:
            if self._closed:
                raise RuntimeError("Report dispatcher is shut down")
            self._in_flight += 1
            try:
                self._executor.submit(self._run, job)
            except Exception:
                self._in_flight -= 1
                raise
        logger.info(
            "Report render dispatched",
            key=job.key,
            report_type=job.report_type.value,
            rows=len(job.dataset.rows),
            correlation_id=job.correlation_id,
        )

    def _run(self, job: ReportJob) -> None:
        queued_ms = (utc_now() - job.requested_at).total_seconds() * 1000
        start = time.perf_counter()
        try:
            report = self.store.put(job.key, lambda sink: self._renderer(job.dataset, sink))
            log_performance(
                operation="render_report",
                duration_ms=elapsed_ms(start),
                additional_data={"key": job.key, "rows": len(job.dataset.rows), "queued_ms": round(queued_ms, 2)},
            )
            logger.info("Report render completed", key=job.key, filename=report.filename, correlation_id=job.correlation_id)
        except Exception as e:
            logger.error(
                "Report render failed",
                key=job.key,
                error=str(e),
                queued_ms=round(queued_ms, 2),
                correlation_id=job.correlation_id,
                exc_info=True,
            )
            LAST_EXCEPTIONS.append({
                "key": job.key,
                "error": str(e),
                "type": type(e).__name__,
            })
        finally:
            with self._lock:
                self._in_flight -= 1

    def snapshot(self) -> dict:
        with self._lock:
            return {
                "max_workers": self.max_workers,
                "in_flight": self._in_flight,
                "closed": self._closed,
            }

    def shutdown(self, wait: bool = False) -> None:
        """Stop accepting jobs. ``wait=True`` blocks until queued renders finish."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)
        logger.info("Report dispatcher shut down", wait=wait)


__all__ = ["ReportDispatcher", "LAST_EXCEPTIONS", "LAST_EXCEPTIONS_MAX"]
