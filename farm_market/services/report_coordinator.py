"""Asynchronous report generation and polling retrieval.

``start_generation`` validates the request, fetches the dataset, dispatches a
render and acknowledges right away with a polling URL. ``fetch_generated_file``
looks up the newest stored file for the same parameters. The only state per
key is "no file yet" or "one or more files": a pending render and a failed
render are indistinguishable to the poller.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Optional
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from farm_market.config import API_BASE_URL, REPORT_IN_PROGRESS_MESSAGE
from farm_market.errors import InternalError, NotFoundError
from farm_market.jobs.report_dispatcher import ReportDispatcher
from farm_market.jobs.report_job import ReportJob
from farm_market.models.db.enums import ReportType
from farm_market.services.report_datasets import DATASET_BUILDERS
from farm_market.services.report_keys import (
    ReportRequest,
    build_report_request,
    format_report_date,
    key_from_raw,
)
from farm_market.services.report_renderer import ReportDataset
from farm_market.services.report_store import ReportFile, ReportStorageError, ReportStore
from farm_market.utils import get_logger

logger = get_logger(__name__)

# Path (below API_BASE_URL) of the fetch endpoint for each report type.
DOWNLOAD_PATHS: dict[ReportType, str] = {
    ReportType.PRICE_HISTORY: "/prices/history/commodity/{a}/region/{b}/download/file",
    ReportType.HARVESTS: "/harvests/commodity/{a}/region/{b}/download/file",
}

DatasetBuilder = Callable[[Session, ReportRequest], ReportDataset]


@dataclass(frozen=True, slots=True)
class Acknowledgement:
    message: str
    download_url: str
    key: str


class ReportCoordinator:
    def __init__(
        self,
        store: ReportStore,
        dispatcher: ReportDispatcher,
        *,
        base_url: Optional[str] = None,
        builders: Optional[Mapping[ReportType, DatasetBuilder]] = None,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.base_url = (base_url or API_BASE_URL).rstrip("/")
        self.builders = dict(builders or DATASET_BUILDERS)

    def download_url(self, request: ReportRequest) -> str:
        path = DOWNLOAD_PATHS[request.report_type].format(a=request.entity_key_a, b=request.entity_key_b)
        params = {}
        if request.start_date is not None:
            params["start_date"] = format_report_date(request.start_date)
        if request.end_date is not None:
            params["end_date"] = format_report_date(request.end_date)
        url = f"{self.base_url}{path}"
        return f"{url}?{urlencode(params)}" if params else url

    def start_generation(
        self,
        db: Session,
        report_type: ReportType,
        entity_key_a: int,
        entity_key_b: int,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> Acknowledgement:
        """Validate, fetch the dataset, dispatch the render and acknowledge.

        Raises ValidationError for malformed dates and NotFoundError for
        missing entities. Never waits on the render itself.
        """
        request = build_report_request(report_type, entity_key_a, entity_key_b, start_date, end_date)
        key = request.key
        dataset = self.builders[report_type](db, request)

        self.dispatcher.dispatch(ReportJob(
            report_type=report_type,
            key=key,
            dataset=dataset,
            correlation_id=correlation_id,
        ))
        logger.info(
            "Report generation started",
            key=key,
            rows=len(dataset.rows),
            correlation_id=correlation_id,
        )
        return Acknowledgement(
            message=REPORT_IN_PROGRESS_MESSAGE,
            download_url=self.download_url(request),
            key=key,
        )

    def fetch_generated_file(
        self,
        report_type: ReportType,
        entity_key_a: int,
        entity_key_b: int,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> ReportFile:
        """Newest stored file for the raw parameters.

        Dates are used as received, not re-parsed. Raises NotFoundError when
        nothing matches (yet) and InternalError when storage cannot be read.
        """
        key = key_from_raw(report_type, entity_key_a, entity_key_b, start_date, end_date)
        try:
            report = self.store.latest(key)
        except ReportStorageError as e:
            logger.error("Report lookup failed", key=key, error=str(e), exc_info=True)
            raise InternalError("Error finding report file") from e
        if report is None:
            logger.info("Report file not available", key=key)
            raise NotFoundError("Report file not found")
        return report


__all__ = ["ReportCoordinator", "Acknowledgement", "DOWNLOAD_PATHS"]
