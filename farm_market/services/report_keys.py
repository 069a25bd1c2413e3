"""Report request validation and key derivation.

A ReportKey is the only join point between the request that triggers a render
and the requests that poll for its output: there is no job id. Both sides must
therefore produce the same text for the same parameters.

Two derivations exist on purpose:

* :func:`key_for_request` (trigger side) formats *parsed* dates, so
  ``2023-1-5`` and ``2023-01-05`` both become ``2023-01-05``.
* :func:`key_from_raw` (fetch side) embeds the *raw* query text unchanged.

Clients that echo back the ``download_url`` always get matching keys. Clients
that rebuild the URL with unpadded dates do not; that asymmetry is kept as-is
and pinned by tests.

The same raw-text rule means a literal ``all`` on the fetch side is
indistinguishable from the open-bound placeholder: ``start_date=all&end_date=all``
fetches the unbounded report, while the trigger rejects ``all`` as an invalid
date. Fetching never validates dates, so this is accepted too.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from farm_market.config import REPORT_SETTINGS
from farm_market.errors import ValidationError
from farm_market.models.db.enums import ReportType

KEY_SEPARATOR = "_"


@dataclass(frozen=True, slots=True)
class ReportRequest:
    report_type: ReportType
    entity_key_a: int
    entity_key_b: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def key(self) -> str:
        return key_for_request(self)


def parse_report_date(value: Optional[str], field: str) -> Optional[date]:
    """Parse an optional ``YYYY-MM-DD`` query value.

    Empty/absent means unbounded. Anything else that does not parse raises
    ValidationError("invalid <field>") instead of defaulting.
    """
    if value is None or value.strip() == "":
        return None
    try:
        return datetime.strptime(value.strip(), str(REPORT_SETTINGS["date_format"])).date()
    except ValueError:
        raise ValidationError(f"invalid {field.replace('_', ' ')}")


def build_report_request(
    report_type: ReportType,
    entity_key_a: int,
    entity_key_b: int,
    start_date: Optional[str],
    end_date: Optional[str],
) -> ReportRequest:
    start = parse_report_date(start_date, "start_date")
    end = parse_report_date(end_date, "end_date")
    if start is not None and end is not None and start > end:
        raise ValidationError("start date must not be after end date")
    return ReportRequest(report_type, entity_key_a, entity_key_b, start, end)


def format_report_date(value: Optional[date]) -> str:
    if value is None:
        return str(REPORT_SETTINGS["open_bound"])
    return value.strftime(str(REPORT_SETTINGS["date_format"]))


def _join(report_type: ReportType, a: object, b: object, start: str, end: str) -> str:
    return KEY_SEPARATOR.join([report_type.value, str(a), str(b), start, end])


def key_for_request(request: ReportRequest) -> str:
    return _join(
        request.report_type,
        request.entity_key_a,
        request.entity_key_b,
        format_report_date(request.start_date),
        format_report_date(request.end_date),
    )


def key_from_raw(
    report_type: ReportType,
    entity_key_a: int,
    entity_key_b: int,
    start_date: Optional[str],
    end_date: Optional[str],
) -> str:
    """Rebuild a key from un-parsed query text (fetch side)."""
    open_bound = str(REPORT_SETTINGS["open_bound"])
    return _join(
        report_type,
        entity_key_a,
        entity_key_b,
        start_date if start_date else open_bound,
        end_date if end_date else open_bound,
    )


__all__ = [
    "ReportRequest",
    "parse_report_date",
    "build_report_request",
    "format_report_date",
    "key_for_request",
    "key_from_raw",
]
