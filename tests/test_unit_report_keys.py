from datetime import date

import pytest

from farm_market.errors import ValidationError
from farm_market.models.db.enums import ReportType
from farm_market.services.report_keys import (
    build_report_request,
    key_for_request,
    key_from_raw,
    parse_report_date,
)


def test_trigger_and_fetch_keys_match_for_padded_dates():
    request = build_report_request(ReportType.PRICE_HISTORY, 1, 3, "2023-01-01", "2023-01-31")
    assert key_for_request(request) == "price_history_1_3_2023-01-01_2023-01-31"
    assert request.key == key_from_raw(ReportType.PRICE_HISTORY, 1, 3, "2023-01-01", "2023-01-31")


def test_absent_bounds_use_open_placeholder_on_both_sides():
    request = build_report_request(ReportType.HARVESTS, 7, 9, None, "")
    assert request.start_date is None and request.end_date is None
    assert request.key == "harvests_7_9_all_all"
    assert key_from_raw(ReportType.HARVESTS, 7, 9, None, "") == request.key


def test_unpadded_dates_are_normalised_on_trigger_but_not_on_fetch():
    request = build_report_request(ReportType.PRICE_HISTORY, 1, 3, "2023-1-5", "2023-1-20")
    assert request.start_date == date(2023, 1, 5)
    assert request.key == "price_history_1_3_2023-01-05_2023-01-20"
    raw = key_from_raw(ReportType.PRICE_HISTORY, 1, 3, "2023-1-5", "2023-1-20")
    assert raw == "price_history_1_3_2023-1-5_2023-1-20"
    assert raw != request.key


@pytest.mark.parametrize("value", ["2023/13/40", "2023-13-01", "yesterday", "2023-02-30"])
def test_malformed_start_date_rejected(value):
    with pytest.raises(ValidationError) as exc:
        build_report_request(ReportType.PRICE_HISTORY, 1, 3, value, "2023-01-31")
    assert exc.value.code == "VALIDATION"
    assert exc.value.message == "invalid start date"


def test_malformed_end_date_names_the_field():
    with pytest.raises(ValidationError) as exc:
        parse_report_date("31-01-2023", "end_date")
    assert exc.value.message == "invalid end date"


def test_start_after_end_rejected():
    with pytest.raises(ValidationError):
        build_report_request(ReportType.HARVESTS, 1, 1, "2023-02-01", "2023-01-01")


def test_same_day_range_allowed():
    request = build_report_request(ReportType.HARVESTS, 1, 1, "2023-01-01", "2023-01-01")
    assert request.start_date == request.end_date


def test_literal_all_fetches_unbounded_report_but_cannot_trigger_one():
    unbounded = build_report_request(ReportType.HARVESTS, 7, 9, None, None)
    assert key_from_raw(ReportType.HARVESTS, 7, 9, "all", "all") == unbounded.key
    with pytest.raises(ValidationError):
        build_report_request(ReportType.HARVESTS, 7, 9, "all", "all")
