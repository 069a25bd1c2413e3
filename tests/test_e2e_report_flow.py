"""End-to-end report flow through HTTP: trigger, poll, download."""
import io
import time
from datetime import date, datetime
from urllib.parse import urlparse

from fastapi.testclient import TestClient
from openpyxl import load_workbook

from farm_market.config import REPORT_CONTENT_TYPE, REPORT_IN_PROGRESS_MESSAGE
from farm_market.jobs.report_dispatcher import LAST_EXCEPTIONS
from farm_market.models.db.enums import UserRole

POLL_TIMEOUT_S = 10.0


def _poll(client: TestClient, url: str, headers: dict, params: dict | None = None):
    deadline = time.time() + POLL_TIMEOUT_S
    while True:
        r = client.get(url, headers=headers, params=params)
        if r.status_code != 404 or time.time() > deadline:
            return r
        time.sleep(0.05)


def _path_and_query(download_url: str) -> str:
    parsed = urlparse(download_url)
    return f"{parsed.path}?{parsed.query}" if parsed.query else parsed.path


def test_price_history_report_scenario(client: TestClient, auth_header, commodity_factory, region_factory, price_factory):
    headers, _ = auth_header
    c1, r1 = commodity_factory("Red Chili C1"), region_factory("Bandung R1")
    price_factory(
        c1, r1, 15000,
        updated_at=datetime(2023, 1, 25, 8, 0),
        history=[
            (datetime(2023, 1, 3, 8, 0), 12000),
            (datetime(2023, 1, 15, 8, 0), 13500),
            (datetime(2022, 12, 30, 8, 0), 11000),
        ],
    )

    trigger = client.post(
        f"/api/v1/prices/history/commodity/{c1.id}/region/{r1.id}/download",
        params={"start_date": "2023-01-01", "end_date": "2023-01-31"},
        headers=headers,
    )
    assert trigger.status_code == 202, trigger.text
    body = trigger.json()
    assert body["success"] is True
    assert body["message"] == REPORT_IN_PROGRESS_MESSAGE
    for part in (str(c1.id), str(r1.id), "2023-01-01", "2023-01-31"):
        assert part in body["download_url"]

    r = _poll(client, _path_and_query(body["download_url"]), headers)
    assert r.status_code == 200, r.text
    assert r.headers["content-type"] == REPORT_CONTENT_TYPE
    assert r.headers["content-description"] == "File Transfer"
    assert r.headers["content-transfer-encoding"] == "binary"
    disposition = r.headers["content-disposition"]
    assert disposition.startswith("attachment; filename=")
    for part in (str(c1.id), str(r1.id), "2023-01-01", "2023-01-31"):
        assert part in disposition

    ws = load_workbook(io.BytesIO(r.content)).active
    assert [c.value for c in ws[1]] == ["No", "Date", "Price", "Unit", "Commodity", "Region"]
    rows = [[c.value for c in row] for row in ws.iter_rows(min_row=2)]
    # December 2022 point is outside the range; the live price is last
    assert [row[2] for row in rows] == [12000, 13500, 15000]
    assert rows[0][4] == "Red Chili C1" and rows[0][5] == "Bandung R1"


def test_fetch_before_render_is_not_found(client: TestClient, auth_header):
    headers, _ = auth_header
    r = client.get(
        "/api/v1/prices/history/commodity/424242/region/424242/download/file",
        params={"start_date": "2023-01-01", "end_date": "2023-01-31"},
        headers=headers,
    )
    assert r.status_code == 404
    body = r.json()
    assert body["success"] is False
    assert body["code"] == "NOT_FOUND"
    assert body["message"] == "Report file not found"
    assert body["request_id"]


def test_malformed_trigger_date_is_validation_error(client: TestClient, auth_header, commodity_factory, region_factory, price_factory):
    headers, _ = auth_header
    c, rg = commodity_factory(), region_factory()
    price_factory(c, rg)
    r = client.post(
        f"/api/v1/prices/history/commodity/{c.id}/region/{rg.id}/download",
        params={"start_date": "2023/13/40", "end_date": "2023-01-31"},
        headers=headers,
    )
    assert r.status_code == 400
    assert r.json()["code"] == "VALIDATION"
    assert r.json()["message"] == "invalid start date"


def test_unpadded_dates_only_found_through_normalised_url(client: TestClient, report_services, auth_header, commodity_factory, region_factory, price_factory):
    headers, _ = auth_header
    c, rg = commodity_factory(), region_factory()
    price_factory(c, rg)
    trigger = client.post(
        f"/api/v1/prices/history/commodity/{c.id}/region/{rg.id}/download",
        params={"start_date": "2023-1-5", "end_date": "2023-1-20"},
        headers=headers,
    )
    assert trigger.status_code == 202
    assert "2023-01-05" in trigger.json()["download_url"]
    report_services.shutdown(wait=True)

    file_url = f"/api/v1/prices/history/commodity/{c.id}/region/{rg.id}/download/file"
    raw = client.get(file_url, params={"start_date": "2023-1-5", "end_date": "2023-1-20"}, headers=headers)
    assert raw.status_code == 404
    normalised = client.get(file_url, params={"start_date": "2023-01-05", "end_date": "2023-01-20"}, headers=headers)
    assert normalised.status_code == 200


def test_second_render_supersedes_first(client: TestClient, report_store, auth_header, commodity_factory, region_factory, price_factory):
    headers, _ = auth_header
    c, rg = commodity_factory(), region_factory()
    price_factory(c, rg)
    url = f"/api/v1/prices/history/commodity/{c.id}/region/{rg.id}/download"
    file_url = url + "/file"

    client.post(url, headers=headers)
    first = _poll(client, file_url, headers)
    assert first.status_code == 200
    client.post(url, headers=headers)
    deadline = time.time() + POLL_TIMEOUT_S
    while len(report_store.filenames()) < 2 and time.time() < deadline:
        time.sleep(0.05)

    names = report_store.filenames()
    assert len(names) == 2
    second = client.get(file_url, headers=headers)
    assert second.headers["content-disposition"].endswith(max(names))


def test_harvest_report_lists_farmers(client: TestClient, user_factory, commodity_factory, region_factory, harvest_factory):
    farmer = user_factory(UserRole.FARMER, name="Siti")
    headers = {"Authorization": f"Bearer {farmer.api_key}"}
    c, rg = commodity_factory("Shallot"), region_factory("Brebes")
    harvest_factory(c, rg, date(2023, 1, 20), 300, user=farmer)
    harvest_factory(c, rg, date(2023, 1, 2), 120)
    harvest_factory(c, rg, date(2023, 3, 1), 999)

    trigger = client.post(
        f"/api/v1/harvests/commodity/{c.id}/region/{rg.id}/download",
        params={"start_date": "2023-01-01", "end_date": "2023-01-31"},
        headers=headers,
    )
    assert trigger.status_code == 202, trigger.text
    r = _poll(client, _path_and_query(trigger.json()["download_url"]), headers)
    assert r.status_code == 200

    ws = load_workbook(io.BytesIO(r.content)).active
    rows = [[cell.value for cell in row] for row in ws.iter_rows(min_row=2)]
    assert [row[2] for row in rows] == [120, 300]
    assert rows[0][6] in (None, "")
    assert rows[1][6] == "Siti"


def test_failed_render_stays_not_found(client: TestClient, report_services, monkeypatch, auth_header, commodity_factory, region_factory):
    headers, _ = auth_header
    c, rg = commodity_factory(), region_factory()

    def broken_renderer(dataset, sink):
        raise RuntimeError("renderer crashed")

    monkeypatch.setattr(report_services, "_renderer", broken_renderer)
    trigger = client.post(f"/api/v1/harvests/commodity/{c.id}/region/{rg.id}/download", headers=headers)
    assert trigger.status_code == 202
    report_services.shutdown(wait=True)

    r = client.get(f"/api/v1/harvests/commodity/{c.id}/region/{rg.id}/download/file", headers=headers)
    assert r.status_code == 404
    assert LAST_EXCEPTIONS and LAST_EXCEPTIONS[-1]["error"] == "renderer crashed"


def test_report_routes_require_authentication(client: TestClient):
    r = client.post("/api/v1/harvests/commodity/1/region/1/download")
    assert r.status_code in (401, 403)
