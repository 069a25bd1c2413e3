"""
Response helpers shared by the report endpoints.
"""
from fastapi.responses import StreamingResponse
from farm_market.config import REPORT_CONTENT_TYPE
from farm_market.services.report_store import ReportFile, ReportStore

def report_file_response(store: ReportStore, report: ReportFile) -> StreamingResponse:
    """Stream a stored report back as an attachment."""
    headers = {
        "Content-Description": "File Transfer",
        "Content-Transfer-Encoding": "binary",
        "Content-Disposition": f"attachment; filename={report.filename}",
    }
    return StreamingResponse(
        store.iter_bytes(report),
        media_type=REPORT_CONTENT_TYPE,
        headers=headers,
    )
