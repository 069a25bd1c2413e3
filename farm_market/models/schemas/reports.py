"""
Pydantic schemas for asynchronous report generation.
"""
from pydantic import Field, ConfigDict
from .base import ResponseBase

class ReportAcknowledgement(ResponseBase):
    """Returned when a report render has been dispatched.

    There is no job id: clients poll ``download_url`` (built from the same
    request parameters) until the file appears.
    """
    download_url: str = Field(description="Polling URL of the generated file")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "success": True,
            "message": "Report generation in progress. Please check back in a few moments.",
            "download_url": "http://localhost:8000/api/v1/prices/history/commodity/1/region/3/download/file?start_date=2023-01-01&end_date=2023-01-31"
        }
    })
