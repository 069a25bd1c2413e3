"""
Utilities package initialization.
"""
from .logger import get_logger, log_business_event, log_performance, setup_logging
from .time import utc_now, elapsed_ms
from .observability import ensure_request_id, REQUEST_ID_HEADER

__all__ = [
    "get_logger",
    "log_business_event",
    "log_performance",
    "setup_logging",
    "utc_now",
    "elapsed_ms",
    "ensure_request_id",
    "REQUEST_ID_HEADER",
]
