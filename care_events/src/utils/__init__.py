"""
Utility modules for the care events service.
"""

from care_events.src.utils.logging_config import get_logger, init_logging, log_fields
from care_events.src.utils.clock import utc_now, to_naive_utc

__all__ = ["get_logger", "init_logging", "log_fields", "utc_now", "to_naive_utc"]
