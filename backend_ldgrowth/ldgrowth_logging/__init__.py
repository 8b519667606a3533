"""
Structured logging for Backend LD Growth.

JSON logs with timestamp, event_type and store/user context.
Use get_logger() in every module for aggregation-friendly output.
"""

from backend_ldgrowth.ldgrowth_logging.logger import bind_store, get_logger

__all__ = ["bind_store", "get_logger"]
