"""Logging, run correlation and metrics"""

from .logging_config import configure_logging
from .run_context import get_run_id, job_run

__all__ = ["configure_logging", "get_run_id", "job_run"]
