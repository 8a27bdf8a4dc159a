"""Logging infrastructure module."""

from unique_timed_queue.infrastructure.logging.setup import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
