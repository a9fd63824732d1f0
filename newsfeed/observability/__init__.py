"""Observability: logging and metrics for the notifier and its subscribers."""

from newsfeed.observability.logger import get_logger
from newsfeed.observability.metrics import Metrics

__all__ = ["get_logger", "Metrics"]
