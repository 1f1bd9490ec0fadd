"""Logging configuration for kubedeploy."""

from kubedeploy.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
