"""Activity logging package."""

from smartshop.audit.logger import ActivityLogger, configure_logging, get_logger

__all__ = ["ActivityLogger", "configure_logging", "get_logger"]
