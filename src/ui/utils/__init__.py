"""UI utility functions."""

from src.ui.utils.async_runner import AsyncRunner
from src.ui.utils.error_handler import get_user_message, log_error

__all__ = ["AsyncRunner", "get_user_message", "log_error"]
