"""Formatting and logging utilities."""

from .context_formatter import format_for_model
from .log_utils import log_context_gathering, setup_logging

__all__ = ["format_for_model", "log_context_gathering", "setup_logging"]
