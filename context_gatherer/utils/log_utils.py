"""Logging helpers.

Log records carry structured fields through ``extra`` so handlers and
formatters can pick them up as attributes (``record.event``,
``record.sources`` and so on).
"""

import logging
from typing import Iterable, Union

from rich.logging import RichHandler

CONTEXT_GATHERED_EVENT = "context_gathered"


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """Install a rich console handler on the root logger.

    Args:
        level: Logging level name or number.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logging.root.handlers.clear()
    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logging.root.addHandler(handler)
    logging.root.setLevel(level)


def log_context_gathering(logger: logging.Logger,
                          sources: Iterable[str],
                          tokens_used: int,
                          duration_ms: float) -> None:
    """Emit the per-call summary of a gather request."""
    sources = sorted(sources)
    logger.info(
        "Context gathered from %d sources (%d tokens)", len(sources), tokens_used,
        extra={
            "event": CONTEXT_GATHERED_EVENT,
            "sources": sources,
            "tokens_used": tokens_used,
            "duration_ms": duration_ms,
        }
    )
