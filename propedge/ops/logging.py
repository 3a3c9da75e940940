"""Logging setup."""

import logging
import os
from typing import Optional


def configure_logging(run_id: Optional[str] = None, level: Optional[str] = None) -> None:
    """Configure process-wide logging for CLI runs and the API server."""
    level_name = (level or os.environ.get("PROPEDGE_LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    run_prefix = f"[run_id={run_id}] " if run_id else ""
    fmt = "%(asctime)s %(levelname)s " + run_prefix + "%(name)s: %(message)s"
    logging.basicConfig(level=log_level, format=fmt, force=True)
