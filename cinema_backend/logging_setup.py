"""
Logging configuration for the API process.
"""

from __future__ import annotations

import logging
from typing import Optional


def setup_logging(level: Optional[str] = None) -> None:
    """Configure a single console handler; later calls are no-ops."""
    level_value = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=level_value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
