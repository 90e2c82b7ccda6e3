"""Structured JSON logging for the storefront core.

Catalog tier outcomes and order submissions are logged as single-line
JSON so a session can be replayed from the log file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any


class JSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if hasattr(record, "data"):
            entry["data"] = record.data  # type: ignore[attr-defined]
        if record.exc_info and record.exc_info[1]:
            entry["error"] = str(record.exc_info[1])
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(
    log_dir: Path | None = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Configure structured logging for the storefront package.

    Args:
        log_dir: Directory for log files. If None, logs to stderr only.
        level: Logging level.

    Returns:
        The root 'storefront' logger.
    """
    logger = logging.getLogger("storefront")
    logger.setLevel(level)

    # Avoid duplicate handlers on repeated calls
    if logger.handlers:
        return logger

    fmt = JSONFormatter()

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / "storefront.jsonl", encoding="utf-8")
        fh.setFormatter(fmt)
        fh.setLevel(level)
        logger.addHandler(fh)

    # Stderr handler (only warnings+)
    sh = logging.StreamHandler()
    sh.setFormatter(fmt)
    sh.setLevel(logging.WARNING)
    logger.addHandler(sh)

    return logger


def log_catalog_tier(
    source_id: str,
    tier: str,
    ok: bool,
    product_count: int = 0,
    error: str | None = None,
) -> None:
    """Log the outcome of one catalog fallback tier."""
    logger = logging.getLogger("storefront.catalog")
    logger.info(
        "catalog_tier",
        extra={"data": {
            "source": source_id,
            "tier": tier,
            "ok": ok,
            "products": product_count,
            "error": error,
        }},
    )


def log_order_submission(
    form_id: str,
    item_count: int,
    success: bool,
    elapsed_s: float,
    submission_id: str | None = None,
    error_type: str | None = None,
) -> None:
    """Log a completed order submission attempt."""
    logger = logging.getLogger("storefront.orders")
    logger.info(
        "order_submission",
        extra={"data": {
            "form": form_id,
            "items": item_count,
            "success": success,
            "elapsed_s": round(elapsed_s, 3),
            "submission_id": submission_id,
            "error_type": error_type,
        }},
    )
