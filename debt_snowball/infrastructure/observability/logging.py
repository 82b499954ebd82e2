"""Structured JSON logging for the ingestion and reconciliation pipeline"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from debt_snowball.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_reconciliation(
    statement_id: Optional[str],
    debt_id: Optional[str],
    outcome: str,
    balance_change: Optional[Decimal] = None,
    error: Optional[str] = None,
) -> None:
    """Log structured reconciliation outcome"""
    logging.info(
        "Reconciliation completed",
        extra={
            "statement_id": statement_id,
            "debt_id": debt_id,
            "step": "reconcile",
            "outcome": outcome,
            "balance_change": str(balance_change) if balance_change is not None else None,
            "error": error,
        },
    )
