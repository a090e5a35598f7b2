"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from spendmart_core.config import settings


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

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_purchase(
    request_id: str,
    user_id: str,
    payment_method: str,
    outcome: str,
    amount: Decimal,
    duration_ms: float,
    item_id: str | None = None,
) -> None:
    """Log structured purchase outcome for analysis"""
    logging.info(
        "Purchase completed",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "step": "purchase_complete",
            "payment_method": payment_method,
            "outcome": outcome,
            "amount": str(amount),
            "item_id": item_id,
            "duration_ms": duration_ms,
        },
    )
