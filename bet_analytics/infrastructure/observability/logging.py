"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Iterable
from pythonjsonlogger import jsonlogger
from bet_analytics.config import settings


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


def log_aggregation(
    ticket_id: int,
    user_id: int,
    financial_status: str,
    projections: Iterable[str],
    duration_ms: float,
) -> None:
    """Log structured aggregation outcome for analysis"""
    logging.info(
        "Analytics updated",
        extra={
            "ticket_id": ticket_id,
            "user_id": user_id,
            "step": "aggregation_complete",
            "financial_status": financial_status,
            "projections": sorted(projections),
            "duration_ms": duration_ms,
        },
    )


def log_dead_letter(ticket_id: int, user_id: int, attempts: int, error: str, completed: Iterable[str]) -> None:
    """Log a settlement whose aggregation gave up after all retries"""
    logging.error(
        "Analytics update failed permanently, manual intervention may be required",
        extra={
            "ticket_id": ticket_id,
            "user_id": user_id,
            "step": "aggregation_dead_letter",
            "attempts": attempts,
            "error": error,
            "completed_projections": sorted(completed),
        },
    )
