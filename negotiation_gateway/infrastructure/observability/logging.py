"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "negotiation-gateway"


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


def log_turn(
    request_id: str,
    session_id: str,
    phase_before: str,
    phase_after: str,
    agreement_reached: bool,
    used_fallback: bool,
    duration_ms: float,
) -> None:
    """Log structured turn outcome for analysis"""
    logging.info(
        "Turn completed",
        extra={
            "request_id": request_id,
            "session_id": session_id,
            "step": "turn_complete",
            "phase_before": phase_before,
            "phase_after": phase_after,
            "agreement_outcome": "agreed" if agreement_reached else "open",
            "used_fallback": used_fallback,
            "duration_ms": duration_ms,
        },
    )
