"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from recurring_engine.config import settings
from recurring_engine.domain.models import ExecutionReport, ReminderReport


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


def log_batch_outcome(request_id: str, report: ExecutionReport, now_millis: int, duration_ms: float) -> None:
    """Log structured execution batch outcome for analysis"""
    logging.info(
        "Execution batch completed",
        extra={
            "request_id": request_id,
            "step": "execution_batch_complete",
            "batch_status": report.status.value,
            "now_millis": now_millis,
            "executed_count": len(report.executed),
            "failed_count": len(report.failed),
            "failed_rule_ids": [str(o.rule_id) for o in report.failed],
            "duration_ms": duration_ms,
        },
    )


def log_reminder_scan(request_id: str, report: ReminderReport, now_millis: int, duration_ms: float) -> None:
    """Log structured reminder scan outcome"""
    logging.info(
        "Reminder scan completed",
        extra={
            "request_id": request_id,
            "step": "reminder_scan_complete",
            "batch_status": report.status.value,
            "notifications_enabled": report.notifications_enabled,
            "now_millis": now_millis,
            "raised_count": len(report.raised),
            "failed_count": len(report.failed),
            "duration_ms": duration_ms,
        },
    )
