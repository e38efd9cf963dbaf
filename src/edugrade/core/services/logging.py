"""
Logging service for EduGrade
"""

import os
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
import structlog

from .settings_config_service import get_settings_service


class LoggingService:
    """Structured logging service"""

    def __init__(self, log_dir: Optional[str] = None):
        settings = get_settings_service()
        self.log_dir = Path(
            log_dir
            or os.getenv("EDUGRADE_LOG_DIR")
            or settings.get("logging", "directory", "logs")
        )
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.level = getattr(
            logging, settings.get("logging", "level", "INFO").upper(), logging.INFO
        )

        # Configure structlog
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.stdlib.PositionalArgumentsFormatter(),
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.UnicodeDecoder(),
                structlog.processors.JSONRenderer(ensure_ascii=False),
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        self._handlers: list = []
        self._setup_handlers()

    def _setup_handlers(self):
        """Set up logging handlers"""
        # Main application log
        main_handler = logging.FileHandler(self.log_dir / "edugrade.log", encoding="utf-8")
        main_handler.setLevel(self.level)
        main_handler.setFormatter(logging.Formatter("%(message)s"))

        # Data-integrity problems and other faults
        error_handler = logging.FileHandler(self.log_dir / "errors.log", encoding="utf-8")
        error_handler.setLevel(logging.WARNING)
        error_handler.setFormatter(logging.Formatter("%(message)s"))

        # Console handler for development
        console_handler = logging.StreamHandler()
        console_level = logging.DEBUG if os.getenv("EDUGRADE_DEV_MODE") else logging.INFO
        console_handler.setLevel(console_level)
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(min(self.level, console_level))
        for handler in (main_handler, error_handler, console_handler):
            root_logger.addHandler(handler)
            self._handlers.append(handler)

    def close(self):
        """Detach and close the handlers this service installed"""
        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers = []

    def get_logger(self, name: str) -> structlog.BoundLogger:
        """Get a structured logger"""
        return structlog.get_logger(name)

    def log_event(
        self,
        logger_name: str,
        level: str,
        event_type: str,
        student_id: Optional[str] = None,
        **kwargs,
    ):
        """Log a structured event"""
        logger = self.get_logger(logger_name)

        log_data = {
            "event_type": event_type,
            "student_id": student_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **kwargs,
        }

        # Map level to logger method
        level_method = getattr(logger, level.lower(), logger.info)
        level_method(event_type, **log_data)

    def log_crud_operation(
        self,
        operation: str,
        entity: str,
        entity_id: Any,
        student_id: Optional[str] = None,
        **kwargs,
    ):
        """Log CRUD operation"""
        self.log_event(
            "crud",
            "INFO",
            f"crud.{operation}",
            student_id=student_id,
            entity=entity,
            entity_id=entity_id,
            **kwargs,
        )

    def log_grading(
        self,
        schedule_item_id: int,
        block_id: str,
        is_correct: bool,
        student_id: Optional[str] = None,
        **kwargs,
    ):
        """Log a graded submission"""
        self.log_event(
            "grading",
            "INFO",
            "grading.validated",
            student_id=student_id,
            schedule_item_id=schedule_item_id,
            block_id=block_id,
            is_correct=is_correct,
            **kwargs,
        )

    def log_error(
        self,
        error_type: str,
        error_message: str,
        student_id: Optional[str] = None,
        **kwargs,
    ):
        """Log error event"""
        self.log_event(
            "error",
            "ERROR",
            f"error.{error_type}",
            student_id=student_id,
            error_message=error_message,
            **kwargs,
        )

    def log_performance(
        self, operation: str, duration_ms: int, student_id: Optional[str] = None, **kwargs
    ):
        """Log performance metric"""
        self.log_event(
            "performance",
            "INFO",
            f"performance.{operation}",
            student_id=student_id,
            duration_ms=duration_ms,
            **kwargs,
        )


# Global logging service instance
_logging_service: Optional[LoggingService] = None


def get_logging_service() -> LoggingService:
    """Get the global logging service instance"""
    global _logging_service
    if _logging_service is None:
        _logging_service = LoggingService()
    return _logging_service


def reset_logging_service():
    """Close and forget the global logging service. Useful for testing."""
    global _logging_service
    if _logging_service is not None:
        _logging_service.close()
    _logging_service = None


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance"""
    return get_logging_service().get_logger(name)
