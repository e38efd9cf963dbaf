"""
Core services for EduGrade
"""

from .database import DatabaseService, get_db_service, init_db_service
from .logging import LoggingService, get_logging_service, get_logger, reset_logging_service
from .settings_config_service import (
    SettingsConfigService,
    get_settings_service,
    reset_settings_service,
)
from .text_normalizer import normalize, texts_equal
from .content_parser import parse_content
from .validators import GradingResult, ValidatorFactory, get_validator_factory
from .repositories import (
    BlockAttemptRepository,
    BlockStatisticsRepository,
    ScheduleItemRepository,
    StudySessionRepository,
)
from .block_answer_service import BlockAnswerService
from .attempt_recorder import AttemptRecorder
from .learning_statistics import aggregate
from .statistics_service import StatisticsService
from .submission_service import SubmissionOutcome, SubmissionService

__all__ = [
    "DatabaseService",
    "get_db_service",
    "init_db_service",
    "LoggingService",
    "get_logging_service",
    "get_logger",
    "reset_logging_service",
    "SettingsConfigService",
    "get_settings_service",
    "reset_settings_service",
    # Grading
    "normalize",
    "texts_equal",
    "parse_content",
    "GradingResult",
    "ValidatorFactory",
    "get_validator_factory",
    "BlockAnswerService",
    # Persistence
    "BlockAttemptRepository",
    "BlockStatisticsRepository",
    "ScheduleItemRepository",
    "StudySessionRepository",
    "AttemptRecorder",
    "SubmissionOutcome",
    "SubmissionService",
    # Statistics
    "aggregate",
    "StatisticsService",
]
