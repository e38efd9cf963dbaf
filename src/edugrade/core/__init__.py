"""
Core module for EduGrade
"""

from .exceptions import (
    BlockNotFoundError,
    EduGradeException,
    InvalidSubmissionError,
    MalformedContentError,
    NotFoundError,
)
from .models import (
    Base,
    Block,
    BlockAttempt,
    BlockStatistics,
    BlockType,
    ContentDocument,
    LearningStatistics,
    ScheduleItem,
    StudySession,
)
from .services import (
    BlockAnswerService,
    DatabaseService,
    GradingResult,
    StatisticsService,
    SubmissionService,
    get_db_service,
    get_logger,
    get_logging_service,
    init_db_service,
)

__all__ = [
    # Exceptions
    "BlockNotFoundError",
    "EduGradeException",
    "InvalidSubmissionError",
    "MalformedContentError",
    "NotFoundError",
    # Models
    "Base",
    "Block",
    "BlockAttempt",
    "BlockStatistics",
    "BlockType",
    "ContentDocument",
    "LearningStatistics",
    "ScheduleItem",
    "StudySession",
    # Services
    "BlockAnswerService",
    "DatabaseService",
    "GradingResult",
    "StatisticsService",
    "SubmissionService",
    "get_db_service",
    "get_logger",
    "get_logging_service",
    "init_db_service",
]
