"""
Models package for EduGrade

Database models, the typed content document and the statistics read models.
"""

from .content import (
    AnswerType,
    Blank,
    BlankOption,
    Block,
    BlockType,
    ContentDocument,
    GapFillData,
)
from .models import (
    Base,
    BlockAttempt,
    BlockStatistics,
    Chapter,
    ScheduleItem,
    StudySession,
    SubChapter,
    SubChapterAssignment,
    utc_now,
)
from .schemas import (
    BlockAttemptSummary,
    BlockStatisticsView,
    LearningStatistics,
    QuestionPerformance,
    ReviewItem,
    StudyChart,
    StudyChartPoint,
    StudyTimeSummary,
    TopicError,
    TopicRef,
    TopicStudy,
)

__all__ = [
    # Content
    "AnswerType",
    "Blank",
    "BlankOption",
    "Block",
    "BlockType",
    "ContentDocument",
    "GapFillData",
    # Database
    "Base",
    "BlockAttempt",
    "BlockStatistics",
    "Chapter",
    "ScheduleItem",
    "StudySession",
    "SubChapter",
    "SubChapterAssignment",
    "utc_now",
    # Read models
    "BlockAttemptSummary",
    "BlockStatisticsView",
    "LearningStatistics",
    "QuestionPerformance",
    "ReviewItem",
    "StudyChart",
    "StudyChartPoint",
    "StudyTimeSummary",
    "TopicError",
    "TopicRef",
    "TopicStudy",
]
