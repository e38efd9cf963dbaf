"""
Read models returned by the statistics services
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class StudyTimeSummary(BaseModel):
    """Minutes studied in each window"""

    today_minutes: int = 0
    week_minutes: int = 0
    month_minutes: int = 0


class StudyChartPoint(BaseModel):
    day: date
    label: str
    minutes: int = 0


class StudyChart(BaseModel):
    """Minutes per day over a trailing window"""

    range_key: str
    range_title: str
    points: List[StudyChartPoint] = Field(default_factory=list)
    total_minutes: int = 0


class QuestionPerformance(BaseModel):
    total_answered: int = 0
    correct_answers: int = 0
    incorrect_answers: int = 0
    accuracy_percentage: float = 0.0


class TopicRef(BaseModel):
    """Where a schedule item sits in the course outline"""

    sub_chapter_id: Optional[int] = None
    schedule_item_id: Optional[int] = None
    chapter_title: Optional[str] = None
    sub_chapter_title: str = ""

    @property
    def key(self) -> str:
        if self.sub_chapter_id is not None:
            return f"subchapter-{self.sub_chapter_id}"
        return f"schedule-{self.schedule_item_id}"


class TopicStudy(TopicRef):
    last_studied_at: Optional[datetime] = None
    total_minutes: int = 0


class TopicError(TopicRef):
    incorrect_attempts: int = 0
    correct_attempts: int = 0
    total_attempts: int = 0
    success_rate: float = 0.0


class LearningStatistics(BaseModel):
    """Dashboard summary of a student's whole history"""

    student_id: str
    generated_at: datetime
    study_time: StudyTimeSummary
    weekly_chart: StudyChart
    monthly_chart: StudyChart
    question_performance: QuestionPerformance
    recent_topics: List[TopicStudy] = Field(default_factory=list)
    most_incorrect_topics: List[TopicError] = Field(default_factory=list)


class BlockStatisticsView(BaseModel):
    schedule_item_id: int
    schedule_item_title: str
    schedule_item_type: str
    block_id: str
    block_instruction: Optional[str] = None
    block_order: int = 0
    total_attempts: int = 0
    correct_attempts: int = 0
    incorrect_attempts: int = 0
    success_rate: float = 0.0
    current_streak: int = 0
    best_streak: int = 0
    consecutive_incorrect_attempts: int = 0
    last_attempt_at: Optional[datetime] = None
    last_correct_at: Optional[datetime] = None


class BlockAttemptSummary(BaseModel):
    attempt_id: int
    is_correct: bool
    points_earned: float
    max_points: float
    attempted_at: datetime


class ReviewItem(BaseModel):
    """A block the student should revisit, with their latest attempts"""

    schedule_item_id: int
    schedule_item_title: str
    schedule_item_type: str
    block_id: str
    block_instruction: Optional[str] = None
    block_order: int = 0
    total_attempts: int = 0
    incorrect_attempts: int = 0
    success_rate: float = 0.0
    consecutive_incorrect_attempts: int = 0
    last_attempt_at: Optional[datetime] = None
    recent_attempts: List[BlockAttemptSummary] = Field(default_factory=list)
