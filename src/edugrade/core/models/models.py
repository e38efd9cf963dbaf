"""
SQLAlchemy models for EduGrade

Schedule items carry the authored content; attempts and block statistics are
written only through the attempt recorder.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

from ..exceptions import ValidationError

Base = declarative_base()

# Streak of incorrect answers from which a block counts as a recent mistake
RECENT_MISTAKES_THRESHOLD = 3


def utc_now() -> datetime:
    """Current UTC time as a naive datetime (the form SQLite hands back)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Chapter(Base):
    __tablename__ = "chapters"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    order = Column(Integer, nullable=False, default=0)

    sub_chapters = relationship("SubChapter", back_populates="chapter")

    def __repr__(self):
        return f"<Chapter(id={self.id}, title='{self.title}')>"


class SubChapter(Base):
    __tablename__ = "sub_chapters"

    id = Column(Integer, primary_key=True)
    chapter_id = Column(Integer, ForeignKey("chapters.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    order = Column(Integer, nullable=False, default=0)

    chapter = relationship("Chapter", back_populates="sub_chapters")

    def __repr__(self):
        return f"<SubChapter(id={self.id}, title='{self.title}')>"


class ScheduleItem(Base):
    """A scheduled learning activity holding one content document"""

    __tablename__ = "schedule_items"

    id = Column(Integer, primary_key=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=False)  # gapFill/multipleChoice/writing/...
    content_json = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    assignments = relationship(
        "SubChapterAssignment",
        back_populates="schedule_item",
        order_by="SubChapterAssignment.id",
    )

    def __repr__(self):
        return f"<ScheduleItem(id={self.id}, type='{self.type}', title='{self.title}')>"


class SubChapterAssignment(Base):
    """Links a schedule item to the sub-chapter (topic) it practises"""

    __tablename__ = "sub_chapter_assignments"

    id = Column(Integer, primary_key=True)
    schedule_item_id = Column(
        Integer, ForeignKey("schedule_items.id"), nullable=False, index=True
    )
    sub_chapter_id = Column(Integer, ForeignKey("sub_chapters.id"), nullable=False)

    schedule_item = relationship("ScheduleItem", back_populates="assignments")
    sub_chapter = relationship("SubChapter")


class StudySession(Base):
    """Time a student spent on a schedule item"""

    __tablename__ = "study_sessions"

    id = Column(Integer, primary_key=True)
    student_id = Column(String(64), nullable=False, index=True)
    schedule_item_id = Column(Integer, ForeignKey("schedule_items.id"), nullable=True)
    started_at = Column(DateTime, default=utc_now, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return (
            f"<StudySession(id={self.id}, student_id='{self.student_id}', "
            f"completed={self.is_completed})>"
        )

    def complete(self, duration_seconds: int, ended_at: Optional[datetime] = None):
        """Mark the session finished"""
        if duration_seconds < 0:
            raise ValidationError("Duration cannot be negative")
        self.duration_seconds = duration_seconds
        self.ended_at = ended_at or utc_now()
        self.is_completed = True

    def effective_seconds(self) -> int:
        """Recorded duration, or the span between start and end when none was recorded"""
        if self.duration_seconds:
            return int(self.duration_seconds)
        if self.ended_at and self.started_at and self.ended_at > self.started_at:
            return int((self.ended_at - self.started_at).total_seconds())
        return 0


class BlockAttempt(Base):
    """One graded submission for one block; never updated after insert"""

    __tablename__ = "block_attempts"

    id = Column(Integer, primary_key=True)
    student_id = Column(String(64), nullable=False)
    schedule_item_id = Column(Integer, ForeignKey("schedule_items.id"), nullable=False)
    schedule_item_type = Column(String(50), nullable=False)
    block_id = Column(String(100), nullable=False)
    submitted_answer_json = Column(Text, nullable=False)
    result_json = Column(Text, nullable=True)
    correct_answer_json = Column(Text, nullable=True)
    is_correct = Column(Boolean, nullable=False, default=False)
    points_earned = Column(Numeric(12, 4), nullable=False, default=0)
    max_points = Column(Numeric(12, 4), nullable=False, default=0)
    attempted_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        Index("idx_attempt_student_block", "student_id", "schedule_item_id", "block_id"),
    )

    def __repr__(self):
        return (
            f"<BlockAttempt(id={self.id}, block_id='{self.block_id}', "
            f"is_correct={self.is_correct})>"
        )

    @classmethod
    def create(
        cls,
        student_id: str,
        schedule_item_id: int,
        schedule_item_type: str,
        block_id: str,
        submitted_answer_json: str,
        is_correct: bool,
        points_earned: Decimal,
        max_points: Decimal,
        result_json: Optional[str] = None,
        correct_answer_json: Optional[str] = None,
        attempted_at: Optional[datetime] = None,
    ) -> "BlockAttempt":
        """Build an attempt, enforcing the point and payload invariants"""
        if points_earned < 0:
            raise ValidationError("Points earned cannot be negative")
        if max_points < 0:
            raise ValidationError("Max points cannot be negative")
        if points_earned > max_points:
            raise ValidationError("Points earned cannot exceed max points")
        if not submitted_answer_json or not submitted_answer_json.strip():
            raise ValidationError("Submitted answer cannot be empty")

        return cls(
            student_id=student_id,
            schedule_item_id=schedule_item_id,
            schedule_item_type=schedule_item_type,
            block_id=block_id,
            submitted_answer_json=submitted_answer_json,
            result_json=result_json,
            correct_answer_json=correct_answer_json,
            is_correct=is_correct,
            points_earned=points_earned,
            max_points=max_points,
            attempted_at=attempted_at or utc_now(),
        )


class BlockStatistics(Base):
    """Running mastery counters for one student on one block"""

    __tablename__ = "block_statistics"

    id = Column(Integer, primary_key=True)
    student_id = Column(String(64), nullable=False)
    schedule_item_id = Column(Integer, ForeignKey("schedule_items.id"), nullable=False)
    schedule_item_type = Column(String(50), nullable=False)
    block_id = Column(String(100), nullable=False)
    block_instruction = Column(Text, nullable=True)
    block_order = Column(Integer, nullable=False, default=0)
    correct_count = Column(Integer, nullable=False, default=0)
    incorrect_count = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    best_streak = Column(Integer, nullable=False, default=0)
    consecutive_incorrect = Column(Integer, nullable=False, default=0)
    first_attempt_at = Column(DateTime, nullable=True)
    last_attempt_at = Column(DateTime, nullable=True)
    last_correct_at = Column(DateTime, nullable=True)

    # At most one row per student and block
    __table_args__ = (
        Index(
            "idx_block_stats_student_block",
            "student_id",
            "schedule_item_id",
            "block_id",
            unique=True,
        ),
    )

    def __repr__(self):
        return (
            f"<BlockStatistics(student_id='{self.student_id}', block_id='{self.block_id}', "
            f"correct={self.correct_count}, incorrect={self.incorrect_count})>"
        )

    @classmethod
    def create(
        cls,
        student_id: str,
        schedule_item_id: int,
        schedule_item_type: str,
        block_id: str,
        block_instruction: Optional[str] = None,
        block_order: int = 0,
    ) -> "BlockStatistics":
        """Build an empty statistics row"""
        if schedule_item_id is None or schedule_item_id <= 0:
            raise ValidationError("Schedule item id must be positive")
        if not block_id or not str(block_id).strip():
            raise ValidationError("Block id cannot be empty")
        if not student_id or not str(student_id).strip():
            raise ValidationError("Student id cannot be empty")

        return cls(
            student_id=student_id,
            schedule_item_id=schedule_item_id,
            schedule_item_type=schedule_item_type,
            block_id=block_id,
            block_instruction=block_instruction,
            block_order=block_order,
            correct_count=0,
            incorrect_count=0,
            current_streak=0,
            best_streak=0,
            consecutive_incorrect=0,
        )

    def record_attempt(self, is_correct: bool, at: Optional[datetime] = None):
        """Fold one graded attempt into the counters"""
        at = at or utc_now()
        # Columns are unset on rows built without create()
        self.correct_count = self.correct_count or 0
        self.incorrect_count = self.incorrect_count or 0
        self.current_streak = self.current_streak or 0
        self.best_streak = self.best_streak or 0
        self.consecutive_incorrect = self.consecutive_incorrect or 0

        if is_correct:
            self.correct_count += 1
            self.current_streak += 1
            self.consecutive_incorrect = 0
            self.last_correct_at = at
        else:
            self.incorrect_count += 1
            self.current_streak = 0
            self.consecutive_incorrect += 1

        self.best_streak = max(self.best_streak, self.current_streak)
        if self.first_attempt_at is None:
            self.first_attempt_at = at
        self.last_attempt_at = at

    def update_metadata(self, instruction: Optional[str], order: Optional[int]):
        if instruction is not None:
            self.block_instruction = instruction
        if order is not None:
            self.block_order = order

    @property
    def total_attempts(self) -> int:
        return (self.correct_count or 0) + (self.incorrect_count or 0)

    @property
    def success_rate(self) -> float:
        """Percentage of correct attempts, 0 when there are none"""
        total = self.total_attempts
        if total == 0:
            return 0.0
        return (self.correct_count or 0) / total * 100

    @property
    def has_never_been_correct(self) -> bool:
        return self.total_attempts > 0 and not self.correct_count

    def has_recent_mistakes(self, threshold: int = RECENT_MISTAKES_THRESHOLD) -> bool:
        return (self.consecutive_incorrect or 0) >= threshold
