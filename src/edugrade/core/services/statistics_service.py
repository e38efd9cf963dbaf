"""
Statistics Service
Loads a student's history and turns it into dashboard and review read models
"""

import time
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from ..models import (
    BlockAttemptSummary,
    BlockStatistics,
    BlockStatisticsView,
    LearningStatistics,
    ReviewItem,
    ScheduleItem,
)
from . import learning_statistics
from .logging import LoggingService, get_logging_service
from .repositories import (
    BlockAttemptRepository,
    BlockStatisticsRepository,
    ScheduleItemRepository,
    StudySessionRepository,
)
from .settings_config_service import SettingsConfigService, get_settings_service

DEFAULT_WITH_ERRORS_LIMIT = 10


class StatisticsService:
    """Query side of the grading engine; never writes"""

    def __init__(
        self,
        session: Session,
        settings: Optional[SettingsConfigService] = None,
        logging_service: Optional[LoggingService] = None,
    ):
        self.session = session
        self.schedule_items = ScheduleItemRepository(session)
        self.attempts = BlockAttemptRepository(session)
        self.statistics = BlockStatisticsRepository(session)
        self.study_sessions = StudySessionRepository(session)
        self.defaults = (settings or get_settings_service()).get_statistics_defaults()
        self.logging_service = logging_service or get_logging_service()

    def _schedule_item_map(self, schedule_item_ids) -> Dict[int, ScheduleItem]:
        return {item.id: item for item in self.schedule_items.get_many(list(schedule_item_ids))}

    def get_learning_statistics(
        self,
        student_id: str,
        now: Optional[datetime] = None,
        recent_topics_limit: Optional[int] = None,
        most_incorrect_topics_limit: Optional[int] = None,
    ) -> LearningStatistics:
        """Study time, accuracy and topic rankings for one student"""
        start = time.perf_counter()

        sessions = self.study_sessions.get_by_student(student_id, completed_only=True)
        attempts = self.attempts.get_by_student(student_id)
        block_stats = self.statistics.get_by_student(student_id)

        schedule_item_ids = {s.schedule_item_id for s in sessions if s.schedule_item_id}
        schedule_item_ids.update(stat.schedule_item_id for stat in block_stats)
        topic_lookup = learning_statistics.build_topic_lookup(
            self._schedule_item_map(schedule_item_ids).values()
        )

        if recent_topics_limit is None:
            recent_topics_limit = self.defaults["recent_topics_limit"]
        if most_incorrect_topics_limit is None:
            most_incorrect_topics_limit = self.defaults["most_incorrect_topics_limit"]

        result = learning_statistics.aggregate(
            student_id,
            sessions,
            attempts,
            block_stats,
            topic_lookup=topic_lookup,
            now=now,
            tz_offset_minutes=self.defaults["timezone_offset_minutes"],
            recent_topics_limit=recent_topics_limit,
            most_incorrect_topics_limit=most_incorrect_topics_limit,
        )

        self.logging_service.log_performance(
            "learning_statistics",
            int((time.perf_counter() - start) * 1000),
            student_id=student_id,
            sessions=len(sessions),
            attempts=len(attempts),
        )
        return result

    def get_block_statistics(
        self,
        student_id: str,
        schedule_item_id: Optional[int] = None,
        block_id: Optional[str] = None,
    ) -> List[BlockStatisticsView]:
        """
        Per-block mastery rows for a student.

        Args:
            student_id: Student ID
            schedule_item_id: Restrict to one schedule item
            block_id: Restrict to one block (requires schedule_item_id)

        Returns:
            List of BlockStatisticsView, empty when nothing was attempted
        """
        if schedule_item_id is not None and block_id is not None:
            stat = self.statistics.get_by_student_and_block(
                student_id, schedule_item_id, block_id
            )
            rows = [stat] if stat is not None else []
        elif schedule_item_id is not None:
            rows = self.statistics.get_by_student_and_schedule_item(
                student_id, schedule_item_id
            )
        else:
            rows = self.statistics.get_by_student(student_id)

        items = self._schedule_item_map(stat.schedule_item_id for stat in rows)
        return [self._to_view(stat, items.get(stat.schedule_item_id)) for stat in rows]

    def get_review_items(
        self,
        student_id: str,
        only_never_correct: bool = False,
        only_recent_mistakes: bool = False,
        only_with_errors: bool = False,
        limit: Optional[int] = None,
    ) -> List[ReviewItem]:
        """
        Blocks worth revisiting, each with its most recent attempts.

        The filters are exclusive and checked in the order listed; with none
        set every attempted block is returned.
        """
        if only_never_correct:
            rows = self.statistics.get_never_correct(student_id)
        elif only_recent_mistakes:
            rows = self.statistics.get_with_recent_mistakes(
                student_id, self.defaults["recent_mistakes_threshold"]
            )
        elif only_with_errors:
            rows = self.statistics.get_with_most_errors(
                student_id, limit or DEFAULT_WITH_ERRORS_LIMIT
            )
        else:
            rows = self.statistics.get_by_student(student_id)

        if limit is not None:
            rows = rows[:limit]

        items = self._schedule_item_map(stat.schedule_item_id for stat in rows)
        attempts_limit = self.defaults["review_attempts_limit"]
        review_items = []
        for stat in rows:
            schedule_item = items.get(stat.schedule_item_id)
            if schedule_item is None:
                continue
            recent = self.attempts.get_by_student_and_block(
                student_id, stat.schedule_item_id, stat.block_id, limit=attempts_limit
            )
            review_items.append(
                ReviewItem(
                    schedule_item_id=stat.schedule_item_id,
                    schedule_item_title=schedule_item.title,
                    schedule_item_type=stat.schedule_item_type,
                    block_id=stat.block_id,
                    block_instruction=stat.block_instruction,
                    block_order=stat.block_order or 0,
                    total_attempts=stat.total_attempts,
                    incorrect_attempts=stat.incorrect_count or 0,
                    success_rate=learning_statistics.percentage(
                        stat.correct_count or 0, stat.total_attempts
                    ),
                    consecutive_incorrect_attempts=stat.consecutive_incorrect or 0,
                    last_attempt_at=stat.last_attempt_at,
                    recent_attempts=[
                        BlockAttemptSummary(
                            attempt_id=attempt.id,
                            is_correct=attempt.is_correct,
                            points_earned=float(attempt.points_earned),
                            max_points=float(attempt.max_points),
                            attempted_at=attempt.attempted_at,
                        )
                        for attempt in recent
                    ],
                )
            )
        return review_items

    @staticmethod
    def _to_view(
        stat: BlockStatistics, schedule_item: Optional[ScheduleItem]
    ) -> BlockStatisticsView:
        return BlockStatisticsView(
            schedule_item_id=stat.schedule_item_id,
            schedule_item_title=schedule_item.title if schedule_item is not None else "",
            schedule_item_type=stat.schedule_item_type,
            block_id=stat.block_id,
            block_instruction=stat.block_instruction,
            block_order=stat.block_order or 0,
            total_attempts=stat.total_attempts,
            correct_attempts=stat.correct_count or 0,
            incorrect_attempts=stat.incorrect_count or 0,
            success_rate=learning_statistics.percentage(
                stat.correct_count or 0, stat.total_attempts
            ),
            current_streak=stat.current_streak or 0,
            best_streak=stat.best_streak or 0,
            consecutive_incorrect_attempts=stat.consecutive_incorrect or 0,
            last_attempt_at=stat.last_attempt_at,
            last_correct_at=stat.last_correct_at,
        )
