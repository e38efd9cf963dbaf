"""
Attempt Recorder
Persists graded submissions and folds them into per-block statistics
"""

import json
from datetime import datetime
from typing import Any, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models import BlockAttempt, BlockStatistics, utc_now
from .logging import LoggingService, get_logging_service
from .repositories import BlockAttemptRepository, BlockStatisticsRepository
from .validators import GradingResult


def _to_json(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


class AttemptRecorder:
    """Appends attempts and maintains the matching BlockStatistics row.

    The recorder flushes but never commits: the caller owns the transaction
    and decides whether the attempt and the statistics update land together.
    It performs no deduplication; every call appends one attempt.
    """

    def __init__(self, session: Session, logging_service: Optional[LoggingService] = None):
        self.session = session
        self.attempts = BlockAttemptRepository(session)
        self.statistics = BlockStatisticsRepository(session)
        self.logging_service = logging_service or get_logging_service()

    def record(
        self,
        student_id: str,
        schedule_item_id: int,
        schedule_item_type: str,
        block_id: str,
        submission: Any,
        result: GradingResult,
        now: Optional[datetime] = None,
        block_instruction: Optional[str] = None,
        block_order: Optional[int] = None,
    ) -> Tuple[BlockAttempt, BlockStatistics]:
        """
        Record one graded submission.

        Args:
            student_id: Student who answered
            schedule_item_id: Schedule item holding the block
            schedule_item_type: Type tag of the schedule item
            block_id: Answered block
            submission: Submitted answer as received
            result: Grading outcome
            now: Attempt timestamp (defaults to the current UTC time)
            block_instruction: Current block instruction, copied onto the statistics row
            block_order: Current block position, copied onto the statistics row

        Returns:
            The new attempt and the updated statistics row
        """
        now = now or utc_now()

        attempt = BlockAttempt.create(
            student_id=student_id,
            schedule_item_id=schedule_item_id,
            schedule_item_type=schedule_item_type,
            block_id=block_id,
            submitted_answer_json=_to_json(submission),
            result_json=_to_json(result.to_dict()),
            correct_answer_json=_to_json(result.correct_answer),
            is_correct=result.is_correct,
            points_earned=result.points_earned,
            max_points=result.max_points,
            attempted_at=now,
        )
        self.attempts.add(attempt)

        statistics = self._get_or_create_statistics(
            student_id, schedule_item_id, schedule_item_type, block_id
        )
        statistics.record_attempt(result.is_correct, at=now)
        statistics.update_metadata(block_instruction, block_order)
        self.statistics.update(statistics)

        self.logging_service.log_crud_operation(
            "create",
            "block_attempt",
            attempt.id,
            student_id=student_id,
            schedule_item_id=schedule_item_id,
            block_id=block_id,
            is_correct=result.is_correct,
            current_streak=statistics.current_streak,
        )
        return attempt, statistics

    def _get_or_create_statistics(
        self,
        student_id: str,
        schedule_item_id: int,
        schedule_item_type: str,
        block_id: str,
    ) -> BlockStatistics:
        existing = self.statistics.get_by_student_and_block(
            student_id, schedule_item_id, block_id
        )
        if existing is not None:
            return existing

        statistics = BlockStatistics.create(
            student_id=student_id,
            schedule_item_id=schedule_item_id,
            schedule_item_type=schedule_item_type,
            block_id=block_id,
        )
        try:
            with self.session.begin_nested():
                self.session.add(statistics)
        except IntegrityError:
            # Another writer created the row first; use theirs
            winner = self.statistics.get_by_student_and_block(
                student_id, schedule_item_id, block_id
            )
            if winner is None:
                raise
            return winner
        return statistics
