"""
Submission Service
Grades an answer and records the attempt in one transaction
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import DatabaseError
from ..models import BlockAttempt, BlockStatistics
from .attempt_recorder import AttemptRecorder
from .block_answer_service import BlockAnswerService
from .logging import LoggingService, get_logging_service
from .repositories import ScheduleItemRepository
from .validators import GradingResult, ValidatorFactory


@dataclass
class SubmissionOutcome:
    result: GradingResult
    attempt: BlockAttempt
    statistics: BlockStatistics


class SubmissionService:
    """Write side: grade, record, commit"""

    def __init__(
        self,
        session: Session,
        factory: Optional[ValidatorFactory] = None,
        logging_service: Optional[LoggingService] = None,
    ):
        self.session = session
        self.logging_service = logging_service or get_logging_service()
        self.answers = BlockAnswerService(
            ScheduleItemRepository(session), factory, self.logging_service
        )
        self.recorder = AttemptRecorder(session, self.logging_service)

    def submit_answer(
        self,
        student_id: str,
        schedule_item_id: int,
        block_id: str,
        submitted_answer: Any,
        now: Optional[datetime] = None,
    ) -> SubmissionOutcome:
        """
        Grade a submission and persist the attempt and statistics together.

        Grading errors propagate before anything is written. A persistence
        failure rolls back both the attempt and the statistics update.

        Raises:
            NotFoundError: schedule item or block not found
            InvalidSubmissionError: unusable submission
            DatabaseError: the write failed
        """
        schedule_item, block = self.answers.load_block(schedule_item_id, block_id)
        result = self.answers.grade_block(
            schedule_item_id, block, submitted_answer, student_id=student_id
        )

        try:
            attempt, statistics = self.recorder.record(
                student_id=student_id,
                schedule_item_id=schedule_item_id,
                schedule_item_type=schedule_item.type,
                block_id=block.id,
                submission=submitted_answer,
                result=result,
                now=now,
                block_instruction=block.instruction,
                block_order=block.order,
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            self.logging_service.log_error(
                "database",
                str(e),
                student_id=student_id,
                schedule_item_id=schedule_item_id,
                block_id=block_id,
            )
            raise DatabaseError(f"Failed to record attempt: {e}") from e
        except Exception:
            self.session.rollback()
            raise

        return SubmissionOutcome(result=result, attempt=attempt, statistics=statistics)
