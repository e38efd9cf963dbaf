"""
Block Answer Service
Grades a submitted answer against one block of a schedule item's content
"""

import time
from typing import Any, Optional, Tuple

from ..exceptions import BlockNotFoundError, MalformedContentError, NotFoundError
from ..models import Block, ScheduleItem
from .content_parser import block_summary, parse_content
from .logging import LoggingService, get_logging_service
from .repositories import ScheduleItemRepository
from .validators import GradingResult, ValidatorFactory, get_validator_factory


class BlockAnswerService:
    """Looks up authored content and dispatches grading to the block's validator.

    The repository is the only collaborator touching storage; the service
    itself keeps no state between calls.
    """

    def __init__(
        self,
        repository: ScheduleItemRepository,
        factory: Optional[ValidatorFactory] = None,
        logging_service: Optional[LoggingService] = None,
    ):
        self.repository = repository
        self.factory = factory or get_validator_factory()
        self.logging_service = logging_service or get_logging_service()

    def load_block(self, schedule_item_id: int, block_id: str) -> Tuple[ScheduleItem, Block]:
        """
        Resolve the schedule item and the block to grade.

        Raises:
            NotFoundError: no schedule item with this id
            MalformedContentError: the item's content cannot be parsed
            BlockNotFoundError: the content has no block with this id
        """
        schedule_item = self.repository.get_by_id(schedule_item_id)
        if schedule_item is None:
            raise NotFoundError(f"Schedule item {schedule_item_id} not found")

        try:
            document = parse_content(schedule_item.content_json)
        except MalformedContentError as e:
            self.logging_service.log_error(
                "data_integrity",
                str(e),
                schedule_item_id=schedule_item_id,
                block_id=block_id,
            )
            raise

        block = document.find_block(block_id)
        if block is None:
            raise BlockNotFoundError(block_id, schedule_item_id)
        return schedule_item, block

    def grade_block(
        self,
        schedule_item_id: int,
        block: Block,
        submitted_answer: Any,
        student_id: Optional[str] = None,
    ) -> GradingResult:
        start = time.perf_counter()
        try:
            result = self.factory.validate(block, submitted_answer)
        except MalformedContentError as e:
            self.logging_service.log_error(
                "data_integrity",
                str(e),
                student_id=student_id,
                schedule_item_id=schedule_item_id,
                **block_summary(block),
            )
            raise

        self.logging_service.log_grading(
            schedule_item_id,
            block.id,
            result.is_correct,
            student_id=student_id,
            block_type=block.type.value,
            points_earned=str(result.points_earned),
            max_points=str(result.max_points),
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return result

    def validate_answer(
        self,
        schedule_item_id: int,
        block_id: str,
        submitted_answer: Any,
        student_id: Optional[str] = None,
    ) -> GradingResult:
        """
        Grade a submission without recording it.

        Args:
            schedule_item_id: Schedule item holding the content
            block_id: Block within the content document
            submitted_answer: Submission object (or its JSON string)
            student_id: Only used to tag log events

        Returns:
            GradingResult with correctness and points
        """
        _, block = self.load_block(schedule_item_id, block_id)
        return self.grade_block(schedule_item_id, block, submitted_answer, student_id)
