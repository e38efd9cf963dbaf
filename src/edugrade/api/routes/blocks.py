from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from edugrade.api.dependencies import get_block_answer_service, get_submission_service
from edugrade.core.services.block_answer_service import BlockAnswerService
from edugrade.core.services.submission_service import SubmissionService
from edugrade.core.services.validators import GradingResult

router = APIRouter(prefix="/api/schedule-items", tags=["grading"])


class AnswerValidate(BaseModel):
    # Submission object, or the same object serialized to a JSON string
    answer: Any
    student_id: Optional[str] = None


class AnswerSubmit(BaseModel):
    student_id: str = Field(..., min_length=1, max_length=64)
    answer: Any


class GradingResponse(BaseModel):
    is_correct: bool
    points_earned: float
    max_points: float
    correct_answer: Dict[str, Any] = Field(default_factory=dict)
    submitted_answer: Dict[str, Any] = Field(default_factory=dict)
    detailed_feedback: Dict[str, Any] = Field(default_factory=dict)
    feedback: str = ""

    @classmethod
    def from_result(cls, result: GradingResult, **extra) -> "GradingResponse":
        return cls(
            is_correct=result.is_correct,
            points_earned=float(result.points_earned),
            max_points=float(result.max_points),
            correct_answer=result.correct_answer,
            submitted_answer=result.submitted_answer,
            detailed_feedback=result.detailed_feedback,
            feedback=result.feedback,
            **extra,
        )


class SubmissionResponse(GradingResponse):
    attempt_id: int
    current_streak: int
    best_streak: int
    consecutive_incorrect_attempts: int


@router.post("/{schedule_item_id}/blocks/{block_id}/validate", response_model=GradingResponse)
async def validate_answer(
    schedule_item_id: int,
    block_id: str,
    payload: AnswerValidate,
    service: BlockAnswerService = Depends(get_block_answer_service),
):
    """Grade an answer without recording it"""
    result = service.validate_answer(
        schedule_item_id, block_id, payload.answer, student_id=payload.student_id
    )
    return GradingResponse.from_result(result)


@router.post("/{schedule_item_id}/blocks/{block_id}/answers", response_model=SubmissionResponse)
async def submit_answer(
    schedule_item_id: int,
    block_id: str,
    payload: AnswerSubmit,
    service: SubmissionService = Depends(get_submission_service),
):
    """Grade an answer and record the attempt for the student"""
    outcome = service.submit_answer(
        payload.student_id, schedule_item_id, block_id, payload.answer
    )
    statistics = outcome.statistics
    return SubmissionResponse.from_result(
        outcome.result,
        attempt_id=outcome.attempt.id,
        current_streak=statistics.current_streak,
        best_streak=statistics.best_streak,
        consecutive_incorrect_attempts=statistics.consecutive_incorrect,
    )
