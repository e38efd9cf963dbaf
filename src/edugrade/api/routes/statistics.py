from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from edugrade.api.dependencies import get_statistics_service
from edugrade.core.models import BlockStatisticsView, LearningStatistics, ReviewItem
from edugrade.core.services.statistics_service import StatisticsService

router = APIRouter(prefix="/api/students", tags=["statistics"])


@router.get("/{student_id}/learning-statistics", response_model=LearningStatistics)
async def get_learning_statistics(
    student_id: str,
    recent_topics_limit: Optional[int] = Query(None, ge=0, le=50),
    most_incorrect_topics_limit: Optional[int] = Query(None, ge=0, le=50),
    service: StatisticsService = Depends(get_statistics_service),
):
    """Study time, question accuracy and topic rankings for a student"""
    return service.get_learning_statistics(
        student_id,
        recent_topics_limit=recent_topics_limit,
        most_incorrect_topics_limit=most_incorrect_topics_limit,
    )


@router.get("/{student_id}/block-statistics", response_model=List[BlockStatisticsView])
async def get_block_statistics(
    student_id: str,
    schedule_item_id: Optional[int] = None,
    block_id: Optional[str] = None,
    service: StatisticsService = Depends(get_statistics_service),
):
    """Per-block mastery counters"""
    return service.get_block_statistics(student_id, schedule_item_id, block_id)


@router.get("/{student_id}/review-items", response_model=List[ReviewItem])
async def get_review_items(
    student_id: str,
    only_never_correct: bool = False,
    only_recent_mistakes: bool = False,
    only_with_errors: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=100),
    service: StatisticsService = Depends(get_statistics_service),
):
    """Blocks the student should revisit"""
    return service.get_review_items(
        student_id,
        only_never_correct=only_never_correct,
        only_recent_mistakes=only_recent_mistakes,
        only_with_errors=only_with_errors,
        limit=limit,
    )
