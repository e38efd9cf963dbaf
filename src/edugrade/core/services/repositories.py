"""
Session-scoped repositories

Each repository wraps one SQLAlchemy session; committing is left to the
caller so that several writes can share one transaction.
"""

from typing import List, Optional, Sequence

from sqlalchemy import and_, select
from sqlalchemy.orm import Session, selectinload

from ..models import (
    BlockAttempt,
    BlockStatistics,
    ScheduleItem,
    StudySession,
    SubChapter,
    SubChapterAssignment,
)


class ScheduleItemRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, schedule_item_id: int) -> Optional[ScheduleItem]:
        return self.session.get(ScheduleItem, schedule_item_id)

    def get_many(self, schedule_item_ids: Sequence[int]) -> List[ScheduleItem]:
        """Schedule items with their topic assignments loaded"""
        if not schedule_item_ids:
            return []
        stmt = (
            select(ScheduleItem)
            .where(ScheduleItem.id.in_(set(schedule_item_ids)))
            .options(
                selectinload(ScheduleItem.assignments)
                .selectinload(SubChapterAssignment.sub_chapter)
                .selectinload(SubChapter.chapter)
            )
        )
        return list(self.session.execute(stmt).scalars().all())

    def add(self, schedule_item: ScheduleItem) -> ScheduleItem:
        self.session.add(schedule_item)
        self.session.flush()
        return schedule_item

    def update(self, schedule_item: ScheduleItem) -> ScheduleItem:
        self.session.merge(schedule_item)
        self.session.flush()
        return schedule_item


class BlockAttemptRepository:
    def __init__(self, session: Session):
        self.session = session

    def add(self, attempt: BlockAttempt) -> BlockAttempt:
        self.session.add(attempt)
        self.session.flush()
        return attempt

    def get_by_student(self, student_id: str) -> List[BlockAttempt]:
        stmt = (
            select(BlockAttempt)
            .where(BlockAttempt.student_id == student_id)
            .order_by(BlockAttempt.attempted_at, BlockAttempt.id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_by_student_and_block(
        self,
        student_id: str,
        schedule_item_id: int,
        block_id: str,
        limit: Optional[int] = None,
    ) -> List[BlockAttempt]:
        """Attempts for one block, newest first"""
        stmt = (
            select(BlockAttempt)
            .where(
                and_(
                    BlockAttempt.student_id == student_id,
                    BlockAttempt.schedule_item_id == schedule_item_id,
                    BlockAttempt.block_id == block_id,
                )
            )
            .order_by(BlockAttempt.attempted_at.desc(), BlockAttempt.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.session.execute(stmt).scalars().all())


class BlockStatisticsRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_student_and_block(
        self, student_id: str, schedule_item_id: int, block_id: str
    ) -> Optional[BlockStatistics]:
        stmt = select(BlockStatistics).where(
            and_(
                BlockStatistics.student_id == student_id,
                BlockStatistics.schedule_item_id == schedule_item_id,
                BlockStatistics.block_id == block_id,
            )
        )
        return self.session.execute(stmt).scalars().first()

    def add(self, statistics: BlockStatistics) -> BlockStatistics:
        self.session.add(statistics)
        self.session.flush()
        return statistics

    def update(self, statistics: BlockStatistics) -> BlockStatistics:
        self.session.flush()
        return statistics

    def get_by_student(self, student_id: str) -> List[BlockStatistics]:
        stmt = (
            select(BlockStatistics)
            .where(BlockStatistics.student_id == student_id)
            .order_by(
                BlockStatistics.schedule_item_id,
                BlockStatistics.block_order,
                BlockStatistics.block_id,
            )
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_by_student_and_schedule_item(
        self, student_id: str, schedule_item_id: int
    ) -> List[BlockStatistics]:
        stmt = (
            select(BlockStatistics)
            .where(
                and_(
                    BlockStatistics.student_id == student_id,
                    BlockStatistics.schedule_item_id == schedule_item_id,
                )
            )
            .order_by(BlockStatistics.block_order, BlockStatistics.block_id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_never_correct(self, student_id: str) -> List[BlockStatistics]:
        stmt = (
            select(BlockStatistics)
            .where(
                and_(
                    BlockStatistics.student_id == student_id,
                    BlockStatistics.correct_count == 0,
                    BlockStatistics.incorrect_count > 0,
                )
            )
            .order_by(
                BlockStatistics.incorrect_count.desc(),
                BlockStatistics.last_attempt_at.desc(),
            )
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_with_recent_mistakes(
        self, student_id: str, threshold: int
    ) -> List[BlockStatistics]:
        stmt = (
            select(BlockStatistics)
            .where(
                and_(
                    BlockStatistics.student_id == student_id,
                    BlockStatistics.consecutive_incorrect >= threshold,
                )
            )
            .order_by(
                BlockStatistics.consecutive_incorrect.desc(),
                BlockStatistics.last_attempt_at.desc(),
            )
        )
        return list(self.session.execute(stmt).scalars().all())

    def get_with_most_errors(self, student_id: str, limit: int) -> List[BlockStatistics]:
        stmt = (
            select(BlockStatistics)
            .where(
                and_(
                    BlockStatistics.student_id == student_id,
                    BlockStatistics.incorrect_count > 0,
                )
            )
            .order_by(
                BlockStatistics.incorrect_count.desc(),
                BlockStatistics.last_attempt_at.desc(),
            )
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())


class StudySessionRepository:
    def __init__(self, session: Session):
        self.session = session

    def add(self, study_session: StudySession) -> StudySession:
        self.session.add(study_session)
        self.session.flush()
        return study_session

    def get_by_student(
        self, student_id: str, completed_only: bool = True
    ) -> List[StudySession]:
        stmt = select(StudySession).where(StudySession.student_id == student_id)
        if completed_only:
            stmt = stmt.where(StudySession.is_completed.is_(True))
        stmt = stmt.order_by(StudySession.started_at)
        return list(self.session.execute(stmt).scalars().all())
