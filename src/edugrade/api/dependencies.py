from fastapi import Depends
from sqlalchemy.orm import Session

from edugrade.core.services.block_answer_service import BlockAnswerService
from edugrade.core.services.database import get_db_service as _get_db_service
from edugrade.core.services.repositories import ScheduleItemRepository
from edugrade.core.services.statistics_service import StatisticsService
from edugrade.core.services.submission_service import SubmissionService
from edugrade.core.services.validators import get_validator_factory


def get_db_service():
    # Delegate to the core database singleton so tests and the API share the
    # same DatabaseService instance.
    return _get_db_service()


def get_db():
    service = get_db_service()
    session = service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_block_answer_service(db: Session = Depends(get_db)) -> BlockAnswerService:
    return BlockAnswerService(ScheduleItemRepository(db), get_validator_factory())


def get_submission_service(db: Session = Depends(get_db)) -> SubmissionService:
    return SubmissionService(db, get_validator_factory())


def get_statistics_service(db: Session = Depends(get_db)) -> StatisticsService:
    return StatisticsService(db)
