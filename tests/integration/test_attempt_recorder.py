"""
Integration tests for recording attempts against a real SQLite database
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from edugrade.core.models import BlockAttempt, BlockStatistics
from edugrade.core.services.attempt_recorder import AttemptRecorder
from edugrade.core.services.validators import GradingResult


def result(is_correct, points="1"):
    return GradingResult(
        is_correct=is_correct,
        points_earned=Decimal(points) if is_correct else Decimal("0"),
        max_points=Decimal(points),
        correct_answer={"blank-1": "desk"},
    )


@pytest.fixture
def schedule_item(schedule_item_factory):
    return schedule_item_factory()


@pytest.fixture
def recorder(db_session):
    return AttemptRecorder(db_session)


def count(db_session, model):
    return db_session.execute(select(func.count()).select_from(model)).scalar_one()


class TestAttemptRecorder:
    """Append-only attempts and get-or-create statistics"""

    def test_first_attempt_creates_statistics(self, db_session, recorder, schedule_item):
        attempt, stats = recorder.record(
            "student-1",
            schedule_item.id,
            schedule_item.type,
            "b1",
            {"blanks": [{"index": 0, "value": "desk"}]},
            result(True),
            block_instruction="Fill in",
            block_order=1,
        )
        db_session.commit()

        assert attempt.id is not None
        assert attempt.is_correct is True
        assert '"desk"' in attempt.submitted_answer_json
        assert stats.correct_count == 1
        assert stats.current_streak == 1
        assert stats.block_instruction == "Fill in"
        assert count(db_session, BlockStatistics) == 1

    def test_record_without_metadata_keeps_stored_instruction(
        self, db_session, recorder, schedule_item
    ):
        submission = {"blanks": [{"index": 0, "value": "desk"}]}
        recorder.record(
            "student-1",
            schedule_item.id,
            schedule_item.type,
            "b1",
            submission,
            result(True),
            block_instruction="Fill in",
            block_order=2,
        )
        _, stats = recorder.record(
            "student-1", schedule_item.id, schedule_item.type, "b1", submission, result(False)
        )
        db_session.commit()

        assert stats.block_instruction == "Fill in"
        assert stats.block_order == 2

    def test_repeated_attempts_share_one_row(self, db_session, recorder, schedule_item):
        start = datetime(2024, 5, 1, 9, 0)
        outcomes = [True, False, True, True]
        for offset, outcome in enumerate(outcomes):
            _, stats = recorder.record(
                "student-1",
                schedule_item.id,
                schedule_item.type,
                "b1",
                {"blanks": []},
                result(outcome),
                now=start + timedelta(minutes=offset),
            )
        db_session.commit()

        assert count(db_session, BlockAttempt) == 4
        assert count(db_session, BlockStatistics) == 1
        assert stats.correct_count == 3
        assert stats.incorrect_count == 1
        assert stats.current_streak == 2
        assert stats.best_streak == 2
        assert stats.last_attempt_at == start + timedelta(minutes=3)

    def test_no_deduplication(self, db_session, recorder, schedule_item):
        for _ in range(2):
            recorder.record(
                "student-1", schedule_item.id, "gapFill", "b1", {"same": 1}, result(True)
            )
        db_session.commit()
        assert count(db_session, BlockAttempt) == 2

    def test_rows_are_per_student_and_block(self, db_session, recorder, schedule_item):
        recorder.record("student-1", schedule_item.id, "gapFill", "b1", {}, result(True))
        recorder.record("student-1", schedule_item.id, "gapFill", "b2", {}, result(True))
        recorder.record("student-2", schedule_item.id, "gapFill", "b1", {}, result(False))
        db_session.commit()
        assert count(db_session, BlockStatistics) == 3

    def test_lost_insert_race_reuses_existing_row(
        self, db_session, recorder, schedule_item, monkeypatch
    ):
        existing = BlockStatistics.create(
            student_id="student-1",
            schedule_item_id=schedule_item.id,
            schedule_item_type="gapFill",
            block_id="b1",
        )
        existing.record_attempt(True)
        db_session.add(existing)
        db_session.commit()

        real_lookup = recorder.statistics.get_by_student_and_block
        calls = []

        def stale_then_real(*args):
            calls.append(args)
            if len(calls) == 1:
                return None
            return real_lookup(*args)

        monkeypatch.setattr(recorder.statistics, "get_by_student_and_block", stale_then_real)

        _, stats = recorder.record(
            "student-1", schedule_item.id, "gapFill", "b1", {}, result(True)
        )
        db_session.commit()

        assert len(calls) == 2
        assert stats.id == existing.id
        assert stats.correct_count == 2
        assert count(db_session, BlockStatistics) == 1
        assert count(db_session, BlockAttempt) == 1
