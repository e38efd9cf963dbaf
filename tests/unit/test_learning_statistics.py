"""
Unit tests for the learning statistics aggregator
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from edugrade.core.models import BlockAttempt, BlockStatistics, StudySession, TopicRef
from edugrade.core.services.learning_statistics import (
    aggregate,
    percentage,
    seconds_to_minutes,
)

NOW = datetime(2024, 3, 15, 12, 0)


def session(item_id, ended_at, seconds, completed=True):
    study_session = StudySession(
        student_id="s1",
        schedule_item_id=item_id,
        started_at=ended_at,
        ended_at=ended_at,
        duration_seconds=seconds,
        is_completed=completed,
    )
    return study_session


def attempt(is_correct):
    return BlockAttempt.create(
        student_id="s1",
        schedule_item_id=1,
        schedule_item_type="gapFill",
        block_id="b1",
        submitted_answer_json="{}",
        is_correct=is_correct,
        points_earned=Decimal("1") if is_correct else Decimal("0"),
        max_points=Decimal("1"),
    )


def stats(item_id, block_id, correct, incorrect):
    row = BlockStatistics.create(
        student_id="s1", schedule_item_id=item_id, schedule_item_type="gapFill", block_id=block_id
    )
    row.correct_count = correct
    row.incorrect_count = incorrect
    return row


TOPICS = {
    1: [
        TopicRef(
            sub_chapter_id=10, schedule_item_id=1, chapter_title="Grammar", sub_chapter_title="Verbs"
        )
    ],
    2: [TopicRef(schedule_item_id=2, chapter_title="Lesson 2", sub_chapter_title="Lesson 2")],
}


@pytest.fixture
def sessions():
    return [
        session(1, datetime(2024, 3, 15, 10, 0), 90),
        session(2, datetime(2024, 3, 10, 8, 0), 1800),
        session(1, datetime(2024, 2, 20, 8, 0), 600),
        session(1, datetime(2024, 3, 15, 11, 0), 3600, completed=False),
        session(2, datetime(2024, 1, 1, 8, 0), 6000),
    ]


class TestMinutes:
    @pytest.mark.parametrize(
        "seconds,minutes",
        [(0, 0), (-5, 0), (1, 1), (29, 1), (89, 1), (90, 2), (150, 3), (3600, 60)],
    )
    def test_seconds_to_minutes(self, seconds, minutes):
        assert seconds_to_minutes(seconds) == minutes

    def test_percentage_rounds_half_up(self):
        assert percentage(2, 3) == 66.7
        assert percentage(1, 8) == 12.5
        assert percentage(0, 0) == 0.0


class TestStudyTime:
    """Windows and charts"""

    def test_summary(self, sessions):
        result = aggregate("s1", sessions, [], [], now=NOW)
        assert result.study_time.today_minutes == 2
        assert result.study_time.week_minutes == 32
        assert result.study_time.month_minutes == 42

    def test_charts(self, sessions):
        result = aggregate("s1", sessions, [], [], now=NOW)
        weekly = result.weekly_chart
        assert weekly.range_key == "week"
        assert len(weekly.points) == 7
        assert weekly.points[0].day == date(2024, 3, 9)
        assert weekly.points[-1].day == date(2024, 3, 15)
        assert weekly.points[-1].minutes == 2
        assert weekly.total_minutes == 32

        monthly = result.monthly_chart
        assert monthly.range_key == "month"
        assert len(monthly.points) == 30
        assert monthly.points[0].day == date(2024, 2, 15)
        assert monthly.total_minutes == 42

    def test_timezone_offset_moves_day(self):
        late = session(1, datetime(2024, 3, 14, 23, 30), 600)
        utc = aggregate("s1", [late], [], [], now=NOW)
        shifted = aggregate("s1", [late], [], [], now=NOW, tz_offset_minutes=60)
        assert utc.study_time.today_minutes == 0
        assert shifted.study_time.today_minutes == 10

    def test_empty_history(self):
        result = aggregate("s1", [], [], [], now=NOW)
        assert result.study_time.month_minutes == 0
        assert all(point.minutes == 0 for point in result.monthly_chart.points)
        assert result.question_performance.accuracy_percentage == 0.0
        assert result.recent_topics == []
        assert result.most_incorrect_topics == []


class TestQuestionPerformance:
    def test_counts(self):
        result = aggregate("s1", [], [attempt(True), attempt(True), attempt(False)], [], now=NOW)
        performance = result.question_performance
        assert performance.total_answered == 3
        assert performance.correct_answers == 2
        assert performance.incorrect_answers == 1
        assert performance.accuracy_percentage == 66.7


class TestTopics:
    """Recent and most-incorrect topic rankings"""

    def test_recent_topics(self, sessions):
        result = aggregate("s1", sessions, [], [], topic_lookup=TOPICS, now=NOW)
        keys = [topic.key for topic in result.recent_topics]
        assert keys == ["subchapter-10", "schedule-2"]
        verbs = result.recent_topics[0]
        assert verbs.sub_chapter_title == "Verbs"
        assert verbs.total_minutes == 12
        assert verbs.last_studied_at == datetime(2024, 3, 15, 10, 0)

    def test_recent_topics_limit(self, sessions):
        result = aggregate(
            "s1", sessions, [], [], topic_lookup=TOPICS, now=NOW, recent_topics_limit=1
        )
        assert len(result.recent_topics) == 1

    def test_most_incorrect_topics(self):
        block_stats = [
            stats(1, "b1", correct=1, incorrect=3),
            stats(1, "b2", correct=2, incorrect=0),
            stats(2, "b1", correct=0, incorrect=3),
        ]
        result = aggregate("s1", [], [], block_stats, topic_lookup=TOPICS, now=NOW)
        topics = result.most_incorrect_topics
        assert [topic.key for topic in topics] == ["schedule-2", "subchapter-10"]
        assert topics[1].incorrect_attempts == 3
        assert topics[1].correct_attempts == 3
        assert topics[1].total_attempts == 6
        assert topics[1].success_rate == 50.0

    def test_topics_without_errors_are_left_out(self):
        result = aggregate(
            "s1", [], [], [stats(1, "b1", correct=4, incorrect=0)], topic_lookup=TOPICS, now=NOW
        )
        assert result.most_incorrect_topics == []

    def test_unknown_schedule_items_are_skipped(self, sessions):
        result = aggregate("s1", sessions, [], [], topic_lookup={}, now=NOW)
        assert result.recent_topics == []

    def test_without_lookup_each_item_is_a_topic(self, sessions):
        result = aggregate("s1", sessions, [], [], now=NOW)
        assert {topic.key for topic in result.recent_topics} == {"schedule-1", "schedule-2"}
