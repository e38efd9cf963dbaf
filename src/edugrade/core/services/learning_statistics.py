"""
Learning Statistics Aggregator

Pure fold over already-fetched sessions, attempts and block statistics.
Nothing in this module touches the database; callers load the data and the
schedule-item-to-topic lookup first.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..models import (
    BlockAttempt,
    BlockStatistics,
    LearningStatistics,
    QuestionPerformance,
    ScheduleItem,
    StudyChart,
    StudyChartPoint,
    StudySession,
    StudyTimeSummary,
    TopicError,
    TopicRef,
    TopicStudy,
    utc_now,
)

WEEK_DAYS = 7
MONTH_DAYS = 30

TopicLookup = Mapping[int, Sequence[TopicRef]]


def round_half_up(value: float, digits: int = 0) -> Decimal:
    """Round half away from zero (Python's round() rounds half to even)"""
    exponent = Decimal(1).scaleb(-digits)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def seconds_to_minutes(seconds: int) -> int:
    """Whole minutes, at least 1 for any positive duration"""
    if not seconds or seconds <= 0:
        return 0
    return max(int(round_half_up(seconds / 60)), 1)


def percentage(part: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return float(round_half_up(part / total * 100, 1))


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC"""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def local_date(value: datetime, tz_offset_minutes: int = 0) -> date:
    return (_as_utc(value) + timedelta(minutes=tz_offset_minutes)).date()


def session_reference_time(session: StudySession) -> datetime:
    return _as_utc(session.ended_at or session.started_at)


def topic_refs_for(schedule_item: ScheduleItem) -> List[TopicRef]:
    """Topics a schedule item belongs to; the item itself when it has no assignment"""
    refs = []
    for assignment in schedule_item.assignments or []:
        sub_chapter = assignment.sub_chapter
        chapter = sub_chapter.chapter if sub_chapter is not None else None
        refs.append(
            TopicRef(
                sub_chapter_id=assignment.sub_chapter_id,
                schedule_item_id=schedule_item.id,
                chapter_title=chapter.title if chapter is not None else schedule_item.title,
                sub_chapter_title=(
                    sub_chapter.title if sub_chapter is not None else schedule_item.title
                ),
            )
        )
    if not refs:
        refs.append(
            TopicRef(
                schedule_item_id=schedule_item.id,
                chapter_title=schedule_item.title,
                sub_chapter_title=schedule_item.description or schedule_item.title,
            )
        )
    return refs


def build_topic_lookup(schedule_items: Iterable[ScheduleItem]) -> Dict[int, List[TopicRef]]:
    return {item.id: topic_refs_for(item) for item in schedule_items}


def _topics(schedule_item_id: int, topic_lookup: Optional[TopicLookup]) -> Sequence[TopicRef]:
    if topic_lookup is None:
        return [TopicRef(schedule_item_id=schedule_item_id)]
    return topic_lookup.get(schedule_item_id, ())


def build_study_time(
    sessions: Sequence[StudySession], today: date, tz_offset_minutes: int = 0
):
    """Study time summary plus the weekly and monthly charts"""
    week_start = today - timedelta(days=WEEK_DAYS - 1)
    month_start = today - timedelta(days=MONTH_DAYS - 1)
    buckets: Dict[date, int] = {
        month_start + timedelta(days=offset): 0 for offset in range(MONTH_DAYS)
    }

    for session in sessions:
        if not session.is_completed:
            continue
        day = local_date(session.ended_at or session.started_at, tz_offset_minutes)
        if month_start <= day <= today:
            buckets[day] += seconds_to_minutes(session.effective_seconds())

    week_points = [
        StudyChartPoint(day=day, label=day.strftime("%a"), minutes=minutes)
        for day, minutes in sorted(buckets.items())
        if day >= week_start
    ]
    month_points = [
        StudyChartPoint(day=day, label=day.strftime("%d %b"), minutes=minutes)
        for day, minutes in sorted(buckets.items())
    ]
    weekly_chart = StudyChart(
        range_key="week",
        range_title="Last 7 days",
        points=week_points,
        total_minutes=sum(point.minutes for point in week_points),
    )
    monthly_chart = StudyChart(
        range_key="month",
        range_title="Last 30 days",
        points=month_points,
        total_minutes=sum(point.minutes for point in month_points),
    )
    summary = StudyTimeSummary(
        today_minutes=buckets.get(today, 0),
        week_minutes=weekly_chart.total_minutes,
        month_minutes=monthly_chart.total_minutes,
    )
    return summary, weekly_chart, monthly_chart


def build_question_performance(attempts: Sequence[BlockAttempt]) -> QuestionPerformance:
    total = len(attempts)
    correct = sum(1 for attempt in attempts if attempt.is_correct)
    return QuestionPerformance(
        total_answered=total,
        correct_answers=correct,
        incorrect_answers=total - correct,
        accuracy_percentage=percentage(correct, total),
    )


def build_recent_topics(
    sessions: Sequence[StudySession],
    topic_lookup: Optional[TopicLookup],
    limit: int,
) -> List[TopicStudy]:
    if limit <= 0:
        return []

    aggregates: Dict[str, TopicStudy] = {}
    for session in sessions:
        if not session.is_completed or session.schedule_item_id is None:
            continue
        minutes = seconds_to_minutes(session.effective_seconds())
        studied_at = session_reference_time(session)
        for ref in _topics(session.schedule_item_id, topic_lookup):
            aggregate = aggregates.get(ref.key)
            if aggregate is None:
                aggregate = TopicStudy(**ref.model_dump())
                aggregates[ref.key] = aggregate
            aggregate.total_minutes += minutes
            if aggregate.last_studied_at is None or studied_at > aggregate.last_studied_at:
                aggregate.last_studied_at = studied_at

    ordered = sorted(
        aggregates.values(),
        key=lambda topic: (topic.last_studied_at, topic.total_minutes),
        reverse=True,
    )
    return ordered[:limit]


def build_most_incorrect_topics(
    block_stats: Sequence[BlockStatistics],
    topic_lookup: Optional[TopicLookup],
    limit: int,
) -> List[TopicError]:
    if limit <= 0:
        return []

    aggregates: Dict[str, TopicError] = {}
    for stat in block_stats:
        for ref in _topics(stat.schedule_item_id, topic_lookup):
            aggregate = aggregates.get(ref.key)
            if aggregate is None:
                aggregate = TopicError(**ref.model_dump())
                aggregates[ref.key] = aggregate
            aggregate.incorrect_attempts += stat.incorrect_count or 0
            aggregate.correct_attempts += stat.correct_count or 0
            aggregate.total_attempts += stat.total_attempts

    for aggregate in aggregates.values():
        aggregate.success_rate = percentage(
            aggregate.correct_attempts, aggregate.total_attempts
        )

    ranked = sorted(
        (topic for topic in aggregates.values() if topic.incorrect_attempts > 0),
        key=lambda topic: (-topic.incorrect_attempts, topic.success_rate),
    )
    return ranked[:limit]


def aggregate(
    student_id: str,
    sessions: Sequence[StudySession],
    attempts: Sequence[BlockAttempt],
    block_stats: Sequence[BlockStatistics],
    topic_lookup: Optional[TopicLookup] = None,
    now: Optional[datetime] = None,
    tz_offset_minutes: int = 0,
    recent_topics_limit: int = 5,
    most_incorrect_topics_limit: int = 5,
) -> LearningStatistics:
    """
    Build a student's learning statistics.

    Args:
        student_id: Student the data belongs to
        sessions: Study sessions; only completed ones count
        attempts: Every block attempt of the student
        block_stats: Every BlockStatistics row of the student
        topic_lookup: Schedule item id -> topics. Items missing from the lookup
            are left out of the topic lists; with no lookup at all each
            schedule item is its own topic.
        now: Reference time (UTC); defaults to the current time
        tz_offset_minutes: Offset applied before taking calendar dates
        recent_topics_limit: Number of recent topics to return
        most_incorrect_topics_limit: Number of error topics to return

    Returns:
        LearningStatistics; empty inputs give zero-valued summaries
    """
    now = _as_utc(now or utc_now())
    today = local_date(now, tz_offset_minutes)

    study_time, weekly_chart, monthly_chart = build_study_time(
        sessions, today, tz_offset_minutes
    )
    return LearningStatistics(
        student_id=student_id,
        generated_at=now,
        study_time=study_time,
        weekly_chart=weekly_chart,
        monthly_chart=monthly_chart,
        question_performance=build_question_performance(attempts),
        recent_topics=build_recent_topics(sessions, topic_lookup, recent_topics_limit),
        most_incorrect_topics=build_most_incorrect_topics(
            block_stats, topic_lookup, most_incorrect_topics_limit
        ),
    )
