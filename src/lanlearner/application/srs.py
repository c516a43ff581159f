"""
Spaced-repetition scheduler.

Pure, stateless functions over the fixed interval table. "Today" is the UTC
calendar date so that due dates do not drift between devices in different
time zones; due-ness compares calendar dates, never wall-clock times.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, timezone

from lanlearner.domain.constants import MAX_SRS_STAGE, SRS_INTERVALS_DAYS
from lanlearner.domain.models import LearningItem, ReviewOutcome


@dataclass(frozen=True)
class ScheduleResult:
    """
    Scheduling state produced by a review.

    Attributes:
        stage: New SRS stage.
        next_review_at: UTC midnight of the next due date.
        last_reviewed_at: Moment of the review.
    """

    stage: int
    next_review_at: datetime
    last_reviewed_at: datetime


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def today_utc(now: datetime | None = None) -> date:
    now = now or utcnow()
    return now.astimezone(timezone.utc).date()


def add_days(day: date, days: int) -> datetime:
    """UTC midnight ``days`` calendar days after ``day``."""
    return datetime.combine(day + timedelta(days=days), time.min, tzinfo=timezone.utc)


def clamp_stage(stage: int) -> int:
    return max(0, min(int(stage), MAX_SRS_STAGE))


def interval_for(stage: int) -> int:
    return SRS_INTERVALS_DAYS[clamp_stage(stage)]


def next_stage(stage: int, outcome: ReviewOutcome) -> int:
    if outcome is ReviewOutcome.REMEMBERED:
        return min(clamp_stage(stage) + 1, MAX_SRS_STAGE)
    return 0


def schedule(stage: int, outcome: ReviewOutcome, now: datetime | None = None) -> ScheduleResult:
    """Map (current stage, outcome) to the new stage and next due date."""
    now = now or utcnow()
    new_stage = next_stage(stage, outcome)
    return ScheduleResult(
        stage=new_stage,
        next_review_at=add_days(today_utc(now), interval_for(new_stage)),
        last_reviewed_at=now,
    )


def first_review_at(now: datetime | None = None) -> datetime:
    """Due date for a freshly created item (stage 0)."""
    return add_days(today_utc(now), SRS_INTERVALS_DAYS[0])


def is_due(next_review_at: datetime | None, now: datetime | None = None) -> bool:
    if next_review_at is None:
        return False
    return next_review_at.astimezone(timezone.utc).date() <= today_utc(now)


def apply_review(item: LearningItem, outcome: ReviewOutcome,
                 now: datetime | None = None) -> LearningItem:
    """Return a copy of ``item`` with its scheduling state advanced."""
    result = schedule(item.srs_stage, outcome, now)
    return replace(
        item,
        srs_stage=result.stage,
        next_review_at=result.next_review_at,
        last_reviewed_at=result.last_reviewed_at,
    )


def reset_schedule(item: LearningItem, now: datetime | None = None) -> LearningItem:
    """Return a copy of ``item`` as if it had just been created."""
    return replace(
        item,
        srs_stage=0,
        last_reviewed_at=None,
        next_review_at=first_review_at(now),
    )
