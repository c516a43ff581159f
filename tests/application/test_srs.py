from datetime import datetime, timedelta, timezone

import pytest

from lanlearner.application import srs
from lanlearner.domain.constants import MAX_SRS_STAGE, SRS_INTERVALS_DAYS
from lanlearner.domain.models import LexicalItem, ReviewOutcome


@pytest.mark.parametrize("stage", range(MAX_SRS_STAGE + 1))
def test_remembered_advances_and_caps(stage, now):
    result = srs.schedule(stage, ReviewOutcome.REMEMBERED, now)
    expected = min(stage + 1, MAX_SRS_STAGE)
    assert result.stage == expected
    assert result.next_review_at == srs.add_days(now.date(), SRS_INTERVALS_DAYS[expected])
    assert result.last_reviewed_at == now


@pytest.mark.parametrize("stage", range(MAX_SRS_STAGE + 1))
def test_forgot_resets_to_zero(stage, now):
    result = srs.schedule(stage, ReviewOutcome.FORGOT, now)
    assert result.stage == 0
    assert result.next_review_at == srs.add_days(now.date(), 1)


def test_stage_never_leaves_range(now):
    assert srs.schedule(99, ReviewOutcome.REMEMBERED, now).stage == MAX_SRS_STAGE
    assert srs.schedule(-3, ReviewOutcome.REMEMBERED, now).stage == 1


def test_next_review_is_utc_midnight(now):
    result = srs.schedule(1, ReviewOutcome.REMEMBERED, now)
    assert result.next_review_at == datetime(2024, 3, 17, tzinfo=timezone.utc)


def test_first_review_is_tomorrow(now):
    assert srs.first_review_at(now) == datetime(2024, 3, 11, tzinfo=timezone.utc)


def test_is_due_compares_calendar_dates(now):
    midnight_today = datetime(2024, 3, 10, tzinfo=timezone.utc)
    assert srs.is_due(midnight_today, now)
    assert srs.is_due(midnight_today - timedelta(days=3), now)
    assert not srs.is_due(midnight_today + timedelta(days=1), now)
    # Later today is still due today
    assert srs.is_due(now + timedelta(hours=5), now)
    assert not srs.is_due(None, now)


def test_apply_review_returns_new_item(now):
    word = LexicalItem(id="w", headword="go", definition="move", part_of_speech="verb", srs_stage=2)
    reviewed = srs.apply_review(word, ReviewOutcome.REMEMBERED, now)
    assert reviewed.srs_stage == 3
    assert reviewed.last_reviewed_at == now
    assert word.srs_stage == 2


def test_reset_schedule(now):
    word = LexicalItem(id="w", headword="go", definition="move", part_of_speech="verb",
                       srs_stage=4, last_reviewed_at=now)
    reset = srs.reset_schedule(word, now)
    assert reset.srs_stage == 0
    assert reset.last_reviewed_at is None
    assert reset.next_review_at == srs.first_review_at(now)
