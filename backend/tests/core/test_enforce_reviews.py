"""Review Rules: scores, eligibility, helpful votes and flags.

Tests cover:
    - validate_score / resolve_categories (missing categories default to rating)
    - check_can_review on completed jobs between the two participants
    - toggle_helpful membership semantics
    - upsert_flag keeps one entry per user
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core.domain_types import ReviewStatus
from app.core.enforce_reviews import (
    check_can_review,
    require_reviewee,
    require_reviewer,
    resolve_categories,
    toggle_helpful,
    upsert_flag,
    validate_moderation_status,
    validate_score,
    validate_text,
)
from app.core.errors import ForbiddenError, InvalidStateError, ValidationError

CLIENT = uuid4()
HELPER = uuid4()
NOW = datetime(2026, 10, 18, tzinfo=timezone.utc)


def _job(status="completed"):
    return SimpleNamespace(id=uuid4(), creator_id=CLIENT, assigned_to_id=HELPER, status=status)


@pytest.mark.parametrize("value", [0, 6, 3.5, True, None, "4"])
def test_invalid_scores(value):
    with pytest.raises(ValidationError):
        validate_score(value, "rating")


def test_categories_default_to_overall_rating():
    categories = resolve_categories(5, None)
    assert set(categories.values()) == {5}
    assert len(categories) == 5


def test_explicit_category_overrides_default():
    categories = resolve_categories(4, {"timeliness": 2})
    assert categories["timeliness"] == 2
    assert categories["quality"] == 4


def test_unknown_category_rejected():
    with pytest.raises(ValidationError):
        resolve_categories(4, {"vibes": 5})


def test_category_score_out_of_range():
    with pytest.raises(ValidationError) as exc:
        resolve_categories(4, {"value": 9})
    assert exc.value.field == "categories.value"


def test_validate_text_strips_and_bounds():
    assert validate_text("  Great  ", "title", 100) == "Great"
    with pytest.raises(ValidationError):
        validate_text("   ", "title", 100)
    with pytest.raises(ValidationError):
        validate_text("x" * 101, "title", 100)


def test_client_reviews_helper_on_completed_job():
    check_can_review(_job(), CLIENT, HELPER)
    check_can_review(_job(), HELPER, CLIENT)


def test_review_requires_completed_job():
    with pytest.raises(InvalidStateError):
        check_can_review(_job("in_progress"), CLIENT, HELPER)


def test_outsider_cannot_review():
    with pytest.raises(ForbiddenError):
        check_can_review(_job(), uuid4(), HELPER)


def test_self_review_rejected():
    with pytest.raises(ValidationError):
        check_can_review(_job(), CLIENT, CLIENT)


def test_reviewee_must_be_participant():
    with pytest.raises(ValidationError):
        check_can_review(_job(), CLIENT, uuid4())


def test_owner_guards():
    review = SimpleNamespace(reviewer_id=CLIENT, reviewee_id=HELPER)
    require_reviewer(review, CLIENT, "edit")
    require_reviewee(review, HELPER)
    with pytest.raises(ForbiddenError):
        require_reviewer(review, HELPER, "edit")
    with pytest.raises(ForbiddenError):
        require_reviewee(review, CLIENT)


def test_helpful_vote_is_idempotent():
    voter = uuid4()
    once = toggle_helpful([], voter, True)
    assert toggle_helpful(once, voter, True) == [str(voter)]


def test_unvote_non_voter_is_noop():
    assert toggle_helpful(["a"], uuid4(), False) == ["a"]


def test_unvote_removes_member():
    voter = uuid4()
    assert toggle_helpful([str(voter)], voter, False) == []


def test_flag_overwrites_same_user():
    user = uuid4()
    flags = upsert_flag([], user, "spam", NOW)
    flags = upsert_flag(flags, user, "fake", NOW)
    assert len(flags) == 1
    assert flags[0]["reason"] == "fake"


def test_flag_reason_validated():
    with pytest.raises(ValidationError):
        upsert_flag([], uuid4(), "rude", NOW)


def test_moderation_must_decide():
    assert validate_moderation_status("approved") is ReviewStatus.APPROVED
    with pytest.raises(ValidationError):
        validate_moderation_status("pending")
