"""Domain Types: verifies identity wrappers and closed value sets.

Tests:
    - NewType wrappers are transparent over UUID/int
    - Job and payment state sets match the lifecycle
    - str Enums serialize to their stored column values
"""

from uuid import uuid4

from app.core.domain_types import (
    ASSIGNED_STATUSES, HELPER_ACCOUNT_TYPES,
    AccountType, Currency, JobId, JobStatus, MinorUnits,
    PaymentStatus, ReviewCategory, UserId,
)


def test_identity_types_wrap_uuid():
    uid = uuid4()
    assert UserId(uid) == uid
    assert JobId(uid) == uid


def test_minor_units_wrap_int():
    assert MinorUnits(10_000) == 10_000


def test_job_status_has_five_states():
    assert {s.value for s in JobStatus} == {
        "open", "accepted", "in_progress", "completed", "cancelled",
    }


def test_assigned_statuses_exclude_open_and_cancelled():
    assert JobStatus.OPEN not in ASSIGNED_STATUSES
    assert JobStatus.CANCELLED not in ASSIGNED_STATUSES
    assert JobStatus.IN_PROGRESS in ASSIGNED_STATUSES


def test_payment_status_includes_processing_claim():
    assert PaymentStatus("processing") is PaymentStatus.PROCESSING
    assert len(PaymentStatus) == 6


def test_helper_account_types():
    assert HELPER_ACCOUNT_TYPES == {AccountType.HELPER, AccountType.BOTH}


def test_currency_enum_is_fixed():
    assert [c.value for c in Currency] == ["usd", "eur", "gbp", "cad", "aud"]


def test_review_categories():
    assert len(ReviewCategory) == 5
    assert ReviewCategory.VALUE.value == "value"
