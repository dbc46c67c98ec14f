import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from inzozi.core.exceptions import NotFoundError, ValidationError
from inzozi.models.contribution import ContributionStatus
from inzozi.services.contribution import (
    contribution_progress,
    list_contributions,
    record_contribution,
    total_contributed,
)
from tests.conftest import NOW, make_member


def test_record_contribution(db, member):
    contribution = record_contribution(db, member.id, "52500", payment_date=NOW, reference=" MOMO-123 ")

    assert contribution.amount == Decimal("52500")
    assert contribution.status == ContributionStatus.COMPLETED
    assert contribution.reference_number == "MOMO-123"
    assert contribution.payment_date == NOW


def test_record_contribution_for_unknown_member(db):
    with pytest.raises(NotFoundError):
        record_contribution(db, uuid.uuid4(), "1000")


def test_record_contribution_rejects_bad_amount(db, member):
    with pytest.raises(ValidationError):
        record_contribution(db, member.id, "-1")


def test_full_requirement_is_one_hundred_percent(db, member):
    record_contribution(db, member.id, "60000", payment_date=NOW)
    record_contribution(db, member.id, "45000", payment_date=NOW + timedelta(days=30))

    progress = contribution_progress(db, member.id)

    assert progress["contributed"] == Decimal("105000")
    assert progress["required"] == Decimal("105000")
    assert progress["remaining"] == Decimal("0")
    assert progress["percent"] == Decimal("100")


def test_progress_is_clamped_when_over_contributed(db, member):
    record_contribution(db, member.id, "150000", payment_date=NOW)

    progress = contribution_progress(db, member.id)

    assert progress["percent"] == Decimal("100")
    assert progress["remaining"] == Decimal("0")


def test_progress_partial_and_empty(db, member):
    assert contribution_progress(db, member.id)["percent"] == Decimal("0")

    record_contribution(db, member.id, "52500", payment_date=NOW)

    assert contribution_progress(db, member.id)["percent"] == Decimal("50.0")


def test_only_completed_contributions_count(db, member):
    record_contribution(db, member.id, "10000", payment_date=NOW)
    record_contribution(db, member.id, "20000", payment_date=NOW, status=ContributionStatus.PENDING)
    record_contribution(db, member.id, "30000", payment_date=NOW, status=ContributionStatus.FAILED)

    assert total_contributed(db, member.id) == Decimal("10000")
    assert len(list_contributions(db, user_id=member.id)) == 3


def test_group_total_and_listing_order(db, member):
    other = make_member(db, email="other@example.com", full_name="Other Member")
    record_contribution(db, member.id, "1000", payment_date=NOW)
    record_contribution(db, other.id, "2000", payment_date=NOW + timedelta(days=1))

    assert total_contributed(db) == Decimal("3000")
    assert [c.amount for c in list_contributions(db)] == [Decimal("2000"), Decimal("1000")]


def test_progress_just_below_requirement_is_not_complete(db, member):
    record_contribution(db, member.id, "104990", payment_date=NOW)

    progress = contribution_progress(db, member.id)

    assert progress["percent"] == Decimal("99.9")
    assert progress["remaining"] == Decimal("10")
