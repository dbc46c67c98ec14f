import uuid
from datetime import timedelta
from decimal import Decimal

import pytest

from inzozi.core.exceptions import InvalidStateError, NotFoundError, PartialWriteError, ValidationError
from inzozi.db.base import SessionLocal
from inzozi.models.loan import InstallmentStatus, Loan, LoanInstallment, LoanPayment, LoanStatus
from inzozi.services import loan as loan_service
from inzozi.services.loan import (
    apply_for_loan,
    build_installment_schedule,
    decide_loan,
    find_loans_needing_reconciliation,
    get_loan,
    list_loans,
    record_payment,
)
from tests.conftest import NOW


@pytest.fixture
def approved_loan(db, member):
    loan = apply_for_loan(db, member.id, "100000", "School fees", now=NOW)
    return decide_loan(db, loan.id, approve=True, now=NOW)


def test_apply_creates_pending_loan_without_schedule(db, member):
    loan = apply_for_loan(db, member.id, Decimal("100000"), "  Buy a sewing machine ", now=NOW)

    assert loan.status == LoanStatus.PENDING
    assert loan.amount == Decimal("100000")
    assert loan.purpose == "Buy a sewing machine"
    assert loan.amount_paid == Decimal("0")
    assert loan.total_with_interest is None
    assert loan.installments == []


@pytest.mark.parametrize("amount", ["0", "-5", "abc", "NaN", "0.001", True])
def test_apply_rejects_invalid_amounts(db, member, amount):
    with pytest.raises(ValidationError, match="valid amount"):
        apply_for_loan(db, member.id, amount, "Rent", now=NOW)
    assert db.query(Loan).count() == 0


def test_apply_requires_purpose(db, member):
    with pytest.raises(ValidationError, match="loan purpose"):
        apply_for_loan(db, member.id, "5000", "   ", now=NOW)


def test_approval_with_defaults_builds_three_equal_installments(db, approved_loan):
    loan = approved_loan

    assert loan.status == LoanStatus.APPROVED
    assert loan.interest_rate == Decimal("0.05")
    assert loan.total_with_interest == Decimal("105000")
    assert loan.installments_count == 3
    assert loan.approved_at == NOW
    assert loan.due_date == NOW + timedelta(days=90)

    installments = loan.installments
    assert [i.installment_number for i in installments] == [1, 2, 3]
    assert [i.amount for i in installments] == [Decimal("35000")] * 3
    assert [i.due_date for i in installments] == [
        NOW + timedelta(days=30),
        NOW + timedelta(days=60),
        NOW + timedelta(days=90),
    ]
    assert all(i.status == InstallmentStatus.PENDING for i in installments)


def test_approval_with_custom_terms(db, member):
    loan = apply_for_loan(db, member.id, "50000", "Stock", now=NOW)

    loan = decide_loan(db, loan.id, approve=True, notes="Good record", interest_rate="0.1",
                       installments_count=4, now=NOW)

    assert loan.interest_rate == Decimal("0.1")
    assert loan.total_with_interest == Decimal("55000")
    assert loan.admin_notes == "Good record"
    assert len(loan.installments) == 4
    assert sum(i.amount for i in loan.installments) == Decimal("55000")


def test_schedule_last_installment_absorbs_rounding():
    schedule = build_installment_schedule(Decimal("100.00"), 3, NOW, 90)

    assert [amount for _, amount, _ in schedule] == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(amount for _, amount, _ in schedule) == Decimal("100.00")


def test_schedule_spaces_due_dates_evenly_over_term():
    schedule = build_installment_schedule(Decimal("1000"), 2, NOW, 90)

    assert [due for _, _, due in schedule] == [NOW + timedelta(days=45), NOW + timedelta(days=90)]


def test_denial_records_notes_and_no_schedule(db, member):
    loan = apply_for_loan(db, member.id, "20000", "Travel", now=NOW)

    loan = decide_loan(db, loan.id, approve=False, notes="Contributions incomplete", now=NOW)

    assert loan.status == LoanStatus.DENIED
    assert loan.admin_notes == "Contributions incomplete"
    assert loan.total_with_interest is None
    assert db.query(LoanInstallment).count() == 0


def test_decide_twice_is_rejected(db, approved_loan):
    with pytest.raises(InvalidStateError, match="already approved"):
        decide_loan(db, approved_loan.id, approve=False, now=NOW)

    assert get_loan(db, approved_loan.id).status == LoanStatus.APPROVED
    assert db.query(LoanInstallment).count() == 3


@pytest.mark.parametrize("rate", ["-0.1", "1.5"])
def test_decide_rejects_out_of_range_rate(db, member, rate):
    loan = apply_for_loan(db, member.id, "20000", "Travel", now=NOW)

    with pytest.raises(ValidationError, match="Interest rate"):
        decide_loan(db, loan.id, approve=True, interest_rate=rate, now=NOW)

    assert get_loan(db, loan.id).status == LoanStatus.PENDING


def test_decide_quantizes_rate_before_computing_total(db, member):
    loan = apply_for_loan(db, member.id, "100000", "Stock", now=NOW)

    loan = decide_loan(db, loan.id, approve=True, interest_rate="0.12345", now=NOW)

    assert loan.interest_rate == Decimal("0.1235")
    assert loan.total_with_interest == Decimal("112350")
    assert sum(i.amount for i in loan.installments) == Decimal("112350")


@pytest.mark.parametrize("count", [0, 37])
def test_decide_rejects_out_of_range_installment_count(db, member, count):
    loan = apply_for_loan(db, member.id, "20000", "Travel", now=NOW)

    with pytest.raises(ValidationError, match="Installment count"):
        decide_loan(db, loan.id, approve=True, installments_count=count, now=NOW)

    assert get_loan(db, loan.id).status == LoanStatus.PENDING
    assert db.query(LoanInstallment).count() == 0


def test_decide_unknown_loan(db):
    with pytest.raises(NotFoundError):
        decide_loan(db, uuid.uuid4(), approve=True, now=NOW)


def test_schedule_write_failure_rolls_back_approval(db, member, monkeypatch):
    loan = apply_for_loan(db, member.id, "100000", "Roof", now=NOW)
    loan_id = loan.id
    # An installment without an amount violates NOT NULL when flushed.
    monkeypatch.setattr(loan_service, "build_installment_schedule", lambda *args, **kwargs: [(1, None, NOW)])

    with pytest.raises(PartialWriteError) as excinfo:
        decide_loan(db, loan_id, approve=True, now=NOW)

    assert excinfo.value.loan_id == loan_id
    reloaded = get_loan(db, loan_id)
    assert reloaded.status == LoanStatus.PENDING
    assert reloaded.total_with_interest is None
    assert db.query(LoanInstallment).count() == 0


def test_partial_payment_allocates_in_schedule_order(db, approved_loan):
    later = NOW + timedelta(days=10)

    loan = record_payment(db, approved_loan.id, "50000", now=later)

    assert loan.status == LoanStatus.APPROVED
    assert loan.amount_paid == Decimal("50000")
    assert loan.remaining_balance == Decimal("55000")
    assert loan.last_payment_date == later
    first, second, third = loan.installments
    assert first.status == InstallmentStatus.PAID
    assert first.paid_date == later
    assert second.paid_amount == Decimal("15000")
    assert second.status == InstallmentStatus.PENDING
    assert third.paid_amount == Decimal("0")
    assert [p.amount for p in loan.payments] == [Decimal("50000")]


def test_full_payment_marks_loan_paid(db, approved_loan):
    record_payment(db, approved_loan.id, "35000", now=NOW + timedelta(days=20))
    loan = record_payment(db, approved_loan.id, "70000", now=NOW + timedelta(days=50))

    assert loan.status == LoanStatus.PAID
    assert loan.amount_paid == Decimal("105000")
    assert loan.remaining_balance == Decimal("0")
    assert all(i.status == InstallmentStatus.PAID for i in loan.installments)
    assert db.query(LoanPayment).filter(LoanPayment.loan_id == loan.id).count() == 2


def test_overpayment_is_rejected_without_state_change(db, approved_loan):
    with pytest.raises(ValidationError, match="exceed the remaining balance"):
        record_payment(db, approved_loan.id, "110000", now=NOW)

    loan = get_loan(db, approved_loan.id)
    assert loan.amount_paid == Decimal("0")
    assert loan.status == LoanStatus.APPROVED
    assert db.query(LoanPayment).count() == 0


def test_payment_on_paid_loan_is_rejected(db, approved_loan):
    record_payment(db, approved_loan.id, "105000", now=NOW)

    with pytest.raises(InvalidStateError, match="paid loan"):
        record_payment(db, approved_loan.id, "1", now=NOW)


def test_payment_on_pending_loan_is_rejected(db, member):
    loan = apply_for_loan(db, member.id, "100000", "Roof", now=NOW)

    with pytest.raises(InvalidStateError, match="pending loan"):
        record_payment(db, loan.id, "1000", now=NOW)


def test_list_loans_filters_by_member_and_status(db, member, approved_loan):
    from tests.conftest import make_member

    other = make_member(db, email="other@example.com", full_name="Other Member")
    apply_for_loan(db, other.id, "3000", "Seeds", now=NOW + timedelta(days=1))

    assert [l.id for l in list_loans(db, user_id=member.id)] == [approved_loan.id]
    assert len(list_loans(db, status=LoanStatus.PENDING)) == 1
    assert len(list_loans(db)) == 2


def test_reconciliation_lists_loans_with_missing_installments(db, approved_loan):
    assert find_loans_needing_reconciliation(db) == []

    db.query(LoanInstallment).filter(
        LoanInstallment.loan_id == approved_loan.id,
        LoanInstallment.installment_number == 3
    ).delete(synchronize_session=False)
    db.commit()

    assert [l.id for l in find_loans_needing_reconciliation(db)] == [approved_loan.id]


def test_stale_read_cannot_overpay(db, approved_loan, monkeypatch):
    real_get_loan = loan_service.get_loan
    calls = []

    # Another session pays most of the loan right after this one reads it.
    def get_loan_then_pay_elsewhere(session, loan_id):
        loan = real_get_loan(session, loan_id)
        if not calls:
            calls.append(loan_id)
            other = SessionLocal()
            try:
                record_payment(other, loan_id, "100000", now=NOW)
            finally:
                other.close()
        return loan

    monkeypatch.setattr(loan_service, "get_loan", get_loan_then_pay_elsewhere)

    with pytest.raises(ValidationError, match="exceed the remaining balance"):
        record_payment(db, approved_loan.id, "10000", now=NOW)

    monkeypatch.undo()
    db.expire_all()
    loan = get_loan(db, approved_loan.id)
    assert loan.amount_paid == Decimal("100000")
    assert loan.status == LoanStatus.APPROVED
    assert db.query(LoanPayment).count() == 1
