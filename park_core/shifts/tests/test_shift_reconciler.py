from datetime import timedelta
from decimal import Decimal

import pytest

from park_core.common import error_codes
from park_core.common.api.exceptions import ConflictError
from park_core.parking.settlement import SettlementService
from park_core.payments.models import PaymentMethod
from park_core.shifts.models import AdjustmentType, OperationKind, ShiftOperation, ShiftStatus
from park_core.shifts.services import ShiftService


def _withdraw(tenant, operator, shift, amount, reason="deposit to safe"):
    return ShiftService.record_adjustment(
        tenant_id=tenant.id,
        shift_id=shift.id,
        adjustment_type=AdjustmentType.WITHDRAWAL,
        amount=Decimal(amount),
        reason=reason,
        actor_id=operator.id,
    )


@pytest.mark.django_db
def test_open_writes_float_operation(tenant, operator, open_shift):
    assert open_shift.status == ShiftStatus.OPEN
    assert open_shift.opening_float == Decimal("10000.00")

    op = ShiftOperation.objects.get(shift=open_shift)
    assert op.kind == OperationKind.OPEN
    assert op.amount == Decimal("10000.00")


@pytest.mark.django_db
def test_only_one_open_shift_per_operator_and_device(tenant, operator, open_shift):
    with pytest.raises(ConflictError) as exc:
        ShiftService.open(tenant_id=tenant.id, operator_id=operator.id, opening_float=Decimal("0"))
    assert exc.value.error_code == error_codes.SHIFT_ALREADY_OPEN

    # a second handheld gets its own drawer
    other = ShiftService.open(tenant_id=tenant.id, operator_id=operator.id, opening_float=Decimal("0"), device_id="pos-2")
    assert other.device_id == "pos-2"


@pytest.mark.django_db
def test_close_reconciles_cash(tenant, operator, open_shift, time_based_rule, make_session):
    session = make_session()
    SettlementService.checkout(
        tenant_id=tenant.id,
        session_id=session.id,
        operator_id=operator.id,
        payment_method=PaymentMethod.CASH,
        amount=Decimal("500.00"),
        ended_at=session.started_at + timedelta(minutes=3),
    )
    _withdraw(tenant, operator, open_shift, "2000.00")

    totals = ShiftService.calculate_totals(shift=open_shift)
    assert totals.cash_collected == Decimal("500.00")
    assert totals.cash_withdrawals == Decimal("2000.00")
    assert totals.expected_cash == Decimal("8500.00")
    assert totals.tickets_count == 1

    closed = ShiftService.close(
        tenant_id=tenant.id, shift_id=open_shift.id, declared_cash=Decimal("8300.00"), closer_id=operator.id
    )

    assert closed.status == ShiftStatus.CLOSED
    assert closed.expected_cash == Decimal("8500.00")
    assert closed.cash_over_short == Decimal("-200.00")
    assert closed.closed_by_id == operator.id
    assert ShiftOperation.objects.filter(shift=open_shift, kind=OperationKind.CLOSE).count() == 1


@pytest.mark.django_db
def test_totals_split_by_method_and_deposits(tenant, operator, open_shift, time_based_rule, make_session):
    cash = make_session(plate="CASH01")
    card = make_session(plate="CARD01")
    for session, method, amount in ((cash, PaymentMethod.CASH, Decimal("700.00")), (card, PaymentMethod.CARD, None)):
        SettlementService.checkout(
            tenant_id=tenant.id,
            session_id=session.id,
            operator_id=operator.id,
            payment_method=method,
            amount=amount,
            ended_at=session.started_at + timedelta(minutes=7),
        )
    ShiftService.record_adjustment(
        tenant_id=tenant.id,
        shift_id=open_shift.id,
        adjustment_type=AdjustmentType.DEPOSIT,
        amount=Decimal("1000.00"),
        reason="change top-up",
        actor_id=operator.id,
        receipt_number="R-1",
    )

    totals = ShiftService.calculate_totals(shift=open_shift)

    assert totals.payments_by_method[PaymentMethod.CASH] == Decimal("700.00")
    assert totals.payments_by_method[PaymentMethod.CARD] == Decimal("700.00")
    assert totals.sales_total == Decimal("1400.00")
    assert totals.cash_deposits == Decimal("1000.00")
    # card payments never touch the drawer
    assert totals.expected_cash == Decimal("11700.00")
    assert totals.tickets_count == 2


@pytest.mark.django_db
def test_closed_shift_accepts_nothing_more(tenant, operator, open_shift):
    ShiftService.close(tenant_id=tenant.id, shift_id=open_shift.id, declared_cash=Decimal("10000.00"), closer_id=operator.id)

    with pytest.raises(ConflictError) as exc:
        _withdraw(tenant, operator, open_shift, "100.00")
    assert exc.value.error_code == error_codes.SHIFT_NOT_OPEN

    with pytest.raises(ConflictError):
        ShiftService.close(tenant_id=tenant.id, shift_id=open_shift.id, declared_cash=Decimal("0"), closer_id=operator.id)


@pytest.mark.django_db
def test_cancel_only_without_monetary_operations(tenant, operator, open_shift):
    canceled = ShiftService.cancel(tenant_id=tenant.id, shift_id=open_shift.id, actor_id=operator.id, reason="opened by mistake")
    assert canceled.status == ShiftStatus.CANCELED
    assert canceled.canceled_at is not None

    reopened = ShiftService.open(tenant_id=tenant.id, operator_id=operator.id, opening_float=Decimal("500.00"))
    _withdraw(tenant, operator, reopened, "100.00")

    with pytest.raises(ConflictError) as exc:
        ShiftService.cancel(tenant_id=tenant.id, shift_id=reopened.id, actor_id=operator.id)
    assert exc.value.error_code == error_codes.SHIFT_HAS_OPERATIONS


@pytest.mark.django_db
def test_ledger_rows_are_append_only(tenant, operator, open_shift):
    adj = _withdraw(tenant, operator, open_shift, "100.00")
    op = ShiftOperation.objects.get(shift=open_shift, kind=OperationKind.WITHDRAWAL)

    adj.amount = Decimal("1.00")
    with pytest.raises(ConflictError) as exc:
        adj.save()
    assert exc.value.error_code == error_codes.APPEND_ONLY

    with pytest.raises(ConflictError):
        op.delete()

    assert ShiftOperation.objects.filter(shift=open_shift, kind=OperationKind.WITHDRAWAL).count() == 1


@pytest.mark.django_db
def test_adjustment_requires_reason_and_positive_amount(tenant, operator, open_shift):
    from rest_framework.exceptions import ValidationError

    with pytest.raises(ValidationError):
        _withdraw(tenant, operator, open_shift, "100.00", reason="  ")
    with pytest.raises(ValidationError):
        _withdraw(tenant, operator, open_shift, "0")
