"""
Bill lifecycle calculations.

A bill's total is the sum of its service lines and its status follows
from how much of that total has been paid:

* nothing paid          -> ``pending``
* everything paid       -> ``paid``
* anything in between   -> ``partially-paid``

``overdue`` is never computed for storage.  It is derived for display
when the due date has passed on a bill that is not fully paid, or kept
when the caller explicitly flags an unpaid bill as overdue.

The calculator functions are pure; :func:`create_bill`,
:func:`update_bill` and :func:`record_payment` persist their results.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional

from django.db import transaction
from django.utils import timezone

from core.exceptions import InvalidLineItems, InvalidPayment
from core.models import Bill, Patient

from .invalidation import invalidate

logger = logging.getLogger(__name__)

CENTS = Decimal('0.01')


@dataclass(frozen=True)
class BillSummary:
    total: Decimal
    status: str


def to_amount(value: Any, *, field: str = 'amount', error=InvalidLineItems) -> Decimal:
    """Convert user input to a Decimal rounded to cents."""
    if value is None or isinstance(value, bool):
        raise error(f'{field} must be a number')
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise error(f'{field} must be a number')
    if not amount.is_finite():
        raise error(f'{field} must be a number')
    return amount.quantize(CENTS)


def bill_total(services: Iterable[Mapping[str, Any]]) -> Decimal:
    """Sum the ``amount`` of each service line.

    Rejects an empty list and any line whose amount is missing,
    non-numeric or not strictly positive.
    """
    lines = list(services or [])
    if not lines:
        raise InvalidLineItems('bill needs at least one service')
    total = Decimal('0.00')
    for index, line in enumerate(lines):
        amount = to_amount(line.get('amount') if isinstance(line, Mapping) else None,
                           field=f'services[{index}].amount')
        if amount <= 0:
            raise InvalidLineItems(f'services[{index}].amount must be positive')
        total += amount
    return total


def bill_status(total: Decimal, paid: Decimal) -> str:
    if paid < 0:
        raise InvalidPayment('paid amount cannot be negative')
    if paid > total:
        raise InvalidPayment(f'paid amount {paid} exceeds total amount {total}')
    if paid == 0:
        return Bill.STATUS_PENDING
    if paid == total:
        return Bill.STATUS_PAID
    return Bill.STATUS_PARTIALLY_PAID


def summarize_bill(services: Iterable[Mapping[str, Any]], paid_amount: Any) -> BillSummary:
    total = bill_total(services)
    paid = to_amount(paid_amount, field='paidAmount', error=InvalidPayment)
    return BillSummary(total=total, status=bill_status(total, paid))


def resolve_status(computed: str, requested: Optional[str]) -> str:
    """Apply a caller's explicit ``overdue`` flag to a computed status.

    Only unpaid or partially paid bills can be flagged; any other
    requested value is ignored in favour of the computed status.
    """
    if requested == Bill.STATUS_OVERDUE and computed != Bill.STATUS_PAID:
        return Bill.STATUS_OVERDUE
    return computed


def is_overdue(status: str, due_date: datetime.date, today: Optional[datetime.date] = None) -> bool:
    today = today or timezone.localdate()
    return status != Bill.STATUS_PAID and today > due_date


def display_status(bill: Bill, today: Optional[datetime.date] = None) -> str:
    if is_overdue(bill.status, bill.due_date, today):
        return Bill.STATUS_OVERDUE
    return bill.status


def normalize_services(services: Iterable[Mapping[str, Any]]) -> list[dict]:
    """Store service lines with amounts as strings to keep cents exact in JSON."""
    return [
        {
            'name': line.get('name', ''),
            'description': line.get('description') or '',
            'amount': str(to_amount(line.get('amount'))),
        }
        for line in services
    ]


def create_bill(*, patient: Patient, bill_date: datetime.date, due_date: datetime.date,
                services: list[dict], paid_amount: Any = 0, status: Optional[str] = None) -> Bill:
    summary = summarize_bill(services, paid_amount)
    bill = Bill.objects.create(
        patient=patient,
        bill_date=bill_date,
        due_date=due_date,
        services=normalize_services(services),
        total_amount=summary.total,
        paid_amount=to_amount(paid_amount, error=InvalidPayment),
        status=resolve_status(summary.status, status),
    )
    logger.info('bill %s created for patient %s: total=%s status=%s', bill.pk, patient.pk, bill.total_amount, bill.status)
    invalidate('bills')
    return bill


def update_bill(bill: Bill, changes: Mapping[str, Any]) -> Bill:
    """Apply ``changes`` and recompute total and status from the result."""
    with transaction.atomic():
        locked = Bill.objects.select_for_update().get(pk=bill.pk)
        for field in ('patient', 'bill_date', 'due_date'):
            if field in changes:
                setattr(locked, field, changes[field])
        services = changes.get('services', locked.services)
        paid = changes.get('paid_amount', locked.paid_amount)
        summary = summarize_bill(services, paid)
        locked.services = normalize_services(services)
        locked.total_amount = summary.total
        locked.paid_amount = to_amount(paid, error=InvalidPayment)
        requested = changes.get('status', locked.status)
        locked.status = resolve_status(summary.status, requested)
        locked.save()
    logger.info('bill %s updated: total=%s paid=%s status=%s', locked.pk, locked.total_amount, locked.paid_amount, locked.status)
    invalidate('bills')
    return locked


def record_payment(bill: Bill, amount: Any) -> Bill:
    """Add a payment to the bill, keeping an explicit overdue flag until fully paid."""
    payment = to_amount(amount, field='amount', error=InvalidPayment)
    if payment <= 0:
        raise InvalidPayment('payment amount must be positive')
    with transaction.atomic():
        locked = Bill.objects.select_for_update().get(pk=bill.pk)
        paid = locked.paid_amount + payment
        computed = bill_status(locked.total_amount, paid)
        locked.paid_amount = paid
        locked.status = resolve_status(computed, locked.status)
        locked.save(update_fields=['paid_amount', 'status', 'updated_at'])
    logger.info('payment of %s recorded on bill %s (status=%s)', payment, locked.pk, locked.status)
    invalidate('bills')
    return locked
