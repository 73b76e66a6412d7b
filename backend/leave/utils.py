from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Iterable, Optional

from django.conf import settings
from django.core.mail import send_mail
from django.db import IntegrityError, transaction

from leavestride.exceptions import Conflict, InsufficientBalance

from .models import Holiday, LeaveBalance, LeaveRequest

logger = logging.getLogger(__name__)

# Leave types that draw from a balance field; the rest carry no balance
BALANCE_FIELDS = {
    LeaveRequest.TYPE_SICK: 'sick',
    LeaveRequest.TYPE_CASUAL: 'casual',
    LeaveRequest.TYPE_VACATION: 'vacation',
    LeaveRequest.TYPE_ACADEMIC: 'academic',
}


def daterange(start: date, end: date) -> Iterable[date]:
    cur = start
    while cur <= end:
        yield cur
        cur += timedelta(days=1)


# Holiday registry

def is_holiday(day: date) -> bool:
    return Holiday.objects.filter(date=day).exists()


def list_holidays(year: Optional[int] = None):
    qs = Holiday.objects.order_by('date')
    if year is not None:
        qs = qs.filter(date__range=(date(year, 1, 1), date(year, 12, 31)))
    return qs


def create_holiday(name: str, day: date, holiday_type: str = Holiday.TYPE_COMPANY, description: str = '') -> Holiday:
    if is_holiday(day):
        raise Conflict('A holiday already exists on this date.')
    try:
        with transaction.atomic():
            holiday = Holiday.objects.create(
                name=name, date=day, holiday_type=holiday_type, description=description or '',
            )
    except IntegrityError:
        # Lost a race with a concurrent insert for the same date
        raise Conflict('A holiday already exists on this date.')
    logger.info('Holiday %s created on %s', holiday.name, holiday.date)
    return holiday


# Leave-day calculator

def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def working_days(start: date, end: date) -> int:
    """Days in ``[start, end]`` that are neither weekend days nor holidays."""
    if start > end:
        return 0
    holiday_dates = set(Holiday.objects.filter(date__range=(start, end)).values_list('date', flat=True))
    return sum(1 for day in daterange(start, end) if not is_weekend(day) and day not in holiday_dates)


# Balance ledger

def is_balance_tracked(leave_type: str) -> bool:
    return leave_type in BALANCE_FIELDS


def get_or_create_balance(user, lock: bool = False) -> LeaveBalance:
    qs = LeaveBalance.objects.select_for_update() if lock else LeaveBalance.objects
    balance, _ = qs.get_or_create(user=user, defaults=dict(settings.LEAVE_BALANCE_DEFAULTS))
    return balance


def get_balance(balance: LeaveBalance, leave_type: str) -> int:
    field = BALANCE_FIELDS.get(leave_type)
    if field is None:
        return 0
    return getattr(balance, field)


def has_sufficient_balance(current_balance: int, requested_days: int) -> bool:
    return current_balance >= requested_days


def check_balance(balance: LeaveBalance, leave_type: str, days: int) -> None:
    if not is_balance_tracked(leave_type):
        return
    available = get_balance(balance, leave_type)
    if not has_sufficient_balance(available, days):
        raise InsufficientBalance(
            f"Insufficient {leave_type.lower()} leave balance. Available: {available} days"
        )


def debit(balance: LeaveBalance, leave_type: str, days: int) -> None:
    field = BALANCE_FIELDS.get(leave_type)
    if field is None:
        return
    check_balance(balance, leave_type, days)
    setattr(balance, field, getattr(balance, field) - days)
    balance.save(update_fields=[field, 'updated_at'])


def credit(balance: LeaveBalance, leave_type: str, days: int) -> None:
    field = BALANCE_FIELDS.get(leave_type)
    if field is None:
        return
    setattr(balance, field, getattr(balance, field) + days)
    balance.save(update_fields=[field, 'updated_at'])


# Notifications

def _safe_send(subject: str, body: str, recipients: list) -> bool:
    recipients = [r for r in recipients if r]
    if not recipients:
        return False
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, recipients)
    except Exception:
        logger.exception('Failed to send "%s" to %s', subject, ', '.join(recipients))
        return False
    return True


def send_request_notifications(req: LeaveRequest, created: bool = False, comment: str = '') -> bool:
    employee = req.user
    body = (
        f"Employee: {employee.full_name} ({employee.employee_id})\n"
        f"Type: {req.get_leave_type_display()}\n"
        f"Period: {req.start_date} to {req.end_date}\n"
        f"Working days: {req.days}\n"
        f"Status: {req.status}\n"
    )
    if created:
        if employee.manager is None:
            return False
        subject = f"Leave request from {employee.full_name} - {req.leave_type}"
        body += f"Reason: {req.reason}\n"
        return _safe_send(subject, body, [employee.manager.email])

    subject = f"Leave request {req.status.lower()} - {req.leave_type}"
    if req.approver is not None:
        body += f"Reviewed by: {req.approver.full_name}\n"
    if comment:
        body += f"Comment: {comment}\n"
    return _safe_send(subject, body, [employee.email])
