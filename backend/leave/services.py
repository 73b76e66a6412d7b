"""Leave request lifecycle.

``PENDING`` is the only non-terminal status. Managers and admins move a request
to ``APPROVED`` or ``REJECTED``; the owner may move it to ``CANCELLED``.
Submission and approval both lock the employee's ``LeaveBalance`` row inside
one transaction, so overlap detection, the balance check and the debit cannot
interleave with another submission or approval for the same employee.
"""
from __future__ import annotations

import logging
from datetime import date

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from accounts.models import User
from leavestride.exceptions import Forbidden, InvalidState, NoWorkingDays, OverlapConflict

from . import utils
from .models import LeaveHistory, LeaveRequest

logger = logging.getLogger(__name__)


def visible_requests(actor: User):
    """Requests the actor may see: own for employees, team plus own for managers, all for admins."""
    qs = LeaveRequest.objects.filter(deleted_at__isnull=True).select_related('user', 'approver')
    if actor.is_admin:
        return qs
    if actor.is_manager:
        return qs.filter(Q(user=actor) | Q(user__manager=actor))
    return qs.filter(user=actor)


def filter_requests(qs, status=None, leave_type=None, start_date=None, end_date=None):
    if status:
        qs = qs.filter(status=status)
    if leave_type:
        qs = qs.filter(leave_type=leave_type)
    if start_date:
        qs = qs.filter(start_date__gte=start_date)
    if end_date:
        qs = qs.filter(end_date__lte=end_date)
    return qs.order_by('-created_at', '-id')


def find_overlap(user: User, start: date, end: date, exclude_id=None):
    qs = LeaveRequest.objects.filter(
        user=user,
        status__in=LeaveRequest.ACTIVE_STATUSES,
        deleted_at__isnull=True,
        start_date__lte=end,
        end_date__gte=start,
    )
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.first()


def get_request(request_id, for_update: bool = False) -> LeaveRequest:
    qs = LeaveRequest.objects.select_related('user', 'user__manager', 'approver')
    if for_update:
        qs = qs.select_for_update(of=('self',))
    try:
        req = qs.filter(pk=int(request_id)).first()
    except (TypeError, ValueError):
        req = None
    if req is None or req.deleted_at is not None:
        raise NotFound('Leave request not found.')
    return req


def submit(user: User, leave_type: str, start_date: date, end_date: date, reason: str) -> LeaveRequest:
    if leave_type not in dict(LeaveRequest.TYPE_CHOICES):
        raise ValidationError({'leave_type': f'"{leave_type}" is not a valid leave type.'})
    if start_date >= end_date:
        raise ValidationError({'start_date': 'Start date must be before end date.'})
    if start_date < timezone.localdate():
        raise ValidationError({'start_date': 'Cannot apply for leave in the past.'})

    days = utils.working_days(start_date, end_date)
    if days == 0:
        raise NoWorkingDays()

    with transaction.atomic():
        balance = utils.get_or_create_balance(user, lock=True)
        if find_overlap(user, start_date, end_date) is not None:
            raise OverlapConflict()
        utils.check_balance(balance, leave_type, days)

        req = LeaveRequest.objects.create(
            user=user,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days=days,
            reason=reason,
        )
        req.record(LeaveRequest.STATUS_PENDING, user)

    logger.info('Leave request %s submitted by %s: %s %s..%s (%s days)',
                req.pk, user.email, leave_type, start_date, end_date, days)
    utils.send_request_notifications(req, created=True)
    return req


def _authorize_transition(req: LeaveRequest, actor: User, new_status: str) -> None:
    if new_status == LeaveRequest.STATUS_CANCELLED:
        if req.user_id != actor.pk:
            raise Forbidden('You can only cancel your own leave requests.')
        return

    if new_status not in (LeaveRequest.STATUS_APPROVED, LeaveRequest.STATUS_REJECTED):
        raise ValidationError({'status': f'"{new_status}" is not a valid status.'})
    if actor.is_admin:
        return
    if actor.is_manager and req.user.manager_id == actor.pk:
        return
    if actor.is_manager:
        raise Forbidden('You can only review leave requests of your direct reports.')
    raise Forbidden('You can only cancel your leave requests.')


def transition(request_id, actor: User, new_status: str, comment: str = '') -> LeaveRequest:
    with transaction.atomic():
        req = get_request(request_id, for_update=True)
        _authorize_transition(req, actor, new_status)
        if req.is_terminal:
            raise InvalidState(f'Leave request is already {req.status.lower()}.')

        if new_status == LeaveRequest.STATUS_APPROVED:
            balance = utils.get_or_create_balance(req.user, lock=True)
            utils.debit(balance, req.leave_type, req.days)
        if new_status in (LeaveRequest.STATUS_APPROVED, LeaveRequest.STATUS_REJECTED):
            req.approver = actor

        req.status = new_status
        req.save(update_fields=['status', 'approver', 'updated_at'])
        req.record(new_status, actor, comment)

    logger.info('Leave request %s %s by %s', req.pk, new_status.lower(), actor.email)
    if new_status in (LeaveRequest.STATUS_APPROVED, LeaveRequest.STATUS_REJECTED):
        utils.send_request_notifications(req, comment=comment)
    return req


def soft_delete(request_id, actor: User) -> LeaveRequest:
    with transaction.atomic():
        req = get_request(request_id, for_update=True)
        if req.user_id != actor.pk and not actor.is_admin:
            raise Forbidden('You can only delete your own leave requests.')

        if (
            settings.LEAVE_RECREDIT_ON_DELETE
            and req.status == LeaveRequest.STATUS_APPROVED
            and utils.is_balance_tracked(req.leave_type)
        ):
            balance = utils.get_or_create_balance(req.user, lock=True)
            utils.credit(balance, req.leave_type, req.days)
            logger.info('Credited %s %s days back to %s', req.days, req.leave_type, req.user.email)

        req.deleted_at = timezone.now()
        req.save(update_fields=['deleted_at', 'updated_at'])
        req.record(LeaveHistory.ACTION_DELETED, actor)

    logger.info('Leave request %s deleted by %s', req.pk, actor.email)
    return req


def dashboard_stats() -> dict:
    now = timezone.localtime()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    live = LeaveRequest.objects.filter(deleted_at__isnull=True)
    this_month = live.filter(updated_at__gte=month_start)
    return {
        'total_employees': User.objects.filter(is_active=True).count(),
        'pending_approvals': live.filter(status=LeaveRequest.STATUS_PENDING).count(),
        'total_leave_requests': live.count(),
        'approved_this_month': this_month.filter(status=LeaveRequest.STATUS_APPROVED).count(),
        'rejected_this_month': this_month.filter(status=LeaveRequest.STATUS_REJECTED).count(),
    }
