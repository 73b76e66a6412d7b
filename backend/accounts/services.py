import logging
from contextlib import contextmanager

from django.conf import settings
from django.db import IntegrityError, transaction
from rest_framework.exceptions import ValidationError

from leave.models import LeaveBalance
from leavestride.exceptions import Conflict

from .models import User
from .utils import generate_temporary_password, send_welcome_email

logger = logging.getLogger(__name__)


def _check_unique(email=None, employee_id=None, exclude=None):
    qs = User.objects.all()
    if exclude is not None:
        qs = qs.exclude(pk=exclude.pk)
    if email and qs.filter(email__iexact=email).exists():
        raise Conflict('User with this email already exists.')
    if employee_id and qs.filter(employee_id__iexact=employee_id).exists():
        raise Conflict('User with this employee ID already exists.')


@contextmanager
def _unique_guard():
    """Atomic block that reports a unique-constraint race as a conflict."""
    try:
        with transaction.atomic():
            yield
    except IntegrityError:
        raise Conflict('User with this email or employee ID already exists.')


def create_user(*, email, first_name, last_name, department, password=None, role=User.ROLE_EMPLOYEE,
                employee_id='', manager=None, leave_balances=None, is_active=True, welcome_email=True) -> User:
    """Create an account with its leave balances.

    A random temporary password is generated when none is given. The welcome
    email is best effort: a delivery failure is logged and the account stays.
    """
    _check_unique(email=email, employee_id=employee_id)
    temporary_password = password or generate_temporary_password()

    with _unique_guard():
        user = User(
            email=email,
            first_name=first_name,
            last_name=last_name,
            department=department,
            role=role,
            employee_id=employee_id or '',
            manager=manager,
            is_active=is_active,
        )
        user.set_password(temporary_password)
        user.save()
        LeaveBalance.objects.create(user=user, **dict(settings.LEAVE_BALANCE_DEFAULTS, **(leave_balances or {})))

    logger.info('User %s (%s) created with role %s', user.email, user.employee_id, user.role)
    if welcome_email:
        send_welcome_email(user, temporary_password)
    return user


def update_user(user: User, actor: User, data: dict) -> User:
    data = dict(data)
    data.pop('password', None)
    balances = data.pop('leave_balances', None)

    if data.get('is_active') is False and user.pk == actor.pk:
        raise ValidationError({'is_active': 'You cannot deactivate your own account.'})
    _check_unique(email=data.get('email'), employee_id=data.get('employee_id'), exclude=user)
    if 'employee_id' in data and not data['employee_id']:
        data.pop('employee_id')

    with _unique_guard():
        for field, value in data.items():
            setattr(user, field, value)
        user.save()
        if balances:
            balance, _ = LeaveBalance.objects.select_for_update().get_or_create(
                user=user, defaults=dict(settings.LEAVE_BALANCE_DEFAULTS),
            )
            for field, value in balances.items():
                setattr(balance, field, value)
            balance.save()

    logger.info('User %s updated by %s: %s', user.email, actor.email, ', '.join(sorted(data)) or 'balances')
    return user


def set_active(user: User, actor: User, active: bool) -> User:
    if not active and user.pk == actor.pk:
        raise ValidationError({'is_active': 'You cannot deactivate your own account.'})
    user.is_active = active
    user.save(update_fields=['is_active', 'updated_at'])
    logger.info('User %s %s by %s', user.email, 'activated' if active else 'deactivated', actor.email)
    return user


def delete_user(user: User, actor: User) -> None:
    if user.pk == actor.pk:
        raise ValidationError({'detail': 'You cannot delete your own account.'})
    email = user.email
    user.delete()
    logger.info('User %s deleted by %s', email, actor.email)
