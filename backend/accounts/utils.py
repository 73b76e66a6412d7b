import logging
import re
import secrets

from django.conf import settings
from django.core.mail import send_mail
from django.db.models.functions import Length
from django.utils import timezone

logger = logging.getLogger(__name__)

DEPARTMENT_CODES = {
    'Engineering': 'ENG',
    'Marketing': 'MKT',
    'HR': 'HR',
    'Finance': 'FIN',
    'Operations': 'OPS',
    'Sales': 'SAL',
    'IT': 'IT',
    'Design': 'DSN',
    'Quality Assurance': 'QA',
    'Research': 'RES',
}


def department_code(department: str) -> str:
    department = (department or '').strip()
    if department in DEPARTMENT_CODES:
        return DEPARTMENT_CODES[department]
    code = re.sub(r'[^A-Za-z]', '', department)[:3].upper()
    return code or 'EMP'


def generate_employee_id(department: str) -> str:
    """Next free id for the department and year, e.g. ``ENG26001``.

    The sequence is zero padded to three digits and keeps growing past 999.
    """
    from .models import User

    prefix = f"{department_code(department)}{timezone.localdate().strftime('%y')}"
    pattern = rf'^{prefix}\d{{3,}}$'
    last = (
        User.objects.filter(employee_id__regex=pattern)
        .annotate(id_length=Length('employee_id'))
        .order_by('-id_length', '-employee_id')
        .values_list('employee_id', flat=True)
        .first()
    )
    sequence = int(last[len(prefix):]) + 1 if last else 1
    return f"{prefix}{sequence:03d}"


def generate_temporary_password() -> str:
    return secrets.token_hex(8)


def send_welcome_email(user, temporary_password: str) -> bool:
    subject = f"Welcome to {settings.APP_NAME} - Account Created"
    body = (
        f"Hello {user.full_name},\n\n"
        f"An account has been created for you.\n\n"
        f"Employee ID: {user.employee_id}\n"
        f"Department: {user.department or '-'}\n"
        f"Email: {user.email}\n"
        f"Temporary password: {temporary_password}\n\n"
        f"Please change your password after your first login.\n"
    )
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [user.email])
    except Exception:
        logger.exception('Failed to send welcome email to %s', user.email)
        return False
    logger.info('Welcome email sent to %s', user.email)
    return True
