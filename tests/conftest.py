from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from accounts import services
from accounts.models import User
from accounts.tokens import issue_tokens

PASSWORD = 'secret123'


@pytest.fixture
def make_user(db):
    counter = iter(range(1, 1000))

    def _make(role=User.ROLE_EMPLOYEE, manager=None, department='Engineering', **fields):
        n = next(counter)
        fields.setdefault('email', f'{role.lower()}{n}@example.com')
        fields.setdefault('first_name', role.title())
        fields.setdefault('last_name', f'User{n}')
        fields.setdefault('password', PASSWORD)
        return services.create_user(
            role=role, manager=manager, department=department, welcome_email=False, **fields
        )

    return _make


@pytest.fixture
def admin_user(make_user):
    return make_user(User.ROLE_ADMIN, department='HR', email='admin@example.com')


@pytest.fixture
def manager(make_user):
    return make_user(User.ROLE_MANAGER, email='manager@example.com')


@pytest.fixture
def employee(make_user, manager):
    return make_user(manager=manager, email='employee@example.com', first_name='Emma', last_name='Stone')


@pytest.fixture
def outsider(make_user):
    """An employee outside the manager's team."""
    return make_user(email='outsider@example.com', department='Sales')


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_tokens(user)['token']}")
        return client

    return _client


@pytest.fixture
def next_monday():
    """A Monday at least a week ahead, so ranges built from it are never in the past."""
    today = timezone.localdate()
    return today + timedelta(days=7 - today.weekday() + 7)
