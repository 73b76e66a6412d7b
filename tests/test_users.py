from datetime import timedelta

import pytest
from django.utils import timezone

from accounts import services
from accounts.models import User
from leave import services as leave_services
from leave.models import LeaveBalance, LeaveRequest
from leavestride.exceptions import Conflict

pytestmark = pytest.mark.django_db

YY = timezone.localdate().strftime('%y')


def new_user(**fields):
    data = {
        'first_name': 'Olivia',
        'last_name': 'Hart',
        'email': 'olivia@example.com',
        'department': 'Marketing',
    }
    data.update(fields)
    return data


def test_directory_is_admin_only(client_for, employee, manager):
    for user in (employee, manager):
        resp = client_for(user).get('/api/users/')
        assert resp.status_code == 403
        assert resp.json()['success'] is False


def test_list_users_with_filters(client_for, admin_user, manager, employee, outsider):
    outsider.is_active = False
    outsider.save()
    client = client_for(admin_user)

    body = client.get('/api/users/').json()
    assert body['pagination']['total'] == 4

    data = client.get('/api/users/', {'search': 'stone'}).json()['data']
    assert [u['id'] for u in data] == [employee.pk]
    data = client.get('/api/users/', {'search': employee.employee_id.lower()}).json()['data']
    assert [u['id'] for u in data] == [employee.pk]

    data = client.get('/api/users/', {'status': 'inactive'}).json()['data']
    assert [u['id'] for u in data] == [outsider.pk]
    assert client.get('/api/users/', {'status': 'active'}).json()['pagination']['total'] == 3
    assert client.get('/api/users/', {'status': 'all'}).json()['pagination']['total'] == 4

    data = client.get('/api/users/', {'role': 'manager'}).json()['data']
    assert [u['id'] for u in data] == [manager.pk]
    data = client.get('/api/users/', {'department': 'Sales'}).json()['data']
    assert [u['id'] for u in data] == [outsider.pk]

    body = client.get('/api/users/', {'limit': 1, 'page': 2}).json()
    assert body['pagination'] == {'page': 2, 'limit': 1, 'total': 4, 'pages': 4}


def test_create_user_sends_welcome_email(client_for, admin_user, manager, mailoutbox):
    resp = client_for(admin_user).post('/api/users/', new_user(
        manager=manager.pk, role='MANAGER', leave_balances={'vacation': 30},
    ), format='json')

    assert resp.status_code == 201
    data = resp.json()['data']
    assert data['employee_id'] == f'MKT{YY}001'
    assert data['role'] == User.ROLE_MANAGER
    assert data['manager']['id'] == manager.pk
    assert data['leave_balances'] == {'sick': 12, 'casual': 12, 'vacation': 30, 'academic': 5}

    assert len(mailoutbox) == 1
    mail = mailoutbox[0]
    assert mail.to == ['olivia@example.com']
    assert f'MKT{YY}001' in mail.body
    password = mail.body.split('Temporary password: ')[1].splitlines()[0]
    assert User.objects.get(email='olivia@example.com').check_password(password)


def test_create_user_with_password_and_employee_id(client_for, admin_user, api_client):
    resp = client_for(admin_user).post('/api/users/', new_user(
        password='chosen-password', employee_id='mkt-7',
    ), format='json')

    assert resp.status_code == 201
    assert resp.json()['data']['employee_id'] == 'MKT-7'
    login = api_client.post(
        '/api/auth/login/', {'email': 'olivia@example.com', 'password': 'chosen-password'}, format='json',
    )
    assert login.status_code == 200


def test_welcome_email_failure_keeps_the_account(monkeypatch, client_for, admin_user):
    def boom(*args, **kwargs):
        raise ConnectionRefusedError('smtp down')

    monkeypatch.setattr('accounts.utils.send_mail', boom)
    resp = client_for(admin_user).post('/api/users/', new_user(), format='json')

    assert resp.status_code == 201
    assert User.objects.filter(email='olivia@example.com').exists()


def test_create_user_conflicts(client_for, admin_user, employee):
    client = client_for(admin_user)

    resp = client.post('/api/users/', new_user(email=employee.email.upper()), format='json')
    assert resp.status_code == 400
    assert resp.json()['code'] == 'conflict'

    resp = client.post('/api/users/', new_user(employee_id=employee.employee_id.lower()), format='json')
    assert resp.status_code == 400
    assert resp.json()['code'] == 'conflict'


def test_unique_constraint_race_is_reported_as_conflict(monkeypatch, client_for, admin_user, employee, manager):
    monkeypatch.setattr(services, '_check_unique', lambda **kwargs: None)
    client = client_for(admin_user)

    resp = client.post('/api/users/', new_user(employee_id=employee.employee_id), format='json')
    assert resp.status_code == 400
    assert resp.json()['code'] == 'conflict'
    assert not User.objects.filter(email='olivia@example.com').exists()

    with pytest.raises(Conflict):
        services.update_user(manager, admin_user, {'email': employee.email})
    manager.refresh_from_db()
    assert manager.email != employee.email


def test_create_user_validation(client_for, admin_user):
    client = client_for(admin_user)

    resp = client.post('/api/users/', new_user(manager=9999), format='json')
    assert resp.status_code == 400
    assert resp.json()['errors'] == [{'field': 'manager', 'message': 'Manager not found.'}]

    resp = client.post('/api/users/', new_user(leave_balances={'sick': -1}), format='json')
    assert resp.status_code == 400
    assert resp.json()['errors'][0]['field'] == 'leave_balances.sick'

    resp = client.post('/api/users/', {'email': 'x@example.com'}, format='json')
    fields = {error['field'] for error in resp.json()['errors']}
    assert fields == {'first_name', 'last_name', 'department'}


def test_update_user(client_for, admin_user, employee, manager):
    resp = client_for(admin_user).patch(f'/api/users/{employee.pk}/', {
        'department': 'Sales',
        'role': 'MANAGER',
        'manager': None,
        'leave_balances': {'sick': 2},
    }, format='json')

    assert resp.status_code == 200
    data = resp.json()['data']
    assert data['department'] == 'Sales'
    assert data['role'] == User.ROLE_MANAGER
    assert data['manager'] is None
    assert data['employee_id'] == employee.employee_id
    assert LeaveBalance.objects.get(user=employee).as_dict() == {'sick': 2, 'casual': 12, 'vacation': 21, 'academic': 5}


def test_full_update_requires_profile_fields(client_for, admin_user, employee):
    resp = client_for(admin_user).put(f'/api/users/{employee.pk}/', {'department': 'Sales'}, format='json')
    assert resp.status_code == 400


def test_update_rejects_self_management_and_conflicts(client_for, admin_user, employee, manager):
    client = client_for(admin_user)

    resp = client.patch(f'/api/users/{employee.pk}/', {'manager': employee.pk}, format='json')
    assert resp.status_code == 400

    resp = client.patch(f'/api/users/{employee.pk}/', {'email': manager.email}, format='json')
    assert resp.status_code == 400
    assert resp.json()['code'] == 'conflict'

    resp = client.patch(f'/api/users/{employee.pk}/', {'email': employee.email}, format='json')
    assert resp.status_code == 200


def test_admin_cannot_deactivate_self(client_for, admin_user):
    client = client_for(admin_user)

    assert client.put(f'/api/users/{admin_user.pk}/deactivate/').status_code == 400
    assert client.patch(f'/api/users/{admin_user.pk}/', {'is_active': False}, format='json').status_code == 400
    admin_user.refresh_from_db()
    assert admin_user.is_active


def test_deactivate_and_activate(client_for, admin_user, employee):
    client = client_for(admin_user)
    employee_client = client_for(employee)

    resp = client.put(f'/api/users/{employee.pk}/deactivate/')
    assert resp.status_code == 200
    assert resp.json()['data']['is_active'] is False
    assert employee_client.get('/api/auth/me/').status_code == 401

    resp = client.put(f'/api/users/{employee.pk}/activate/')
    assert resp.json()['data']['is_active'] is True
    assert employee_client.get('/api/auth/me/').status_code == 200


def test_reset_password(client_for, admin_user, employee, api_client):
    client = client_for(admin_user)

    assert client.put(f'/api/users/{employee.pk}/password/', {'new_password': '123'}, format='json').status_code == 400
    resp = client.put(f'/api/users/{employee.pk}/password/', {'new_password': 'brand-new'}, format='json')
    assert resp.status_code == 200

    login = api_client.post('/api/auth/login/', {'email': employee.email, 'password': 'brand-new'}, format='json')
    assert login.status_code == 200


def test_delete_user(client_for, admin_user, employee, next_monday):
    leave_services.submit(
        employee, LeaveRequest.TYPE_CASUAL, next_monday, next_monday + timedelta(days=1), 'Errand',
    )
    client = client_for(admin_user)

    assert client.delete(f'/api/users/{admin_user.pk}/').status_code == 400
    assert client.delete(f'/api/users/{employee.pk}/').status_code == 200
    assert not User.objects.filter(pk=employee.pk).exists()
    assert not LeaveRequest.objects.exists()
    assert client.get(f'/api/users/{employee.pk}/').status_code == 404


def test_deleting_a_manager_detaches_reports(client_for, admin_user, manager, employee):
    client_for(admin_user).delete(f'/api/users/{manager.pk}/')

    employee.refresh_from_db()
    assert employee.manager is None


def test_managers_picker(client_for, make_user, admin_user, manager, employee):
    make_user(User.ROLE_MANAGER, first_name='Aaron', is_active=False)
    zed = make_user(User.ROLE_MANAGER, first_name='Zed')

    resp = client_for(employee).get('/api/users/managers/')
    assert resp.status_code == 200
    names = [m['first_name'] for m in resp.json()['data']]
    assert names == ['Admin', 'Manager', 'Zed']
    assert zed.pk in {m['id'] for m in resp.json()['data']}


def test_employee_ids_are_sequential_per_department(make_user):
    first = make_user(department='Quality Assurance')
    second = make_user(department='Quality Assurance')
    other = make_user(department='Legal')
    blank = make_user(department='')

    assert first.employee_id == f'QA{YY}001'
    assert second.employee_id == f'QA{YY}002'
    assert other.employee_id == f'LEG{YY}001'
    assert blank.employee_id == f'EMP{YY}001'


def test_employee_ids_keep_counting_past_three_digits(make_user):
    make_user(department='Quality Assurance', employee_id=f'QA{YY}998')
    make_user(department='Quality Assurance', employee_id=f'QA{YY}999')

    assert make_user(department='Quality Assurance').employee_id == f'QA{YY}1000'
    assert make_user(department='Quality Assurance').employee_id == f'QA{YY}1001'
    assert make_user(department='Legal').employee_id == f'LEG{YY}001'
