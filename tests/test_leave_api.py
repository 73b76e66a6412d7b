from datetime import date, timedelta

import pytest

from leave import services
from leave.models import Holiday, LeaveBalance, LeaveRequest

pytestmark = pytest.mark.django_db


def payload(monday, leave_type='VACATION', offset=0, length=4):
    start = monday + timedelta(weeks=offset)
    return {
        'leave_type': leave_type,
        'start_date': start.isoformat(),
        'end_date': (start + timedelta(days=length)).isoformat(),
        'reason': 'Family trip',
    }


def submit(user, monday, offset=0, leave_type=LeaveRequest.TYPE_VACATION):
    start = monday + timedelta(weeks=offset)
    return services.submit(user, leave_type, start, start + timedelta(days=4), 'Trip')


def test_requires_authentication(api_client):
    resp = api_client.get('/api/leaves/')
    assert resp.status_code == 401
    assert resp.json()['success'] is False

    resp = api_client.get('/api/leaves/', HTTP_AUTHORIZATION='Bearer not-a-token')
    assert resp.status_code == 401


def test_create_leave_request(client_for, employee, next_monday):
    resp = client_for(employee).post('/api/leaves/', payload(next_monday), format='json')

    assert resp.status_code == 201
    body = resp.json()
    assert body['success'] is True
    assert body['message'] == 'Leave request created successfully'
    data = body['data']
    assert data['status'] == 'PENDING'
    assert data['days'] == 5
    assert data['user']['employee_id'] == employee.employee_id
    assert data['approver'] is None
    assert data['history'][0]['action'] == 'PENDING'
    assert data['history'][0]['by'] == employee.pk


def test_create_validation_errors_are_listed(client_for, employee):
    resp = client_for(employee).post('/api/leaves/', {'leave_type': 'HOLIDAY'}, format='json')

    assert resp.status_code == 400
    body = resp.json()
    assert body['code'] == 'invalid'
    fields = {error['field'] for error in body['errors']}
    assert {'leave_type', 'start_date', 'end_date', 'reason'} <= fields


@pytest.mark.parametrize('setup, code', [
    ('overlap', 'overlap_conflict'),
    ('weekend', 'no_working_days'),
    ('balance', 'insufficient_balance'),
])
def test_create_business_rule_failures(client_for, employee, next_monday, setup, code):
    body = payload(next_monday)
    if setup == 'overlap':
        submit(employee, next_monday)
    elif setup == 'weekend':
        saturday = next_monday - timedelta(days=2)
        body.update(start_date=saturday.isoformat(), end_date=(saturday + timedelta(days=1)).isoformat())
    else:
        LeaveBalance.objects.filter(user=employee).update(vacation=2)

    resp = client_for(employee).post('/api/leaves/', body, format='json')
    assert resp.status_code == 400
    assert resp.json()['code'] == code


def test_list_is_scoped_and_paginated(client_for, admin_user, manager, employee, outsider, next_monday):
    for offset in range(3):
        submit(employee, next_monday, offset)
    submit(manager, next_monday)
    submit(outsider, next_monday)

    body = client_for(employee).get('/api/leaves/', {'limit': 2}).json()
    assert body['pagination'] == {'page': 1, 'limit': 2, 'total': 3, 'pages': 2}
    assert len(body['data']) == 2

    body = client_for(manager).get('/api/leaves/').json()
    assert body['pagination']['total'] == 4
    assert outsider.pk not in {item['user']['id'] for item in body['data']}

    body = client_for(admin_user).get('/api/leaves/', {'page': 2, 'limit': 3}).json()
    assert body['pagination'] == {'page': 2, 'limit': 3, 'total': 5, 'pages': 2}
    assert len(body['data']) == 2


def test_list_filters(client_for, manager, employee, next_monday):
    first = submit(employee, next_monday)
    submit(employee, next_monday, 1, LeaveRequest.TYPE_CASUAL)
    services.transition(first.pk, manager, LeaveRequest.STATUS_APPROVED)
    client = client_for(employee)

    data = client.get('/api/leaves/', {'status': 'APPROVED'}).json()['data']
    assert [item['id'] for item in data] == [first.pk]

    data = client.get('/api/leaves/', {'leave_type': 'CASUAL', 'status': ''}).json()['data']
    assert [item['leave_type'] for item in data] == ['CASUAL']

    resp = client.get('/api/leaves/', {'status': 'LOST'})
    assert resp.status_code == 400


def test_retrieve_outside_scope_is_not_found(client_for, employee, outsider, next_monday):
    req = submit(outsider, next_monday)

    assert client_for(employee).get(f'/api/leaves/{req.pk}/').status_code == 404
    resp = client_for(outsider).get(f'/api/leaves/{req.pk}/')
    assert resp.status_code == 200
    assert resp.json()['data']['id'] == req.pk


def test_manager_approves_through_api(client_for, manager, employee, next_monday):
    req = submit(employee, next_monday)

    resp = client_for(manager).patch(
        f'/api/leaves/{req.pk}/', {'status': 'APPROVED', 'comment': 'Enjoy'}, format='json',
    )
    assert resp.status_code == 200
    data = resp.json()['data']
    assert data['status'] == 'APPROVED'
    assert data['approver']['id'] == manager.pk
    assert [h['action'] for h in data['history']] == ['PENDING', 'APPROVED']
    assert client_for(employee).get('/api/leave/balance/').json()['data']['vacation'] == 16

    resp = client_for(manager).patch(f'/api/leaves/{req.pk}/', {'status': 'APPROVED'}, format='json')
    assert resp.status_code == 400
    assert resp.json()['code'] == 'invalid_state'


def test_employee_cannot_approve_own_request(client_for, employee, next_monday):
    req = submit(employee, next_monday)

    resp = client_for(employee).patch(f'/api/leaves/{req.pk}/', {'status': 'APPROVED'}, format='json')
    assert resp.status_code == 403
    assert resp.json()['code'] == 'forbidden'


def test_owner_cancels_through_api(client_for, employee, next_monday):
    req = submit(employee, next_monday)

    resp = client_for(employee).patch(f'/api/leaves/{req.pk}/', {'status': 'CANCELLED'}, format='json')
    assert resp.status_code == 200
    assert resp.json()['data']['status'] == 'CANCELLED'


def test_delete_is_soft(client_for, employee, next_monday):
    req = submit(employee, next_monday)
    client = client_for(employee)

    resp = client.delete(f'/api/leaves/{req.pk}/')
    assert resp.status_code == 200
    assert resp.json()['message'] == 'Leave request deleted successfully'
    assert client.get(f'/api/leaves/{req.pk}/').status_code == 404
    assert LeaveRequest.objects.filter(pk=req.pk).exists()


def test_my_balance(client_for, employee):
    resp = client_for(employee).get('/api/leave/balance/')
    assert resp.json()['data'] == {'sick': 12, 'casual': 12, 'vacation': 21, 'academic': 5}


def test_dashboard(client_for, admin_user, manager, employee, outsider, next_monday):
    approved = submit(employee, next_monday)
    services.transition(approved.pk, manager, LeaveRequest.STATUS_APPROVED)
    submit(outsider, next_monday)
    deleted = submit(employee, next_monday, 1)
    services.soft_delete(deleted.pk, employee)

    assert client_for(employee).get('/api/admin/dashboard/').status_code == 403
    for user in (manager, admin_user):
        data = client_for(user).get('/api/admin/dashboard/').json()['data']
        assert data == {
            'total_employees': 4,
            'pending_approvals': 1,
            'total_leave_requests': 2,
            'approved_this_month': 1,
            'rejected_this_month': 0,
        }


def test_admin_leave_balances(client_for, admin_user, manager, employee):
    client = client_for(admin_user)

    data = client.get('/api/admin/leave-balances/').json()['data']
    assert {item['user']['id'] for item in data} == {admin_user.pk, manager.pk, employee.pk}

    resp = client.patch(f'/api/admin/leave-balances/{employee.pk}/', {'sick': 3}, format='json')
    assert resp.status_code == 200
    assert resp.json()['data']['sick'] == 3
    assert LeaveBalance.objects.get(user=employee).as_dict() == {'sick': 3, 'casual': 12, 'vacation': 21, 'academic': 5}

    resp = client.put(f'/api/admin/leave-balances/{employee.pk}/', {'vacation': -1}, format='json')
    assert resp.status_code == 400
    assert client.patch('/api/admin/leave-balances/9999/', {'sick': 1}, format='json').status_code == 404
    assert client_for(manager).get('/api/admin/leave-balances/').status_code == 403


def test_holidays_api(client_for, admin_user, employee):
    admin = client_for(admin_user)
    for name, day in (('Late', date(2030, 12, 25)), ('Early', date(2030, 1, 1)), ('Next', date(2031, 1, 1))):
        resp = admin.post('/api/holidays/', {'name': name, 'date': day.isoformat()}, format='json')
        assert resp.status_code == 201
    assert Holiday.objects.get(name='Early').holiday_type == Holiday.TYPE_COMPANY

    resp = admin.post(
        '/api/holidays/', {'name': 'Dup', 'date': '2030-01-01', 'type': 'NATIONAL'}, format='json',
    )
    assert resp.status_code == 400
    assert resp.json()['code'] == 'conflict'

    client = client_for(employee)
    data = client.get('/api/holidays/', {'year': 2030}).json()['data']
    assert [h['name'] for h in data] == ['Early', 'Late']
    assert len(client.get('/api/holidays/').json()['data']) == 3
    assert client.get('/api/holidays/', {'year': 'soon'}).status_code == 400

    holiday = Holiday.objects.get(name='Next')
    assert client.get(f'/api/holidays/{holiday.pk}/').json()['data']['date'] == '2031-01-01'

    resp = client.post('/api/holidays/', {'name': 'Mine', 'date': '2030-05-05'}, format='json')
    assert resp.status_code == 403


def test_holiday_category_is_posted_as_type(client_for, admin_user):
    admin = client_for(admin_user)

    resp = admin.post(
        '/api/holidays/',
        {'name': 'Labour Day', 'date': '2030-05-06', 'type': 'NATIONAL', 'description': 'Public'},
        format='json',
    )
    assert resp.status_code == 201
    assert resp.json()['data']['type'] == Holiday.TYPE_NATIONAL
    assert Holiday.objects.get(date=date(2030, 5, 6)).holiday_type == Holiday.TYPE_NATIONAL

    resp = admin.post('/api/holidays/', {'name': 'Fair', 'date': '2030-05-07'}, format='json')
    assert resp.json()['data']['type'] == Holiday.TYPE_COMPANY

    resp = admin.post('/api/holidays/', {'name': 'Odd', 'date': '2030-05-08', 'type': 'GLOBAL'}, format='json')
    assert resp.status_code == 400
    assert resp.json()['errors'][0]['field'] == 'type'
