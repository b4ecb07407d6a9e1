# -*- coding: utf-8 -*-
"""
HTTP tests for /auth and /reports: authentication, role gating, filter
validation, technician scoping and the JSON / PDF responses.
"""
from __future__ import annotations

from datetime import datetime

import pytest

from conftest import FAKE_PDF, add_user, dt, login
from extensions import db
from models import Booking, InventoryItem, Job, JobAssignment


@pytest.fixture()
def authed(client, staff):
    """``authed('manager')`` logs the client in as that role."""
    def _as(role):
        login(client, role)
        return client
    return _as


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

def test_reports_require_login(client, fresh_db):
    r = client.get('/reports/bookings?format=json')
    assert r.status_code == 401
    assert r.get_json()['success'] is False


def test_login_rejects_bad_password(client, staff):
    r = client.post('/auth/login', json={'username': 'admin', 'password': 'nope'})
    assert r.status_code == 401
    assert r.get_json()['error'] == 'invalid_credentials'


def test_inactive_user_cannot_log_in(client, test_app, fresh_db):
    with test_app.app_context():
        add_user('ghost', role='admin', active=False)
    r = client.post('/auth/login', data={'username': 'ghost', 'password': 'secret123'})
    assert r.status_code == 403


def test_bearer_token_authenticates(test_app, staff):
    token = login(test_app.test_client(), 'cashier')
    fresh = test_app.test_client()
    r = fresh.get('/reports/payments?format=json', headers={'Authorization': f'Bearer {token}'})
    assert r.status_code == 200
    r = fresh.get('/reports/payments?format=json', headers={'Authorization': 'Bearer forged.token'})
    assert r.status_code == 401


def test_logout(authed):
    client = authed('admin')
    assert client.get('/auth/me').get_json()['user']['role'] == 'admin'
    assert client.post('/auth/logout').status_code == 200
    assert client.get('/auth/me').status_code == 401


# ---------------------------------------------------------------------------
# Role gating
# ---------------------------------------------------------------------------

@pytest.mark.parametrize('role, path, allowed', [
    ('cashier', '/reports/bookings', True),
    ('cashier', '/reports/payments', True),
    ('cashier', '/reports/jobs', False),
    ('technician', '/reports/jobs', True),
    ('technician', '/reports/bookings', False),
    ('service_advisor', '/reports/jobs', True),
    ('service_advisor', '/reports/inventory', False),
    ('manager', '/reports/leaves', True),
    ('manager', '/reports/users', True),
    ('admin', '/reports/inventory', True),
    ('customer', '/reports/bookings', False),
    ('inspector', '/reports/dashboard', False),
])
def test_role_table(authed, role, path, allowed):
    r = authed(role).get(f'{path}?format=json')
    if allowed:
        assert r.status_code == 200
        assert r.get_json()['success'] is True
    else:
        assert r.status_code == 403
        assert r.get_json() == {
            'success': False,
            'error': 'forbidden',
            'message': 'You do not have permission to access this report',
        }


def test_available_reports_follow_role(authed):
    body = authed('technician').get('/reports/available').get_json()
    assert body['data']['userRole'] == 'technician'
    assert list(body['data']['availableReports']) == ['jobs']

    body = authed('admin').get('/reports/available').get_json()
    assert set(body['data']['availableReports']) == {
        'bookings', 'payments', 'jobs', 'leaves', 'inventory', 'users', 'dashboard',
    }
    assert body['data']['availableReports']['dashboard']['formats'] == ['json']


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def test_inverted_range_rejected_before_aggregation(authed, monkeypatch):
    from modules.reports import pipeline as pipeline_module

    calls = []

    def _spy(report_type, filters):
        calls.append(report_type)
        raise AssertionError('aggregator must not run')

    monkeypatch.setattr(pipeline_module, 'aggregate', _spy)
    r = authed('manager').get('/reports/bookings?dateFrom=2024-02-01&dateTo=2024-01-01')
    assert r.status_code == 400
    body = r.get_json()
    assert body['success'] is False
    assert 'dateFrom' in body['message']
    assert calls == []


@pytest.mark.parametrize('query', [
    'format=xlsx',
    'dateFrom=yesterday&dateTo=2024-01-01',
    'format=json&technicianId=abc',
])
def test_bad_parameters_are_400(authed, query):
    r = authed('admin').get(f'/reports/jobs?{query}')
    assert r.status_code == 400
    assert r.get_json()['success'] is False


def test_unknown_report_path(authed):
    r = authed('admin').get('/reports/payroll')
    assert r.status_code == 404


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------

def test_json_report_body(authed, test_app):
    client = authed('cashier')
    with test_app.app_context():
        db.session.add(Booking(booking_code='BK-9', scheduled_date=dt('2024-01-15T10:00'),
                               status='completed', actual_cost=75))
        db.session.commit()
    r = client.get('/reports/bookings?format=json&dateFrom=2024-01-01&dateTo=2024-01-31&status=completed')
    assert r.status_code == 200
    body = r.get_json()
    assert body['success'] is True
    assert body['data']['summary']['totalBookings'] == 1
    assert body['data']['summary']['completionRate'] == '100.0'
    assert body['data']['rows'][0]['bookingId'] == 'BK-9'
    assert body['data']['rows'][0]['scheduledDate'] == '2024-01-15T10:00:00'
    assert body['data']['breakdowns']['bookingsByStatus'] == [
        {'category': 'completed', 'count': 1, 'percentage': 100.0},
    ]
    assert body['filters']['dateFrom'] == '2024-01-01'
    assert body['filters']['status'] == 'completed'
    datetime.fromisoformat(body['generatedAt'])


def test_pdf_download(authed, fake_emitter):
    r = authed('manager').get('/reports/inventory')
    assert r.status_code == 200
    assert r.mimetype == 'application/pdf'
    assert r.data == FAKE_PDF
    disposition = r.headers['Content-Disposition']
    assert disposition.startswith('attachment; filename="inventory-report-')
    assert disposition.endswith('.pdf"')
    assert r.headers['Content-Length'] == str(len(FAKE_PDF))
    assert len(fake_emitter.calls) == 1
    assert 'Inventory Report' in fake_emitter.calls[0]
    assert 'Manager Tester' in fake_emitter.calls[0]


def test_pdf_failure_is_500(authed, test_app):
    from modules.reports.errors import PDFGenerationError

    class _Broken:
        def emit(self, html, options=None):
            raise PDFGenerationError('PDF generation failed')

    pipeline = test_app.extensions['report_pipeline']
    original, pipeline.emitter = pipeline.emitter, _Broken()
    try:
        r = authed('admin').get('/reports/users')
    finally:
        pipeline.emitter = original
    assert r.status_code == 500
    assert r.get_json() == {'success': False, 'error': 'pdf_failed', 'message': 'PDF generation failed'}


def test_missing_template_hides_cause(authed, test_app, fake_emitter, tmp_path):
    import os
    import shutil

    from modules.reports.renderer import ReportRenderer

    pipeline = test_app.extensions['report_pipeline']
    shutil.copy(os.path.join(pipeline.renderer.template_dir, 'base.html'), tmp_path / 'base.html')
    original, pipeline.renderer = pipeline.renderer, ReportRenderer(str(tmp_path))
    try:
        r = authed('manager').get('/reports/bookings')
    finally:
        pipeline.renderer = original
    assert r.status_code == 500
    assert r.get_json() == {
        'success': False,
        'error': 'template_not_found',
        'message': 'PDF generation failed',
    }
    assert 'bookings-report.html' not in r.get_data(as_text=True)
    assert fake_emitter.calls == []


def test_technician_sees_only_own_jobs(authed, test_app, staff):
    client = authed('technician')
    with test_app.app_context():
        other = add_user('other_tech', role='technician')
        mine = Job(job_code='MINE', status='working')
        theirs = Job(job_code='THEIRS', status='working')
        db.session.add_all([mine, theirs])
        db.session.commit()
        db.session.add_all([
            JobAssignment(job_id=mine.id, labourer_id=staff['technician']),
            JobAssignment(job_id=theirs.id, labourer_id=other.id),
        ])
        db.session.commit()
        other_id = other.id

    for query in ('', f'&technicianId={other_id}', '&technicianId=999'):
        r = client.get(f'/reports/jobs?format=json{query}')
        assert r.status_code == 200
        body = r.get_json()
        assert [row['jobId'] for row in body['data']['rows']] == ['MINE']
        assert body['filters']['technicianId'] == staff['technician']


def test_manager_can_filter_jobs_by_technician(authed, test_app, staff):
    client = authed('manager')
    with test_app.app_context():
        job = Job(job_code='J-T', status='working')
        db.session.add_all([job, Job(job_code='J-X', status='working')])
        db.session.commit()
        db.session.add(JobAssignment(job_id=job.id, labourer_id=staff['technician']))
        db.session.commit()
    r = client.get(f"/reports/jobs?format=json&technicianId={staff['technician']}")
    assert [row['jobId'] for row in r.get_json()['data']['rows']] == ['J-T']


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

def test_dashboard_json(authed, test_app):
    with test_app.app_context():
        db.session.add(InventoryItem(name='Spark plug', current_stock=0, minimum_stock=4, unit_price=3))
        db.session.commit()
    r = authed('manager').get('/reports/dashboard')
    assert r.status_code == 200
    body = r.get_json()
    assert body['success'] is True
    assert body['data']['summary']['lowStockItems'] == 1
    assert body['data']['summary']['totalBookings'] == 0
    assert body['period'] == body['data']['period']


def test_dashboard_pdf_not_implemented(authed, fake_emitter):
    r = authed('admin').get('/reports/dashboard?format=pdf')
    assert r.status_code == 501
    assert r.get_json()['success'] is False
    assert fake_emitter.calls == []
