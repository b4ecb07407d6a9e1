import os, sys
import tempfile
from datetime import datetime

import pytest

# Ensure project root in path
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from config import TestingConfig
from extensions import bcrypt, db

FAKE_PDF = b'%PDF-1.4\n% fake report\n%%EOF'
PASSWORD = 'secret123'


class FakeEmitter:
    """Stands in for the Chrome-backed emitter; records every document it gets."""

    def __init__(self, pdf=FAKE_PDF):
        self.pdf = pdf
        self.calls = []

    def emit(self, html, options=None):
        self.calls.append(html)
        return self.pdf


@pytest.fixture(scope='session')
def test_app(tmp_path_factory):
    # Isolated SQLite temp DB; a file so worker threads share it
    fd, db_path = tempfile.mkstemp(prefix='test_db_', suffix='.sqlite')
    os.close(fd)
    log_dir = str(tmp_path_factory.mktemp('logs'))

    class _Config(TestingConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{db_path}"
        LOG_DIR = log_dir
        REPORTS_LOGO_PATH = os.path.join(log_dir, 'no-logo.png')

    from app import create_app
    app = create_app(_Config)
    try:
        yield app
    finally:
        try:
            os.remove(db_path)
        except OSError:
            pass


@pytest.fixture()
def fresh_db(test_app):
    """Empty tables for every test. No context is left pushed, so client
    requests get their own application context (and their own ``g``)."""
    with test_app.app_context():
        db.drop_all()
        db.create_all()
        db.session.remove()
    return test_app


@pytest.fixture()
def app_context(fresh_db):
    with fresh_db.app_context():
        yield fresh_db
        db.session.remove()


@pytest.fixture()
def fake_emitter(test_app):
    pipeline = test_app.extensions['report_pipeline']
    original = pipeline.emitter
    pipeline.emitter = FakeEmitter()
    try:
        yield pipeline.emitter
    finally:
        pipeline.emitter = original


@pytest.fixture()
def client(test_app):
    return test_app.test_client()


def add_user(username, role='customer', active=True, password=PASSWORD, **fields):
    """Create and commit a user; needs an application context."""
    from models import User
    u = User(username=username, email=f'{username}@pitstop.test', role=role, active=active, **fields)
    u.set_password(password, bcrypt)
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture()
def staff(fresh_db):
    """One user per role; maps role -> user id."""
    with fresh_db.app_context():
        ids = {
            role: add_user(role, role=role, first_name=role.replace('_', ' ').title(), last_name='Tester').id
            for role in ('admin', 'manager', 'cashier', 'service_advisor', 'technician', 'inspector', 'customer')
        }
        db.session.remove()
    return ids


def login(client, username, password=PASSWORD):
    r = client.post('/auth/login', json={'username': username, 'password': password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()['token']


def dt(text):
    return datetime.fromisoformat(text)
