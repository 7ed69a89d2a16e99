"""Shared pytest fixtures for the test suite.

Fixture overview
----------------
app               : Flask app on the testing config with all tables created
session_factory   : sessionmaker bound to the app's in-memory engine
service           : ApplicationService wired to session_factory
admin             : an admin account (dict with id/email/password)
make_cohort       : factory creating cohorts through CohortService
submit            : factory submitting applications through ApplicationService
count_rows        : count rows of a model in a fresh session
fetch             : load one row by primary key in a fresh session
client / admin_client : Flask test clients, the latter logged in as admin
"""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from admissions import create_app
from admissions.extensions import db, get_session_factory
from admissions.services.application_service import ApplicationService
from admissions.services.auth_service import AuthService
from admissions.services.cohort_service import CohortService

ADMIN_EMAIL = 'admin@hub.example.org'
ADMIN_PASSWORD = 'correct-horse-battery'


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session_factory(app):
    return get_session_factory(app)


@pytest.fixture
def service(session_factory) -> ApplicationService:
    return ApplicationService(session_factory)


@pytest.fixture
def admin(session_factory) -> dict:
    user = AuthService(session_factory).create_admin(ADMIN_EMAIL, ADMIN_PASSWORD)
    return {'id': user['id'], 'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD}


@pytest.fixture
def make_cohort(session_factory):
    cohorts = CohortService(session_factory)

    def _make(name='Cohort A', capacity=None, status='open'):
        return cohorts.create_cohort(name, capacity=capacity, status=status)['id']

    return _make


@pytest.fixture
def submit(service):
    def _submit(cohort_id, email=None, phone=None, full_name='Test Applicant'):
        return service.create_application({
            'cohort_id': cohort_id,
            'applicant': {'full_name': full_name, 'email': email, 'phone': phone},
        })['id']

    return _submit


@pytest.fixture
def count_rows(session_factory):
    def _count(model, *criteria):
        session = session_factory()
        try:
            stmt = select(func.count()).select_from(model)
            if criteria:
                stmt = stmt.where(*criteria)
            return session.execute(stmt).scalar_one()
        finally:
            session.close()

    return _count


@pytest.fixture
def fetch(session_factory):
    """Load a single row by primary key in a fresh session."""
    def _fetch(model, pk):
        session = session_factory()
        try:
            return session.get(model, pk)
        finally:
            session.close()

    return _fetch


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client, admin):
    response = client.post('/api/auth/login', json={'email': admin['email'], 'password': admin['password']})
    assert response.status_code == 200
    return client
