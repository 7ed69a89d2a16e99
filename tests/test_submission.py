"""
Tests for application submission and the duplicate-submission guard.
"""

from __future__ import annotations

import sqlite3

import pytest
from sqlalchemy.exc import IntegrityError

from admissions.models import Applicant, Application
from admissions.repositories import applications as applications_repo
from admissions.utils.errors import AppError, ErrorCode


class TestCreateApplication:
    def test_stores_normalized_contacts(self, service, make_cohort, fetch):
        cohort_id = make_cohort()
        created = service.create_application({
            'cohort_id': cohort_id,
            'applicant': {'full_name': ' Ada Lovelace ', 'email': ' Ada@Example.COM ', 'phone': '+1 (555) 010-9999'},
        })

        assert created['status'] == 'pending'
        application = fetch(Application, created['id'])
        assert application.applicant_email_norm == 'ada@example.com'
        assert application.applicant_phone_norm == '+15550109999'

        applicant = fetch(Applicant, application.applicant_id)
        assert applicant.full_name == 'Ada Lovelace'
        assert applicant.email == 'ada@example.com'
        assert applicant.phone == '+1 (555) 010-9999'

    def test_duplicate_email_differing_in_case_and_whitespace(self, service, make_cohort, submit, count_rows):
        cohort_id = make_cohort()
        submit(cohort_id, email='Same@X.com')

        with pytest.raises(AppError) as exc_info:
            submit(cohort_id, email='  same@x.COM  ')

        assert exc_info.value.code == ErrorCode.DUPLICATE_APPLICATION
        assert exc_info.value.status_code == 409
        assert 'already submitted an application' in exc_info.value.message
        assert count_rows(Application) == 1
        # The applicant row inserted before the failure is rolled back too
        assert count_rows(Applicant) == 1

    def test_duplicate_phone_with_different_formatting(self, make_cohort, submit):
        cohort_id = make_cohort()
        submit(cohort_id, email='first@x.com', phone='0700 111 222')

        with pytest.raises(AppError) as exc_info:
            submit(cohort_id, email='second@x.com', phone='0700-111-222')

        assert exc_info.value.code == ErrorCode.DUPLICATE_APPLICATION

    def test_same_email_other_cohort_is_allowed(self, make_cohort, submit, count_rows):
        submit(make_cohort('Cohort A'), email='a@x.com')
        submit(make_cohort('Cohort B'), email='a@x.com')

        assert count_rows(Application) == 2

    def test_unknown_cohort(self, submit):
        with pytest.raises(AppError) as exc_info:
            submit(404, email='a@x.com')

        assert exc_info.value.code == ErrorCode.COHORT_NOT_FOUND

    def test_closed_cohort(self, make_cohort, submit):
        cohort_id = make_cohort(status='completed')

        with pytest.raises(AppError) as exc_info:
            submit(cohort_id, email='a@x.com')

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_requires_email_or_phone(self, make_cohort, submit):
        with pytest.raises(AppError) as exc_info:
            submit(make_cohort(), email='   ', phone='not a phone')

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.parametrize('applicant', [
        'bob@x.com',
        ['bob@x.com'],
        {'email': 12345},
        {'email': 'bob@x.com', 'phone': 700111222},
        {'email': 'bob@x.com', 'full_name': ['Bob']},
    ])
    def test_malformed_applicant(self, service, make_cohort, count_rows, applicant):
        with pytest.raises(AppError) as exc_info:
            service.create_application({'cohort_id': make_cohort(), 'applicant': applicant})

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.status_code == 400
        assert count_rows(Application) == 0

    @pytest.mark.parametrize('email', ['not an email at all', 'bob@', '@x.com', 'bob@@x.com'])
    def test_invalid_email(self, make_cohort, submit, count_rows, email):
        with pytest.raises(AppError) as exc_info:
            submit(make_cohort(), email=email, phone='0700 111 222')

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert count_rows(Applicant) == 0

    def test_non_ascii_digits_are_not_a_phone(self, make_cohort, submit, count_rows):
        cohort_id = make_cohort()
        submit(cohort_id, phone='0700111222')

        with pytest.raises(AppError) as exc_info:
            submit(cohort_id, phone='\uff10\uff17\uff10\uff10\uff11\uff11\uff11\uff12\uff12\uff12')

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert count_rows(Application) == 1

    @pytest.mark.parametrize('cohort_id', ['1', None, True, 1.5])
    def test_cohort_id_must_be_integer(self, service, cohort_id):
        with pytest.raises(AppError) as exc_info:
            service.create_application({'cohort_id': cohort_id, 'applicant': {'email': 'a@x.com'}})

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR

    def test_other_integrity_errors_propagate_unchanged(self, service, make_cohort, monkeypatch):
        error = IntegrityError('INSERT INTO applications ...', {},
                               sqlite3.IntegrityError('FOREIGN KEY constraint failed'))

        def failing_create(*args, **kwargs):
            raise error

        monkeypatch.setattr(applications_repo, 'create_application', failing_create)

        with pytest.raises(IntegrityError) as exc_info:
            service.create_application({'cohort_id': make_cohort(), 'applicant': {'email': 'a@x.com'}})

        assert exc_info.value is error
