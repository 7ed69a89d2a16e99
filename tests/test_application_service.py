"""
Tests for the approval and rejection workflow.
"""

from __future__ import annotations

import pytest
from sqlalchemy.dialects import postgresql

from admissions.models import (
    ActivityLog, AdminNotification, Application, ApplicationStatus, Enrollment, StudentProfile, User
)
from admissions.repositories import applications as applications_repo
from admissions.repositories import users as users_repo
from admissions.services.application_service import ApplicationService, generate_student_password
from admissions.services.audit_service import AuditLogDispatcher
from admissions.utils.errors import AppError, ErrorCode
from admissions.utils.unit_of_work import UnitOfWork


def _user_by_email(session_factory, email):
    with UnitOfWork(session_factory) as uow:
        return users_repo.find_user_by_email(uow.session, email)


class TestApprove:
    def test_new_applicant_gets_account_and_password(self, service, session_factory, make_cohort, submit, admin,
                                                     count_rows, fetch):
        cohort_id = make_cohort()
        application_id = submit(cohort_id, email='c@x.com', full_name='Carol Chen')

        result = service.approve(application_id, admin['id'])

        assert result.status == 'approved'
        assert result.application_id == application_id
        assert result.generated_password

        user = _user_by_email(session_factory, 'c@x.com')
        assert user.id == result.student_user_id
        assert user.is_student is True
        assert user.check_password(result.generated_password)
        assert user.password_hash != result.generated_password
        assert count_rows(User, User.email == 'c@x.com') == 1

        application = fetch(Application, application_id)
        assert application.status == ApplicationStatus.APPROVED
        assert application.reviewed_by == admin['id']
        assert application.reviewed_at is not None

        enrollment = fetch(Enrollment, result.enrollment_id)
        assert enrollment.student_user_id == user.id
        assert enrollment.cohort_id == cohort_id
        assert enrollment.application_id == application_id

    def test_existing_user_is_reused_without_password(self, service, session_factory, make_cohort, submit, admin,
                                                      count_rows):
        with UnitOfWork(session_factory) as uow:
            existing = users_repo.create_admin_user(uow.session, 'mentor@x.com', 'mentor-password')
            existing_id = existing.id

        cohort_id = make_cohort()
        application_id = submit(cohort_id, email='  Mentor@X.com ')

        result = service.approve(application_id, admin['id'])

        assert result.student_user_id == existing_id
        assert result.generated_password is None
        assert count_rows(User, User.email == 'mentor@x.com') == 1

        user = _user_by_email(session_factory, 'mentor@x.com')
        assert user.is_student is True
        # Other flags are left alone
        assert user.is_admin is True

    def test_generated_passwords_differ_between_calls(self, service, make_cohort, submit, admin):
        cohort_id = make_cohort()
        first = service.approve(submit(cohort_id, email='one@x.com'), admin['id'])
        second = service.approve(submit(cohort_id, email='two@x.com'), admin['id'])

        assert first.generated_password and second.generated_password
        assert first.generated_password != second.generated_password

    def test_profile_upsert_keeps_other_fields(self, service, session_factory, make_cohort, submit, admin):
        with UnitOfWork(session_factory) as uow:
            user = users_repo.create_student_user(uow.session, 'dana@x.com', None, 'whatever-pass')
            uow.session.add(StudentProfile(user_id=user.id, full_name='Old Name', bio='Keeps coding'))

        result = service.approve(submit(make_cohort(), email='dana@x.com', full_name='Dana Diaz'), admin['id'])

        with UnitOfWork(session_factory) as uow:
            profile = users_repo.get_student_profile(uow.session, result.student_user_id)
            assert profile.full_name == 'Dana Diaz'
            assert profile.bio == 'Keeps coding'

    def test_unknown_application(self, service, admin):
        with pytest.raises(AppError) as exc_info:
            service.approve(9999, admin['id'])

        assert exc_info.value.code == ErrorCode.APPLICATION_NOT_FOUND
        assert exc_info.value.status_code == 404

    def test_second_approval_is_rejected(self, service, make_cohort, submit, admin, count_rows):
        cohort_id = make_cohort()
        application_id = submit(cohort_id, email='a@x.com')

        service.approve(application_id, admin['id'])
        with pytest.raises(AppError) as exc_info:
            service.approve(application_id, admin['id'])

        assert exc_info.value.code == ErrorCode.APPLICATION_ALREADY_REVIEWED
        assert exc_info.value.status_code == 409
        assert count_rows(Enrollment) == 1
        assert count_rows(User, User.is_student.is_(True)) == 1

    def test_rejected_application_cannot_be_approved(self, service, make_cohort, submit, admin, count_rows):
        application_id = submit(make_cohort(), email='r@x.com')
        service.reject(application_id, admin['id'])

        with pytest.raises(AppError) as exc_info:
            service.approve(application_id, admin['id'])

        assert exc_info.value.code == ErrorCode.APPLICATION_ALREADY_REVIEWED
        assert count_rows(User, User.email == 'r@x.com') == 0
        assert count_rows(Enrollment) == 0

    def test_missing_email_is_validation_error(self, service, make_cohort, submit, admin, count_rows, fetch):
        application_id = submit(make_cohort(), phone='+254 700-000 001')

        with pytest.raises(AppError) as exc_info:
            service.approve(application_id, admin['id'])

        assert exc_info.value.code == ErrorCode.VALIDATION_ERROR
        assert exc_info.value.status_code == 400
        assert fetch(Application, application_id).status == ApplicationStatus.PENDING
        assert count_rows(Enrollment) == 0

    def test_capacity_scenario(self, service, make_cohort, submit, admin, count_rows, fetch):
        cohort_id = make_cohort(capacity=1)
        first = submit(cohort_id, email='a@x.com')
        second = submit(cohort_id, email='b@x.com')

        service.approve(first, admin['id'])
        assert count_rows(Enrollment, Enrollment.cohort_id == cohort_id) == 1

        with pytest.raises(AppError) as exc_info:
            service.approve(second, admin['id'])

        assert exc_info.value.code == ErrorCode.COHORT_CAPACITY_EXCEEDED
        assert exc_info.value.status_code == 409
        assert count_rows(Enrollment, Enrollment.cohort_id == cohort_id) == 1
        assert count_rows(User, User.email == 'b@x.com') == 0
        assert fetch(Application, second).status == ApplicationStatus.PENDING

    def test_inactive_enrollments_do_not_count(self, service, session_factory, make_cohort, submit, admin):
        cohort_id = make_cohort(capacity=1)
        first = service.approve(submit(cohort_id, email='a@x.com'), admin['id'])

        with UnitOfWork(session_factory) as uow:
            uow.session.get(Enrollment, first.enrollment_id).status = 'dropped'

        result = service.approve(submit(cohort_id, email='b@x.com'), admin['id'])
        assert result.status == 'approved'

    def test_unlimited_cohort(self, service, make_cohort, submit, admin, count_rows):
        cohort_id = make_cohort(capacity=None)
        for index in range(3):
            service.approve(submit(cohort_id, email=f'u{index}@x.com'), admin['id'])

        assert count_rows(Enrollment, Enrollment.cohort_id == cohort_id) == 3

    def test_records_two_admin_actions(self, service, make_cohort, submit, admin, count_rows, session_factory):
        cohort_id = make_cohort()
        application_id = submit(cohort_id, email='a@x.com')
        before = count_rows(ActivityLog)

        result = service.approve(application_id, admin['id'], message='Welcome aboard')

        assert count_rows(ActivityLog) == before + 2
        assert [event.action for event in result.events] == ['approve application', 'create enrollment']

        with UnitOfWork(session_factory) as uow:
            approve_log = uow.session.query(ActivityLog).filter_by(action='approve application').one()
            enrollment_log = uow.session.query(ActivityLog).filter_by(action='create enrollment').one()

            assert approve_log.entity_type == 'applications'
            assert approve_log.entity_id == application_id
            assert approve_log.actor_user_id == admin['id']
            assert approve_log.details['cohort_id'] == cohort_id
            assert approve_log.details['student_user_id'] == result.student_user_id
            assert approve_log.details['review_message'] == 'Welcome aboard'

            assert enrollment_log.entity_type == 'enrollments'
            assert enrollment_log.entity_id == result.enrollment_id
            assert enrollment_log.details == {'cohort_id': cohort_id, 'student_user_id': result.student_user_id}

        # One notification per admin per log entry
        assert count_rows(AdminNotification, AdminNotification.title == 'Application Approved') == 1
        assert count_rows(AdminNotification, AdminNotification.title == 'Enrollment Created') == 1

    def test_audit_failure_rolls_back_everything(self, session_factory, make_cohort, submit, admin, count_rows,
                                                 fetch):
        class BrokenDispatcher(AuditLogDispatcher):
            def dispatch(self, session, events):
                raise RuntimeError('activity log unavailable')

        service = ApplicationService(session_factory, dispatcher=BrokenDispatcher())
        application_id = submit(make_cohort(), email='z@x.com')

        with pytest.raises(RuntimeError):
            service.approve(application_id, admin['id'])

        assert fetch(Application, application_id).status == ApplicationStatus.PENDING
        assert count_rows(User, User.email == 'z@x.com') == 0
        assert count_rows(Enrollment) == 0
        assert count_rows(StudentProfile) == 0

    def test_password_is_not_logged(self, service, make_cohort, submit, admin, caplog):
        application_id = submit(make_cohort(), email='quiet@x.com')

        with caplog.at_level('DEBUG'):
            result = service.approve(application_id, admin['id'])

        assert result.generated_password not in caplog.text
        assert result.generated_password not in repr(result)

    def test_custom_password_generator(self, session_factory, make_cohort, submit, admin):
        service = ApplicationService(session_factory, password_generator=lambda: 'fixed-password')
        result = service.approve(submit(make_cohort(), email='p@x.com'), admin['id'])

        assert result.generated_password == 'fixed-password'

    def test_result_dict_shape(self, service, make_cohort, submit, admin):
        result = service.approve(submit(make_cohort(), email='shape@x.com'), admin['id']).to_dict()

        assert set(result) == {
            'application_id', 'status', 'student_user_id', 'enrollment_id', 'generated_password', 'review_message'
        }


class TestReject:
    def test_reject_pending(self, service, make_cohort, submit, admin, fetch, session_factory):
        application_id = submit(make_cohort(), email='a@x.com')

        result = service.reject(application_id, admin['id'], reason='Incomplete answers')

        assert result == {'id': application_id, 'status': 'rejected'}
        application = fetch(Application, application_id)
        assert application.status == ApplicationStatus.REJECTED
        assert application.reviewed_by == admin['id']

        with UnitOfWork(session_factory) as uow:
            log = uow.session.query(ActivityLog).filter_by(action='reject application').one()
            assert log.details['reason'] == 'Incomplete answers'
            assert log.entity_id == application_id

    def test_reject_twice(self, service, make_cohort, submit, admin):
        application_id = submit(make_cohort(), email='a@x.com')
        service.reject(application_id, admin['id'])

        with pytest.raises(AppError) as exc_info:
            service.reject(application_id, admin['id'])

        assert exc_info.value.code == ErrorCode.APPLICATION_ALREADY_REVIEWED

    def test_reject_approved(self, service, make_cohort, submit, admin):
        application_id = submit(make_cohort(), email='a@x.com')
        service.approve(application_id, admin['id'])

        with pytest.raises(AppError) as exc_info:
            service.reject(application_id, admin['id'])

        assert exc_info.value.code == ErrorCode.APPLICATION_ALREADY_REVIEWED

    def test_reject_unknown(self, service, admin):
        with pytest.raises(AppError) as exc_info:
            service.reject(4242, admin['id'])

        assert exc_info.value.code == ErrorCode.APPLICATION_NOT_FOUND


class TestApprovalLocking:
    def test_approval_query_locks_application_and_cohort(self):
        stmt = applications_repo.approval_query(7)
        sql = str(stmt.compile(dialect=postgresql.dialect()))

        assert 'FOR UPDATE OF applications, cohorts' in sql


def test_generate_student_password():
    password = generate_student_password('DH-', 6)

    assert password.startswith('DH-')
    assert len(password) == len('DH-') + 12
