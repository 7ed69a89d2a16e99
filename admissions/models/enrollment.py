# models/enrollment.py
from datetime import datetime

from admissions.extensions import db
from .base import BaseModel


class EnrollmentStatus:
    """Enrollment status constants. Only ACTIVE counts against cohort capacity."""
    ACTIVE = 'active'
    DROPPED = 'dropped'
    COMPLETED = 'completed'


class Enrollment(BaseModel):
    """Links a student user to a cohort, created from an approved application."""

    __tablename__ = 'enrollments'

    student_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    cohort_id = db.Column(db.Integer, db.ForeignKey('cohorts.id'), nullable=False)
    application_id = db.Column(db.Integer, db.ForeignKey('applications.id'), nullable=True)
    status = db.Column(db.String(20), default=EnrollmentStatus.ACTIVE, nullable=False)
    enrolled_at = db.Column(db.DateTime, default=datetime.now, nullable=False)

    __table_args__ = (
        db.Index('idx_enrollments_cohort_status', 'cohort_id', 'status'),
    )

    def __repr__(self):
        return f'<Enrollment {self.id} user={self.student_user_id} cohort={self.cohort_id}>'
