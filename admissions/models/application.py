# models/application.py
from datetime import datetime

from admissions.extensions import db
from .base import BaseModel


class ApplicationStatus:
    """Application status constants. Only PENDING may transition."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'

    ALL = (PENDING, APPROVED, REJECTED)


class Applicant(BaseModel):
    """A person who submitted an application, independent of any platform user."""

    __tablename__ = 'applicants'

    full_name = db.Column(db.String(200), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)

    applications = db.relationship('Application', back_populates='applicant')

    def __repr__(self):
        return f'<Applicant {self.id} {self.email}>'


class Application(BaseModel):
    """A single cohort submission tied to one applicant."""

    __tablename__ = 'applications'

    cohort_id = db.Column(db.Integer, db.ForeignKey('cohorts.id'), nullable=False, index=True)
    applicant_id = db.Column(db.Integer, db.ForeignKey('applicants.id'), nullable=False)
    applicant_email_norm = db.Column(db.String(255), nullable=True)
    applicant_phone_norm = db.Column(db.String(32), nullable=True)

    status = db.Column(db.String(20), default=ApplicationStatus.PENDING, nullable=False, index=True)
    reviewed_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    review_message = db.Column(db.Text, nullable=True)
    submitted_at = db.Column(db.DateTime, default=datetime.now, nullable=False, index=True)

    applicant = db.relationship('Applicant', back_populates='applications')
    cohort = db.relationship('Cohort')

    __table_args__ = (
        # One application per person per cohort, by either contact channel
        db.UniqueConstraint('cohort_id', 'applicant_email_norm', name='uq_applications_cohort_email'),
        db.UniqueConstraint('cohort_id', 'applicant_phone_norm', name='uq_applications_cohort_phone'),
        db.Index('idx_applications_status_submitted', 'status', 'submitted_at'),
    )

    def __repr__(self):
        return f'<Application {self.id} cohort={self.cohort_id} {self.status}>'
