# models/cohort.py
from admissions.extensions import db
from .base import BaseModel


class CohortStatus:
    """Cohort status constants."""
    PLANNED = 'planned'
    OPEN = 'open'
    RUNNING = 'running'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class Cohort(BaseModel):
    """A class instance that applications target."""

    __tablename__ = 'cohorts'

    name = db.Column(db.String(200), nullable=False)
    status = db.Column(db.String(20), default=CohortStatus.OPEN, nullable=False, index=True)
    # NULL means unlimited
    capacity = db.Column(db.Integer, nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)

    __table_args__ = (
        db.CheckConstraint('capacity IS NULL OR capacity > 0', name='ck_cohort_capacity_positive'),
    )

    def __repr__(self):
        return f'<Cohort {self.id} {self.name}>'

    @property
    def accepts_applications(self):
        return self.status == CohortStatus.OPEN
