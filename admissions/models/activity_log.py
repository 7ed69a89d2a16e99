# models/activity_log.py
from admissions.extensions import db
from .base import BaseModel


class ActivityLog(BaseModel):
    """Append-only record of an administrative action."""

    __tablename__ = 'activity_logs'

    actor_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    action = db.Column(db.String(100), nullable=False, index=True)
    entity_type = db.Column(db.String(50), default='system', nullable=False, index=True)
    entity_id = db.Column(db.Integer, nullable=True)
    message = db.Column(db.Text, nullable=False)
    # 'metadata' is reserved on declarative classes
    details = db.Column('metadata', db.JSON, default=dict, nullable=False)

    def __repr__(self):
        return f'<ActivityLog {self.id} {self.action} {self.entity_type}:{self.entity_id}>'


class AdminNotification(BaseModel):
    """Per-admin inbox entry generated for every activity log record."""

    __tablename__ = 'admin_notifications'

    recipient_admin_user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                                        nullable=False, index=True)
    log_id = db.Column(db.Integer, db.ForeignKey('activity_logs.id', ondelete='CASCADE'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    body = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    read_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.Index('idx_admin_notifications_recipient_read', 'recipient_admin_user_id', 'is_read'),
    )

    def __repr__(self):
        return f'<AdminNotification {self.id} admin={self.recipient_admin_user_id}>'
