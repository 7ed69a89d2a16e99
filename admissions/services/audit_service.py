# services/audit_service.py
"""
Admin action events and their persistence.

Service operations describe what happened as AdminActionEvent objects; the
AuditLogDispatcher writes them to activity_logs and fans out one
admin_notifications row per active admin. Dispatch always runs inside the
caller's unit of work, so a failed audit write aborts the whole operation.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from admissions.repositories import logs as logs_repo
from admissions.repositories import users as users_repo


class AdminAction:
    """Action names recorded in the activity log."""
    APPROVE_APPLICATION = 'approve application'
    REJECT_APPLICATION = 'reject application'
    CREATE_ENROLLMENT = 'create enrollment'
    CREATE_COHORT = 'create cohort'
    CREATE_ADMIN = 'create admin'


@dataclass
class AdminActionEvent:
    actor_user_id: Optional[int]
    action: str
    message: str
    entity_type: str = 'system'
    entity_id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    title: Optional[str] = None
    body: Optional[str] = None

    @property
    def notification_title(self):
        return self.title or self.action

    @property
    def notification_body(self):
        return self.body or self.message


class AuditLogDispatcher:
    """Persists AdminActionEvents using the caller's session."""

    def __init__(self, notify_admins=True):
        self.notify_admins = notify_admins
        self.logger = logging.getLogger('audit_service')

    def dispatch(self, session, events: List[AdminActionEvent]):
        """
        Write every event and its admin notifications.

        Returns:
            list: Persisted ActivityLog rows, in event order
        """
        if not events:
            return []

        admin_ids = users_repo.list_admin_user_ids(session) if self.notify_admins else []
        persisted = []

        for event in events:
            log = logs_repo.insert_activity_log(
                session,
                actor_user_id=event.actor_user_id,
                action=event.action,
                entity_type=event.entity_type,
                entity_id=event.entity_id,
                message=event.message,
                details=event.metadata
            )
            if admin_ids:
                logs_repo.insert_admin_notifications(
                    session, admin_ids, log.id, event.notification_title, event.notification_body
                )
            persisted.append(log)
            self.logger.debug(f"Recorded '{event.action}' on {event.entity_type}:{event.entity_id}")

        return persisted
