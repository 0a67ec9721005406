# Overview: Append-only audit trail for authorization denials and failed logins.

from __future__ import annotations

from datetime import timedelta

from flask import current_app, has_request_context, request

from ..extensions import db
from ..models import SecurityEvent
from ..time_utils import utcnow


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
) -> SecurityEvent:
    """
    Record a security event and commit it.

    Request path, method, client address and user agent are filled in from
    the active request when there is one.

    Must be called outside of an open business transaction (it commits).

    event_type examples:
    - PERMISSION_DENIED
    - OWNERSHIP_DENIED
    - LOGIN_FAILED
    - TOKEN_REJECTED
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        resource = resource or request.path
        action = action or request.method
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")

    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    current_app.logger.warning(
        "security event %s user_id=%s resource=%s action=%s reason=%s",
        event_type, user_id, resource, action, reason,
    )
    return event


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """Delete security events older than retention_days."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete()
    db.session.commit()
    return deleted
