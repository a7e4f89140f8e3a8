"""Audit logging service."""

from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from fedstore.db.models import AuditLog

logger = structlog.get_logger(__name__)


async def log_audit_event(
    db: AsyncSession,
    *,
    event_type: str,
    action: str,
    actor_type: str,
    actor_id: str | None = None,
    actor_ip: str | None = None,
    realm_id: str | None = None,
    provider_id: str | None = None,
    request_id: str | None = None,
    details: dict[str, Any] | None = None,
    success: bool = True,
    error_message: str | None = None,
) -> AuditLog:
    """
    Log an audit event to the database.

    Args:
        db: Database session
        event_type: Type of event ('auth')
        action: Specific action ('login', 'login_failed')
        actor_type: Type of actor ('user', 'system')
        actor_id: Identifier of the actor (username)
        actor_ip: IP address of the actor
        realm_id: Realm the event happened in
        provider_id: Federation provider that handled the event
        request_id: Request correlation ID
        details: Additional event details
        success: Whether the action was successful
        error_message: Error message if action failed

    Returns:
        The created AuditLog entry
    """
    # Get request_id from structlog context if not provided
    if request_id is None:
        ctx = structlog.contextvars.get_contextvars()
        request_id = ctx.get("request_id")

    entry = AuditLog(
        event_type=event_type,
        action=action,
        actor_type=actor_type,
        actor_id=actor_id,
        actor_ip=actor_ip,
        realm_id=realm_id,
        provider_id=provider_id,
        request_id=request_id,
        details=details or {},
        success=success,
        error_message=error_message,
    )

    db.add(entry)

    # Also log to structured logger for real-time monitoring
    log_method = logger.info if success else logger.warning
    log_method(
        "audit_event",
        event_type=event_type,
        action=action,
        actor_type=actor_type,
        actor_id=actor_id,
        realm=realm_id,
        provider_id=provider_id,
        success=success,
        error_message=error_message,
    )

    return entry
