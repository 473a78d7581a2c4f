"""Best-effort audit trail for moderation actions."""

import logging
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.audit_log import AuditLogModel

logger = logging.getLogger(__name__)


def record_audit(
    db: Session,
    action: str,
    actor_id: Optional[str] = None,
    target_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> None:
    """Write an audit row. A failed write is logged and otherwise ignored.

    Args:
        db: SQLAlchemy Session.
        action: Action name, e.g. "UPDATE_USER_STATUS".
        actor_id: Account that performed the action.
        target_id: Record the action applied to.
        details: JSON-serializable details.
        request: Originating request, for client address and user agent.
    """
    entry = AuditLogModel(
        actor_id=actor_id,
        target_id=target_id,
        action=action,
        details=details or {},
        ip_address=request.client.host if request is not None and request.client else None,
        user_agent=request.headers.get("user-agent") if request is not None else None,
    )
    try:
        db.add(entry)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Error writing audit log %s: %s", action, e)
