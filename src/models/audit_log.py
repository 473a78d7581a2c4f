from datetime import datetime

import pytz
from sqlalchemy import JSON, Column, DateTime, Index, Integer, String
from .base import Base


class AuditLogModel(Base):
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_actor_timestamp", "actor_id", "timestamp"),
        Index("ix_audit_logs_action_timestamp", "action", "timestamp"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # No foreign keys: audit rows outlive the accounts and records they mention
    actor_id = Column(String, nullable=True)
    target_id = Column(String, nullable=True)
    action = Column(String, nullable=False)
    details = Column(JSON, nullable=False, default=dict)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    timestamp = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(pytz.utc),
    )
