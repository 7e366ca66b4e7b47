from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB
from metricdaily.db import Base


# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JsonDoc = JSON().with_variant(JSONB(), "postgresql")


class AuditLog(Base):
    """Append-only trail of mutations; rows are never updated or deleted."""

    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, index=True)

    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    action = Column(String(50), nullable=False, index=True)        # e.g. CREATE_WORK_LOG
    entity_type = Column(String(30), nullable=False, index=True)   # WorkLog, UPHTarget, Settings, System
    entity_id = Column(String(36), nullable=True)
    details = Column(String, nullable=False, server_default="")

    # Snapshots of the record before and after the change
    previous_state = Column(JsonDoc, nullable=True)
    new_state = Column(JsonDoc, nullable=True)
