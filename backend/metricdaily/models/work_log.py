from sqlalchemy import Boolean, Column, Date, DateTime, Integer, Numeric, String, Time
from sqlalchemy.sql import func
from sqlalchemy.sql.expression import false
from metricdaily.db import Base


class WorkLog(Base):
    __tablename__ = "work_logs"

    id = Column(String(36), primary_key=True, index=True)

    # One entry per calendar day
    date = Column(Date, nullable=False, unique=True, index=True)

    # Local wall-clock shift times; end <= start means the shift crosses midnight
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    break_duration_minutes = Column(Integer, nullable=False, server_default="0")
    training_duration_minutes = Column(Integer, nullable=False, server_default="0")

    # Net hours, derived on save: (end - start) - break - training
    hours_worked = Column(Numeric(5, 2), nullable=False)

    documents_completed = Column(Integer, nullable=False, server_default="0")
    video_sessions_completed = Column(Integer, nullable=False, server_default="0")
    notes = Column(String, nullable=True)

    # Not a foreign key: a deleted target leaves the reference dangling and
    # calculations fall back to the active target
    target_id = Column(String(36), nullable=True)

    is_finalized = Column(Boolean, nullable=False, server_default=false())

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
