from sqlalchemy import Boolean, Column, DateTime, Integer, Time
from sqlalchemy.sql import func
from sqlalchemy.sql.expression import false
from metricdaily.db import Base


class UserSettings(Base):
    __tablename__ = "user_settings"

    # Singleton row
    id = Column(Integer, primary_key=True, default=1)

    default_start_time = Column(Time, nullable=False)
    default_end_time = Column(Time, nullable=False)
    default_break_minutes = Column(Integer, nullable=False, server_default="0")
    default_training_minutes = Column(Integer, nullable=False, server_default="0")

    auto_switch_target_by_schedule = Column(Boolean, nullable=False, server_default=false())

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
