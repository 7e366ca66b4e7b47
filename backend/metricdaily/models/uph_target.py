from sqlalchemy import Boolean, Column, DateTime, Float, String
from sqlalchemy.sql import func
from sqlalchemy.sql.expression import false, true
from metricdaily.db import Base


class UPHTarget(Base):
    __tablename__ = "uph_targets"

    id = Column(String(36), primary_key=True, index=True)

    name = Column(String(100), nullable=False, unique=True)

    target_uph = Column(Float, nullable=False)
    docs_per_unit = Column(Float, nullable=False)
    videos_per_unit = Column(Float, nullable=False)

    # Exactly one row is active; SqlStore.set_active_target flips it
    is_active = Column(Boolean, nullable=False, server_default=false())
    is_displayed = Column(Boolean, nullable=False, server_default=true())

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
