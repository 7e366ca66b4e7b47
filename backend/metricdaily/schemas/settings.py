from pydantic import BaseModel, ConfigDict

from metricdaily.core.constants import (
    DEFAULT_BREAK_MINUTES,
    DEFAULT_END_TIME,
    DEFAULT_START_TIME,
    DEFAULT_TRAINING_MINUTES,
)


class UserSettingsBase(BaseModel):
    default_start_time: str = DEFAULT_START_TIME
    default_end_time: str = DEFAULT_END_TIME
    default_break_minutes: int = DEFAULT_BREAK_MINUTES
    default_training_minutes: int = DEFAULT_TRAINING_MINUTES
    auto_switch_target_by_schedule: bool = False


class UserSettingsUpdate(UserSettingsBase):
    model_config = ConfigDict(extra="ignore")


class UserSettingsRead(UserSettingsBase):
    model_config = ConfigDict(from_attributes=True)
