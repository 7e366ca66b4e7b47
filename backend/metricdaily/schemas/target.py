from typing import Optional

from pydantic import BaseModel, ConfigDict


class UPHTargetBase(BaseModel):
    name: str
    target_uph: float
    # How many completed items make up one unit
    docs_per_unit: float
    videos_per_unit: float
    is_displayed: bool = True


class UPHTargetCreate(UPHTargetBase):
    pass


class UPHTargetUpdate(BaseModel):
    """All fields optional; activation goes through /targets/{id}/activate."""

    name: Optional[str] = None
    target_uph: Optional[float] = None
    docs_per_unit: Optional[float] = None
    videos_per_unit: Optional[float] = None
    is_displayed: Optional[bool] = None

    model_config = ConfigDict(extra="ignore")


class UPHTargetRecord(UPHTargetBase):
    id: Optional[str] = None
    is_active: bool = False


class UPHTargetRead(UPHTargetRecord):
    id: str

    model_config = ConfigDict(from_attributes=True)
