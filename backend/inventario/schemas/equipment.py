from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class EquipmentBase(BaseModel):
    product_id: Optional[int] = None
    mac_address: str = Field(default="", max_length=64)
    gpon_sn: str = Field(default="", max_length=64)
    customer: str = Field(default="", max_length=180)
    description: Optional[str] = None


class EquipmentCreate(EquipmentBase):
    pass


class EquipmentUpdate(BaseModel):
    product_id: Optional[int] = None
    mac_address: Optional[str] = None
    gpon_sn: Optional[str] = None
    customer: Optional[str] = None
    description: Optional[str] = None
    # Presente apenas para ser recusado: o status muda somente via movimentacao.
    status: Optional[str] = None


class EquipmentOut(EquipmentBase):
    id: int
    product_id: int
    product_name: str = ""
    status: Literal["IN_STOCK", "DEPLOYED"]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EquipmentMovementCreate(BaseModel):
    equipment_id: int
    type: str
    notes: Optional[str] = None


class EquipmentMovementOut(BaseModel):
    id: int
    equipment_id: int
    type: Literal["IN", "OUT"]
    date: Optional[datetime] = None
    user_id: int
    notes: Optional[str] = None

    class Config:
        from_attributes = True
