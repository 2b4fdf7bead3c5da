from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class MovementCreate(BaseModel):
    product_id: Optional[int] = None
    type: str
    quantity: int


class MovementOut(BaseModel):
    id: int
    product_id: int
    type: Literal["IN", "OUT"]
    quantity: int
    date: Optional[datetime] = None
    user_id: int

    class Config:
        from_attributes = True
