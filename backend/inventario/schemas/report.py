from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from inventario.schemas.movement import MovementOut


class BrandCountOut(BaseModel):
    brand: str
    total: int


class RecentEquipmentMovementOut(BaseModel):
    id: int
    equipment_id: int
    type: str
    date: Optional[datetime] = None
    user_id: int
    notes: Optional[str] = None
    mac_address: str = ""
    customer: str = ""
    product_name: str = ""


class DashboardOut(BaseModel):
    total_products: int
    low_stock: int
    today_out_count: int
    equipment_total: int
    equipment_in_stock: int
    equipment_deployed: int
    brands: list[BrandCountOut]
    recent_equipment_movements: list[RecentEquipmentMovementOut]


class StockReportOut(BaseModel):
    category: Optional[str] = None
    categories: list[str]
    total_products: int
    low_stock: int
    out_of_stock: int
    total_movements: int
    in_quantity: int
    out_quantity: int
    last_movements: list[MovementOut]
