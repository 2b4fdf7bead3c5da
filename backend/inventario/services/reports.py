from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from inventario.core.config import LOW_STOCK_THRESHOLD
from inventario.models.equipment import DEPLOYED, IN_STOCK, Equipment
from inventario.models.equipment_movement import MOVEMENT_OUT, EquipmentMovement
from inventario.models.movement import Movement
from inventario.models.product import Product
from inventario.schemas.movement import MovementOut
from inventario.schemas.report import (
    BrandCountOut,
    DashboardOut,
    RecentEquipmentMovementOut,
    StockReportOut,
)
from inventario.services.catalog import list_products, products_by_id
from inventario.services.equipment_registry import PRODUCT_NOT_FOUND_LABEL

NO_BRAND_LABEL = "Sem marca"
RECENT_LIMIT = 5


def _brand_counts(products: list[Product]) -> list[BrandCountOut]:
    counts = Counter((product.brand or "").strip() or NO_BRAND_LABEL for product in products)
    return [
        BrandCountOut(brand=brand, total=total)
        for brand, total in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]


def _recent_equipment_movements(db: Session) -> list[RecentEquipmentMovementOut]:
    entries = (
        db.query(EquipmentMovement)
        .order_by(EquipmentMovement.date.desc(), EquipmentMovement.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    equipment_ids = {entry.equipment_id for entry in entries}
    equipment = {}
    if equipment_ids:
        equipment = {
            row.id: row
            for row in db.query(Equipment).filter(Equipment.id.in_(equipment_ids)).all()
        }
    products = products_by_id(db, [row.product_id for row in equipment.values()])

    result = []
    for entry in entries:
        item = equipment.get(entry.equipment_id)
        product = products.get(item.product_id) if item else None
        result.append(
            RecentEquipmentMovementOut(
                id=entry.id,
                equipment_id=entry.equipment_id,
                type=entry.type,
                date=entry.date,
                user_id=entry.user_id,
                notes=entry.notes,
                mac_address=item.mac_address if item else "",
                customer=item.customer if item else "",
                product_name=product.name if product else PRODUCT_NOT_FOUND_LABEL,
            )
        )
    return result


def dashboard(db: Session, today: Optional[date] = None) -> DashboardOut:
    products = list_products(db)
    # Datas do banco sao gravadas em UTC.
    day = today or datetime.now(timezone.utc).date()
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1)

    today_out_count = (
        db.query(func.count(EquipmentMovement.id))
        .filter(
            EquipmentMovement.type == MOVEMENT_OUT,
            EquipmentMovement.date >= start,
            EquipmentMovement.date < end,
        )
        .scalar()
    )
    status_counts = dict(
        db.query(Equipment.status, func.count(Equipment.id)).group_by(Equipment.status).all()
    )

    return DashboardOut(
        total_products=len(products),
        low_stock=sum(1 for product in products if int(product.quantity or 0) < LOW_STOCK_THRESHOLD),
        today_out_count=int(today_out_count or 0),
        equipment_total=sum(int(value) for value in status_counts.values()),
        equipment_in_stock=int(status_counts.get(IN_STOCK, 0)),
        equipment_deployed=int(status_counts.get(DEPLOYED, 0)),
        brands=_brand_counts(products),
        recent_equipment_movements=_recent_equipment_movements(db),
    )


def stock_report(db: Session, category: Optional[str] = None) -> StockReportOut:
    products = list_products(db)
    categories = sorted({product.category for product in products if product.category})
    if category:
        products = [product for product in products if product.category == category]
    product_ids = {product.id for product in products}

    movements = (
        db.query(Movement)
        .order_by(Movement.date.desc(), Movement.id.desc())
        .all()
    )
    if category:
        movements = [movement for movement in movements if movement.product_id in product_ids]

    return StockReportOut(
        category=category or None,
        categories=categories,
        total_products=len(products),
        low_stock=sum(1 for product in products if int(product.quantity or 0) < LOW_STOCK_THRESHOLD),
        out_of_stock=sum(1 for product in products if int(product.quantity or 0) == 0),
        total_movements=len(movements),
        in_quantity=sum(movement.quantity for movement in movements if movement.type == "IN"),
        out_quantity=sum(movement.quantity for movement in movements if movement.type == "OUT"),
        last_movements=[MovementOut.model_validate(movement) for movement in movements[:RECENT_LIMIT]],
    )
