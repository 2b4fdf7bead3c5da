"""Movimentacoes de estoque de produtos (entrada e saida por quantidade)."""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from inventario.core.errors import ConflictError, NotFoundError
from inventario.database.transaction import commit_or_raise
from inventario.models.movement import Movement
from inventario.models.product import Product
from inventario.services.catalog import get_product
from inventario.services.validation import (
    ensure_valid,
    normalize_movement_type,
    validate_stock_movement,
)

logger = logging.getLogger(__name__)


def list_movements(db: Session, product_id: Optional[int] = None) -> list[Movement]:
    query = db.query(Movement)
    if product_id is not None:
        query = query.filter(Movement.product_id == product_id)
    return query.order_by(Movement.date.desc(), Movement.id.desc()).all()


def append_movement(
    db: Session,
    product_id: int,
    movement_type: str,
    quantity: int,
    user_id: int,
) -> Movement:
    ensure_valid(validate_stock_movement(product_id, movement_type, quantity))
    movement_type = normalize_movement_type(movement_type)
    product = get_product(db, product_id)

    if movement_type == "OUT":
        if quantity > int(product.quantity or 0):
            raise ConflictError("Estoque insuficiente")
        # O filtro por quantidade impede que duas saidas simultaneas deixem o estoque negativo.
        updated = (
            db.query(Product)
            .filter(Product.id == product_id, Product.quantity >= quantity)
            .update(
                {Product.quantity: Product.quantity - quantity, Product.updated_at: func.now()},
                synchronize_session=False,
            )
        )
    else:
        updated = (
            db.query(Product)
            .filter(Product.id == product_id)
            .update(
                {Product.quantity: Product.quantity + quantity, Product.updated_at: func.now()},
                synchronize_session=False,
            )
        )

    if updated != 1:
        db.rollback()
        if movement_type == "IN":
            raise NotFoundError("Produto nao encontrado.")
        logger.warning("Saida de %s unidades recusada para o produto %s", quantity, product_id)
        raise ConflictError("Estoque insuficiente")

    row = Movement(
        product_id=product_id,
        type=movement_type,
        quantity=quantity,
        user_id=user_id,
    )
    db.add(row)
    commit_or_raise(db)
    db.refresh(row)
    logger.info("Movimentacao %s de %s unidades no produto %s", movement_type, quantity, product_id)
    return row
