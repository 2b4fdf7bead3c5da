import logging
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy.orm import Session

from inventario.core.errors import NotFoundError
from inventario.database.transaction import commit_or_raise
from inventario.models.category import Category
from inventario.models.product import Product
from inventario.services.validation import (
    ensure_valid,
    normalize_optional_text,
    normalize_spaces,
    validate_category_name,
    validate_product_input,
)

logger = logging.getLogger(__name__)

PRODUCT_TEXT_FIELDS = ("name", "description", "category")
PRODUCT_OPTIONAL_FIELDS = ("brand", "model", "image_url")


def _apply_product_fields(row: Product, data: Mapping[str, Any]) -> None:
    for key in PRODUCT_TEXT_FIELDS:
        if key in data:
            setattr(row, key, normalize_spaces(data[key]))
    for key in PRODUCT_OPTIONAL_FIELDS:
        if key in data:
            setattr(row, key, normalize_optional_text(data[key]))
    if "quantity" in data:
        row.quantity = int(data["quantity"])


def get_product(db: Session, product_id: int) -> Product:
    row = db.query(Product).filter(Product.id == product_id).first()
    if not row:
        raise NotFoundError("Produto nao encontrado.")
    return row


def products_by_id(db: Session, product_ids: Iterable[int]) -> dict[int, Product]:
    ids = {int(item) for item in product_ids if item is not None}
    if not ids:
        return {}
    rows = db.query(Product).filter(Product.id.in_(ids)).all()
    return {row.id: row for row in rows}


def list_products(db: Session) -> list[Product]:
    return db.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()


def create_product(db: Session, data: Mapping[str, Any]) -> Product:
    ensure_valid(validate_product_input(data))
    row = Product()
    _apply_product_fields(row, data)
    db.add(row)
    commit_or_raise(db)
    db.refresh(row)
    logger.info("Produto %s criado", row.id)
    return row


def update_product(db: Session, product_id: int, data: Mapping[str, Any]) -> Product:
    ensure_valid(validate_product_input(data, partial=True))
    row = get_product(db, product_id)
    if not data:
        return row
    _apply_product_fields(row, data)
    commit_or_raise(db)
    db.refresh(row)
    return row


def delete_product(db: Session, product_id: int) -> None:
    # Equipamentos que apontam para o produto permanecem cadastrados.
    row = get_product(db, product_id)
    db.delete(row)
    commit_or_raise(db)
    logger.info("Produto %s excluido", product_id)


def get_category(db: Session, category_id: int) -> Category:
    row = db.query(Category).filter(Category.id == category_id).first()
    if not row:
        raise NotFoundError("Categoria nao encontrada.")
    return row


def list_categories(db: Session, q: Optional[str] = None) -> list[Category]:
    query = db.query(Category)
    if q and normalize_spaces(q):
        query = query.filter(Category.name.ilike(f"%{normalize_spaces(q)}%"))
    return query.order_by(Category.name.asc(), Category.id.asc()).all()


def create_category(db: Session, name: str) -> Category:
    ensure_valid(validate_category_name(name))
    row = Category(name=normalize_spaces(name))
    db.add(row)
    commit_or_raise(db)
    db.refresh(row)
    return row


def update_category(db: Session, category_id: int, name: str) -> Category:
    ensure_valid(validate_category_name(name))
    row = get_category(db, category_id)
    row.name = normalize_spaces(name)
    commit_or_raise(db)
    db.refresh(row)
    return row


def delete_category(db: Session, category_id: int) -> None:
    row = get_category(db, category_id)
    db.delete(row)
    commit_or_raise(db)
