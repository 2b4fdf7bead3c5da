import logging
from typing import Any, Callable, Mapping, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from inventario.core.errors import FieldError, NotFoundError, ValidationError
from inventario.database.transaction import commit_or_raise
from inventario.models.equipment import DEPLOYED, IN_STOCK, Equipment
from inventario.models.equipment_movement import MOVEMENT_IN, MOVEMENT_OUT
from inventario.models.product import Product
from inventario.schemas.equipment import EquipmentOut
from inventario.services.catalog import get_product, products_by_id
from inventario.services.validation import (
    ensure_valid,
    normalize_movement_type,
    normalize_optional_text,
    normalize_spaces,
    validate_equipment_edit,
    validate_equipment_input,
)

logger = logging.getLogger(__name__)

PRODUCT_NOT_FOUND_LABEL = "Produto não encontrado"
VALID_STATUSES = {IN_STOCK, DEPLOYED}
# Politica de selecao: so faz sentido movimentar equipamentos no estado de origem.
CANDIDATE_STATUS = {MOVEMENT_OUT: IN_STOCK, MOVEMENT_IN: DEPLOYED}
EDITABLE_TEXT_FIELDS = ("mac_address", "gpon_sn", "customer")

EquipmentListener = Callable[[EquipmentOut], None]


class EquipmentEvents:
    """Assinantes interessados no estado atualizado de um equipamento."""

    def __init__(self):
        self._listeners: list[EquipmentListener] = []

    def subscribe(self, listener: EquipmentListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, snapshot: EquipmentOut) -> None:
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Falha ao notificar assinante do equipamento %s", snapshot.id)


def build_equipment_out(item: Equipment, product: Optional[Product]) -> EquipmentOut:
    return EquipmentOut(
        id=item.id,
        product_id=item.product_id,
        product_name=product.name if product else PRODUCT_NOT_FOUND_LABEL,
        mac_address=item.mac_address,
        gpon_sn=item.gpon_sn,
        customer=item.customer,
        description=item.description,
        status=item.status,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def snapshot(db: Session, item: Equipment) -> EquipmentOut:
    products = products_by_id(db, [item.product_id])
    return build_equipment_out(item, products.get(item.product_id))


def normalize_status(value: str) -> str:
    normalized = normalize_spaces(value).upper()
    if normalized in VALID_STATUSES:
        return normalized
    raise ValidationError("Status inválido.", [FieldError("status", "Status inválido.")])


def candidate_status_for(movement_type: str) -> str:
    normalized = normalize_movement_type(movement_type)
    if normalized not in CANDIDATE_STATUS:
        raise ValidationError(
            "Tipo de movimentação inválido",
            [FieldError("type", "Tipo de movimentação inválido")],
        )
    return CANDIDATE_STATUS[normalized]


def get_equipment(db: Session, equipment_id: int) -> Equipment:
    row = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if not row:
        raise NotFoundError("Equipamento nao encontrado.")
    return row


def list_equipment(
    db: Session,
    status_filter: Optional[str] = None,
    candidates_for: Optional[str] = None,
    q: Optional[str] = None,
) -> list[EquipmentOut]:
    query = db.query(Equipment)
    if status_filter:
        query = query.filter(Equipment.status == normalize_status(status_filter))
    if candidates_for:
        query = query.filter(Equipment.status == candidate_status_for(candidates_for))
    if q and normalize_spaces(q):
        search = f"%{normalize_spaces(q)}%"
        query = query.outerjoin(Product, Product.id == Equipment.product_id).filter(
            or_(
                Equipment.mac_address.ilike(search),
                Equipment.gpon_sn.ilike(search),
                Equipment.customer.ilike(search),
                Equipment.description.ilike(search),
                Product.name.ilike(search),
            )
        )

    rows = query.order_by(Equipment.created_at.desc(), Equipment.id.desc()).all()
    products = products_by_id(db, [row.product_id for row in rows])
    return [build_equipment_out(row, products.get(row.product_id)) for row in rows]


def create_equipment(db: Session, data: Mapping[str, Any]) -> Equipment:
    ensure_valid(validate_equipment_input(data))
    get_product(db, int(data["product_id"]))

    row = Equipment(
        product_id=int(data["product_id"]),
        mac_address=normalize_spaces(data["mac_address"]).upper(),
        gpon_sn=normalize_spaces(data["gpon_sn"]).upper(),
        customer=normalize_spaces(data["customer"]),
        description=normalize_optional_text(data.get("description")),
        # Qualquer status enviado pelo chamador e ignorado.
        status=IN_STOCK,
    )
    db.add(row)
    commit_or_raise(db)
    db.refresh(row)
    logger.info("Equipamento %s cadastrado (MAC %s)", row.id, row.mac_address)
    return row


def update_equipment(db: Session, equipment_id: int, data: Mapping[str, Any]) -> Equipment:
    ensure_valid(validate_equipment_edit(data))
    data = {key: value for key, value in data.items() if key != "status"}

    row = get_equipment(db, equipment_id)
    if not data:
        return row

    if "product_id" in data and int(data["product_id"]) != row.product_id:
        get_product(db, int(data["product_id"]))
        row.product_id = int(data["product_id"])
    for key in EDITABLE_TEXT_FIELDS:
        if key in data:
            value = normalize_spaces(data[key])
            setattr(row, key, value if key == "customer" else value.upper())
    if "description" in data:
        row.description = normalize_optional_text(data["description"])

    commit_or_raise(db)
    db.refresh(row)
    return row


def delete_equipment(db: Session, equipment_id: int) -> None:
    # O historico de movimentacoes nao e removido.
    row = get_equipment(db, equipment_id)
    db.delete(row)
    commit_or_raise(db)
    logger.info("Equipamento %s excluido", equipment_id)
