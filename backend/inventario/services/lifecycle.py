"""Coordenador do ciclo de vida dos equipamentos.

Estados: IN_STOCK e DEPLOYED. Uma saida (OUT) leva IN_STOCK -> DEPLOYED e
uma entrada (IN) leva DEPLOYED -> IN_STOCK; nao existem auto-transicoes.

A troca de status e a gravacao no livro acontecem na mesma transacao. A
troca e um UPDATE condicional (``WHERE status = <origem>``): se outro
operador movimentou o equipamento depois da nossa leitura, nenhuma linha e
afetada e a requisicao e recusada com ``ConflictError`` sem gravar nada.
"""
import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventario.core.errors import BackendError, ConflictError, NotFoundError
from inventario.models.equipment import DEPLOYED, IN_STOCK, Equipment
from inventario.models.equipment_movement import MOVEMENT_IN, MOVEMENT_OUT, EquipmentMovement
from inventario.services import movement_ledger
from inventario.services.equipment_registry import EquipmentEvents, get_equipment, snapshot
from inventario.services.validation import (
    ensure_valid,
    normalize_movement_type,
    validate_equipment_movement,
)

logger = logging.getLogger(__name__)

TRANSITIONS = {
    MOVEMENT_OUT: (IN_STOCK, DEPLOYED),
    MOVEMENT_IN: (DEPLOYED, IN_STOCK),
}
CONFLICT_MESSAGES = {
    DEPLOYED: "Este equipamento já está implantado",
    IN_STOCK: "Este equipamento já está em estoque",
}


def _conflict_for(status: str) -> ConflictError:
    return ConflictError(CONFLICT_MESSAGES.get(status, "Movimentação incompatível com o status atual."))


def request_movement(
    db: Session,
    equipment_id: int,
    movement_type: str,
    user_id: int,
    notes: Optional[str] = None,
    events: Optional[EquipmentEvents] = None,
) -> EquipmentMovement:
    ensure_valid(validate_equipment_movement(equipment_id, movement_type))
    movement_type = normalize_movement_type(movement_type)
    expected_status, target_status = TRANSITIONS[movement_type]

    equipment = get_equipment(db, equipment_id)
    if equipment.status != expected_status:
        logger.warning(
            "Movimentacao %s recusada: equipamento %s esta %s",
            movement_type,
            equipment_id,
            equipment.status,
        )
        raise _conflict_for(equipment.status)

    try:
        updated = (
            db.query(Equipment)
            .filter(Equipment.id == equipment_id, Equipment.status == expected_status)
            .update(
                {Equipment.status: target_status, Equipment.updated_at: func.now()},
                synchronize_session=False,
            )
        )
        if updated != 1:
            # Leitura anterior estava desatualizada: outro escritor venceu.
            db.rollback()
            current = db.query(Equipment).filter(Equipment.id == equipment_id).first()
            if not current:
                raise NotFoundError("Equipamento nao encontrado.")
            logger.warning(
                "Movimentacao %s recusada por concorrencia no equipamento %s",
                movement_type,
                equipment_id,
            )
            raise _conflict_for(current.status)

        entry = movement_ledger.append(db, equipment_id, movement_type, user_id, notes)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Falha ao registrar movimentacao do equipamento %s", equipment_id)
        raise BackendError("Falha ao registrar a movimentação.") from exc

    db.refresh(entry)
    logger.info(
        "Equipamento %s: %s -> %s (usuario %s)",
        equipment_id,
        expected_status,
        target_status,
        user_id,
    )
    current = db.query(Equipment).filter(Equipment.id == equipment_id).first()
    if current is None:
        # Excluido logo apos o commit; a movimentacao continua registrada.
        logger.warning("Equipamento %s removido antes da notificacao", equipment_id)
        return entry
    if events is not None:
        events.publish(snapshot(db, current))
    return entry
