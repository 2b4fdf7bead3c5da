"""Livro de movimentacoes de equipamentos.

As entradas sao imutaveis: este modulo so cria e le registros. Quem garante
que o equipamento existe e que a transicao e valida e o coordenador em
``inventario.services.lifecycle``.
"""
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from inventario.models.equipment import DEPLOYED, IN_STOCK
from inventario.models.equipment_movement import MOVEMENT_IN, MOVEMENT_OUT, EquipmentMovement
from inventario.services.validation import normalize_optional_text

TARGET_STATUS = {MOVEMENT_OUT: DEPLOYED, MOVEMENT_IN: IN_STOCK}


def append(
    db: Session,
    equipment_id: int,
    movement_type: str,
    user_id: int,
    notes: Optional[str] = None,
) -> EquipmentMovement:
    """Adiciona uma entrada na transacao corrente; o commit fica com o chamador."""
    entry = EquipmentMovement(
        equipment_id=equipment_id,
        type=movement_type,
        user_id=user_id,
        notes=normalize_optional_text(notes),
    )
    db.add(entry)
    db.flush()
    return entry


def list_all(db: Session) -> list[EquipmentMovement]:
    return (
        db.query(EquipmentMovement)
        .order_by(EquipmentMovement.date.desc(), EquipmentMovement.id.desc())
        .all()
    )


def list_for(db: Session, equipment_id: int) -> list[EquipmentMovement]:
    return (
        db.query(EquipmentMovement)
        .filter(EquipmentMovement.equipment_id == equipment_id)
        .order_by(EquipmentMovement.date.desc(), EquipmentMovement.id.desc())
        .all()
    )


def history(db: Session, equipment_id: int) -> list[EquipmentMovement]:
    return (
        db.query(EquipmentMovement)
        .filter(EquipmentMovement.equipment_id == equipment_id)
        .order_by(EquipmentMovement.date.asc(), EquipmentMovement.id.asc())
        .all()
    )


def replay_status(entries: Iterable[EquipmentMovement]) -> Optional[str]:
    """Reaplica as entradas em ordem crescente a partir de IN_STOCK.

    Devolve o status resultante, ou ``None`` se alguma entrada quebrar a
    alternancia (por exemplo, duas saidas seguidas).
    """
    status = IN_STOCK
    for entry in entries:
        target = TARGET_STATUS.get(entry.type)
        if target is None or target == status:
            return None
        status = target
    return status
