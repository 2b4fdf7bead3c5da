from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from inventario.core.auth import get_current_user
from inventario.database.deps import get_db
from inventario.models.user import User
from inventario.schemas.equipment import (
    EquipmentCreate,
    EquipmentMovementOut,
    EquipmentOut,
    EquipmentUpdate,
)
from inventario.services import equipment_registry, movement_ledger

router = APIRouter(prefix="/equipment", tags=["Equipment"])


@router.get("/", response_model=list[EquipmentOut])
def list_equipment(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    candidates_for: Optional[str] = Query(default=None),
    q: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return equipment_registry.list_equipment(
        db,
        status_filter=status_filter,
        candidates_for=candidates_for,
        q=q,
    )


@router.get("/{equipment_id}", response_model=EquipmentOut)
def read_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = equipment_registry.get_equipment(db, equipment_id)
    return equipment_registry.snapshot(db, row)


@router.get("/{equipment_id}/movements", response_model=list[EquipmentMovementOut])
def list_equipment_movements(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return movement_ledger.list_for(db, equipment_id)


@router.post("/", response_model=EquipmentOut, status_code=status.HTTP_201_CREATED)
def create_equipment(
    payload: EquipmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = equipment_registry.create_equipment(db, payload.model_dump())
    return equipment_registry.snapshot(db, row)


@router.put("/{equipment_id}", response_model=EquipmentOut)
def update_equipment(
    equipment_id: int,
    payload: EquipmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    row = equipment_registry.update_equipment(db, equipment_id, payload.model_dump(exclude_unset=True))
    return equipment_registry.snapshot(db, row)


@router.delete("/{equipment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_equipment(
    equipment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    equipment_registry.delete_equipment(db, equipment_id)
    return None
