from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from inventario.core.auth import get_current_user
from inventario.database.deps import get_db
from inventario.models.user import User
from inventario.schemas.equipment import EquipmentMovementCreate, EquipmentMovementOut
from inventario.services import lifecycle, movement_ledger

router = APIRouter(prefix="/equipment-movements", tags=["Equipment movements"])


@router.get("/", response_model=list[EquipmentMovementOut])
def list_movements(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return movement_ledger.list_all(db)


@router.post("/", response_model=EquipmentMovementOut, status_code=status.HTTP_201_CREATED)
def request_movement(
    payload: EquipmentMovementCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return lifecycle.request_movement(
        db,
        equipment_id=payload.equipment_id,
        movement_type=payload.type,
        user_id=current_user.id,
        notes=payload.notes,
        events=getattr(request.app.state, "equipment_events", None),
    )
