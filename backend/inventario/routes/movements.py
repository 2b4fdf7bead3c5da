from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from inventario.core.auth import get_current_user
from inventario.database.deps import get_db
from inventario.models.user import User
from inventario.schemas.movement import MovementCreate, MovementOut
from inventario.services import stock

router = APIRouter(prefix="/movements", tags=["Movements"])


@router.get("/", response_model=list[MovementOut])
def list_movements(
    product_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return stock.list_movements(db, product_id=product_id)


@router.post("/", response_model=MovementOut, status_code=status.HTTP_201_CREATED)
def create_movement(
    payload: MovementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return stock.append_movement(
        db,
        product_id=payload.product_id,
        movement_type=payload.type,
        quantity=payload.quantity,
        user_id=current_user.id,
    )
