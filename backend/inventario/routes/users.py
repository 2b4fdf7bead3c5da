from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from inventario.core.auth import get_current_admin
from inventario.database.deps import get_db
from inventario.models.user import User
from inventario.schemas.user import UserCreate, UserOut, UserUpdate
from inventario.services import accounts

router = APIRouter(prefix='/users', tags=['Users'])


@router.get('/', response_model=list[UserOut])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    return accounts.list_users(db)


@router.post('/', response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    return accounts.create_user(db, payload.username, payload.password, payload.name, payload.role)


@router.put('/{user_id}', response_model=UserOut)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    return accounts.update_user(db, current_user, user_id, payload.model_dump(exclude_unset=True))


@router.delete('/{user_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_admin),
):
    accounts.delete_user(db, current_user, user_id)
    return None
