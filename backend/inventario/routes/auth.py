from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from inventario.core.auth import get_current_user
from inventario.database.deps import get_db
from inventario.models.user import User
from inventario.schemas.token import Token
from inventario.schemas.user import UserLogin, UserOut, UserRegister
from inventario.services import accounts

router = APIRouter(prefix="/auth", tags=["Auth"])


def _token_for(user: User) -> Token:
    return Token(access_token=accounts.issue_token(user), user=UserOut.model_validate(user))


@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, db: Session = Depends(get_db)):
    user = accounts.register_user(
        db,
        username=payload.username,
        password=payload.password,
        name=payload.name,
        confirm_password=payload.confirm_password,
    )
    return _token_for(user)


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = accounts.authenticate(db, credentials.username, credentials.password)
    return _token_for(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    accounts.logout(db, current_user)
    return None


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
