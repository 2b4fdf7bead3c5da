import logging
from typing import Any, Mapping

from sqlalchemy.orm import Session

from inventario.core.config import ADMIN_NAME, ADMIN_PASSWORD, ADMIN_USERNAME, email_for_username
from inventario.core.errors import ConflictError, InventoryError, NotFoundError, SelfProtectionError
from inventario.core.security import create_access_token, get_password_hash, verify_password
from inventario.database.transaction import commit_or_raise
from inventario.models.user import ROLE_ADMIN, ROLE_OPERATOR, User
from inventario.services.validation import (
    ensure_valid,
    normalize_spaces,
    validate_login,
    validate_registration,
    validate_user_input,
    validate_user_update,
)

logger = logging.getLogger(__name__)

SELF_DELETE_MESSAGE = "Você não pode excluir seu próprio usuário"
SELF_ROLE_MESSAGE = "Você não pode alterar seu próprio papel"


class AuthenticationError(InventoryError):
    status_code = 401
    code = "authentication"


def ensure_not_self(acting_user_id: int, target_user_id: int, message: str) -> None:
    if int(acting_user_id) == int(target_user_id):
        raise SelfProtectionError(message)


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("Usuário não encontrado")
    return user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.name.asc(), User.id.asc()).all()


def _insert_user(db: Session, username: str, password: str, name: str, role: str) -> User:
    username = username.strip()
    if db.query(User.id).filter(User.username == username).first():
        raise ConflictError("Nome de usuário já cadastrado")
    user = User(
        username=username,
        email=email_for_username(username),
        name=normalize_spaces(name),
        password=get_password_hash(password),
        role=role,
    )
    db.add(user)
    commit_or_raise(db, "Nome de usuário já cadastrado")
    db.refresh(user)
    return user


def create_user(db: Session, username: str, password: str, name: str, role: str) -> User:
    ensure_valid(validate_user_input(username, password, name, role))
    user = _insert_user(db, username, password, name, role)
    logger.info("Usuario %s criado com perfil %s", user.username, user.role)
    return user


def register_user(db: Session, username: str, password: str, name: str, confirm_password=None) -> User:
    # Auto-cadastro sempre gera operador; o perfil devolvido e o mesmo gravado.
    ensure_valid(validate_registration(username, password, name, confirm_password))
    user = _insert_user(db, username, password, name, ROLE_OPERATOR)
    logger.info("Usuario %s registrado", user.username)
    return user


def authenticate(db: Session, username: str, password: str) -> User:
    ensure_valid(validate_login(username, password))
    user = db.query(User).filter(User.username == username.strip()).first()
    if not user:
        raise NotFoundError("Usuário não encontrado")
    if not verify_password(password, user.password):
        raise AuthenticationError("Senha incorreta")
    return user


def issue_token(user: User) -> str:
    return create_access_token({
        "sub": str(user.id),
        "username": user.username,
        "name": user.name,
        "role": user.role,
        "ver": int(user.token_version or 0),
    })


def logout(db: Session, user: User) -> None:
    # Tokens emitidos antes deste ponto deixam de ser aceitos.
    user.token_version = int(user.token_version or 0) + 1
    commit_or_raise(db)


def update_user(db: Session, acting_user: User, user_id: int, data: Mapping[str, Any]) -> User:
    if "role" in data and data["role"] is not None:
        ensure_not_self(acting_user.id, user_id, SELF_ROLE_MESSAGE)
    data = {key: value for key, value in data.items() if value is not None}
    ensure_valid(validate_user_update(data))

    user = get_user(db, user_id)
    if "name" in data:
        user.name = normalize_spaces(data["name"])
    if "role" in data:
        user.role = data["role"]
    commit_or_raise(db)
    db.refresh(user)
    return user


def delete_user(db: Session, acting_user: User, user_id: int) -> None:
    ensure_not_self(acting_user.id, user_id, SELF_DELETE_MESSAGE)
    user = get_user(db, user_id)
    db.delete(user)
    commit_or_raise(db)
    logger.info("Usuario %s excluido por %s", user_id, acting_user.username)


def ensure_admin_user(db: Session) -> None:
    if not ADMIN_USERNAME or not ADMIN_PASSWORD:
        return
    existing = db.query(User).filter(User.username == ADMIN_USERNAME).first()
    if existing:
        updated = False
        if ADMIN_NAME and existing.name != ADMIN_NAME:
            existing.name = ADMIN_NAME
            updated = True
        if existing.role != ROLE_ADMIN:
            existing.role = ROLE_ADMIN
            updated = True
        if updated:
            db.commit()
        return
    db.add(
        User(
            username=ADMIN_USERNAME,
            email=email_for_username(ADMIN_USERNAME),
            name=ADMIN_NAME,
            password=get_password_hash(ADMIN_PASSWORD),
            role=ROLE_ADMIN,
        )
    )
    db.commit()
