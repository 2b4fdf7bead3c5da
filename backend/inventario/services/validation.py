"""Validacao de formularios compartilhada entre a API e o cliente.

Cada ``validate_*`` devolve uma lista de ``FieldError`` (vazia quando a
entrada e valida); ``ensure_valid`` transforma a lista em ``ValidationError``.
"""
import re
from typing import Any, Mapping, Optional

from inventario.core.errors import FieldError, ValidationError

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
VALID_ROLES = {"ADMIN", "OPERATOR"}
MOVEMENT_TYPES = {"IN", "OUT"}
EQUIPMENT_REQUIRED_FIELDS = (
    ("mac_address", "MAC Address é obrigatório"),
    ("gpon_sn", "GPON SN é obrigatório"),
    ("customer", "Cliente é obrigatório"),
)


def normalize_spaces(value: Any) -> str:
    return re.sub(r"\s+", " ", str(value or "").strip())


def normalize_optional_text(value: Optional[str]) -> Optional[str]:
    text = normalize_spaces(value or "")
    return text or None


def normalize_movement_type(value: Any) -> str:
    return normalize_spaces(value).upper()


def ensure_valid(errors: list[FieldError]) -> None:
    if errors:
        raise ValidationError.from_errors(errors)


def validate_username(username: Any) -> list[FieldError]:
    text = str(username or "").strip()
    if len(text) < 3:
        return [FieldError("username", "Nome de usuário deve ter pelo menos 3 caracteres")]
    if not USERNAME_PATTERN.match(text):
        return [FieldError("username", "Nome de usuário pode conter apenas letras, números e underscores")]
    return []


def validate_password(password: Any) -> list[FieldError]:
    if len(str(password or "")) < 6:
        return [FieldError("password", "Senha deve ter pelo menos 6 caracteres")]
    return []


def validate_name(name: Any) -> list[FieldError]:
    if len(normalize_spaces(name)) < 2:
        return [FieldError("name", "Nome deve ter pelo menos 2 caracteres")]
    return []


def validate_role(role: Any) -> list[FieldError]:
    if str(role or "") not in VALID_ROLES:
        return [FieldError("role", "Perfil inválido")]
    return []


def validate_user_input(username: Any, password: Any, name: Any, role: Any) -> list[FieldError]:
    return (
        validate_username(username)
        + validate_password(password)
        + validate_name(name)
        + validate_role(role)
    )


def validate_registration(
    username: Any,
    password: Any,
    name: Any,
    confirm_password: Optional[str] = None,
) -> list[FieldError]:
    errors = validate_username(username) + validate_password(password) + validate_name(name)
    if confirm_password is not None and confirm_password != password:
        errors.append(FieldError("confirm_password", "As senhas não conferem"))
    return errors


def validate_login(username: Any, password: Any) -> list[FieldError]:
    return validate_username(username) + validate_password(password)


def validate_user_update(data: Mapping[str, Any]) -> list[FieldError]:
    errors: list[FieldError] = []
    if "name" in data:
        errors += validate_name(data["name"])
    if "role" in data:
        errors += validate_role(data["role"])
    return errors


def validate_product_input(data: Mapping[str, Any], *, partial: bool = False) -> list[FieldError]:
    errors: list[FieldError] = []
    if not partial or "name" in data:
        if not normalize_spaces(data.get("name")):
            errors.append(FieldError("name", "Nome é obrigatório"))
    if not partial or "description" in data:
        if not normalize_spaces(data.get("description")):
            errors.append(FieldError("description", "Descrição é obrigatória"))
    if not partial or "quantity" in data:
        quantity = data.get("quantity")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 0:
            errors.append(FieldError("quantity", "Quantidade deve ser 0 ou maior"))
    if not partial or "category" in data:
        if not normalize_spaces(data.get("category")):
            errors.append(FieldError("category", "Categoria é obrigatória"))
    return errors


def validate_category_name(name: Any) -> list[FieldError]:
    if not normalize_spaces(name):
        return [FieldError("name", "Nome da categoria é obrigatório")]
    return []


def validate_equipment_input(data: Mapping[str, Any], *, partial: bool = False) -> list[FieldError]:
    errors: list[FieldError] = []
    if not partial or "product_id" in data:
        if not data.get("product_id"):
            errors.append(FieldError("product_id", "Produto é obrigatório"))
    for field_name, message in EQUIPMENT_REQUIRED_FIELDS:
        if partial and field_name not in data:
            continue
        if not normalize_spaces(data.get(field_name)):
            errors.append(FieldError(field_name, message))
    return errors


STATUS_EDIT_MESSAGE = "O status so pode ser alterado por uma movimentação."


def validate_equipment_edit(data: Mapping[str, Any]) -> list[FieldError]:
    errors: list[FieldError] = []
    if data.get("status") is not None:
        errors.append(FieldError("status", STATUS_EDIT_MESSAGE))
    return errors + validate_equipment_input(
        {key: value for key, value in data.items() if key != "status"},
        partial=True,
    )


def validate_movement_type(value: Any) -> list[FieldError]:
    if normalize_movement_type(value) not in MOVEMENT_TYPES:
        return [FieldError("type", "Tipo de movimentação inválido")]
    return []


def validate_equipment_movement(equipment_id: Any, movement_type: Any) -> list[FieldError]:
    errors: list[FieldError] = []
    if not equipment_id:
        errors.append(FieldError("equipment_id", "Por favor, selecione um equipamento"))
    return errors + validate_movement_type(movement_type)


def validate_stock_movement(product_id: Any, movement_type: Any, quantity: Any) -> list[FieldError]:
    errors: list[FieldError] = []
    if not product_id:
        errors.append(FieldError("product_id", "Por favor, selecione um produto"))
    errors += validate_movement_type(movement_type)
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        errors.append(FieldError("quantity", "Informe uma quantidade válida"))
    return errors
