"""Erros de dominio compartilhados entre servicos, rotas e o cliente.

Os servicos levantam estes erros e as rotas os convertem em respostas HTTP
usando ``status_code``. O cliente faz o caminho inverso com ``error_for_status``.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class InventoryError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def as_payload(self) -> dict:
        return {"detail": self.message, "code": self.code, "errors": []}


class ValidationError(InventoryError):
    status_code = 422
    code = "validation"

    def __init__(self, message: str = "Dados invalidos.", errors: Optional[list[FieldError]] = None):
        super().__init__(message)
        self.errors = list(errors or [])

    @classmethod
    def from_errors(cls, errors: list[FieldError]) -> "ValidationError":
        return cls(errors[0].message if errors else "Dados invalidos.", errors)

    def as_payload(self) -> dict:
        return {
            "detail": self.message,
            "code": self.code,
            "errors": [item.as_dict() for item in self.errors],
        }


class NotFoundError(InventoryError):
    status_code = 404
    code = "not_found"


class ConflictError(InventoryError):
    status_code = 409
    code = "conflict"


class SelfProtectionError(ConflictError):
    # Admin agindo sobre o proprio usuario.
    status_code = 400
    code = "self_protection"


class BackendError(InventoryError):
    status_code = 502
    code = "backend"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


def error_for_status(
    status_code: int,
    message: str,
    errors: Optional[list[dict]] = None,
    code: Optional[str] = None,
) -> InventoryError:
    if code == SelfProtectionError.code:
        return SelfProtectionError(message)
    if status_code == 422:
        field_errors = [
            FieldError(field=str(item.get("field") or ""), message=str(item.get("message") or ""))
            for item in errors or []
            if isinstance(item, dict)
        ]
        return ValidationError(message, field_errors)
    if status_code == 404:
        return NotFoundError(message)
    if status_code == 409:
        return ConflictError(message)
    return BackendError(message, status_code=status_code)
