import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from inventario.core.errors import BackendError, ConflictError

logger = logging.getLogger(__name__)


def commit_or_raise(db: Session, conflict_message: str = "Registro em conflito com dados existentes.") -> None:
    """Confirma a transacao ou desfaz tudo e levanta o erro de dominio equivalente."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(conflict_message) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Falha ao gravar no banco")
        raise BackendError("Falha ao gravar no banco de dados.") from exc
