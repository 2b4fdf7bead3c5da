from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from inventario.core.config import DATABASE_ECHO, DATABASE_URL

if not DATABASE_URL:
    raise RuntimeError("DATABASE_URL nao configurada. Defina a variavel de ambiente antes de iniciar a API.")


def engine_options(url: str) -> dict:
    options = {"pool_pre_ping": True, "echo": DATABASE_ECHO}
    if url.startswith("sqlite"):
        # O TestClient e o uvicorn usam a conexao fora da thread que a criou.
        options["connect_args"] = {"check_same_thread": False}
    return options


engine = create_engine(DATABASE_URL, **engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
