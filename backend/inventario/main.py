import logging
import os
import threading

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from inventario.core.config import CORS_ORIGINS, CORS_ORIGIN_REGEX, parse_cors_origins
from inventario.core.errors import InventoryError
from inventario.database.base import Base
from inventario.database.session import engine, SessionLocal
from inventario import models  # noqa: F401
from inventario.routes import (
    auth,
    categories,
    equipment_movements,
    equipments,
    movements,
    products,
    reports,
    users,
)
from inventario.schemas.equipment import EquipmentOut
from inventario.services.accounts import ensure_admin_user
from inventario.services.equipment_registry import EquipmentEvents

logger = logging.getLogger("uvicorn.error")
app = FastAPI(title="Controle de Estoque")

cors_origins = parse_cors_origins(CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.middleware("http")
async def ensure_utf8_json_charset(request: Request, call_next):
    response = await call_next(request)
    content_type = str(response.headers.get("content-type", ""))
    if content_type.startswith("application/json") and "charset=" not in content_type.lower():
        response.headers["content-type"] = "application/json; charset=utf-8"
    return response


@app.exception_handler(InventoryError)
async def handle_inventory_error(request: Request, exc: InventoryError):
    return JSONResponse(status_code=exc.status_code, content=exc.as_payload())


def log_equipment_snapshot(snapshot: EquipmentOut) -> None:
    logger.info("Equipamento %s agora %s", snapshot.id, snapshot.status)


app.state.equipment_events = EquipmentEvents()
app.state.equipment_events.subscribe(log_equipment_snapshot)


def bootstrap_admin_user():
    db = SessionLocal()
    try:
        ensure_admin_user(db)
    finally:
        db.close()


def run_db_bootstrap() -> None:
    steps = [
        ("create_all", lambda: Base.metadata.create_all(bind=engine)),
        ("ensure_admin_user", bootstrap_admin_user),
    ]
    for step_name, step_fn in steps:
        try:
            step_fn()
        except Exception:  # pragma: no cover - startup hardening
            logger.exception("Falha ao executar bootstrap do banco (etapa: %s)", step_name)


_bootstrap_lock = threading.Lock()
_bootstrap_started = False


def trigger_db_bootstrap() -> None:
    global _bootstrap_started
    with _bootstrap_lock:
        if _bootstrap_started:
            return
        _bootstrap_started = True

    mode = str(os.getenv("DB_BOOTSTRAP_MODE", "background") or "background").strip().lower()
    if mode == "off":
        logger.info("DB bootstrap desativado (DB_BOOTSTRAP_MODE=off).")
        return
    if mode == "sync":
        logger.info("Executando DB bootstrap em modo sincronizado.")
        run_db_bootstrap()
        return

    logger.info("Executando DB bootstrap em background.")
    threading.Thread(target=run_db_bootstrap, daemon=True, name="db-bootstrap").start()


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(products.router)
app.include_router(categories.router)
app.include_router(movements.router)
app.include_router(equipments.router)
app.include_router(equipment_movements.router)
app.include_router(reports.router)

@app.get("/")
def root():
    return {"message": "API rodando corretamente!"}


@app.get("/health")
def healthcheck():
    return {"status": "ok"}


@app.get("/health/db")
def healthcheck_db():
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    return {"status": "ok"}


@app.on_event("startup")
def startup_event():
    trigger_db_bootstrap()
