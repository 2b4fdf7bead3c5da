import os
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest

TEST_DB_FILE = Path(tempfile.gettempdir()) / f"test_inventario_{uuid4().hex}.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_FILE.as_posix()}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
os.environ.setdefault("DB_BOOTSTRAP_MODE", "off")

from fastapi.testclient import TestClient  # noqa: E402

from inventario.client.api import ApiClient  # noqa: E402
from inventario.core.security import get_password_hash  # noqa: E402
from inventario.database.base import Base  # noqa: E402
from inventario.database.session import SessionLocal, engine  # noqa: E402
from inventario.main import app  # noqa: E402
from inventario.models.product import Product  # noqa: E402
from inventario.models.user import User  # noqa: E402

DEFAULT_PASSWORD = "Senha@123"


@pytest.fixture(autouse=True)
def reset_database():
    engine.dispose()
    if TEST_DB_FILE.exists():
        TEST_DB_FILE.unlink()
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        if TEST_DB_FILE.exists():
            TEST_DB_FILE.unlink()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_user(db, username: str, role: str = "OPERATOR", name: str = "") -> User:
    user = User(
        username=username,
        email=f"{username}@test.local",
        name=name or username.title(),
        password=get_password_hash(DEFAULT_PASSWORD),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_product(db, **overrides) -> Product:
    values = {
        "name": "ONU GPON",
        "description": "Terminal optico",
        "quantity": 10,
        "category": "Rede",
        "brand": "Huawei",
        "model": "HG8245",
    }
    values.update(overrides)
    product = Product(**values)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def equipment_payload(product_id: int, suffix: str = "01", **overrides) -> dict:
    payload = {
        "product_id": product_id,
        "mac_address": f"aa:bb:cc:dd:ee:{suffix}",
        "gpon_sn": f"HWTC00{suffix}",
        "customer": "Cliente Teste",
        "description": "Instalacao residencial",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def admin_user(db_session) -> User:
    return create_user(db_session, "admin_teste", role="ADMIN", name="Admin Teste")


@pytest.fixture
def operator_user(db_session) -> User:
    return create_user(db_session, "operador", role="OPERATOR", name="Operador Teste")


@pytest.fixture
def product(db_session) -> Product:
    return create_product(db_session)


@pytest.fixture
def http_client():
    return TestClient(app)


class RecordingSession:
    """Repassa as chamadas ao cliente real e guarda quais foram feitas."""

    def __init__(self, inner):
        self.inner = inner
        self.calls: list[tuple[str, str]] = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url))
        return self.inner.request(method, url, **kwargs)


@pytest.fixture
def recorder(http_client) -> RecordingSession:
    return RecordingSession(http_client)


@pytest.fixture
def api(recorder) -> ApiClient:
    return ApiClient(base_url="http://testserver", session=recorder)


def auth_headers(client, username: str, password: str = DEFAULT_PASSWORD) -> dict[str, str]:
    response = client.post("/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
