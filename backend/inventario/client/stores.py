"""Containers de estado do cliente, um por entidade.

Cada operacao liga ``loading``, limpa ``error``, valida a entrada localmente
(sem chamada de rede quando invalida), chama a API e so entao atualiza o
cache. Em caso de falha a mensagem fica em ``error`` e o erro tipado e
propagado para a camada de apresentacao.
"""
from contextlib import contextmanager
from typing import Any, Optional

from inventario.client.api import ApiClient
from inventario.core.errors import ConflictError, InventoryError
from inventario.schemas.equipment import EquipmentMovementOut, EquipmentOut
from inventario.schemas.movement import MovementOut
from inventario.schemas.product import CategoryOut, ProductOut
from inventario.schemas.user import UserOut
from inventario.services.accounts import SELF_DELETE_MESSAGE, SELF_ROLE_MESSAGE, ensure_not_self
from inventario.services.equipment_registry import CANDIDATE_STATUS
from inventario.services.lifecycle import CONFLICT_MESSAGES, TRANSITIONS
from inventario.services.validation import (
    ensure_valid,
    normalize_movement_type,
    validate_category_name,
    validate_equipment_edit,
    validate_equipment_input,
    validate_equipment_movement,
    validate_login,
    validate_product_input,
    validate_registration,
    validate_stock_movement,
    validate_user_input,
    validate_user_update,
)


class Store:
    def __init__(self, api: ApiClient):
        self.api = api
        self.loading = False
        self.error: Optional[str] = None

    @contextmanager
    def _operation(self):
        self.loading = True
        self.error = None
        try:
            yield
        except InventoryError as exc:
            self.error = exc.message
            raise
        finally:
            self.loading = False


class AuthStore(Store):
    def __init__(self, api: ApiClient):
        super().__init__(api)
        self.user: Optional[UserOut] = None
        self.users: list[UserOut] = []

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None and bool(self.api.token)

    def _start_session(self, payload: dict) -> UserOut:
        self.api.token = payload["access_token"]
        self.user = UserOut.model_validate(payload["user"])
        return self.user

    def register(self, username: str, password: str, name: str, confirm_password: Optional[str] = None) -> UserOut:
        with self._operation():
            ensure_valid(validate_registration(username, password, name, confirm_password))
            payload = self.api.post(
                "/auth/register",
                json={"username": username, "password": password, "name": name},
            )
            return self._start_session(payload)

    def login(self, username: str, password: str) -> UserOut:
        with self._operation():
            ensure_valid(validate_login(username, password))
            payload = self.api.post("/auth/login", json={"username": username, "password": password})
            return self._start_session(payload)

    def logout(self) -> None:
        with self._operation():
            if self.api.token:
                self.api.post("/auth/logout")
            self.api.token = None
            self.user = None
            self.users = []

    def fetch_users(self) -> list[UserOut]:
        with self._operation():
            rows = self.api.get("/users/")
            self.users = [UserOut.model_validate(row) for row in rows]
            return self.users

    def create_user(self, username: str, password: str, name: str, role: str) -> UserOut:
        with self._operation():
            ensure_valid(validate_user_input(username, password, name, role))
            row = self.api.post(
                "/users/",
                json={"username": username, "password": password, "name": name, "role": role},
            )
        self.fetch_users()
        return UserOut.model_validate(row)

    def update_user(self, user_id: int, data: dict[str, Any]) -> UserOut:
        with self._operation():
            if self.user and data.get("role") is not None:
                ensure_not_self(self.user.id, user_id, SELF_ROLE_MESSAGE)
            ensure_valid(validate_user_update({k: v for k, v in data.items() if v is not None}))
            row = self.api.put(f"/users/{user_id}", json=data)
        self.fetch_users()
        return UserOut.model_validate(row)

    def delete_user(self, user_id: int) -> None:
        with self._operation():
            if self.user:
                ensure_not_self(self.user.id, user_id, SELF_DELETE_MESSAGE)
            self.api.delete(f"/users/{user_id}")
        self.fetch_users()


class ProductsStore(Store):
    def __init__(self, api: ApiClient):
        super().__init__(api)
        self.products: list[ProductOut] = []

    def find(self, product_id: int) -> Optional[ProductOut]:
        return next((item for item in self.products if item.id == product_id), None)

    def fetch_products(self) -> list[ProductOut]:
        with self._operation():
            rows = self.api.get("/products/")
            self.products = [ProductOut.model_validate(row) for row in rows]
            return self.products

    def add_product(self, data: dict[str, Any]) -> ProductOut:
        with self._operation():
            ensure_valid(validate_product_input(data))
            product = ProductOut.model_validate(self.api.post("/products/", json=data))
            self.products = sorted([*self.products, product], key=lambda item: (item.name, item.id))
            return product

    def update_product(self, product_id: int, data: dict[str, Any]) -> ProductOut:
        with self._operation():
            ensure_valid(validate_product_input(data, partial=True))
            product = ProductOut.model_validate(self.api.put(f"/products/{product_id}", json=data))
            self.products = [product if item.id == product_id else item for item in self.products]
            return product

    def delete_product(self, product_id: int) -> None:
        with self._operation():
            self.api.delete(f"/products/{product_id}")
            self.products = [item for item in self.products if item.id != product_id]


class CategoriesStore(Store):
    def __init__(self, api: ApiClient):
        super().__init__(api)
        self.categories: list[CategoryOut] = []

    def fetch_categories(self, q: Optional[str] = None) -> list[CategoryOut]:
        with self._operation():
            rows = self.api.get("/categories/", params={"q": q} if q else None)
            self.categories = [CategoryOut.model_validate(row) for row in rows]
            return self.categories

    def add_category(self, name: str) -> CategoryOut:
        with self._operation():
            ensure_valid(validate_category_name(name))
            category = CategoryOut.model_validate(self.api.post("/categories/", json={"name": name}))
            self.categories = [*self.categories, category]
            return category

    def update_category(self, category_id: int, name: str) -> CategoryOut:
        with self._operation():
            ensure_valid(validate_category_name(name))
            category = CategoryOut.model_validate(
                self.api.put(f"/categories/{category_id}", json={"name": name})
            )
            self.categories = [category if item.id == category_id else item for item in self.categories]
            return category

    def delete_category(self, category_id: int) -> None:
        with self._operation():
            self.api.delete(f"/categories/{category_id}")
            self.categories = [item for item in self.categories if item.id != category_id]


class MovementsStore(Store):
    def __init__(self, api: ApiClient, products: Optional[ProductsStore] = None):
        super().__init__(api)
        self.products = products
        self.movements: list[MovementOut] = []

    def fetch_movements(self) -> list[MovementOut]:
        with self._operation():
            rows = self.api.get("/movements/")
            self.movements = [MovementOut.model_validate(row) for row in rows]
            return self.movements

    def add_movement(self, product_id: int, movement_type: str, quantity: int) -> MovementOut:
        with self._operation():
            ensure_valid(validate_stock_movement(product_id, movement_type, quantity))
            movement_type = normalize_movement_type(movement_type)
            cached = self.products.find(product_id) if self.products else None
            if cached and movement_type == "OUT" and quantity > cached.quantity:
                raise ConflictError("Estoque insuficiente")
            movement = MovementOut.model_validate(
                self.api.post(
                    "/movements/",
                    json={"product_id": product_id, "type": movement_type, "quantity": quantity},
                )
            )
            self.movements = [movement, *self.movements]
        if self.products is not None:
            self.products.fetch_products()
        return movement


class EquipmentStore(Store):
    def __init__(self, api: ApiClient):
        super().__init__(api)
        self.equipment: list[EquipmentOut] = []
        self.movements: list[EquipmentMovementOut] = []

    def find(self, equipment_id: int) -> Optional[EquipmentOut]:
        return next((item for item in self.equipment if item.id == equipment_id), None)

    def candidates(self, movement_type: str) -> list[EquipmentOut]:
        status = CANDIDATE_STATUS.get(normalize_movement_type(movement_type))
        return [item for item in self.equipment if item.status == status]

    def movements_for(self, equipment_id: int) -> list[EquipmentMovementOut]:
        return [item for item in self.movements if item.equipment_id == equipment_id]

    def fetch_equipment(self, q: Optional[str] = None) -> list[EquipmentOut]:
        with self._operation():
            rows = self.api.get("/equipment/", params={"q": q} if q else None)
            self.equipment = [EquipmentOut.model_validate(row) for row in rows]
            return self.equipment

    def fetch_movements(self) -> list[EquipmentMovementOut]:
        with self._operation():
            rows = self.api.get("/equipment-movements/")
            self.movements = [EquipmentMovementOut.model_validate(row) for row in rows]
            return self.movements

    def add_equipment(self, data: dict[str, Any]) -> EquipmentOut:
        with self._operation():
            ensure_valid(validate_equipment_input(data))
            payload = {key: value for key, value in data.items() if key != "status"}
            item = EquipmentOut.model_validate(self.api.post("/equipment/", json=payload))
            self.equipment = [item, *self.equipment]
            return item

    def update_equipment(self, equipment_id: int, data: dict[str, Any]) -> EquipmentOut:
        with self._operation():
            ensure_valid(validate_equipment_edit(data))
            item = EquipmentOut.model_validate(self.api.put(f"/equipment/{equipment_id}", json=data))
            self.equipment = [item if row.id == equipment_id else row for row in self.equipment]
            return item

    def delete_equipment(self, equipment_id: int) -> None:
        with self._operation():
            self.api.delete(f"/equipment/{equipment_id}")
            self.equipment = [row for row in self.equipment if row.id != equipment_id]

    def add_movement(self, equipment_id: int, movement_type: str, notes: Optional[str] = None) -> EquipmentMovementOut:
        with self._operation():
            ensure_valid(validate_equipment_movement(equipment_id, movement_type))
            movement_type = normalize_movement_type(movement_type)
            cached = self.find(equipment_id)
            expected_status = TRANSITIONS[movement_type][0]
            if cached and cached.status != expected_status:
                raise ConflictError(CONFLICT_MESSAGES[cached.status])
            movement = EquipmentMovementOut.model_validate(
                self.api.post(
                    "/equipment-movements/",
                    json={"equipment_id": equipment_id, "type": movement_type, "notes": notes},
                )
            )
            self.movements = [movement, *self.movements]
        self.fetch_equipment()
        return movement
