from inventario.models.category import Category  # noqa: F401
from inventario.models.equipment import Equipment  # noqa: F401
from inventario.models.equipment_movement import EquipmentMovement  # noqa: F401
from inventario.models.movement import Movement  # noqa: F401
from inventario.models.product import Product  # noqa: F401
from inventario.models.user import User  # noqa: F401
