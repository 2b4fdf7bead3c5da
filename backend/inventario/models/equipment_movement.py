from sqlalchemy import Column, DateTime, Integer, String, Text, func

from inventario.database.base import Base

MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"


class EquipmentMovement(Base):
    __tablename__ = "equipment_movements"

    id = Column(Integer, primary_key=True, index=True)
    # Sem FK: o historico sobrevive a exclusao do equipamento.
    equipment_id = Column(Integer, nullable=False, index=True)
    type = Column(String(3), nullable=False)
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    notes = Column(Text, nullable=True)
