from sqlalchemy import Column, DateTime, Index, Integer, String, Text, func

from inventario.database.base import Base

IN_STOCK = "IN_STOCK"
DEPLOYED = "DEPLOYED"


class Equipment(Base):
    __tablename__ = "equipment"
    __table_args__ = (
        Index("ix_equipment_product_status", "product_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    # Sem FK: produtos podem ser excluidos sem afetar o equipamento.
    product_id = Column(Integer, nullable=False, index=True)
    mac_address = Column(String(64), nullable=False, index=True)
    gpon_sn = Column(String(64), nullable=False, index=True)
    customer = Column(String(180), nullable=False, index=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=IN_STOCK, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
