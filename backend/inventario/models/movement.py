from sqlalchemy import Column, DateTime, Integer, String, func

from inventario.database.base import Base


class Movement(Base):
    __tablename__ = "movements"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    type = Column(String(3), nullable=False)
    quantity = Column(Integer, nullable=False)
    date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
