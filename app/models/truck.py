from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..db import Base


class Truck(Base):
    __tablename__ = "trucks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), nullable=False, index=True)

    truck_number = Column(String(20), nullable=False)
    model = Column(String(120), nullable=True)
    capacity = Column(Numeric(10, 2), nullable=True)     # тонны
    status = Column(String(30), nullable=False, default="available")
    driver_id = Column(String(64), nullable=True)

    created_at = Column(DateTime, server_default=func.now())

    earnings = relationship("TruckEarning", back_populates="truck", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "truck_number": self.truck_number,
            "model": self.model,
            "capacity": float(self.capacity) if self.capacity is not None else None,
            "status": self.status,
            "driver_id": self.driver_id,
        }


class TruckEarning(Base):
    __tablename__ = "truck_earnings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    truck_id = Column(Integer, ForeignKey("trucks.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime, server_default=func.now())

    truck = relationship("Truck", back_populates="earnings")
