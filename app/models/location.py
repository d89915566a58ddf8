from sqlalchemy import Column, Integer, String, DateTime, Float
from ..db import Base


class DriverLocation(Base):
    """Последняя известная точка водителя. Одна строка на водителя, без истории."""
    __tablename__ = "driver_locations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    driver_id = Column(String(64), unique=True, index=True, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    updated_at = Column(DateTime, nullable=False, index=True)   # naive UTC

    def to_dict(self):
        return {
            "driver_id": self.driver_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
