from sqlalchemy import Column, Integer, String, DateTime, Enum, Numeric
from sqlalchemy.sql import func
import enum
from ..db import Base


class Role(str, enum.Enum):
    CUSTOMER = "Customer"
    DRIVER   = "Driver"
    OWNER    = "Owner"


class Profile(Base):
    __tablename__ = "profiles"

    # id = id принципала во внешнем провайдере авторизации (uuid)
    id = Column(String(64), primary_key=True)
    email = Column(String(255), nullable=True)
    full_name = Column(String(200), nullable=True)
    role = Column(Enum(Role), nullable=False, index=True)
    phone = Column(String(50), nullable=True)

    # водитель
    driving_license  = Column(String(15), nullable=True)
    vehicle_number   = Column(String(20), nullable=True)
    vehicle_capacity = Column(Numeric(10, 2), nullable=True)   # тонны

    # владелец парка
    company_name    = Column(String(200), nullable=True)
    gst_number      = Column(String(20), nullable=True)
    truck_count     = Column(Integer, nullable=True)
    company_address = Column(String(500), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def display_name(self) -> str:
        return self.full_name or (self.email.split("@")[0] if self.email else f"ID {self.id}")


class OwnerAccount(Base):
    """Старые аккаунты владельцев: живут в отдельной таблице, без записи в profiles."""
    __tablename__ = "owners"

    id = Column(String(64), primary_key=True)
    owner_name = Column(String(200), nullable=True)
    company_name = Column(String(200), nullable=True)
    gst_number = Column(String(20), nullable=True)
    total_trucks = Column(Integer, nullable=True, default=0)
    company_address = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
