from sqlalchemy import (
    Column, Integer, String, DateTime, Enum, ForeignKey, Index, CheckConstraint
)
from sqlalchemy.sql import func
import enum
from ..db import Base


class BookingStatus(str, enum.Enum):
    PENDING   = "Pending"     # создана клиентом, водителя нет
    ACCEPTED  = "Accepted"    # взята ровно одним водителем
    COMPLETED = "Completed"   # закрыта этим же водителем


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    # назначается один раз при accept и больше не меняется
    driver_id = Column(String(64), ForeignKey("profiles.id"), nullable=True, index=True)

    from_city = Column(String(120), nullable=False)
    to_city = Column(String(120), nullable=False)
    load_description = Column(String(500), nullable=False)

    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        # водитель есть тогда и только тогда, когда заявка уже не Pending
        CheckConstraint(
            "(driver_id IS NULL) = (status = 'PENDING')",
            name="ck_bookings_driver_matches_status",
        ),
        Index("ix_bookings_status", "status"),
        Index("ix_bookings_created_at", "created_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "driver_id": self.driver_id,
            "from_city": self.from_city,
            "to_city": self.to_city,
            "load": self.load_description,
            "status": self.status.value if hasattr(self.status, "value") else self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
