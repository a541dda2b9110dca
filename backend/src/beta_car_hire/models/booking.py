"""
Booking model.
"""

from sqlalchemy import Column, String, DateTime, Float, ForeignKey
from sqlalchemy.orm import relationship

from beta_car_hire.core.constants import BOOKING_STATUS_ACTIVE
from .base import Base, generate_uuid, utcnow


class Booking(Base):
    """A rental of one car by one user, delivered to one address."""
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    car_id = Column(String(36), ForeignKey("cars.id"), nullable=False, index=True)
    address_id = Column(String(36), ForeignKey("addresses.id"), nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    total_price = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default=BOOKING_STATUS_ACTIVE)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="bookings")
    car = relationship("Car", back_populates="bookings")
    address = relationship("Address", back_populates="bookings")

    def __repr__(self):
        return f"<Booking(id={self.id}, user_id={self.user_id}, car_id={self.car_id}, status='{self.status}')>"
