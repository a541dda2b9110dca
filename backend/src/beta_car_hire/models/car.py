"""
Fleet model.
"""

from sqlalchemy import Column, String, DateTime, Enum
from sqlalchemy.orm import relationship

from beta_car_hire.core.constants import CAR_TYPES
from .base import Base, generate_uuid, utcnow


class Car(Base):
    """A rentable vehicle. Year and daily price are kept as entered."""
    __tablename__ = "cars"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    make = Column(String(100), nullable=False, index=True)
    model = Column(String(100), nullable=False)
    year = Column(String(4), nullable=False)
    price = Column(String(32), nullable=False)
    car_type = Column(Enum(*CAR_TYPES, name="car_type"), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    bookings = relationship("Booking", back_populates="car", order_by="Booking.created_at.desc()")

    @property
    def daily_price(self) -> float:
        """Numeric daily price; 0.0 when the stored value is not a number."""
        try:
            return float(str(self.price).replace("$", "").replace(",", "").strip())
        except (TypeError, ValueError):
            return 0.0

    def __repr__(self):
        return f"<Car(id={self.id}, {self.make} {self.model} {self.year}, type='{self.car_type}')>"
