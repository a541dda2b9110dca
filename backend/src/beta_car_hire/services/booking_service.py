"""
Booking Service for Beta Car Hire.

Booking creation, pricing and the rental update flow used by both the
bookings API and the support assistant.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Dict, Any

from sqlalchemy.orm import Session, joinedload

from beta_car_hire.core.constants import BOOKING_STATUS_ACTIVE, DEFAULT_BOOKING_DAYS, PRICING_TAX_RATE
from beta_car_hire.models import Address, Booking, Car
from beta_car_hire.models.base import utcnow
from beta_car_hire.schemas import BookingResponse

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base error for booking operations."""
    status_code = 400


class ResourceNotFoundError(BookingError):
    status_code = 404


class BookingAccessError(BookingError):
    status_code = 403


def rental_days(start_date: datetime, end_date: datetime) -> int:
    """Number of charged days; part days count as whole days and at least one is charged."""
    seconds = (end_date - start_date).total_seconds()
    return max(1, math.ceil(seconds / 86400))


def compute_total_price(car: Car, start_date: datetime, end_date: datetime) -> float:
    return round(car.daily_price * rental_days(start_date, end_date), 2)


def quote_price(car: Car, duration: int) -> Dict[str, Any]:
    """Price breakdown for renting a car for a number of days, tax included."""
    base_price = car.daily_price
    subtotal = base_price * duration
    tax = round(subtotal * PRICING_TAX_RATE, 2)
    return {
        "base_price": base_price,
        "duration": duration,
        "subtotal": round(subtotal, 2),
        "tax": tax,
        "total": round(subtotal + tax, 2),
    }


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # Stored timestamps are naive UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class BookingService:
    """Service for creating, listing and changing bookings."""

    def __init__(self, db: Session):
        self.db = db

    def _get_car(self, car_id: str) -> Car:
        car = self.db.get(Car, car_id)
        if car is None:
            raise ResourceNotFoundError("Car not found")
        return car

    def _get_address(self, address_id: str) -> Address:
        address = self.db.get(Address, address_id)
        if address is None:
            raise ResourceNotFoundError("Address not found")
        return address

    def create_booking(
        self,
        user_id: str,
        car_id: str,
        address_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Booking:
        """
        Create an active booking.

        Missing dates default to a rental starting now and lasting
        DEFAULT_BOOKING_DAYS days.

        Raises:
            ResourceNotFoundError: If the car or address does not exist
            BookingError: If the end date is not after the start date
        """
        car = self._get_car(car_id)
        address = self._get_address(address_id)

        start = _naive_utc(start_date) or utcnow()
        end = _naive_utc(end_date) or start + timedelta(days=DEFAULT_BOOKING_DAYS)
        if end <= start:
            raise BookingError("End date must be after start date")

        booking = Booking(
            user_id=user_id,
            car_id=car.id,
            address_id=address.id,
            start_date=start,
            end_date=end,
            total_price=compute_total_price(car, start, end),
            status=BOOKING_STATUS_ACTIVE,
        )
        try:
            self.db.add(booking)
            self.db.commit()
            self.db.refresh(booking)
        except Exception as e:
            logger.error(f"Error creating booking for user {user_id}: {e}")
            self.db.rollback()
            raise

        logger.info(f"Created booking {booking.id} for user {user_id} (car {car.id})")
        return booking

    def list_user_bookings(self, user_id: str) -> List[Booking]:
        """All bookings of a user, newest first, with car, address and user loaded."""
        return (
            self.db.query(Booking)
            .options(joinedload(Booking.car), joinedload(Booking.address), joinedload(Booking.user))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc())
            .all()
        )

    def cancel_booking(self, booking_id: str, user_id: str) -> BookingResponse:
        """
        Cancel (delete) a booking owned by the user.

        Raises:
            ResourceNotFoundError: If the booking does not exist
            BookingAccessError: If the booking belongs to someone else
        """
        booking = self.db.get(Booking, booking_id)
        if booking is None:
            raise ResourceNotFoundError("Booking not found")
        if booking.user_id != user_id:
            raise BookingAccessError("You can only cancel your own bookings")

        snapshot = BookingResponse.model_validate(booking)

        try:
            self.db.delete(booking)
            self.db.commit()
        except Exception as e:
            logger.error(f"Error cancelling booking {booking_id}: {e}")
            self.db.rollback()
            raise

        logger.info(f"Booking {booking_id} cancelled by user {user_id}")
        return snapshot

    def get_active_booking(self, user_id: str) -> Optional[Booking]:
        return (
            self.db.query(Booking)
            .filter(Booking.user_id == user_id, Booking.status == BOOKING_STATUS_ACTIVE)
            .order_by(Booking.created_at.desc())
            .first()
        )

    def update_rental(
        self,
        user_id: str,
        new_start_date: Optional[datetime] = None,
        new_end_date: Optional[datetime] = None,
        car_id: Optional[str] = None,
        address_id: Optional[str] = None,
    ) -> str:
        """
        Change the dates of the user's active booking, or book a car when there is none.

        Returns:
            A customer-facing description of what happened or what is still needed

        Raises:
            ResourceNotFoundError: If a new booking names an unknown car or address
            BookingError: If the new dates are not in order
        """
        booking = self.get_active_booking(user_id)

        if booking is None:
            if not (car_id and address_id and new_start_date and new_end_date):
                cars = self.db.query(Car).order_by(Car.created_at.desc()).limit(5).all()
                lines = [
                    f"- {car.make} {car.model} ({car.year}), ${car.price}/day, {car.car_type} (ID: {car.id})"
                    for car in cars
                ]
                listing = "\n".join(lines) if lines else "No vehicles are currently listed."
                return (
                    "You don't have an active booking yet. Here are some of our vehicles:\n"
                    f"{listing}\n"
                    "To create a new booking, I need the car ID, a delivery address ID, "
                    "and your start and end dates."
                )

            created = self.create_booking(user_id, car_id, address_id, new_start_date, new_end_date)
            return (
                f"New booking created successfully! Booking ID: {created.id}, "
                f"Car: {created.car.make} {created.car.model}, "
                f"Dates: {created.start_date.date()} to {created.end_date.date()}"
            )

        if not (new_start_date and new_end_date):
            return (
                f"You have an existing booking (ID: {booking.id}) for {booking.car.make} {booking.car.model} "
                f"from {booking.start_date.date()} to {booking.end_date.date()}. "
                "To update it, please provide new start and end dates."
            )

        start = _naive_utc(new_start_date)
        end = _naive_utc(new_end_date)
        if end <= start:
            raise BookingError("End date must be after start date")

        try:
            booking.start_date = start
            booking.end_date = end
            booking.total_price = compute_total_price(booking.car, start, end)
            self.db.commit()
            self.db.refresh(booking)
        except Exception as e:
            logger.error(f"Error updating booking {booking.id}: {e}")
            self.db.rollback()
            raise

        logger.info(f"Booking {booking.id} moved to {start.date()} - {end.date()}")
        return (
            f"Booking updated successfully! Booking ID: {booking.id}, "
            f"Car: {booking.car.make} {booking.car.model}, "
            f"New dates: {start.date()} to {end.date()}"
        )
