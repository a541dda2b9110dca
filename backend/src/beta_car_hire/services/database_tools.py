"""
Database lookup tools for the support assistant.

Every tool takes a session and a parameter dict, validates the parameters with
a pydantic model and returns a JSON-serialisable dict carrying ``success``.
Failures are reported in the result rather than raised.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from beta_car_hire.core.constants import BOOKING_STATUS_ACTIVE
from beta_car_hire.models import Booking, Car, User
from beta_car_hire.schemas import CarType
from beta_car_hire.services.booking_service import BookingError, BookingService, quote_price

logger = logging.getLogger(__name__)


class SearchCarsParams(BaseModel):
    make: Optional[str] = None
    model: Optional[str] = None
    year: Optional[str] = None
    car_type: Optional[CarType] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class UserParams(BaseModel):
    user_id: str = Field(..., min_length=1)


class CarParams(BaseModel):
    car_id: str = Field(..., min_length=1)


class PricingParams(BaseModel):
    car_id: str = Field(..., min_length=1)
    duration: int = Field(..., ge=1)


class UpdateRentalParams(BaseModel):
    user_id: str = Field(..., min_length=1)
    new_start_date: Optional[datetime] = None
    new_end_date: Optional[datetime] = None
    car_id: Optional[str] = None
    address_id: Optional[str] = None


def _car_summary(car: Car) -> Dict[str, Any]:
    return {
        "id": car.id,
        "make": car.make,
        "model": car.model,
        "year": car.year,
        "price": car.price,
        "car_type": car.car_type,
    }


def _user_summary(user: User) -> Dict[str, Any]:
    return {"first_name": user.first_name, "last_name": user.last_name, "email": user.email}


def _address_summary(booking: Booking) -> Optional[Dict[str, Any]]:
    if booking.address is None:
        return None
    return {
        "address": booking.address.address,
        "city": booking.address.city,
        "state": booking.address.state,
        "zip": booking.address.zip,
    }


def _newest_first(bookings):
    return sorted(bookings, key=lambda b: b.created_at, reverse=True)


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def search_cars(db: Session, params: SearchCarsParams) -> Dict[str, Any]:
    """Search the fleet by make, model, year, type and daily price range."""
    query = db.query(Car)
    if params.make:
        query = query.filter(Car.make.ilike(f"%{params.make}%"))
    if params.model:
        query = query.filter(Car.model.ilike(f"%{params.model}%"))
    if params.year:
        query = query.filter(Car.year == params.year)
    if params.car_type:
        query = query.filter(Car.car_type == params.car_type)

    cars = query.order_by(Car.created_at.desc()).all()

    # Prices are stored as text, so the range is applied numerically here
    if params.min_price is not None:
        cars = [car for car in cars if car.daily_price >= params.min_price]
    if params.max_price is not None:
        cars = [car for car in cars if car.daily_price <= params.max_price]

    results = []
    for car in cars:
        bookings = _newest_first(car.bookings)
        entry = _car_summary(car)
        entry["booking_count"] = len(bookings)
        entry["last_booking"] = _isoformat(bookings[0].created_at) if bookings else None
        results.append(entry)

    return {"success": True, "cars": results, "count": len(results)}


def get_user_bookings(db: Session, params: UserParams) -> Dict[str, Any]:
    """Booking history of one user, newest first."""
    bookings = BookingService(db).list_user_bookings(params.user_id)
    return {
        "success": True,
        "bookings": [
            {
                "id": booking.id,
                "car": _car_summary(booking.car),
                "address": _address_summary(booking),
                "user": _user_summary(booking.user),
                "start_date": _isoformat(booking.start_date),
                "end_date": _isoformat(booking.end_date),
                "total_price": booking.total_price,
                "status": booking.status,
                "created_at": _isoformat(booking.created_at),
                "updated_at": _isoformat(booking.updated_at),
            }
            for booking in bookings
        ],
        "count": len(bookings),
    }


def get_car_details(db: Session, params: CarParams) -> Dict[str, Any]:
    car = db.get(Car, params.car_id)
    if car is None:
        return {"success": False, "error": "Car not found"}

    details = _car_summary(car)
    details["created_at"] = _isoformat(car.created_at)
    details["bookings"] = [
        {
            "id": booking.id,
            "user": _user_summary(booking.user),
            "address": _address_summary(booking),
            "created_at": _isoformat(booking.created_at),
        }
        for booking in _newest_first(car.bookings)
    ]
    return {"success": True, "car": details}


def check_availability(db: Session, params: CarParams) -> Dict[str, Any]:
    """A car is available while it has no active booking."""
    car = db.get(Car, params.car_id)
    if car is None:
        return {"success": False, "error": "Car not found"}

    bookings = _newest_first(car.bookings)
    active = [booking for booking in bookings if booking.status == BOOKING_STATUS_ACTIVE]
    return {
        "success": True,
        "available": not active,
        "car_id": car.id,
        "make": car.make,
        "model": car.model,
        "year": car.year,
        "last_booking": _isoformat(bookings[0].created_at) if bookings else None,
        "total_bookings": len(bookings),
    }


def get_user_info(db: Session, params: UserParams) -> Dict[str, Any]:
    user = db.get(User, params.user_id)
    if user is None:
        return {"success": False, "error": "User not found"}

    bookings = _newest_first(user.bookings)
    return {
        "success": True,
        "user": {
            "id": user.id,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "email": user.email,
            "phone": user.phone,
            "created_at": _isoformat(user.created_at),
            "total_bookings": len(bookings),
            "recent_bookings": [
                {
                    "id": booking.id,
                    "car": {
                        "make": booking.car.make,
                        "model": booking.car.model,
                        "year": booking.car.year,
                        "car_type": booking.car.car_type,
                    },
                    "created_at": _isoformat(booking.created_at),
                }
                for booking in bookings[:5]
            ],
        },
    }


def calculate_pricing(db: Session, params: PricingParams) -> Dict[str, Any]:
    car = db.get(Car, params.car_id)
    if car is None:
        return {"success": False, "error": "Car not found"}

    return {
        "success": True,
        "car": {"make": car.make, "model": car.model, "year": car.year},
        "pricing": quote_price(car, params.duration),
    }


def update_rental(db: Session, params: UpdateRentalParams) -> Dict[str, Any]:
    try:
        message = BookingService(db).update_rental(
            user_id=params.user_id,
            new_start_date=params.new_start_date,
            new_end_date=params.new_end_date,
            car_id=params.car_id,
            address_id=params.address_id,
        )
    except BookingError as e:
        return {"success": False, "error": str(e)}
    return {"success": True, "message": message}


# name -> (implementation, parameter model, description)
DATABASE_TOOLS: Dict[str, tuple] = {
    "search_cars": (search_cars, SearchCarsParams,
                    "Search for available cars by make, model, year, type, or price range"),
    "get_user_bookings": (get_user_bookings, UserParams,
                          "Get booking history and current bookings for a specific user"),
    "get_car_details": (get_car_details, CarParams,
                        "Get detailed information about a specific car"),
    "check_availability": (check_availability, CarParams,
                           "Check if a specific car is available for booking"),
    "get_user_info": (get_user_info, UserParams,
                      "Get user information for customer service"),
    "calculate_pricing": (calculate_pricing, PricingParams,
                          "Calculate rental price for a car and number of days, tax included"),
    "update_rental": (update_rental, UpdateRentalParams,
                      "Update rental booking dates or create a booking if the user has none"),
}

# Tools the intent classifier may ask for
CHAT_TOOLS = ("search_cars", "get_user_bookings", "check_availability", "get_car_details", "get_user_info")


def execute_database_tool(db: Session, tool_name: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Run a tool by name.

    Returns:
        The tool result; ``{"success": False, "error": ...}`` for unknown tools,
        invalid parameters or database failures
    """
    entry = DATABASE_TOOLS.get(tool_name)
    if entry is None:
        return {"success": False, "error": "Tool not found"}

    func: Callable = entry[0]
    model = entry[1]
    try:
        validated = model.model_validate(params or {})
    except ValidationError as e:
        logger.warning(f"Invalid parameters for {tool_name}: {e.errors()}")
        return {"success": False, "error": f"Invalid parameters for {tool_name}"}

    try:
        return func(db, validated)
    except SQLAlchemyError as e:
        logger.error(f"Database error in tool {tool_name}: {e}")
        db.rollback()
        return {"success": False, "error": f"Failed to run {tool_name}"}
