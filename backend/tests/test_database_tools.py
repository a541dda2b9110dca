from datetime import datetime, timedelta

import pytest

from beta_car_hire.models import Booking, User
from beta_car_hire.services.booking_service import BookingService, ResourceNotFoundError
from beta_car_hire.services.database_tools import execute_database_tool


@pytest.fixture
def customer(db_session):
    user = User(
        email="dana@example.com",
        hashed_password="x",
        first_name="Dana",
        last_name="Scully",
        phone="5550102030",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def fleet(make_car):
    return [
        make_car(make="Mercedes-Benz", model="S-Class", price="250", car_type="Sedan"),
        make_car(make="BMW", model="X7", price="220", car_type="SUV"),
        make_car(make="Volkswagen", model="Golf", price="80", car_type="Hatchback"),
    ]


def test_unknown_tool(db_session):
    assert execute_database_tool(db_session, "get_weather", {}) == {"success": False, "error": "Tool not found"}


def test_invalid_parameters_are_reported(db_session):
    result = execute_database_tool(db_session, "get_car_details", {})

    assert result["success"] is False
    assert "get_car_details" in result["error"]


def test_search_cars_by_type(db_session, fleet):
    result = execute_database_tool(db_session, "search_cars", {"car_type": "SUV"})

    assert result["success"] is True
    assert result["count"] == 1
    assert result["cars"][0]["model"] == "X7"
    assert result["cars"][0]["booking_count"] == 0
    assert result["cars"][0]["last_booking"] is None


def test_search_cars_by_make_is_case_insensitive(db_session, fleet):
    result = execute_database_tool(db_session, "search_cars", {"make": "mercedes"})

    assert [car["model"] for car in result["cars"]] == ["S-Class"]


def test_search_cars_by_price_range(db_session, fleet):
    result = execute_database_tool(db_session, "search_cars", {"min_price": 100, "max_price": 230})

    assert [car["make"] for car in result["cars"]] == ["BMW"]


def test_search_cars_lists_newest_first(db_session, fleet):
    result = execute_database_tool(db_session, "search_cars", {})

    assert [car["make"] for car in result["cars"]] == ["Volkswagen", "BMW", "Mercedes-Benz"]


def test_user_bookings_and_availability(db_session, customer, fleet, make_address):
    address = make_address(user_id=customer.id)
    booking = BookingService(db_session).create_booking(customer.id, fleet[0].id, address.id)

    bookings = execute_database_tool(db_session, "get_user_bookings", {"user_id": customer.id})
    booked = execute_database_tool(db_session, "check_availability", {"car_id": fleet[0].id})
    free = execute_database_tool(db_session, "check_availability", {"car_id": fleet[1].id})

    assert bookings["count"] == 1
    assert bookings["bookings"][0]["id"] == booking.id
    assert bookings["bookings"][0]["car"]["make"] == "Mercedes-Benz"
    assert bookings["bookings"][0]["address"]["city"] == "Austin"
    assert bookings["bookings"][0]["user"]["email"] == "dana@example.com"
    assert booked["available"] is False
    assert booked["total_bookings"] == 1
    assert free["available"] is True
    assert free["total_bookings"] == 0


def test_car_details(db_session, customer, fleet, make_address):
    address = make_address()
    BookingService(db_session).create_booking(customer.id, fleet[1].id, address.id)

    result = execute_database_tool(db_session, "get_car_details", {"car_id": fleet[1].id})

    assert result["success"] is True
    assert result["car"]["model"] == "X7"
    assert result["car"]["bookings"][0]["user"]["first_name"] == "Dana"


def test_car_details_for_unknown_car(db_session):
    result = execute_database_tool(db_session, "get_car_details", {"car_id": "missing"})

    assert result == {"success": False, "error": "Car not found"}


def test_user_info(db_session, customer, fleet, make_address):
    address = make_address()
    service = BookingService(db_session)
    for car in fleet:
        service.create_booking(customer.id, car.id, address.id)

    result = execute_database_tool(db_session, "get_user_info", {"user_id": customer.id})

    assert result["user"]["first_name"] == "Dana"
    assert result["user"]["total_bookings"] == 3
    assert len(result["user"]["recent_bookings"]) == 3


def test_user_info_for_unknown_user(db_session):
    result = execute_database_tool(db_session, "get_user_info", {"user_id": "missing"})

    assert result == {"success": False, "error": "User not found"}


def test_calculate_pricing_adds_tax(db_session, fleet):
    result = execute_database_tool(db_session, "calculate_pricing", {"car_id": fleet[0].id, "duration": 3})

    assert result["pricing"] == {
        "base_price": 250.0,
        "duration": 3,
        "subtotal": 750.0,
        "tax": 75.0,
        "total": 825.0,
    }


def test_update_rental_without_booking_lists_cars(db_session, customer, fleet):
    result = execute_database_tool(db_session, "update_rental", {"user_id": customer.id})

    assert result["success"] is True
    assert "don't have an active booking" in result["message"]
    assert "Golf" in result["message"]


def test_update_rental_creates_booking_when_details_given(db_session, customer, fleet, make_address):
    address = make_address()

    result = execute_database_tool(db_session, "update_rental", {
        "user_id": customer.id,
        "car_id": fleet[2].id,
        "address_id": address.id,
        "new_start_date": "2030-01-01T09:00:00",
        "new_end_date": "2030-01-04T09:00:00",
    })

    assert result["success"] is True
    assert result["message"].startswith("New booking created successfully!")
    booking = db_session.query(Booking).filter_by(user_id=customer.id).one()
    assert booking.total_price == 240.0


def test_update_rental_reports_unknown_car(db_session, customer, make_address):
    address = make_address()

    result = execute_database_tool(db_session, "update_rental", {
        "user_id": customer.id,
        "car_id": "missing",
        "address_id": address.id,
        "new_start_date": "2030-01-01T09:00:00",
        "new_end_date": "2030-01-04T09:00:00",
    })

    assert result == {"success": False, "error": "Car not found"}


def test_update_rental_moves_active_booking(db_session, customer, fleet, make_address):
    address = make_address()
    service = BookingService(db_session)
    booking = service.create_booking(customer.id, fleet[1].id, address.id)

    asked = service.update_rental(customer.id)
    assert "To update it, please provide new start and end dates" in asked

    start = datetime(2031, 6, 1, 10, 0)
    moved = service.update_rental(customer.id, new_start_date=start, new_end_date=start + timedelta(days=2))

    assert moved.startswith("Booking updated successfully!")
    db_session.refresh(booking)
    assert booking.start_date == start
    assert booking.total_price == 440.0


def test_create_booking_with_unknown_address(db_session, customer, fleet):
    with pytest.raises(ResourceNotFoundError):
        BookingService(db_session).create_booking(customer.id, fleet[0].id, "missing")
