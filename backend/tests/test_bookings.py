from datetime import datetime, timedelta

from beta_car_hire.models import Booking


def test_booking_requires_existing_car(user_client, make_address):
    address = make_address(user_id=user_client.user["id"])

    response = user_client.post("/api/bookings/book", json={"car_id": "missing", "address_id": address.id})

    assert response.status_code == 404
    assert response.json()["data"]["message"] == "Car not found"


def test_booking_requires_existing_address(user_client, make_car):
    car = make_car()

    response = user_client.post("/api/bookings/book", json={"car_id": car.id, "address_id": "missing"})

    assert response.status_code == 404
    assert response.json()["data"]["message"] == "Address not found"


def test_booking_defaults_to_a_week(user_client, make_car, make_address):
    car = make_car(price="200")
    address = make_address(user_id=user_client.user["id"])

    response = user_client.post("/api/bookings/book", json={"car_id": car.id, "address_id": address.id})

    assert response.status_code == 201
    booking = response.json()["data"]
    start = datetime.fromisoformat(booking["start_date"])
    end = datetime.fromisoformat(booking["end_date"])
    assert end - start == timedelta(days=7)
    assert booking["status"] == "active"
    assert booking["total_price"] == 1400.0
    assert booking["user_id"] == user_client.user["id"]


def test_booking_price_uses_requested_dates(user_client, make_car, make_address):
    car = make_car(price="150")
    address = make_address()

    response = user_client.post("/api/bookings/book", json={
        "car_id": car.id,
        "address_id": address.id,
        "start_date": "2030-05-01T10:00:00",
        "end_date": "2030-05-03T12:00:00",
    })

    assert response.status_code == 201
    # Two days and two hours are charged as three days
    assert response.json()["data"]["total_price"] == 450.0


def test_booking_rejects_reversed_dates(user_client, make_car, make_address):
    car = make_car()
    address = make_address()

    response = user_client.post("/api/bookings/book", json={
        "car_id": car.id,
        "address_id": address.id,
        "start_date": "2030-05-03T10:00:00",
        "end_date": "2030-05-01T10:00:00",
    })

    assert response.status_code == 400


def test_booking_for_someone_else_is_forbidden(user_client, other_client, make_car, make_address):
    car = make_car()
    address = make_address()

    response = user_client.post("/api/bookings/book", json={
        "car_id": car.id,
        "address_id": address.id,
        "user_id": other_client.user["id"],
    })

    assert response.status_code == 403
    assert response.json()["data"]["message"] == "Access denied: You can only access your own resources"


def test_booking_requires_login(client):
    response = client.post("/api/bookings/book", json={"car_id": "a", "address_id": "b"})

    assert response.status_code == 401


def test_listing_returns_only_own_bookings(user_client, other_client, make_car, make_address):
    car = make_car()
    address = make_address()
    user_client.post("/api/bookings/book", json={"car_id": car.id, "address_id": address.id})
    other_client.post("/api/bookings/book", json={"car_id": car.id, "address_id": address.id})

    response = user_client.get("/api/bookings/bookings")

    bookings = response.json()["data"]
    assert len(bookings) == 1
    assert bookings[0]["user"]["email"] == "alice@example.com"
    assert bookings[0]["car"]["id"] == car.id


def test_cannot_cancel_another_users_booking(user_client, other_client, make_car, make_address):
    car = make_car()
    address = make_address()
    booking_id = other_client.post(
        "/api/bookings/book", json={"car_id": car.id, "address_id": address.id}
    ).json()["data"]["id"]

    response = user_client.post("/api/bookings/cancel", json={"booking_id": booking_id})

    assert response.status_code == 403
    assert response.json()["data"]["message"] == "You can only cancel your own bookings"


def test_cancel_unknown_booking(user_client):
    response = user_client.post("/api/bookings/cancel", json={"booking_id": "missing"})

    assert response.status_code == 404
    assert response.json()["data"]["message"] == "Booking not found"


def test_cancel_deletes_booking(user_client, make_car, make_address, db_session):
    car = make_car()
    address = make_address()
    booking_id = user_client.post(
        "/api/bookings/book", json={"car_id": car.id, "address_id": address.id}
    ).json()["data"]["id"]

    response = user_client.post("/api/bookings/cancel", json={"booking_id": booking_id})

    assert response.status_code == 200
    assert response.json()["data"]["id"] == booking_id
    assert db_session.get(Booking, booking_id) is None


def test_addresses_belong_to_the_caller(user_client, other_client):
    created = user_client.post("/api/bookings/addresses", json={
        "address": "10 Downing St", "city": "London", "state": "LDN", "zip": "SW1A",
    })

    assert created.status_code == 201
    assert created.json()["data"]["user_id"] == user_client.user["id"]
    assert len(user_client.get("/api/bookings/addresses").json()["data"]) == 1
    assert other_client.get("/api/bookings/addresses").json()["data"] == []
