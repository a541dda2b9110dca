import pytest

from beta_car_hire.core.constants import FALLBACK_REPLY, OPTION_MENU
from beta_car_hire.models import Booking


@pytest.fixture
def session_id(user_client):
    return user_client.post("/api/chat/session").json()["data"]["session_id"]


def test_chat_stores_both_messages(user_client, session_id, fake_genai):
    fake_genai.chat_reply = "We have plenty of SUVs."

    response = user_client.post("/api/aichat/chat", json={"message": "Any SUVs?", "session_id": session_id})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["user_message"]["message"] == "Any SUVs?"
    assert data["ai_message"]["message"] == "We have plenty of SUVs."
    messages = user_client.get(f"/api/chat/session/{session_id}/messages").json()["data"]
    assert [m["sender"] for m in messages] == ["assistant", "user", "assistant"]


def test_chat_without_model_uses_fallback(user_client, session_id):
    response = user_client.post("/api/aichat/chat", json={"message": "Hello", "session_id": session_id})

    assert response.json()["data"]["ai_message"]["message"] == FALLBACK_REPLY


def test_chat_requires_message_and_session(user_client):
    response = user_client.post("/api/aichat/chat", json={"message": "Hello"})

    assert response.status_code == 400


def test_route_car_option_includes_search_results(user_client, session_id, make_car):
    make_car(make="Audi", model="A8")

    response = user_client.post("/api/aichat/route", json={"option": "3", "session_id": session_id})

    data = response.json()["data"]
    assert data["tool_result"]["count"] == 1
    assert data["ai_message"]["message"].startswith("Let me show you our luxury fleet!")
    assert '"make": "Audi"' in data["ai_message"]["message"]


def test_route_accepts_option_names(user_client, session_id):
    response = user_client.post("/api/aichat/route", json={"option": "Vehicle", "session_id": session_id})

    data = response.json()["data"]
    assert data["tool_result"] is None
    assert "detailed information about any vehicle" in data["ai_message"]["message"]


def test_route_price_option_asks_model_to_format(user_client, session_id, make_car, fake_genai):
    make_car(make="Audi", model="A8", price="240")
    fake_genai.chat_reply = "**Audi A8** - $240/day"

    response = user_client.post("/api/aichat/route", json={"option": 4, "session_id": session_id})

    data = response.json()["data"]
    assert data["tool_result"] == "Audi A8 - $240/day"
    assert "Audi" in fake_genai.prompts[-1]


def test_route_unknown_option_shows_menu(user_client, session_id):
    response = user_client.post("/api/aichat/route", json={"option": "9", "session_id": session_id})

    assert response.json()["data"]["ai_message"]["message"] == OPTION_MENU


def test_route_requires_option(user_client, session_id):
    response = user_client.post("/api/aichat/route", json={"session_id": session_id})

    assert response.status_code == 400


def test_route_on_foreign_session_is_forbidden(other_client, session_id):
    response = other_client.post("/api/aichat/route", json={"option": "1", "session_id": session_id})

    assert response.status_code == 403


def test_booking_summary_is_posted_to_chat(user_client, session_id):
    response = user_client.post("/api/aichat/booking", json={"session_id": session_id})

    data = response.json()["data"]
    assert data["result"]["count"] == 0
    assert data["ai_message"]["message"].startswith("Booking information: ")


def test_update_rental_lists_cars_when_nothing_is_booked(user_client, session_id, make_car):
    make_car(make="BMW", model="X7")

    response = user_client.post("/api/aichat/update-rental", json={"session_id": session_id})

    message = response.json()["data"]["message"]
    assert "BMW X7" in message
    assert "start and end dates" in message


def test_update_rental_creates_then_moves_booking(user_client, session_id, make_car, make_address, db_session):
    car = make_car(price="100")
    address = make_address()

    created = user_client.post("/api/aichat/update-rental", json={
        "session_id": session_id,
        "car_id": car.id,
        "address_id": address.id,
        "start_date": "2030-03-01T09:00:00",
        "end_date": "2030-03-02T09:00:00",
    })
    moved = user_client.post("/api/aichat/update-rental", json={
        "session_id": session_id,
        "start_date": "2030-04-01T09:00:00",
        "end_date": "2030-04-05T09:00:00",
    })

    assert created.json()["data"]["message"].startswith("New booking created successfully!")
    assert moved.json()["data"]["message"].startswith("Booking updated successfully!")
    booking = db_session.query(Booking).one()
    assert booking.total_price == 400.0


def test_update_rental_with_unknown_car(user_client, session_id, make_address):
    address = make_address()

    response = user_client.post("/api/aichat/update-rental", json={
        "session_id": session_id,
        "car_id": "missing",
        "address_id": address.id,
        "start_date": "2030-03-01T09:00:00",
        "end_date": "2030-03-02T09:00:00",
    })

    assert response.status_code == 404
