from fastapi.testclient import TestClient

from beta_car_hire.core.constants import LOGIN_GREETING
from beta_car_hire.core.security import create_access_token
from beta_car_hire.main import app
from beta_car_hire.models import Chat, ChatSession, User
from beta_car_hire.services.booking_service import BookingService
from beta_car_hire.services.chat_service import ChatService


def _set_cookies(response):
    return [header.lower() for header in response.headers.get_list("set-cookie")]


def test_register_issues_token_cookies_and_greeting(client, db_session):
    response = client.post("/api/auth/register", json={
        "email": "carol@example.com",
        "password": "long-enough-password",
        "first_name": "Carol",
        "last_name": "Danvers",
        "phone": "5550001111",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["success"] == 1
    assert body["data"]["token"]
    assert body["data"]["user"]["email"] == "carol@example.com"
    assert "hashed_password" not in body["data"]["user"]

    cookies = _set_cookies(response)
    for name in ("token=", "sessionid=", "chatid="):
        assert any(c.startswith(name) and "httponly" in c and "samesite=strict" in c for c in cookies)

    user = db_session.query(User).filter_by(email="carol@example.com").one()
    sessions = db_session.query(ChatSession).filter_by(user_id=user.id).all()
    assert len(sessions) == 1
    chats = db_session.query(Chat).filter_by(session_id=sessions[0].id).all()
    assert [chat.message for chat in chats] == [LOGIN_GREETING]


def test_register_rejects_duplicate_email(user_client):
    response = user_client.post("/api/auth/register", json={
        "email": "alice@example.com",
        "password": "another-password",
        "first_name": "Alice",
        "last_name": "Again",
        "phone": "5559998888",
    })

    assert response.status_code == 400
    assert response.json()["data"]["message"] == "Email already registered"


def test_register_validates_payload(client):
    response = client.post("/api/auth/register", json={
        "email": "not-an-email",
        "password": "short",
        "first_name": "Al",
        "last_name": "Smith",
        "phone": "123",
    })

    body = response.json()
    assert response.status_code == 400
    assert body["success"] == 0
    assert len(body["metadata"]["errors"]) == 4


def test_session_cookie_authenticates_later_calls(user_client):
    response = user_client.get("/api/profile")

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "alice@example.com"


def test_login_with_wrong_password_is_rejected(user_client, client):
    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope-nope"})

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "Invalid credentials"


def test_login_with_unknown_email_is_rejected(client):
    response = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "whatever1"})

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "Invalid credentials"


def test_login_opens_a_new_chat_session(user_client, client, db_session):
    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "correct-horse-battery"})

    assert response.status_code == 200
    assert client.get("/api/auth/verify-user").status_code == 200
    assert db_session.query(ChatSession).filter_by(user_id=user_client.user["id"]).count() == 2


def test_protected_route_requires_token(client):
    response = client.get("/api/auth/verify-user")

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "Access token required"


def test_garbage_token_is_rejected(client):
    response = client.get("/api/profile", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "Invalid or expired token"


def test_bearer_header_is_accepted(user_client, client):
    token = create_access_token(user_client.user["id"])

    response = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200


def test_token_for_deleted_user_is_rejected(client):
    token = create_access_token("no-such-user")

    response = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "User not found"


def test_token_with_foreign_session_is_rejected(user_client, other_client, client, db_session):
    other_session = db_session.query(ChatSession).filter_by(user_id=other_client.user["id"]).first()
    token = create_access_token(user_client.user["id"], session_id=other_session.id)

    response = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "Invalid session"


def test_verify_user_returns_bookings(user_client, make_car, make_address):
    car = make_car()
    address = make_address(user_id=user_client.user["id"])
    user_client.post("/api/bookings/book", json={"car_id": car.id, "address_id": address.id})

    response = user_client.get("/api/auth/verify-user")

    data = response.json()["data"]
    assert data["user"]["id"] == user_client.user["id"]
    assert len(data["bookings"]) == 1
    assert data["bookings"][0]["car"]["make"] == "Tesla"
    assert data["bookings"][0]["address"]["city"] == "Austin"


def test_logout_without_token(client):
    response = client.get("/api/auth/logout")

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "No token found"


def test_logout_clears_cookies(user_client):
    response = user_client.get("/api/auth/logout")

    assert response.status_code == 200
    cookies = _set_cookies(response)
    assert any(c.startswith("token=") and "max-age=0" in c for c in cookies)
    assert any(c.startswith("sessionid=") and "max-age=0" in c for c in cookies)


def test_logout_with_invalid_token_still_clears_cookies(client):
    response = client.get("/api/auth/logout", headers={"Authorization": "Bearer broken"})

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "Invalid token, but cookies cleared"
    assert any(c.startswith("token=") and "max-age=0" in c for c in _set_cookies(response))


def test_token_with_foreign_chat_is_rejected(user_client, other_client, client, db_session):
    own_session = db_session.query(ChatSession).filter_by(user_id=user_client.user["id"]).first()
    other_session = db_session.query(ChatSession).filter_by(user_id=other_client.user["id"]).first()
    other_chat = db_session.query(Chat).filter_by(session_id=other_session.id).first()
    token = create_access_token(user_client.user["id"], session_id=own_session.id, chat_id=other_chat.id)

    response = client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "Invalid chat session"


def _deactivate(db_session, email):
    user = db_session.query(User).filter_by(email=email).one()
    user.is_active = False
    db_session.commit()


def test_deactivated_account_token_is_rejected(user_client, db_session):
    _deactivate(db_session, "alice@example.com")

    response = user_client.get("/api/profile")

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "Account is deactivated"


def test_deactivated_account_cannot_log_in(user_client, client, db_session):
    _deactivate(db_session, "alice@example.com")

    response = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "correct-horse-battery"})

    assert response.status_code == 401
    assert response.json()["data"]["message"] == "Account is deactivated"


def test_unexpected_error_returns_internal_error_envelope(user_client, monkeypatch):
    def broken(self, user_id):
        raise ValueError("database went away")

    monkeypatch.setattr(BookingService, "list_user_bookings", broken)
    client = TestClient(app, raise_server_exceptions=False)
    token = create_access_token(user_client.user["id"])

    response = client.get("/api/auth/verify-user", headers={"Authorization": f"Bearer {token}"})

    body = response.json()
    assert response.status_code == 500
    assert body["success"] == 0
    assert body["message"] == "Internal server error"
    assert body["metadata"]["statusCode"] == 500
    assert "database went away" not in response.text


def test_failed_registration_leaves_no_user_behind(db_session, monkeypatch):
    def broken(self, user, welcome_message):
        raise RuntimeError("chat store unavailable")

    monkeypatch.setattr(ChatService, "create_session", broken)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/api/auth/register", json={
        "email": "dave@example.com",
        "password": "long-enough-password",
        "first_name": "David",
        "last_name": "Bowman",
        "phone": "5550002222",
    })

    assert response.status_code == 500
    assert response.json()["message"] == "Internal server error"
    assert db_session.query(User).filter_by(email="dave@example.com").count() == 0
