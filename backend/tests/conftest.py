"""
Shared fixtures: an in-memory SQLite database rebuilt for every test, API
clients with their own cookie jars and a scripted stand-in for the GenAI client.
"""

import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-signing-key-0123456789abcdefghijklmnop"
os.environ["ENV"] = "test"
os.environ["AI_MAX_RETRIES"] = "1"
os.environ["AI_RETRY_DELAY"] = "0"
os.environ["GOOGLE_GENAI_USE_VERTEXAI"] = "false"
os.environ.pop("GEMINI_API_KEY", None)

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from beta_car_hire.core.database import SessionLocal, create_tables, drop_tables
from beta_car_hire.main import app
from beta_car_hire.models import Address, Car
from beta_car_hire.services.genai_client import initialize_genai_client, reset_genai_client


class FakeModels:
    def __init__(self, responder):
        self.responder = responder
        self.prompts = []

    def generate_content(self, model, contents, config=None):
        prompt = contents[0]["parts"][0]["text"]
        self.prompts.append(prompt)
        reply = self.responder(prompt)
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(text=reply, candidates=[])


class FakeGenAIClient:
    """Answers intent prompts and chat prompts from two scripted callables."""

    def __init__(self, intent_reply="{}", chat_reply="Happy to help!"):
        self.intent_reply = intent_reply
        self.chat_reply = chat_reply
        self.models = FakeModels(self._respond)

    def _respond(self, prompt):
        if "classify their intent" in prompt:
            return self.intent_reply
        return self.chat_reply

    @property
    def prompts(self):
        return self.models.prompts


@pytest.fixture(autouse=True)
def database():
    create_tables()
    yield
    drop_tables()


@pytest.fixture(autouse=True)
def no_genai_client():
    reset_genai_client()
    yield
    reset_genai_client()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_genai():
    """Install a fake GenAI client; tests adjust its replies."""
    client = FakeGenAIClient()
    initialize_genai_client(client)
    return client


def _register(client, email, first_name="Alice", last_name="Walker"):
    response = client.post("/api/auth/register", json={
        "email": email,
        "password": "correct-horse-battery",
        "first_name": first_name,
        "last_name": last_name,
        "phone": "5551234567",
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]["user"]


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def user_client():
    """Client signed in as a freshly registered user; the user dict is on ``.user``."""
    client = TestClient(app)
    client.user = _register(client, "alice@example.com")
    return client


@pytest.fixture
def other_client():
    client = TestClient(app)
    client.user = _register(client, "bob@example.com", first_name="Bobby", last_name="Tables")
    return client


@pytest.fixture
def make_car(db_session):
    def _make(make="Tesla", model="Model S", year="2024", price="200", car_type="Sedan"):
        car = Car(make=make, model=model, year=year, price=price, car_type=car_type)
        db_session.add(car)
        db_session.commit()
        db_session.refresh(car)
        return car
    return _make


@pytest.fixture
def make_address(db_session):
    def _make(user_id=None, city="Austin"):
        address = Address(user_id=user_id, address="1 Main St", city=city, state="TX", zip="73301")
        db_session.add(address)
        db_session.commit()
        db_session.refresh(address)
        return address
    return _make
