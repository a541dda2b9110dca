from beta_car_hire.api.v1 import auth as auth_api
from beta_car_hire.models import Car
from beta_car_hire.services.fleet_seed import DEMO_FLEET, seed_demo_fleet

NEW_CAR = {"make": "Porsche", "model": "911", "year": "2024", "price": "350", "car_type": "SportsCar"}


def test_adding_a_car_requires_login(client):
    response = client.post("/api/fleet/fleet", json=NEW_CAR)

    assert response.status_code == 401


def test_add_car(user_client):
    response = user_client.post("/api/fleet/fleet", json=NEW_CAR)

    assert response.status_code == 201
    car = response.json()["data"]
    assert car["make"] == "Porsche"
    assert car["car_type"] == "SportsCar"
    assert car["price"] == "350"
    assert car["id"]


def test_add_car_rejects_unknown_type(user_client):
    response = user_client.post("/api/fleet/fleet", json={**NEW_CAR, "car_type": "Spaceship"})

    assert response.status_code == 400
    assert response.json()["success"] == 0


def test_add_car_rejects_missing_fields(user_client):
    response = user_client.post("/api/fleet/fleet", json={"make": "Porsche"})

    assert response.status_code == 400
    assert len(response.json()["metadata"]["errors"]) == 4


def test_admin_only_fleet_management(user_client, monkeypatch):
    monkeypatch.setattr(auth_api.config.security, "fleet_admin_only", True)

    response = user_client.post("/api/fleet/fleet", json=NEW_CAR)

    assert response.status_code == 403


def test_fleet_listing_is_public_and_newest_first(client, make_car):
    make_car(make="Audi", model="A8")
    make_car(make="BMW", model="X7", car_type="SUV")
    make_car(make="Volkswagen", model="Golf", car_type="Hatchback")

    response = client.get("/api/fleet/fleet")

    assert response.status_code == 200
    makes = [car["make"] for car in response.json()["data"]]
    assert makes == ["Volkswagen", "BMW", "Audi"]


def test_get_car(client, make_car):
    car = make_car()

    response = client.get(f"/api/fleet/fleet/{car.id}")

    assert response.status_code == 200
    assert response.json()["data"]["model"] == "Model S"


def test_get_unknown_car(client):
    response = client.get("/api/fleet/fleet/does-not-exist")

    assert response.status_code == 404
    assert response.json()["data"]["message"] == "Car not found"


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nowhere")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] == 0
    assert body["metadata"]["statusCode"] == 404


def test_seed_demo_fleet_only_fills_an_empty_table(db_session, client):
    assert seed_demo_fleet(db_session) == len(DEMO_FLEET)
    assert seed_demo_fleet(db_session) == 0

    cars = client.get("/api/fleet/fleet").json()["data"]
    assert len(cars) == len(DEMO_FLEET)
    assert {car["make"] for car in cars} >= {"Tesla", "Volkswagen"}


def test_seed_demo_fleet_force_adds_again(db_session):
    seed_demo_fleet(db_session)

    assert seed_demo_fleet(db_session, force=True) == len(DEMO_FLEET)
    assert db_session.query(Car).count() == 2 * len(DEMO_FLEET)
