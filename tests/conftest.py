import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app

ADMIN = "admin@example.com"
SELLER = "seller@example.com"
CUSTOMER = "customer@example.com"


@pytest.fixture
def db():
    return mongomock.MongoClient()["plantNet_test"]


@pytest.fixture
def settings():
    return Settings(jwt_secret="test-secret", env="development", cors_origins=["http://localhost:5173"])


@pytest.fixture
def client(settings, db):
    return TestClient(create_app(settings=settings, db=db))


@pytest.fixture
def users(db):
    db["users"].insert_many([
        {"email": ADMIN, "name": "Ada", "role": "admin"},
        {"email": SELLER, "name": "Sam", "role": "seller", "status": "Verified"},
        {"email": CUSTOMER, "name": "Cleo", "role": "customer"},
    ])
    return db["users"]


@pytest.fixture
def login(client):
    def _login(email):
        res = client.post("/jwt", json={"email": email})
        assert res.status_code == 200
        return res

    return _login


@pytest.fixture
def plant(db):
    result = db["plants"].insert_one({
        "name": "Rose",
        "category": "Flower",
        "image": "rose.png",
        "price": 12.5,
        "quantity": 10,
        "seller": {"email": SELLER, "name": "Sam"},
    })
    return str(result.inserted_id)
