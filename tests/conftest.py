import os
import tempfile

# Must be set before the logger module is imported
os.environ.setdefault("APP_LOG_DIR", tempfile.mkdtemp(prefix="tracklet-logs-"))
os.environ.setdefault("APP_ENV", "testing")

from datetime import datetime, timedelta, timezone

import jwt
import mongomock
import pytest

from tracklet import create_app
from tracklet.services.stock import operations

OWNER_ID = "plant-001"


@pytest.fixture
def app():
    app = create_app("testing", mongo_client=mongomock.MongoClient())
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


def make_token(app, claims=None, expires_in=timedelta(hours=1)):
    payload = {
        "user_id": OWNER_ID,
        "account_type": "gas_plant",
        "exp": datetime.now(timezone.utc) + expires_in,
    }
    payload.update(claims or {})
    return jwt.encode(payload, app.config["SECRET_KEY"], algorithm="HS256")


@pytest.fixture
def auth_headers(app):
    return {"Authorization": f"Bearer {make_token(app)}"}


@pytest.fixture
def make_tank(app):
    def _make(name, total_capacity="100", available="0", owner_id=OWNER_ID, status=None, location="Yard"):
        return operations.create_tank(
            owner_id=owner_id,
            name=name,
            total_capacity=total_capacity,
            location=location,
            available=available,
            status=status,
        )
    return _make
