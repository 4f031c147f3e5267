import math
import os

# Keep the app off the on-disk database during tests
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth import UserRole, create_access_token
from config import DeliveryQuoteConfig
from database import create_db_engine, get_db, init_db
from location_utils import Coordinates, EARTH_RADIUS_KM
from main import create_app
from models import MenuItem

LAGOS = Coordinates(latitude=6.5244, longitude=3.3792)


def north_of(origin: Coordinates, km: float) -> Coordinates:
    """Point km kilometres due north of origin along the meridian"""
    return Coordinates(
        latitude=origin.latitude + math.degrees(km / EARTH_RADIUS_KM),
        longitude=origin.longitude,
    )


@pytest.fixture
def config():
    return DeliveryQuoteConfig(
        restaurant_location=LAGOS,
        flat_delivery_fee=500,
        max_delivery_distance_km=7,
    )


@pytest.fixture
def db_session():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSession()
    db.add_all([
        MenuItem(id=1, name="Jollof Rice & Chicken", price=1500.0, category="Rice Dishes", image_url="/jollof.png"),
        MenuItem(id=2, name="Chilled Zobo", price=500.0, category="Drinks", image_url="/zobo.png"),
        MenuItem(id=3, name="Moi Moi", price=800.0, category="Sides", is_available=False),
    ])
    db.commit()
    yield db
    db.close()
    engine.dispose()


@pytest.fixture
def client(config, db_session):
    app = create_app(config)

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def customer_headers():
    token = create_access_token("42", "ada@example.com", UserRole.CUSTOMER)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers():
    token = create_access_token("1", "staff@example.com", UserRole.ADMIN)
    return {"Authorization": f"Bearer {token}"}
