import importlib.util
import os

import pytest
from jose import jwt

import config
from auth import ALGORITHM, UserRole, create_access_token, get_role_from_token
from config import get_session_limits, load_config, load_dotenv_manual


@pytest.fixture
def environ(monkeypatch):
    """Private copy of the environment so .env loading cannot leak between tests"""
    monkeypatch.setattr(os, "environ", dict(os.environ))
    return os.environ


def load_fresh_config():
    """Execute config.py again, as a first import would"""
    module_spec = importlib.util.spec_from_file_location("config_first_import", config.__file__)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def test_importing_config_loads_dotenv(environ, tmp_path, monkeypatch):
    (tmp_path / ".env").write_text("# local settings\nDATABASE_URL=sqlite:///from-dotenv.db\n")
    environ.pop("DATABASE_URL", None)
    monkeypatch.chdir(tmp_path)

    fresh = load_fresh_config()

    assert fresh.get_database_url() == "sqlite:///from-dotenv.db"


def test_real_environment_wins_over_dotenv(environ, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("DATABASE_URL=sqlite:///from-dotenv.db\n")
    environ["DATABASE_URL"] = "sqlite://"

    load_dotenv_manual(str(env_file))

    assert config.get_database_url() == "sqlite://"


def test_secret_key_from_dotenv_signs_tokens(environ, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("SECRET_KEY=from-dotenv\n")
    environ.pop("SECRET_KEY", None)

    load_dotenv_manual(str(env_file))
    token = create_access_token("7", "chidi@example.com", UserRole.CUSTOMER)

    assert jwt.decode(token, "from-dotenv", algorithms=[ALGORITHM])["sub"] == "7"
    assert get_role_from_token(token) is UserRole.CUSTOMER


def test_changing_secret_key_invalidates_tokens(environ):
    environ["SECRET_KEY"] = "first"
    token = create_access_token("7", "chidi@example.com", UserRole.ADMIN)
    assert get_role_from_token(token) is UserRole.ADMIN

    environ["SECRET_KEY"] = "second"
    assert get_role_from_token(token) is None


def test_load_config_defaults(environ):
    for name in ("RESTAURANT_LAT", "RESTAURANT_LNG", "DELIVERY_FEE", "MAX_DELIVERY_DISTANCE_KM"):
        environ.pop(name, None)

    loaded = load_config()

    assert loaded.restaurant_location.latitude == 6.5244
    assert loaded.restaurant_location.longitude == 3.3792
    assert loaded.flat_delivery_fee == 500.0
    assert loaded.max_delivery_distance_km == 7.0


@pytest.mark.parametrize("name, value", [
    ("DELIVERY_FEE", "-1"),
    ("MAX_DELIVERY_DISTANCE_KM", "-0.5"),
    ("RESTAURANT_LAT", "north"),
])
def test_load_config_rejects_bad_values(environ, name, value):
    environ[name] = value
    with pytest.raises(ValueError, match=name):
        load_config()


def test_session_limits(environ):
    environ.pop("SESSION_IDLE_MINUTES", None)
    environ.pop("MAX_SESSIONS", None)
    assert get_session_limits() == (1800.0, 10000)

    environ["SESSION_IDLE_MINUTES"] = "5"
    environ["MAX_SESSIONS"] = "200"
    assert get_session_limits() == (300.0, 200)

    environ["MAX_SESSIONS"] = "0"
    with pytest.raises(ValueError, match="MAX_SESSIONS"):
        get_session_limits()
