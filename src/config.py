"""Static configuration for ChopXpress"""
import os
from dataclasses import dataclass

from location_utils import Coordinates

# Defaults (Lagos kitchen)
DEFAULT_RESTAURANT_LAT = 6.5244
DEFAULT_RESTAURANT_LNG = 3.3792
DEFAULT_DELIVERY_FEE = 500.0
DEFAULT_MAX_DELIVERY_DISTANCE_KM = 7.0
DEFAULT_DATABASE_URL = "sqlite:///../chopxpress.db"
DEFAULT_SESSION_IDLE_MINUTES = 30.0
DEFAULT_MAX_SESSIONS = 10000


# Manual .env loader
def load_dotenv_manual(filepath=".env"):
    if os.path.exists(filepath):
        with open(filepath, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                key, value = line.split("=", 1)
                os.environ.setdefault(key.strip(), value.strip())


# Runs before database and auth read DATABASE_URL and SECRET_KEY
load_dotenv_manual()


@dataclass(frozen=True)
class DeliveryQuoteConfig:
    restaurant_location: Coordinates
    flat_delivery_fee: float
    max_delivery_distance_km: float


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def load_config() -> DeliveryQuoteConfig:
    """
    Build the delivery configuration from the environment.
    Raises ValueError for values the pricing engine cannot work with.
    """
    config = DeliveryQuoteConfig(
        restaurant_location=Coordinates(
            latitude=_get_float("RESTAURANT_LAT", DEFAULT_RESTAURANT_LAT),
            longitude=_get_float("RESTAURANT_LNG", DEFAULT_RESTAURANT_LNG),
        ),
        flat_delivery_fee=_get_float("DELIVERY_FEE", DEFAULT_DELIVERY_FEE),
        max_delivery_distance_km=_get_float("MAX_DELIVERY_DISTANCE_KM", DEFAULT_MAX_DELIVERY_DISTANCE_KM),
    )
    if config.flat_delivery_fee < 0:
        raise ValueError("DELIVERY_FEE cannot be negative")
    if config.max_delivery_distance_km < 0:
        raise ValueError("MAX_DELIVERY_DISTANCE_KM cannot be negative")
    return config


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)


def get_session_limits():
    """(idle timeout in seconds, max live sessions) for the session registry"""
    idle_minutes = _get_float("SESSION_IDLE_MINUTES", DEFAULT_SESSION_IDLE_MINUTES)
    max_sessions = int(_get_float("MAX_SESSIONS", DEFAULT_MAX_SESSIONS))
    if idle_minutes <= 0:
        raise ValueError("SESSION_IDLE_MINUTES must be positive")
    if max_sessions < 1:
        raise ValueError("MAX_SESSIONS must be at least 1")
    return idle_minutes * 60, max_sessions
