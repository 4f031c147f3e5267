"""
Geolocation acquisition for ChopXpress

A LocationTracker asks a platform location service for the device position and
keeps a three-state snapshot (loading / coordinates / error) that the pricing
engine reads. Every request is tagged with a generation number so a slow,
superseded response can never overwrite the result of a newer request.
"""
import enum
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Protocol, Tuple

from location_utils import Coordinates

logger = logging.getLogger(__name__)


# ==================== ERRORS ====================
class LocationErrorCode(enum.IntEnum):
    """Codes reported by the browser Geolocation API"""
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class LocationError(Exception):
    message = "An unknown error occurred while fetching location."

    def __init__(self, code: Optional[int] = None):
        super().__init__(self.message)
        self.code = code


class LocationPermissionDenied(LocationError):
    message = "Geolocation permission was denied."


class LocationUnavailable(LocationError):
    message = "Location information is unavailable."


class LocationTimeout(LocationError):
    message = "The request to get user location timed out."


class LocationUnknown(LocationError):
    pass


_ERRORS_BY_CODE = {
    LocationErrorCode.PERMISSION_DENIED: LocationPermissionDenied,
    LocationErrorCode.POSITION_UNAVAILABLE: LocationUnavailable,
    LocationErrorCode.TIMEOUT: LocationTimeout,
}


def classify_location_error(code) -> LocationError:
    """Map a platform failure code to one of the four location errors"""
    try:
        error_class = _ERRORS_BY_CODE.get(LocationErrorCode(code), LocationUnknown)
    except (ValueError, TypeError):
        error_class = LocationUnknown
    return error_class(code)


class UnknownLocationRequest(Exception):
    """Raised when a report names a request that is not pending"""


# ==================== STATE ====================
@dataclass(frozen=True)
class LocationState:
    is_loading: bool = True
    coordinates: Optional[Coordinates] = None
    error: Optional[str] = None
    generation: int = 0

    def to_dict(self) -> dict:
        return {
            "is_loading": self.is_loading,
            "coordinates": (
                {"latitude": self.coordinates.latitude, "longitude": self.coordinates.longitude}
                if self.coordinates else None
            ),
            "error": self.error,
            "generation": self.generation,
        }


SuccessCallback = Callable[[Coordinates], None]
FailureCallback = Callable[[int], None]


class LocationProvider(Protocol):
    def get_current_position(self, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        ...


# ==================== TRACKER ====================
class LocationTracker:
    """Holds the acquisition state for one storefront session"""

    def __init__(self, provider: LocationProvider):
        self._provider = provider
        self._lock = threading.Lock()
        self._state = LocationState()
        self._generation = 0
        self._waiters: Dict[int, Future] = {}

    @property
    def state(self) -> LocationState:
        return self._state

    def request_location(self) -> Future:
        """
        Start a new acquisition. Returns a future resolved with the state
        snapshot once this request settles (or is superseded).
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._state = replace(self._state, is_loading=True, error=None, generation=generation)
            superseded = list(self._waiters.values())
            self._waiters = {generation: Future()}
            waiter = self._waiters[generation]
            snapshot = self._state

        # Older requests can no longer change state
        for stale in superseded:
            stale.set_result(snapshot)

        logger.info("Location request %d started", generation)
        self._provider.get_current_position(
            lambda coordinates: self._on_success(generation, coordinates),
            lambda code: self._on_failure(generation, code),
        )
        return waiter

    def _on_success(self, generation: int, coordinates: Coordinates):
        logger.info("Location request %d resolved", generation)
        self._settle(generation, LocationState(
            is_loading=False,
            coordinates=coordinates,
            error=None,
            generation=generation,
        ))

    def _on_failure(self, generation: int, code):
        error = classify_location_error(code)
        logger.info("Location request %d failed: %s", generation, error.message)
        self._settle(generation, LocationState(
            is_loading=False,
            error=error.message,
            generation=generation,
        ))

    def _settle(self, generation: int, new_state: LocationState):
        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding stale location result %d (latest %d)", generation, self._generation)
                return
            if new_state.error is not None:
                # A failure keeps whatever position we already had
                new_state = replace(new_state, coordinates=self._state.coordinates)
            self._state = new_state
            waiter = self._waiters.pop(generation, None)
        if waiter is not None:
            waiter.set_result(new_state)

    def close(self):
        """Release anyone still waiting on an unanswered request"""
        with self._lock:
            waiters = list(self._waiters.values())
            self._waiters.clear()
            # Bump the generation so late callbacks are ignored
            self._generation += 1
        for waiter in waiters:
            waiter.cancel()


# ==================== PROVIDERS ====================
class BrowserLocationProvider:
    """
    Location service backed by the customer's browser.

    The browser runs navigator.geolocation itself and reports the outcome via
    the API; until then the tracker callbacks are parked under a request id.
    Only the newest request stays parked: asking again drops the older one,
    so a late report for it is rejected as unknown.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: Dict[int, Tuple[SuccessCallback, FailureCallback]] = {}
        self._next_id = 0
        self.last_request_id: Optional[int] = None

    def get_current_position(self, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        with self._lock:
            self._next_id += 1
            self._pending.clear()
            self._pending[self._next_id] = (on_success, on_failure)
            self.last_request_id = self._next_id

    def _take(self, request_id: int) -> Tuple[SuccessCallback, FailureCallback]:
        with self._lock:
            callbacks = self._pending.pop(request_id, None)
        if callbacks is None:
            raise UnknownLocationRequest(f"No pending location request {request_id}")
        return callbacks

    def report_position(self, request_id: int, latitude: float, longitude: float):
        on_success, _ = self._take(request_id)
        on_success(Coordinates(latitude=latitude, longitude=longitude))

    def report_error(self, request_id: int, code: int):
        _, on_failure = self._take(request_id)
        on_failure(code)

    @property
    def pending_count(self) -> int:
        return len(self._pending)


class StaticLocationProvider:
    """Answers immediately with a fixed position or failure code"""

    def __init__(self, coordinates: Optional[Coordinates] = None, error_code: Optional[int] = None):
        self.coordinates = coordinates
        self.error_code = error_code

    def get_current_position(self, on_success: SuccessCallback, on_failure: FailureCallback) -> None:
        if self.coordinates is not None:
            on_success(self.coordinates)
        else:
            on_failure(self.error_code if self.error_code is not None else 0)
