"""
Delivery pricing for ChopXpress

Turns the cart, the customer's location state and the static delivery config
into the numbers the cart summary and checkout show. Everything here is a pure
function of its inputs, so it is safe to call on every request.
"""
import logging
from dataclasses import dataclass, asdict
from typing import Iterable, Optional

from auth import UserRole, is_staff
from cart import Cart, CartLine
from config import DeliveryQuoteConfig
from geolocation import LocationState
from location_utils import format_distance, haversine_distance

logger = logging.getLogger(__name__)

CALCULATING_MESSAGE = "Calculating delivery fee based on your location..."
ADMIN_DISABLED_MESSAGE = "Cart is disabled for administrators."


@dataclass(frozen=True)
class DeliveryQuote:
    delivery_fee: float
    distance_km: Optional[float] = None
    message: Optional[str] = None
    is_out_of_zone: bool = False


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    total_items: int
    delivery_fee: float
    total: float


@dataclass(frozen=True)
class CartSummary:
    """What consumers render: totals plus the delivery quote"""
    subtotal: float
    total_items: int
    delivery_fee: float
    total: float
    distance_km: Optional[float]
    message: Optional[str]
    is_out_of_zone: bool

    def to_dict(self) -> dict:
        return asdict(self)


ADMIN_DISABLED_SUMMARY = CartSummary(
    subtotal=0,
    total_items=0,
    delivery_fee=0,
    total=0,
    distance_km=None,
    message=ADMIN_DISABLED_MESSAGE,
    is_out_of_zone=False,
)


def _format_radius(radius_km: float) -> str:
    """7.0 reads as 7, anything fractional is printed in full"""
    if float(radius_km).is_integer():
        return str(int(radius_km))
    return str(float(radius_km))


def quote_delivery(subtotal: float, location: LocationState, config: DeliveryQuoteConfig) -> DeliveryQuote:
    """Delivery fee, distance and message for the given location state"""
    fee = config.flat_delivery_fee

    if subtotal == 0:
        return DeliveryQuote(delivery_fee=0)

    if location.is_loading:
        # Don't show a fee while calculating
        return DeliveryQuote(delivery_fee=0, message=CALCULATING_MESSAGE)

    if location.error:
        return DeliveryQuote(
            delivery_fee=fee,
            message=f"Could not determine your location. A base delivery fee will be applied. Error: {location.error}",
        )

    if location.coordinates is not None:
        distance = haversine_distance(location.coordinates, config.restaurant_location)
        if distance <= config.max_delivery_distance_km:
            return DeliveryQuote(
                delivery_fee=fee,
                distance_km=distance,
                message=f"You are {format_distance(distance)} away. Delivery fee calculated.",
            )
        # No fee since we can't deliver
        return DeliveryQuote(
            delivery_fee=0,
            distance_km=distance,
            is_out_of_zone=True,
            message=(
                f"Sorry, at {format_distance(distance)} away, you are outside our "
                f"{_format_radius(config.max_delivery_distance_km)}km delivery zone."
            ),
        )

    logger.warning("Location state has no coordinates, error or pending request; applying base fee")
    return DeliveryQuote(delivery_fee=fee)


def compute_totals(lines: Iterable[CartLine], quote: DeliveryQuote) -> CartTotals:
    lines = list(lines)
    subtotal = sum(line.item.price * line.quantity for line in lines)
    total_items = sum(line.quantity for line in lines)
    return CartTotals(
        subtotal=subtotal,
        total_items=total_items,
        delivery_fee=quote.delivery_fee,
        total=subtotal + quote.delivery_fee,
    )


def evaluate_delivery(
    cart: Cart,
    location: LocationState,
    config: DeliveryQuoteConfig,
    role: Optional[UserRole] = None,
) -> CartSummary:
    """Full cart summary for a session; staff always get the disabled cart"""
    if is_staff(role):
        return ADMIN_DISABLED_SUMMARY

    quote = quote_delivery(cart.subtotal, location, config)
    totals = compute_totals(cart.lines, quote)
    return CartSummary(
        subtotal=totals.subtotal,
        total_items=totals.total_items,
        delivery_fee=totals.delivery_fee,
        total=totals.total,
        distance_km=quote.distance_km,
        message=quote.message,
        is_out_of_zone=quote.is_out_of_zone,
    )
