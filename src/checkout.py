"""Checkout gate for ChopXpress"""
import logging
import re
from typing import Dict, Optional

from auth import UserRole
from session import StorefrontSession

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\d{11}$")
ORDER_DISABLED_MESSAGE = "Order creation functionality is disabled."


class CheckoutBlocked(Exception):
    """Checkout cannot go ahead for this session"""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def validate_order_details(name: str, phone: str, address: str) -> Dict[str, str]:
    """Field errors for the delivery form; empty dict when valid"""
    errors = {}
    if not (name or "").strip():
        errors["name"] = "Full name is required."
    if not (phone or "").strip():
        errors["phone"] = "Phone number is required."
    elif not PHONE_PATTERN.match(phone):
        errors["phone"] = "Please enter a valid 11-digit phone number."
    if not (address or "").strip():
        errors["address"] = "Delivery address is required."
    return errors


def prepare_checkout(
    session: StorefrontSession,
    role: Optional[UserRole],
    name: str,
    phone: str,
    address: str,
    notes: Optional[str] = None,
) -> dict:
    """
    Check the caller can place an order from this session and build the order draft.
    Raises CheckoutBlocked when it cannot.
    """
    if role is None:
        raise CheckoutBlocked("Please login to place an order", status_code=401)
    if not session.cart_enabled(role):
        raise CheckoutBlocked("Cart is disabled for administrators.", status_code=403)
    if len(session.cart) == 0:
        raise CheckoutBlocked("Your cart is empty")

    summary = session.summary(role)
    if summary.is_out_of_zone:
        logger.warning("Checkout blocked for session %s: outside delivery zone", session.session_id[:8])
        raise CheckoutBlocked(summary.message, status_code=409)

    errors = validate_order_details(name, phone, address)
    if errors:
        raise CheckoutBlocked("; ".join(errors.values()))

    return {
        "customer": {
            "name": name.strip(),
            "phone": phone,
            "address": address.strip(),
            "notes": notes,
        },
        "items": [line.to_dict() for line in session.cart.lines],
        "subtotal": summary.subtotal,
        "delivery_fee": summary.delivery_fee,
        "total": summary.total,
        "delivery_message": summary.message,
    }
