import logging
import os
from typing import Optional, Tuple

from fastapi import FastAPI, Request, Form, Depends, Response, HTTPException, Header
from sqlalchemy.orm import Session

from config import load_config, get_session_limits, DeliveryQuoteConfig
from database import get_db, init_db
from models import get_available_items, get_available_item
from auth import UserRole, get_role_from_token
from cart import CartError
from checkout import CheckoutBlocked, prepare_checkout, ORDER_DISABLED_MESSAGE
from geolocation import BrowserLocationProvider, UnknownLocationRequest
from location_utils import Coordinates, is_in_delivery_zone, estimate_delivery_time
from session import SessionRegistry, StorefrontSession

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

SESSION_COOKIE = "session_id"


def create_app(
    config: Optional[DeliveryQuoteConfig] = None,
    provider_factory=BrowserLocationProvider,
    session_limits: Optional[Tuple[float, int]] = None,
) -> FastAPI:
    app = FastAPI(title="ChopXpress API", version="1.0")
    app.state.config = config or load_config()
    app.state.provider_factory = provider_factory
    app.state.session_limits = session_limits or get_session_limits()

    # ==================== STARTUP ====================
    @app.on_event("startup")
    def startup_event():
        init_db()
        idle_timeout, max_sessions = app.state.session_limits
        app.state.sessions = SessionRegistry(
            app.state.config,
            app.state.provider_factory,
            idle_timeout=idle_timeout,
            max_sessions=max_sessions,
        )
        logger.info(
            "Delivering within %skm of (%s, %s)",
            app.state.config.max_delivery_distance_km,
            app.state.config.restaurant_location.latitude,
            app.state.config.restaurant_location.longitude,
        )

    @app.on_event("shutdown")
    def shutdown_event():
        app.state.sessions.close()

    _register_routes(app)
    return app


# ==================== SESSION HELPERS ====================
def get_storefront_session(request: Request, response: Response) -> StorefrontSession:
    """Session from cookie, created on first visit or after it expired"""
    registry: SessionRegistry = request.app.state.sessions
    cookie_id = request.cookies.get(SESSION_COOKIE)
    session = registry.get_or_create(cookie_id)
    if session.session_id != cookie_id:
        response.set_cookie(SESSION_COOKIE, session.session_id, httponly=True)
    return session


def get_request_role(request: Request, authorization: Optional[str] = Header(None)) -> Optional[UserRole]:
    """Role from this request's bearer token or access_token cookie"""
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization.replace("Bearer ", "")
    else:
        token = request.cookies.get("access_token")
    return get_role_from_token(token)


def cart_response(session: StorefrontSession, role: Optional[UserRole]) -> dict:
    lines = session.cart.lines if session.cart_enabled(role) else []
    return {
        "items": [line.to_dict() for line in lines],
        "summary": session.summary(role).to_dict(),
    }


def location_response(session: StorefrontSession) -> dict:
    return {
        "request_id": getattr(session.provider, "last_request_id", None),
        "location": session.location.state.to_dict(),
    }


def _register_routes(app: FastAPI):
    # ==================== MENU API ====================
    @app.get("/api/menu")
    async def menu(db: Session = Depends(get_db)):
        return [item.to_dict() for item in get_available_items(db)]

    # ==================== CART API ====================
    @app.get("/api/cart")
    def get_cart(
        session: StorefrontSession = Depends(get_storefront_session),
        role: Optional[UserRole] = Depends(get_request_role),
    ):
        return cart_response(session, role)

    @app.post("/api/cart/items")
    def add_to_cart(
        item_id: int = Form(...),
        session: StorefrontSession = Depends(get_storefront_session),
        role: Optional[UserRole] = Depends(get_request_role),
        db: Session = Depends(get_db),
    ):
        if not session.cart_enabled(role):
            return cart_response(session, role)
        item = get_available_item(db, item_id)
        if not item:
            raise HTTPException(status_code=404, detail="Item not found")
        try:
            session.cart.add(item.to_cart_item())
        except CartError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return cart_response(session, role)

    @app.post("/api/cart/items/{item_id}/quantity")
    def update_quantity(
        item_id: int,
        quantity: int = Form(...),
        session: StorefrontSession = Depends(get_storefront_session),
        role: Optional[UserRole] = Depends(get_request_role),
    ):
        if not session.cart_enabled(role):
            return cart_response(session, role)
        try:
            session.cart.set_quantity(item_id, quantity)
        except CartError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return cart_response(session, role)

    @app.post("/api/cart/items/{item_id}/remove")
    def remove_from_cart(
        item_id: int,
        session: StorefrontSession = Depends(get_storefront_session),
        role: Optional[UserRole] = Depends(get_request_role),
    ):
        if not session.cart_enabled(role):
            return cart_response(session, role)
        try:
            session.cart.remove(item_id)
        except CartError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return cart_response(session, role)

    @app.post("/api/cart/clear")
    def clear_cart(
        session: StorefrontSession = Depends(get_storefront_session),
        role: Optional[UserRole] = Depends(get_request_role),
    ):
        if session.cart_enabled(role):
            session.cart.clear()
        return cart_response(session, role)

    # ==================== LOCATION SERVICES ====================
    @app.get("/api/location")
    def get_location(session: StorefrontSession = Depends(get_storefront_session)):
        return location_response(session)

    @app.post("/api/location/request")
    def request_location(session: StorefrontSession = Depends(get_storefront_session)):
        """Retry: start a fresh acquisition, superseding any pending one"""
        session.location.request_location()
        return location_response(session)

    @app.post("/api/location/report")
    def report_location(
        request_id: int = Form(...),
        latitude: Optional[float] = Form(None),
        longitude: Optional[float] = Form(None),
        error_code: Optional[int] = Form(None),
        session: StorefrontSession = Depends(get_storefront_session),
        role: Optional[UserRole] = Depends(get_request_role),
    ):
        """Browser reports the outcome of navigator.geolocation"""
        provider = session.provider
        if not isinstance(provider, BrowserLocationProvider):
            raise HTTPException(status_code=400, detail="Location is not reported by the browser")

        has_position = latitude is not None and longitude is not None
        if has_position == (error_code is not None):
            raise HTTPException(status_code=400, detail="Send either latitude and longitude or an error_code")
        if has_position and not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise HTTPException(status_code=400, detail="Coordinates out of range")

        try:
            if has_position:
                provider.report_position(request_id, latitude, longitude)
            else:
                provider.report_error(request_id, error_code)
        except UnknownLocationRequest as e:
            logger.warning("Rejected location report: %s", e)
            raise HTTPException(status_code=404, detail=str(e))

        return {**location_response(session), "summary": session.summary(role).to_dict()}

    @app.get("/api/location/restaurant")
    async def get_restaurant_info(request: Request):
        """Restaurant location for map display"""
        config: DeliveryQuoteConfig = request.app.state.config
        return {
            "lat": config.restaurant_location.latitude,
            "lng": config.restaurant_location.longitude,
            "name": "ChopXpress Kitchen",
            "max_radius_km": config.max_delivery_distance_km,
            "delivery_fee": config.flat_delivery_fee,
        }

    @app.get("/api/location/check-delivery")
    async def check_delivery_zone(request: Request, lat: float, lng: float):
        """Check if coordinates are within delivery zone"""
        config: DeliveryQuoteConfig = request.app.state.config
        is_deliverable, distance = is_in_delivery_zone(
            Coordinates(latitude=lat, longitude=lng),
            config.restaurant_location,
            config.max_delivery_distance_km,
        )
        eta = estimate_delivery_time(distance) if is_deliverable else None

        return {
            "is_deliverable": is_deliverable,
            "distance_km": round(distance, 2),
            "eta_minutes": eta,
            "max_radius_km": config.max_delivery_distance_km,
            "delivery_fee": config.flat_delivery_fee if is_deliverable else 0,
        }

    # ==================== CHECKOUT API ====================
    @app.post("/api/checkout/validate")
    def validate_checkout(
        name: str = Form(""),
        phone: str = Form(""),
        address: str = Form(""),
        notes: Optional[str] = Form(None),
        session: StorefrontSession = Depends(get_storefront_session),
        role: Optional[UserRole] = Depends(get_request_role),
    ):
        try:
            draft = prepare_checkout(session, role, name, phone, address, notes)
        except CheckoutBlocked as e:
            raise HTTPException(status_code=e.status_code, detail=e.message)
        return {"order": draft, "message": ORDER_DISABLED_MESSAGE}


app = create_app()
