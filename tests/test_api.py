from conftest import LAGOS, north_of


def report_position(client, point, request_id=None, **kwargs):
    if request_id is None:
        request_id = client.get("/api/location").json()["request_id"]
    return client.post(
        "/api/location/report",
        data={"request_id": request_id, "latitude": point.latitude, "longitude": point.longitude},
        **kwargs,
    )


# ==================== MENU ====================

def test_menu_lists_available_items(client):
    response = client.get("/api/menu")
    assert response.status_code == 200
    assert {item["id"] for item in response.json()} == {1, 2}


# ==================== CART ====================

def test_new_session_is_loading_location(client):
    response = client.get("/api/cart")
    assert response.status_code == 200
    assert "session_id" in response.cookies

    location = client.get("/api/location").json()
    assert location["request_id"] == 1
    assert location["location"]["is_loading"] is True
    assert location["location"]["coordinates"] is None


def test_cart_flow_with_location(client):
    client.post("/api/cart/items", data={"item_id": 1})
    cart = client.post("/api/cart/items", data={"item_id": 2}).json()

    assert cart["summary"]["subtotal"] == 2000.0
    assert cart["summary"]["delivery_fee"] == 0
    assert cart["summary"]["message"] == "Calculating delivery fee based on your location..."

    response = report_position(client, north_of(LAGOS, 4.0))
    assert response.status_code == 200
    summary = response.json()["summary"]
    assert summary["delivery_fee"] == 500
    assert summary["total"] == 2500.0
    assert summary["is_out_of_zone"] is False
    assert "4.0km" in summary["message"]


def test_quantity_and_remove(client):
    client.post("/api/cart/items", data={"item_id": 1})
    cart = client.post("/api/cart/items/1/quantity", data={"quantity": 3}).json()
    assert cart["items"][0]["quantity"] == 3
    assert cart["summary"]["total_items"] == 3

    client.post("/api/cart/items", data={"item_id": 2})
    cart = client.post("/api/cart/items/1/quantity", data={"quantity": 0}).json()
    assert [item["id"] for item in cart["items"]] == [2]

    cart = client.post("/api/cart/items/2/remove").json()
    assert cart["items"] == []

    client.post("/api/cart/items", data={"item_id": 2})
    cart = client.post("/api/cart/clear").json()
    assert cart["summary"]["subtotal"] == 0


def test_cart_errors(client):
    assert client.post("/api/cart/items", data={"item_id": 99}).status_code == 404
    # Unavailable items can't be ordered
    assert client.post("/api/cart/items", data={"item_id": 3}).status_code == 404
    assert client.post("/api/cart/items/1/remove").status_code == 404
    assert client.post("/api/cart/items/1/quantity", data={"quantity": 2}).status_code == 404


def test_admin_cart_is_disabled(client, admin_headers):
    client.post("/api/cart/items", data={"item_id": 1}, headers=admin_headers)
    report_position(client, north_of(LAGOS, 4.0))
    cart = client.get("/api/cart", headers=admin_headers).json()

    assert cart["items"] == []
    assert cart["summary"] == {
        "subtotal": 0,
        "total_items": 0,
        "delivery_fee": 0,
        "total": 0,
        "distance_km": None,
        "message": "Cart is disabled for administrators.",
        "is_out_of_zone": False,
    }


def test_cart_view_follows_each_requests_token(client, customer_headers, admin_headers):
    client.post("/api/cart/items", data={"item_id": 1}, headers=customer_headers)

    # Same session cookie, different callers
    staff_view = client.get("/api/cart", headers=admin_headers).json()
    customer_view = client.get("/api/cart", headers=customer_headers).json()
    anonymous_view = client.get("/api/cart").json()

    assert staff_view["items"] == []
    assert staff_view["summary"]["subtotal"] == 0
    assert [line["id"] for line in customer_view["items"]] == [1]
    assert customer_view["summary"]["subtotal"] == 1500.0
    assert anonymous_view["summary"]["subtotal"] == 1500.0


# ==================== LOCATION ====================

def test_out_of_zone_location(client):
    client.post("/api/cart/items", data={"item_id": 1})
    summary = report_position(client, north_of(LAGOS, 9.2)).json()["summary"]

    assert summary["is_out_of_zone"] is True
    assert summary["delivery_fee"] == 0
    assert summary["total"] == 1500.0
    assert "9.2km" in summary["message"]
    assert "outside" in summary["message"]


def test_location_error_then_retry(client):
    client.post("/api/cart/items", data={"item_id": 1})
    summary = client.post("/api/location/report", data={"request_id": 1, "error_code": 1}).json()["summary"]
    assert summary["delivery_fee"] == 500
    assert summary["message"].endswith("Error: Geolocation permission was denied.")

    retry = client.post("/api/location/request").json()
    assert retry["request_id"] == 2
    assert retry["location"]["is_loading"] is True
    assert retry["location"]["error"] is None

    summary = report_position(client, north_of(LAGOS, 2.0), request_id=2).json()["summary"]
    assert summary["distance_km"] is not None
    assert summary["delivery_fee"] == 500


def test_stale_report_is_ignored(client):
    client.get("/api/cart")
    client.post("/api/location/request")
    client.post("/api/location/request")

    # Request 2 was superseded by request 3 and is no longer parked
    assert report_position(client, north_of(LAGOS, 2.0), request_id=2).status_code == 404
    location = client.get("/api/location").json()["location"]
    assert location["is_loading"] is True
    assert location["generation"] == 3

    response = report_position(client, north_of(LAGOS, 3.0), request_id=3)
    assert response.json()["location"]["is_loading"] is False


def test_report_validation(client):
    client.get("/api/cart")
    assert client.post("/api/location/report", data={"request_id": 1}).status_code == 400
    both = {"request_id": 1, "latitude": 6.5, "longitude": 3.4, "error_code": 2}
    assert client.post("/api/location/report", data=both).status_code == 400
    out_of_range = {"request_id": 1, "latitude": 95, "longitude": 3.4}
    assert client.post("/api/location/report", data=out_of_range).status_code == 400
    assert report_position(client, LAGOS, request_id=42).status_code == 404


def test_restaurant_info(client):
    info = client.get("/api/location/restaurant").json()
    assert (info["lat"], info["lng"]) == (6.5244, 3.3792)
    assert info["max_radius_km"] == 7
    assert info["delivery_fee"] == 500


def test_check_delivery(client):
    near = north_of(LAGOS, 4.5)
    result = client.get("/api/location/check-delivery", params={"lat": near.latitude, "lng": near.longitude}).json()
    assert result["is_deliverable"] is True
    assert result["distance_km"] == 4.5
    assert result["eta_minutes"] == 33

    far = north_of(LAGOS, 9.2)
    result = client.get("/api/location/check-delivery", params={"lat": far.latitude, "lng": far.longitude}).json()
    assert result["is_deliverable"] is False
    assert result["eta_minutes"] is None
    assert result["delivery_fee"] == 0


# ==================== CHECKOUT ====================

CUSTOMER_DETAILS = {"name": "Ada Obi", "phone": "08031234567", "address": "12 Admiralty Way, Lekki"}


def test_checkout_in_zone(client, customer_headers):
    client.post("/api/cart/items", data={"item_id": 1}, headers=customer_headers)
    report_position(client, north_of(LAGOS, 4.0), headers=customer_headers)

    response = client.post("/api/checkout/validate", data=CUSTOMER_DETAILS, headers=customer_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["order"]["total"] == 2000.0
    assert body["message"] == "Order creation functionality is disabled."


def test_checkout_blocked_out_of_zone(client, customer_headers):
    client.post("/api/cart/items", data={"item_id": 1}, headers=customer_headers)
    report_position(client, north_of(LAGOS, 9.2), headers=customer_headers)

    response = client.post("/api/checkout/validate", data=CUSTOMER_DETAILS, headers=customer_headers)
    assert response.status_code == 409
    assert "outside" in response.json()["detail"]


def test_checkout_requires_login(client):
    client.post("/api/cart/items", data={"item_id": 1})
    response = client.post("/api/checkout/validate", data=CUSTOMER_DETAILS)
    assert response.status_code == 401


def test_checkout_rejects_bad_phone(client, customer_headers):
    client.post("/api/cart/items", data={"item_id": 1}, headers=customer_headers)
    report_position(client, north_of(LAGOS, 1.0), headers=customer_headers)
    response = client.post(
        "/api/checkout/validate",
        data={**CUSTOMER_DETAILS, "phone": "0803"},
        headers=customer_headers,
    )
    assert response.status_code == 400
    assert "11-digit" in response.json()["detail"]
