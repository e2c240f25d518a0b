"""
Integration tests for the Stay Booking API
Exercises authentication, property management, quotes and bookings over HTTP
"""

import pytest
from fastapi.testclient import TestClient
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from main import app


# ============================================================================
# FIXTURES
# ============================================================================

def _login(client, username: str, password: str) -> dict:
    response = client.post("/token", data={"username": username, "password": password})
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def _noon_utc(days_ahead: int) -> datetime:
    day = (datetime.now(timezone.utc) + timedelta(days=days_ahead)).date()
    return datetime(day.year, day.month, day.day, 12, 0, tzinfo=timezone.utc)


def _stay(days_ahead: int, nights: int) -> dict:
    check_in = _noon_utc(days_ahead)
    return {
        "check_in": check_in.isoformat(),
        "check_out": (check_in + timedelta(days=nights)).isoformat(),
    }


@pytest.fixture
def client():
    """FastAPI test client"""
    return TestClient(app)


@pytest.fixture
def host_headers(client):
    return _login(client, "host", "host123")


@pytest.fixture
def guest_headers(client):
    return _login(client, "guest", "guest123")


@pytest.fixture
def admin_headers(client):
    return _login(client, "admin", "admin123")


@pytest.fixture
def property_id(client, host_headers):
    """A fresh property per test keeps calendars independent"""
    payload = {
        "name": "Victoria Island Studio",
        "max_guests": 3,
        "rates": {
            "base_rate": 100000,
            "cleaning_fee": 20000,
            "security_deposit": 100000,
            "service_fee_rate": "0.05",
            "max_service_fee": 5000
        }
    }
    response = client.post("/api/properties", json=payload, headers=host_headers)
    assert response.status_code == 201
    return response.json()["property_id"]


# ============================================================================
# API TESTS - AUTHENTICATION
# ============================================================================

class TestAuthenticationAPI:
    """Test authentication endpoints"""

    @pytest.mark.integration
    @pytest.mark.api
    def test_login_success(self, client):
        response = client.post("/token", data={"username": "guest", "password": "guest123"})
        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert data["token_type"] == "bearer"

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.security
    def test_login_failure_wrong_password(self, client):
        response = client.post("/token", data={"username": "guest", "password": "nope"})
        assert response.status_code == 401
        assert "Incorrect username or password" in response.json()["detail"]

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.security
    def test_protected_endpoint_without_token(self, client):
        response = client.get("/api/bookings")
        assert response.status_code == 401

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.security
    def test_protected_endpoint_with_invalid_token(self, client):
        response = client.get("/api/bookings", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    @pytest.mark.integration
    @pytest.mark.api
    def test_users_me(self, client, host_headers):
        response = client.get("/users/me", headers=host_headers)
        assert response.status_code == 200
        assert response.json()["role"] == "HOST"


# ============================================================================
# API TESTS - HEALTH & ENUMS
# ============================================================================

class TestHealthAndEnumsAPI:
    """Test health and enum reference endpoints"""

    @pytest.mark.integration
    @pytest.mark.api
    def test_health_check(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.integration
    @pytest.mark.api
    def test_reservation_statuses(self, client):
        response = client.get("/api/enums/reservation-status")
        assert response.json()["values"] == ["PENDING", "APPROVED", "CANCELLED", "REJECTED"]


# ============================================================================
# API TESTS - PROPERTIES
# ============================================================================

class TestPropertyAPI:
    """Test property endpoints"""

    @pytest.mark.integration
    @pytest.mark.api
    def test_create_property(self, client, host_headers, property_id):
        response = client.get(f"/api/properties/{property_id}", headers=host_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["host_username"] == "host"
        assert data["timezone"] == "Africa/Lagos"
        assert data["rates"]["currency"] == "NGN"
        assert data["status"] == "ACTIVE"

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.security
    def test_guest_cannot_create_property(self, client, guest_headers):
        payload = {"name": "Loft", "max_guests": 2, "rates": {"base_rate": 50000}}
        response = client.post("/api/properties", json=payload, headers=guest_headers)
        assert response.status_code == 403

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.edge_case
    def test_invalid_rates_rejected(self, client, host_headers):
        payload = {"name": "Loft", "max_guests": 2, "rates": {"base_rate": 0}}
        response = client.post("/api/properties", json=payload, headers=host_headers)
        assert response.status_code == 422

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.edge_case
    def test_unknown_timezone_rejected(self, client, host_headers):
        payload = {"name": "Loft", "max_guests": 2, "timezone": "Nowhere/City",
                   "rates": {"base_rate": 50000}}
        response = client.post("/api/properties", json=payload, headers=host_headers)
        assert response.status_code == 400

    @pytest.mark.integration
    @pytest.mark.api
    def test_get_unknown_property(self, client, guest_headers):
        response = client.get(f"/api/properties/{uuid4()}", headers=guest_headers)
        assert response.status_code == 404

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.security
    def test_admin_can_manage_any_property(self, client, admin_headers, property_id):
        response = client.post(
            f"/api/properties/{property_id}/blocked-dates",
            json={"dates": [_noon_utc(60).date().isoformat()]},
            headers=admin_headers
        )
        assert response.status_code == 200

    @pytest.mark.integration
    @pytest.mark.api
    def test_block_and_release_dates(self, client, host_headers, property_id):
        night = _noon_utc(20).date().isoformat()
        blocked = client.post(f"/api/properties/{property_id}/blocked-dates",
                              json={"dates": [night]}, headers=host_headers)
        assert blocked.json()["blocked_dates"] == [night]

        released = client.post(f"/api/properties/{property_id}/blocked-dates/release",
                               json={"dates": [night]}, headers=host_headers)
        assert released.json()["blocked_dates"] == []


# ============================================================================
# API TESTS - QUOTES
# ============================================================================

class TestQuoteAPI:
    """Test the quote endpoint"""

    @pytest.mark.integration
    @pytest.mark.api
    def test_quote_accepted(self, client, guest_headers, property_id):
        response = client.post(f"/api/properties/{property_id}/quote",
                               json=_stay(10, 3), headers=guest_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] is True
        pricing = data["pricing"]
        assert pricing["nights"] == 3
        assert Decimal(pricing["subtotal"]) == Decimal("300000")
        assert Decimal(pricing["service_fee"]) == Decimal("5000")
        assert Decimal(pricing["total"]) == Decimal("325000")
        assert Decimal(pricing["security_deposit"]) == Decimal("100000")
        assert len(pricing["nightly_rates"]) == 3

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.edge_case
    def test_quote_too_soon(self, client, guest_headers, property_id):
        check_in = datetime.now(timezone.utc) + timedelta(hours=2)
        payload = {
            "check_in": check_in.isoformat(),
            "check_out": (check_in + timedelta(days=2)).isoformat(),
        }
        response = client.post(f"/api/properties/{property_id}/quote", json=payload, headers=guest_headers)
        data = response.json()
        assert data["accepted"] is False
        assert data["reasons"] == ["Check-in must be at least 24 hours in advance"]

    @pytest.mark.integration
    @pytest.mark.api
    def test_quote_blocked_night(self, client, host_headers, guest_headers, property_id):
        blocked = _noon_utc(11).date().isoformat()
        client.post(f"/api/properties/{property_id}/blocked-dates",
                    json={"dates": [blocked]}, headers=host_headers)
        response = client.post(f"/api/properties/{property_id}/quote",
                               json=_stay(10, 3), headers=guest_headers)
        data = response.json()
        assert data["reasons"] == ["Property not available for selected dates"]
        assert data["conflicts"] == []
        assert data["blocked_dates"] == [blocked]

    @pytest.mark.integration
    @pytest.mark.api
    def test_quote_uses_price_override(self, client, host_headers, guest_headers, property_id):
        client.put(f"/api/properties/{property_id}/price-overrides",
                   json={"night": _noon_utc(10).date().isoformat(), "price": 50000},
                   headers=host_headers)
        response = client.post(f"/api/properties/{property_id}/quote",
                               json=_stay(10, 3), headers=guest_headers)
        assert Decimal(response.json()["pricing"]["subtotal"]) == Decimal("250000")

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.edge_case
    def test_quote_unknown_property(self, client, guest_headers):
        response = client.post(f"/api/properties/{uuid4()}/quote", json=_stay(10, 3), headers=guest_headers)
        assert response.status_code == 404


# ============================================================================
# API TESTS - BOOKINGS
# ============================================================================

class TestBookingAPI:
    """Test booking endpoints"""

    @pytest.mark.integration
    @pytest.mark.api
    def test_create_booking(self, client, guest_headers, property_id):
        payload = {"property_id": property_id, "guests": 2, **_stay(10, 3)}
        response = client.post("/api/bookings", json=payload, headers=guest_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PENDING"
        assert data["guest_username"] == "guest"
        assert data["booking_number"].startswith("BK")
        assert Decimal(data["pricing"]["total"]) == Decimal("325000")

    @pytest.mark.integration
    @pytest.mark.api
    def test_overlapping_booking_rejected_with_conflicts(self, client, guest_headers, admin_headers, property_id):
        first = client.post("/api/bookings", json={"property_id": property_id, **_stay(10, 5)},
                            headers=guest_headers).json()
        response = client.post("/api/bookings", json={"property_id": property_id, **_stay(12, 5)},
                               headers=admin_headers)
        assert response.status_code == 422
        data = response.json()
        assert data["reasons"] == ["Property not available for selected dates"]
        assert [c["reservation_id"] for c in data["conflicts"]] == [first["booking_id"]]

    @pytest.mark.integration
    @pytest.mark.api
    def test_booking_blocked_night_rejected_with_dates(self, client, host_headers, guest_headers, property_id):
        blocked = _noon_utc(12).date().isoformat()
        client.post(f"/api/properties/{property_id}/blocked-dates",
                    json={"dates": [blocked]}, headers=host_headers)
        response = client.post("/api/bookings", json={"property_id": property_id, **_stay(10, 5)},
                               headers=guest_headers)
        assert response.status_code == 422
        data = response.json()
        assert data["reasons"] == ["Property not available for selected dates"]
        assert data["conflicts"] == []
        assert data["blocked_dates"] == [blocked]

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.edge_case
    def test_turnover_day_is_bookable(self, client, guest_headers, property_id):
        client.post("/api/bookings", json={"property_id": property_id, **_stay(10, 3)}, headers=guest_headers)
        response = client.post("/api/bookings", json={"property_id": property_id, **_stay(13, 2)},
                               headers=guest_headers)
        assert response.status_code == 201

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.edge_case
    def test_too_many_guests(self, client, guest_headers, property_id):
        payload = {"property_id": property_id, "guests": 4, **_stay(10, 2)}
        response = client.post("/api/bookings", json=payload, headers=guest_headers)
        assert response.status_code == 400
        assert "maximum 3 guests" in response.json()["detail"]

    @pytest.mark.integration
    @pytest.mark.api
    def test_booking_unknown_property(self, client, guest_headers):
        response = client.post("/api/bookings", json={"property_id": str(uuid4()), **_stay(10, 2)},
                               headers=guest_headers)
        assert response.status_code == 404

    @pytest.mark.integration
    @pytest.mark.api
    def test_host_approves_booking(self, client, host_headers, guest_headers, property_id):
        booking = client.post("/api/bookings", json={"property_id": property_id, **_stay(10, 2)},
                              headers=guest_headers).json()
        response = client.post(f"/api/bookings/{booking['booking_id']}/approve", headers=host_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "APPROVED"

        again = client.post(f"/api/bookings/{booking['booking_id']}/approve", headers=host_headers)
        assert again.status_code == 400

    @pytest.mark.integration
    @pytest.mark.api
    @pytest.mark.security
    def test_guest_cannot_approve(self, client, guest_headers, property_id):
        booking = client.post("/api/bookings", json={"property_id": property_id, **_stay(10, 2)},
                              headers=guest_headers).json()
        response = client.post(f"/api/bookings/{booking['booking_id']}/approve", headers=guest_headers)
        assert response.status_code == 403

    @pytest.mark.integration
    @pytest.mark.api
    def test_host_rejects_booking(self, client, host_headers, guest_headers, property_id):
        booking = client.post("/api/bookings", json={"property_id": property_id, **_stay(10, 2)},
                              headers=guest_headers).json()
        response = client.post(f"/api/bookings/{booking['booking_id']}/reject",
                               json={"reason": "Owner visiting"}, headers=host_headers)
        data = response.json()
        assert data["status"] == "REJECTED"
        assert data["status_reason"] == "Owner visiting"

    @pytest.mark.integration
    @pytest.mark.api
    def test_cancel_frees_dates(self, client, guest_headers, property_id):
        stay = _stay(10, 3)
        booking = client.post("/api/bookings", json={"property_id": property_id, **stay},
                              headers=guest_headers).json()
        cancelled = client.post(f"/api/bookings/{booking['booking_id']}/cancel", json={},
                                headers=guest_headers)
        assert cancelled.json()["status"] == "CANCELLED"

        rebooked = client.post("/api/bookings", json={"property_id": property_id, **stay},
                               headers=guest_headers)
        assert rebooked.status_code == 201

    @pytest.mark.integration
    @pytest.mark.api
    def test_get_booking_and_listings(self, client, host_headers, guest_headers, property_id):
        booking = client.post("/api/bookings", json={"property_id": property_id, **_stay(10, 2)},
                              headers=guest_headers).json()

        own = client.get(f"/api/bookings/{booking['booking_id']}", headers=guest_headers)
        assert own.status_code == 200
        by_host = client.get(f"/api/bookings/{booking['booking_id']}", headers=host_headers)
        assert by_host.status_code == 200

        mine = client.get("/api/bookings", headers=guest_headers).json()
        assert booking["booking_id"] in [b["booking_id"] for b in mine]

        for_property = client.get(f"/api/properties/{property_id}/bookings", headers=host_headers).json()
        assert [b["booking_id"] for b in for_property] == [booking["booking_id"]]

    @pytest.mark.integration
    @pytest.mark.api
    def test_get_unknown_booking(self, client, guest_headers):
        response = client.get(f"/api/bookings/{uuid4()}", headers=guest_headers)
        assert response.status_code == 404
