from datetime import timedelta

import pytest

from accounts.principal import Principal
from bookings.models import Booking
from payments.models import Payment
from payments.services.payments import create_payment


@pytest.fixture
def booking_payload(stay_property, check_in, check_out):
    return {
        "property_id": stay_property.pk,
        "check_in": check_in.isoformat(),
        "check_out": check_out.isoformat(),
    }


def test_tenant_creates_booking_with_recomputed_total(api_client, tenant, booking_payload):
    api_client.force_authenticate(user=tenant)

    response = api_client.post("/api/bookings/", booking_payload, format="json")

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == Booking.PENDING
    assert body["nights"] == 7
    assert body["total_amount"] == 10500000
    assert body["total_amount_display"] == "105000.00"
    assert body["latest_payment"] is None


def test_inverted_dates_return_invalid_range(api_client, tenant, booking_payload, check_in):
    api_client.force_authenticate(user=tenant)
    booking_payload["check_out"] = (check_in - timedelta(days=1)).isoformat()

    response = api_client.post("/api/bookings/", booking_payload, format="json")

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_RANGE"


def test_overlapping_request_returns_conflict(api_client, tenant, other_tenant, booking_payload):
    api_client.force_authenticate(user=tenant)
    assert api_client.post("/api/bookings/", booking_payload, format="json").status_code == 201

    api_client.force_authenticate(user=other_tenant)
    response = api_client.post("/api/bookings/", booking_payload, format="json")

    assert response.status_code == 409
    assert response.json()["code"] == "DATES_UNAVAILABLE"


def test_bookings_require_authentication(api_client):
    response = api_client.get("/api/bookings/")
    assert response.status_code == 401


def test_list_only_shows_own_bookings(api_client, tenant, other_tenant, booking_payload):
    api_client.force_authenticate(user=tenant)
    api_client.post("/api/bookings/", booking_payload, format="json")

    api_client.force_authenticate(user=other_tenant)
    response = api_client.get("/api/bookings/")

    assert response.status_code == 200
    assert response.json() == []


def test_patch_dates_updates_total(api_client, tenant, booking_payload, check_in):
    api_client.force_authenticate(user=tenant)
    booking_id = api_client.post("/api/bookings/", booking_payload, format="json").json()["id"]

    response = api_client.patch(
        f"/api/bookings/{booking_id}/dates/",
        {"check_in": check_in.isoformat(), "check_out": (check_in + timedelta(days=2)).isoformat()},
        format="json",
    )

    assert response.status_code == 200
    assert response.json()["total_amount"] == 3000000


def test_cancel_endpoint(api_client, tenant, booking_payload):
    api_client.force_authenticate(user=tenant)
    booking_id = api_client.post("/api/bookings/", booking_payload, format="json").json()["id"]

    response = api_client.post(f"/api/bookings/{booking_id}/cancel/", format="json")

    assert response.status_code == 200
    assert response.json()["status"] == Booking.CANCELLED

    again = api_client.post(f"/api/bookings/{booking_id}/cancel/", format="json")
    assert again.status_code == 409
    assert again.json()["current_status"] == Booking.CANCELLED


def test_retrieve_reconciles_pending_booking_with_verified_payment(api_client, tenant, owner, booking_payload):
    api_client.force_authenticate(user=tenant)
    booking_id = api_client.post("/api/bookings/", booking_payload, format="json").json()["id"]
    payment = create_payment(principal=Principal.from_user(tenant), booking_id=booking_id)
    # Simulate a decision whose booking update never landed.
    Payment.objects.filter(pk=payment.pk).update(status=Payment.VERIFIED, verified_by=owner)

    response = api_client.get(f"/api/bookings/{booking_id}/")

    assert response.status_code == 200
    assert response.json()["status"] == Booking.CONFIRMED
    assert response.json()["latest_payment"]["status"] == Payment.VERIFIED
