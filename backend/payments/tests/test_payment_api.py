import pytest
from django.db import DatabaseError

from accounts.principal import Principal
from bookings.models import Booking
from bookings.services.bookings import create_booking
from payments.models import Payment
from payments.services import verification


@pytest.fixture
def booking(tenant, stay_property, check_in, check_out):
    return create_booking(
        principal=Principal.from_user(tenant),
        property_id=stay_property.pk,
        check_in=check_in,
        check_out=check_out,
    )


@pytest.fixture
def payment_id(api_client, tenant, booking):
    api_client.force_authenticate(user=tenant)
    response = api_client.post("/api/payments/", {"booking_id": booking.pk}, format="json")
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def submitted_id(api_client, tenant, payment_id):
    api_client.force_authenticate(user=tenant)
    response = api_client.post(
        f"/api/payments/{payment_id}/confirm/",
        {"upi_reference": "UTR4200917735"},
        format="json",
    )
    assert response.status_code == 200
    return payment_id


def test_new_payment_carries_link_and_qr(api_client, tenant, payment_id):
    api_client.force_authenticate(user=tenant)
    body = api_client.get(f"/api/payments/{payment_id}/").json()

    assert body["status"] == Payment.AWAITING_PAYMENT
    assert body["amount"] == 10500000
    assert body["amount_display"] == "105000.00"
    assert body["upi_uri"].startswith("upi://pay?")
    assert body["qr_code"].startswith("data:image/svg+xml;base64,")
    assert body["invoice"] is None
    assert body["poll_interval_seconds"] == 30


def test_confirm_hides_qr_once_submitted(api_client, tenant, submitted_id):
    api_client.force_authenticate(user=tenant)
    body = api_client.get(f"/api/payments/{submitted_id}/").json()

    assert body["status"] == Payment.AWAITING_OWNER_VERIFICATION
    assert body["upi_reference"] == "UTR4200917735"
    assert body["qr_code"] is None


def test_owner_sees_pending_queue(api_client, owner, submitted_id):
    api_client.force_authenticate(user=owner)
    response = api_client.get("/api/payments/pending/")

    assert response.status_code == 200
    body = response.json()
    assert [payment["id"] for payment in body["payments"]] == [submitted_id]
    assert body["poll_interval_seconds"] == 30


def test_tenant_pending_queue_is_empty(api_client, tenant, submitted_id):
    api_client.force_authenticate(user=tenant)
    assert api_client.get("/api/payments/pending/").json()["payments"] == []


def test_verify_returns_payment_booking_and_invoice(api_client, owner, submitted_id):
    api_client.force_authenticate(user=owner)
    response = api_client.post(f"/api/payments/{submitted_id}/verify/", {"verified": True}, format="json")

    assert response.status_code == 200
    body = response.json()
    assert body["already_decided"] is False
    assert body["payment"]["status"] == Payment.VERIFIED
    assert body["booking"]["status"] == Booking.CONFIRMED
    assert body["invoice"]["invoice_no"].startswith("INV-")


def test_repeat_verify_reports_already_decided(api_client, owner, submitted_id):
    api_client.force_authenticate(user=owner)
    api_client.post(f"/api/payments/{submitted_id}/verify/", {"verified": True}, format="json")

    response = api_client.post(
        f"/api/payments/{submitted_id}/verify/",
        {"verified": False, "note": "oops"},
        format="json",
    )

    assert response.status_code == 200
    body = response.json()
    assert body["already_decided"] is True
    assert body["detail"] == "Payment was already verified."
    assert body["payment"]["status"] == Payment.VERIFIED


def test_reject_without_note_is_bad_request(api_client, owner, submitted_id):
    api_client.force_authenticate(user=owner)
    response = api_client.post(f"/api/payments/{submitted_id}/verify/", {"verified": False}, format="json")

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_tenant_cannot_verify(api_client, tenant, submitted_id):
    api_client.force_authenticate(user=tenant)
    response = api_client.post(f"/api/payments/{submitted_id}/verify/", {"verified": True}, format="json")

    assert response.status_code == 403
    assert response.json()["code"] == "FORBIDDEN"


def test_verify_before_submission_is_conflict(api_client, owner, payment_id):
    api_client.force_authenticate(user=owner)
    response = api_client.post(f"/api/payments/{payment_id}/verify/", {"verified": True}, format="json")

    assert response.status_code == 409
    assert response.json()["current_status"] == Payment.AWAITING_PAYMENT


def test_unknown_payment_is_not_found(api_client, owner):
    api_client.force_authenticate(user=owner)
    response = api_client.post("/api/payments/999999/verify/", {"verified": True}, format="json")

    assert response.status_code == 404


def test_partial_failure_returns_both_records(api_client, monkeypatch, owner, submitted_id):
    def fail(*args, **kwargs):
        raise DatabaseError("lost connection")

    monkeypatch.setattr(verification, "confirm_booking_for_payment", fail)
    api_client.force_authenticate(user=owner)

    response = api_client.post(f"/api/payments/{submitted_id}/verify/", {"verified": True}, format="json")

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "PARTIAL_FAILURE"
    assert body["payment"]["status"] == Payment.AWAITING_OWNER_VERIFICATION
    assert body["booking"]["status"] == Booking.PENDING


def test_refund_endpoint(api_client, owner, submitted_id):
    api_client.force_authenticate(user=owner)
    api_client.post(f"/api/payments/{submitted_id}/verify/", {"verified": True}, format="json")

    response = api_client.post(f"/api/payments/{submitted_id}/refund/", format="json")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == Payment.REFUNDED
    assert body["invoice"]["status"] == "VOID"


def test_strangers_cannot_see_payment(api_client, other_tenant, payment_id):
    api_client.force_authenticate(user=other_tenant)
    assert api_client.get(f"/api/payments/{payment_id}/").status_code == 404


def test_verify_after_refund_reports_already_decided(api_client, owner, submitted_id):
    api_client.force_authenticate(user=owner)
    api_client.post(f"/api/payments/{submitted_id}/verify/", {"verified": True}, format="json")
    api_client.post(f"/api/payments/{submitted_id}/refund/", format="json")

    response = api_client.post(f"/api/payments/{submitted_id}/verify/", {"verified": True}, format="json")

    assert response.status_code == 200
    body = response.json()
    assert body["already_decided"] is True
    assert body["payment"]["status"] == Payment.REFUNDED


def test_confirm_on_cancelled_booking_is_conflict(api_client, tenant, booking, payment_id):
    api_client.force_authenticate(user=tenant)
    api_client.post(f"/api/bookings/{booking.pk}/cancel/", format="json")

    response = api_client.post(f"/api/payments/{payment_id}/confirm/", {}, format="json")

    assert response.status_code == 409
    assert response.json()["current_status"] == Booking.CANCELLED
