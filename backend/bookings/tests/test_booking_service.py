from datetime import date, timedelta

import pytest
from django.utils import timezone

from accounts.principal import Principal
from bookings.models import Booking
from bookings.services import bookings as bookings_service
from bookings.services.bookings import (
    cancel_booking,
    complete_past_bookings,
    create_booking,
    update_booking_dates,
    visible_bookings,
)
from core.exceptions import DatesUnavailable, Forbidden, IllegalTransition, InvalidRange, NotFound
from core.models import AuditLog
from payments.models import Payment
from payments.services.payments import create_payment, submit_payment_proof


@pytest.fixture
def booking(tenant, stay_property, check_in, check_out):
    return create_booking(
        principal=Principal.from_user(tenant),
        property_id=stay_property.pk,
        check_in=check_in,
        check_out=check_out,
    )


def test_create_booking_starts_pending_and_is_audited(booking, tenant):
    assert booking.status == Booking.PENDING
    assert booking.tenant == tenant
    assert AuditLog.objects.filter(booking=booking, action=AuditLog.BOOKING_CREATED).exists()


def test_create_booking_rejects_inverted_range(tenant, stay_property, check_in):
    with pytest.raises(InvalidRange):
        create_booking(
            principal=Principal.from_user(tenant),
            property_id=stay_property.pk,
            check_in=check_in,
            check_out=check_in - timedelta(days=1),
        )
    assert not Booking.objects.exists()


def test_create_booking_rejects_past_check_in(tenant, stay_property):
    today = timezone.localdate()
    with pytest.raises(InvalidRange):
        create_booking(
            principal=Principal.from_user(tenant),
            property_id=stay_property.pk,
            check_in=today - timedelta(days=2),
            check_out=today + timedelta(days=2),
        )


def test_create_booking_for_unknown_property(tenant, check_in, check_out):
    with pytest.raises(NotFound):
        create_booking(
            principal=Principal.from_user(tenant),
            property_id=999999,
            check_in=check_in,
            check_out=check_out,
        )


def test_overlapping_booking_is_rejected(booking, other_tenant, stay_property, check_in):
    with pytest.raises(DatesUnavailable):
        create_booking(
            principal=Principal.from_user(other_tenant),
            property_id=stay_property.pk,
            check_in=check_in + timedelta(days=3),
            check_out=check_in + timedelta(days=9),
        )


def test_back_to_back_stays_do_not_overlap(booking, other_tenant, stay_property, check_out):
    follow_on = create_booking(
        principal=Principal.from_user(other_tenant),
        property_id=stay_property.pk,
        check_in=check_out,
        check_out=check_out + timedelta(days=2),
    )

    assert follow_on.status == Booking.PENDING


def test_cancelled_booking_frees_its_dates(booking, tenant, other_tenant, stay_property, check_in, check_out):
    cancel_booking(principal=Principal.from_user(tenant), booking_id=booking.pk)

    replacement = create_booking(
        principal=Principal.from_user(other_tenant),
        property_id=stay_property.pk,
        check_in=check_in,
        check_out=check_out,
    )
    assert replacement.status == Booking.PENDING


def test_update_dates_reprices_unpaid_payment(booking, tenant, check_in):
    principal = Principal.from_user(tenant)
    payment = create_payment(principal=principal, booking_id=booking.pk)
    assert payment.amount == 7 * 1500000

    update_booking_dates(
        principal=principal,
        booking_id=booking.pk,
        check_in=check_in,
        check_out=check_in + timedelta(days=3),
    )

    payment.refresh_from_db()
    assert payment.amount == 3 * 1500000
    assert "am=45000.00" in payment.upi_uri
    assert AuditLog.objects.filter(payment=payment, action=AuditLog.PAYMENT_REPRICED).exists()


def test_update_dates_locked_while_payment_awaits_verification(booking, tenant, check_in):
    principal = Principal.from_user(tenant)
    payment = create_payment(principal=principal, booking_id=booking.pk)
    submit_payment_proof(principal=principal, payment_id=payment.pk, upi_reference="UTR123")

    with pytest.raises(IllegalTransition) as excinfo:
        update_booking_dates(
            principal=principal,
            booking_id=booking.pk,
            check_in=check_in,
            check_out=check_in + timedelta(days=2),
        )

    assert excinfo.value.current_status == Payment.AWAITING_OWNER_VERIFICATION
    booking.refresh_from_db()
    assert (booking.check_out - booking.check_in).days == 7


def test_update_dates_only_by_tenant(booking, other_tenant, check_in):
    with pytest.raises(Forbidden):
        update_booking_dates(
            principal=Principal.from_user(other_tenant),
            booking_id=booking.pk,
            check_in=check_in,
            check_out=check_in + timedelta(days=2),
        )


def test_update_dates_of_confirmed_booking_is_rejected(booking, tenant, check_in):
    Booking.objects.filter(pk=booking.pk).update(status=Booking.CONFIRMED)

    with pytest.raises(IllegalTransition):
        update_booking_dates(
            principal=Principal.from_user(tenant),
            booking_id=booking.pk,
            check_in=check_in,
            check_out=check_in + timedelta(days=2),
        )


def test_owner_can_cancel(booking, owner):
    cancelled = cancel_booking(principal=Principal.from_user(owner), booking_id=booking.pk)

    assert cancelled.status == Booking.CANCELLED
    assert AuditLog.objects.filter(booking=booking, action=AuditLog.BOOKING_STATUS_CHANGED).exists()


def test_stranger_cannot_cancel(booking, other_owner):
    with pytest.raises(Forbidden):
        cancel_booking(principal=Principal.from_user(other_owner), booking_id=booking.pk)


def test_cancelled_booking_cannot_be_cancelled_again(booking, tenant):
    principal = Principal.from_user(tenant)
    cancel_booking(principal=principal, booking_id=booking.pk)

    with pytest.raises(IllegalTransition) as excinfo:
        cancel_booking(principal=principal, booking_id=booking.pk)
    assert excinfo.value.current_status == Booking.CANCELLED


def test_effective_status_reports_completed_after_check_out(tenant, stay_property):
    booking = Booking.objects.create(
        tenant=tenant,
        property=stay_property,
        check_in=date(2024, 1, 1),
        check_out=date(2024, 1, 5),
        status=Booking.CONFIRMED,
    )

    assert booking.effective_status(today=date(2024, 1, 5)) == Booking.CONFIRMED
    assert booking.effective_status(today=date(2024, 1, 6)) == Booking.COMPLETED


def test_complete_past_bookings_persists_completed(tenant, stay_property):
    past = Booking.objects.create(
        tenant=tenant,
        property=stay_property,
        check_in=date(2024, 1, 1),
        check_out=date(2024, 1, 5),
        status=Booking.CONFIRMED,
    )
    pending = Booking.objects.create(
        tenant=tenant,
        property=stay_property,
        check_in=date(2024, 2, 1),
        check_out=date(2024, 2, 5),
        status=Booking.PENDING,
    )

    assert complete_past_bookings(today=date(2024, 3, 1)) == 1

    past.refresh_from_db()
    pending.refresh_from_db()
    assert past.status == Booking.COMPLETED
    assert pending.status == Booking.PENDING


def test_visible_bookings_scoped_to_participants(booking, tenant, owner, other_tenant, admin_user):
    assert list(visible_bookings(Principal.from_user(tenant))) == [booking]
    assert list(visible_bookings(Principal.from_user(owner))) == [booking]
    assert list(visible_bookings(Principal.from_user(other_tenant))) == []
    assert list(visible_bookings(Principal.from_user(admin_user))) == [booking]


@pytest.mark.parametrize("nights", [0, -2])
def test_update_dates_rejects_inverted_range(booking, tenant, check_in, nights):
    with pytest.raises(InvalidRange):
        update_booking_dates(
            principal=Principal.from_user(tenant),
            booking_id=booking.pk,
            check_in=check_in,
            check_out=check_in + timedelta(days=nights),
        )

    booking.refresh_from_db()
    assert (booking.check_out - booking.check_in).days == 7


def test_update_dates_rejects_past_check_in(booking, tenant):
    today = timezone.localdate()

    with pytest.raises(InvalidRange):
        update_booking_dates(
            principal=Principal.from_user(tenant),
            booking_id=booking.pk,
            check_in=today - timedelta(days=1),
            check_out=today + timedelta(days=3),
        )


def test_booking_writes_lock_property_before_overlap_check(monkeypatch, tenant, stay_property, check_in, check_out):
    calls = []
    real_lock = bookings_service.lock_property
    real_check = bookings_service._ensure_available

    def spy_lock(property_id):
        calls.append(("lock", property_id))
        return real_lock(property_id)

    def spy_check(property_id, *args, **kwargs):
        calls.append(("check", property_id))
        return real_check(property_id, *args, **kwargs)

    monkeypatch.setattr(bookings_service, "lock_property", spy_lock)
    monkeypatch.setattr(bookings_service, "_ensure_available", spy_check)
    principal = Principal.from_user(tenant)

    booking = create_booking(
        principal=principal,
        property_id=stay_property.pk,
        check_in=check_in,
        check_out=check_out,
    )
    update_booking_dates(
        principal=principal,
        booking_id=booking.pk,
        check_in=check_in,
        check_out=check_in + timedelta(days=2),
    )

    expected = [("lock", stay_property.pk), ("check", stay_property.pk)]
    assert calls == expected * 2
