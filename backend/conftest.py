from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.principal import Principal
from properties.models import Property

User = get_user_model()


def _make_user(email, role, **extra):
    return User.objects.create_user(
        username=email,
        email=email,
        password="examplepass",
        role=role,
        **extra,
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def owner(db):
    return _make_user("owner@example.com", User.OWNER, display_name="Olivia Owner", upi_id="olivia@okaxis")


@pytest.fixture
def other_owner(db):
    return _make_user("other-owner@example.com", User.OWNER, upi_id="other@okhdfc")


@pytest.fixture
def tenant(db):
    return _make_user("tenant@example.com", User.TENANT, display_name="Tara Tenant")


@pytest.fixture
def other_tenant(db):
    return _make_user("other-tenant@example.com", User.TENANT)


@pytest.fixture
def admin_user(db):
    return User.objects.create_superuser(
        username="admin@example.com",
        email="admin@example.com",
        password="examplepass",
    )


@pytest.fixture
def stay_property(owner):
    return Property.objects.create(
        owner=owner,
        title="Cliffside Villa",
        address="Vagator, Goa",
        price_per_night=1500000,
        capacity=4,
    )


@pytest.fixture
def check_in():
    return timezone.localdate() + timedelta(days=10)


@pytest.fixture
def check_out(check_in):
    return check_in + timedelta(days=7)


@pytest.fixture
def principal_for():
    return Principal.from_user
