# park_core/conftest.py
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from park_core.operators.models import Operator
from park_core.pricing.models import PricingProfile, PricingRule, RuleType
from park_core.sectors.models import Sector, Street
from park_core.shifts.services import ShiftService
from park_core.tenants.models import Tenant

# Monday 2024-01-15 10:00 UTC; tenants in tests run on UTC
T0 = datetime(2024, 1, 15, 10, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def t0():
    return T0


@pytest.fixture
def tenant(db):
    return Tenant.objects.create(code="test-tenant", name="Test Tenant", timezone="UTC")


@pytest.fixture
def other_tenant(db):
    return Tenant.objects.create(code="other-tenant", name="Other Tenant", timezone="UTC")


@pytest.fixture
def sector(tenant):
    return Sector.objects.create(tenant_id=tenant.id, name="Centro", code="centro")


@pytest.fixture
def street(tenant, sector):
    return Street.objects.create(tenant_id=tenant.id, sector=sector, name="Av. Principal")


@pytest.fixture
def user(db):
    User = get_user_model()
    return User.objects.create_user(username="operator1", password="testpass", is_active=True)


@pytest.fixture
def operator(tenant, user):
    return Operator.objects.create(tenant_id=tenant.id, user=user, name="Operator One", code="op-1")


@pytest.fixture
def other_operator(tenant):
    User = get_user_model()
    u = User.objects.create_user(username="operator2", password="testpass", is_active=True)
    return Operator.objects.create(tenant_id=tenant.id, user=u, name="Operator Two", code="op-2")


@pytest.fixture
def api_client(user, operator):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def open_shift(tenant, operator):
    return ShiftService.open(
        tenant_id=tenant.id,
        operator_id=operator.id,
        opening_float=Decimal("10000.00"),
    )


@pytest.fixture
def profile(tenant, sector):
    return PricingProfile.objects.create(tenant_id=tenant.id, sector=sector, name="Tarifa general")


@pytest.fixture
def time_based_rule(tenant, profile):
    """price_per_min=100, min_amount=500 (whole-amount floor), daily cap 5000."""
    return PricingRule.objects.create(
        tenant_id=tenant.id,
        profile=profile,
        name="Por minuto",
        rule_type=RuleType.TIME_BASED,
        price_per_min=Decimal("100.00"),
        min_amount=Decimal("500.00"),
        min_amount_is_base=False,
        daily_max_amount=Decimal("5000.00"),
        priority=10,
    )


@pytest.fixture
def make_session(tenant, sector, operator):
    from park_core.parking.services import ParkingSessionService

    def _make(*, plate="ABCD12", started_at=T0, is_full_day=False, operator_id=None):
        return ParkingSessionService.create(
            tenant_id=tenant.id,
            plate=plate,
            sector_id=sector.id,
            operator_id=operator_id or operator.id,
            started_at=started_at,
            is_full_day=is_full_day,
        )

    return _make
