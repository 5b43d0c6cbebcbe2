from datetime import timedelta
from decimal import Decimal

import pytest

from park_core.debts.models import Debt, DebtOrigin
from park_core.debts.services import DebtService
from park_core.parking.models import ParkingSession, SessionStatus
from park_core.payments.models import Payment
from park_core.tests.helpers import scoped

BASE = "/api/v1/sessions/"


def _create(api_client, tenant, sector, **extra):
    payload = {"plate": "abcd12", "sector_id": str(sector.id), **extra}
    return api_client.post(BASE, payload, format="json", **scoped(tenant))


@pytest.mark.django_db
def test_create_session_reports_pending_debts(api_client, tenant, sector, street, operator, open_shift):
    DebtService.create_manual(tenant_id=tenant.id, plate="ABCD12", amount=Decimal("750.00"), actor_id=operator.id)

    r = _create(api_client, tenant, sector, street_id=str(street.id))

    assert r.status_code == 201, r.content
    body = r.json()
    assert body["plate"] == "ABCD12"
    assert body["status"] == SessionStatus.ACTIVE
    assert body["operator_in"] == str(operator.id)
    assert body["pending_debts"] == {"total_amount": "750.00", "count": 1}


@pytest.mark.django_db
def test_create_without_shift_returns_conflict_code(api_client, tenant, sector, operator):
    r = _create(api_client, tenant, sector)

    assert r.status_code == 409
    assert r.json()["error"]["code"] == "NO_SHIFT_OPEN"


@pytest.mark.django_db
def test_list_and_retrieve_are_tenant_scoped(api_client, tenant, other_tenant, sector, open_shift, make_session):
    session = make_session()
    ParkingSession.objects.create(
        tenant_id=other_tenant.id, plate="OTHER1", sector=sector, operator_in=open_shift.operator
    )

    r = api_client.get(BASE, **scoped(tenant))
    assert r.status_code == 200
    assert [row["id"] for row in r.json()["results"]] == [str(session.id)]

    r = api_client.get(f"{BASE}?status=COMPLETED", **scoped(tenant))
    assert r.json()["count"] == 0

    r = api_client.get(f"{BASE}{session.id}/", **scoped(tenant))
    assert r.status_code == 200
    assert r.json()["plate"] == "ABCD12"


@pytest.mark.django_db
def test_quote_endpoint_is_read_only(api_client, tenant, open_shift, time_based_rule, make_session, t0):
    session = make_session()
    ended = (t0 + timedelta(minutes=60)).isoformat()

    r = api_client.get(f"{BASE}{session.id}/quote/", {"ended_at": ended}, **scoped(tenant))

    assert r.status_code == 200, r.content
    body = r.json()
    assert body["duration_minutes"] == 60
    assert body["gross_amount"] == "5000.00"
    assert body["net_amount"] == "5000.00"
    assert body["daily_cap_applied"] is True
    session.refresh_from_db()
    assert session.status == SessionStatus.ACTIVE


@pytest.mark.django_db
def test_quote_with_invalid_ended_at(api_client, tenant, open_shift, time_based_rule, make_session):
    session = make_session()

    r = api_client.get(f"{BASE}{session.id}/quote/", {"ended_at": "yesterday"}, **scoped(tenant))

    assert r.status_code == 400
    assert r.json()["error"]["code"] == "validation_error"


@pytest.mark.django_db
def test_quote_without_rule_is_409(api_client, tenant, open_shift, make_session, t0):
    session = make_session()

    r = api_client.get(
        f"{BASE}{session.id}/quote/", {"ended_at": (t0 + timedelta(minutes=5)).isoformat()}, **scoped(tenant)
    )

    assert r.status_code == 409
    assert r.json()["error"]["code"] == "NO_APPLICABLE_RULE"


@pytest.mark.django_db
def test_checkout_endpoint_with_idempotency_key(api_client, tenant, open_shift, time_based_rule, make_session, t0):
    session = make_session()
    payload = {"payment_method": "CASH", "amount": "1000.00", "ended_at": (t0 + timedelta(minutes=3)).isoformat()}
    headers = {**scoped(tenant), "HTTP_IDEMPOTENCY_KEY": "chk-1"}

    r1 = api_client.post(f"{BASE}{session.id}/checkout/", payload, format="json", **headers)
    r2 = api_client.post(f"{BASE}{session.id}/checkout/", payload, format="json", **headers)

    assert r1.status_code == 200, r1.content
    body = r1.json()
    assert body["session"]["status"] == SessionStatus.COMPLETED
    assert body["quote"]["net_amount"] == "500.00"
    assert body["payment"]["amount"] == "500.00"
    assert body["change"] == "500.00"
    assert body["debt_id"] is None

    assert r2.status_code == 200
    assert r2.json()["payment"]["id"] == body["payment"]["id"]
    assert Payment.objects.filter(session=session).count() == 1


@pytest.mark.django_db
def test_checkout_twice_without_key_is_409(api_client, tenant, open_shift, time_based_rule, make_session, t0):
    session = make_session()
    payload = {"payment_method": "CASH", "amount": "500.00", "ended_at": (t0 + timedelta(minutes=3)).isoformat()}

    assert api_client.post(f"{BASE}{session.id}/checkout/", payload, format="json", **scoped(tenant)).status_code == 200
    r = api_client.post(f"{BASE}{session.id}/checkout/", payload, format="json", **scoped(tenant))

    assert r.status_code == 409
    assert r.json()["error"]["code"] == "INVALID_STATE"


@pytest.mark.django_db
def test_checkout_insufficient_payment_envelope(api_client, tenant, open_shift, time_based_rule, make_session, t0):
    session = make_session()
    payload = {"payment_method": "CASH", "amount": "100.00", "ended_at": (t0 + timedelta(minutes=3)).isoformat()}

    r = api_client.post(f"{BASE}{session.id}/checkout/", payload, format="json", **scoped(tenant))

    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "INSUFFICIENT_PAYMENT"
    assert "amount" in err["details"]
    assert err["request_id"]


@pytest.mark.django_db
def test_force_checkout_endpoint_creates_debt(api_client, tenant, open_shift, time_based_rule, make_session, t0):
    session = make_session()

    r = api_client.post(
        f"{BASE}{session.id}/force-checkout-without-payment/",
        {"ended_at": (t0 + timedelta(minutes=3)).isoformat()},
        format="json",
        **scoped(tenant),
    )

    assert r.status_code == 200, r.content
    debt = Debt.objects.get(session=session)
    assert r.json()["debt_id"] == str(debt.id)
    assert debt.origin == DebtOrigin.SESSION
    assert debt.principal_amount == Decimal("500.00")


@pytest.mark.django_db
def test_cancel_endpoint(api_client, tenant, open_shift, make_session):
    session = make_session()

    r = api_client.post(f"{BASE}{session.id}/cancel/", {"reason": "test"}, format="json", **scoped(tenant))

    assert r.status_code == 200
    assert r.json()["status"] == SessionStatus.CANCELED
    assert r.json()["cancel_reason"] == "test"


@pytest.mark.django_db
def test_unknown_session_is_404(api_client, tenant, operator):
    r = api_client.get(f"{BASE}00000000-0000-0000-0000-000000000000/", **scoped(tenant))

    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"
