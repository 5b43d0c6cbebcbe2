from decimal import Decimal

import pytest

from park_core.debts.models import DebtOrigin, DebtStatus
from park_core.debts.services import DebtService
from park_core.operators.models import Operator
from park_core.payments.models import Payment
from park_core.tests.helpers import scoped

BASE = "/api/v1/debts/"


def _debt(tenant, operator, plate="PLT001", amount="1200.00", origin=DebtOrigin.MANUAL):
    return DebtService.create_manual(
        tenant_id=tenant.id, plate=plate, amount=Decimal(amount), origin=origin, actor_id=operator.id
    )


@pytest.mark.django_db
def test_create_manual_debt(api_client, tenant, operator):
    r = api_client.post(BASE, {"plate": "fine 01", "amount": "3000.00", "origin": "FINE"}, format="json", **scoped(tenant))

    assert r.status_code == 201, r.content
    body = r.json()
    assert body["plate"] == "FINE01"
    assert body["origin"] == DebtOrigin.FINE
    assert body["status"] == DebtStatus.PENDING
    assert body["created_by"] == str(operator.id)


@pytest.mark.django_db
def test_list_page_size_follows_settings_and_is_clamped(api_client, tenant, operator, settings):
    settings.PARK_PAGE_SIZE = 2
    settings.PARK_MAX_PAGE_SIZE = 3
    for i in range(5):
        _debt(tenant, operator, plate=f"PAG00{i}")

    default = api_client.get(BASE, **scoped(tenant)).json()
    assert default["count"] == 5
    assert len(default["results"]) == 2
    assert default["next"] is not None

    clamped = api_client.get(BASE, {"page_size": 50}, **scoped(tenant)).json()
    assert len(clamped["results"]) == 3


@pytest.mark.django_db
def test_list_filters_by_plate_status_and_origin(api_client, tenant, operator):
    _debt(tenant, operator, plate="AAA111")
    _debt(tenant, operator, plate="AAA111", origin=DebtOrigin.FINE)
    other = _debt(tenant, operator, plate="BBB222")
    DebtService.cancel(tenant_id=tenant.id, debt_id=other.id, actor_id=operator.id)

    assert api_client.get(BASE, **scoped(tenant)).json()["count"] == 3
    assert api_client.get(BASE, {"plate": "aaa111"}, **scoped(tenant)).json()["count"] == 2
    assert api_client.get(BASE, {"origin": "FINE"}, **scoped(tenant)).json()["count"] == 1
    assert api_client.get(BASE, {"status": "CANCELLED"}, **scoped(tenant)).json()["count"] == 1

    r = api_client.get(BASE, {"status": "NOPE"}, **scoped(tenant))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "validation_error"


@pytest.mark.django_db
def test_settle_endpoint_and_double_settle(api_client, tenant, operator, open_shift):
    debt = _debt(tenant, operator)
    payload = {"amount": "1200.00", "method": "CASH"}

    r1 = api_client.post(f"{BASE}{debt.id}/settle/", payload, format="json", **scoped(tenant))
    r2 = api_client.post(f"{BASE}{debt.id}/settle/", payload, format="json", **scoped(tenant))

    assert r1.status_code == 200, r1.content
    assert r1.json()["debt"]["status"] == DebtStatus.SETTLED
    assert r1.json()["payment"]["debt"] == str(debt.id)
    assert r1.json()["payment"]["shift"] == str(open_shift.id)

    assert r2.status_code == 409
    assert r2.json()["error"]["code"] == "DEBT_NOT_PENDING"


@pytest.mark.django_db
def test_settle_more_than_owed(api_client, tenant, operator, open_shift):
    debt = _debt(tenant, operator)

    r = api_client.post(f"{BASE}{debt.id}/settle/", {"amount": "5000.00", "method": "CASH"}, format="json", **scoped(tenant))

    assert r.status_code == 400
    assert r.json()["error"]["code"] == "AMOUNT_EXCEEDS_DEBT"


@pytest.mark.django_db
def test_settle_with_cashier_from_another_tenant_is_404(api_client, tenant, other_tenant, operator, open_shift):
    foreign = Operator.objects.create(tenant_id=other_tenant.id, name="Foreign", code="op-x")
    debt = _debt(tenant, operator)

    r = api_client.post(
        f"{BASE}{debt.id}/settle/",
        {"amount": "1200.00", "method": "CARD", "cashier_operator_id": str(foreign.id)},
        format="json",
        **scoped(tenant),
    )

    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"
    debt.refresh_from_db()
    assert debt.status == DebtStatus.PENDING
    assert not Payment.objects.filter(debt=debt).exists()


@pytest.mark.django_db
def test_settle_with_cashier_of_same_tenant(api_client, tenant, operator, other_operator):
    debt = _debt(tenant, operator)

    r = api_client.post(
        f"{BASE}{debt.id}/settle/",
        {"amount": "1200.00", "method": "CARD", "cashier_operator_id": str(other_operator.id)},
        format="json",
        **scoped(tenant),
    )

    assert r.status_code == 200, r.content
    assert r.json()["payment"]["cashier"] == str(other_operator.id)


@pytest.mark.django_db
def test_cancel_endpoint(api_client, tenant, operator):
    debt = _debt(tenant, operator)

    r = api_client.post(f"{BASE}{debt.id}/cancel/", {"reason": "error"}, format="json", **scoped(tenant))

    assert r.status_code == 200
    assert r.json()["status"] == DebtStatus.CANCELLED
    assert r.json()["cancel_reason"] == "error"


@pytest.mark.django_db
def test_pending_summary_and_by_plate(api_client, tenant, operator):
    _debt(tenant, operator, plate="CCC333", amount="100.00")
    _debt(tenant, operator, plate="CCC333", amount="50.25", origin=DebtOrigin.FINE)
    _debt(tenant, operator, plate="DDD444", amount="10.00")

    summary = api_client.get(f"{BASE}pending-summary/", **scoped(tenant)).json()
    assert summary["total_amount"] == "160.25"
    assert summary["count"] == 3
    assert summary["by_origin"]["FINE"] == {"total_amount": "50.25", "count": 1}

    r = api_client.get(f"{BASE}by-plate/", {"plate": "ccc333"}, **scoped(tenant))
    assert r.status_code == 200
    assert r.json()["total_amount"] == "150.25"
    assert r.json()["count"] == 2
    assert len(r.json()["results"]) == 2

    assert api_client.get(f"{BASE}by-plate/", **scoped(tenant)).status_code == 400
