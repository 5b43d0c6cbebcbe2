from decimal import Decimal

import pytest

from park_core.shifts.models import ShiftStatus
from park_core.tests.helpers import scoped

BASE = "/api/v1/shifts/"


@pytest.mark.django_db
def test_open_current_and_close_flow(api_client, tenant, operator, sector):
    r = api_client.post(
        f"{BASE}open/",
        {"opening_float": "10000.00", "sector_id": str(sector.id), "device_id": "pos-1"},
        format="json",
        **scoped(tenant),
    )
    assert r.status_code == 201, r.content
    shift_id = r.json()["id"]
    assert r.json()["operator"] == str(operator.id)

    r = api_client.get(f"{BASE}current/", {"device_id": "pos-1"}, **scoped(tenant))
    assert r.status_code == 200
    assert r.json()["id"] == shift_id
    assert r.json()["totals"]["expected_cash"] == "10000.00"

    r = api_client.post(
        f"{BASE}{shift_id}/adjustment/",
        {"type": "WITHDRAWAL", "amount": "2000.00", "reason": "safe drop", "receipt_number": "R-9"},
        format="json",
        **scoped(tenant),
    )
    assert r.status_code == 201, r.content
    assert r.json()["adjustment_type"] == "WITHDRAWAL"

    r = api_client.post(f"{BASE}{shift_id}/close/", {"closing_declared_cash": "8000.00"}, format="json", **scoped(tenant))
    assert r.status_code == 200, r.content
    body = r.json()
    assert body["status"] == ShiftStatus.CLOSED
    assert body["expected_cash"] == "8000.00"
    assert body["cash_over_short"] == "0.00"

    r = api_client.get(f"{BASE}{shift_id}/operations/", **scoped(tenant))
    assert [op["kind"] for op in r.json()] == ["OPEN", "WITHDRAWAL", "CLOSE"]

    r = api_client.get(f"{BASE}current/", {"device_id": "pos-1"}, **scoped(tenant))
    assert r.status_code == 404


@pytest.mark.django_db
def test_second_open_is_409(api_client, tenant, operator, open_shift):
    r = api_client.post(f"{BASE}open/", {"opening_float": "0"}, format="json", **scoped(tenant))

    assert r.status_code == 409
    assert r.json()["error"]["code"] == "SHIFT_ALREADY_OPEN"


@pytest.mark.django_db
def test_adjustment_on_closed_shift_is_409(api_client, tenant, operator, open_shift):
    api_client.post(f"{BASE}{open_shift.id}/close/", {"closing_declared_cash": "10000.00"}, format="json", **scoped(tenant))

    r = api_client.post(
        f"{BASE}{open_shift.id}/adjustment/",
        {"type": "DEPOSIT", "amount": "10.00", "reason": "late"},
        format="json",
        **scoped(tenant),
    )

    assert r.status_code == 409
    assert r.json()["error"]["code"] == "SHIFT_NOT_OPEN"


@pytest.mark.django_db
def test_cancel_and_list(api_client, tenant, operator, open_shift):
    r = api_client.post(f"{BASE}{open_shift.id}/cancel/", {"reason": "wrong float"}, format="json", **scoped(tenant))
    assert r.status_code == 200
    assert r.json()["status"] == ShiftStatus.CANCELED

    r = api_client.get(BASE, {"status": "CANCELED"}, **scoped(tenant))
    assert r.json()["count"] == 1
    assert Decimal(r.json()["results"][0]["opening_float"]) == Decimal("10000.00")
