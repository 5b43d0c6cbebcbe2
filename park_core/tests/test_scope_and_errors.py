import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from park_core.tests.helpers import scoped


@pytest.mark.django_db
def test_missing_tenant_header_is_400_envelope(api_client):
    r = api_client.get("/api/v1/sessions/")

    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "validation_error"
    assert "Missing scope header" in err["message"]
    assert err["request_id"]


@pytest.mark.django_db
def test_invalid_tenant_header_is_400(api_client):
    r = api_client.get("/api/v1/sessions/", HTTP_X_TENANT_ID="not-a-uuid")

    assert r.status_code == 400
    assert "Invalid scope header" in r.json()["error"]["message"]


@pytest.mark.django_db
def test_user_without_operator_in_tenant_is_403(other_tenant):
    user = get_user_model().objects.create_user(username="outsider", password="x")
    client = APIClient()
    client.force_authenticate(user=user)

    r = client.get("/api/v1/debts/", **scoped(other_tenant))

    assert r.status_code == 403
    assert r.json()["error"]["code"] == "permission_denied"


@pytest.mark.django_db
def test_unauthenticated_is_401_envelope(tenant):
    r = APIClient().get("/api/v1/shifts/", **scoped(tenant))

    assert r.status_code == 401
    assert r.json()["error"]["code"] == "not_authenticated"


@pytest.mark.django_db
def test_request_id_is_echoed(api_client):
    r = api_client.get("/api/v1/sessions/", HTTP_X_REQUEST_ID="req-123")

    assert r.json()["error"]["request_id"] == "req-123"


@pytest.mark.django_db
def test_jwt_token_scopes_request(tenant, operator, user):
    client = APIClient()
    r = client.post("/api/v1/auth/token/", {"username": "operator1", "password": "testpass"}, format="json")
    assert r.status_code == 200, r.content
    access = r.json()["access"]

    r = client.get("/api/v1/audit/events/", HTTP_AUTHORIZATION=f"Bearer {access}", **scoped(tenant))

    assert r.status_code == 200
    assert r.json()["count"] == 0
