"""Unit tests for the HTTP control surface."""

from uuid import uuid4

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from app.infrastructure.config.settings import Settings
from app.infrastructure.wiring.container import Container
from app.main import create_app


@pytest.fixture
def container():
    """Create a container on in-memory adapters with fast sync timings."""
    config = Settings(
        _env_file=None,
        local_store="in_memory",
        remote_store="in_memory",
        sync_retry_delay_seconds=0,
        post_bulk_push_settle_seconds=0,
        sync_poll_interval_seconds=0.01,
        pre_sign_out_sync_timeout_seconds=1,
        guest_migration_timeout_seconds=2,
    )
    return Container(config=config)


@pytest.fixture
def client(container):
    """Create test client running the application lifespan."""
    with TestClient(create_app(container)) as client:
        yield client


def _sign_up(client, email="rep@example.com"):
    return client.post("/auth/sign-up", json={"email": email, "password": "secret123"})


def _create_lead(client, **fields):
    payload = {"name": "Ana Lopez", "address": "12 Elm St"}
    payload.update(fields)
    return client.post("/leads", json=payload)


def _appointment_payload(lead_id, **fields):
    payload = {
        "lead_id": lead_id,
        "title": "Roof consultation",
        "start_date": "2030-08-21T15:00:00Z",
        "end_date": "2030-08-21T16:00:00Z",
    }
    payload.update(fields)
    return payload


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_sync_status_defaults(client):
    response = client.get("/sync/status")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "idle"
    assert data["listener_state"] == "detached"
    assert data["sync_interval"] == "1hour"


def test_manual_sync_without_session_does_not_start(client):
    response = client.post("/sync")

    assert response.status_code == status.HTTP_202_ACCEPTED
    assert response.json() == {"started": False, "status": "idle"}


def test_sign_up_then_sync(client):
    """Test that a signed-in rep can start a manual sync."""
    response = _sign_up(client)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["status"] == "success"
    assert response.json()["email"] == "rep@example.com"

    response = client.post("/sync")
    assert response.json()["started"] is True


def test_sign_in_with_wrong_password_is_unauthorized(client):
    _sign_up(client)
    client.post("/auth/sign-out")

    response = client.post("/auth/sign-in", json={"email": "rep@example.com", "password": "nope"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["category"] == "authentication"
    assert response.json()["retryable"] is False


def test_sign_up_with_invalid_email_is_rejected(client):
    response = client.post("/auth/sign-up", json={"email": "rep@", "password": "secret123"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["detail"] == "Please enter a valid email address"


def test_create_and_list_leads(client):
    response = _create_lead(client, name=None)
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["display_name"] == "12 Elm St"

    leads = client.get("/leads").json()
    assert [lead["address"] for lead in leads] == ["12 Elm St"]


def test_create_lead_without_name_or_address_is_rejected(client):
    response = _create_lead(client, name="  ", address="")

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["category"] == "validation"


def test_delete_unknown_lead_is_not_found(client):
    response = client.delete(f"/leads/{uuid4()}")

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_appointment_lifecycle(client):
    """Test schedule, cancel and delete through the API."""
    lead_id = _create_lead(client).json()["id"]

    response = client.post("/appointments", json=_appointment_payload(lead_id))
    assert response.status_code == status.HTTP_201_CREATED
    appointment = response.json()
    assert appointment["status"] == "Scheduled"
    assert appointment["lead_id"] == lead_id

    lead = next(lead for lead in client.get("/leads").json() if lead["id"] == lead_id)
    assert lead["status"] == "interested"

    response = client.post(f"/appointments/{appointment['id']}/cancel")
    assert response.json()["status"] == "Cancelled"

    response = client.delete(f"/appointments/{appointment['id']}")
    assert response.status_code == status.HTTP_204_NO_CONTENT
    assert client.get("/appointments").json() == []


def test_schedule_for_unknown_lead_is_not_found(client):
    response = client.post("/appointments", json=_appointment_payload(str(uuid4())))

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_schedule_with_start_after_end_is_invalid(client):
    lead_id = _create_lead(client).json()["id"]

    response = client.post(
        "/appointments",
        json=_appointment_payload(lead_id, start_date="2030-08-21T17:00:00Z"),
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_sign_out_keeps_remote_data(client, container):
    _sign_up(client)
    user_id = container.identity_provider.current_user.uid
    lead_id = _create_lead(client).json()["id"]
    client.post("/appointments", json=_appointment_payload(lead_id))

    response = client.post("/auth/sign-out")

    assert response.json() == {
        "status": "idle",
        "user_id": None,
        "email": None,
        "is_guest_mode": False,
    }
    assert client.get("/leads").json() == []
    assert container.remote_store.document(f"users/{user_id}/leads/{lead_id}") is not None


def test_guest_conversion(client, container):
    assert client.post("/guest/start").json()["is_guest_mode"] is True
    lead_id = _create_lead(client).json()["id"]

    response = client.post(
        "/guest/convert", json={"email": "guest@example.com", "password": "secret123"}
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["is_guest_mode"] is False
    user_id = response.json()["user_id"]
    assert container.remote_store.document(f"users/{user_id}/leads/{lead_id}") is not None
