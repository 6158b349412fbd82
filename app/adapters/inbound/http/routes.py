"""HTTP routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from app.adapters.inbound.http.schemas import (
    AppointmentCreateRequest,
    AppointmentResponse,
    AuthResponse,
    CredentialsRequest,
    ErrorResponse,
    LeadCreateRequest,
    LeadResponse,
    SignUpRequest,
    SyncStartedResponse,
)
from app.application.dtos.sync import SyncStatusView
from app.application.errors import AppError, AuthenticationError, ValidationError
from app.domain.entities.appointment import Appointment
from app.domain.entities.lead import Lead
from app.domain.value_objects.geo_coordinate import GeoCoordinate
from app.infrastructure.logging.logger import log_sync
from app.infrastructure.wiring.container import Container

router = APIRouter()


def get_container(request: Request) -> Container:
    """Container created by the application lifespan."""
    return request.app.state.container


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Map categorized errors to HTTP responses.

    Validation errors are 422, authentication errors 401, everything else 503.
    """
    if isinstance(exc, ValidationError):
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, AuthenticationError):
        status_code = status.HTTP_401_UNAUTHORIZED
    else:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    body = ErrorResponse(
        detail=exc.user_friendly_message,
        category=exc.category,
        retryable=exc.retryable,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _auth_response(container: Container) -> AuthResponse:
    account = container.account_manager
    user = account.current_user
    return AuthResponse(
        status=account.auth_status.value,
        user_id=user.uid if user else None,
        email=user.email if user else None,
        is_guest_mode=account.is_guest_mode,
    )


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> dict[str, str]:
    """
    Health check endpoint for liveness/readiness.

    Returns:
        Health status
    """
    return {"status": "ok"}


@router.get("/sync/status", response_model=SyncStatusView)
async def sync_status(container: Container = Depends(get_container)) -> SyncStatusView:
    return container.user_data_sync.view(container.appointment_listener.state.value)


@router.post(
    "/sync", status_code=status.HTTP_202_ACCEPTED, response_model=SyncStartedResponse
)
async def start_sync(container: Container = Depends(get_container)) -> SyncStartedResponse:
    """
    Start a manual sync window.

    Returns:
        Whether a sync is running (False without a session)
    """
    task = container.user_data_sync.start_sync()
    log_sync(container.pusher.current_user_id(), "http", action="manual_sync", started=task is not None)
    return SyncStartedResponse(
        started=task is not None,
        status=container.user_data_sync.status.value,
    )


@router.get("/appointments", response_model=list[AppointmentResponse])
async def list_appointments(
    container: Container = Depends(get_container),
) -> list[AppointmentResponse]:
    return [AppointmentResponse.from_entity(a) for a in container.appointment_manager.appointments]


@router.post(
    "/appointments", status_code=status.HTTP_201_CREATED, response_model=AppointmentResponse
)
async def schedule_appointment(
    request: AppointmentCreateRequest,
    container: Container = Depends(get_container),
) -> AppointmentResponse:
    """
    Schedule a visit for an existing lead.

    Args:
        request: Appointment fields

    Returns:
        The stored appointment
    """
    lead = await container.lead_manager.get(request.lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")

    appointment = Appointment(
        title=request.title,
        start_date=request.start_date,
        end_date=request.end_date,
        notes=request.notes,
        location=request.location,
        appointment_type=request.appointment_type,
        custom_appointment_type_id=request.custom_appointment_type_id,
    )
    scheduled = await container.appointment_manager.schedule(lead, appointment)
    return AppointmentResponse.from_entity(scheduled)


def _find_appointment(container: Container, appointment_id: UUID) -> Appointment:
    appointment = container.appointment_manager.get(appointment_id)
    if appointment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return appointment


@router.post("/appointments/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: UUID,
    container: Container = Depends(get_container),
) -> AppointmentResponse:
    appointment = _find_appointment(container, appointment_id)
    cancelled = await container.appointment_manager.cancel(appointment)
    return AppointmentResponse.from_entity(cancelled)


@router.delete("/appointments/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: UUID,
    container: Container = Depends(get_container),
) -> Response:
    appointment = _find_appointment(container, appointment_id)
    await container.appointment_manager.delete(appointment)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/leads", response_model=list[LeadResponse])
async def list_leads(container: Container = Depends(get_container)) -> list[LeadResponse]:
    return [LeadResponse.from_entity(lead) for lead in await container.lead_manager.list_all()]


@router.post("/leads", status_code=status.HTTP_201_CREATED, response_model=LeadResponse)
async def create_lead(
    request: LeadCreateRequest,
    container: Container = Depends(get_container),
) -> LeadResponse:
    """
    Add a lead.

    Returns:
        The stored lead (422 when both name and address are blank)
    """
    lead = Lead(
        name=request.name,
        address=request.address,
        phone=request.phone,
        email=request.email,
        coordinate=GeoCoordinate(request.latitude, request.longitude),
        notes=request.notes,
        price=request.price,
        status=request.status,
        follow_up_date=request.follow_up_date,
    )
    created = await container.lead_manager.create(lead)
    return LeadResponse.from_entity(created)


@router.delete("/leads/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lead(lead_id: UUID, container: Container = Depends(get_container)) -> Response:
    lead = await container.lead_manager.get(lead_id)
    if lead is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")
    await container.lead_manager.delete(lead)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/auth/sign-in", response_model=AuthResponse)
async def sign_in(
    request: CredentialsRequest,
    container: Container = Depends(get_container),
) -> AuthResponse:
    await container.account_manager.sign_in(request.email, request.password)
    return _auth_response(container)


@router.post("/auth/sign-up", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def sign_up(
    request: SignUpRequest,
    container: Container = Depends(get_container),
) -> AuthResponse:
    await container.account_manager.sign_up(request.email, request.password, request.display_name)
    return _auth_response(container)


@router.post("/auth/sign-out", response_model=AuthResponse)
async def sign_out(container: Container = Depends(get_container)) -> AuthResponse:
    """
    Sign out of this device.

    Remote data is preserved; local data is wiped.
    """
    await container.account_manager.sign_out()
    return _auth_response(container)


@router.post("/guest/start", response_model=AuthResponse)
async def start_guest_mode(container: Container = Depends(get_container)) -> AuthResponse:
    container.account_manager.start_guest_mode()
    return _auth_response(container)


@router.post("/guest/convert", status_code=status.HTTP_201_CREATED, response_model=AuthResponse)
async def convert_guest(
    request: SignUpRequest,
    container: Container = Depends(get_container),
) -> AuthResponse:
    await container.account_manager.convert_guest_to_account(
        request.email, request.password, request.display_name
    )
    return _auth_response(container)
