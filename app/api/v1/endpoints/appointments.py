"""Appointment endpoints."""

from datetime import date

from fastapi import APIRouter, Query, status

from app.core.exceptions import BadRequestException, ForbiddenException
from app.dependencies import (
    AppointmentServiceDep,
    CurrentUser,
    DatabaseSession,
    Patient,
    Professional,
    Receptionist,
    Staff,
)
from app.schemas.appointments import (
    TRANSITION_STATUSES,
    AppointmentCreate,
    AppointmentNotesUpdate,
    AppointmentResponse,
    AppointmentStatus,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    StatusHistoryResponse,
)
from app.schemas.users import UserRole
from app.services.appointment_service import AppointmentService
from app.services.professional_service import ProfessionalService

router = APIRouter()


async def _load_for_user(
    service: AppointmentService,
    appointment_id: int,
    current_user: dict,
) -> AppointmentResponse:
    """
    Load an appointment the current user is allowed to see.

    Patients see their own appointments, professionals the ones booked with
    them, receptionists everything.

    Raises:
        AppointmentNotFound: If appointment not found
        ForbiddenException: If the appointment belongs to someone else
    """
    appointment = await service.get_appointment(appointment_id)
    role = current_user["role"]

    if role == UserRole.PATIENT.value and appointment.patient_id != current_user["id"]:
        raise ForbiddenException("You can only access your own appointments")
    if role == UserRole.PROFESSIONAL.value and (
        appointment.professional is None
        or appointment.professional.user_id != current_user["id"]
    ):
        raise ForbiddenException("You can only access your own appointments")

    return appointment


@router.get(
    "/",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List all appointments",
)
async def list_appointments(
    _: Receptionist,
    service: AppointmentServiceDep,
) -> list[AppointmentResponse]:
    """List every appointment in the clinic ordered by date."""
    return await service.list_appointments()


@router.get(
    "/me",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List my appointments",
)
async def list_my_appointments(
    current_user: Patient,
    service: AppointmentServiceDep,
) -> list[AppointmentResponse]:
    """List the authenticated patient's appointments ordered by date."""
    return await service.list_for_patient(current_user["id"])


@router.get(
    "/me/professional",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="List the professional's appointments",
)
async def list_professional_appointments(
    current_user: Professional,
    db: DatabaseSession,
    service: AppointmentServiceDep,
    day: date | None = Query(None, description="Clinic calendar day, YYYY-MM-DD"),
) -> list[AppointmentResponse]:
    """
    List appointments booked with the authenticated professional.

    Args:
        current_user: Authenticated professional
        db: Database session
        service: Appointment service
        day: Optional day filter

    Returns:
        Appointments ordered by date
    """
    professional = await ProfessionalService(db).get_professional_by_user(current_user["id"])
    return await service.list_for_professional(professional.id, day)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment by ID",
)
async def get_appointment(
    appointment_id: int,
    current_user: CurrentUser,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Get a specific appointment by ID.

    Args:
        appointment_id: Appointment ID
        current_user: Authenticated user
        service: Appointment service

    Returns:
        Appointment details

    Raises:
        AppointmentNotFound: If appointment not found
        ForbiddenException: If access is denied
    """
    return await _load_for_user(service, appointment_id, current_user)


@router.post(
    "/",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Appointments"],
    summary="Create new appointment",
)
async def create_appointment(
    data: AppointmentCreate,
    current_user: CurrentUser,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Book an appointment.

    Patients always book for themselves. Receptionists book on behalf of a
    patient given by ``patient_id``.

    Args:
        data: Appointment creation data
        current_user: Authenticated user
        service: Appointment service

    Returns:
        Created appointment
    """
    role = current_user["role"]
    if role == UserRole.PATIENT.value:
        patient_id = current_user["id"]
    elif role == UserRole.RECEPTIONIST.value:
        if data.patient_id is None:
            raise BadRequestException("patient_id is required")
        patient_id = data.patient_id
    else:
        raise ForbiddenException("Only patients and receptionists can book appointments")

    return await service.create_appointment(
        patient_id=patient_id,
        professional_id=data.professional_id,
        scheduled_at=data.scheduled_at,
        notes=data.notes,
    )


@router.put(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment",
)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    current_user: CurrentUser,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Update an existing appointment.

    Patients cannot move an appointment to another patient and may only set
    the status to canceled. Professionals cannot reassign the patient or the
    professional and may only confirm, finish or cancel.

    Args:
        appointment_id: Appointment ID
        data: Update data
        current_user: Authenticated user
        service: Appointment service

    Returns:
        Updated appointment
    """
    appointment = await _load_for_user(service, appointment_id, current_user)
    role = current_user["role"]

    if role == UserRole.PATIENT.value:
        if data.patient_id is not None and data.patient_id != current_user["id"]:
            raise ForbiddenException("You can only book appointments for yourself")
        if data.status is not None and data.status != AppointmentStatus.CANCELED:
            raise ForbiddenException("Patients can only cancel appointments")
    elif role == UserRole.PROFESSIONAL.value:
        if (data.patient_id is not None and data.patient_id != appointment.patient_id) or (
            data.professional_id is not None
            and data.professional_id != appointment.professional_id
        ):
            raise ForbiddenException("Professionals cannot reassign appointments")
        if data.status is not None and data.status not in TRANSITION_STATUSES:
            raise ForbiddenException("Professionals can only confirm, finish or cancel")

    return await service.update_appointment(appointment_id, data)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment status",
)
async def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    current_user: CurrentUser,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """
    Confirm, cancel or finish an appointment.

    Args:
        appointment_id: Appointment ID
        data: Target status
        current_user: Authenticated user
        service: Appointment service

    Returns:
        Updated appointment

    Raises:
        ValidationException: If the status is not a transition target
        ForbiddenException: If a patient sets anything other than canceled
    """
    await _load_for_user(service, appointment_id, current_user)

    if (
        current_user["role"] == UserRole.PATIENT.value
        and data.status != AppointmentStatus.CANCELED
    ):
        raise ForbiddenException("Patients can only cancel appointments")

    return await service.change_status(appointment_id, data.status)


@router.patch(
    "/{appointment_id}/notes",
    response_model=AppointmentResponse,
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Update appointment notes",
)
async def update_appointment_notes(
    appointment_id: int,
    data: AppointmentNotesUpdate,
    current_user: Staff,
    service: AppointmentServiceDep,
) -> AppointmentResponse:
    """Overwrite the notes of an appointment."""
    await _load_for_user(service, appointment_id, current_user)
    return await service.update_notes(appointment_id, data.notes)


@router.get(
    "/{appointment_id}/history",
    response_model=list[StatusHistoryResponse],
    status_code=status.HTTP_200_OK,
    tags=["Appointments"],
    summary="Get appointment status history",
)
async def get_status_history(
    appointment_id: int,
    current_user: CurrentUser,
    service: AppointmentServiceDep,
) -> list[StatusHistoryResponse]:
    """List the status transitions of an appointment, oldest first."""
    await _load_for_user(service, appointment_id, current_user)
    return await service.list_status_history(appointment_id)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Appointments"],
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: int,
    _: Receptionist,
    service: AppointmentServiceDep,
) -> None:
    """
    Permanently delete an appointment.

    Canceling keeps the record; this removes it together with its history.

    Args:
        appointment_id: Appointment ID
        service: Appointment service
    """
    await service.delete_appointment(appointment_id)
