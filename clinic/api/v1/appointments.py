import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import TokenPayload
from ...api.deps import get_doctor_token, get_patient_token, get_token_service, optional_segment
from ...services.appointment_service import AppointmentService
from ...services.token_service import TokenService
from ...schemas.auth import MessageResponse
from ...schemas.appointment import AppointmentCreate, AppointmentResponse, AppointmentUpdate

router = APIRouter(prefix="/appointments", tags=["Appointments"])


@router.get("/{date}/{patient_name}/{token}")
async def get_doctor_appointments(
    date: datetime.date,
    patient_name: str,
    token: str,
    _: TokenPayload = Depends(get_doctor_token),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """The calling doctor's appointments on a date, optionally by patient name."""
    doctor_id = tokens.account_id_of(token)
    appointments = AppointmentService(db).appointments_for_doctor(
        doctor_id, date, optional_segment(patient_name)
    )
    return {"appointments": [AppointmentResponse.from_appointment(a) for a in appointments]}


@router.post("/{token}", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
async def book_appointment(
    token: str,
    appointment_data: AppointmentCreate,
    _: TokenPayload = Depends(get_patient_token),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """Book an appointment for the token's patient."""
    patient_id = tokens.account_id_of(token)
    AppointmentService(db).book(patient_id, appointment_data)
    return MessageResponse(message="Appointment booked successfully")


@router.put("/{token}", response_model=MessageResponse)
async def update_appointment(
    token: str,
    appointment_data: AppointmentUpdate,
    _: TokenPayload = Depends(get_patient_token),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """Update an appointment owned by the token's patient."""
    patient_id = tokens.account_id_of(token)
    AppointmentService(db).update(patient_id, appointment_data)
    return MessageResponse(message="Appointment updated successfully")


@router.delete("/{appointment_id}/{token}", response_model=MessageResponse)
async def cancel_appointment(
    appointment_id: int,
    token: str,
    _: TokenPayload = Depends(get_patient_token),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """Cancel an appointment owned by the token's patient."""
    patient_id = tokens.account_id_of(token)
    AppointmentService(db).cancel(appointment_id, patient_id)
    return MessageResponse(message="Appointment canceled successfully")
