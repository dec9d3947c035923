from datetime import date, datetime, time
from typing import Optional
from pydantic import BaseModel, Field


class AppointmentCreate(BaseModel):
    doctor_id: int
    appointment_time: datetime
    reason: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)


class AppointmentUpdate(BaseModel):
    id: int
    doctor_id: int
    appointment_time: datetime
    reason: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = Field(None, max_length=1000)


class AppointmentResponse(BaseModel):
    """Appointment joined with its doctor and patient, plus derived times."""
    id: int
    doctor_id: int
    doctor_name: str
    patient_id: int
    patient_name: str
    patient_email: str
    patient_phone: Optional[str] = None
    patient_address: Optional[str] = None
    appointment_time: datetime
    status: int
    appointment_date: date
    appointment_time_only: time
    end_time: datetime

    @classmethod
    def from_appointment(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            doctor_id=appointment.doctor.id,
            doctor_name=appointment.doctor.name,
            patient_id=appointment.patient.id,
            patient_name=appointment.patient.name,
            patient_email=appointment.patient.email,
            patient_phone=appointment.patient.phone,
            patient_address=appointment.patient.address,
            appointment_time=appointment.appointment_time,
            status=appointment.status,
            appointment_date=appointment.appointment_date,
            appointment_time_only=appointment.appointment_time_only,
            end_time=appointment.end_time,
        )
