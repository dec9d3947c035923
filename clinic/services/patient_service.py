from typing import List, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Appointment, Doctor, Patient, AppointmentStatus
from ..core.security import (
    Role, AuthenticationError, ConflictError, StoreError, ValidationFailure,
    get_password_hash, verify_password
)
from ..schemas.patient import PatientCreate
from ..schemas.appointment import AppointmentResponse
from .token_service import TokenService

logger = logging.getLogger(__name__)

# "past" appointments have been completed, "future" ones are still scheduled
CONDITIONS = {
    "past": AppointmentStatus.COMPLETED,
    "future": AppointmentStatus.SCHEDULED,
}


class PatientService:
    def __init__(self, db: Session, tokens: Optional[TokenService] = None):
        self.db = db
        self.tokens = tokens

    def is_unique(self, email: str, phone: str) -> bool:
        """True if no patient already uses this email or phone."""
        existing = self.db.query(Patient).filter(
            or_(Patient.email == email, Patient.phone == phone)
        ).first()
        return existing is None

    def signup(self, data: PatientCreate) -> Patient:
        if not self.is_unique(data.email, data.phone):
            raise ConflictError("Patient with email id or phone no already exist")

        patient = Patient(
            name=data.name,
            email=data.email,
            password_hash=get_password_hash(data.password),
            phone=data.phone,
            address=data.address,
        )
        try:
            self.db.add(patient)
            self.db.commit()
            self.db.refresh(patient)
        except IntegrityError as e:
            # lost a race with a concurrent signup for the same email or phone
            self.db.rollback()
            logger.warning(f"Duplicate patient signup: {str(e.orig)}")
            raise ConflictError("Patient with email id or phone no already exist")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create patient: {str(e)}")
            raise StoreError("Failed to create patient")

        logger.info(f"Patient {patient.id} signed up")
        return patient

    def login(self, identifier: str, password: str) -> str:
        patient = self.find_by_email(identifier)
        if not patient or not verify_password(password, patient.password_hash):
            raise AuthenticationError("Invalid patient credentials")
        return self.tokens.issue(patient.email, Role.PATIENT)

    def find_by_email(self, email: Optional[str]) -> Optional[Patient]:
        if not email:
            return None
        return self.db.query(Patient).filter(Patient.email == email).first()

    def appointments(self, patient_id: int) -> List[AppointmentResponse]:
        appointments = self.db.query(Appointment).filter(
            Appointment.patient_id == patient_id
        ).order_by(Appointment.appointment_time).all()
        return [AppointmentResponse.from_appointment(a) for a in appointments]

    def filter(
        self,
        patient_id: int,
        condition: Optional[str] = None,
        doctor_name: Optional[str] = None
    ) -> List[AppointmentResponse]:
        """Patient's appointments narrowed by past/future and/or doctor name."""
        query = self.db.query(Appointment).filter(Appointment.patient_id == patient_id)

        if condition:
            status = CONDITIONS.get(condition.lower())
            if status is None:
                raise ValidationFailure("Invalid condition")
            query = query.filter(Appointment.status == status.value)

        if doctor_name:
            query = query.join(Doctor).filter(Doctor.name.ilike(f"%{doctor_name}%"))

        appointments = query.order_by(Appointment.appointment_time).all()
        return [AppointmentResponse.from_appointment(a) for a in appointments]
