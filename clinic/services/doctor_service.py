from datetime import date, datetime, time
from typing import List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Doctor, Appointment
from ..core.security import (
    Role, AuthenticationError, ConflictError, NotFoundError, StoreError,
    get_password_hash, verify_password
)
from ..schemas.doctor import DoctorCreate, DoctorUpdate
from .token_service import TokenService

logger = logging.getLogger(__name__)

# Hourly slots offered every day, 09:00 through 16:00
DAILY_SLOTS = [f"{hour:02d}:00" for hour in range(9, 17)]


class DoctorService:
    def __init__(self, db: Session, tokens: Optional[TokenService] = None):
        self.db = db
        self.tokens = tokens

    def get_doctor(self, doctor_id: int) -> Optional[Doctor]:
        return self.db.query(Doctor).filter(Doctor.id == doctor_id).first()

    def availability(self, doctor_id: int, day: date) -> List[str]:
        """Open slots for a doctor on ``day``, in template order."""
        start = datetime.combine(day, time.min)
        end = datetime.combine(day, time.max)
        booked = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_time.between(start, end)
        ).all()

        taken = {appt.appointment_time.strftime("%H:%M") for appt in booked}
        return [slot for slot in DAILY_SLOTS if slot not in taken]

    def list_doctors(self) -> List[Doctor]:
        return self.db.query(Doctor).order_by(Doctor.id).all()

    def save_doctor(self, data: DoctorCreate) -> Doctor:
        """Create a doctor; email must be unused."""
        existing = self.db.query(Doctor).filter(Doctor.email == data.email).first()
        if existing:
            raise ConflictError("Doctor already exists")

        doctor = Doctor(
            name=data.name,
            email=data.email,
            password_hash=get_password_hash(data.password),
            phone=data.phone,
            specialty=data.specialty,
            available_times=list(data.available_times),
        )
        self._commit(doctor, "Failed to save doctor")
        logger.info(f"Doctor {doctor.id} created")
        return doctor

    def update_doctor(self, data: DoctorUpdate) -> Doctor:
        doctor = self.get_doctor(data.id)
        if not doctor:
            raise NotFoundError("Doctor not found")

        changes = data.model_dump(exclude_unset=True, exclude={"id", "password"})
        if "email" in changes and changes["email"] != doctor.email:
            clash = self.db.query(Doctor).filter(Doctor.email == changes["email"]).first()
            if clash:
                raise ConflictError("Doctor already exists")

        for field, value in changes.items():
            if value is not None:
                setattr(doctor, field, value)
        if data.password:
            doctor.password_hash = get_password_hash(data.password)

        self._commit(doctor, "Failed to update doctor")
        return doctor

    def delete_doctor(self, doctor_id: int) -> None:
        """Delete a doctor together with all of their appointments."""
        doctor = self.get_doctor(doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found with id")

        try:
            self.db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id
            ).delete(synchronize_session=False)
            self.db.delete(doctor)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to delete doctor {doctor_id}: {str(e)}")
            raise StoreError("Failed to delete doctor")
        logger.info(f"Doctor {doctor_id} deleted")

    def login(self, identifier: str, password: str) -> str:
        doctor = self.db.query(Doctor).filter(Doctor.email == identifier).first()
        if not doctor or not verify_password(password, doctor.password_hash):
            raise AuthenticationError("Invalid credentials")
        return self.tokens.issue(doctor.email, Role.DOCTOR)

    def filter_doctors(
        self,
        name: Optional[str] = None,
        time_of_day: Optional[str] = None,
        specialty: Optional[str] = None
    ) -> List[Doctor]:
        """Filter by name substring, exact specialty and AM/PM availability.

        Every criterion is optional; with none given all doctors are returned.
        """
        query = self.db.query(Doctor)
        if name:
            query = query.filter(Doctor.name.ilike(f"%{name}%"))
        if specialty:
            query = query.filter(func.lower(Doctor.specialty) == specialty.lower())

        doctors = query.order_by(Doctor.id).all()
        if time_of_day:
            doctors = [d for d in doctors if _available_during(d, time_of_day)]
        return doctors

    def _commit(self, doctor: Doctor, failure: str) -> None:
        try:
            self.db.add(doctor)
            self.db.commit()
            self.db.refresh(doctor)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{failure}: {str(e)}")
            raise StoreError(failure)


def _available_during(doctor: Doctor, time_of_day: str) -> bool:
    period = time_of_day.upper()
    for value in doctor.available_times or []:
        hour = datetime.strptime(value, "%H:%M").hour
        if period == "AM" and hour < 12:
            return True
        if period == "PM" and hour >= 12:
            return True
    return False
