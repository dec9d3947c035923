from datetime import date, datetime, time
from typing import List, Optional
import enum
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Appointment, Patient, AppointmentStatus
from ..core.security import (
    ConflictError, NotFoundError, OwnershipError, StoreError, ValidationFailure
)
from ..schemas.appointment import AppointmentCreate, AppointmentUpdate
from .doctor_service import DoctorService

logger = logging.getLogger(__name__)


class AppointmentCheck(int, enum.Enum):
    DOCTOR_NOT_FOUND = -1
    UNAVAILABLE = 0
    VALID = 1


class AppointmentService:
    def __init__(self, db: Session):
        self.db = db
        self.doctors = DoctorService(db)

    def validate_appointment(self, doctor_id: int, appointment_time: datetime) -> AppointmentCheck:
        """Booking gate: the doctor must exist and the slot must be open."""
        if not self.doctors.get_doctor(doctor_id):
            return AppointmentCheck.DOCTOR_NOT_FOUND

        slots = self.doctors.availability(doctor_id, appointment_time.date())
        if appointment_time.strftime("%H:%M") not in slots:
            return AppointmentCheck.UNAVAILABLE
        return AppointmentCheck.VALID

    def book(self, patient_id: int, data: AppointmentCreate) -> Appointment:
        """Book a slot for ``patient_id``.

        The availability check and the insert are separate statements; two
        requests racing for one slot are settled by the unique
        (doctor_id, appointment_time) constraint, and the loser gets a conflict.
        """
        appointment_time = _naive(data.appointment_time)
        self._ensure_bookable(data.doctor_id, appointment_time)

        appointment = Appointment(
            doctor_id=data.doctor_id,
            patient_id=patient_id,
            appointment_time=appointment_time,
            status=AppointmentStatus.SCHEDULED.value,
            reason=data.reason,
            notes=data.notes,
        )
        self._commit(appointment, "Failed to book appointment")
        logger.info(
            f"Appointment {appointment.id} booked: doctor {appointment.doctor_id} "
            f"at {appointment.appointment_time}"
        )
        return appointment

    def update(self, patient_id: int, data: AppointmentUpdate) -> Appointment:
        appointment = self._owned(data.id, patient_id, "Unauthorized to update this appointment")

        appointment_time = _naive(data.appointment_time)
        if (data.doctor_id, appointment_time) != (appointment.doctor_id, appointment.appointment_time):
            self._ensure_bookable(data.doctor_id, appointment_time)

        appointment.doctor_id = data.doctor_id
        appointment.appointment_time = appointment_time
        appointment.reason = data.reason
        appointment.notes = data.notes
        self._commit(appointment, "Failed to update appointment")
        return appointment

    def cancel(self, appointment_id: int, patient_id: int) -> None:
        appointment = self._owned(appointment_id, patient_id, "Unauthorized to cancel this appointment")
        try:
            self.db.delete(appointment)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to cancel appointment {appointment_id}: {str(e)}")
            raise StoreError("Failed to cancel appointment")
        logger.info(f"Appointment {appointment_id} cancelled")

    def appointments_for_doctor(
        self,
        doctor_id: int,
        day: date,
        patient_name: Optional[str] = None
    ) -> List[Appointment]:
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_time.between(
                datetime.combine(day, time.min), datetime.combine(day, time.max)
            )
        )
        if patient_name:
            query = query.join(Patient).filter(Patient.name.ilike(f"%{patient_name}%"))
        return query.order_by(Appointment.appointment_time).all()

    def change_status(self, appointment_id: int, status: AppointmentStatus) -> bool:
        """Set an appointment's status; False when no such appointment exists."""
        try:
            updated = self.db.query(Appointment).filter(
                Appointment.id == appointment_id
            ).update({"status": status.value}, synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to update status of appointment {appointment_id}: {str(e)}")
            raise StoreError("Failed to update appointment status")
        return updated > 0

    def _ensure_bookable(self, doctor_id: int, appointment_time: datetime) -> None:
        check = self.validate_appointment(doctor_id, appointment_time)
        if check == AppointmentCheck.DOCTOR_NOT_FOUND:
            raise ValidationFailure("Doctor does not exist")
        if check == AppointmentCheck.UNAVAILABLE:
            raise ValidationFailure("Appointment time unavailable")

    def _owned(self, appointment_id: int, patient_id: Optional[int], denied: str) -> Appointment:
        appointment = self.db.query(Appointment).filter(Appointment.id == appointment_id).first()
        if not appointment:
            raise NotFoundError("Appointment not found")
        if patient_id is None or appointment.patient_id != patient_id:
            raise OwnershipError(denied)
        return appointment

    def _commit(self, appointment: Appointment, failure: str) -> None:
        try:
            self.db.add(appointment)
            self.db.commit()
            self.db.refresh(appointment)
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Slot conflict for doctor {appointment.doctor_id}: {str(e.orig)}")
            raise ConflictError("Appointment time unavailable")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{failure}: {str(e)}")
            raise StoreError(failure)


def _naive(value: datetime) -> datetime:
    """Appointment times are stored as naive wall-clock datetimes."""
    return value.replace(tzinfo=None, second=0, microsecond=0)
