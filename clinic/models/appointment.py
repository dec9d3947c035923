from datetime import timedelta
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

APPOINTMENT_DURATION = timedelta(hours=1)


class AppointmentStatus(int, enum.Enum):
    SCHEDULED = 0
    COMPLETED = 1


class Appointment(Base):
    __tablename__ = "appointments"
    # One booking per doctor per start time
    __table_args__ = (
        UniqueConstraint("doctor_id", "appointment_time", name="uq_appointment_doctor_time"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Relationships
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)

    # Appointment details
    appointment_time = Column(DateTime, nullable=False, index=True)
    status = Column(Integer, nullable=False, default=AppointmentStatus.SCHEDULED.value)
    reason = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    # Tracking
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    doctor = relationship("Doctor", back_populates="appointments")

    @property
    def appointment_date(self):
        return self.appointment_time.date() if self.appointment_time else None

    @property
    def appointment_time_only(self):
        return self.appointment_time.time() if self.appointment_time else None

    @property
    def end_time(self):
        return self.appointment_time + APPOINTMENT_DURATION if self.appointment_time else None

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, time='{self.appointment_time}')>"
