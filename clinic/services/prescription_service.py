from typing import List
import logging

import redis
from sqlalchemy.orm import Session

from ..core.security import ConflictError, StoreError
from ..models import AppointmentStatus
from ..repositories.prescription_repository import PrescriptionRepository
from ..schemas.prescription import Prescription, PrescriptionCreate
from .appointment_service import AppointmentService

logger = logging.getLogger(__name__)


class PrescriptionService:
    def __init__(self, db: Session, redis_client: redis.Redis):
        self.repository = PrescriptionRepository(redis_client)
        self.appointments = AppointmentService(db)

    def save(self, data: PrescriptionCreate) -> Prescription:
        """Store a prescription and mark its appointment as completed.

        The appointment id is an opaque reference into the relational store;
        the prescription is kept even when no such appointment exists.
        """
        prescription = Prescription(**data.model_dump())
        try:
            inserted = self.repository.insert(prescription)
        except redis.RedisError as e:
            logger.error(f"Failed to save prescription: {str(e)}")
            raise StoreError("Failed to save prescription")

        if not inserted:
            raise ConflictError("Prescription already exists for this appointment")

        if not self.appointments.change_status(data.appointment_id, AppointmentStatus.COMPLETED):
            logger.warning(f"Prescription {prescription.id} references unknown appointment {data.appointment_id}")
        return prescription

    def get(self, appointment_id: int) -> List[Prescription]:
        try:
            return self.repository.find_by_appointment_id(appointment_id)
        except redis.RedisError as e:
            logger.error(f"Failed to retrieve prescription: {str(e)}")
            raise StoreError("Failed to retrieve prescription")
