import logging
from typing import List, Optional

import redis

from ..schemas.prescription import Prescription

logger = logging.getLogger(__name__)


class PrescriptionRepository:
    """
    Prescription documents kept in Redis as JSON.

    Layout:
        prescription:{id}                          -> document
        prescription:appointment:{appointment_id}  -> id
    The appointment key is claimed with SET NX, so at most one prescription
    can ever exist per appointment.
    """

    prefix = "prescription"

    def __init__(self, redis_client: redis.Redis):
        self.redis_client = redis_client

    def _document_key(self, prescription_id: str) -> str:
        return f"{self.prefix}:{prescription_id}"

    def _appointment_key(self, appointment_id: int) -> str:
        return f"{self.prefix}:appointment:{appointment_id}"

    def insert(self, prescription: Prescription) -> bool:
        """Store a prescription; False if its appointment already has one."""
        index_key = self._appointment_key(prescription.appointment_id)
        claimed = self.redis_client.set(index_key, prescription.id, nx=True)
        if not claimed:
            logger.debug(f"Appointment {prescription.appointment_id} already has a prescription")
            return False

        try:
            self.redis_client.set(
                self._document_key(prescription.id), prescription.model_dump_json()
            )
        except redis.RedisError:
            # release the claim so the appointment is not left pointing at nothing
            self.redis_client.delete(index_key)
            raise
        return True

    def get(self, prescription_id: str) -> Optional[Prescription]:
        data = self.redis_client.get(self._document_key(prescription_id))
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return Prescription.model_validate_json(data)

    def find_by_appointment_id(self, appointment_id: int) -> List[Prescription]:
        prescription_id = self.redis_client.get(self._appointment_key(appointment_id))
        if prescription_id is None:
            return []
        if isinstance(prescription_id, bytes):
            prescription_id = prescription_id.decode("utf-8")

        prescription = self.get(prescription_id)
        return [prescription] if prescription else []
