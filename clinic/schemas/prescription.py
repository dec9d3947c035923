from typing import Optional
from uuid import uuid4
from pydantic import BaseModel, Field


class PrescriptionCreate(BaseModel):
    patient_name: str = Field(..., min_length=3, max_length=100)
    appointment_id: int
    medication: str = Field(..., min_length=3, max_length=100)
    dosage: str = Field(..., min_length=3, max_length=20)
    doctor_notes: Optional[str] = Field(None, max_length=200)
    refill_count: int = Field(0, ge=0, le=12)
    pharmacy_name: Optional[str] = Field(None, max_length=100)


class Prescription(PrescriptionCreate):
    """Stored prescription document."""
    id: str = Field(default_factory=lambda: uuid4().hex)
