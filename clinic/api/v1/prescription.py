from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db, get_redis
from ...core.security import TokenPayload
from ...api.deps import get_doctor_token
from ...services.prescription_service import PrescriptionService
from ...schemas.auth import MessageResponse
from ...schemas.prescription import PrescriptionCreate

router = APIRouter(prefix="/prescription", tags=["Prescriptions"])


@router.post("/{token}", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
async def save_prescription(
    prescription_data: PrescriptionCreate,
    _: TokenPayload = Depends(get_doctor_token),
    db: Session = Depends(get_db),
    redis_client=Depends(get_redis)
):
    """Save a prescription and mark its appointment completed."""
    PrescriptionService(db, redis_client).save(prescription_data)
    return MessageResponse(message="Prescription saved")


@router.get("/{appointment_id}/{token}")
async def get_prescription(
    appointment_id: int,
    _: TokenPayload = Depends(get_doctor_token),
    db: Session = Depends(get_db),
    redis_client=Depends(get_redis)
):
    """Prescriptions recorded for an appointment."""
    return {"prescriptions": PrescriptionService(db, redis_client).get(appointment_id)}
