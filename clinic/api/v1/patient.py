from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import NotFoundError, TokenPayload
from ...api.deps import get_patient_token, get_token_service, rate_limit_check
from ...services.patient_service import PatientService
from ...services.token_service import TokenService
from ...schemas.auth import Login, MessageResponse, TokenResponse
from ...schemas.patient import PatientCreate, PatientResponse

router = APIRouter(prefix="/patient", tags=["Patients"])


@router.post("/signup", response_model=MessageResponse)
async def signup(
    patient_data: PatientCreate,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient."""
    PatientService(db).signup(patient_data)
    return MessageResponse(message="Signup successful")


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: Login,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    _: None = Depends(rate_limit_check)
):
    """Authenticate a patient and return a token."""
    patient_service = PatientService(db, tokens)
    return TokenResponse(token=patient_service.login(login_data.identifier, login_data.password))


@router.get("/details/{token}")
async def get_patient_details(
    payload: TokenPayload = Depends(get_patient_token),
    db: Session = Depends(get_db)
):
    """Profile of the patient the token belongs to."""
    patient = PatientService(db).find_by_email(payload.sub)
    if not patient:
        raise NotFoundError("Patient not found")
    return {"patient": PatientResponse.model_validate(patient)}


@router.get("/appointments/{token}")
async def get_patient_appointments(
    token: str,
    _: TokenPayload = Depends(get_patient_token),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """All appointments of the token's patient."""
    patient_id = tokens.account_id_of(token)
    return {"appointments": PatientService(db).appointments(patient_id)}


@router.get("/filter/{token}")
async def filter_patient_appointments(
    token: str,
    condition: Optional[str] = None,
    name: Optional[str] = None,
    _: TokenPayload = Depends(get_patient_token),
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """Filter the patient's appointments by past/future and doctor name."""
    patient_id = tokens.account_id_of(token)
    return {"appointments": PatientService(db).filter(patient_id, condition, name)}
