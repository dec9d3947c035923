import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import TokenPayload
from ...api.deps import get_admin_token, get_token_service, optional_segment, rate_limit_check
from ...services.doctor_service import DoctorService
from ...services.token_service import TokenService
from ...schemas.auth import Login, MessageResponse, TokenResponse
from ...schemas.doctor import DoctorCreate, DoctorResponse, DoctorUpdate

router = APIRouter(prefix="/doctor", tags=["Doctors"])


@router.post("/login", response_model=TokenResponse)
async def doctor_login(
    login_data: Login,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    _: None = Depends(rate_limit_check)
):
    """Authenticate a doctor and return a token."""
    doctor_service = DoctorService(db, tokens)
    return TokenResponse(token=doctor_service.login(login_data.identifier, login_data.password))


@router.get("")
async def list_doctors(db: Session = Depends(get_db)):
    """All doctors."""
    doctors = DoctorService(db).list_doctors()
    return {"doctors": [DoctorResponse.model_validate(d) for d in doctors]}


@router.get("/availability/{user}/{doctor_id}/{date}/{token}")
async def get_doctor_availability(
    user: str,
    doctor_id: int,
    date: datetime.date,
    token: str,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service)
):
    """Open slots for a doctor on a date. ``user`` is the caller's role."""
    tokens.require(token, user)
    return {"availability": DoctorService(db).availability(doctor_id, date)}


@router.get("/filter/{name}/{time}/{speciality}")
async def filter_doctors(
    name: str,
    time: str,
    speciality: str,
    db: Session = Depends(get_db)
):
    """Filter doctors; pass 'null' for any criterion that should be ignored."""
    doctors = DoctorService(db).filter_doctors(
        name=optional_segment(name),
        time_of_day=optional_segment(time),
        specialty=optional_segment(speciality),
    )
    return {"doctors": [DoctorResponse.model_validate(d) for d in doctors]}


@router.post("/{token}", response_model=MessageResponse)
async def save_doctor(
    doctor_data: DoctorCreate,
    _: TokenPayload = Depends(get_admin_token),
    db: Session = Depends(get_db)
):
    """Add a doctor (admin only)."""
    DoctorService(db).save_doctor(doctor_data)
    return MessageResponse(message="Doctor added to db")


@router.put("/{token}", response_model=MessageResponse)
async def update_doctor(
    doctor_data: DoctorUpdate,
    _: TokenPayload = Depends(get_admin_token),
    db: Session = Depends(get_db)
):
    """Update a doctor's details (admin only)."""
    DoctorService(db).update_doctor(doctor_data)
    return MessageResponse(message="Doctor updated")


@router.delete("/{doctor_id}/{token}", response_model=MessageResponse)
async def delete_doctor(
    doctor_id: int,
    _: TokenPayload = Depends(get_admin_token),
    db: Session = Depends(get_db)
):
    """Delete a doctor and their appointments (admin only)."""
    DoctorService(db).delete_doctor(doctor_id)
    return MessageResponse(message="Doctor deleted successfully")
