from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse

from ...core.config import settings
from ...core.security import Role
from ...api.deps import get_token_service
from ...services.token_service import TokenService

router = APIRouter(tags=["Dashboards"])


def _dashboard(role: Role, view: str, token: str, tokens: TokenService):
    """Route a validated token to its dashboard; send anything else home."""
    if not tokens.validate(token, role.value):
        return RedirectResponse(url=settings.FRONTEND_URL, status_code=302)
    return {"dashboard": view, "role": role.value}


@router.get("/adminDashboard/{token}")
async def admin_dashboard(token: str, tokens: TokenService = Depends(get_token_service)):
    return _dashboard(Role.ADMIN, "admin/adminDashboard", token, tokens)


@router.get("/doctorDashboard/{token}")
async def doctor_dashboard(token: str, tokens: TokenService = Depends(get_token_service)):
    return _dashboard(Role.DOCTOR, "doctor/doctorDashboard", token, tokens)
