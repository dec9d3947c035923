from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_token_service, rate_limit_check
from ...services.admin_service import AdminService
from ...services.token_service import TokenService
from ...schemas.auth import AdminLogin, TokenResponse

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/login", response_model=TokenResponse)
async def admin_login(
    login_data: AdminLogin,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    _: None = Depends(rate_limit_check)
):
    """Authenticate an admin and return a token."""
    admin_service = AdminService(db, tokens)
    return TokenResponse(token=admin_service.login(login_data.username, login_data.password))
