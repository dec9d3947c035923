from typing import Optional

from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import Role, TokenConfig, TokenPayload
from ..services.token_service import TokenService

# Built once from settings; never mutated afterwards
TOKEN_CONFIG = TokenConfig.from_settings()


def get_token_config() -> TokenConfig:
    """Signing configuration for the token service."""
    return TOKEN_CONFIG


def get_token_service(
    db: Session = Depends(get_db),
    config: TokenConfig = Depends(get_token_config)
) -> TokenService:
    return TokenService(db, config)


# Role-based access control dependencies.
# The token is taken from the ``{token}`` path segment of the route.
def require_role(role: Role):
    """Create a dependency that requires a valid token of ``role``."""
    async def role_checker(
        token: str,
        tokens: TokenService = Depends(get_token_service)
    ) -> TokenPayload:
        return tokens.require(token, role.value)

    return role_checker


get_admin_token = require_role(Role.ADMIN)
get_doctor_token = require_role(Role.DOCTOR)
get_patient_token = require_role(Role.PATIENT)


# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client=Depends(get_redis)
) -> None:
    """Basic rate limiting for login and signup endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_REQUESTS:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)


def optional_segment(segment: Optional[str]) -> Optional[str]:
    """Path segments carry the literal 'null' for an omitted filter."""
    if segment is None or segment.strip().lower() in ("", "null", "none"):
        return None
    return segment
