from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status
from pydantic import BaseModel, ConfigDict
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class Role(str, Enum):
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    PATIENT = "PATIENT"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Case-insensitive lookup; None for anything that is not a role."""
        if not value:
            return None
        try:
            return cls(value.upper())
        except ValueError:
            return None


class TokenConfig(BaseModel):
    """Signing parameters handed to the token service at construction."""
    model_config = ConfigDict(frozen=True)

    secret_key: str
    algorithm: str = "HS256"
    lifetime: timedelta = timedelta(days=7)

    @classmethod
    def from_settings(cls) -> "TokenConfig":
        return cls(
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            lifetime=timedelta(days=settings.TOKEN_EXPIRE_DAYS),
        )


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    role: Optional[str] = None
    iat: Optional[int] = None
    exp: Optional[int] = None


# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)


# JWT utilities
def encode_token(
    identifier: str,
    role: Role,
    config: TokenConfig,
    now: Optional[datetime] = None
) -> str:
    """Create a signed token asserting (identifier, role)."""
    issued_at = now or datetime.utcnow()
    to_encode = {
        "sub": identifier,
        "role": role.value,
        "iat": issued_at,
        "exp": issued_at + config.lifetime,
    }
    return jwt.encode(to_encode, config.secret_key, algorithm=config.algorithm)


def decode_token(token: str, config: TokenConfig) -> Optional[TokenPayload]:
    """Verify and decode a token. Returns None if it is malformed, forged or expired."""
    try:
        payload = jwt.decode(
            token,
            config.secret_key,
            algorithms=[config.algorithm]
        )
        return TokenPayload(**payload)

    except (JWTError, ValueError):
        return None


# Error taxonomy, rendered as {"error": detail} by the app's exception handler
class AuthenticationError(HTTPException):
    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class AuthorizationError(HTTPException):
    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        )


class OwnershipError(HTTPException):
    def __init__(self, detail: str = "Not allowed to modify this resource"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )


class ConflictError(HTTPException):
    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )


class ValidationFailure(HTTPException):
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )


class StoreError(HTTPException):
    def __init__(self, detail: str = "Storage operation failed"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
        )
