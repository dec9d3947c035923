from pydantic import BaseModel, Field


class AdminLogin(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class Login(BaseModel):
    """Doctor and patient credentials; the identifier is the account email."""
    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str
