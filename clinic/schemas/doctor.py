from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _check_times(times: Optional[List[str]]) -> Optional[List[str]]:
    if times is None:
        return times
    for value in times:
        try:
            datetime.strptime(value, "%H:%M")
        except ValueError:
            raise ValueError(f"'{value}' is not a HH:mm time")
    return times


class DoctorCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=20)
    specialty: str = Field(..., min_length=3, max_length=100)
    available_times: List[str] = Field(default_factory=list)

    @field_validator("available_times")
    @classmethod
    def validate_times(cls, value):
        return _check_times(value)


class DoctorUpdate(BaseModel):
    id: int
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    phone: Optional[str] = Field(None, max_length=20)
    specialty: Optional[str] = Field(None, min_length=3, max_length=100)
    available_times: Optional[List[str]] = None

    @field_validator("available_times")
    @classmethod
    def validate_times(cls, value):
        return _check_times(value)


class DoctorResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    specialty: str
    available_times: List[str] = []
