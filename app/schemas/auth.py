from pydantic import EmailStr, field_validator
from typing import Optional

from app.schemas.common import CamelModel
from app.schemas.user import UserRead, _check_name, _check_password


# -------------------------------------------------------------------
# LOGIN REQUEST
# -------------------------------------------------------------------
class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


# -------------------------------------------------------------------
# REGISTER REQUEST (public self-registration, always role 'user')
# -------------------------------------------------------------------
class RegisterRequest(CamelModel):
    name: str
    email: EmailStr
    password: str

    validate_name = field_validator("name")(_check_name)
    validate_password = field_validator("password")(_check_password)

    class Config:
        json_schema_extra = {
            "examples": [
                {
                    "name": "Campus Visitor",
                    "email": "visitor@example.com",
                    "password": "password123",
                }
            ]
        }


# -------------------------------------------------------------------
# PROFILE (self-service: name / email only)
# -------------------------------------------------------------------
class ProfileUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None

    validate_name = field_validator("name")(_check_name)


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str

    @field_validator("current_password")
    @classmethod
    def current_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Current password is required")
        return v

    @field_validator("new_password")
    @classmethod
    def new_long_enough(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("New password must be at least 6 characters")
        return v


# -------------------------------------------------------------------
# TOKEN + USER DETAILS (login / register response)
# -------------------------------------------------------------------
class AuthPayload(CamelModel):
    user: UserRead
    token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
