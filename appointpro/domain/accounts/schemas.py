"""Account domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import normalize_phone, validate_email


class PhoneRequest(BaseModel):
    phone: str

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)


class VerifyOtpRequest(PhoneRequest):
    otp: str

    @field_validator("otp")
    @classmethod
    def validate_otp(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("OTP is required")
        return v


class RegisterRequest(BaseModel):
    phone: str
    full_name: str
    email: str
    password: str

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        if not v:
            raise ValueError("Email is required")
        return validate_email(v)

    @field_validator("full_name")
    @classmethod
    def validate_name(cls, v):
        v = (v or "").strip()
        if not v:
            raise ValueError("Full name is required")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if not v or len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class StaffCreate(RegisterRequest):
    """Admin or manager account created by a super admin"""

    role: str


class LoginRequest(BaseModel):
    phone: str
    password: str

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return normalize_phone(v)


class ProfileUpdate(BaseModel):
    """Partial profile update - only supplied fields change"""

    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return normalize_phone(v)
        return v

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        if v:
            return validate_email(v)
        return v


class ChangePasswordRequest(BaseModel):
    current_password: Optional[str] = None
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_password(cls, v):
        if not v or len(v) < 6:
            raise ValueError("New password must be at least 6 characters")
        return v


class UserResponse(BaseModel):
    id: int
    phone: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    role: str
    registered_via_otp: bool = False
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SendOtpResponse(BaseModel):
    success: bool = True
    message: str
    phone: str
    channel: str
    fallback_used: bool = False
    test_mode: bool = False
    test_otp: Optional[str] = None


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse
    is_new_user: bool = False


class StaffCreatedResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse
