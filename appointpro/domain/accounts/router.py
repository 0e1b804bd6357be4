"""Account router - FastAPI endpoints for sign-in, registration and profile"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_super_admin
from ...database import get_db
from ...models import User
from ...shared.errors import UpstreamError
from ..otp.dependencies import get_otp_service
from ..otp.service import OtpService
from .schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    PhoneRequest,
    ProfileUpdate,
    RegisterRequest,
    SendOtpResponse,
    StaffCreate,
    StaffCreatedResponse,
    UserResponse,
    VerifyOtpRequest,
)
from .service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
profile_router = APIRouter(prefix="/api/user", tags=["Profile"])
staff_router = APIRouter(prefix="/api/superadmin", tags=["Super Admin"])


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    """Dependency injection for AccountService"""
    return AccountService(db)


# ============================================================================
# OTP SIGN-IN
# ============================================================================


@router.post("/send-otp", response_model=SendOtpResponse)
async def send_otp(data: PhoneRequest, otp_service: OtpService = Depends(get_otp_service)):
    """Issue a one-time code over WhatsApp, falling back to SMS"""
    outcome = await otp_service.send(data.phone)

    if not outcome.success:
        raise UpstreamError(
            "Failed to send OTP via WhatsApp and SMS",
            error_code="OTP_DELIVERY_FAILED",
            extra={
                "whatsapp_error": outcome.errors.get("whatsapp"),
                "sms_error": outcome.errors.get("sms"),
            },
        )

    is_test = outcome.channel == "test"
    return SendOtpResponse(
        message="OTP sent successfully" if not is_test else "Test mode: use the test OTP",
        phone=outcome.phone,
        channel=outcome.channel,
        fallback_used=outcome.fallback_used,
        test_mode=is_test,
        test_otp=otp_service.test_code if is_test else None,
    )


@router.post("/verify-otp", response_model=AuthResponse)
def verify_otp(
    data: VerifyOtpRequest,
    otp_service: OtpService = Depends(get_otp_service),
    service: AccountService = Depends(get_account_service),
):
    """Verify a code; signs in the existing account or creates one"""
    user, token, is_new_user = service.verify_otp_and_sign_in(otp_service, data.phone, data.otp)
    return AuthResponse(
        message="Login successful" if not is_new_user else "Phone verified, account created",
        token=token,
        user=UserResponse.model_validate(user),
        is_new_user=is_new_user,
    )


@router.post("/check-phone")
def check_phone(data: PhoneRequest, service: AccountService = Depends(get_account_service)):
    return {"exists": service.phone_exists(data.phone)}


# ============================================================================
# PASSWORD SIGN-IN
# ============================================================================


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(data: RegisterRequest, service: AccountService = Depends(get_account_service)):
    user, token = service.register(data)
    return AuthResponse(
        message="User registered successfully", token=token, user=UserResponse.model_validate(user)
    )


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, service: AccountService = Depends(get_account_service)):
    user, token = service.login(data.phone, data.password)
    return AuthResponse(message="Login successful", token=token, user=UserResponse.model_validate(user))


# ============================================================================
# PROFILE
# ============================================================================


@profile_router.get("/profile", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@profile_router.put("/profile", response_model=UserResponse)
def update_profile(
    data: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    """Update any subset of name, email and phone"""
    return service.update_profile(current_user, data)


@profile_router.put("/change-password")
def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    service.change_password(current_user, data)
    return {"message": "Password updated successfully"}


# ============================================================================
# STAFF ACCOUNTS (SUPER ADMIN)
# ============================================================================


@staff_router.post("/create-user", response_model=StaffCreatedResponse, status_code=201)
def create_staff_user(
    data: StaffCreate,
    current_user: User = Depends(require_super_admin),
    service: AccountService = Depends(get_account_service),
):
    """Create an admin or manager account"""
    user = service.create_staff(data, current_user)
    return StaffCreatedResponse(
        message=f"{user.role.capitalize()} user created successfully", user=UserResponse.model_validate(user)
    )
