"""Account service - Business logic for sign-in, registration and profile"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import STAFF_ROLES, User
from ...security_utils import create_access_token, hash_password_bcrypt, verify_password_bcrypt
from ...shared.errors import AuthenticationError, ConflictError, ValidationFailed
from ..otp.service import OtpService
from .repository import UserRepository
from .schemas import ChangePasswordRequest, ProfileUpdate, RegisterRequest, StaffCreate

logger = logging.getLogger(__name__)


class AccountService:
    """Service layer for account business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def verify_otp_and_sign_in(self, otp_service: OtpService, phone: str, code: str) -> tuple[User, str, bool]:
        """
        Verify a code and sign the caller in, creating the account on first use.

        Returns:
            (user, token, is_new_user)
        """
        outcome = otp_service.verify(phone, code)
        if not outcome.success:
            extra = {}
            if outcome.remaining_attempts is not None:
                extra["remaining_attempts"] = outcome.remaining_attempts
            raise ValidationFailed(outcome.message, error_code=outcome.failure.value, extra=extra)

        user = self.repo.get_by_phone(self.db, outcome.phone)
        is_new_user = user is None
        if is_new_user:
            logger.info(f"👤 Creating account for verified phone {outcome.phone}")
            user = self.repo.create_user(self.db, phone=outcome.phone, registered_via_otp=True)

        return user, create_access_token(user.id), is_new_user

    def phone_exists(self, phone: str) -> bool:
        return self.repo.get_by_phone(self.db, phone) is not None

    def register(self, data: RegisterRequest) -> tuple[User, str]:
        user = self._create_password_account(data)
        logger.info(f"✅ Registered user {user.id}")
        return user, create_access_token(user.id)

    def create_staff(self, data: StaffCreate, created_by: User) -> User:
        if data.role not in STAFF_ROLES:
            raise ValidationFailed(
                f"Invalid role. Allowed: {', '.join(STAFF_ROLES)}", error_code="INVALID_ROLE"
            )

        user = self._create_password_account(data, role=data.role)
        logger.info(f"🛡️ Super admin {created_by.id} created {data.role} user {user.id}")
        return user

    def _create_password_account(self, data: RegisterRequest, **extra) -> User:
        if self.repo.get_by_phone(self.db, data.phone):
            raise ConflictError("Phone number already registered", error_code="PHONE_EXISTS")
        if self.repo.get_by_email(self.db, data.email):
            raise ConflictError("Email already registered", error_code="EMAIL_EXISTS")

        try:
            return self.repo.create_user(
                self.db,
                phone=data.phone,
                full_name=data.full_name,
                email=data.email,
                password_hash=hash_password_bcrypt(data.password),
                **extra,
            )
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"⚠️ Account creation race for {data.phone}: {e.orig}")
            raise ConflictError("Phone or email already registered", error_code="ACCOUNT_EXISTS") from e

    def login(self, phone: str, password: str) -> tuple[User, str]:
        user = self.repo.get_by_phone(self.db, phone)
        if not user or not verify_password_bcrypt(password, user.password_hash):
            raise AuthenticationError("Invalid credentials", error_code="INVALID_CREDENTIALS")
        return user, create_access_token(user.id)

    def update_profile(self, user: User, data: ProfileUpdate) -> User:
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if not fields:
            raise ValidationFailed("At least one field is required", error_code="NO_FIELDS")

        if "phone" in fields and fields["phone"] != user.phone:
            if self.repo.get_by_phone(self.db, fields["phone"]):
                raise ConflictError("Phone number already registered", error_code="PHONE_EXISTS")
        if "email" in fields and fields["email"] != user.email:
            if self.repo.get_by_email(self.db, fields["email"]):
                raise ConflictError("Email already registered", error_code="EMAIL_EXISTS")

        return self.repo.update_user(self.db, user, fields)

    def change_password(self, user: User, data: ChangePasswordRequest) -> None:
        # OTP-only accounts have no password yet and may set one directly
        if user.password_hash and not verify_password_bcrypt(data.current_password or "", user.password_hash):
            raise ValidationFailed("Current password is incorrect", error_code="INVALID_PASSWORD")

        self.repo.update_user(self.db, user, {"password_hash": hash_password_bcrypt(data.new_password)})
        logger.info(f"🔐 Password changed for user {user.id}")
