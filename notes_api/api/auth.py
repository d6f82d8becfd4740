"""Authentication API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from notes_api.api.dependencies import get_current_user, get_identity_service
from notes_api.models.user import User
from notes_api.schemas.auth import (
    AuthResponse,
    IdentifierRequest,
    MessageResponse,
    RegisterResponse,
    ResetPasswordRequest,
    ResetTokenResponse,
    UserDetailResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    VerifyOtpRequest,
)
from notes_api.services.identity_service import IdentityService, PendingCode
from notes_api.services.otp_ledger import OtpChannel

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _channel_label(pending: PendingCode) -> str:
    return "email" if pending.channel is OtpChannel.EMAIL else "phone"


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    identity: Annotated[IdentityService, Depends(get_identity_service)],
):
    """Start registration: validate, park the sign-up and send a code."""
    pending = await identity.start_registration(
        name=user_data.name,
        email=user_data.email,
        phone=user_data.phone,
        password=user_data.password,
        confirm_password=user_data.confirm_password,
    )
    label = _channel_label(pending)
    return RegisterResponse(
        msg=f"OTP sent to {label}. Please verify.",
        reference=pending.reference,
        **{label: pending.reference},
    )


@router.post("/verify-otp", response_model=AuthResponse)
async def verify_otp(
    data: VerifyOtpRequest,
    identity: Annotated[IdentityService, Depends(get_identity_service)],
):
    """Verify the registration code and log the new user in."""
    result = await identity.verify_registration(data.email, data.phone, data.otp)
    return AuthResponse(
        msg="User registered & verified successfully!",
        token=result.token,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/resend-otp", response_model=MessageResponse)
async def resend_otp(
    data: IdentifierRequest,
    identity: Annotated[IdentityService, Depends(get_identity_service)],
):
    """Send a fresh code for a pending registration or reset."""
    pending = await identity.resend_code(data.email, data.phone)
    return MessageResponse(msg=f"New OTP sent to {_channel_label(pending)}")


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: UserLogin,
    identity: Annotated[IdentityService, Depends(get_identity_service)],
):
    """Login with email or phone and password."""
    result = await identity.login(credentials.email, credentials.phone, credentials.password)
    return AuthResponse(
        msg="Login success",
        token=result.token,
        user=UserResponse.model_validate(result.user),
    )


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    data: IdentifierRequest,
    identity: Annotated[IdentityService, Depends(get_identity_service)],
):
    pending = await identity.start_password_reset(data.email, data.phone)
    return MessageResponse(msg=f"Reset OTP sent to {_channel_label(pending)}")


@router.post("/verify-reset-otp", response_model=ResetTokenResponse)
async def verify_reset_otp(
    data: VerifyOtpRequest,
    identity: Annotated[IdentityService, Depends(get_identity_service)],
):
    reset_token = await identity.verify_reset_code(data.email, data.phone, data.otp)
    return ResetTokenResponse(
        msg="OTP verified, use this reset token to reset password",
        reset_token=reset_token,
    )


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    identity: Annotated[IdentityService, Depends(get_identity_service)],
):
    await identity.complete_password_reset(
        data.reset_token, data.new_password, data.confirm_password
    )
    return MessageResponse(msg="Password reset successful. You can now login with new password")


@router.get("/me", response_model=UserDetailResponse)
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
):
    """Get current user information."""
    return current_user
