from fastapi import APIRouter, Depends

from livequiz.dependencies import get_auth_service, get_current_user
from livequiz.models import User
from livequiz.schemas import OtpRequest, OtpVerify, TokenResponse, UserRead
from livequiz.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


def serialize_user(user: User) -> UserRead:
    return UserRead(id=user.id, email=user.email, is_admin=user.is_admin)


@router.post("/send-otp")
async def send_otp(payload: OtpRequest, auth: AuthService = Depends(get_auth_service)):
    otp = await auth.request_code(payload.email)
    return {"message": "OTP sent to your email", "email": otp.email}


@router.post("/verify-otp", response_model=TokenResponse)
async def verify_otp(payload: OtpVerify, auth: AuthService = Depends(get_auth_service)):
    token, user = await auth.verify_code(payload.email, payload.code)
    return TokenResponse(token=token.token, user=serialize_user(user))


@router.get("/me", response_model=UserRead)
async def me(user: User = Depends(get_current_user)):
    return serialize_user(user)
