from pydantic import BaseModel


class OtpRequest(BaseModel):
    email: str


class OtpVerify(BaseModel):
    email: str
    code: str


class UserRead(BaseModel):
    id: str
    email: str
    is_admin: bool


class TokenResponse(BaseModel):
    token: str
    user: UserRead
