from pydantic import EmailStr, Field, field_validator

from stockroom.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    lastname: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("name", "lastname")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class TokenRequest(CamelModel):
    token: str = Field(..., min_length=1)


class EmailRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)


class RegisterResponse(CamelModel):
    message: str
    requires_verification: bool = True


class LoginResponse(CamelModel):
    message: str
    token: str


class VerifyResetTokenResponse(CamelModel):
    message: str
    email: str
