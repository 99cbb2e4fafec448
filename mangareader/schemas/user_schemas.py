from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserRegister(BaseModel):
    username: str = Field(min_length=4, max_length=32, pattern=r"^[A-Za-z0-9]+$")
    password: str = Field(min_length=6)
    email: EmailStr


class RegisterRequest(BaseModel):
    user: UserRegister


class UserLogin(BaseModel):
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=6)


class LoginRequest(BaseModel):
    user: UserLogin


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    role: str
    image: str = ""


class AuthUserOut(UserOut):
    token: str


class AuthResponse(BaseModel):
    user: AuthUserOut


class PublicUserOut(BaseModel):
    id: int
    username: str
    role: str
    image: Optional[str] = ""

    model_config = {
        "from_attributes": True
    }


class PublicUserResponse(BaseModel):
    user: PublicUserOut
