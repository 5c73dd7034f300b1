from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
from datetime import datetime

from app.models.user import UserRole


class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    password_confirmation: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)

    @model_validator(mode='after')
    def passwords_match(self):
        if self.password_confirmation is not None and self.password_confirmation != self.password:
            raise ValueError("The password confirmation does not match.")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=8)
    new_password_confirmation: Optional[str] = None

    @model_validator(mode='after')
    def passwords_match(self):
        if self.new_password_confirmation is not None and self.new_password_confirmation != self.new_password:
            raise ValueError("The new password confirmation does not match.")
        return self
