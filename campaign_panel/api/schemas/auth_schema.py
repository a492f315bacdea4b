# campaign_panel/api/schemas/auth_schema.py
from pydantic import BaseModel, Field

from campaign_panel.api.schemas.user_schema import UserResponse


# lookup only; seeded accounts may live on special-use domains such as .local
class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1, max_length=200)


class LoginResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "Bearer"


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "Bearer"


class ForgotPasswordRequest(BaseModel):
    email: str = Field(min_length=1, max_length=150)


class ResetPasswordRequest(BaseModel):
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=8, max_length=200)


class MessageResponse(BaseModel):
    message: str
