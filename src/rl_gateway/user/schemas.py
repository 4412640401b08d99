"""Pydantic request/response schemas for rl_gateway.

All responses are wrapped in ApiResponse at the router layer.
"""

from pydantic import BaseModel, Field, field_validator


class LoginRequest(BaseModel):
    name: str
    pin: str


class RefreshRequest(BaseModel):
    refresh_token: str


class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    pin: str = Field(..., min_length=4, max_length=32)
    avatar_emoji: str = Field("😀", min_length=1, max_length=16)
    is_admin: bool = False

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class UserInfo(BaseModel):
    """Minimal user info embedded in responses."""

    user_id: int
    name: str
    avatar_emoji: str
    is_admin: bool


class UserDetail(UserInfo):
    balance: int
    created_at: str


class LoginResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "Bearer"
    expires_in: int
    user: UserInfo


class RefreshResponse(BaseModel):
    access_token: str
    expires_in: int


class LoginUserItem(BaseModel):
    """Public entry of the login picker — no balance, no role."""

    user_id: int
    name: str
    avatar_emoji: str
