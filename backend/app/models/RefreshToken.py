from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from ..core.database import utcnow
from .User import UserResponse

class RefreshToken(SQLModel, table=True):
    __tablename__ = "refresh_tokens"

    id: int | None = Field(default=None, primary_key=True)
    token: str = Field(unique=True, index=True, nullable=False)
    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True, nullable=False)
    expires_at: datetime = Field(sa_type=DateTime(timezone=True), nullable=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

class TokenPayload(SQLModel):
    sub: str | None = None # User ID
    type: str | None = None # "access" or "refresh"
    exp: int | None = None # Expiration time
    iat: int | None = None # Issued at time
    jti: str | None = None # Unique token id

# Wire models use the camelCase names clients already send
class TokenPair(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    access_token: str = PydanticField(alias="accessToken")
    refresh_token: str = PydanticField(alias="refreshToken")

class RefreshRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str = PydanticField(alias="refreshToken", min_length=1)

class LogoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    refresh_token: str | None = PydanticField(default=None, alias="refreshToken")

class AuthResult(BaseModel):
    user: UserResponse
    tokens: TokenPair

class RotationResult(BaseModel):
    user_id: int
    tokens: TokenPair

class AuthResponse(AuthResult):
    message: str

class RefreshResponse(BaseModel):
    message: str
    tokens: TokenPair
