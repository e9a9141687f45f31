# src/commentum/schemas/auth.py
"""Authentication schemas."""

from pydantic import BaseModel, Field, field_validator

from commentum.core.security import Provider


class LoginRequest(BaseModel):
    """Exchange a provider access token for an identity token."""

    token: str = Field(..., min_length=1, description="Provider access token")
    client_type: Provider

    @field_validator("client_type", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        if isinstance(value, str):
            return value.lower()
        return value
