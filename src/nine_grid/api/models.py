"""Pydantic models for API request payloads."""

from pydantic import BaseModel, Field


class CredentialsRequest(BaseModel):
    """Email/password payload for sign-in and sign-up."""

    email: str
    password: str


class DescriptionRequest(BaseModel):
    """Free-text grid description."""

    description: str = Field(default="", max_length=5000)
