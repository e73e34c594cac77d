"""Pydantic schemas for the subscribe endpoint."""
from pydantic import BaseModel


class SubscriptionRequestSchema(BaseModel):
    name: str
    email: str


class SubscriptionResultSchema(BaseModel):
    success: bool
    message: str = ""
    error: str | None = None
