"""
blinkit_agent/data_models/session.py

Persisted user session record.
"""

from pydantic import BaseModel, Field


class SessionData(BaseModel):
    """Durable login and location state, rewritten after every auth or location change."""
    phone: str | None = Field(default=None, description="Phone number used to log in")
    lat: float | None = Field(default=None, description="Delivery latitude")
    lon: float | None = Field(default=None, description="Delivery longitude")
    logged_in: bool = Field(default=False, description="Whether the last check confirmed an authenticated session")
