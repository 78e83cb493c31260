"""
blinkit_agent/data_models/settings.py

User settings model, validated from config.json merged with environment overrides.
"""

from pydantic import BaseModel, Field


class Settings(BaseModel):
    """User-tunable settings for spending limits, geolocation and browser display."""
    default_lat: float | None = Field(default=None, ge=-90, le=90, description="Fallback delivery latitude")
    default_lon: float | None = Field(default=None, ge=-180, le=180, description="Fallback delivery longitude")
    warn_threshold: float = Field(default=500, gt=0, description="Cart total above which a warning is attached")
    max_order_amount: float = Field(default=2000, gt=0, description="Cart total above which checkout is blocked")
    headless: bool = Field(default=True, description="Run the browser without a visible window")
    debug: bool = Field(default=False, description="Outline matched elements and pause at labelled steps")
    slow_mo: int = Field(default=0, ge=0, description="Delay in ms inserted by the browser between operations")
    screenshot_on_error: bool = Field(default=True, description="Capture a page screenshot when an operation fails")
