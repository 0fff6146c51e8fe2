"""
Settings — environment driven configuration.

    from storefront.config import StorefrontSettings

    settings = StorefrontSettings()           # STOREFRONT_* env vars / .env
    client = build_client(settings)           # httpx.AsyncClient for the API
"""

from __future__ import annotations

from pathlib import Path

import httpx
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorefrontSettings(BaseSettings):
    """Storefront core settings."""

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- REST collaborators ---
    api_base_url: str = "http://localhost:3000/api"
    request_timeout: float = 15.0

    # --- Local device storage ---
    storage_dir: Path = Path.home() / ".storefront"

    # --- Checkout ---
    payment_gateway: str = "razorpay"
    currency: str = "INR"
    default_country: str = "India"

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("request_timeout")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        return v


def build_client(settings: StorefrontSettings) -> httpx.AsyncClient:
    """Create the shared HTTP client. Caller owns aclose()."""
    return httpx.AsyncClient(
        base_url=settings.api_base_url,
        timeout=settings.request_timeout,
        headers={"Content-Type": "application/json"},
    )


__all__ = ("StorefrontSettings", "build_client")
