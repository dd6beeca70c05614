# portal/config.py
"""
Runtime settings, read once from the environment (and `.env` if present).

Every external collaborator (Stripe, PayPal, OpenAI, Resend) is configured
here; components take these values as constructor defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")


def _get_list(name: str, fallback: str = "") -> List[str]:
    raw_value = os.getenv(name, fallback)
    if not raw_value:
        return []
    return [item.strip() for item in raw_value.split(",") if item.strip()]


def _default_base_url() -> str:
    return os.getenv("BASE_URL") or f"http://localhost:{os.getenv('PORT', '3000')}"


@dataclass(frozen=True)
class Settings:
    # --- OpenAI ---
    OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4.1-mini")
    OPENAI_TEMPERATURE: float = float(os.getenv("OPENAI_TEMPERATURE", "0.9"))
    OPENAI_MAX_TOKENS: int = int(os.getenv("OPENAI_MAX_TOKENS", "2000"))

    # --- Stripe (checkout session) ---
    STRIPE_SECRET_KEY: Optional[str] = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_PRICE_ID: Optional[str] = os.getenv("STRIPE_PRICE_ID")

    # --- PayPal (order / capture) ---
    PAYPAL_CLIENT_ID: Optional[str] = os.getenv("PAYPAL_CLIENT_ID")
    PAYPAL_CLIENT_SECRET: Optional[str] = os.getenv("PAYPAL_CLIENT_SECRET")
    PAYPAL_MODE: str = os.getenv("PAYPAL_MODE", "sandbox")

    # Fixed price for one reading, shared by both providers
    PRICE_AMOUNT: str = os.getenv("PRICE_AMOUNT", "9.99")
    PRICE_CURRENCY: str = os.getenv("PRICE_CURRENCY", "USD")

    # --- Resend (email delivery) ---
    RESEND_API_KEY: Optional[str] = os.getenv("RESEND_API_KEY")
    EMAIL_FROM: Optional[str] = os.getenv("EMAIL_FROM")

    # --- Server ---
    PORT: int = int(os.getenv("PORT", "3000"))
    BASE_URL: str = _default_base_url()
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "20"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    ALLOWED_ORIGINS: List[str] = field(
        default_factory=lambda: _get_list("ALLOWED_ORIGINS", "*")
    )


settings = Settings()
