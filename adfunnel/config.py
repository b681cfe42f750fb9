"""ADFUNNEL — Central Configuration via Pydantic Settings."""

from typing import Dict

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Meta API ──
    meta_access_token: str = ""
    meta_ad_account_id: str = ""
    meta_api_version: str = "v21.0"
    meta_base_url: str = "https://graph.facebook.com"

    # ── Funnel Parsing ──
    # Client-specific custom conversions, e.g.
    # {"offsite_conversion.custom.1470262077092668": "click_to_call"}
    meta_custom_events: Dict[str, str] = {}

    # ── Validation ──
    google_value_tolerance_pct: float = 0.2  # API vs UI attribution drift
    parity_epsilon: float = 0.01  # Currency comparison tolerance

    # ── App ──
    log_level: str = "INFO"
    snapshot_schema_version: str = "1.0.0"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
