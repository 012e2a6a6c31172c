from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class ServiceSettings(BaseSettings):
    """Endpoint, logging, mock and throttle behaviour shared by every store."""

    model_config = SettingsConfigDict(
        env_prefix="MWS_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    service_url: str = "https://mws.amazonservices.com/"

    # === Logging ===
    log_path: Optional[str] = None
    mute_log: bool = False
    user_name: str = ""

    # === Mock mode ===
    mock_dir: str = "mock"

    # === Throttling ===
    throttle_stop: bool = False         # give up instead of retrying a throttled call
    max_throttle_retries: int = 3
    request_timeout: float = 60.0
