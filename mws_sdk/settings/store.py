from __future__ import annotations

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """
    Credentials of one seller account.

    Every field maps to an ``MWS_``-prefixed environment variable:
        merchant_id    -> MWS_MERCHANT_ID
        marketplace_id -> MWS_MARKETPLACE_ID
        key_id         -> MWS_KEY_ID
        secret_key     -> MWS_SECRET_KEY
        mws_auth_token -> MWS_MWS_AUTH_TOKEN
    """

    model_config = SettingsConfigDict(
        env_prefix="MWS_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    merchant_id: str = ""
    marketplace_id: str = ""
    key_id: str = ""
    secret_key: str = ""
    # Only needed by third-party developer apps acting for a seller
    mws_auth_token: Optional[str] = None

    def missing_credentials(self) -> list[str]:
        """Return the names of required credentials that are empty."""
        return [
            name
            for name in ("merchant_id", "key_id", "secret_key")
            if not getattr(self, name)
        ]
