from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from mws_sdk.settings.service import ServiceSettings
from mws_sdk.settings.store import StoreSettings

_PROJECT_ROOT = Path(__file__).resolve().parents[2]


class MwsSettings(BaseModel):
    """Aggregates the store credentials and the service options."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="ignore")

    store: StoreSettings
    service: ServiceSettings


@lru_cache()
def get_mws_settings() -> MwsSettings:
    # .env is loaded once here; real environment variables win over it
    load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")
    return MwsSettings(
        store=StoreSettings(),
        service=ServiceSettings(),
    )
