"""Shared fixtures: test store credentials, mock fixture directory, throttle state."""
from pathlib import Path

import pytest

from mws_sdk.amazon.throttle import throttle_registry
from mws_sdk.settings import MwsSettings, ServiceSettings, StoreSettings

MOCK_DIR = Path(__file__).resolve().parent / "mock"


@pytest.fixture
def settings() -> MwsSettings:
    """Settings for a fake store, replaying fixtures from tests/mock."""
    return MwsSettings(
        store=StoreSettings(
            merchant_id="T_M_GOOD_83835495",
            marketplace_id="ATVPDKIKX0DER",
            key_id="key",
            secret_key="secret",
            mws_auth_token=None,
        ),
        service=ServiceSettings(
            service_url="https://mws.amazonservices.com/",
            log_path=None,
            mute_log=False,
            mock_dir=str(MOCK_DIR),
            throttle_stop=False,
            max_throttle_retries=3,
        ),
    )


@pytest.fixture(autouse=True)
def reset_throttle():
    """Throttle buckets are process-wide; start every test with empty ones."""
    throttle_registry.reset()
    yield
    throttle_registry.reset()
