# Settings package
from mws_sdk.settings.app_settings import MwsSettings, get_mws_settings
from mws_sdk.settings.service import ServiceSettings
from mws_sdk.settings.store import StoreSettings

__all__ = ["get_mws_settings", "MwsSettings", "ServiceSettings", "StoreSettings"]
