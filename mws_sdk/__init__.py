"""
mws_sdk - async client for the Amazon Marketplace Web Service merchant APIs.
"""
from mws_sdk.errors import InvalidParameterError, MwsConfigError, MwsError, MwsParseError
from mws_sdk.settings import MwsSettings, ServiceSettings, StoreSettings, get_mws_settings

__version__ = "0.1.0"

__all__ = [
    "InvalidParameterError",
    "MwsConfigError",
    "MwsError",
    "MwsParseError",
    "MwsSettings",
    "ServiceSettings",
    "StoreSettings",
    "get_mws_settings",
]
