"""
``GetServiceStatus`` for any MWS section.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

from mws_sdk.amazon import constants
from mws_sdk.amazon.core import AmazonCore, MockEntry
from mws_sdk.amazon.parsing import children, text
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings

# service -> (url branch, version)
SERVICES: Dict[str, Tuple[str, str]] = {
    "Inbound": ("FulfillmentInboundShipment", constants.VERSION_INBOUND),
    "Inventory": ("FulfillmentInventory", constants.VERSION_INVENTORY),
    "Orders": ("Orders", constants.VERSION_ORDERS),
    "Outbound": ("FulfillmentOutboundShipment", constants.VERSION_OUTBOUND),
    "Products": ("Products", constants.VERSION_PRODUCTS),
    "Sellers": ("Sellers", constants.VERSION_SELLERS),
    "Finances": ("Finances", constants.VERSION_FINANCE),
    "Reports": ("", constants.VERSION_REPORTS),
    "MerchantFulfillment": ("MerchantFulfillment", constants.VERSION_MERCHANT),
    "Recommendations": ("Recommendations", constants.VERSION_RECOMMEND),
    "Subscriptions": ("Subscriptions", constants.VERSION_SUBSCRIBE),
}


class ServiceStatus(AmazonCore):
    """
    Reports whether a section is GREEN, GREEN_I (with messages), YELLOW or RED.
    """

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        service: Optional[str] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.ready = False
        self.status: Optional[str] = None
        self.timestamp: Optional[str] = None
        self.message_id: Optional[str] = None
        self.messages: List[str] = []
        if service is not None:
            self.set_service(service)
        self.options["Action"] = "GetServiceStatus"
        self._set_throttle(constants.THROTTLE_STATUS, "GetServiceStatus")

    def set_service(self, service: str) -> None:
        if service not in SERVICES:
            self.log(f"{service} is not a valid service", logging.WARNING)
            raise InvalidParameterError(f"Unknown service {service!r}; expected one of {', '.join(SERVICES)}")
        branch, version = SERVICES[service]
        self.url_branch = f"{branch}/{version}" if branch else ""
        self.options["Version"] = version
        self.ready = True

    def is_ready(self) -> bool:
        return self.ready

    async def fetch_service_status(self) -> bool:
        if not self.ready:
            self.log("Service must be set in order to retrieve status", logging.WARNING)
            return False
        result = await self._fetch_result()
        if result is None:
            return False
        self.timestamp = text(result, "Timestamp")
        self.status = text(result, "Status")
        self.message_id = None
        self.messages = []
        if self.status == "GREEN_I":
            self.message_id = text(result, "MessageId")
            self.messages = [text(message, "Text") for message in children(result, "Messages", "Message")]
        return True
