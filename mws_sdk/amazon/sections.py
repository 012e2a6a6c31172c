"""Section base classes: endpoint branch, API version and default throttle group."""
import logging
from typing import Any, Optional, Sequence, Union

from mws_sdk.amazon import constants
from mws_sdk.amazon.core import AmazonCore, MockEntry
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings


class OrderCore(AmazonCore):
    url_branch = f"Orders/{constants.VERSION_ORDERS}"
    version = constants.VERSION_ORDERS


class ReportsCore(AmazonCore):
    # Reports live at the service root and identify the seller as "Merchant"
    url_branch = ""
    version = constants.VERSION_REPORTS
    seller_param = "Merchant"


class FinanceCore(AmazonCore):
    url_branch = f"Finances/{constants.VERSION_FINANCE}"
    version = constants.VERSION_FINANCE
    throttle_group = "ListFinancialEvents"
    throttle_limit = constants.THROTTLE_FINANCE.limit
    throttle_time = constants.THROTTLE_FINANCE.restore_seconds


class MerchantCore(AmazonCore):
    url_branch = f"MerchantFulfillment/{constants.VERSION_MERCHANT}"
    version = constants.VERSION_MERCHANT
    throttle_group = "MerchantFulfillment"
    throttle_limit = constants.THROTTLE_MERCHANT.limit
    throttle_time = constants.THROTTLE_MERCHANT.restore_seconds


class InboundCore(AmazonCore):
    url_branch = f"FulfillmentInboundShipment/{constants.VERSION_INBOUND}"
    version = constants.VERSION_INBOUND
    throttle_group = "Inbound"
    throttle_limit = constants.THROTTLE_INBOUND.limit
    throttle_time = constants.THROTTLE_INBOUND.restore_seconds


class OutboundCore(AmazonCore):
    url_branch = f"FulfillmentOutboundShipment/{constants.VERSION_OUTBOUND}"
    version = constants.VERSION_OUTBOUND
    throttle_group = "Inventory"
    throttle_limit = constants.THROTTLE_INVENTORY.limit
    throttle_time = constants.THROTTLE_INVENTORY.restore_seconds


class MarketplaceCore(AmazonCore):
    """Sections whose calls carry a single ``MarketplaceId`` defaulting to the store's."""

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        if self.store.marketplace_id:
            self.set_marketplace(self.store.marketplace_id)
        else:
            self.log("Marketplace ID is missing", logging.ERROR)

    def set_marketplace(self, marketplace_id: Any) -> None:
        if not isinstance(marketplace_id, str) or not marketplace_id:
            raise InvalidParameterError("Marketplace ID must be a non-empty string")
        self.options["MarketplaceId"] = marketplace_id


class ProductsCore(MarketplaceCore):
    url_branch = f"Products/{constants.VERSION_PRODUCTS}"
    version = constants.VERSION_PRODUCTS
    throttle_group = "Products"
    throttle_limit = constants.THROTTLE_PRODUCT.limit
    throttle_time = constants.THROTTLE_PRODUCT.restore_seconds


class RecommendationCore(MarketplaceCore):
    url_branch = f"Recommendations/{constants.VERSION_RECOMMEND}"
    version = constants.VERSION_RECOMMEND
    throttle_group = "Recommendations"
    throttle_limit = constants.THROTTLE_RECOMMEND.limit
    throttle_time = constants.THROTTLE_RECOMMEND.restore_seconds


class SubscriptionCore(MarketplaceCore):
    url_branch = f"Subscriptions/{constants.VERSION_SUBSCRIBE}"
    version = constants.VERSION_SUBSCRIBE
    throttle_group = "Subscriptions"
    throttle_limit = constants.THROTTLE_SUBSCRIBE.limit
    throttle_time = constants.THROTTLE_SUBSCRIBE.restore_seconds
