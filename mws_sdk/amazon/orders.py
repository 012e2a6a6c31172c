"""
Orders section: single orders, order searches and order items.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from mws_sdk.amazon import constants
from mws_sdk.amazon.core import MockEntry, TimeInput, TokenPagination, as_str_list, gen_time, parse_time
from mws_sdk.amazon.parsing import address, child, children, copy_fields, has, money, text
from mws_sdk.amazon.sections import OrderCore
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings

ORDER_FIELDS = (
    "AmazonOrderId",
    "SellerOrderId",
    "PurchaseDate",
    "LastUpdateDate",
    "OrderStatus",
    "FulfillmentChannel",
    "SalesChannel",
    "OrderChannel",
    "ShipServiceLevel",
    "NumberOfItemsShipped",
    "NumberOfItemsUnshipped",
    "PaymentMethod",
    "MarketplaceId",
    "BuyerName",
    "BuyerEmail",
    "BuyerCounty",
    "ShipmentServiceLevelCategory",
    "CbaDisplayableShippingLabel",
    "ShippedByAmazonTFM",
    "TFMShipmentStatus",
    "OrderType",
    "EarliestShipDate",
    "LatestShipDate",
    "EarliestDeliveryDate",
    "LatestDeliveryDate",
    "IsBusinessOrder",
    "PurchaseOrderNumber",
    "IsPrime",
    "IsPremiumOrder",
)

ITEM_FIELDS = (
    "QuantityShipped",
    "PriceDesignation",
    "GiftMessageText",
    "GiftWrapLevel",
    "ConditionId",
    "ConditionSubtypeId",
    "ConditionNote",
    "ScheduledDeliveryStartDate",
    "ScheduledDeliveryEndDate",
)

ITEM_MONEY_FIELDS = (
    "ItemPrice",
    "ShippingPrice",
    "GiftWrapPrice",
    "ItemTax",
    "ShippingTax",
    "GiftWrapTax",
    "ShippingDiscount",
    "PromotionDiscount",
    "CODFee",
    "CODFeeDiscount",
)

INVOICE_FIELDS = (
    "InvoiceRequirement",
    "BuyerSelectedInvoiceCategory",
    "InvoiceTitle",
    "InvoiceInformation",
)


def parse_order(node: Dict[str, Any]) -> Dict[str, Any]:
    """Map an ``<Order>`` element to a record."""
    data = copy_fields({}, node, ORDER_FIELDS)
    # Always present in the record, even when MWS leaves them out
    for field in ("AmazonOrderId", "PurchaseDate", "LastUpdateDate", "OrderStatus", "MarketplaceId"):
        data.setdefault(field, "")

    if has(node, "ShippingAddress"):
        data["ShippingAddress"] = address(node, "ShippingAddress")
    if has(node, "OrderTotal"):
        data["OrderTotal"] = money(node, "OrderTotal")
    if has(node, "PaymentExecutionDetail"):
        data["PaymentExecutionDetail"] = [
            {
                "Amount": text(detail, "Payment", "Amount"),
                "CurrencyCode": text(detail, "Payment", "CurrencyCode"),
                "SubPaymentMethod": text(detail, "SubPaymentMethod"),
            }
            for detail in children(node, "PaymentExecutionDetail", "PaymentExecutionDetailItem")
        ]
    if has(node, "PaymentMethodDetails"):
        data["PaymentMethodDetails"] = [
            text(detail) for detail in children(node, "PaymentMethodDetails", "PaymentMethodDetail")
        ]
    if has(node, "IsReplacementOrder"):
        data["IsReplacementOrder"] = text(node, "IsReplacementOrder")
        data["ReplacedOrderId"] = text(node, "ReplacedOrderId")
    if has(node, "BuyerTaxInfo"):
        tax_info = child(node, "BuyerTaxInfo")
        data["BuyerTaxInfo"] = copy_fields({}, tax_info, ("CompanyLegalName", "TaxingRegion"))
        if has(tax_info, "TaxClassifications"):
            data["BuyerTaxInfo"]["TaxClassifications"] = [
                {"Name": text(tax, "Name"), "Value": text(tax, "Value")}
                for tax in children(tax_info, "TaxClassifications", "TaxClassification")
            ]
    return data


def parse_order_item(node: Dict[str, Any]) -> Dict[str, Any]:
    """Map an ``<OrderItem>`` element to a record."""
    item = {
        "ASIN": text(node, "ASIN"),
        "SellerSKU": text(node, "SellerSKU"),
        "OrderItemId": text(node, "OrderItemId"),
        "Title": text(node, "Title"),
        "QuantityOrdered": text(node, "QuantityOrdered"),
    }
    copy_fields(item, node, ITEM_FIELDS)
    if has(node, "BuyerCustomizedInfo", "CustomizedURL"):
        item["BuyerCustomizedInfo"] = text(node, "BuyerCustomizedInfo", "CustomizedURL")
    if has(node, "PointsGranted"):
        item["PointsGranted"] = {
            "PointsNumber": text(node, "PointsGranted", "PointsNumber"),
            "Amount": text(node, "PointsGranted", "PointsMonetaryValue", "Amount"),
            "CurrencyCode": text(node, "PointsGranted", "PointsMonetaryValue", "CurrencyCode"),
        }
    for field in ITEM_MONEY_FIELDS:
        if has(node, field):
            item[field] = money(node, field)
    if has(node, "PromotionIds"):
        item["PromotionIds"] = [text(x) for x in children(node, "PromotionIds", "PromotionId")]
    if has(node, "InvoiceData"):
        item["InvoiceData"] = copy_fields({}, child(node, "InvoiceData"), INVOICE_FIELDS)
    return item


class Order(OrderCore):
    """
    A single order, fetched with ``GetOrder`` or built from an order search.

    Example:
        order = Order(settings, order_id="058-1233752-8214740")
        if await order.fetch_order():
            print(order.order_status, order.order_total)
    """

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        order_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.data: Dict[str, Any] = {}
        if order_id is not None:
            self.set_order_id(order_id)
        if data:
            self.data = parse_order(data)
        self.options["Action"] = "GetOrder"
        self._set_throttle(constants.THROTTLE_ORDER, "GetOrder")

    def set_order_id(self, order_id: Any) -> None:
        if not isinstance(order_id, (str, int)) or isinstance(order_id, bool):
            self.log("Attempted to set AmazonOrderId to invalid value", logging.WARNING)
            raise InvalidParameterError("Order ID must be a string or number")
        self.options["AmazonOrderId.Id.1"] = str(order_id)

    async def fetch_order(self) -> bool:
        if "AmazonOrderId.Id.1" not in self.options:
            self.log("Order ID must be set in order to fetch it!", logging.WARNING)
            return False
        self.options["Action"] = "GetOrder"
        result = await self._fetch_result()
        if result is None:
            return False
        node = child(result, "Orders", "Order")
        if node is None:
            self.log(f"[ORDERS] No order returned for {self.options['AmazonOrderId.Id.1']}", logging.WARNING)
            return False
        self.data = parse_order(node)
        return True

    async def fetch_items(self, use_token: bool = False) -> Optional["OrderItemList"]:
        """
        Fetch the items of this order.

        Returns:
            The populated item list, or None when the order has no ID yet
        """
        order_id = self.data.get("AmazonOrderId")
        if not order_id:
            return None
        items = OrderItemList(self.settings, order_id=order_id, mock=self.mock_mode)
        items.mock_files = list(self.mock_files)
        items.mock_index = self.mock_index
        items.set_use_token(bool(use_token))
        await items.fetch_items()
        self.mock_index = items.mock_index
        return items

    def get(self, field: str, default: Any = None) -> Any:
        return self.data.get(field, default)

    @property
    def amazon_order_id(self) -> Optional[str]:
        return self.data.get("AmazonOrderId")

    @property
    def order_status(self) -> Optional[str]:
        return self.data.get("OrderStatus")

    @property
    def order_total(self) -> Optional[Dict[str, str]]:
        return self.data.get("OrderTotal")

    @property
    def shipping_address(self) -> Optional[Dict[str, str]]:
        return self.data.get("ShippingAddress")

    def get_percent_shipped(self) -> Optional[float]:
        """Share of the order's items already shipped, None when the counts are missing."""
        if "NumberOfItemsShipped" not in self.data or "NumberOfItemsUnshipped" not in self.data:
            return None
        shipped = int(self.data["NumberOfItemsShipped"] or 0)
        unshipped = int(self.data["NumberOfItemsUnshipped"] or 0)
        total = shipped + unshipped
        if total == 0:
            return 0.0
        return shipped / total


class OrderList(TokenPagination, OrderCore):
    """Order search with ``ListOrders``; pages are followed when token use is on."""

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.order_list: List[Order] = []
        self.reset_marketplace_filter()
        self._set_throttle(constants.THROTTLE_ORDER_LIST, "ListOrders")

    def set_limits(self, mode: str, lower: TimeInput = None, upper: TimeInput = None) -> None:
        """
        Restrict the search to orders created or modified in a time window.

        Both bounds default to two minutes ago, the latest moment MWS accepts.
        A lower bound after the upper one is moved to 150 seconds before it.

        Args:
            mode: "Created" or "Modified"
            lower: Start of the window
            upper: End of the window
        """
        if mode not in ("Created", "Modified"):
            self.log('First parameter should be either "Created" or "Modified".', logging.WARNING)
            raise InvalidParameterError(f"Invalid time limit mode: {mode!r}")
        default = timedelta(minutes=-2)
        before = gen_time(upper if upper is not None else default)
        after = gen_time(lower if lower is not None else default)
        if after > before:
            ceiling = parse_time(before) if upper is not None else datetime.now(timezone.utc)
            after = gen_time(ceiling - timedelta(seconds=150))

        if mode == "Created":
            self.options["CreatedAfter"] = after
            self.options["CreatedBefore"] = before
            self.options.pop("LastUpdatedAfter", None)
            self.options.pop("LastUpdatedBefore", None)
        else:
            self.options["LastUpdatedAfter"] = after
            self.options["LastUpdatedBefore"] = before
            self.options.pop("CreatedAfter", None)
            self.options.pop("CreatedBefore", None)

    def set_order_status_filter(self, statuses: Union[str, Sequence[str]]) -> None:
        self._set_list("OrderStatus.Status", as_str_list(statuses, "order status"))

    def reset_order_status_filter(self) -> None:
        self._remove_options("OrderStatus.")

    def set_marketplace_filter(self, marketplaces: Union[str, Sequence[str]]) -> None:
        self._set_list("MarketplaceId.Id", as_str_list(marketplaces, "marketplace"))

    def reset_marketplace_filter(self) -> None:
        """Search the store's own marketplace only."""
        self._remove_options("MarketplaceId.")
        if self.store.marketplace_id:
            self.options["MarketplaceId.Id.1"] = self.store.marketplace_id
        else:
            self.log("Marketplace ID is missing", logging.ERROR)

    def set_fulfillment_channel_filter(self, channel: Optional[str]) -> None:
        """AFN (fulfilled by Amazon) or MFN (fulfilled by the merchant); None clears it."""
        if channel is None:
            self.options.pop("FulfillmentChannel.Channel.1", None)
        elif channel in ("AFN", "MFN"):
            self.options["FulfillmentChannel.Channel.1"] = channel
        else:
            raise InvalidParameterError(f"Fulfillment channel must be AFN or MFN, got {channel!r}")

    def set_payment_method_filter(self, methods: Union[str, Sequence[str]]) -> None:
        self._set_list("PaymentMethod", as_str_list(methods, "payment method"))

    def reset_payment_method_filter(self) -> None:
        self._remove_options("PaymentMethod.")

    def _clear_exclusive_filters(self) -> None:
        # MWS rejects these alongside a buyer email or seller order ID
        self.reset_order_status_filter()
        self.reset_payment_method_filter()
        self.set_fulfillment_channel_filter(None)
        self.options.pop("LastUpdatedAfter", None)
        self.options.pop("LastUpdatedBefore", None)

    def set_email_filter(self, email: Optional[str]) -> None:
        if email is None:
            self.options.pop("BuyerEmail", None)
            return
        if not isinstance(email, str):
            raise InvalidParameterError("Buyer email must be a string")
        self.options["BuyerEmail"] = email
        self.options.pop("SellerOrderId", None)
        self._clear_exclusive_filters()

    def set_seller_order_id_filter(self, seller_order_id: Optional[str]) -> None:
        if seller_order_id is None:
            self.options.pop("SellerOrderId", None)
            return
        if not isinstance(seller_order_id, str):
            raise InvalidParameterError("Seller order ID must be a string")
        self.options["SellerOrderId"] = seller_order_id
        self.options.pop("BuyerEmail", None)
        self._clear_exclusive_filters()

    def set_max_results_per_page(self, num: int) -> None:
        if not isinstance(num, int) or isinstance(num, bool) or not 1 <= num <= constants.MAX_RESULTS_PER_PAGE:
            raise InvalidParameterError("Max results per page must be an integer from 1 to 100")
        self.options["MaxResultsPerPage"] = str(num)

    def set_tfm_shipment_status_filter(self, statuses: Union[str, Sequence[str]]) -> None:
        self._set_list("TFMShipmentStatus.Status", as_str_list(statuses, "TFM shipment status"))

    def reset_tfm_shipment_status_filter(self) -> None:
        self._remove_options("TFMShipmentStatus.")

    def _prepare_token(self) -> None:
        if self._following_token():
            self._keep_options("Version", "NextToken")
            self.options["Action"] = "ListOrdersByNextToken"
        else:
            self.options["Action"] = "ListOrders"
            self.options.pop("NextToken", None)
            if not any(key.startswith("MarketplaceId.") for key in self.options):
                self.reset_marketplace_filter()
            self.order_list = []

    async def fetch_orders(self, follow: bool = True) -> bool:
        """
        Run the search, following continuation tokens when enabled.

        Searches without a time window default to orders created in the
        last two minutes.
        """
        if "CreatedAfter" not in self.options and "LastUpdatedAfter" not in self.options and not self._following_token():
            self.set_limits("Created")
        self._prepare_token()

        result = await self._fetch_result()
        if result is None:
            return False
        for node in children(result, "Orders", "Order"):
            order = Order(self.settings, data=node, mock=self.mock_mode)
            order.mock_files = list(self.mock_files)
            order.mock_index = self.mock_index
            self.order_list.append(order)
        self._check_token(result)

        if follow and self._following_token():
            while self.token_flag:
                self.log("Recursively fetching more orders")
                if not await self.fetch_orders(follow=False):
                    return False
        return True

    async def fetch_items(self, use_token: bool = False, index: Optional[int] = None):
        """
        Fetch items for one order (``index``) or for every order in the list.
        """
        if index is not None:
            return await self.order_list[index].fetch_items(use_token)
        return [await order.fetch_items(use_token) for order in self.order_list]

    def clear(self) -> None:
        self.order_list = []

    def get_list(self) -> List[Order]:
        return self.order_list

    def __iter__(self) -> Iterator[Order]:
        return iter(self.order_list)

    def __len__(self) -> int:
        return len(self.order_list)

    def __getitem__(self, index: int) -> Order:
        return self.order_list[index]


class OrderItemList(TokenPagination, OrderCore):
    """Items of one order, fetched with ``ListOrderItems``."""

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        order_id: Optional[str] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.order_id: Optional[str] = None
        self.item_list: List[Dict[str, Any]] = []
        if order_id is not None:
            self.set_order_id(order_id)
        self._set_throttle(constants.THROTTLE_ITEM, "ListOrderItems")

    def set_order_id(self, order_id: Any) -> None:
        if not isinstance(order_id, (str, int)) or isinstance(order_id, bool):
            raise InvalidParameterError("Order ID must be a string or number")
        self.options["AmazonOrderId"] = str(order_id)

    def _prepare_token(self) -> None:
        if self._following_token():
            self._keep_options("Version", "NextToken")
            self.options["Action"] = "ListOrderItemsByNextToken"
        else:
            self.options["Action"] = "ListOrderItems"
            self.options.pop("NextToken", None)
            self.item_list = []

    async def fetch_items(self, follow: bool = True) -> bool:
        if not self._following_token() and "AmazonOrderId" not in self.options:
            self.log("Order ID must be set in order to fetch its items!", logging.WARNING)
            return False
        self._prepare_token()

        result = await self._fetch_result()
        if result is None:
            return False
        if not has(result, "AmazonOrderId"):
            self.log("[ORDERS] Item response did not include an order ID", logging.WARNING)
            return False
        self.order_id = text(result, "AmazonOrderId")
        requested = self.options.get("AmazonOrderId")
        if requested and requested != self.order_id:
            self.log(f"You grabbed the wrong Order's items! - {requested} =/= {self.order_id}", logging.ERROR)

        for node in children(result, "OrderItems", "OrderItem"):
            self.item_list.append(parse_order_item(node))
        self._check_token(result)

        if follow and self._following_token():
            while self.token_flag:
                self.log("Recursively fetching more items")
                if not await self.fetch_items(follow=False):
                    return False
        return True

    def get_items(self) -> List[Dict[str, Any]]:
        return self.item_list

    def get_item(self, index: int = 0) -> Optional[Dict[str, Any]]:
        if 0 <= index < len(self.item_list):
            return self.item_list[index]
        return None

    def get_percent_shipped(self, index: int = 0) -> Optional[float]:
        item = self.get_item(index)
        if not item or not item.get("QuantityOrdered") or "QuantityShipped" not in item:
            return None
        return int(item["QuantityShipped"]) / int(item["QuantityOrdered"])

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.item_list)

    def __len__(self) -> int:
        return len(self.item_list)

