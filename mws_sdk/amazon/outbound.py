"""
Fulfillment Outbound section: multi-channel fulfillment orders and package tracking.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from mws_sdk.amazon.core import MockEntry, TimeInput, as_str_list, gen_time
from mws_sdk.amazon.parsing import children, text
from mws_sdk.amazon.sections import OutboundCore
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings

SHIPPING_SPEEDS = ("Standard", "Expedited", "Priority")
FULFILLMENT_POLICIES = ("FillOrKill", "FillAll", "FillAllAvailable")
ADDRESS_REQUIRED = ("Name", "Line1", "City", "StateOrProvinceCode", "CountryCode", "PostalCode")
ADDRESS_OPTIONAL = ("Line2", "Line3", "DistrictOrCounty", "PhoneNumber")
ITEM_REQUIRED = ("SellerSKU", "SellerFulfillmentOrderItemId", "Quantity")
ITEM_OPTIONAL = {
    "GiftMessage": "GiftMessage",
    "Comment": "DisplayableComment",
    "DisplayableComment": "DisplayableComment",
    "FulfillmentNetworkSKU": "FulfillmentNetworkSKU",
    "OrderItemDisposition": "OrderItemDisposition",
}
ITEM_MONEY = ("PerUnitDeclaredValue", "PerUnitPrice", "PerUnitTax")

# option -> what the warning calls it
CREATE_REQUIRED = (
    ("SellerFulfillmentOrderId", "Seller Fulfillment Order ID"),
    ("DisplayableOrderId", "Displayable Order ID"),
    ("DisplayableOrderDateTime", "Date"),
    ("DisplayableOrderComment", "Comment"),
    ("ShippingSpeedCategory", "Shipping Speed"),
    ("DestinationAddress.Name", "Address"),
    ("Items.member.1.SellerSKU", "Items"),
)


class FulfillmentOrderCreator(OutboundCore):
    """
    Builds and sends ``CreateFulfillmentOrder`` / ``UpdateFulfillmentOrder``.

    Example:
        creator = FulfillmentOrderCreator(settings)
        creator.set_fulfillment_order_id("ORDER-1")
        creator.set_displayable_order_id("ORDER-1")
        creator.set_date("2015-01-01T00:00:00Z")
        creator.set_comment("Thank you for your order")
        creator.set_shipping_speed("Standard")
        creator.set_address({...})
        creator.set_items([{"SellerSKU": "SKU-1", "SellerFulfillmentOrderItemId": "1", "Quantity": 2}])
        await creator.create_order()
    """

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)

    def set_marketplace(self, marketplace_id: str) -> None:
        if not isinstance(marketplace_id, str) or not marketplace_id:
            raise InvalidParameterError("Marketplace ID must be a non-empty string")
        self.options["MarketplaceId"] = marketplace_id

    def set_fulfillment_order_id(self, order_id: str) -> None:
        self.options["SellerFulfillmentOrderId"] = _require_str(order_id, "Fulfillment order ID")

    def set_displayable_order_id(self, order_id: str) -> None:
        self.options["DisplayableOrderId"] = _require_str(order_id, "Displayable order ID")

    def set_fulfillment_action(self, action: str) -> None:
        if action not in ("Ship", "Hold"):
            self.log("Tried to set fulfillment action to invalid value", logging.WARNING)
            raise InvalidParameterError("Fulfillment action must be Ship or Hold")
        self.options["FulfillmentAction"] = action

    def set_date(self, value: TimeInput) -> None:
        self.options["DisplayableOrderDateTime"] = gen_time(value)

    def set_comment(self, comment: str) -> None:
        self.options["DisplayableOrderComment"] = _require_str(comment, "Comment")

    def set_shipping_speed(self, speed: str) -> None:
        if speed not in SHIPPING_SPEEDS:
            self.log("Tried to set shipping speed to invalid value", logging.WARNING)
            raise InvalidParameterError(f"Shipping speed must be one of {', '.join(SHIPPING_SPEEDS)}")
        self.options["ShippingSpeedCategory"] = speed

    def set_address(self, destination: Mapping[str, Any]) -> None:
        """
        Set the destination address.

        Args:
            destination: Name, Line1, City, StateOrProvinceCode, CountryCode
                and PostalCode are required; Line2, Line3, DistrictOrCounty
                and PhoneNumber are optional
        """
        if not isinstance(destination, Mapping) or not destination:
            self.log("Tried to set address to invalid values", logging.WARNING)
            raise InvalidParameterError("Address must be a mapping")
        missing = [key for key in ADDRESS_REQUIRED if not destination.get(key)]
        if missing:
            self.log("Tried to set address to invalid values", logging.WARNING)
            raise InvalidParameterError(f"Address is missing {', '.join(missing)}")
        self.reset_address()
        for key in ADDRESS_REQUIRED + ADDRESS_OPTIONAL:
            if destination.get(key):
                self.options[f"DestinationAddress.{key}"] = str(destination[key])

    def reset_address(self) -> None:
        self._remove_options("DestinationAddress.")

    def set_fulfillment_policy(self, policy: str) -> None:
        if policy not in FULFILLMENT_POLICIES:
            self.log("Tried to set fulfillment policy to invalid value", logging.WARNING)
            raise InvalidParameterError(f"Fulfillment policy must be one of {', '.join(FULFILLMENT_POLICIES)}")
        self.options["FulfillmentPolicy"] = policy

    def set_emails(self, emails: Union[str, Sequence[str]]) -> None:
        self._set_list("NotificationEmailList.member", as_str_list(emails, "notification email"))

    def reset_emails(self) -> None:
        self._remove_options("NotificationEmailList.")

    def set_cod_settings(
        self,
        currency: str,
        required: Optional[bool] = None,
        charge: Optional[float] = None,
        charge_tax: Optional[float] = None,
        shipping: Optional[float] = None,
        shipping_tax: Optional[float] = None,
    ) -> None:
        """Cash-on-delivery amounts, all in ``currency``. Only JP and CN support COD."""
        if not currency:
            raise InvalidParameterError("A currency code is required for COD settings")
        if required is not None:
            self.options["CODSettings.IsCODRequired"] = "true" if required else "false"
        amounts = (
            ("CODCharge", charge),
            ("CODChargeTax", charge_tax),
            ("ShippingCharge", shipping),
            ("ShippingChargeTax", shipping_tax),
        )
        for name, value in amounts:
            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidParameterError(f"{name} must be numeric")
            self.options[f"CODSettings.{name}.Value"] = str(value)
            self.options[f"CODSettings.{name}.CurrencyCode"] = currency

    def reset_cod_settings(self) -> None:
        self._remove_options("CODSettings.")

    def set_delivery_window(self, start: TimeInput, end: TimeInput) -> None:
        if not start or not end:
            raise InvalidParameterError("Both ends of the delivery window are required")
        self.options["DeliveryWindow.StartDateTime"] = gen_time(start)
        self.options["DeliveryWindow.EndDateTime"] = gen_time(end)

    def reset_delivery_window(self) -> None:
        self.options.pop("DeliveryWindow.StartDateTime", None)
        self.options.pop("DeliveryWindow.EndDateTime", None)

    def set_items(self, items: Sequence[Mapping[str, Any]]) -> None:
        """
        Set the items to ship.

        Each item needs SellerSKU, SellerFulfillmentOrderItemId and Quantity,
        and may carry GiftMessage, Comment, FulfillmentNetworkSKU,
        OrderItemDisposition and PerUnitDeclaredValue / PerUnitPrice /
        PerUnitTax as ``{"Value", "CurrencyCode"}`` mappings.
        """
        if isinstance(items, (str, bytes)) or not items:
            self.log("Tried to set Items to invalid values", logging.WARNING)
            raise InvalidParameterError("Items must be a non-empty list")
        self.reset_items()
        for num, item in enumerate(items, start=1):
            if not _valid_item(item):
                self.reset_items()
                self.log("Tried to set Items with invalid array", logging.WARNING)
                raise InvalidParameterError(
                    f"Item {num} needs {', '.join(ITEM_REQUIRED)}; "
                    f"{', '.join(ITEM_MONEY)} must be {{\"Value\", \"CurrencyCode\"}} mappings"
                )
            prefix = f"Items.member.{num}"
            for key in ITEM_REQUIRED:
                self.options[f"{prefix}.{key}"] = str(item[key])
            for key, option in ITEM_OPTIONAL.items():
                if key in item:
                    self.options[f"{prefix}.{option}"] = str(item[key])
            for key in ITEM_MONEY:
                if key in item:
                    self.options[f"{prefix}.{key}.CurrencyCode"] = str(item[key]["CurrencyCode"])
                    self.options[f"{prefix}.{key}.Value"] = str(item[key]["Value"])

    def reset_items(self) -> None:
        self._remove_options("Items.")

    async def _send(self) -> bool:
        response = await self._fetch_response()
        return response is not None

    async def create_order(self) -> bool:
        for option, label in CREATE_REQUIRED:
            if option not in self.options:
                self.log(f"{label} must be set in order to create an order", logging.WARNING)
                return False
        self.options["Action"] = "CreateFulfillmentOrder"
        if not await self._send():
            return False
        self.log(
            f"Successfully created Fulfillment Order {self.options['SellerFulfillmentOrderId']} "
            f"/ {self.options['DisplayableOrderId']}"
        )
        return True

    async def update_order(self) -> bool:
        """Update an order that is still on hold; COD settings and delivery window cannot change."""
        if "SellerFulfillmentOrderId" not in self.options:
            self.log("Seller Fulfillment Order ID must be set in order to update an order", logging.WARNING)
            return False
        self.options["Action"] = "UpdateFulfillmentOrder"
        self.reset_cod_settings()
        self.reset_delivery_window()
        if not await self._send():
            return False
        self.log(f"Successfully updated Fulfillment Order {self.options['SellerFulfillmentOrderId']}")
        return True


class PackageTracker(OutboundCore):
    """Tracking details of one outbound package via ``GetPackageTrackingDetails``."""

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        package_number: Optional[Union[str, int]] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.details: Optional[Dict[str, Any]] = None
        if package_number is not None:
            self.set_package_number(package_number)
        self.options["Action"] = "GetPackageTrackingDetails"

    def set_package_number(self, package_number: Union[str, int]) -> None:
        if isinstance(package_number, bool) or not str(package_number).isdigit():
            raise InvalidParameterError(f"Package number must be numeric, got {package_number!r}")
        self.options["PackageNumber"] = str(package_number)

    async def fetch_tracking_details(self) -> bool:
        if "PackageNumber" not in self.options:
            self.log("Package Number must be set in order to fetch it!", logging.WARNING)
            return False
        result = await self._fetch_result()
        if result is None:
            return False
        self.details = _parse_tracking(result)
        return True


def _parse_tracking(node: Dict[str, Any]) -> Dict[str, Any]:
    details: Dict[str, Any] = {
        key: text(node, key)
        for key in ("PackageNumber", "TrackingNumber", "CarrierCode", "CarrierPhoneNumber", "CarrierURL", "ShipDate")
    }
    details["ShipToAddress"] = _short_address(node, "ShipToAddress")
    for key in ("CurrentStatus", "SignedForBy", "EstimatedArrivalDate"):
        details[key] = text(node, key)
    events: List[Dict[str, Any]] = []
    for event in children(node, "TrackingEvents", "TrackingEvent"):
        events.append(
            {
                "EventDate": text(event, "EventDate"),
                "EventAddress": _short_address(event, "EventAddress"),
                "EventCode": text(event, "EventCode"),
            }
        )
    details["TrackingEvents"] = events
    details["AdditionalLocationInfo"] = text(node, "AdditionalLocationInfo")
    return details


def _short_address(node: Any, key: str) -> Dict[str, str]:
    return {field: text(node, key, field) for field in ("City", "State", "Country")}


def _require_str(value: Any, what: str) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidParameterError(f"{what} must be a non-empty string")
    return value


def _valid_item(item: Any) -> bool:
    if not isinstance(item, Mapping) or any(key not in item for key in ITEM_REQUIRED):
        return False
    for key in ITEM_MONEY:
        if key not in item:
            continue
        money = item[key]
        if not isinstance(money, Mapping) or "Value" not in money or "CurrencyCode" not in money:
            return False
    return True
