"""
Merchant Fulfillment section: shipments bought through Amazon's carriers.
"""
import base64
import binascii
import gzip
import logging
import zlib
from typing import Any, Dict, Optional, Sequence, Union

from mws_sdk.amazon.core import MockEntry
from mws_sdk.amazon.parsing import address, child, children, copy_fields, has, money, text
from mws_sdk.amazon.sections import MerchantCore
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings


def parse_shipment(node: Dict[str, Any]) -> Dict[str, Any]:
    """Map a ``<Shipment>`` element to a record."""
    data: Dict[str, Any] = {
        "ShipmentId": text(node, "ShipmentId"),
        "AmazonOrderId": text(node, "AmazonOrderId"),
    }
    copy_fields(data, node, ("SellerOrderId",))
    data["Status"] = text(node, "Status")
    copy_fields(data, node, ("TrackingId",))
    data["CreatedDate"] = text(node, "CreatedDate")
    copy_fields(data, node, ("LastUpdatedDate",))
    data["Weight"] = {"Value": text(node, "Weight", "Value"), "Unit": text(node, "Weight", "Unit")}
    data["Insurance"] = money(node, "Insurance") or {"Amount": "", "CurrencyCode": ""}

    if has(node, "Label"):
        label = child(node, "Label")
        data["Label"] = {
            "Dimensions": {
                "Length": text(label, "Dimensions", "Length"),
                "Width": text(label, "Dimensions", "Width"),
                "Unit": text(label, "Dimensions", "Unit"),
            },
            "FileContents": {
                "Contents": text(label, "FileContents", "Contents"),
                "FileType": text(label, "FileContents", "FileType"),
                "Checksum": text(label, "FileContents", "Checksum"),
            },
        }
        copy_fields(data["Label"], label, ("CustomTextForLabel", "LabelFormat", "StandardIdForLabel"))

    data["ItemList"] = [
        {"OrderItemId": text(item, "OrderItemId"), "Quantity": text(item, "Quantity")}
        for item in children(node, "ItemList", "Item")
    ]

    dimensions = child(node, "PackageDimensions")
    if has(dimensions, "Length"):
        data["PackageDimensions"] = {
            key: text(dimensions, key) for key in ("Length", "Width", "Height", "Unit")
        }
    if has(dimensions, "PredefinedPackageDimensions"):
        data.setdefault("PackageDimensions", {})["PredefinedPackageDimensions"] = text(
            dimensions, "PredefinedPackageDimensions"
        )

    data["ShipFromAddress"] = address(node, "ShipFromAddress")
    data["ShipToAddress"] = address(node, "ShipToAddress")

    service = child(node, "ShippingService")
    data["ShippingService"] = copy_fields(
        {
            key: text(service, key)
            for key in (
                "ShippingServiceName",
                "CarrierName",
                "ShippingServiceId",
                "ShippingServiceOfferId",
                "ShipDate",
            )
        },
        service,
        ("EarliestEstimatedDeliveryDate", "LatestEstimatedDeliveryDate"),
    )
    data["ShippingService"]["Rate"] = money(service, "Rate") or {"Amount": "", "CurrencyCode": ""}
    data["ShippingService"]["DeliveryExperience"] = text(service, "ShippingServiceOptions", "DeliveryExperience")
    data["ShippingService"]["CarrierWillPickUp"] = text(service, "ShippingServiceOptions", "CarrierWillPickUp")
    if has(service, "ShippingServiceOptions", "DeclaredValue"):
        data["ShippingService"]["DeclaredValue"] = money(service, "ShippingServiceOptions", "DeclaredValue")
    return data


class MerchantShipment(MerchantCore):
    """Fetches or cancels a merchant-fulfilled shipment by its shipment ID."""

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        shipment_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.data: Dict[str, Any] = {}
        if shipment_id is not None:
            self.set_shipment_id(shipment_id)
        if data:
            self.data = parse_shipment(data)

    def set_shipment_id(self, shipment_id: Any) -> None:
        if not isinstance(shipment_id, (str, int)) or isinstance(shipment_id, bool):
            self.log("Tried to set ShipmentId to invalid value", logging.WARNING)
            raise InvalidParameterError("Shipment ID must be a string or number")
        self.options["ShipmentId"] = str(shipment_id)

    async def _run(self, action: str, verb: str) -> bool:
        if "ShipmentId" not in self.options:
            self.log(f"Shipment ID must be set in order to {verb} it!", logging.WARNING)
            return False
        self.options["Action"] = action
        result = await self._fetch_result()
        if result is None:
            return False
        shipment = child(result, "Shipment")
        if shipment is None:
            self.log(f"[MERCHANT] {action} returned no shipment", logging.WARNING)
            return False
        self.data = parse_shipment(shipment)
        return True

    async def fetch_shipment(self) -> bool:
        return await self._run("GetShipment", "fetch")

    async def cancel_shipment(self) -> bool:
        return await self._run("CancelShipment", "cancel")

    @property
    def status(self) -> Optional[str]:
        return self.data.get("Status")

    @property
    def tracking_id(self) -> Optional[str]:
        return self.data.get("TrackingId")

    def get_label_file_contents(self, raw: bool = False) -> Union[bytes, str, None]:
        """
        The label file. MWS sends it gzipped and base64 encoded; ``raw``
        returns the encoded text untouched.
        """
        contents = self.data.get("Label", {}).get("FileContents", {}).get("Contents")
        if not contents:
            return None
        if raw:
            return contents
        try:
            return gzip.decompress(base64.b64decode(contents))
        except (binascii.Error, OSError, EOFError, zlib.error) as exc:
            self.log(f"Failed to convert label file, file might be corrupt: {exc}", logging.ERROR)
            return None

    def get_label_data(self, raw: bool = False) -> Optional[Dict[str, Any]]:
        """Label record with its file contents decoded unless ``raw`` is set."""
        label = self.data.get("Label")
        if label is None:
            return None
        if raw:
            return label
        decoded = self.get_label_file_contents()
        result = dict(label)
        if decoded is not None:
            result["FileContents"] = dict(label["FileContents"], Contents=decoded)
        return result
