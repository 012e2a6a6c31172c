"""
Fulfillment Inbound section: shipment plans and partnered/non-partnered transport.
"""
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from mws_sdk.amazon.core import MockEntry, TimeInput, gen_time
from mws_sdk.amazon.parsing import child, has, list_children, text
from mws_sdk.amazon.sections import InboundCore
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings

SHIP_FROM_REQUIRED = ("Name", "AddressLine1", "City", "CountryCode")
SHIP_FROM_OPTIONAL = ("AddressLine2", "DistrictOrCounty", "StateOrProvinceCode", "PostalCode")
LABEL_PREFERENCES = ("SELLER_LABEL", "AMAZON_LABEL_ONLY", "AMAZON_LABEL_PREFERRED")
PLAN_ITEM_OPTIONAL = ("ASIN", "QuantityInCase", "Condition")

SHIPMENT_TYPES = ("SP", "LTL")
DIMENSION_UNITS = ("centimeters", "inches")
WEIGHT_UNITS = ("kilograms", "pounds")

# (shipment type, partnered) -> TransportDetails block
DETAIL_BLOCKS = {
    ("SP", True): "PartneredSmallParcelData",
    ("SP", False): "NonPartneredSmallParcelData",
    ("LTL", True): "PartneredLtlData",
    ("LTL", False): "NonPartneredLtlData",
}


class ShipmentPlanner(InboundCore):
    """
    Asks Amazon how to split a set of items into inbound shipments.

    Example:
        planner = ShipmentPlanner(settings)
        planner.set_address({"Name": "Warehouse", "AddressLine1": "1 Main St", "City": "Seattle", "CountryCode": "US"})
        planner.set_items([{"SellerSKU": "SKU-1", "Quantity": 10}])
        if await planner.fetch_plan():
            shipment_ids = planner.get_shipment_id_list()
    """

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.plans: Optional[List[Dict[str, Any]]] = None
        self.options["Action"] = "CreateInboundShipmentPlan"

    def set_address(self, ship_from: Mapping[str, Any]) -> None:
        """
        Set the address the items ship from.

        Args:
            ship_from: Name, AddressLine1, City and CountryCode are required;
                AddressLine2, DistrictOrCounty, StateOrProvinceCode and
                PostalCode are optional
        """
        if not isinstance(ship_from, Mapping) or any(not ship_from.get(key) for key in SHIP_FROM_REQUIRED):
            self.log("Tried to set address to invalid values", logging.WARNING)
            raise InvalidParameterError(f"Ship-from address needs {', '.join(SHIP_FROM_REQUIRED)}")
        self.reset_address()
        for key in SHIP_FROM_REQUIRED + SHIP_FROM_OPTIONAL:
            if ship_from.get(key):
                self.options[f"ShipFromAddress.{key}"] = str(ship_from[key])

    def reset_address(self) -> None:
        self._remove_options("ShipFromAddress.")

    def set_country(self, country_code: str) -> None:
        if not isinstance(country_code, str) or not country_code:
            raise InvalidParameterError("Ship-to country code must be a non-empty string")
        self.options["ShipToCountryCode"] = country_code

    def set_country_subdivision(self, subdivision_code: str) -> None:
        if not isinstance(subdivision_code, str) or not subdivision_code:
            raise InvalidParameterError("Ship-to subdivision code must be a non-empty string")
        self.options["ShipToCountrySubdivisionCode"] = subdivision_code

    def set_label_preference(self, preference: str) -> None:
        if preference not in LABEL_PREFERENCES:
            raise InvalidParameterError(f"Label preference must be one of {', '.join(LABEL_PREFERENCES)}")
        self.options["LabelPrepPreference"] = preference

    def set_items(self, items: Sequence[Mapping[str, Any]]) -> None:
        """
        Set the items to plan for.

        Each item needs SellerSKU and Quantity and may carry ASIN,
        QuantityInCase, Condition and a PrepDetailsList of
        ``{"PrepInstruction", "PrepOwner"}`` mappings. Prep details missing
        either key are skipped with a warning.
        """
        if isinstance(items, (str, bytes)) or not items:
            self.log("Tried to set Items to invalid values", logging.WARNING)
            raise InvalidParameterError("Items must be a non-empty list")
        self.reset_items()
        for num, item in enumerate(items, start=1):
            if not isinstance(item, Mapping) or "SellerSKU" not in item or "Quantity" not in item:
                self.reset_items()
                self.log("Tried to set Items with invalid array", logging.WARNING)
                raise InvalidParameterError(f"Item {num} needs SellerSKU and Quantity")
            prefix = f"InboundShipmentPlanRequestItems.member.{num}"
            self.options[f"{prefix}.SellerSKU"] = str(item["SellerSKU"])
            self.options[f"{prefix}.Quantity"] = str(item["Quantity"])
            for key in PLAN_ITEM_OPTIONAL:
                if key in item:
                    self.options[f"{prefix}.{key}"] = str(item[key])
            prep_num = 1
            for prep in item.get("PrepDetailsList") or ():
                if not isinstance(prep, Mapping) or "PrepInstruction" not in prep or "PrepOwner" not in prep:
                    self.log("Tried to set invalid prep details for item", logging.WARNING)
                    continue
                prep_prefix = f"{prefix}.PrepDetailsList.PrepDetails.{prep_num}"
                self.options[f"{prep_prefix}.PrepInstruction"] = str(prep["PrepInstruction"])
                self.options[f"{prep_prefix}.PrepOwner"] = str(prep["PrepOwner"])
                prep_num += 1

    def reset_items(self) -> None:
        self._remove_options("InboundShipmentPlanRequestItems.")

    async def fetch_plan(self) -> bool:
        if "ShipFromAddress.Name" not in self.options:
            self.log("Address must be set in order to make a plan", logging.WARNING)
            return False
        if "InboundShipmentPlanRequestItems.member.1.SellerSKU" not in self.options:
            self.log("Items must be set in order to make a plan", logging.WARNING)
            return False
        result = await self._fetch_result()
        if result is None:
            return False
        self.plans = [_parse_plan(plan) for plan in list_children(result, "InboundShipmentPlans")]
        return True

    def get_plan(self, index: Optional[int] = None) -> Union[Dict[str, Any], List[Dict[str, Any]], None]:
        if self.plans is None:
            return None
        if index is None:
            return self.plans
        return self.plans[index] if 0 <= index < len(self.plans) else None

    def get_shipment_id_list(self) -> Optional[List[str]]:
        if self.plans is None:
            return None
        return [plan["ShipmentId"] for plan in self.plans]

    def get_shipment_id(self, index: int = 0) -> Optional[str]:
        plan = self.get_plan(index)
        return plan["ShipmentId"] if isinstance(plan, dict) else None

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.plans or [])

    def __len__(self) -> int:
        return len(self.plans or [])


def _parse_plan(node: Dict[str, Any]) -> Dict[str, Any]:
    ship_to = child(node, "ShipToAddress")
    plan: Dict[str, Any] = {
        "ShipToAddress": {key: text(value) for key, value in ship_to.items()} if isinstance(ship_to, dict) else {},
        "ShipmentId": text(node, "ShipmentId"),
        "DestinationFulfillmentCenterId": text(node, "DestinationFulfillmentCenterId"),
        "LabelPrepType": text(node, "LabelPrepType"),
        "Items": [],
    }
    for item in list_children(node, "Items"):
        record: Dict[str, Any] = {
            "SellerSKU": text(item, "SellerSKU"),
            "Quantity": text(item, "Quantity"),
            "FulfillmentNetworkSKU": text(item, "FulfillmentNetworkSKU"),
        }
        if has(item, "PrepDetailsList"):
            record["PrepDetailsList"] = [
                {"PrepInstruction": text(prep, "PrepInstruction"), "PrepOwner": text(prep, "PrepOwner")}
                for prep in list_children(item, "PrepDetailsList")
            ]
        plan["Items"].append(record)
    return plan


class Transport(InboundCore):
    """
    Transport information of one inbound shipment.

    ``set_is_partnered`` and ``set_shipment_type`` must come first: they pick
    which of the four ``TransportDetails`` blocks the detail setters write to.
    """

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        shipment_id: Optional[str] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.status: Optional[str] = None
        self.contents: Optional[Dict[str, Any]] = None
        if shipment_id is not None:
            self.set_shipment_id(shipment_id)

    def set_shipment_id(self, shipment_id: str) -> None:
        if not isinstance(shipment_id, str) or not shipment_id:
            raise InvalidParameterError("Shipment ID must be a non-empty string")
        self.options["ShipmentId"] = shipment_id

    def set_is_partnered(self, partnered: bool) -> None:
        self.options["IsPartnered"] = "true" if partnered else "false"

    def set_shipment_type(self, shipment_type: str) -> None:
        if shipment_type not in SHIPMENT_TYPES:
            self.log("Tried to set ShipmentType to invalid value", logging.WARNING)
            raise InvalidParameterError("Shipment type must be SP or LTL")
        self.options["ShipmentType"] = shipment_type

    def _detail_prefix(self, what: str) -> str:
        if "IsPartnered" not in self.options or "ShipmentType" not in self.options:
            self.log("Cannot set transport details without shipment type and partner parameters!", logging.WARNING)
            raise InvalidParameterError(f"Cannot set {what} before the shipment type and partnered flag")
        key = (self.options["ShipmentType"], self.options["IsPartnered"] == "true")
        return f"TransportDetails.{DETAIL_BLOCKS[key]}"

    def set_carrier(self, carrier: str) -> None:
        prefix = self._detail_prefix("carrier name")
        if not isinstance(carrier, str) or not carrier:
            raise InvalidParameterError("Carrier name must be a non-empty string")
        self.options[f"{prefix}.CarrierName"] = carrier

    def set_packages(
        self,
        packages: Sequence[Mapping[str, Any]],
        dimension_unit: str = "centimeters",
        weight_unit: str = "kilograms",
    ) -> None:
        """
        Set the package list of a small parcel shipment.

        Each package may carry Length/Width/Height (all three together),
        Weight and TrackingId.
        """
        if isinstance(packages, (str, bytes)) or not packages:
            self.log("Tried to set package list to invalid values", logging.WARNING)
            raise InvalidParameterError("Packages must be a non-empty list")
        prefix = self._detail_prefix("packages")
        _check_units(dimension_unit, weight_unit)
        self.reset_packages()
        for num, package in enumerate(packages, start=1):
            if not isinstance(package, Mapping):
                self.reset_packages()
                self.log("Tried to set packages with invalid array", logging.WARNING)
                raise InvalidParameterError(f"Package {num} must be a mapping")
            member = f"{prefix}.PackageList.member.{num}"
            self._set_measures(member, package, dimension_unit, weight_unit)
            if "TrackingId" in package:
                self.options[f"{member}.TrackingId"] = str(package["TrackingId"])

    def reset_packages(self) -> None:
        for key in [k for k in self.options if ".PackageList." in k]:
            del self.options[key]

    def set_pro_number(self, pro_number: str) -> None:
        prefix = self._detail_prefix("PRO number")
        if not isinstance(pro_number, str) or not pro_number:
            raise InvalidParameterError("PRO number must be a non-empty string")
        self.options[f"{prefix}.ProNumber"] = pro_number

    def set_contact(self, name: str, phone: str, email: str, fax: str) -> None:
        prefix = self._detail_prefix("contact info")
        values = {"Name": name, "Phone": phone, "Email": email, "Fax": fax}
        if any(not isinstance(value, str) or not value for value in values.values()):
            raise InvalidParameterError("Contact name, phone, email and fax are all required")
        for key, value in values.items():
            self.options[f"{prefix}.Contact.{key}"] = value

    def set_box_count(self, count: int) -> None:
        prefix = self._detail_prefix("box count")
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise InvalidParameterError("Box count must be a positive integer")
        self.options[f"{prefix}.BoxCount"] = str(count)

    def set_freight_class(self, freight_class: Union[int, float, str]) -> None:
        prefix = self._detail_prefix("freight class")
        if not _is_number(freight_class) or not float(freight_class):
            raise InvalidParameterError("Freight class must be a non-zero number")
        self.options[f"{prefix}.SellerFreightClass"] = str(freight_class)

    def set_ready_date(self, value: TimeInput) -> None:
        """Set the freight ready date; only the date part is sent."""
        prefix = self._detail_prefix("ready date")
        self.options[f"{prefix}.FreightReadyDate"] = gen_time(value).split("T", 1)[0]

    def set_pallets(
        self,
        pallets: Sequence[Mapping[str, Any]],
        dimension_unit: str = "centimeters",
        weight_unit: str = "kilograms",
    ) -> None:
        """Set the pallet list of an LTL shipment; pallets may carry dimensions, Weight and IsStacked."""
        if isinstance(pallets, (str, bytes)) or not pallets:
            self.log("Tried to set pallet list to invalid values", logging.WARNING)
            raise InvalidParameterError("Pallets must be a non-empty list")
        prefix = self._detail_prefix("pallets")
        _check_units(dimension_unit, weight_unit)
        self.reset_pallets()
        for num, pallet in enumerate(pallets, start=1):
            if not isinstance(pallet, Mapping):
                self.reset_pallets()
                self.log("Tried to set pallets with invalid array", logging.WARNING)
                raise InvalidParameterError(f"Pallet {num} must be a mapping")
            member = f"{prefix}.PalletList.member.{num}"
            self._set_measures(member, pallet, dimension_unit, weight_unit)
            if "IsStacked" in pallet:
                self.options[f"{member}.IsStacked"] = "true" if pallet["IsStacked"] else "false"

    def reset_pallets(self) -> None:
        for key in [k for k in self.options if ".PalletList." in k]:
            del self.options[key]

    def set_total_weight(self, value: Union[int, float], unit: str = "kilograms") -> None:
        prefix = self._detail_prefix("total weight")
        if not _is_number(value) or not float(value) or unit not in WEIGHT_UNITS:
            raise InvalidParameterError("Total weight needs a non-zero value in kilograms or pounds")
        self.options[f"{prefix}.TotalWeight.Value"] = str(value)
        self.options[f"{prefix}.TotalWeight.Unit"] = unit

    def set_declared_value(self, value: Union[int, float], currency: str) -> None:
        prefix = self._detail_prefix("declared value")
        if not _is_number(value) or not float(value) or not isinstance(currency, str) or not currency or _is_number(currency):
            raise InvalidParameterError("Declared value needs a non-zero amount and a currency code")
        self.options[f"{prefix}.SellerDeclaredValue.Value"] = str(value)
        self.options[f"{prefix}.SellerDeclaredValue.CurrencyCode"] = currency

    def _set_measures(self, member: str, entry: Mapping[str, Any], dimension_unit: str, weight_unit: str) -> None:
        if all(key in entry for key in ("Length", "Width", "Height")):
            for key in ("Length", "Width", "Height"):
                self.options[f"{member}.Dimensions.{key}"] = str(entry[key])
            self.options[f"{member}.Dimensions.Unit"] = dimension_unit
        if "Weight" in entry:
            self.options[f"{member}.Weight.Value"] = str(entry["Weight"])
            self.options[f"{member}.Weight.Unit"] = weight_unit

    def _reset_send_params(self) -> None:
        self.options.pop("IsPartnered", None)
        self.options.pop("ShipmentType", None)
        self._remove_options("TransportDetails.")

    def _verify_send_params(self) -> bool:
        suffix = " must be set in order to send transport content!"
        for option, label in (("ShipmentId", "Shipment ID"), ("IsPartnered", "IsPartnered"), ("ShipmentType", "Shipment type")):
            if option not in self.options:
                self.log(label + suffix, logging.WARNING)
                return False

        partnered = self.options["IsPartnered"] == "true"
        small_parcel = self.options["ShipmentType"] == "SP"
        ltl = self.options["ShipmentType"] == "LTL"

        def found(fragment: str) -> bool:
            return any(fragment in key for key in self.options)

        requirements = (
            (not partnered, ".CarrierName", "Carrier"),
            (small_parcel, ".PackageList.member.1.", "Packages"),
            (not partnered and ltl, ".ProNumber", "PRO number"),
            (partnered and ltl, ".Contact.Name", "Contact info"),
            (partnered and ltl, ".BoxCount", "Box count"),
            (partnered and ltl, ".FreightReadyDate", "Ready date"),
        )
        for needed, fragment, label in requirements:
            if needed and not found(fragment):
                self.log(label + suffix, logging.WARNING)
                return False
        return True

    async def _run(self, action: str) -> bool:
        self.options["Action"] = action
        self.throttle_group = action
        result = await self._fetch_result()
        if result is None:
            return False
        self._parse_result(result)
        return True

    async def send_transport_contents(self) -> bool:
        """Send the shipment's transport details with ``PutTransportContent``."""
        if not self._verify_send_params():
            return False
        return await self._run("PutTransportContent")

    async def _run_for_shipment(self, action: str, verb: str) -> bool:
        if "ShipmentId" not in self.options:
            self.log(f"Shipment ID must be set in order to {verb}!", logging.WARNING)
            return False
        self._reset_send_params()
        return await self._run(action)

    async def fetch_transport_content(self) -> bool:
        return await self._run_for_shipment("GetTransportContent", "get transport contents")

    async def estimate_transport(self) -> bool:
        return await self._run_for_shipment("EstimateTransportRequest", "estimate the transport request")

    async def confirm_transport(self) -> bool:
        return await self._run_for_shipment("ConfirmTransportRequest", "confirm the transport request")

    async def void_transport(self) -> bool:
        return await self._run_for_shipment("VoidTransportRequest", "void the transport request")

    def _parse_result(self, result: Dict[str, Any]) -> None:
        if has(result, "TransportResult", "TransportStatus"):
            self.status = text(result, "TransportResult", "TransportStatus")
        content = child(result, "TransportContent")
        if content is None:
            return
        self.status = text(content, "TransportResult", "TransportStatus")
        header = child(content, "TransportHeader")
        self.contents = {
            "SellerId": text(header, "SellerId"),
            "ShipmentId": text(header, "ShipmentId"),
            "IsPartnered": text(header, "IsPartnered"),
            "ShipmentType": text(header, "ShipmentType"),
            "Details": _parse_details(child(content, "TransportDetails")),
        }

    def get_content_details(self) -> Optional[Dict[str, Any]]:
        return self.contents["Details"] if self.contents else None

    @property
    def seller_id(self) -> Optional[str]:
        return self.contents["SellerId"] if self.contents else None

    @property
    def shipment_id(self) -> Optional[str]:
        return self.contents["ShipmentId"] if self.contents else None

    @property
    def is_partnered(self) -> Optional[str]:
        return self.contents["IsPartnered"] if self.contents else None

    @property
    def shipment_type(self) -> Optional[str]:
        return self.contents["ShipmentType"] if self.contents else None

    @property
    def partnered_estimate(self) -> Optional[Dict[str, Any]]:
        details = self.get_content_details()
        return details.get("PartneredEstimate") if details else None


def _parse_details(node: Any) -> Dict[str, Any]:
    details: Dict[str, Any] = {}
    data = None
    for block in DETAIL_BLOCKS.values():
        if has(node, block):
            data = child(node, block)
            break
    else:
        return details

    if has(node, "PartneredLtlData"):
        details["Contact"] = {key: text(data, "Contact", key) for key in ("Name", "Phone", "Email", "Fax")}
        details["BoxCount"] = text(data, "BoxCount")
        if has(data, "SellerFreightClass"):
            details["SellerFreightClass"] = text(data, "SellerFreightClass")
        details["FreightReadyDate"] = text(data, "FreightReadyDate")
        details["PalletList"] = []
        for pallet in list_children(data, "PalletList"):
            record: Dict[str, Any] = {"IsStacked": text(pallet, "IsStacked"), "Dimensions": _dimensions(pallet)}
            if has(pallet, "Weight"):
                record["Weight"] = _weight(pallet)
            details["PalletList"].append(record)
        details["TotalWeight"] = _weight(data, "TotalWeight")
        for key in ("SellerDeclaredValue", "AmazonCalculatedValue"):
            if has(data, key):
                details[key] = {"Value": text(data, key, "Value"), "CurrencyCode": text(data, key, "CurrencyCode")}
        for key in (
            "PreviewPickupDate",
            "PreviewDeliveryDate",
            "PreviewFreightClass",
            "AmazonReferenceId",
            "IsBillOfLadingAvailable",
            "CarrierName",
        ):
            details[key] = text(data, key)
    elif has(node, "NonPartneredLtlData"):
        details["CarrierName"] = text(data, "CarrierName")
        details["ProNumber"] = text(data, "ProNumber")

    if has(data, "PackageList"):
        details["PackageList"] = []
        for package in list_children(data, "PackageList"):
            record = {
                "TrackingId": text(package, "TrackingId"),
                "PackageStatus": text(package, "PackageStatus"),
                "CarrierName": text(package, "CarrierName"),
            }
            if has(package, "Weight"):
                record["Weight"] = _weight(package)
            if has(package, "Dimensions"):
                record["Dimensions"] = _dimensions(package)
            details["PackageList"].append(record)

    if has(data, "PartneredEstimate"):
        estimate: Dict[str, Any] = {
            "Amount": {
                "Value": text(data, "PartneredEstimate", "Amount", "Value"),
                "CurrencyCode": text(data, "PartneredEstimate", "Amount", "CurrencyCode"),
            }
        }
        for key in ("ConfirmDeadline", "VoidDeadline"):
            if has(data, "PartneredEstimate", key):
                estimate[key] = text(data, "PartneredEstimate", key)
        details["PartneredEstimate"] = estimate
    return details


def _dimensions(node: Any) -> Dict[str, str]:
    return {key: text(node, "Dimensions", key) for key in ("Unit", "Length", "Width", "Height")}


def _weight(node: Any, key: str = "Weight") -> Dict[str, str]:
    return {"Value": text(node, key, "Value"), "Unit": text(node, key, "Unit")}


def _check_units(dimension_unit: str, weight_unit: str) -> None:
    if dimension_unit not in DIMENSION_UNITS:
        raise InvalidParameterError(f"Dimension unit must be one of {', '.join(DIMENSION_UNITS)}")
    if weight_unit not in WEIGHT_UNITS:
        raise InvalidParameterError(f"Weight unit must be one of {', '.join(WEIGHT_UNITS)}")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True
