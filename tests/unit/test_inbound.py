"""
Unit tests for inbound shipment plans and transport content.
"""
import logging

import pytest

from mws_sdk.amazon.inbound import ShipmentPlanner, Transport
from mws_sdk.errors import InvalidParameterError

SHIP_FROM = {
    "Name": "Warehouse",
    "AddressLine1": "1 Main St",
    "City": "Seattle",
    "StateOrProvinceCode": "WA",
    "CountryCode": "US",
    "PostalCode": "98103",
}


# === ShipmentPlanner ===


def test_planner_setters(settings, caplog):
    planner = ShipmentPlanner(settings)
    planner.set_address(SHIP_FROM)
    planner.set_country("US")
    planner.set_country_subdivision("WA")
    planner.set_label_preference("SELLER_LABEL")
    planner.set_items(
        [
            {
                "SellerSKU": "SKU00001",
                "Quantity": 1,
                "Condition": "NewItem",
                "PrepDetailsList": [
                    {"PrepInstruction": "Taping", "PrepOwner": "AMAZON"},
                    {"PrepInstruction": "Labeling"},
                ],
            },
            {"SellerSKU": "SKU00002", "Quantity": 3, "QuantityInCase": 3},
        ]
    )

    options = planner.options
    assert options["ShipFromAddress.Name"] == "Warehouse"
    assert options["ShipToCountryCode"] == "US"
    assert options["ShipToCountrySubdivisionCode"] == "WA"
    assert options["LabelPrepPreference"] == "SELLER_LABEL"
    prefix = "InboundShipmentPlanRequestItems.member"
    assert options[f"{prefix}.1.Condition"] == "NewItem"
    assert options[f"{prefix}.1.PrepDetailsList.PrepDetails.1.PrepOwner"] == "AMAZON"
    assert f"{prefix}.1.PrepDetailsList.PrepDetails.2.PrepInstruction" not in options
    assert options[f"{prefix}.2.QuantityInCase"] == "3"
    assert "Tried to set invalid prep details for item" in caplog.text


def test_planner_rejects_bad_values(settings):
    planner = ShipmentPlanner(settings)
    with pytest.raises(InvalidParameterError):
        planner.set_label_preference("ANY_LABEL")
    with pytest.raises(InvalidParameterError):
        planner.set_address({"Name": "No street"})
    with pytest.raises(InvalidParameterError):
        planner.set_items([{"SellerSKU": "SKU00001"}])
    assert not any(key.startswith("InboundShipmentPlanRequestItems") for key in planner.options)


@pytest.mark.asyncio
async def test_fetch_plan(settings):
    planner = ShipmentPlanner(settings, mock=True, mock_files="fetchShipmentPlan.xml")
    planner.set_address(SHIP_FROM)
    planner.set_items([{"SellerSKU": "SKU00001", "Quantity": 1}])

    assert await planner.fetch_plan() is True

    assert len(planner) == 2
    assert planner.get_shipment_id_list() == ["FBA0000001", "FBA0000002"]
    assert planner.get_shipment_id(1) == "FBA0000002"
    first = planner.get_plan(0)
    assert first["DestinationFulfillmentCenterId"] == "ABE2"
    assert first["ShipToAddress"]["City"] == "Breinigsville"
    assert first["Items"][0]["PrepDetailsList"] == [{"PrepInstruction": "Taping", "PrepOwner": "AMAZON"}]
    assert "PrepDetailsList" not in first["Items"][1]
    assert [plan["ShipmentId"] for plan in planner] == ["FBA0000001", "FBA0000002"]


@pytest.mark.asyncio
async def test_fetch_plan_requires_address_and_items(settings, caplog):
    planner = ShipmentPlanner(settings, mock=True, mock_files="fetchShipmentPlan.xml")
    assert await planner.fetch_plan() is False
    assert "Address must be set in order to make a plan" in caplog.text

    planner.set_address(SHIP_FROM)
    assert await planner.fetch_plan() is False
    assert "Items must be set in order to make a plan" in caplog.text
    assert planner.get_plan() is None


# === Transport ===


def test_detail_setters_need_type_and_partnered(settings, caplog):
    transport = Transport(settings, "FBAQFGQZ")
    with pytest.raises(InvalidParameterError):
        transport.set_carrier("UPS")
    assert "Cannot set transport details without shipment type and partner parameters!" in caplog.text


@pytest.mark.parametrize(
    "shipment_type,partnered,block",
    [
        ("SP", True, "PartneredSmallParcelData"),
        ("SP", False, "NonPartneredSmallParcelData"),
        ("LTL", True, "PartneredLtlData"),
        ("LTL", False, "NonPartneredLtlData"),
    ],
)
def test_details_are_routed_to_block(settings, shipment_type, partnered, block):
    transport = Transport(settings, "FBAQFGQZ")
    transport.set_shipment_type(shipment_type)
    transport.set_is_partnered(partnered)
    transport.set_carrier("UNITED_PARCEL_SERVICE_INC")
    assert transport.options[f"TransportDetails.{block}.CarrierName"] == "UNITED_PARCEL_SERVICE_INC"


def test_small_parcel_packages(settings):
    transport = Transport(settings, "FBAQFGQZ")
    transport.set_shipment_type("SP")
    transport.set_is_partnered(True)
    transport.set_packages(
        [{"Length": 10, "Width": 14, "Height": 12, "Weight": 5, "TrackingId": "1Z"}, {"Weight": 2}],
        dimension_unit="inches",
        weight_unit="pounds",
    )

    member = "TransportDetails.PartneredSmallParcelData.PackageList.member"
    assert transport.options[f"{member}.1.Dimensions.Unit"] == "inches"
    assert transport.options[f"{member}.1.Weight.Unit"] == "pounds"
    assert transport.options[f"{member}.1.TrackingId"] == "1Z"
    assert f"{member}.2.Dimensions.Length" not in transport.options
    assert transport.options[f"{member}.2.Weight.Value"] == "2"

    with pytest.raises(InvalidParameterError):
        transport.set_packages([{"Weight": 1}], weight_unit="stone")


def test_partnered_ltl_details(settings):
    transport = Transport(settings, "FBAQFGQZ")
    transport.set_shipment_type("LTL")
    transport.set_is_partnered(True)
    transport.set_contact("Jane Doe", "206-555-1234", "jane@example.com", "206-555-1235")
    transport.set_box_count(10)
    transport.set_freight_class(50)
    transport.set_ready_date("2013-08-09T12:00:00Z")
    transport.set_pallets([{"Length": 40, "Width": 40, "Height": 40, "IsStacked": False}])
    transport.set_total_weight(500, "pounds")
    transport.set_declared_value(1000, "USD")

    block = "TransportDetails.PartneredLtlData"
    assert transport.options[f"{block}.Contact.Fax"] == "206-555-1235"
    assert transport.options[f"{block}.BoxCount"] == "10"
    assert transport.options[f"{block}.SellerFreightClass"] == "50"
    assert transport.options[f"{block}.FreightReadyDate"] == "2013-08-09"
    assert transport.options[f"{block}.PalletList.member.1.IsStacked"] == "false"
    assert transport.options[f"{block}.TotalWeight.Unit"] == "pounds"
    assert transport.options[f"{block}.SellerDeclaredValue.CurrencyCode"] == "USD"

    with pytest.raises(InvalidParameterError):
        transport.set_box_count(0)
    with pytest.raises(InvalidParameterError):
        transport.set_declared_value(1000, "100")
    with pytest.raises(InvalidParameterError):
        transport.set_total_weight(500, "tons")


def test_shipment_type_must_be_known(settings, caplog):
    with pytest.raises(InvalidParameterError):
        Transport(settings).set_shipment_type("FTL")
    assert "Tried to set ShipmentType to invalid value" in caplog.text


@pytest.mark.asyncio
async def test_send_requires_packages_for_small_parcel(settings, caplog):
    transport = Transport(settings, "FBAQFGQZ", mock=True, mock_files="sendTransportContents.xml")
    transport.set_shipment_type("SP")
    transport.set_is_partnered(True)

    assert await transport.send_transport_contents() is False
    assert "Packages must be set in order to send transport content!" in caplog.text


@pytest.mark.asyncio
async def test_send_requires_carrier_when_not_partnered(settings, caplog):
    transport = Transport(settings, "FBAQFGQZ", mock=True, mock_files="sendTransportContents.xml")
    transport.set_shipment_type("LTL")
    transport.set_is_partnered(False)
    transport.set_pro_number("123456")

    assert await transport.send_transport_contents() is False
    assert "Carrier must be set in order to send transport content!" in caplog.text


@pytest.mark.asyncio
async def test_send_requires_partnered_ltl_fields(settings, caplog):
    transport = Transport(settings, "FBAQFGQZ", mock=True, mock_files="sendTransportContents.xml")
    transport.set_shipment_type("LTL")
    transport.set_is_partnered(True)
    transport.set_contact("Jane Doe", "206-555-1234", "jane@example.com", "206-555-1235")
    transport.set_box_count(10)

    assert await transport.send_transport_contents() is False
    assert "Ready date must be set in order to send transport content!" in caplog.text


@pytest.mark.asyncio
async def test_send_transport_contents(settings):
    transport = Transport(settings, "FBAQFGQZ", mock=True, mock_files="sendTransportContents.xml")
    transport.set_shipment_type("SP")
    transport.set_is_partnered(True)
    transport.set_packages([{"Length": 10, "Width": 14, "Height": 12, "Weight": 5}])

    assert await transport.send_transport_contents() is True
    assert transport.status == "WORKING"
    assert transport.options["Action"] == "PutTransportContent"
    assert transport.throttle_group == "PutTransportContent"


@pytest.mark.asyncio
async def test_fetch_transport_content_small_parcel(settings):
    transport = Transport(settings, "FBAQFGQZ", mock=True, mock_files="fetchTransportContent.xml")
    transport.set_shipment_type("SP")
    transport.set_is_partnered(True)

    assert await transport.fetch_transport_content() is True

    assert "ShipmentType" not in transport.options
    assert transport.status == "CONFIRMED"
    assert transport.seller_id == "A135KKEKJAIBJ56"
    assert transport.is_partnered == "true"
    assert transport.shipment_type == "SP"
    package = transport.get_content_details()["PackageList"][0]
    assert package["TrackingId"] == "1Z6Y68W00342402864"
    assert package["Dimensions"]["Length"] == "10"
    assert package["Weight"] == {"Value": "5", "Unit": "pounds"}
    assert transport.partnered_estimate == {
        "Amount": {"Value": "11.87", "CurrencyCode": "USD"},
        "ConfirmDeadline": "2013-08-09T00:25:52.345Z",
        "VoidDeadline": "2013-08-10T00:25:52.345Z",
    }


@pytest.mark.asyncio
async def test_fetch_transport_content_partnered_ltl(settings):
    transport = Transport(settings, "FBAQFGQZ", mock=True, mock_files="fetchTransportContentLtl.xml")

    assert await transport.fetch_transport_content() is True

    details = transport.get_content_details()
    assert transport.status == "ESTIMATED"
    assert details["Contact"]["Email"] == "jane@example.com"
    assert details["BoxCount"] == "10"
    assert details["SellerFreightClass"] == "50"
    assert details["PalletList"] == [
        {"IsStacked": "false", "Dimensions": {"Unit": "inches", "Length": "40", "Width": "40", "Height": "40"}}
    ]
    assert details["TotalWeight"] == {"Value": "500", "Unit": "pounds"}
    assert details["AmazonCalculatedValue"] == {"Value": "1000.00", "CurrencyCode": "USD"}
    assert "SellerDeclaredValue" not in details
    assert details["CarrierName"] == "ESTES EXPRESS LINES"


@pytest.mark.asyncio
async def test_confirm_transport(settings, caplog):
    caplog.set_level(logging.INFO)
    transport = Transport(settings, "FBAQFGQZ", mock=True, mock_files="confirmTransport.xml")

    assert await transport.confirm_transport() is True
    assert transport.status == "CONFIRMING"
    assert transport.options["Action"] == "ConfirmTransportRequest"
    assert transport.get_content_details() is None


@pytest.mark.asyncio
async def test_shipment_operations_require_id(settings, caplog):
    transport = Transport(settings, mock=True, mock_files="confirmTransport.xml")
    assert await transport.estimate_transport() is False
    assert await transport.void_transport() is False
    assert "Shipment ID must be set in order to estimate the transport request!" in caplog.text
    assert "Shipment ID must be set in order to void the transport request!" in caplog.text
