"""
Unit tests for fulfillment order creation and package tracking.
"""
import logging

import pytest

from mws_sdk.amazon.outbound import FulfillmentOrderCreator, PackageTracker
from mws_sdk.errors import InvalidParameterError

ADDRESS = {
    "Name": "Jane Smith",
    "Line1": "1234 Any St.",
    "City": "Seattle",
    "StateOrProvinceCode": "WA",
    "CountryCode": "US",
    "PostalCode": "98103",
    "PhoneNumber": "206-555-1234",
}

ITEMS = [
    {
        "SellerSKU": "SKU-1",
        "SellerFulfillmentOrderItemId": "1",
        "Quantity": 2,
        "Comment": "Handle with care",
        "PerUnitDeclaredValue": {"Value": "9.99", "CurrencyCode": "USD"},
    },
    {"SellerSKU": "SKU-2", "SellerFulfillmentOrderItemId": "2", "Quantity": 1},
]


def _ready_creator(settings, **kwargs) -> FulfillmentOrderCreator:
    creator = FulfillmentOrderCreator(settings, **kwargs)
    creator.set_fulfillment_order_id("ORDER-1")
    creator.set_displayable_order_id("ORDER-1")
    creator.set_date("2015-01-01T00:00:00Z")
    creator.set_comment("Thank you for your order")
    creator.set_shipping_speed("Standard")
    creator.set_address(ADDRESS)
    creator.set_items(ITEMS)
    return creator


def test_setters_fill_options(settings):
    creator = _ready_creator(settings)
    creator.set_fulfillment_action("Hold")
    creator.set_fulfillment_policy("FillAll")
    creator.set_emails(["a@example.com", "b@example.com"])

    options = creator.options
    assert options["DisplayableOrderDateTime"] == "2015-01-01T00:00:00Z"
    assert options["DestinationAddress.Line1"] == "1234 Any St."
    assert options["DestinationAddress.PhoneNumber"] == "206-555-1234"
    assert "DestinationAddress.Line2" not in options
    assert options["Items.member.1.Quantity"] == "2"
    assert options["Items.member.1.DisplayableComment"] == "Handle with care"
    assert options["Items.member.1.PerUnitDeclaredValue.Value"] == "9.99"
    assert options["Items.member.2.SellerSKU"] == "SKU-2"
    assert options["FulfillmentAction"] == "Hold"
    assert options["FulfillmentPolicy"] == "FillAll"
    assert options["NotificationEmailList.member.2"] == "b@example.com"


@pytest.mark.parametrize(
    "setter,value",
    [
        ("set_shipping_speed", "Overnight"),
        ("set_fulfillment_policy", "FillSome"),
        ("set_fulfillment_action", "Cancel"),
        ("set_fulfillment_order_id", ""),
        ("set_items", []),
        ("set_address", {"Name": "Only a name"}),
    ],
)
def test_invalid_values_raise(settings, setter, value):
    creator = FulfillmentOrderCreator(settings)
    with pytest.raises(InvalidParameterError):
        getattr(creator, setter)(value)


def test_invalid_item_clears_items(settings, caplog):
    creator = FulfillmentOrderCreator(settings)
    creator.set_items(ITEMS)
    with pytest.raises(InvalidParameterError):
        creator.set_items([{"SellerSKU": "SKU-1"}])
    assert not any(key.startswith("Items.") for key in creator.options)
    assert "Tried to set Items with invalid array" in caplog.text


@pytest.mark.parametrize(
    "money",
    ["9.99", {"Value": "9.99"}, {"CurrencyCode": "USD"}, None],
)
def test_item_money_must_be_value_and_currency(settings, money):
    creator = FulfillmentOrderCreator(settings)
    creator.set_items(ITEMS)
    bad_item = {"SellerSKU": "SKU-3", "SellerFulfillmentOrderItemId": "3", "Quantity": 1, "PerUnitPrice": money}

    with pytest.raises(InvalidParameterError):
        creator.set_items([ITEMS[1], bad_item])

    assert not any(key.startswith("Items.") for key in creator.options)


def test_cod_settings_and_delivery_window(settings):
    creator = FulfillmentOrderCreator(settings)
    creator.set_cod_settings("JPY", required=True, charge=500, shipping=300)
    creator.set_delivery_window("2015-01-01T00:00:00Z", "2015-01-02T00:00:00Z")

    assert creator.options["CODSettings.IsCODRequired"] == "true"
    assert creator.options["CODSettings.CODCharge.Value"] == "500"
    assert creator.options["CODSettings.ShippingCharge.CurrencyCode"] == "JPY"
    assert "CODSettings.CODChargeTax.Value" not in creator.options
    assert creator.options["DeliveryWindow.EndDateTime"] == "2015-01-02T00:00:00Z"

    with pytest.raises(InvalidParameterError):
        creator.set_cod_settings("JPY", charge="lots")


@pytest.mark.asyncio
async def test_create_order(settings, caplog):
    caplog.set_level(logging.INFO)
    creator = _ready_creator(settings, mock=True, mock_files="createFulfillmentOrder.xml")

    assert await creator.create_order() is True
    assert creator.options["Action"] == "CreateFulfillmentOrder"
    assert "Successfully created Fulfillment Order ORDER-1 / ORDER-1" in caplog.text


@pytest.mark.asyncio
async def test_create_order_checks_required_fields(settings, caplog):
    creator = FulfillmentOrderCreator(settings, mock=True, mock_files="createFulfillmentOrder.xml")
    creator.set_fulfillment_order_id("ORDER-1")
    creator.set_displayable_order_id("ORDER-1")

    assert await creator.create_order() is False
    assert "Date must be set in order to create an order" in caplog.text


@pytest.mark.asyncio
async def test_create_order_reports_failure(settings, caplog):
    creator = _ready_creator(settings, mock=True, mock_files=[400])
    assert await creator.create_order() is False
    assert "Bad Response! 400" in caplog.text


@pytest.mark.asyncio
async def test_update_order_drops_cod_and_delivery_window(settings):
    creator = _ready_creator(settings, mock=True, mock_files="createFulfillmentOrder.xml")
    creator.set_cod_settings("JPY", charge=500)
    creator.set_delivery_window("2015-01-01T00:00:00Z", "2015-01-02T00:00:00Z")

    assert await creator.update_order() is True

    assert creator.options["Action"] == "UpdateFulfillmentOrder"
    assert not any(key.startswith(("CODSettings.", "DeliveryWindow.")) for key in creator.options)


@pytest.mark.asyncio
async def test_fetch_tracking_details(settings):
    tracker = PackageTracker(settings, 1, mock=True, mock_files="fetchTrackingDetails.xml")

    assert await tracker.fetch_tracking_details() is True

    details = tracker.details
    assert details["TrackingNumber"] == "1Z6Y68W00342402864"
    assert details["ShipToAddress"] == {"City": "Seattle", "State": "WA", "Country": "US"}
    assert details["CurrentStatus"] == "DELIVERED"
    assert [event["EventCode"] for event in details["TrackingEvents"]] == ["EVENT_101", "EVENT_301"]
    assert details["TrackingEvents"][0]["EventAddress"]["City"] == "Tracy"
    assert details["AdditionalLocationInfo"] == "FRONT_DOOR"


@pytest.mark.asyncio
async def test_tracking_requires_package_number(settings, caplog):
    tracker = PackageTracker(settings, mock=True, mock_files="fetchTrackingDetails.xml")
    assert await tracker.fetch_tracking_details() is False
    assert "Package Number must be set in order to fetch it!" in caplog.text


def test_package_number_must_be_numeric(settings):
    with pytest.raises(InvalidParameterError):
        PackageTracker(settings, "ABC")
