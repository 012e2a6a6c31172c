"""
Unit tests for orders, order searches and order items in mock mode.
"""
import logging

import pytest

from mws_sdk.amazon.core import parse_time
from mws_sdk.amazon.orders import Order, OrderItemList, OrderList
from mws_sdk.errors import InvalidParameterError


@pytest.mark.asyncio
async def test_fetch_order_maps_record(settings):
    order = Order(settings, order_id="058-1233752-8214740", mock=True, mock_files="fetchOrder.xml")

    assert await order.fetch_order() is True
    assert order.amazon_order_id == "058-1233752-8214740"
    assert order.order_status == "Unshipped"
    assert order.order_total == {"Amount": "4.78", "CurrencyCode": "USD"}
    assert order.shipping_address["City"] == "Seattle"
    assert order.shipping_address["Phone"] == "206-555-1234"
    assert order.get("BuyerName") == "John Jones"
    assert order.get("IsPrime") == "false"
    assert order.get("PaymentExecutionDetail") == [
        {"Amount": "10.00", "CurrencyCode": "USD", "SubPaymentMethod": "PointsAccount"},
        {"Amount": "2.00", "CurrencyCode": "USD", "SubPaymentMethod": "GC"},
    ]
    assert order.get_percent_shipped() == pytest.approx(0.25)


@pytest.mark.asyncio
async def test_fetch_order_requires_id(settings, caplog):
    order = Order(settings, mock=True, mock_files="fetchOrder.xml")
    assert await order.fetch_order() is False
    assert "Order ID must be set in order to fetch it!" in caplog.text


@pytest.mark.asyncio
async def test_fetch_order_fails_on_error_response(settings, caplog):
    order = Order(settings, order_id="058-1233752-8214740", mock=True, mock_files=[400])
    assert await order.fetch_order() is False
    assert "Bad Response! 400" in caplog.text
    assert order.data == {}


def test_set_order_id_rejects_invalid(settings, caplog):
    order = Order(settings)
    with pytest.raises(InvalidParameterError):
        order.set_order_id(None)
    assert "Attempted to set AmazonOrderId to invalid value" in caplog.text


def test_set_order_id_option(settings):
    order = Order(settings, order_id="058-1233752-8214740")
    assert order.options["AmazonOrderId.Id.1"] == "058-1233752-8214740"
    assert order.options["Action"] == "GetOrder"


@pytest.mark.asyncio
async def test_order_fetch_items_shares_mock_queue(settings):
    order = Order(settings, order_id="058-1233752-8214740", mock=True, mock_files=["fetchOrder.xml", "fetchOrderItems.xml"])
    await order.fetch_order()

    items = await order.fetch_items()

    assert isinstance(items, OrderItemList)
    assert len(items) == 2
    assert items.get_item(0)["SellerSKU"] == "CBA_OTF_1"


# === OrderList ===


def test_set_limits_created(settings):
    orders = OrderList(settings)
    orders.set_limits("Created", "2015-01-01T00:00:00Z", "2015-01-02T00:00:00Z")
    assert orders.options["CreatedAfter"] == "2015-01-01T00:00:00Z"
    assert orders.options["CreatedBefore"] == "2015-01-02T00:00:00Z"


def test_set_limits_modified_clears_created(settings):
    orders = OrderList(settings)
    orders.set_limits("Created", "2015-01-01T00:00:00Z", "2015-01-02T00:00:00Z")
    orders.set_limits("Modified", "2015-01-01T00:00:00Z", "2015-01-02T00:00:00Z")
    assert "CreatedAfter" not in orders.options
    assert orders.options["LastUpdatedAfter"] == "2015-01-01T00:00:00Z"


def test_set_limits_moves_lower_bound_before_upper(settings):
    orders = OrderList(settings)
    orders.set_limits("Created", "2015-01-03T00:00:00Z", "2015-01-02T00:00:00Z")
    after = parse_time(orders.options["CreatedAfter"])
    before = parse_time(orders.options["CreatedBefore"])
    assert (before - after).total_seconds() == 150


def test_set_limits_rejects_unknown_mode(settings, caplog):
    orders = OrderList(settings)
    with pytest.raises(InvalidParameterError):
        orders.set_limits("Shipped")
    assert 'First parameter should be either "Created" or "Modified".' in caplog.text


def test_marketplace_defaults_to_store(settings):
    orders = OrderList(settings)
    assert orders.options["MarketplaceId.Id.1"] == "ATVPDKIKX0DER"
    orders.set_marketplace_filter(["A1", "A2"])
    assert orders.options["MarketplaceId.Id.2"] == "A2"
    orders.reset_marketplace_filter()
    assert "MarketplaceId.Id.2" not in orders.options


def test_filters(settings):
    orders = OrderList(settings)
    orders.set_order_status_filter(["Unshipped", "PartiallyShipped"])
    orders.set_fulfillment_channel_filter("MFN")
    orders.set_payment_method_filter("COD")
    orders.set_max_results_per_page(50)
    orders.set_tfm_shipment_status_filter("PendingPickUp")

    assert orders.options["OrderStatus.Status.2"] == "PartiallyShipped"
    assert orders.options["FulfillmentChannel.Channel.1"] == "MFN"
    assert orders.options["PaymentMethod.1"] == "COD"
    assert orders.options["MaxResultsPerPage"] == "50"
    assert orders.options["TFMShipmentStatus.Status.1"] == "PendingPickUp"


def test_email_filter_clears_exclusive_filters(settings):
    orders = OrderList(settings)
    orders.set_order_status_filter("Unshipped")
    orders.set_fulfillment_channel_filter("AFN")
    orders.set_seller_order_id_filter("SELLER-1")

    orders.set_email_filter("buyer@example.com")

    assert orders.options["BuyerEmail"] == "buyer@example.com"
    assert "SellerOrderId" not in orders.options
    assert "OrderStatus.Status.1" not in orders.options
    assert "FulfillmentChannel.Channel.1" not in orders.options


@pytest.mark.parametrize("value", [0, 101, "50", True])
def test_max_results_bounds(settings, value):
    with pytest.raises(InvalidParameterError):
        OrderList(settings).set_max_results_per_page(value)


def test_fulfillment_channel_rejects_unknown(settings):
    with pytest.raises(InvalidParameterError):
        OrderList(settings).set_fulfillment_channel_filter("FBA")


@pytest.mark.asyncio
async def test_fetch_orders_defaults_to_created_window(settings):
    orders = OrderList(settings, mock=True, mock_files="fetchOrderList.xml")
    assert await orders.fetch_orders() is True
    assert "CreatedAfter" in orders.options
    assert len(orders) == 2
    assert orders[1].order_status == "Shipped"
    # token present but token use is off
    assert orders.has_token()


@pytest.mark.asyncio
async def test_fetch_orders_follows_token(settings, caplog):
    caplog.set_level(logging.INFO)
    orders = OrderList(settings, mock=True, mock_files=["fetchOrderList.xml", "fetchOrderListToken.xml"])
    orders.set_order_status_filter("Unshipped")
    orders.set_use_token()

    assert await orders.fetch_orders() is True

    assert [o.amazon_order_id for o in orders] == [
        "058-1233752-8214740",
        "058-1233752-8214741",
        "058-1233752-8214742",
    ]
    assert "Recursively fetching more orders" in caplog.text
    assert not orders.has_token()
    # the follow-up request carries only the token
    assert orders.options["Action"] == "ListOrdersByNextToken"
    assert "OrderStatus.Status.1" not in orders.options
    assert "CreatedAfter" not in orders.options


@pytest.mark.asyncio
async def test_fetch_orders_again_after_following_token(settings):
    orders = OrderList(settings, mock=True, mock_files=["fetchOrderList.xml", "fetchOrderListToken.xml"])
    orders.set_use_token()
    assert await orders.fetch_orders() is True
    assert "MarketplaceId.Id.1" not in orders.options

    orders.set_use_token(False)
    assert await orders.fetch_orders() is True

    assert orders.options["Action"] == "ListOrders"
    assert orders.options["MarketplaceId.Id.1"] == "ATVPDKIKX0DER"
    assert "CreatedAfter" in orders.options
    assert len(orders) == 2


@pytest.mark.asyncio
async def test_fetch_orders_stops_when_a_page_fails(settings):
    orders = OrderList(settings, mock=True, mock_files=["fetchOrderList.xml", 503])
    orders.set_use_token()
    assert await orders.fetch_orders() is False
    assert len(orders) == 2


@pytest.mark.asyncio
async def test_order_list_clear(settings):
    orders = OrderList(settings, mock=True, mock_files="fetchOrderList.xml")
    await orders.fetch_orders()
    orders.clear()
    assert orders.get_list() == []


# === OrderItemList ===


@pytest.mark.asyncio
async def test_fetch_items_maps_records(settings):
    items = OrderItemList(settings, order_id="058-1233752-8214740", mock=True, mock_files="fetchOrderItems.xml")

    assert await items.fetch_items() is True

    first = items.get_item(0)
    assert first["ASIN"] == "BT0093TELA"
    assert first["ItemPrice"] == {"Amount": "25.99", "CurrencyCode": "USD"}
    assert first["PointsGranted"] == {"PointsNumber": "10", "Amount": "10.00", "CurrencyCode": "JPY"}
    assert first["PromotionIds"] == ["FREESHIP"]
    assert first["InvoiceData"]["InvoiceTitle"] == "Example InvoiceTitle"
    assert first["ConditionSubtypeId"] == "Mint"
    assert items.get_item(1)["PromotionIds"] == ["FREESHIP", "SALE"]
    assert items.get_percent_shipped(0) == pytest.approx(0.25)
    assert items.get_percent_shipped(1) == 0.0
    assert items.get_item(5) is None


@pytest.mark.asyncio
async def test_fetch_items_warns_on_wrong_order(settings, caplog):
    items = OrderItemList(settings, order_id="111-0000000-0000000", mock=True, mock_files="fetchOrderItems.xml")
    assert await items.fetch_items() is True
    assert "You grabbed the wrong Order's items! - 111-0000000-0000000 =/= 058-1233752-8214740" in caplog.text


@pytest.mark.asyncio
async def test_fetch_items_requires_order_id(settings, caplog):
    items = OrderItemList(settings, mock=True, mock_files="fetchOrderItems.xml")
    assert await items.fetch_items() is False
    assert "Order ID must be set in order to fetch its items!" in caplog.text
