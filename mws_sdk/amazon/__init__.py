"""Request builders for the MWS sections."""
from mws_sdk.amazon.core import AmazonCore, gen_time
from mws_sdk.amazon.finances import FinancialEventList
from mws_sdk.amazon.inbound import ShipmentPlanner, Transport
from mws_sdk.amazon.merchant import MerchantShipment
from mws_sdk.amazon.orders import Order, OrderItemList, OrderList
from mws_sdk.amazon.outbound import FulfillmentOrderCreator, PackageTracker
from mws_sdk.amazon.products import ProductFeeEstimate
from mws_sdk.amazon.recommendations import RecommendationList
from mws_sdk.amazon.reports import Report, ReportRequest, ReportScheduleList
from mws_sdk.amazon.service_status import ServiceStatus
from mws_sdk.amazon.subscriptions import SubscriptionList
from mws_sdk.amazon.throttle import throttle_registry

__all__ = [
    "AmazonCore",
    "gen_time",
    "FinancialEventList",
    "ShipmentPlanner",
    "Transport",
    "MerchantShipment",
    "Order",
    "OrderItemList",
    "OrderList",
    "FulfillmentOrderCreator",
    "PackageTracker",
    "ProductFeeEstimate",
    "RecommendationList",
    "Report",
    "ReportRequest",
    "ReportScheduleList",
    "ServiceStatus",
    "SubscriptionList",
    "throttle_registry",
]
