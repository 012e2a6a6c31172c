"""
Finances section: financial events posted to the seller's account.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from mws_sdk.amazon import constants
from mws_sdk.amazon.core import MockEntry, TimeInput, TokenPagination, gen_time
from mws_sdk.amazon.parsing import child, currency_amount, has, list_children, text
from mws_sdk.amazon.sections import FinanceCore
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings

Record = Dict[str, Any]


def parse_charge(node: Any) -> Record:
    return {
        "ChargeType": text(node, "ChargeType"),
        "Amount": text(node, "ChargeAmount", "CurrencyAmount"),
        "CurrencyCode": text(node, "ChargeAmount", "CurrencyCode"),
    }


def parse_fee(node: Any) -> Record:
    return {
        "FeeType": text(node, "FeeType"),
        "Amount": text(node, "FeeAmount", "CurrencyAmount"),
        "CurrencyCode": text(node, "FeeAmount", "CurrencyCode"),
    }


def _flat_amount(record: Record, node: Any, element: str) -> Record:
    """Store a ``CurrencyAmount`` element as top-level Amount/CurrencyCode keys."""
    record["Amount"] = text(node, element, "CurrencyAmount")
    record["CurrencyCode"] = text(node, element, "CurrencyCode")
    return record


def _map_list(record: Record, node: Any, key: str, parser: Callable[[Any], Any]) -> None:
    if has(node, key):
        record[key] = [parser(member) for member in list_children(node, key)]


def _parse_promotion(node: Any) -> Record:
    return _flat_amount(
        {"PromotionType": text(node, "PromotionType"), "PromotionId": text(node, "PromotionId")},
        node,
        "PromotionAmount",
    )


def _parse_shipment_item(node: Any) -> Record:
    item: Record = {
        "SellerSKU": text(node, "SellerSKU"),
        "OrderItemId": text(node, "OrderItemId"),
    }
    if has(node, "OrderAdjustmentItemId"):
        item["OrderAdjustmentItemId"] = text(node, "OrderAdjustmentItemId")
    item["QuantityShipped"] = text(node, "QuantityShipped")
    for key in ("ItemChargeList", "ItemChargeAdjustmentList"):
        _map_list(item, node, key, parse_charge)
    for key in ("ItemFeeList", "ItemFeeAdjustmentList"):
        _map_list(item, node, key, parse_fee)
    for key in ("PromotionList", "PromotionAdjustmentList"):
        _map_list(item, node, key, _parse_promotion)
    for key in ("CostOfPointsGranted", "CostOfPointsReturned"):
        if has(node, key):
            item[key] = currency_amount(node, key)
    return item


def parse_shipment_event(node: Any) -> Record:
    """Shipment, refund, guarantee claim and chargeback events share this shape."""
    event: Record = {
        "AmazonOrderId": text(node, "AmazonOrderId"),
        "SellerOrderId": text(node, "SellerOrderId"),
        "MarketplaceName": text(node, "MarketplaceName"),
    }
    for key in ("OrderChargeList", "OrderChargeAdjustmentList"):
        _map_list(event, node, key, parse_charge)
    for key in ("ShipmentFeeList", "ShipmentFeeAdjustmentList", "OrderFeeList", "OrderFeeAdjustmentList"):
        _map_list(event, node, key, parse_fee)
    _map_list(
        event,
        node,
        "DirectPaymentList",
        lambda x: _flat_amount({"DirectPaymentType": text(x, "DirectPaymentType")}, x, "DirectPaymentAmount"),
    )
    event["PostedDate"] = text(node, "PostedDate")
    for key in ("ShipmentItemList", "ShipmentItemAdjustmentList"):
        _map_list(event, node, key, _parse_shipment_item)
    return event


def _parse_pay_with_amazon(node: Any) -> Record:
    event: Record = {
        "SellerOrderId": text(node, "SellerOrderId"),
        "TransactionPostedDate": text(node, "TransactionPostedDate"),
        "BusinessObjectType": text(node, "BusinessObjectType"),
        "SalesChannel": text(node, "SalesChannel"),
        "Charge": parse_charge(child(node, "Charge")),
    }
    _map_list(event, node, "FeeList", parse_fee)
    for key in ("PaymentAmountType", "AmountDescription", "FulfillmentChannel", "StoreName"):
        event[key] = text(node, key)
    return event


def _parse_service_provider_credit(node: Any) -> Record:
    return {
        key: text(node, key)
        for key in (
            "ProviderTransactionType",
            "SellerOrderId",
            "MarketplaceId",
            "MarketplaceCountryCode",
            "SellerId",
            "SellerStoreName",
            "ProviderId",
            "ProviderStoreName",
        )
    }


def _parse_retrocharge(node: Any) -> Record:
    return {
        "RetrochargeEventType": text(node, "RetrochargeEventType"),
        "AmazonOrderId": text(node, "AmazonOrderId"),
        "PostedDate": text(node, "PostedDate"),
        "BaseTax": currency_amount(node, "BaseTax") or {"Amount": "", "CurrencyCode": ""},
        "ShippingTax": currency_amount(node, "ShippingTax") or {"Amount": "", "CurrencyCode": ""},
        "MarketplaceName": text(node, "MarketplaceName"),
    }


def _parse_rental_transaction(node: Any) -> Record:
    event: Record = {
        "AmazonOrderId": text(node, "AmazonOrderId"),
        "RentalEventType": text(node, "RentalEventType"),
        "ExtensionLength": text(node, "ExtensionLength"),
        "PostedDate": text(node, "PostedDate"),
    }
    _map_list(event, node, "RentalChargeList", parse_charge)
    _map_list(event, node, "RentalFeeList", parse_fee)
    event["MarketplaceName"] = text(node, "MarketplaceName")
    for key in ("RentalInitialValue", "RentalReimbursement"):
        if has(node, key):
            event[key] = currency_amount(node, key)
    return event


def _parse_performance_bond_refund(node: Any) -> Record:
    event = _flat_amount({"MarketplaceCountryCode": text(node, "MarketplaceCountryCode")}, node, "Amount")
    _map_list(event, node, "ProductGroupList", text)
    return event


def _parse_service_fee(node: Any) -> Record:
    event: Record = {
        "AmazonOrderId": text(node, "AmazonOrderId"),
        "FeeReason": text(node, "FeeReason"),
    }
    _map_list(event, node, "FeeList", parse_fee)
    for key in ("SellerSKU", "FnSKU", "FeeDescription", "ASIN"):
        event[key] = text(node, key)
    return event


def _parse_debt_recovery(node: Any) -> Record:
    empty = {"Amount": "", "CurrencyCode": ""}
    event: Record = {
        "DebtRecoveryType": text(node, "DebtRecoveryType"),
        "RecoveryAmount": currency_amount(node, "RecoveryAmount") or dict(empty),
        "OverPaymentCredit": currency_amount(node, "OverPaymentCredit") or dict(empty),
    }
    _map_list(
        event,
        node,
        "DebtRecoveryItemList",
        lambda x: {
            "RecoveryAmount": currency_amount(x, "RecoveryAmount") or dict(empty),
            "OriginalAmount": currency_amount(x, "OriginalAmount") or dict(empty),
            "GroupBeginDate": text(x, "GroupBeginDate"),
            "GroupEndDate": text(x, "GroupEndDate"),
        },
    )
    _map_list(
        event,
        node,
        "ChargeInstrumentList",
        lambda x: _flat_amount(
            {"Description": text(x, "Description"), "Tail": text(x, "Tail")}, x, "Amount"
        ),
    )
    return event


def _parse_loan_servicing(node: Any) -> Record:
    event = _flat_amount({}, node, "LoanAmount")
    event["SourceBusinessEventType"] = text(node, "SourceBusinessEventType")
    return event


def _parse_adjustment_item(node: Any) -> Record:
    empty = {"Amount": "", "CurrencyCode": ""}
    return {
        "Quantity": text(node, "Quantity"),
        "PerUnitAmount": currency_amount(node, "PerUnitAmount") or dict(empty),
        "TotalAmount": currency_amount(node, "TotalAmount") or dict(empty),
        "SellerSKU": text(node, "SellerSKU"),
        "FnSKU": text(node, "FnSKU"),
        "ProductDescription": text(node, "ProductDescription"),
        "ASIN": text(node, "ASIN"),
    }


def _parse_adjustment(node: Any) -> Record:
    event = _flat_amount({"AdjustmentType": text(node, "AdjustmentType")}, node, "AdjustmentAmount")
    _map_list(event, node, "AdjustmentItemList", _parse_adjustment_item)
    return event


def _parse_safet(node: Any) -> Record:
    event = _flat_amount(
        {"PostedDate": text(node, "PostedDate"), "SAFETClaimId": text(node, "SAFETClaimId")},
        node,
        "ReimbursedAmount",
    )
    event["SAFETReimbursementItemList"] = [
        {"ItemChargeList": [parse_charge(z) for z in list_children(item, "ItemChargeList")]}
        for item in list_children(node, "SAFETReimbursementItemList")
        if has(item, "ItemChargeList")
    ]
    return event


# event kind -> (list element, parser)
EVENT_PARSERS: Dict[str, tuple] = {
    "Shipment": ("ShipmentEventList", parse_shipment_event),
    "Refund": ("RefundEventList", parse_shipment_event),
    "GuaranteeClaim": ("GuaranteeClaimEventList", parse_shipment_event),
    "Chargeback": ("ChargebackEventList", parse_shipment_event),
    "PayWithAmazon": ("PayWithAmazonEventList", _parse_pay_with_amazon),
    "ServiceProviderCredit": ("ServiceProviderCreditEventList", _parse_service_provider_credit),
    "Retrocharge": ("RetrochargeEventList", _parse_retrocharge),
    "RentalTransaction": ("RentalTransactionEventList", _parse_rental_transaction),
    "PerformanceBondRefund": ("PerformanceBondRefundEventList", _parse_performance_bond_refund),
    "ServiceFee": ("ServiceFeeEventList", _parse_service_fee),
    "DebtRecovery": ("DebtRecoveryEventList", _parse_debt_recovery),
    "LoanServicing": ("LoanServicingEventList", _parse_loan_servicing),
    "Adjustment": ("AdjustmentEventList", _parse_adjustment),
    "SAFET": ("SAFETReimbursementEventList", _parse_safet),
}


class FinancialEventList(TokenPagination, FinanceCore):
    """
    Financial events from ``ListFinancialEvents``, grouped by event kind.

    Exactly one of the order, group or posted-date filters applies at a
    time; setting one clears the others.

    Example:
        events = FinancialEventList(settings)
        events.set_time_limits("2015-01-01T00:00:00Z")
        events.set_use_token()
        if await events.fetch_event_list():
            for shipment in events.get_events("Shipment"):
                ...
    """

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.events: Optional[Dict[str, List[Record]]] = None

    def set_max_results_per_page(self, num: int) -> None:
        if not isinstance(num, int) or isinstance(num, bool) or not 1 <= num <= constants.MAX_RESULTS_PER_PAGE:
            raise InvalidParameterError("Max results per page must be an integer from 1 to 100")
        self.options["MaxResultsPerPage"] = str(num)

    def set_order_filter(self, order_id: str) -> None:
        if not isinstance(order_id, str) or not order_id:
            raise InvalidParameterError("Order ID must be a non-empty string")
        self.reset_filters()
        self.options["AmazonOrderId"] = order_id

    def set_group_filter(self, group_id: str) -> None:
        if not isinstance(group_id, str) or not group_id:
            raise InvalidParameterError("Financial event group ID must be a non-empty string")
        self.reset_filters()
        self.options["FinancialEventGroupId"] = group_id

    def set_time_limits(self, start: TimeInput, end: TimeInput = None) -> None:
        if start is None or start == "":
            raise InvalidParameterError("A start time is required")
        self.reset_filters()
        self.options["PostedAfter"] = gen_time(start)
        if end is not None and end != "":
            self.options["PostedBefore"] = gen_time(end)

    def reset_time_limits(self) -> None:
        self.options.pop("PostedAfter", None)
        self.options.pop("PostedBefore", None)

    def reset_filters(self) -> None:
        self.options.pop("AmazonOrderId", None)
        self.options.pop("FinancialEventGroupId", None)
        self.reset_time_limits()

    def _prepare_token(self) -> None:
        if self._following_token():
            self.options["Action"] = "ListFinancialEventsByNextToken"
            self.options.pop("MaxResultsPerPage", None)
            self.reset_filters()
        else:
            self.options["Action"] = "ListFinancialEvents"
            self.options.pop("NextToken", None)
            self.events = {}

    def _parse_events(self, node: Any) -> None:
        if not isinstance(node, dict):
            return
        for kind, (list_name, parser) in EVENT_PARSERS.items():
            if not has(node, list_name):
                continue
            parsed = [parser(member) for member in list_children(node, list_name)]
            if parsed:
                self.events.setdefault(kind, []).extend(parsed)

    async def fetch_event_list(self, follow: bool = True) -> bool:
        self._prepare_token()
        result = await self._fetch_result()
        if result is None:
            return False
        self._parse_events(child(result, "FinancialEvents"))
        self._check_token(result)

        if follow and self._following_token():
            while self.token_flag:
                self.log("Recursively fetching more Financial Events")
                if not await self.fetch_event_list(follow=False):
                    return False
        return True

    def get_events(self, kind: Optional[str] = None) -> Any:
        """
        All events keyed by kind, or the list for one kind ("Shipment", "Refund", ...).
        """
        if self.events is None:
            return None
        if kind is None:
            return self.events
        if kind not in EVENT_PARSERS:
            self.log(f"[FINANCES] Unknown event kind {kind!r}", logging.WARNING)
            return None
        return self.events.get(kind, [])
