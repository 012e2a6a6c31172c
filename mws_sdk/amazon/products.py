"""
Products section: fee estimates for listings via ``GetMyFeesEstimate``.
"""
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from mws_sdk.amazon import constants
from mws_sdk.amazon.core import MockEntry
from mws_sdk.amazon.parsing import child, has, list_children, money, text
from mws_sdk.amazon.sections import ProductsCore
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings

REQUEST_REQUIRED = ("MarketplaceId", "IdType", "IdValue", "ListingPrice", "Identifier", "IsAmazonFulfilled")
REQUEST_PREFIX = "FeesEstimateRequestList.FeesEstimateRequest"


def parse_fee_detail(node: Any) -> Dict[str, Any]:
    """Map a ``<FeeDetail>``, including its nested ``IncludedFeeDetailList``."""
    detail: Dict[str, Any] = {
        "FeeType": text(node, "FeeType"),
        "FeeAmount": money(node, "FeeAmount") or {"Amount": "", "CurrencyCode": ""},
    }
    for key in ("FeePromotion", "TaxAmount"):
        if has(node, key):
            detail[key] = money(node, key)
    detail["FinalFee"] = money(node, "FinalFee") or {"Amount": "", "CurrencyCode": ""}
    if has(node, "IncludedFeeDetailList"):
        detail["IncludedFeeDetailList"] = [
            parse_fee_detail(included) for included in list_children(node, "IncludedFeeDetailList")
        ]
    return detail


def parse_estimate(node: Any) -> Dict[str, Any]:
    identifier = child(node, "FeesEstimateIdentifier")
    estimate: Dict[str, Any] = {
        "MarketplaceId": text(identifier, "MarketplaceId"),
        "IdType": text(identifier, "IdType"),
        "IdValue": text(identifier, "IdValue"),
        "ListingPrice": money(identifier, "PriceToEstimateFees", "ListingPrice")
        or {"Amount": "", "CurrencyCode": ""},
    }
    if has(identifier, "PriceToEstimateFees", "Shipping"):
        estimate["Shipping"] = money(identifier, "PriceToEstimateFees", "Shipping")
    if has(identifier, "PriceToEstimateFees", "Points", "PointsNumber"):
        estimate["Points"] = text(identifier, "PriceToEstimateFees", "Points", "PointsNumber")
    for key in ("IsAmazonFulfilled", "SellerInputIdentifier", "TimeOfFeesEstimation"):
        estimate[key] = text(identifier, key)
    estimate["Status"] = text(node, "Status")
    if has(node, "FeesEstimate"):
        estimate["TotalFeesEstimate"] = money(node, "FeesEstimate", "TotalFeesEstimate")
        estimate["FeeDetailList"] = [
            parse_fee_detail(detail) for detail in list_children(node, "FeesEstimate", "FeeDetailList")
        ]
    if has(node, "Error"):
        estimate["Error"] = {key: text(node, "Error", key) for key in ("Type", "Code", "Message")}
    return estimate


class ProductFeeEstimate(ProductsCore):
    """
    Estimated fees for one or more listings.

    Example:
        estimator = ProductFeeEstimate(settings)
        estimator.set_requests([{
            "MarketplaceId": "ATVPDKIKX0DER",
            "IdType": "ASIN",
            "IdValue": "B00EXAMPLE",
            "ListingPrice": {"CurrencyCode": "USD", "Value": "30.00"},
            "Identifier": "request-1",
            "IsAmazonFulfilled": "true",
        }])
        if await estimator.fetch_estimates():
            for estimate in estimator:
                ...
    """

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.estimates: Optional[List[Dict[str, Any]]] = None
        self.options["Action"] = "GetMyFeesEstimate"
        self._set_throttle(constants.THROTTLE_PRODUCT_FEE, "GetMyFeesEstimate")

    def set_requests(self, requests: Sequence[Mapping[str, Any]]) -> None:
        """
        Set the fee estimate requests.

        Each request needs MarketplaceId, IdType (ASIN or SellerSKU), IdValue,
        ListingPrice ``{"CurrencyCode", "Value"}``, Identifier and
        IsAmazonFulfilled; Shipping (same shape as ListingPrice) and Points
        are optional.
        """
        if isinstance(requests, (str, bytes)) or not requests:
            self.log("Tried to set Fee Estimate Requests to invalid values", logging.WARNING)
            raise InvalidParameterError("Fee estimate requests must be a non-empty list")
        self.reset_requests()
        for num, request in enumerate(requests, start=1):
            if not _valid_request(request):
                self.reset_requests()
                self.log("Tried to set Fee Estimate Requests with invalid array", logging.WARNING)
                raise InvalidParameterError(f"Fee estimate request {num} needs {', '.join(REQUEST_REQUIRED)}")
            prefix = f"{REQUEST_PREFIX}.{num}"
            price = f"{prefix}.PriceToEstimateFees"
            self.options[f"{prefix}.MarketplaceId"] = str(request["MarketplaceId"])
            self.options[f"{prefix}.IdType"] = str(request["IdType"])
            self.options[f"{prefix}.IdValue"] = str(request["IdValue"])
            self.options[f"{price}.ListingPrice.CurrencyCode"] = str(request["ListingPrice"]["CurrencyCode"])
            self.options[f"{price}.ListingPrice.Amount"] = str(request["ListingPrice"]["Value"])
            shipping = request.get("Shipping")
            if isinstance(shipping, Mapping):
                self.options[f"{price}.Shipping.CurrencyCode"] = str(shipping["CurrencyCode"])
                self.options[f"{price}.Shipping.Amount"] = str(shipping["Value"])
            if "Points" in request:
                self.options[f"{price}.Points.PointsNumber"] = str(request["Points"])
            self.options[f"{prefix}.Identifier"] = str(request["Identifier"])
            is_fba = request["IsAmazonFulfilled"]
            if isinstance(is_fba, bool):
                is_fba = "true" if is_fba else "false"
            self.options[f"{prefix}.IsAmazonFulfilled"] = str(is_fba)

    def reset_requests(self) -> None:
        self._remove_options("FeesEstimateRequestList.")

    async def fetch_estimates(self) -> bool:
        if f"{REQUEST_PREFIX}.1.MarketplaceId" not in self.options:
            self.log("Fee Requests must be set in order to fetch estimates!", logging.WARNING)
            return False
        result = await self._fetch_result()
        if result is None:
            return False
        self.estimates = [parse_estimate(node) for node in list_children(result, "FeesEstimateResultList")]
        for estimate in self.estimates:
            if "Error" in estimate:
                self.log(
                    f"Fee estimate {estimate['SellerInputIdentifier'] or estimate['IdValue']} failed: "
                    f"{estimate['Error']['Code']} - {estimate['Error']['Message']}",
                    logging.WARNING,
                )
        return True

    def get_estimates(self, index: Optional[int] = None) -> Union[Dict[str, Any], List[Dict[str, Any]], None]:
        if self.estimates is None:
            return None
        if index is None:
            return self.estimates
        return self.estimates[index] if 0 <= index < len(self.estimates) else None

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.estimates or [])

    def __len__(self) -> int:
        return len(self.estimates or [])


def _valid_request(request: Any) -> bool:
    if not isinstance(request, Mapping) or any(key not in request for key in REQUEST_REQUIRED):
        return False
    price = request["ListingPrice"]
    return isinstance(price, Mapping) and "CurrencyCode" in price and "Value" in price
