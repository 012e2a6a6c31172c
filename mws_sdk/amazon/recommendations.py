"""
Recommendations section: listing, pricing and fulfillment recommendations.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from mws_sdk.amazon.core import MockEntry, TokenPagination
from mws_sdk.amazon.parsing import list_children, text
from mws_sdk.amazon.sections import RecommendationCore
from mws_sdk.errors import InvalidParameterError
from mws_sdk.settings import MwsSettings

CATEGORIES = ("Inventory", "Selection", "Pricing", "Fulfillment", "ListingQuality", "GlobalSelling", "Advertising")


def flatten(node: Any, prefix: str = "") -> Dict[str, str]:
    """Flatten nested elements into dotted keys, e.g. ``ItemIdentifier.Asin``."""
    record: Dict[str, str] = {}
    if not isinstance(node, dict):
        if prefix:
            record[prefix] = text(node)
        return record
    for key, value in node.items():
        if key.startswith("@") or key == "#text":
            continue
        name = f"{prefix}.{key}" if prefix else key
        if isinstance(value, list):
            for num, entry in enumerate(value, start=1):
                record.update(flatten(entry, f"{name}.{num}"))
        else:
            record.update(flatten(value, name))
    return record


class RecommendationList(TokenPagination, RecommendationCore):
    """
    Fetches recommendations, optionally limited to one category.

    Recommendations are stored per category as flat records:
    ``{"Pricing": [{"ItemIdentifier.Asin": "...", ...}], ...}``
    """

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.recommendations: Optional[Dict[str, List[Dict[str, str]]]] = None
        self.last_updated: Optional[Dict[str, str]] = None

    def set_category(self, category: Optional[str]) -> None:
        """Limit results to one category; None clears the filter."""
        if category is None:
            self.options.pop("RecommendationCategory", None)
            return
        if category not in CATEGORIES:
            self.log(f"Tried to set recommendation category to invalid value {category!r}", logging.WARNING)
            raise InvalidParameterError(f"Recommendation category must be one of {', '.join(CATEGORIES)}")
        self.options["RecommendationCategory"] = category

    async def fetch_last_updated_times(self) -> bool:
        """When each category's recommendations were last refreshed."""
        self.options["Action"] = "GetLastUpdatedTimeForRecommendations"
        self.throttle_group = "GetLastUpdatedTimeForRecommendations"
        saved = self.options.pop("RecommendationCategory", None)
        self.options.pop("NextToken", None)
        result = await self._fetch_result()
        if saved is not None:
            self.options["RecommendationCategory"] = saved
        if result is None:
            return False
        self.last_updated = {
            key[: -len("LastUpdated")]: text(value)
            for key, value in result.items()
            if key.endswith("LastUpdated")
        }
        return True

    def _prepare_token(self) -> None:
        self.throttle_group = "ListRecommendations"
        if self._following_token():
            self._keep_options("Version", "NextToken")
            self.options["Action"] = "ListRecommendationsByNextToken"
        else:
            self.options["Action"] = "ListRecommendations"
            self.options.pop("NextToken", None)
            if "MarketplaceId" not in self.options and self.store.marketplace_id:
                self.set_marketplace(self.store.marketplace_id)
            self.recommendations = {}

    def _parse_recommendations(self, result: Dict[str, Any]) -> None:
        for key in result:
            if not key.endswith("Recommendations"):
                continue
            category = key[: -len("Recommendations")]
            records = [flatten(member) for member in list_children(result, key)]
            self.recommendations.setdefault(category, []).extend(records)

    async def fetch_recommendations(self, follow: bool = True) -> bool:
        self._prepare_token()
        result = await self._fetch_result()
        if result is None:
            return False
        self._parse_recommendations(result)
        self._check_token(result)

        if follow and self._following_token():
            while self.token_flag:
                self.log("Recursively fetching more Recommendations")
                if not await self.fetch_recommendations(follow=False):
                    return False
        return True

    def get_recommendations(self, category: Optional[str] = None) -> Any:
        if self.recommendations is None:
            return None
        if category is None:
            return self.recommendations
        return self.recommendations.get(category, [])

    def get_last_updated(self, category: Optional[str] = None) -> Any:
        if self.last_updated is None:
            return None
        if category is None:
            return self.last_updated
        return self.last_updated.get(category)
