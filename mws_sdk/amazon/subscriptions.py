"""
Subscriptions section: registered notification destinations and subscriptions.
"""
from typing import Any, Dict, List, Optional, Sequence, Union

from mws_sdk.amazon.core import MockEntry
from mws_sdk.amazon.parsing import child, list_children, text
from mws_sdk.amazon.sections import SubscriptionCore
from mws_sdk.settings import MwsSettings


def parse_destination(node: Any) -> Dict[str, Any]:
    return {
        "DeliveryChannel": text(node, "DeliveryChannel"),
        "AttributeList": {
            text(attribute, "Key"): text(attribute, "Value") for attribute in list_children(node, "AttributeList")
        },
    }


def parse_subscription(node: Any) -> Dict[str, Any]:
    return {
        "NotificationType": text(node, "NotificationType"),
        "Destination": parse_destination(child(node, "Destination")),
        "IsEnabled": text(node, "IsEnabled"),
    }


class SubscriptionList(SubscriptionCore):
    """Read-only view of the marketplace's notification destinations and subscriptions."""

    def __init__(
        self,
        settings: Optional[MwsSettings] = None,
        mock: bool = False,
        mock_files: Union[MockEntry, Sequence[MockEntry], None] = None,
    ) -> None:
        super().__init__(settings, mock, mock_files)
        self.destinations: Optional[List[Dict[str, Any]]] = None
        self.subscriptions: Optional[List[Dict[str, Any]]] = None

    async def _list(self, action: str, list_name: str) -> Optional[List[Any]]:
        self.options["Action"] = action
        self.throttle_group = action
        result = await self._fetch_result()
        if result is None:
            return None
        return list_children(result, list_name)

    async def fetch_destinations(self) -> bool:
        members = await self._list("ListRegisteredDestinations", "DestinationList")
        if members is None:
            return False
        self.destinations = [parse_destination(member) for member in members]
        return True

    async def fetch_subscriptions(self) -> bool:
        members = await self._list("ListSubscriptions", "SubscriptionList")
        if members is None:
            return False
        self.subscriptions = [parse_subscription(member) for member in members]
        return True

    def get_destinations(self) -> Optional[List[Dict[str, Any]]]:
        return self.destinations

    def get_subscriptions(self) -> Optional[List[Dict[str, Any]]]:
        return self.subscriptions

    def get_enabled_notification_types(self) -> List[str]:
        return [s["NotificationType"] for s in self.subscriptions or [] if s["IsEnabled"] == "true"]
