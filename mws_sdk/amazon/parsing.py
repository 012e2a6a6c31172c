"""
XML helpers on top of xmltodict.

MWS documents are namespaced and repeat child elements freely, so callers
go through these helpers instead of indexing the parsed dicts directly:
``children`` always yields a list and ``text`` always yields a string.
"""
import re
from typing import Any, Dict, Iterable, List, Optional, Union
from xml.parsers.expat import ExpatError

import xmltodict

from mws_sdk.errors import MwsParseError

_NAMESPACE_RE = re.compile(r' xmlns(:ns2)?="[^"]+"|(ns2:)|(xml:)')

Node = Union[Dict[str, Any], str, None]


def remove_namespace(xml: str) -> str:
    return _NAMESPACE_RE.sub("", xml)


def parse_xml(body: Union[str, bytes]) -> Dict[str, Any]:
    """
    Parse an MWS response body and return its root element.

    Args:
        body: Raw XML text as returned by the service

    Returns:
        The root element as a dict (empty when the root has no content)

    Raises:
        MwsParseError: If the body is not well-formed XML
    """
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    try:
        document = xmltodict.parse(remove_namespace(body))
    except ExpatError as exc:
        raise MwsParseError(f"Response is not valid XML: {exc}", body=body) from exc
    root = next(iter(document.values()), None)
    return root if isinstance(root, dict) else {}


def _step(node: Any, key: str) -> Any:
    if isinstance(node, list):
        node = node[0] if node else None
    if not isinstance(node, dict):
        return None
    return node.get(key)


def child(node: Node, *path: str) -> Any:
    """Walk ``path`` from ``node``; repeated elements resolve to their first entry."""
    current: Any = node
    for key in path:
        current = _step(current, key)
        if current is None:
            return None
    if isinstance(current, list):
        return current[0] if current else None
    return current


def children(node: Node, *path: str) -> List[Any]:
    """Return every element found at ``path`` as a list, however many there are."""
    if not path:
        return []
    parent = child(node, *path[:-1]) if len(path) > 1 else node
    found = _step(parent, path[-1])
    if found is None:
        return []
    if isinstance(found, list):
        return found
    return [found]


def has(node: Node, *path: str) -> bool:
    current: Any = node
    for key in path:
        if isinstance(current, list):
            current = current[0] if current else None
        if not isinstance(current, dict) or key not in current:
            return False
        current = current[key]
    return True


def text(node: Node, *path: str, default: str = "") -> str:
    """Return the text of the element at ``path``; ``default`` when it is absent."""
    value = child(node, *path) if path else node
    if value is None:
        return default
    if isinstance(value, dict):
        value = value.get("#text", default)
        if value is None:
            return default
    return str(value)


def copy_fields(
    record: Dict[str, Any],
    node: Node,
    fields: Iterable[str],
    prefix: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Copy text children of ``node`` into ``record`` for each name in ``fields``.

    Fields absent from the document are left out of the record.
    """
    for field in fields:
        if has(node, field):
            record[prefix + field if prefix else field] = text(node, field)
    return record


def money(node: Node, *path: str) -> Optional[Dict[str, str]]:
    """Map an ``{Amount, CurrencyCode}`` element; None when the element is missing."""
    value = child(node, *path)
    if value is None:
        return None
    return {
        "Amount": text(value, "Amount"),
        "CurrencyCode": text(value, "CurrencyCode"),
    }


def currency_amount(node: Node, *path: str) -> Optional[Dict[str, str]]:
    """Map the finance API's ``{CurrencyAmount, CurrencyCode}`` shape onto ``{Amount, CurrencyCode}``."""
    value = child(node, *path)
    if value is None:
        return None
    return {
        "Amount": text(value, "CurrencyAmount"),
        "CurrencyCode": text(value, "CurrencyCode"),
    }


def address(node: Node, *path: str) -> Dict[str, str]:
    """Map an address element, keeping only the lines that are present."""
    value = child(node, *path)
    return copy_fields(
        {},
        value,
        (
            "Name",
            "AddressLine1",
            "AddressLine2",
            "AddressLine3",
            "Line1",
            "Line2",
            "Line3",
            "DistrictOrCounty",
            "City",
            "County",
            "District",
            "StateOrRegion",
            "StateOrProvinceCode",
            "PostalCode",
            "CountryCode",
            "Email",
            "Phone",
        ),
    )


def list_children(node: Node, *path: str) -> List[Any]:
    """
    Return every child element of the list element at ``path``, whatever its tag.

    MWS names list members inconsistently (``ChargeComponent``, ``member``,
    ``ShipmentEvent`` ...), so member tags are not checked.
    """
    container = child(node, *path)
    if not isinstance(container, dict):
        return []
    members: List[Any] = []
    for key, value in container.items():
        if key.startswith("@") or key == "#text":
            continue
        if isinstance(value, list):
            members.extend(value)
        else:
            members.append(value)
    return members
