"""
Signature Version 2 request signing.

The query is sorted by parameter name, percent-encoded per RFC 3986 and
signed together with the verb, host and path using HMAC-SHA256.
"""
import base64
import hashlib
import hmac
from datetime import datetime, timezone
from typing import Dict, Mapping
from urllib.parse import quote, urlparse

SIGNATURE_METHOD = "HmacSHA256"
SIGNATURE_VERSION = "2"
TIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def get_timestamp() -> str:
    return datetime.now(timezone.utc).strftime(TIME_FORMAT)


def encode_query(params: Mapping[str, object]) -> str:
    """Canonical query string: keys in byte order, values RFC 3986 encoded."""
    return "&".join(
        f"{key}={quote(str(params[key]), safe='-_.~')}" for key in sorted(params)
    )


def calc_signature(secret_key: str, url: str, query: str, method: str = "POST") -> str:
    """
    Compute the base64 HMAC-SHA256 signature of a request.

    Args:
        secret_key: The store's secret access key
        url: Full endpoint URL (service URL plus section branch)
        query: Canonical query string from ``encode_query``
        method: HTTP verb

    Returns:
        The signature, base64 encoded
    """
    parts = urlparse(url)
    host = parts.netloc.lower()
    path = parts.path or "/"
    string_to_sign = "\n".join([method, host, path, query])
    digest = hmac.new(
        secret_key.encode("utf-8"), string_to_sign.encode("utf-8"), hashlib.sha256
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def sign_query(params: Dict[str, str], secret_key: str, url: str) -> str:
    """Return the canonical query with its ``Signature`` parameter appended."""
    query = encode_query(params)
    signature = calc_signature(secret_key, url, query)
    return f"{query}&Signature={quote(signature, safe='-_.~')}"
