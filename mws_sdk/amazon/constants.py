"""API versions and throttle quotas of the MWS sections."""
from dataclasses import dataclass


@dataclass(frozen=True)
class ThrottleQuota:
    """Request quota of a throttle group and the seconds needed to restore one request."""

    limit: int
    restore_seconds: float

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError("Throttle limit must be at least 1")
        if self.restore_seconds < 0:
            raise ValueError("Throttle restore time cannot be negative")


# === Section versions ===
VERSION_ORDERS = "2013-09-01"
VERSION_REPORTS = "2009-01-01"
VERSION_FINANCE = "2015-05-01"
VERSION_INBOUND = "2010-10-01"
VERSION_OUTBOUND = "2010-10-01"
VERSION_INVENTORY = "2010-10-01"
VERSION_PRODUCTS = "2011-10-01"
VERSION_SELLERS = "2011-07-01"
VERSION_MERCHANT = "2015-06-01"
VERSION_RECOMMEND = "2013-04-01"
VERSION_SUBSCRIBE = "2013-07-01"

# === Throttle quotas ===
THROTTLE_ORDER_LIST = ThrottleQuota(6, 60)
THROTTLE_ORDER = ThrottleQuota(6, 60)
THROTTLE_ITEM = ThrottleQuota(30, 2)
THROTTLE_REPORT = ThrottleQuota(15, 60)
THROTTLE_REPORT_REQUEST = ThrottleQuota(15, 60)
THROTTLE_REPORT_SCHEDULE = ThrottleQuota(10, 45)
THROTTLE_REPORT_TOKEN = ThrottleQuota(30, 2)
THROTTLE_STATUS = ThrottleQuota(2, 300)
THROTTLE_PRODUCT = ThrottleQuota(20, 5)
THROTTLE_PRODUCT_FEE = ThrottleQuota(20, 0.1)
THROTTLE_INVENTORY = ThrottleQuota(30, 0.5)
THROTTLE_INBOUND = ThrottleQuota(30, 0.5)
THROTTLE_OUTBOUND = ThrottleQuota(30, 0.5)
THROTTLE_FINANCE = ThrottleQuota(30, 2)
THROTTLE_MERCHANT = ThrottleQuota(10, 1)
THROTTLE_RECOMMEND = ThrottleQuota(8, 2)
THROTTLE_SUBSCRIBE = ThrottleQuota(25, 1)

MAX_RESULTS_PER_PAGE = 100
