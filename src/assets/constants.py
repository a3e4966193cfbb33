"""Domain vocabularies shared by models, services and views."""

from django.conf import settings

# Asset lifecycle statuses
STATUS_AVAILABLE = "Available"
STATUS_ASSIGNED = "Assigned"
STATUS_SCRAP = "Scrap/Damage"
STATUS_SOLD = "Sold"
STATUS_SALE = "Sale"
STATUS_LOST = "Lost"
STATUS_EMP_DAMAGE = "Emp Damage"
STATUS_COURIER_DAMAGE = "Courier Damage"
STATUS_OTHERS = "Others"

ASSET_STATUSES = [
    STATUS_AVAILABLE,
    STATUS_ASSIGNED,
    STATUS_SCRAP,
    STATUS_SOLD,
    STATUS_SALE,
    STATUS_LOST,
    STATUS_EMP_DAMAGE,
    STATUS_COURIER_DAMAGE,
    STATUS_OTHERS,
]

# Targets that require a recovery amount from the employee or courier
RECOVERY_STATUSES = frozenset(
    {
        STATUS_SALE,
        STATUS_LOST,
        STATUS_EMP_DAMAGE,
        STATUS_COURIER_DAMAGE,
        STATUS_SOLD,
    }
)

# Statuses offered when an assigned asset comes back
RETURN_STATUSES = [
    STATUS_AVAILABLE,
    STATUS_SCRAP,
    STATUS_SALE,
    STATUS_LOST,
    STATUS_EMP_DAMAGE,
    STATUS_COURIER_DAMAGE,
]

ASSET_CHECK_CHOICES = ["Matched", "Not Matched", "Not Verified"]

ASSET_CONDITION_UNKNOWN = "Unknown"

WARRANTY_IN = "In Warranty"
WARRANTY_OUT = "Out of Warranty"

# Orders
ORDER_TYPES = ["Hardware", "Stock", "Return", "Replacement", "Internal", "Demo"]
INWARD_ORDER_TYPES = frozenset({"Stock", "Return"})
MATERIAL_INWARD = "Inward"
MATERIAL_OUTWARD = "Outward"

ORDER_ASSET_TYPES = ["Tablet", "TV", "SD Card", "Cover", "Pendrive", "Other"]
UNIT_STATUSES = ["Fresh", "Refurb", "Scrap"]
UNIT_GROUPS = ["FA", "NFA"]
UNIT_STATUS_SCRAP = "Scrap"
DEFAULT_UNIT_STATUS = "Fresh"
DEFAULT_UNIT_GROUP = "FA"
DEFAULT_PRODUCT = "Lead"
PRODUCTS = ["Lead", "Customer", "Demo"]


def material_type_for(order_type):
    """Return the stock direction implied by an order type."""
    if order_type in INWARD_ORDER_TYPES:
        return MATERIAL_INWARD
    return MATERIAL_OUTWARD


def is_valid_location(location):
    return location in settings.ASSET_LOCATIONS
