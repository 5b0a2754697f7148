"""
Event Normalizer

Extracts a canonical event from the payment provider's payloads.

The provider nests customer and product data differently depending on the
event family, so each canonical field has an ordered list of paths. The
first path that resolves to a non-empty value wins.
"""
from typing import Any
from pydantic import BaseModel


UNKNOWN = "unknown"

FULFILLMENT_EVENTS = frozenset({"order_approved"})
REVOCATION_EVENTS = frozenset({"order_refunded", "chargeback", "subscription_canceled"})

# Precedence lists, highest first
EVENT_TYPE_PATHS = (
    ("webhook_event_type",),
    ("event",),
)
CUSTOMER_EMAIL_PATHS = (
    ("Customer", "email"),
    ("customer", "email"),
)
CUSTOMER_NAME_PATHS = (
    ("Customer", "full_name"),
    ("customer", "full_name"),
    ("Customer", "name"),
    ("customer", "name"),
    ("Customer", "first_name"),
    ("customer", "first_name"),
)
ORDER_ID_PATHS = (
    ("order_id",),
    ("id",),
)
# Refund-family events may only reference the transaction
REVOCATION_ORDER_ID_PATHS = ORDER_ID_PATHS + (("transaction_id",),)
PRODUCT_ID_PATHS = (
    ("Product", "product_id"),
    ("product", "product_id"),
    ("product_id",),
)


class NormalizedEvent(BaseModel):
    """Canonical view of a delivery. Missing fields are None."""
    event_type: str
    customer_email: str | None = None
    customer_name: str | None = None
    order_id: str | None = None
    product_id: str | None = None

    @property
    def is_fulfillment(self) -> bool:
        return self.event_type in FULFILLMENT_EVENTS

    @property
    def is_revocation(self) -> bool:
        return self.event_type in REVOCATION_EVENTS


def resolve_path(payload: dict, path: tuple[str, ...]) -> Any:
    """Walk nested dicts along path. Returns None when any step is missing."""
    value: Any = payload
    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)
    return value


def extract_first(payload: dict, paths: tuple[tuple[str, ...], ...]) -> str | None:
    """
    Return the first non-empty scalar found along paths, as a string.

    Args:
        payload: Raw webhook body
        paths: Candidate paths in precedence order

    Returns:
        Stripped string value, or None if no path matched
    """
    for path in paths:
        value = resolve_path(payload, path)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def normalize_event(payload: dict) -> NormalizedEvent:
    """
    Build the canonical event for a raw payload.

    No field is mandatory here; handlers decide what they require.
    """
    event_type = extract_first(payload, EVENT_TYPE_PATHS) or UNKNOWN

    order_paths = REVOCATION_ORDER_ID_PATHS if event_type in REVOCATION_EVENTS else ORDER_ID_PATHS

    email = extract_first(payload, CUSTOMER_EMAIL_PATHS)

    return NormalizedEvent(
        event_type=event_type,
        customer_email=email.lower() if email else None,
        customer_name=extract_first(payload, CUSTOMER_NAME_PATHS),
        order_id=extract_first(payload, order_paths),
        product_id=extract_first(payload, PRODUCT_ID_PATHS),
    )
