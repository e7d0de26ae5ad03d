"""
Order domain model (label view).

Represents the slice of an order the label workflow reads and writes:
the label status fields and the immutable shipping address snapshot.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .customer import CustomerDomain


def _parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO timestamp from the order API, assuming UTC when naive."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class OrderDomain:
    """
    Domain model representing an order's label state.

    Invariant: label_printed_date is set if and only if is_label_printed is True.
    Label fields are only ever overwritten, never cleared.

    Attributes:
        id: Internal order ID
        order_number: Human-facing order number (carrier reference)
        is_label_printed: Whether a label has been produced
        label_printed_date: When the label was first marked printed
        label_url: Last known label document location
        shipping_address_snapshot: Street address captured at checkout
        shipping_city_snapshot: City captured at checkout
        shipping_country_snapshot: Country captured at checkout
        shipping_postal_code_snapshot: Postal code captured at checkout
        customer: Customer profile (fallback address source)
    """

    id: int
    order_number: str = ""
    is_label_printed: bool = False
    label_printed_date: datetime | None = None
    label_url: str | None = None
    shipping_address_snapshot: str | None = None
    shipping_city_snapshot: str | None = None
    shipping_country_snapshot: str | None = None
    shipping_postal_code_snapshot: str | None = None
    customer: CustomerDomain | None = None

    def __post_init__(self) -> None:
        """Validate label state consistency after initialization."""
        if self.is_label_printed and self.label_printed_date is None:
            raise ValueError(f"Order {self.id}: label_printed_date is required when is_label_printed is True")
        if not self.is_label_printed and self.label_printed_date is not None:
            raise ValueError(f"Order {self.id}: label_printed_date must be empty while is_label_printed is False")

    @property
    def has_shipping_snapshot(self) -> bool:
        """Check if the order carries its own shipping address snapshot."""
        return bool(self.shipping_address_snapshot and self.shipping_address_snapshot.strip())

    @property
    def carrier_reference(self) -> str:
        """Reference sent to the carrier (order number, or the id as string)."""
        return self.order_number or str(self.id)

    def mark_label_printed(self, label_url: str, printed_at: datetime | None = None) -> None:
        """
        Record a successful label operation.

        The printed date is set only on the transition to printed; a re-print
        keeps the original date and overwrites the URL.

        Args:
            label_url: Label document location returned by the carrier
            printed_at: Timestamp to record (defaults to now, UTC)
        """
        if not label_url:
            raise ValueError("label_url is required to mark a label as printed")

        if not self.is_label_printed:
            self.label_printed_date = printed_at or datetime.now(UTC)
        self.is_label_printed = True
        self.label_url = label_url

    def label_state(self) -> dict[str, Any]:
        """Return only the label state fields."""
        return {
            "order_id": self.id,
            "is_label_printed": self.is_label_printed,
            "label_printed_date": self.label_printed_date.isoformat() if self.label_printed_date else None,
            "label_url": self.label_url,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert order to dictionary."""
        return {
            **self.label_state(),
            "order_number": self.order_number,
            "shipping_address_snapshot": self.shipping_address_snapshot,
            "shipping_city_snapshot": self.shipping_city_snapshot,
            "shipping_country_snapshot": self.shipping_country_snapshot,
            "shipping_postal_code_snapshot": self.shipping_postal_code_snapshot,
            "customer": self.customer.to_dict() if self.customer else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderDomain":
        """
        Create order from an order API payload.

        Accepts the dashboard API's camelCase names as well as snake_case.
        """

        def pick(camel: str, snake: str, default: Any = None) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        customer_data = pick("user", "customer")

        return cls(
            id=int(data["id"]),
            order_number=pick("orderNumber", "order_number") or "",
            is_label_printed=bool(pick("isLabelPrinted", "is_label_printed", False)),
            label_printed_date=_parse_datetime(pick("labelPrintedDate", "label_printed_date")),
            label_url=pick("labelUrl", "label_url"),
            shipping_address_snapshot=pick("shippingAddressSnapshot", "shipping_address_snapshot"),
            shipping_city_snapshot=pick("shippingCitySnapshot", "shipping_city_snapshot"),
            shipping_country_snapshot=pick("shippingCountrySnapshot", "shipping_country_snapshot"),
            shipping_postal_code_snapshot=pick("shippingPostalCodeSnapshot", "shipping_postal_code_snapshot"),
            customer=CustomerDomain.from_dict(customer_data) if customer_data else None,
        )
