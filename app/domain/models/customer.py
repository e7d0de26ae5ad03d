"""
Customer domain model.

Represents the customer profile attached to an order. Only the fields the
label workflow needs are kept: name, email and the profile address used when
an order has no shipping snapshot.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class CustomerDomain:
    """
    Domain model representing a customer profile.

    Attributes:
        email: Customer email address
        first_name: Customer first name
        last_name: Customer last name
        address: Profile street address
        city: Profile city
        country: Profile country (ISO 3166-1 alpha-2)
        postal_code: Profile postal code
        id: Customer ID
    """

    email: str = ""
    first_name: str = ""
    last_name: str = ""
    address: str | None = None
    city: str | None = None
    country: str | None = None
    postal_code: str | None = None
    id: int | None = None

    def __post_init__(self) -> None:
        """Validate customer data after initialization."""
        if self.email and "@" not in self.email:
            raise ValueError(f"Invalid email format: {self.email}")

    @property
    def full_name(self) -> str:
        """Get customer's full name."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_address(self) -> bool:
        """Check if the profile carries a street address."""
        return bool(self.address and self.address.strip())

    def to_dict(self) -> dict[str, Any]:
        """Convert customer to dictionary (order API field names)."""
        return {
            "id": self.id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "postalCode": self.postal_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomerDomain":
        """Create customer from an order API payload (camelCase or snake_case)."""
        return cls(
            id=data.get("id"),
            email=data.get("email") or "",
            first_name=data.get("firstName", data.get("first_name")) or "",
            last_name=data.get("lastName", data.get("last_name")) or "",
            address=data.get("address"),
            city=data.get("city"),
            country=data.get("country"),
            postal_code=data.get("postalCode", data.get("postal_code")),
        )
