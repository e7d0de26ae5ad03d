"""
Shipment request domain model.

A ShipmentRequest is derived from an order for every booking attempt and is
never persisted.
"""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class ShippingAddress:
    """Postal address of a shipment party."""

    name: str
    email: str
    address_line1: str
    city: str
    country: str
    postal_code: str

    def to_dict(self) -> dict[str, Any]:
        """Convert address to the carrier payload format."""
        return asdict(self)


@dataclass(frozen=True)
class Parcel:
    """Parcel descriptor (weight in kg, dimensions in cm)."""

    weight: float
    height: int
    length: int
    width: int
    contents: str = ""

    def __post_init__(self) -> None:
        """Validate parcel measures."""
        if self.weight <= 0:
            raise ValueError(f"Parcel weight must be positive: {self.weight}")
        if min(self.height, self.length, self.width) <= 0:
            raise ValueError("Parcel dimensions must be positive")

    def to_dict(self) -> dict[str, Any]:
        """Convert parcel to the carrier payload format."""
        return asdict(self)


@dataclass(frozen=True)
class ShipmentRequest:
    """
    Everything the carrier needs to book a shipment.

    Attributes:
        reference: Order reference shown on the label
        sender: Warehouse address
        receiver: Customer address
        parcels: Parcel descriptors
        carrier_product_id: Carrier product selector
    """

    reference: str
    sender: ShippingAddress
    receiver: ShippingAddress
    carrier_product_id: str
    parcels: tuple[Parcel, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate that the request can be booked."""
        if not self.parcels:
            raise ValueError("At least one parcel is required")
        if not self.carrier_product_id:
            raise ValueError("carrier_product_id is required")

    def to_carrier_payload(self) -> dict[str, Any]:
        """Render the JSON body for the carrier's shipment-creation call."""
        return {
            "reference": self.reference,
            "sender": self.sender.to_dict(),
            "receiver": self.receiver.to_dict(),
            "parcels": [parcel.to_dict() for parcel in self.parcels],
            "carrier_product_id": self.carrier_product_id,
        }

    @classmethod
    def from_carrier_payload(cls, data: dict[str, Any]) -> "ShipmentRequest":
        """Build a request from its carrier payload form (used by the proxy routes)."""
        return cls(
            reference=str(data.get("reference", "")),
            sender=ShippingAddress(**data["sender"]),
            receiver=ShippingAddress(**data["receiver"]),
            parcels=tuple(Parcel(**parcel) for parcel in data.get("parcels", [])),
            carrier_product_id=data.get("carrier_product_id", ""),
        )
