"""
Domain models for the label workflow.

These models represent core business concepts and contain
business logic and invariants.
"""

from .customer import CustomerDomain
from .label_result import ErrorKind, LabelOperationResult
from .order import OrderDomain
from .shipment import Parcel, ShipmentRequest, ShippingAddress

__all__ = [
    "CustomerDomain",
    "ErrorKind",
    "LabelOperationResult",
    "OrderDomain",
    "Parcel",
    "ShipmentRequest",
    "ShippingAddress",
]
