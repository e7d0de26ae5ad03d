"""
ShipmentRequestFactory - builds carrier booking requests from orders.

Receiver address comes from the order's shipping snapshot; when the order
has no snapshot, the customer's profile address is used; anything still
missing falls back to the configured defaults.
"""

import logging

from app.core.config import Settings
from app.domain.models import OrderDomain, Parcel, ShipmentRequest, ShippingAddress

logger = logging.getLogger(__name__)


def _first(*values: str | None) -> str | None:
    for value in values:
        if value and str(value).strip():
            return str(value).strip()
    return None


class ShipmentRequestFactory:
    """Factory for ShipmentRequest objects with the warehouse profile and parcel defaults."""

    def __init__(self, settings: Settings):
        self.sender = ShippingAddress(**settings.warehouse_profile)
        self.parcel = Parcel(
            weight=settings.PARCEL_WEIGHT_KG,
            height=settings.PARCEL_HEIGHT_CM,
            length=settings.PARCEL_LENGTH_CM,
            width=settings.PARCEL_WIDTH_CM,
            contents=settings.PARCEL_CONTENTS,
        )
        self.carrier_product_id = settings.CARRIER_PRODUCT_ID
        self.default_address = settings.DEFAULT_RECEIVER_ADDRESS
        self.default_city = settings.DEFAULT_RECEIVER_CITY
        self.default_country = settings.DEFAULT_RECEIVER_COUNTRY
        self.default_postal_code = settings.DEFAULT_RECEIVER_POSTAL_CODE

    def build_receiver(self, order: OrderDomain) -> ShippingAddress:
        """
        Build the receiver address for an order.

        Args:
            order: Order with snapshot and/or customer profile

        Returns:
            ShippingAddress: Receiver address
        """
        customer = order.customer
        name = customer.full_name if customer else ""
        email = customer.email if customer else ""

        if order.has_shipping_snapshot:
            address = order.shipping_address_snapshot.strip()
            city = order.shipping_city_snapshot
            country = order.shipping_country_snapshot
            postal_code = order.shipping_postal_code_snapshot
        elif customer and customer.has_address:
            logger.debug(f"Order {order.id} has no shipping snapshot, using customer profile address")
            address = customer.address.strip()
            city = customer.city
            country = customer.country
            postal_code = customer.postal_code
        else:
            logger.warning(f"Order {order.id} has no shipping snapshot nor profile address")
            address, city, country, postal_code = None, None, None, None

        return ShippingAddress(
            name=name or f"Order {order.carrier_reference}",
            email=email,
            address_line1=_first(address, self.default_address),
            city=_first(city, self.default_city),
            country=_first(country, self.default_country),
            postal_code=_first(postal_code, self.default_postal_code),
        )

    def create_for_order(self, order: OrderDomain) -> ShipmentRequest:
        """Create a fresh ShipmentRequest for one booking attempt."""
        return ShipmentRequest(
            reference=order.carrier_reference,
            sender=self.sender,
            receiver=self.build_receiver(order),
            parcels=(self.parcel,),
            carrier_product_id=self.carrier_product_id,
        )
