"""Tests unitarios para ShipmentRequestFactory."""

from app.domain.models import CustomerDomain, OrderDomain
from app.services.labels.shipment_builder import ShipmentRequestFactory
from tests.helpers import make_settings


class TestShipmentRequestFactory:
    """Tests para la derivación del destinatario y del paquete."""

    def test_uses_shipping_snapshot(self, unlabelled_order):
        """Debe usar la dirección capturada en el pedido."""
        request = ShipmentRequestFactory(make_settings()).create_for_order(unlabelled_order)

        assert request.reference == "ORD-1001"
        assert request.receiver.name == "Anna Svensson"
        assert request.receiver.address_line1 == "Drottninggatan 12"
        assert request.receiver.city == "Stockholm"
        assert request.receiver.postal_code == "11151"

    def test_falls_back_to_profile_address(self, customer):
        """Debe usar la dirección del perfil si el pedido no tiene snapshot."""
        order = OrderDomain(id=55, customer=customer)

        receiver = ShipmentRequestFactory(make_settings()).build_receiver(order)

        assert receiver.address_line1 == "Profilgatan 3"
        assert receiver.city == "Uppsala"

    def test_falls_back_to_defaults(self):
        """Debe completar con valores por defecto si no hay dirección alguna."""
        order = OrderDomain(id=56, customer=CustomerDomain(email="x@example.se"))

        request = ShipmentRequestFactory(make_settings()).create_for_order(order)

        assert request.reference == "56"
        assert request.receiver.name == "Order 56"
        assert request.receiver.address_line1 == "Unknown Address"
        assert request.receiver.city == "Stockholm"
        assert request.receiver.country == "SE"
        assert request.receiver.postal_code == "10000"

    def test_sender_and_parcel_from_settings(self, unlabelled_order):
        """Debe usar el perfil del almacén y el paquete configurado."""
        settings = make_settings(WAREHOUSE_NAME="Main Warehouse", PARCEL_WEIGHT_KG=2.0, CARRIER_PRODUCT_ID="dhl_parcel")

        request = ShipmentRequestFactory(settings).create_for_order(unlabelled_order)

        assert request.sender.name == "Main Warehouse"
        assert request.parcels[0].weight == 2.0
        assert request.parcels[0].contents == "Fragrances"
        assert request.carrier_product_id == "dhl_parcel"
        assert request.to_carrier_payload()["sender"]["name"] == "Main Warehouse"
