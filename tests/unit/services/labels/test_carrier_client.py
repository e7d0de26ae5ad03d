"""Tests unitarios para SendifyCarrierClient (proxy hacia el transportista)."""

import asyncio
import json

import aiohttp
import pytest

from app.core.config import DEFAULT_PLACEHOLDER_LABEL_URL, DEFAULT_SENDIFY_BASE_URL
from app.domain.models import ErrorKind, Parcel, ShipmentRequest, ShippingAddress
from app.services.labels.carrier_client import SendifyCarrierClient
from app.services.labels.simulation import MISSING_KEY_WARNING, SIMULATION_WARNING
from tests.helpers import FakeResponse, FakeSession, make_settings


def build_client(session: FakeSession, **settings_overrides) -> SendifyCarrierClient:
    client = SendifyCarrierClient.from_settings(make_settings(**settings_overrides))
    client.session = session
    client._owns_session = False
    return client


@pytest.fixture
def shipment_request() -> ShipmentRequest:
    address = ShippingAddress(
        name="Anna Svensson",
        email="anna@example.se",
        address_line1="Drottninggatan 12",
        city="Stockholm",
        country="SE",
        postal_code="11151",
    )
    return ShipmentRequest(
        reference="ORD-1001",
        sender=address,
        receiver=address,
        parcels=(Parcel(weight=1.5, height=10, length=20, width=15, contents="Fragrances"),),
        carrier_product_id="postnord_my_pack_collect",
    )


class TestPrintLabel:
    """Tests para print_label (falla cerrado)."""

    @pytest.mark.asyncio
    async def test_simulation_skips_network_even_with_key(self):
        """Debe devolver la etiqueta de ejemplo sin llamar al transportista."""
        session = FakeSession()
        client = build_client(session, SENDIFY_API_KEY="server-key")

        result = await client.print_label("1001", simulate=True)

        assert result.ok
        assert result.label_url == DEFAULT_PLACEHOLDER_LABEL_URL
        assert result.warning
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_missing_key_fails_without_network(self):
        """Debe fallar con MISSING_CREDENTIALS sin hacer llamadas."""
        session = FakeSession()
        client = build_client(session)

        result = await client.print_label("1001")

        assert not result.ok
        assert result.error_kind == ErrorKind.MISSING_CREDENTIALS
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_numeric_id_sent_as_string(self):
        """Debe enviar siempre el id de envío como string."""
        session = FakeSession(FakeResponse(200, {"label_url": "https://cdn.sendify.test/1001.pdf"}))
        client = build_client(session, SENDIFY_API_KEY="server-key")

        result = await client.print_label(1001)

        call = session.calls[0]
        assert call["url"] == f"{DEFAULT_SENDIFY_BASE_URL}/shipments/print"
        assert json.loads(call["data"]) == {"shipment_ids": ["1001"]}
        assert call["headers"]["x-api-key"] == "server-key"
        assert result.shipment_id == "1001"
        assert result.label_url == "https://cdn.sendify.test/1001.pdf"

    @pytest.mark.asyncio
    async def test_label_url_synthesized_when_absent(self):
        """Debe sintetizar la URL de la etiqueta si el transportista no la devuelve."""
        session = FakeSession(FakeResponse(200, ""))
        client = build_client(session, SENDIFY_API_KEY="k")

        result = await client.print_label("SH-9")

        assert result.ok
        assert result.label_url == f"{DEFAULT_SENDIFY_BASE_URL}/shipments/SH-9/label"

    @pytest.mark.asyncio
    async def test_request_overrides_key_and_endpoint(self):
        """Debe usar la key y el endpoint de la request."""
        session = FakeSession(FakeResponse(200, {"url": "https://mock.local/l.pdf"}))
        client = build_client(session, SENDIFY_API_KEY="server-key")

        await client.print_label("5", api_key="header-key", endpoint="https://mock.local/api")

        assert session.calls[0]["url"] == "https://mock.local/api/shipments/print"
        assert session.calls[0]["headers"]["x-api-key"] == "header-key"

    @pytest.mark.asyncio
    async def test_structured_and_unstructured_404_not_conflated(self):
        """Debe distinguir 404 estructurado (no existe) de 404 plano (ruta rota)."""
        session = FakeSession(
            FakeResponse(404, {"error": "Shipment not found"}),
            FakeResponse(404, "Cannot POST /shipments/print"),
        )
        client = build_client(session, SENDIFY_API_KEY="k")

        not_found = await client.print_label("shp_does_not_exist")
        broken_route = await client.print_label("shp_does_not_exist")

        assert not_found.error_kind == ErrorKind.SHIPMENT_NOT_FOUND
        assert broken_route.error_kind == ErrorKind.CONNECTIVITY_ERROR
        assert broken_route.upstream_status == 404

    @pytest.mark.asyncio
    async def test_upstream_error_preserves_body(self):
        """Debe conservar status y cuerpo crudo del transportista."""
        session = FakeSession(FakeResponse(422, '{"error": "invalid shipment id"}'))
        client = build_client(session, SENDIFY_API_KEY="k")

        result = await client.print_label("x")

        assert result.error_kind == ErrorKind.UPSTREAM_ERROR
        assert result.upstream_status == 422
        assert "invalid shipment id" in result.upstream_message

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [asyncio.TimeoutError(), aiohttp.ClientConnectionError("Connection refused")]
    )
    async def test_network_failures_are_proxy_internal_errors(self, error):
        """Debe clasificar timeouts y errores de red como PROXY_INTERNAL_ERROR."""
        session = FakeSession(error)
        client = build_client(session, SENDIFY_API_KEY="k")

        result = await client.print_label("1001")

        assert result.error_kind == ErrorKind.PROXY_INTERNAL_ERROR
        assert result.upstream_status is None
        assert result.upstream_message


class TestBookShipment:
    """Tests para book_shipment (falla abierto)."""

    @pytest.mark.asyncio
    async def test_simulation_returns_mock_shipment(self, shipment_request):
        """Debe devolver un id SIM- y aviso de simulación sin llamar al transportista."""
        session = FakeSession()
        client = build_client(session, SENDIFY_API_KEY="k")

        first = await client.book_shipment(shipment_request, simulate=True)
        second = await client.book_shipment(shipment_request, simulate=True)

        assert first.ok
        assert first.label_url == DEFAULT_PLACEHOLDER_LABEL_URL
        assert first.warning == SIMULATION_WARNING
        assert first.shipment_id.startswith("SIM-")
        assert first.shipment_id != second.shipment_id
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_missing_key_degrades_to_mock(self, shipment_request):
        """Debe devolver etiqueta de ejemplo con aviso si no hay key."""
        session = FakeSession()
        client = build_client(session)

        result = await client.book_shipment(shipment_request)

        assert result.ok
        assert result.warning == MISSING_KEY_WARNING
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_successful_booking(self, shipment_request):
        """Debe extraer el id del transportista y sintetizar la URL de la etiqueta."""
        session = FakeSession(FakeResponse(201, {"id": 555, "status": "booked"}))
        client = build_client(session, SENDIFY_API_KEY="k")

        result = await client.book_shipment(shipment_request)

        payload = json.loads(session.calls[0]["data"])
        assert session.calls[0]["url"] == f"{DEFAULT_SENDIFY_BASE_URL}/shipments"
        assert payload["reference"] == "ORD-1001"
        assert payload["carrier_product_id"] == "postnord_my_pack_collect"
        assert payload["parcels"][0]["weight"] == 1.5
        assert result.shipment_id == "555"
        assert result.label_url == f"{DEFAULT_SENDIFY_BASE_URL}/shipments/555/label"
        assert result.warning is None

    @pytest.mark.asyncio
    async def test_upstream_failure_returns_placeholder_with_warning(self, shipment_request):
        """Debe devolver etiqueta de ejemplo y un aviso con status y cuerpo."""
        session = FakeSession(FakeResponse(400, '{"error": "invalid postal code"}'))
        client = build_client(session, SENDIFY_API_KEY="k")

        result = await client.book_shipment(shipment_request)

        assert result.ok
        assert result.label_url == DEFAULT_PLACEHOLDER_LABEL_URL
        assert "HTTP 400" in result.warning
        assert "invalid postal code" in result.warning

    @pytest.mark.asyncio
    async def test_network_failure_returns_placeholder(self, shipment_request):
        """Debe fallar abierto también ante errores de red."""
        session = FakeSession(asyncio.TimeoutError())
        client = build_client(session, SENDIFY_API_KEY="k")

        result = await client.book_shipment(shipment_request)

        assert result.ok
        assert "Real booking failed" in result.warning


class TestProbe:
    """Tests para el probe explícito de conectividad."""

    @pytest.mark.asyncio
    async def test_probe_reports_status(self):
        """Debe llamar a /products y reportar alcance y autenticación."""
        session = FakeSession(FakeResponse(200, "[]"))
        client = build_client(session, SENDIFY_API_KEY="k")

        probe = await client.probe()

        assert session.calls[0]["method"] == "GET"
        assert session.calls[0]["url"] == f"{DEFAULT_SENDIFY_BASE_URL}/products"
        assert probe["reachable"] is True
        assert probe["authenticated"] is True

    @pytest.mark.asyncio
    async def test_probe_without_key(self):
        """Debe reportar credenciales faltantes sin llamar al transportista."""
        session = FakeSession()
        client = build_client(session)

        probe = await client.probe()

        assert probe["reachable"] is False
        assert probe["error_kind"] == ErrorKind.MISSING_CREDENTIALS.value
        assert session.calls == []
