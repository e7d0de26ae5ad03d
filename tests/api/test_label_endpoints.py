"""Tests de los endpoints de etiquetas y del proxy del transportista."""

import pytest
from fastapi.testclient import TestClient

from app.core.config import DEFAULT_PLACEHOLDER_LABEL_URL
from app.main import create_application
from app.services.labels.carrier_client import SendifyCarrierClient
from app.services.labels.container import LabelServices
from app.services.labels.orchestrator import create_label_orchestrator
from app.services.labels.order_repository import InMemoryOrderRepository
from tests.helpers import FakeResponse, FakeSession, make_settings

BOOK_PAYLOAD = {
    "reference": "ORD-1001",
    "sender": {
        "name": "Main Warehouse",
        "address_line1": "Lagergatan 1",
        "city": "Stockholm",
        "country": "SE",
        "postal_code": "11122",
    },
    "receiver": {
        "name": "Anna Svensson",
        "address_line1": "Drottninggatan 12",
        "city": "Stockholm",
        "country": "SE",
        "postal_code": "11151",
    },
    "parcels": [{"weight": 1.0, "height": 10, "length": 30, "width": 20, "contents": "Fragrances"}],
    "carrier_product_id": "dhl_parcel",
}


def build_client(orders, *outcomes, api_key="server-key"):
    """Crea un TestClient con servicios de etiquetas cableados a mano (sin lifespan)."""
    settings = make_settings(SENDIFY_API_KEY=api_key)
    session = FakeSession(*outcomes)
    proxy = SendifyCarrierClient.from_settings(settings)
    proxy.session = session
    repository = InMemoryOrderRepository(orders)

    app = create_application()
    app.state.label_services = LabelServices(
        settings=settings,
        proxy=proxy,
        carrier=proxy,
        order_repository=repository,
        orchestrator=create_label_orchestrator(settings, proxy, repository),
    )
    return TestClient(app), session


class TestOrderLabelEndpoints:
    """Tests para /api/v1/orders/{order_id}/label."""

    def test_simulated_generation(self, unlabelled_order):
        """Debe generar una etiqueta simulada y persistirla en el pedido."""
        client, session = build_client([unlabelled_order])

        response = client.post("/api/v1/orders/1001/label", json={"simulate": True})

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "done"
        assert body["label_url"] == DEFAULT_PLACEHOLDER_LABEL_URL
        assert body["warning"]
        assert body["order"]["is_label_printed"] is True
        assert session.calls == []

    def test_printed_order_requires_confirmation(self, labelled_order):
        """Debe responder 409 con el estado actual si falta confirmar la reimpresión."""
        client, session = build_client([labelled_order])

        response = client.post("/api/v1/orders/1002/label")

        assert response.status_code == 409
        body = response.json()
        assert body["status"] == "pending_reprint_confirmation"
        assert body["label_url"] == "https://labels.example/1002.pdf"
        assert session.calls == []

    def test_failure_envelope_carries_error_kind(self, unlabelled_order):
        """Debe devolver el envelope de error con error_kind y el cuerpo crudo."""
        client, _ = build_client([unlabelled_order], FakeResponse(404, "<html>Not Found</html>"))

        response = client.post("/api/v1/orders/1001/label")

        assert response.status_code == 502
        body = response.json()
        assert body["error_kind"] == "CONNECTIVITY_ERROR"
        assert body["upstream_status"] == 404
        assert body["upstream_body"] == "<html>Not Found</html>"
        assert body["order_id"] == 1001

    def test_unknown_order(self):
        """Debe responder 404 si el pedido no existe."""
        client, _ = build_client([])

        assert client.post("/api/v1/orders/4040/label").status_code == 404
        assert client.get("/api/v1/orders/4040/label").status_code == 404

    def test_get_label_state(self, labelled_order):
        """Debe devolver solo los campos de estado de etiqueta."""
        client, _ = build_client([labelled_order])

        response = client.get("/api/v1/orders/1002/label")

        assert response.status_code == 200
        assert response.json() == {
            "order_id": 1002,
            "is_label_printed": True,
            "label_printed_date": labelled_order.label_printed_date.isoformat(),
            "label_url": "https://labels.example/1002.pdf",
        }

    def test_services_not_initialized(self):
        """Debe responder 503 si el lifespan no creó los servicios."""
        client = TestClient(create_application())

        assert client.get("/api/v1/orders/1001/label").status_code == 503


class TestShippingEndpoints:
    """Tests para /api/v1/shipping."""

    def test_print_without_key_is_401(self):
        """Debe fallar cerrado sin API key y sin llamar al transportista."""
        client, session = build_client([], api_key=None)

        response = client.post("/api/v1/shipping/print", json={"shipment_id": 1001})

        assert response.status_code == 401
        assert response.json()["error_kind"] == "MISSING_CREDENTIALS"
        assert session.calls == []

    def test_print_with_header_key(self):
        """Debe usar la API key de la cabecera y enviar el id como string."""
        client, session = build_client([], FakeResponse(200, {"label_url": "https://cdn/SH-5.pdf"}), api_key=None)

        response = client.post(
            "/api/v1/shipping/print", json={"shipment_id": "SH-5"}, headers={"x-api-key": "browser-key"}
        )

        assert response.status_code == 200
        assert response.json()["label_url"] == "https://cdn/SH-5.pdf"
        assert '"SH-5"' in session.calls[0]["data"]

    def test_book_fails_open(self):
        """Debe devolver la etiqueta de ejemplo con aviso si el transportista rechaza la reserva."""
        client, _ = build_client([], FakeResponse(400, {"error": "invalid postal code"}))

        response = client.post("/api/v1/shipping/book", json=BOOK_PAYLOAD)

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["label_url"] == DEFAULT_PLACEHOLDER_LABEL_URL
        assert "invalid postal code" in body["warning"]

    @pytest.mark.parametrize("field", ["parcels", "receiver"])
    def test_book_validation(self, field):
        """Debe rechazar con 422 reservas sin destinatario o sin paquetes."""
        client, session = build_client([])
        payload = {**BOOK_PAYLOAD, field: [] if field == "parcels" else None}

        response = client.post("/api/v1/shipping/book", json=payload)

        assert response.status_code == 422
        assert session.calls == []


class TestRootEndpoints:
    """Tests para los endpoints raíz."""

    def test_ping(self):
        """Debe responder pong."""
        client = TestClient(create_application())

        assert client.get("/ping").json()["message"] == "pong"
