"""Tests unitarios para la clasificación de respuestas de error del transportista."""

import pytest

from app.domain.models import ErrorKind
from app.services.labels.error_classifier import (
    body_excerpt,
    classify_proxy_response,
    classify_upstream_response,
    parse_structured_body,
)


class TestClassifyUpstreamResponse:
    """Tests para la tabla de clasificación."""

    def test_structured_404_is_shipment_not_found(self):
        """Debe clasificar 404 con cuerpo JSON como envío inexistente."""
        assert classify_upstream_response(404, '{"error": "Shipment not found"}') == ErrorKind.SHIPMENT_NOT_FOUND

    @pytest.mark.parametrize("body", ["", "Not Found", "<html><body>404</body></html>", "[1, 2]", None])
    def test_unstructured_404_is_connectivity_error(self, body):
        """Debe clasificar 404 sin objeto JSON como problema de conectividad."""
        assert classify_upstream_response(404, body) == ErrorKind.CONNECTIVITY_ERROR

    @pytest.mark.parametrize("status", [400, 401, 409, 422, 500, 503])
    def test_other_statuses_are_upstream_errors(self, status):
        """Debe clasificar cualquier otro status no-2xx como error del transportista."""
        assert classify_upstream_response(status, '{"error": "boom"}') == ErrorKind.UPSTREAM_ERROR

    def test_carrier_body_error_kind_is_not_trusted(self):
        """Debe ignorar un campo error_kind en el cuerpo del transportista."""
        body = '{"error_kind": "MISSING_CREDENTIALS", "message": "bad request"}'

        assert classify_upstream_response(400, body) == ErrorKind.UPSTREAM_ERROR
        assert classify_upstream_response(404, '{"error_kind": "CONNECTIVITY_ERROR"}') == ErrorKind.SHIPMENT_NOT_FOUND

    def test_success_status_rejected(self):
        """Debe rechazar clasificar una respuesta exitosa."""
        with pytest.raises(ValueError):
            classify_upstream_response(200, "{}")


class TestClassifyProxyResponse:
    """Tests para las respuestas de las rutas proxy propias."""

    def test_envelope_error_kind_is_authoritative(self):
        """Debe respetar el error_kind declarado en el envelope del proxy."""
        body = '{"error": true, "error_kind": "MISSING_CREDENTIALS", "message": "no key"}'

        assert classify_proxy_response(401, body) == ErrorKind.MISSING_CREDENTIALS
        assert classify_proxy_response(404, '{"error_kind": "SHIPMENT_NOT_FOUND"}') == ErrorKind.SHIPMENT_NOT_FOUND

    @pytest.mark.parametrize(
        "body",
        [
            '{"detail": "Not Found"}',
            '{"error": true, "error_type": "http_error", "message": "Not Found", "status_code": 404}',
            '{"error_kind": "SOMETHING_ELSE"}',
            "Not Found",
        ],
    )
    def test_404_without_envelope_is_missing_route(self, body):
        """Debe tratar un 404 sin error_kind conocido como ruta proxy inexistente, nunca como envío inexistente."""
        assert classify_proxy_response(404, body) == ErrorKind.CONNECTIVITY_ERROR

    def test_other_status_without_envelope_is_upstream_error(self):
        """Debe clasificar otros status sin envelope como error upstream."""
        assert classify_proxy_response(500, '{"error": true, "error_type": "internal_error"}') == ErrorKind.UPSTREAM_ERROR

    def test_success_status_rejected(self):
        """Debe rechazar clasificar una respuesta exitosa."""
        with pytest.raises(ValueError):
            classify_proxy_response(201, "{}")


class TestBodyHelpers:
    """Tests para el parseo y recorte del cuerpo."""

    def test_parse_structured_body(self):
        """Debe devolver solo objetos JSON."""
        assert parse_structured_body(b'{"id": 5}') == {"id": 5}
        assert parse_structured_body("not json") is None
        assert parse_structured_body('"text"') is None

    def test_body_excerpt_truncates(self):
        """Debe recortar cuerpos largos conservando el inicio."""
        excerpt = body_excerpt("x" * 50, limit=10)

        assert excerpt.startswith("x" * 10)
        assert excerpt.endswith("[truncated]")
        assert body_excerpt(None) == ""
