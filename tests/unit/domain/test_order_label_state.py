"""Tests unitarios para el estado de etiqueta del pedido y el resultado de operaciones."""

from datetime import UTC, datetime

import pytest

from app.domain.models import ErrorKind, LabelOperationResult, OrderDomain


class TestOrderLabelState:
    """Tests para la invariante fecha <-> impreso."""

    def test_printed_requires_date(self):
        """Debe rechazar un pedido impreso sin fecha."""
        with pytest.raises(ValueError):
            OrderDomain(id=1, is_label_printed=True)

    def test_date_requires_printed(self):
        """Debe rechazar una fecha en un pedido no impreso."""
        with pytest.raises(ValueError):
            OrderDomain(id=1, label_printed_date=datetime.now(UTC))

    def test_mark_printed_sets_date_once(self):
        """Debe fijar la fecha solo en la transición a impreso."""
        order = OrderDomain(id=1)
        first_print = datetime(2026, 1, 1, tzinfo=UTC)

        order.mark_label_printed("https://cdn/a.pdf", printed_at=first_print)
        order.mark_label_printed("https://cdn/b.pdf", printed_at=datetime(2026, 2, 1, tzinfo=UTC))

        assert order.label_printed_date == first_print
        assert order.label_url == "https://cdn/b.pdf"

    def test_mark_printed_requires_url(self):
        """Debe rechazar marcar impreso sin URL de etiqueta."""
        with pytest.raises(ValueError):
            OrderDomain(id=1).mark_label_printed("")

    def test_from_dict_accepts_api_names(self):
        """Debe leer nombres camelCase y fechas ISO con Z."""
        order = OrderDomain.from_dict(
            {"id": "9", "isLabelPrinted": True, "labelPrintedDate": "2026-10-17T09:12:44Z", "labelUrl": "u"}
        )

        assert order.id == 9
        assert order.label_printed_date.tzinfo is not None
        assert order.label_state()["label_printed_date"] == "2026-10-17T09:12:44+00:00"


class TestLabelOperationResult:
    """Tests para el resultado normalizado."""

    def test_shipment_id_always_string(self):
        """Debe convertir ids numéricos a string."""
        assert LabelOperationResult(label_url="u", shipment_id=1001).shipment_id == "1001"

    def test_ok_requires_label_and_no_error(self):
        """Debe considerar fallido cualquier resultado con error_kind o sin URL."""
        assert LabelOperationResult.success("u", "1").ok
        assert not LabelOperationResult.failure(ErrorKind.UPSTREAM_ERROR).ok
        assert not LabelOperationResult(shipment_id="1").ok

    def test_dict_round_trip_keeps_error_kind(self):
        """Debe reconstruir el error_kind desde su forma serializada."""
        original = LabelOperationResult.failure(ErrorKind.CONNECTIVITY_ERROR, "body", 404, "1001")

        rebuilt = LabelOperationResult.from_dict(original.to_dict())

        assert rebuilt == original
