"""Fixtures compartidos: settings aislados y pedidos de ejemplo."""

from datetime import UTC, datetime

import pytest

from app.core.config import Settings
from app.domain.models import CustomerDomain, OrderDomain
from tests.helpers import make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings(SENDIFY_API_KEY="server-key")


@pytest.fixture
def settings_without_key() -> Settings:
    return make_settings()


@pytest.fixture
def customer() -> CustomerDomain:
    return CustomerDomain(
        id=7,
        email="anna@example.se",
        first_name="Anna",
        last_name="Svensson",
        address="Profilgatan 3",
        city="Uppsala",
        country="SE",
        postal_code="75320",
    )


@pytest.fixture
def unlabelled_order(customer) -> OrderDomain:
    return OrderDomain(
        id=1001,
        order_number="ORD-1001",
        shipping_address_snapshot="Drottninggatan 12",
        shipping_city_snapshot="Stockholm",
        shipping_country_snapshot="SE",
        shipping_postal_code_snapshot="11151",
        customer=customer,
    )


@pytest.fixture
def labelled_order(customer) -> OrderDomain:
    return OrderDomain(
        id=1002,
        order_number="ORD-1002",
        is_label_printed=True,
        label_printed_date=datetime(2026, 3, 2, 10, 30, tzinfo=UTC),
        label_url="https://labels.example/1002.pdf",
        customer=customer,
    )
