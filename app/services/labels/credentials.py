"""
Carrier credential resolution.

Picks the API key and endpoint for a carrier request. A caller-supplied value
(e.g. an x-api-key header) wins over the server-held secret, which lets an
operator override credentials transiently without code changes.
"""

import logging
from dataclasses import dataclass
from urllib.parse import quote

from app.core.config import DEFAULT_SENDIFY_BASE_URL, Settings
from app.utils.error_handler import MissingCredentialsException, ValidationException

logger = logging.getLogger(__name__)

SOURCE_REQUEST = "request"
SOURCE_SERVER = "server"


@dataclass(frozen=True)
class CarrierCredentials:
    """
    Resolved API key and endpoint for one carrier request.

    Attributes:
        api_key: Carrier API key
        base_url: Carrier API base URL (no trailing slash)
        key_source: Where the key came from ("request" or "server")
    """

    api_key: str
    base_url: str
    key_source: str = SOURCE_SERVER

    def __repr__(self) -> str:
        # Never leak the key into logs or tracebacks
        return f"CarrierCredentials(base_url={self.base_url!r}, key_source={self.key_source!r})"

    @property
    def print_url(self) -> str:
        """Endpoint that retrieves/prints documents for existing shipments."""
        return f"{self.base_url}/shipments/print"

    @property
    def book_url(self) -> str:
        """Endpoint that creates (books) a new shipment."""
        return f"{self.base_url}/shipments"

    @property
    def probe_url(self) -> str:
        """Lightweight authenticated endpoint used as connectivity probe."""
        return f"{self.base_url}/products"

    def label_document_url(self, shipment_id: str) -> str:
        """Label-retrieval URL for a booked shipment."""
        return f"{self.base_url}/shipments/{quote(str(shipment_id), safe='')}/label"

    @property
    def headers(self) -> dict[str, str]:
        """Authentication headers for the carrier."""
        return {"x-api-key": self.api_key, "Content-Type": "application/json"}


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class CarrierCredentialResolver:
    """
    Resolves CarrierCredentials from per-request overrides and server settings.

    Settings are passed in at construction time; nothing is read from ambient
    global state when resolving.
    """

    def __init__(self, settings: Settings):
        self._server_api_key = _clean(settings.SENDIFY_API_KEY)
        self._server_base_url = _clean(settings.SENDIFY_BASE_URL)

    @property
    def has_server_key(self) -> bool:
        """Check if the server holds its own API key."""
        return self._server_api_key is not None

    def resolve_endpoint(self, endpoint_override: str | None = None) -> str:
        """
        Resolve the carrier base URL.

        Order: explicit override, server configuration, production default.

        Raises:
            ValidationException: If the override is not an http(s) URL
        """
        override = _clean(endpoint_override)
        if override:
            if not override.startswith(("http://", "https://")):
                raise ValidationException(
                    message="Carrier endpoint override must be an http(s) URL",
                    field="x-carrier-base-url",
                    invalid_value=override,
                    expected_format="https://host/path",
                )
            return override.rstrip("/")
        return self._server_base_url or DEFAULT_SENDIFY_BASE_URL

    def resolve(self, api_key_override: str | None = None, endpoint_override: str | None = None) -> CarrierCredentials:
        """
        Resolve credentials for a carrier request.

        Args:
            api_key_override: Key supplied with the request (header)
            endpoint_override: Base URL supplied with the request

        Returns:
            CarrierCredentials: Key and endpoint to use

        Raises:
            MissingCredentialsException: If no key resolves
        """
        request_key = _clean(api_key_override)
        if request_key:
            api_key, source = request_key, SOURCE_REQUEST
        elif self._server_api_key:
            api_key, source = self._server_api_key, SOURCE_SERVER
        else:
            raise MissingCredentialsException()

        credentials = CarrierCredentials(
            api_key=api_key,
            base_url=self.resolve_endpoint(endpoint_override),
            key_source=source,
        )
        logger.debug(f"Resolved carrier credentials: {credentials!r}")
        return credentials
