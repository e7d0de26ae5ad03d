"""Utilidades de test: sesión aiohttp falsa y settings aislados."""

import json
from typing import Any

from app.core.config import Settings


class FakeResponse:
    """Respuesta mínima compatible con `async with session.post(...) as response`."""

    def __init__(self, status: int = 200, body: Any = ""):
        self.status = status
        self._body = body if isinstance(body, str) else json.dumps(body)

    async def text(self) -> str:
        return self._body

    async def json(self, content_type=None) -> Any:
        return json.loads(self._body)


class _RequestContext:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Sesión aiohttp falsa.

    Cada llamada consume la siguiente respuesta (o excepción) de la cola y
    queda registrada en `calls` con método, URL y kwargs.
    """

    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        if not self._outcomes:
            raise AssertionError(f"Unexpected {method} {url}")
        return _RequestContext(self._outcomes.pop(0))

    def post(self, url: str, **kwargs):
        return self.request("POST", url, **kwargs)

    def get(self, url: str, **kwargs):
        return self.request("GET", url, **kwargs)

    async def close(self):
        self.closed = True


def make_settings(**overrides) -> Settings:
    """Settings sin .env ni servicios externos, con overrides opcionales."""
    values = {
        "SENDIFY_API_KEY": None,
        "SENDIFY_BASE_URL": None,
        "LABEL_PROXY_URL": None,
        "ORDER_SERVICE_URL": None,
        "REDIS_URL": None,
        "ENVIRONMENT": "testing",
        "LOG_FILE_PATH": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)
