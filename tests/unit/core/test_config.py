"""Tests unitarios para la configuración de la aplicación."""

import pytest
from pydantic import ValidationError

from app.core.config import get_settings, reload_settings
from tests.helpers import make_settings


class TestLockTimeout:
    """Tests para el TTL del lock por pedido."""

    def test_default_covers_worst_case_run(self):
        """Debe tener un TTL por defecto mayor que la peor ejecución."""
        settings = make_settings()

        assert settings.max_label_run_seconds == 2 * 20 + 3 * 10
        assert settings.LABEL_LOCK_TIMEOUT_SECONDS > settings.max_label_run_seconds

    @pytest.mark.parametrize("lock_timeout", [60, 70])
    def test_lock_shorter_than_run_rejected(self, lock_timeout):
        """Debe rechazar un TTL que puede expirar en mitad de una generación."""
        with pytest.raises(ValidationError):
            make_settings(LABEL_LOCK_TIMEOUT_SECONDS=lock_timeout)

    def test_longer_timeouts_require_longer_lock(self):
        """Debe recalcular la peor ejecución con los timeouts configurados."""
        with pytest.raises(ValidationError):
            make_settings(CARRIER_REQUEST_TIMEOUT_SECONDS=60)

        settings = make_settings(CARRIER_REQUEST_TIMEOUT_SECONDS=60, LABEL_LOCK_TIMEOUT_SECONDS=200)
        assert settings.max_label_run_seconds == 150


class TestReloadSettings:
    """Tests para la recarga de configuración cacheada."""

    def test_reload_picks_up_environment_changes(self, monkeypatch):
        """Debe descartar la instancia cacheada y leer de nuevo el entorno."""
        monkeypatch.setenv("LABEL_LOCK_TIMEOUT_SECONDS", "150")
        first = reload_settings()

        monkeypatch.setenv("LABEL_LOCK_TIMEOUT_SECONDS", "180")
        assert get_settings() is first

        reloaded = reload_settings()
        assert reloaded is not first
        assert reloaded.LABEL_LOCK_TIMEOUT_SECONDS == 180

        monkeypatch.delenv("LABEL_LOCK_TIMEOUT_SECONDS")
        reload_settings()

    def test_invalid_environment_rejected_on_reload(self, monkeypatch):
        """Debe fallar al recargar si el entorno define un TTL insuficiente."""
        monkeypatch.setenv("LABEL_LOCK_TIMEOUT_SECONDS", "30")

        with pytest.raises(ValidationError):
            reload_settings()

        monkeypatch.delenv("LABEL_LOCK_TIMEOUT_SECONDS")
        reload_settings()
