"""Tests unitarios para OrderLock (lock por pedido)."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.utils.order_lock import LocalLockRegistry, LockAcquisitionError, OrderLock


class TestLocalOrderLock:
    """Tests para el backend en memoria."""

    @pytest.mark.asyncio
    async def test_second_holder_rejected_immediately(self):
        """Debe rechazar un segundo lock del mismo pedido sin esperar."""
        registry = LocalLockRegistry()

        async with OrderLock(1001, registry=registry):
            with pytest.raises(LockAcquisitionError):
                async with OrderLock(1001, registry=registry):
                    pass

    @pytest.mark.asyncio
    async def test_different_orders_do_not_block(self):
        """Debe permitir locks simultáneos para pedidos distintos."""
        registry = LocalLockRegistry()

        async with OrderLock(1001, registry=registry), OrderLock(1002, registry=registry):
            assert len(registry) == 2

    @pytest.mark.asyncio
    async def test_registry_cleaned_after_release(self):
        """Debe eliminar la entrada del registro al liberar el lock."""
        registry = LocalLockRegistry()

        async with OrderLock(1001, registry=registry):
            pass

        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_waiter_acquires_after_release(self):
        """Debe permitir esperar un lock ocupado si wait_seconds > 0."""
        registry = LocalLockRegistry()
        holder = OrderLock(1001, registry=registry)
        await holder.acquire()

        waiter = OrderLock(1001, wait_seconds=1.0, registry=registry)
        task = asyncio.create_task(waiter.acquire())
        await asyncio.sleep(0)
        await holder.release()
        await task

        assert waiter.acquired
        await waiter.release()
        assert len(registry) == 0


class TestRedisOrderLock:
    """Tests para el backend Redis (cliente simulado)."""

    @pytest.mark.asyncio
    async def test_acquire_uses_set_nx_px(self):
        """Debe usar SET NX PX con la clave del pedido y liberar con token."""
        redis_client = AsyncMock()
        redis_client.set.return_value = True

        async with OrderLock(1001, timeout_seconds=30, redis_client=redis_client) as lock:
            assert lock.acquired

        args, kwargs = redis_client.set.await_args
        assert args[0] == "lock:label:order:1001"
        assert kwargs == {"nx": True, "px": 30000}
        eval_args = redis_client.eval.await_args.args
        assert eval_args[1:] == (1, "lock:label:order:1001", args[1])

    @pytest.mark.asyncio
    async def test_busy_key_rejected(self):
        """Debe rechazar si la clave ya existe."""
        redis_client = AsyncMock()
        redis_client.set.return_value = None

        with pytest.raises(LockAcquisitionError):
            await OrderLock(1001, redis_client=redis_client).acquire()

        redis_client.eval.assert_not_called()
