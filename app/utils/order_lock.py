"""
OrderLock - advisory lock for label generation per order.

Prevents two label runs for the same order from racing. A race could
double-book a real shipment, which carries a monetary cost.

Backends:
- In-memory (default): asyncio.Lock registry, enough for a single process.
- Redis (REDIS_URL set): SET NX PX with a token, for horizontally scaled
  deployments. Release only deletes the key if the token still matches.

Usage:
    from app.utils.order_lock import OrderLock, LockAcquisitionError

    async with OrderLock(1001) as lock:
        # Only one label run for order 1001 at a time
        await generate(order)
"""

import asyncio
import logging
import uuid
from typing import Dict, Optional

logger = logging.getLogger(__name__)

__all__ = ["OrderLock", "LockAcquisitionError", "LocalLockRegistry"]

# Lua script: delete the key only if it still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""


class LockAcquisitionError(Exception):
    """Raised when the lock is held by another run."""

    def __init__(self, lock_key: str):
        super().__init__(f"Lock '{lock_key}' is held by another operation")
        self.lock_key = lock_key


class LocalLockRegistry:
    """Per-key asyncio locks for single-process deployments."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def checkout(self, key: str) -> asyncio.Lock:
        """Get (or create) the lock for a key and register one user of it."""
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def checkin(self, key: str) -> None:
        """Unregister one user; the entry is dropped when nobody holds or waits on it."""
        remaining = self._users.get(key, 0) - 1
        if remaining > 0:
            self._users[key] = remaining
        else:
            self._users.pop(key, None)
            self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)


_default_registry = LocalLockRegistry()


class OrderLock:
    """
    Async context manager guarding one label run per order.

    Example:
        ```python
        try:
            async with OrderLock(order_id=1001, wait_seconds=0):
                await orchestrate(order)
        except LockAcquisitionError:
            # Another run for this order is in flight; reject this trigger
            ...
        ```

    Notes:
        - Lock key format: `lock:label:order:{order_id}`
        - wait_seconds=0 rejects immediately when the lock is busy
        - timeout_seconds only applies to Redis (TTL against crashed holders)
    """

    def __init__(
        self,
        order_id: int | str,
        timeout_seconds: int = 60,
        wait_seconds: float = 0.0,
        redis_client=None,
        registry: Optional[LocalLockRegistry] = None,
    ):
        """
        Initialize order lock.

        Args:
            order_id: Internal order id
            timeout_seconds: Redis key TTL in seconds
            wait_seconds: How long to wait for a busy lock before giving up
            redis_client: Optional redis.asyncio client; in-memory lock if None
            registry: Local lock registry (defaults to the process-wide one)
        """
        self.order_id = str(order_id)
        self.lock_key = f"lock:label:order:{self.order_id}"
        self.timeout_seconds = timeout_seconds
        self.wait_seconds = wait_seconds
        self.redis_client = redis_client
        self.registry = registry or _default_registry
        self._token = uuid.uuid4().hex
        self._local_lock: Optional[asyncio.Lock] = None
        self.acquired = False

    async def _acquire_local(self) -> bool:
        lock = self.registry.checkout(self.lock_key)
        if self.wait_seconds <= 0:
            if lock.locked():
                self.registry.checkin(self.lock_key)
                return False
            await lock.acquire()
        else:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.wait_seconds)
            except asyncio.TimeoutError:
                self.registry.checkin(self.lock_key)
                return False
        self._local_lock = lock
        return True

    async def _acquire_redis(self) -> bool:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.wait_seconds
        delay = 0.1
        while True:
            if await self.redis_client.set(self.lock_key, self._token, nx=True, px=self.timeout_seconds * 1000):
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(min(delay, max(deadline - loop.time(), 0)))
            delay = min(delay * 2, 1.0)

    async def acquire(self) -> None:
        """
        Acquire the lock.

        Raises:
            LockAcquisitionError: If another run holds it
        """
        if self.redis_client is not None:
            acquired = await self._acquire_redis()
        else:
            acquired = await self._acquire_local()

        if not acquired:
            logger.info(f"Label lock busy for order {self.order_id}")
            raise LockAcquisitionError(self.lock_key)

        self.acquired = True
        logger.debug(f"Label lock acquired for order {self.order_id}")

    async def release(self) -> None:
        """Release the lock if held."""
        if not self.acquired:
            return

        if self.redis_client is not None:
            try:
                await self.redis_client.eval(_RELEASE_SCRIPT, 1, self.lock_key, self._token)
            except Exception as e:
                # TTL expiry will release the key
                logger.warning(f"Failed to release Redis lock {self.lock_key}: {e}")
        elif self._local_lock is not None:
            self._local_lock.release()
            self.registry.checkin(self.lock_key)
            self._local_lock = None

        self.acquired = False
        logger.debug(f"Label lock released for order {self.order_id}")

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.release()
        return False
