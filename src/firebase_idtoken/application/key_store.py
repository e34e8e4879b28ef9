from __future__ import annotations

import asyncio
import time
from typing import Optional

import structlog

from ..domain.entities import KeySet
from ..domain.exceptions import KeyFetchError, UnknownKeyIdError
from ..domain.ports import Clock, KeyFetcher
from ..domain.value_objects import SigningKey

logger = structlog.get_logger(__name__)


class KeyStore:
    """
    Owns the cached KeySet and refreshes it through a KeyFetcher.

    - lookups read the current (immutable) KeySet without locking
    - concurrent misses share a single in-flight refresh task
    - a failed refresh never replaces the current KeySet
    """

    def __init__(
        self,
        fetcher: KeyFetcher,
        *,
        fetch_timeout: float = 10.0,
        clock: Clock = time.time,
    ) -> None:
        self._fetcher = fetcher
        self._fetch_timeout = fetch_timeout
        self._clock = clock

        self._key_set: KeySet = KeySet.empty()
        self._refresh_task: Optional[asyncio.Task[KeySet]] = None

    @property
    def current(self) -> KeySet:
        return self._key_set

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    async def get(self, kid: str) -> SigningKey:
        """
        Return the signing key for `kid`, refreshing the key set at most once.

        Raises:
            UnknownKeyIdError
            KeyFetchError
        """
        key = self._lookup(kid)
        if key is not None:
            return key

        try:
            key_set = await self.refresh()
        except KeyFetchError:
            # Keys fetched earlier stay usable until their own expiry.
            key = self._lookup(kid)
            if key is not None:
                logger.warning("keys.refresh_failed_using_cached", kid=kid)
                return key
            raise

        key = key_set.get(kid)
        if key is None:
            raise UnknownKeyIdError(kid)
        return key

    def _lookup(self, kid: str) -> Optional[SigningKey]:
        key_set = self._key_set
        if key_set.is_expired(self._clock()):
            return None
        return key_set.get(kid)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    async def refresh(self) -> KeySet:
        """
        Fetch a new KeySet, joining a refresh already in flight if any.

        Raises:
            KeyFetchError
        """
        task = self._refresh_task
        if task is None:
            task = asyncio.ensure_future(self._fetch_key_set())
            task.add_done_callback(self._refresh_done)
            self._refresh_task = task
        # shield: a cancelled waiter must not cancel the shared fetch
        return await asyncio.shield(task)

    async def warm_up(self) -> KeySet:
        """Fetch keys eagerly, e.g. from an application startup hook."""
        return await self.refresh()

    async def run_periodic_refresh(self, retry_delay: float = 60.0) -> None:
        """
        Keep the KeySet fresh in the background until cancelled.

        Sleeps while the current KeySet is valid, refreshes once it expires,
        and waits `retry_delay` seconds after a failed refresh.
        """
        while True:
            remaining = self._key_set.expires_at - self._clock()
            if remaining > 0:
                logger.debug("keys.next_refresh_scheduled", delay_seconds=remaining)
                await asyncio.sleep(remaining)
                continue
            try:
                await self.refresh()
            except KeyFetchError:
                await asyncio.sleep(retry_delay)

    async def _fetch_key_set(self) -> KeySet:
        try:
            keys, ttl = await asyncio.wait_for(
                self._fetcher.fetch(), timeout=self._fetch_timeout
            )
        except asyncio.TimeoutError as exc:
            logger.error("keys.refresh_timeout", timeout_seconds=self._fetch_timeout)
            raise KeyFetchError(
                f"Key fetch timed out after {self._fetch_timeout}s"
            ) from exc
        except KeyFetchError as exc:
            logger.error("keys.refresh_failed", error=str(exc))
            raise
        except Exception as exc:
            logger.error("keys.refresh_failed", error=repr(exc))
            raise KeyFetchError(f"Key fetch failed: {exc!r}") from exc

        if not keys:
            logger.error("keys.refresh_failed", error="empty key set")
            raise KeyFetchError("Key fetch returned no keys")

        key_set = KeySet.build(keys, fetched_at=self._clock(), ttl=ttl)
        self._key_set = key_set
        logger.info("keys.refreshed", keys_count=len(key_set), ttl_seconds=ttl)
        return key_set

    def _refresh_done(self, task: "asyncio.Task[KeySet]") -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        if not task.cancelled():
            # mark the exception as retrieved; waiters get it via shield
            task.exception()
