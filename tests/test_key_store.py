# tests/test_key_store.py
import asyncio

import pytest

from firebase_idtoken.application.key_store import KeyStore
from firebase_idtoken.domain.exceptions import KeyFetchError, UnknownKeyIdError

from conftest import KID, OTHER_KID, FakeFetcher, signing_key


async def _spin(times: int = 20) -> None:
    for _ in range(times):
        await asyncio.sleep(0)


# --- Lookup --------------------------------------------------------------


@pytest.mark.asyncio
async def test_first_lookup_fetches_then_caches(key_store, fetcher):
    key = await key_store.get(KID)
    assert key.kid == KID
    assert fetcher.calls == 1

    assert await key_store.get(KID) is key
    assert fetcher.calls == 1


@pytest.mark.asyncio
async def test_key_set_expiry_uses_fetch_ttl(key_store, fetcher, clock):
    await key_store.get(KID)
    assert key_store.current.fetched_at == clock.now
    assert key_store.current.expires_at == clock.now + fetcher.ttl


@pytest.mark.asyncio
async def test_expired_key_set_is_refetched(key_store, fetcher, clock):
    await key_store.get(KID)
    clock.advance(fetcher.ttl)

    await key_store.get(KID)
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_unknown_kid_refreshes_once_then_fails(key_store, fetcher):
    await key_store.get(KID)

    with pytest.raises(UnknownKeyIdError) as exc_info:
        await key_store.get("nope")
    assert exc_info.value.kid == "nope"
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_rotated_key_found_after_refresh(key_store, fetcher, other_private_key):
    await key_store.get(KID)
    fetcher.keys = {OTHER_KID: signing_key(other_private_key, OTHER_KID)}

    key = await key_store.get(OTHER_KID)
    assert key.kid == OTHER_KID
    # replaced wholesale: the old key is gone
    assert KID not in key_store.current


# --- Concurrency ---------------------------------------------------------


@pytest.mark.asyncio
async def test_concurrent_misses_share_one_fetch(key_store, fetcher):
    fetcher.gate = asyncio.Event()

    tasks = [asyncio.create_task(key_store.get(KID)) for _ in range(25)]
    await _spin()
    fetcher.gate.set()
    keys = await asyncio.gather(*tasks)

    assert fetcher.calls == 1
    assert all(k is keys[0] for k in keys)


@pytest.mark.asyncio
async def test_concurrent_unknown_kid_all_fail_with_one_fetch(key_store, fetcher):
    fetcher.gate = asyncio.Event()

    tasks = [asyncio.create_task(key_store.get("missing")) for _ in range(25)]
    await _spin()
    fetcher.gate.set()
    results = await asyncio.gather(*tasks, return_exceptions=True)

    assert fetcher.calls == 1
    assert all(isinstance(r, UnknownKeyIdError) for r in results)


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_refresh(key_store, fetcher):
    fetcher.gate = asyncio.Event()

    first = asyncio.create_task(key_store.get(KID))
    second = asyncio.create_task(key_store.get(KID))
    await _spin()
    first.cancel()
    fetcher.gate.set()

    key = await second
    assert key.kid == KID
    assert fetcher.calls == 1
    with pytest.raises(asyncio.CancelledError):
        await first


# --- Failures ------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_failure_without_cache(key_store, fetcher):
    fetcher.fail_with()
    with pytest.raises(KeyFetchError):
        await key_store.get(KID)


@pytest.mark.asyncio
async def test_fetch_failure_keeps_valid_cached_keys(key_store, fetcher):
    await key_store.get(KID)
    before = key_store.current
    fetcher.fail_with()

    # cached kid: served without touching the fetcher
    assert (await key_store.get(KID)).kid == KID
    assert fetcher.calls == 1

    # unknown kid: refresh attempted, fails, cache untouched
    with pytest.raises(KeyFetchError):
        await key_store.get(OTHER_KID)
    assert fetcher.calls == 2
    assert key_store.current is before


@pytest.mark.asyncio
async def test_expired_cache_is_not_used_after_failed_refresh(key_store, fetcher, clock):
    await key_store.get(KID)
    clock.advance(fetcher.ttl + 1)
    fetcher.fail_with()

    with pytest.raises(KeyFetchError):
        await key_store.get(KID)


@pytest.mark.asyncio
async def test_failure_is_not_sticky(key_store, fetcher):
    fetcher.fail_with()
    with pytest.raises(KeyFetchError):
        await key_store.get(KID)

    fetcher.error = None
    assert (await key_store.get(KID)).kid == KID
    assert fetcher.calls == 2


@pytest.mark.asyncio
async def test_fetch_timeout(fetcher, clock):
    fetcher.gate = asyncio.Event()  # never released
    store = KeyStore(fetcher, fetch_timeout=0.05, clock=clock)

    with pytest.raises(KeyFetchError):
        await store.get(KID)
    assert len(store.current) == 0


@pytest.mark.asyncio
async def test_unexpected_fetcher_error_is_wrapped(fetcher, clock):
    fetcher.error = RuntimeError("socket closed")
    store = KeyStore(fetcher, clock=clock)

    with pytest.raises(KeyFetchError) as exc_info:
        await store.get(KID)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_empty_fetch_result_is_a_failure(clock):
    store = KeyStore(FakeFetcher({}), clock=clock)
    with pytest.raises(KeyFetchError):
        await store.refresh()


# --- Lifecycle -----------------------------------------------------------


@pytest.mark.asyncio
async def test_warm_up(key_store, fetcher):
    key_set = await key_store.warm_up()
    assert KID in key_set
    assert key_store.current is key_set

    await key_store.get(KID)
    assert fetcher.calls == 1


@pytest.mark.asyncio
async def test_periodic_refresh_fetches_and_sleeps(key_store, fetcher):
    task = asyncio.create_task(key_store.run_periodic_refresh())
    await _spin()

    assert fetcher.calls == 1
    assert KID in key_store.current

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_periodic_refresh_retries_after_failure(key_store, fetcher):
    fetcher.fail_with()
    task = asyncio.create_task(key_store.run_periodic_refresh(retry_delay=0.01))
    await _spin()

    assert fetcher.calls == 1
    assert len(key_store.current) == 0

    fetcher.error = None
    await asyncio.sleep(0.1)

    assert fetcher.calls >= 2
    assert KID in key_store.current

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_periodic_refresh_refetches_after_expiry(private_key, clock):
    fetcher = FakeFetcher({KID: signing_key(private_key)}, ttl=0.05)
    store = KeyStore(fetcher, clock=clock)
    task = asyncio.create_task(store.run_periodic_refresh())
    await _spin()
    assert fetcher.calls == 1
    first = store.current

    clock.advance(fetcher.ttl)
    await asyncio.sleep(0.1)

    assert fetcher.calls == 2
    assert store.current is not first
    assert store.current.fetched_at == clock.now

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
