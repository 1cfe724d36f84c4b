import asyncio

import pytest

from app.core.enums import QueryKey
from app.services.query_cache import QueryCache


def test_get_fetches_once_and_reuses():
    calls = []

    async def fetch():
        calls.append(1)
        return ["a"]

    async def scenario():
        cache = QueryCache()
        first = await cache.get(QueryKey.CABALLOS, fetch)
        second = await cache.get(QueryKey.CABALLOS, fetch)
        return cache, first, second

    cache, first, second = asyncio.run(scenario())
    assert first == second == ["a"]
    assert len(calls) == 1
    assert cache.is_loaded(QueryKey.CABALLOS)
    assert not cache.is_loaded(QueryKey.ALUMNOS)


def test_concurrent_readers_share_one_fetch():
    calls = []

    async def fetch():
        calls.append(1)
        await asyncio.sleep(0)
        return [1, 2]

    async def scenario():
        cache = QueryCache()
        return await asyncio.gather(*(cache.get(QueryKey.CLASES, fetch) for _ in range(5)))

    results = asyncio.run(scenario())
    assert all(r == [1, 2] for r in results)
    assert len(calls) == 1


def test_invalidate_forces_refetch_and_notifies():
    values = iter([["v1"], ["v2"]])
    seen = []

    async def fetch():
        return next(values)

    async def scenario():
        cache = QueryCache()
        cache.subscribe(QueryKey.CLASES, seen.append)
        await cache.get(QueryKey.CLASES, fetch)
        cache.invalidate(QueryKey.CLASES)
        assert not cache.is_loaded(QueryKey.CLASES)
        return await cache.get(QueryKey.CLASES, fetch)

    assert asyncio.run(scenario()) == ["v2"]
    assert seen == [QueryKey.CLASES]


def test_unsubscribe_stops_notifications():
    seen = []
    cache = QueryCache()
    unsubscribe = cache.subscribe(QueryKey.ALUMNOS, seen.append)
    unsubscribe()
    cache.invalidate(QueryKey.ALUMNOS)
    assert seen == []


def test_fetch_invalidated_in_flight_is_not_cached():
    async def scenario():
        cache = QueryCache()
        release = asyncio.Event()

        async def slow_fetch():
            await release.wait()
            return ["stale"]

        task = asyncio.create_task(cache.get(QueryKey.CLASES, slow_fetch))
        await asyncio.sleep(0)
        cache.invalidate(QueryKey.CLASES)
        release.set()
        result = await task
        return result, cache.is_loaded(QueryKey.CLASES)

    result, loaded = asyncio.run(scenario())
    assert result == ["stale"]
    assert loaded is False


def test_fetch_error_leaves_key_unloaded():
    async def broken():
        raise RuntimeError("boom")

    async def scenario():
        cache = QueryCache()
        with pytest.raises(RuntimeError):
            await cache.get(QueryKey.INSTRUCTORES, broken)
        return cache.is_loaded(QueryKey.INSTRUCTORES)

    assert asyncio.run(scenario()) is False
