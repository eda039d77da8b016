import asyncio

import pytest

from locallibrary.errors import NotFoundError, StorageError
from locallibrary.services.aggregation import parallel


async def _value(value, delay=0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(exc, delay=0.0):
    await asyncio.sleep(delay)
    raise exc


def test_parallel_returns_results_by_name():
    results = asyncio.run(parallel({
        "slow": _value(1, delay=0.02),
        "fast": _value(2),
        "none": _value(None),
    }))
    assert results == {"slow": 1, "fast": 2, "none": None}
    assert list(results) == ["slow", "fast", "none"]


def test_parallel_empty_mapping():
    assert asyncio.run(parallel({})) == {}


def test_parallel_raises_first_failure():
    with pytest.raises(NotFoundError):
        asyncio.run(parallel({
            "ok": _value(1),
            "missing": _fail(NotFoundError("gone")),
            "late": _fail(StorageError("db down"), delay=0.05),
        }))


def test_parallel_cancels_remaining_operations():
    cancelled = []

    async def long_running():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    async def scenario():
        await parallel({
            "slow": long_running(),
            "broken": _fail(StorageError("db down"), delay=0.01),
        })

    with pytest.raises(StorageError, match="db down"):
        asyncio.run(scenario())
    assert cancelled == [True]


def test_parallel_same_round_failure_uses_insertion_order():
    async def scenario():
        return await parallel({
            "first": _fail(ValueError("first")),
            "second": _fail(KeyError("second")),
        })

    with pytest.raises(ValueError, match="first"):
        asyncio.run(scenario())
