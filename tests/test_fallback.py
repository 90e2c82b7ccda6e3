import asyncio

from storefront.utils.fallback import first_success


def test_first_success_returns_first_accepted_value():
    calls = []

    async def failing():
        calls.append("failing")
        raise RuntimeError("nope")

    async def empty():
        calls.append("empty")
        return []

    async def good():
        calls.append("good")
        return [1, 2]

    async def never():
        calls.append("never")
        return [3]

    result = asyncio.run(
        first_success(
            [("failing", failing), ("empty", empty), ("good", good), ("never", never)],
            accept=bool,
        )
    )

    assert result.ok
    assert result.value == [1, 2]
    assert result.label == "good"
    assert calls == ["failing", "empty", "good"]
    assert len(result.errors) == 2


def test_first_success_reports_failure_when_all_fail():
    async def failing():
        raise ValueError("bad")

    result = asyncio.run(first_success([("a", failing), ("b", failing)]))
    assert not result.ok
    assert result.value is None
    assert "a: bad" in result.error
    assert "b: bad" in result.error


def test_first_success_reports_attempts():
    seen = []

    async def failing():
        raise ValueError("bad")

    async def good():
        return "ok"

    asyncio.run(
        first_success(
            [("a", failing), ("b", good)],
            on_attempt=lambda label, value, exc: seen.append((label, value, type(exc).__name__ if exc else None)),
        )
    )
    assert seen == [("a", None, "ValueError"), ("b", "ok", None)]


def test_first_success_with_no_strategies():
    result = asyncio.run(first_success([]))
    assert not result.ok
