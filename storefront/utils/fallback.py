from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Strategy = Tuple[str, Callable[[], Awaitable[Any]]]


@dataclass
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[str] = None
    label: Optional[str] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, *, label: Optional[str] = None, errors: Optional[list[str]] = None) -> "Result[T]":
        return cls(value=value, label=label, errors=list(errors or []))

    @classmethod
    def failure(cls, error: str, *, errors: Optional[list[str]] = None) -> "Result[T]":
        return cls(error=error, errors=list(errors or []))


async def first_success(
    strategies: Iterable[Strategy],
    *,
    accept: Optional[Callable[[Any], bool]] = None,
    on_attempt: Optional[Callable[[str, Any, Optional[BaseException]], None]] = None,
) -> Result[Any]:
    """
    Evaluate fallible async strategies in order and return the first success.

    Args:
        strategies: (label, zero-arg coroutine factory) pairs, tried in order
        accept: Predicate a returned value must satisfy to count as success
        on_attempt: Called after every attempt with (label, value, exception)
    """
    errors: list[str] = []

    for label, func in strategies:
        try:
            value = await func()
        except Exception as exc:
            logger.warning("Strategy %s failed: %s", label, exc)
            errors.append(f"{label}: {exc}")
            if on_attempt is not None:
                on_attempt(label, None, exc)
            continue
        if on_attempt is not None:
            on_attempt(label, value, None)
        if accept is not None and not accept(value):
            logger.info("Strategy %s returned an unusable result", label)
            errors.append(f"{label}: rejected result")
            continue
        return Result.success(value, label=label, errors=errors)

    return Result.failure("; ".join(errors) or "No strategies to evaluate", errors=errors)


__all__ = ["Result", "Strategy", "first_success"]
