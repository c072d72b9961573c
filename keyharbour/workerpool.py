"""Run a function over items with bounded concurrency."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result:
    """Outcome of one task: the exception it raised, if any."""

    err: Exception | None = None


def run(items: Iterable[T], concurrency: int, fn: Callable[[T], object]) -> list[Result]:
    """Call fn on every item with at most `concurrency` workers; results keep item order."""

    def call(item: T) -> Result:
        try:
            fn(item)
        except Exception as exc:
            return Result(exc)
        return Result()

    with ThreadPoolExecutor(max_workers=max(concurrency, 1)) as pool:
        return list(pool.map(call, list(items)))