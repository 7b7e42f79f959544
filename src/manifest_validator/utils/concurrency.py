"""Async concurrency primitives used by the validation orchestrator."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterable

T = TypeVar("T")


class ConcurrencyGate:
    """``asyncio.Semaphore`` that remembers how many permits are held, and the peak."""

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        self.limit = limit
        self.in_use = 0
        self.peak = 0
        self._slots = asyncio.Semaphore(limit)

    @asynccontextmanager
    async def permit(self) -> AsyncIterator[None]:
        # A task cancelled while waiting never holds a slot.
        await self._slots.acquire()
        self.in_use += 1
        self.peak = max(self.peak, self.in_use)
        try:
            yield
        finally:
            self.in_use -= 1
            self._slots.release()


async def run_all(
    items: Iterable[T],
    max_concurrency: int,
    task: Callable[[T], Awaitable[object]],
    *,
    on_dispatched: Callable[[int], None] | None = None,
    gate: ConcurrencyGate | None = None,
) -> Exception | None:
    """Run ``task`` once per item with at most ``max_concurrency`` in flight.

    A failing task never cancels its siblings: every item is awaited, and the
    first exception raised (in completion order) is returned instead of raised.
    Returns ``None`` when every task succeeded. Cancelling the caller cancels
    all outstanding tasks. ``on_dispatched`` is called with the task count once
    every item has been scheduled. Pass ``gate`` to read its peak afterwards;
    its limit then replaces ``max_concurrency``.
    """

    if max_concurrency <= 0:
        raise ValueError("max_concurrency must be > 0")
    slots = gate if gate is not None else ConcurrencyGate(max_concurrency)
    errors: list[Exception] = []

    async def _run_one(item: T) -> None:
        async with slots.permit():
            try:
                await task(item)
            except Exception as exc:  # noqa: BLE001 - surfaced to the caller after draining.
                errors.append(exc)

    tasks = [asyncio.create_task(_run_one(item)) for item in items]
    if on_dispatched is not None:
        on_dispatched(len(tasks))
    try:
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        for pending in tasks:
            pending.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    return errors[0] if errors else None


__all__ = [
    "ConcurrencyGate",
    "run_all",
]
