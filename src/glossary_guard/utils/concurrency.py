"""Async concurrency primitives shared by the runner and the file scheduler."""

from __future__ import annotations

import asyncio
import inspect
from contextlib import suppress
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")


class CancellationToken:
    """Cooperative cancellation token backed by ``asyncio.Event``."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


async def call_maybe_async(
    func: Callable[..., Any],
    *args: Any,
    timeout_seconds: float | None = None,
) -> Any:
    """Await ``func(*args)``.

    Coroutine functions are awaited on the loop; plain callables run on a worker
    thread so one slow check body does not stall sibling tasks. With a timeout the
    caller sees ``TimeoutError``; a worker thread that already started keeps
    running to completion in the background.
    """

    if timeout_seconds is None:
        return await _call(func, *args)
    return await run_with_timeout(_call(func, *args), timeout_seconds)


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    if inspect.iscoroutinefunction(func):
        return await func(*args)
    value = await asyncio.to_thread(func, *args)
    if inspect.isawaitable(value):
        return await value
    return value


async def run_with_timeout(coroutine: Awaitable[T], timeout_seconds: float) -> T:
    """Run ``coroutine`` and cancel it once ``timeout_seconds`` elapse."""
    if timeout_seconds <= 0:
        _close_unscheduled_coroutine(coroutine)
        raise ValueError("timeout_seconds must be > 0")

    task: asyncio.Task[T] = asyncio.create_task(_await_value(coroutine))
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_seconds)
        if task in done:
            return await task
    finally:
        if not task.done():
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
    raise TimeoutError(f"operation timed out after {timeout_seconds} seconds")


async def _await_value(awaitable: Awaitable[T]) -> T:
    return await awaitable


def _close_unscheduled_coroutine(awaitable: Awaitable[object]) -> None:
    # Raw coroutine objects that never got scheduled must be closed explicitly.
    if inspect.iscoroutine(awaitable):
        awaitable.close()


__all__ = [
    "CancellationToken",
    "call_maybe_async",
    "run_with_timeout",
]
