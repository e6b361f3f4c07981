import asyncio
from collections.abc import Awaitable, Iterable
from typing import TypeVar

T = TypeVar("T")


async def gather_or_fail(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """gather() that cancels the still-running awaitables once one of them fails."""
    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        return list(await asyncio.gather(*tasks))
    finally:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            # let cancelled tasks run their cleanup before the caller moves on
            await asyncio.gather(*pending, return_exceptions=True)
