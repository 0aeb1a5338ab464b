"""
Concurrent sub-fetches with sibling cancellation.

``asyncio.gather`` leaves the other awaitables running when one fails, so an
abandoned report would keep calling the provider. ``run_concurrently``
cancels and awaits the siblings before the first error propagates.
"""

import asyncio
from typing import Any, Awaitable


async def _cancel_pending(tasks: list[asyncio.Task]) -> None:
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
    if pending:
        await asyncio.gather(*pending, return_exceptions=True)


async def run_concurrently(*awaitables: Awaitable[Any]) -> list[Any]:
    """
    Run awaitables concurrently and return their results in order.

    On the first failure the remaining tasks are cancelled and joined, then
    the error is raised unchanged. Cancelling the caller (e.g. a timeout)
    cancels every task as well.
    """
    if not awaitables:
        return []

    tasks = [asyncio.ensure_future(aw) for aw in awaitables]
    try:
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        await _cancel_pending(tasks)

    errors = [
        task.exception() for task in tasks
        if task in done and not task.cancelled() and task.exception() is not None
    ]
    if errors:
        raise errors[0]
    return [task.result() for task in tasks]
