"""Fixed-size batch runner used by the bulk sweeps."""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple


async def run_in_batches(
    items: Sequence[Any],
    worker: Callable[[Any], Awaitable[Any]],
    *,
    batch_size: int,
    delay_seconds: float,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    is_cancelled: Optional[Callable[[], bool]] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> List[Tuple[Any, Any]]:
    """Run ``worker`` over ``items`` batch by batch.

    Items inside a batch run concurrently; a fixed delay separates batches (none
    after the last one). An exception raised for one item is returned in that
    item's slot instead of aborting its siblings. ``is_cancelled`` is checked
    before each batch starts.

    Returns ``(item, result_or_exception)`` pairs in input order.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    results: List[Tuple[Any, Any]] = []
    total = len(items)
    for start in range(0, total, batch_size):
        if is_cancelled is not None and is_cancelled():
            break

        batch = items[start:start + batch_size]
        batch_results = await asyncio.gather(*(worker(item) for item in batch), return_exceptions=True)
        results.extend(zip(batch, batch_results))

        if on_progress is not None:
            on_progress(min(total, start + len(batch)), total)

        if start + batch_size < total:
            await sleep(delay_seconds)
    return results
