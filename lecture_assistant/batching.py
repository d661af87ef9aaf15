"""
Bounded fan-out for calls to remote services.

Items are processed in fixed-size batches: every member of a batch runs
concurrently on a thread pool, the batch is awaited in full, then a fixed
delay is slept before the next batch starts. The delay is a crude rate
limiter, not a token bucket.
"""
import time
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from .logger import setup_logger

logger = setup_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchResult(Generic[R]):
    index: int
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_in_batches(
    items: Sequence[T],
    worker: Callable[[T], R],
    batch_size: int = 5,
    delay_seconds: float = 0.0,
    timeout_seconds: Optional[float] = None,
    label: str = "item",
    sleep: Optional[Callable[[float], Any]] = None,
) -> List[BatchResult]:
    """
    Apply ``worker`` to every item, ``batch_size`` at a time.

    Args:
        items: Inputs, in ordinal order
        worker: Callable run once per item
        batch_size: Number of concurrent calls per batch
        delay_seconds: Pause between consecutive batches
        timeout_seconds: How long to wait for a whole batch; members still
            running afterwards are reported as ``TimeoutError`` failures
        label: Noun used in log messages
        sleep: Sleep function, time.sleep when omitted

    Returns:
        list: One BatchResult per item, ordered by the item's index
    """
    if batch_size < 1:
        raise ValueError("batch_size must be positive")

    sleep = sleep or time.sleep
    results: List[BatchResult] = []
    total = len(items)

    for start in range(0, total, batch_size):
        batch = list(enumerate(items[start:start + batch_size], start=start))
        logger.info(f"Processing {label}s {start + 1}-{start + len(batch)} of {total}")

        executor = ThreadPoolExecutor(max_workers=len(batch))
        try:
            future_map = {executor.submit(worker, item): index for index, item in batch}
            done, not_done = wait(future_map, timeout=timeout_seconds)

            for future in done:
                index = future_map[future]
                try:
                    results.append(BatchResult(index=index, value=future.result()))
                except Exception as e:
                    logger.warning(f"{label.capitalize()} {index} failed: {str(e)}")
                    results.append(BatchResult(index=index, error=e))

            for future in not_done:
                index = future_map[future]
                future.cancel()
                logger.warning(f"{label.capitalize()} {index} timed out after {timeout_seconds}s")
                results.append(BatchResult(
                    index=index,
                    error=TimeoutError(f"{label} {index} timed out")
                ))
        finally:
            # Do not block on stragglers that already timed out
            executor.shutdown(wait=False)

        if start + batch_size < total and delay_seconds > 0:
            sleep(delay_seconds)

    results.sort(key=lambda result: result.index)
    return results
