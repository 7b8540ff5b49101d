"""Bounded-concurrency runner for async tasks over a shared cursor."""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from bulk_upload.common.exceptions import SchedulerTaskError
from bulk_upload.common.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TaskResult:
    success: bool
    payload: Any = None
    error: Optional[str] = None
    code: Union[str, int, None] = None
    exception: Optional[SchedulerTaskError] = field(default=None, compare=False)


Task = Callable[[], Awaitable[Any]]
ProgressCallback = Callable[[int, int, TaskResult], None]


async def limit_concurrency(
    tasks: Sequence[Task],
    concurrency: int,
    on_progress: Optional[ProgressCallback] = None,
) -> List[TaskResult]:
    """Run ``tasks`` with at most ``concurrency`` in flight.

    Returns one TaskResult per task at the task's own index. A task that
    raises becomes a failed result; it never stops its worker or the batch.
    ``on_progress(completed, total, result)`` fires after every completion in
    completion order.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    total = len(tasks)
    results: List[Optional[TaskResult]] = [None] * total
    # Claiming from a shared iterator has no await point, so it is exclusive.
    cursor = iter(range(total))
    completed = 0

    async def worker(worker_id: int) -> None:
        nonlocal completed
        for index in cursor:
            try:
                outcome = await tasks[index]()
                result = (
                    outcome
                    if isinstance(outcome, TaskResult)
                    else TaskResult(success=True, payload=outcome)
                )
            except Exception as e:
                err = SchedulerTaskError(
                    f"Task {index} raised {type(e).__name__}: {e}", index=index
                )
                err.__cause__ = e
                logger.error("%s (worker %d)", err, worker_id, exc_info=True)
                result = TaskResult(
                    success=False,
                    error=str(e),
                    code=getattr(e, "code", None),
                    exception=err,
                )

            results[index] = result
            completed += 1
            if on_progress is not None:
                try:
                    on_progress(completed, total, result)
                except Exception:
                    logger.warning(
                        "Progress callback failed for task %d", index, exc_info=True
                    )

    await asyncio.gather(*(worker(i) for i in range(min(concurrency, total))))
    return results
