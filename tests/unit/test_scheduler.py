"""Tests for the bounded-concurrency scheduler."""

import asyncio
import random

import pytest

from bulk_upload.common.exceptions import SchedulerTaskError
from bulk_upload.common.scheduler import TaskResult, limit_concurrency


def make_tasks(count, tracker=None, fail_on=()):
    """Build tasks that sleep briefly and record concurrency and call counts."""
    tracker = tracker if tracker is not None else {}
    tracker.setdefault("in_flight", 0)
    tracker.setdefault("peak", 0)
    tracker.setdefault("calls", [0] * count)

    def build(index):
        async def task():
            tracker["calls"][index] += 1
            tracker["in_flight"] += 1
            tracker["peak"] = max(tracker["peak"], tracker["in_flight"])
            try:
                await asyncio.sleep(random.uniform(0, 0.01))
                if index in fail_on:
                    raise RuntimeError(f"task {index} exploded")
                return TaskResult(success=True, payload=index)
            finally:
                tracker["in_flight"] -= 1

        return task

    return [build(i) for i in range(count)], tracker


class TestLimitConcurrency:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("count, concurrency", [(1, 1), (7, 1), (10, 3), (10, 10), (25, 4)])
    async def test_every_index_written_once(self, count, concurrency):
        tasks, tracker = make_tasks(count)
        results = await limit_concurrency(tasks, concurrency)

        assert len(results) == count
        assert [r.payload for r in results] == list(range(count))
        assert tracker["calls"] == [1] * count

    @pytest.mark.asyncio
    async def test_in_flight_never_exceeds_concurrency(self):
        tasks, tracker = make_tasks(20)
        await limit_concurrency(tasks, 3)
        assert tracker["peak"] <= 3

    @pytest.mark.asyncio
    async def test_concurrency_larger_than_task_count(self):
        tasks, tracker = make_tasks(3)
        results = await limit_concurrency(tasks, 10)
        assert len(results) == 3
        assert tracker["peak"] <= 3

    @pytest.mark.asyncio
    async def test_failures_become_results(self):
        tasks, tracker = make_tasks(6, fail_on={1, 4})
        results = await limit_concurrency(tasks, 2)

        assert [r.success for r in results] == [True, False, True, True, False, True]
        assert results[1].error == "task 1 exploded"
        assert results[4].payload is None
        assert tracker["calls"] == [1] * 6

    @pytest.mark.asyncio
    async def test_failure_carries_scheduler_task_error(self):
        tasks, _ = make_tasks(3, fail_on={1})
        results = await limit_concurrency(tasks, 2)

        err = results[1].exception
        assert isinstance(err, SchedulerTaskError)
        assert err.index == 1
        assert isinstance(err.__cause__, RuntimeError)
        assert results[0].exception is None

    @pytest.mark.asyncio
    async def test_plain_return_values_are_wrapped(self):
        async def task():
            return {"url": "https://example.com/a"}

        results = await limit_concurrency([task], 1)
        assert results == [TaskResult(success=True, payload={"url": "https://example.com/a"})]

    @pytest.mark.asyncio
    async def test_error_code_is_kept(self):
        class CodedError(Exception):
            code = 503

        async def task():
            raise CodedError("unavailable")

        results = await limit_concurrency([task], 1)
        assert results[0].code == 503

    @pytest.mark.asyncio
    async def test_progress_reports_each_completion(self):
        tasks, _ = make_tasks(10)
        calls = []
        results = await limit_concurrency(
            tasks, 5, lambda completed, total, result: calls.append((completed, total, result))
        )

        assert [c[0] for c in calls] == list(range(1, 11))
        assert all(c[1] == 10 for c in calls)
        assert sorted(c[2].payload for c in calls) == list(range(10))
        assert len(results) == 10

    @pytest.mark.asyncio
    async def test_progress_callback_errors_do_not_stop_batch(self):
        tasks, _ = make_tasks(4)

        def on_progress(completed, total, result):
            raise ValueError("render failed")

        results = await limit_concurrency(tasks, 2, on_progress)
        assert all(r.success for r in results)

    @pytest.mark.asyncio
    async def test_empty_task_list(self):
        assert await limit_concurrency([], 3) == []

    @pytest.mark.asyncio
    async def test_rejects_zero_concurrency(self):
        with pytest.raises(ValueError):
            await limit_concurrency([], 0)
