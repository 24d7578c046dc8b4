"""Tests for Scheduler and RunOnce on a real event loop"""
import asyncio
import threading
from unittest.mock import Mock

from worktree_tasks.utils.scheduling import RunOnce, Scheduler


async def until(predicate, attempts=100):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


class TestScheduler:

    def test_spawn_reports_escaping_error(self):
        async def scenario():
            scheduler = Scheduler()
            scheduler.on_error = Mock()

            async def fail():
                raise RuntimeError("boom")

            task = scheduler.spawn(fail())
            await asyncio.wait({task})
            await until(lambda: scheduler.on_error.called)
            return scheduler

        scheduler = asyncio.run(scenario())
        error = scheduler.on_error.call_args.args[0]
        assert isinstance(error, RuntimeError)
        assert str(error) == "boom"

    def test_spawn_success_does_not_report(self):
        async def scenario():
            scheduler = Scheduler()
            scheduler.on_error = Mock()

            async def work():
                return 42

            task = scheduler.spawn(work())
            assert await task == 42
            await asyncio.sleep(0)
            return scheduler

        scheduler = asyncio.run(scenario())
        scheduler.on_error.assert_not_called()

    def test_run_blocking_uses_executor_thread(self):
        def blocking(a, b=0):
            return threading.get_ident(), a + b

        async def scenario():
            scheduler = Scheduler()
            return threading.get_ident(), await scheduler.run_blocking(blocking, 1, b=2)

        loop_thread, (worker_thread, result) = asyncio.run(scenario())
        assert result == 3
        assert worker_thread != loop_thread

    def test_run_blocking_propagates_errors(self):
        def blocking():
            raise OSError("disk")

        async def scenario():
            scheduler = Scheduler()
            try:
                await scheduler.run_blocking(blocking)
            except OSError as e:
                return e

        assert str(asyncio.run(scenario())) == "disk"

    def test_cancel_all_is_not_an_error(self):
        async def scenario():
            scheduler = Scheduler()
            scheduler.on_error = Mock()
            task = scheduler.spawn(asyncio.sleep(10))
            await asyncio.sleep(0)
            scheduler.cancel_all()
            await asyncio.gather(task, return_exceptions=True)
            await asyncio.sleep(0)
            return scheduler, task

        scheduler, task = asyncio.run(scenario())
        assert task.cancelled()
        scheduler.on_error.assert_not_called()

    def test_call_later_fires_on_loop(self):
        async def scenario():
            scheduler = Scheduler()
            fired = asyncio.get_running_loop().create_future()
            start = scheduler.time()
            scheduler.call_later(0.01, lambda: fired.set_result(scheduler.time()))
            return start, await asyncio.wait_for(fired, timeout=1)

        start, fired_at = asyncio.run(scenario())
        assert fired_at >= start

    def test_cancelled_timer_does_not_fire(self):
        async def scenario():
            scheduler = Scheduler()
            callback = Mock()
            handle = scheduler.call_later(0.01, callback)
            handle.cancel()
            await asyncio.sleep(0.05)
            return callback

        asyncio.run(scenario()).assert_not_called()


class TestRunOnce:

    def test_duplicate_request_ignored_until_done(self):
        async def scenario():
            scheduler = Scheduler()
            guard = RunOnce(scheduler)
            release = asyncio.Event()
            calls = []

            async def request():
                calls.append(1)
                await release.wait()

            assert guard.run("statuses:l1", request)
            await asyncio.sleep(0)
            assert not guard.run("statuses:l1", request)
            assert guard.is_running("statuses:l1")
            assert guard.run("statuses:l2", request)

            release.set()
            await until(lambda: not guard.is_running("statuses:l1"))
            assert guard.run("statuses:l1", request)
            await until(lambda: not guard.is_running("statuses:l1"))
            return calls

        assert len(asyncio.run(scenario())) == 3

    def test_key_released_after_failure(self):
        async def scenario():
            scheduler = Scheduler()
            scheduler.on_error = Mock()
            guard = RunOnce(scheduler)

            async def request():
                raise ValueError("bad payload")

            guard.run("delete:abc123", request)
            await until(lambda: scheduler.on_error.called)
            return guard, scheduler

        guard, scheduler = asyncio.run(scenario())
        assert not guard.is_running("delete:abc123")
        assert isinstance(scheduler.on_error.call_args.args[0], ValueError)
