"""Tests for background extraction with stale-result dropping."""

import threading
import time
from concurrent.futures import Future

import pytest

from conftest import solid_rgba
from extract_colors import RasterBuffer, quantize
from extraction_worker import ExtractionWorker


class ManualExecutor:
    """Starts every task immediately but lets the test decide when each finishes."""

    def __init__(self, start=True):
        self.start = start
        self.tasks = []

    def submit(self, fn, *args):
        future = Future()
        if self.start:
            future.set_running_or_notify_cancel()
        self.tasks.append((future, fn, args))
        return future

    def finish(self, index):
        future, fn, args = self.tasks[index]
        try:
            future.set_result(fn(*args))
        except Exception as e:
            future.set_exception(e)


@pytest.fixture
def red():
    return RasterBuffer.from_array(solid_rgba(6, 6, (255, 0, 0)))


@pytest.fixture
def blue():
    return RasterBuffer.from_array(solid_rgba(6, 6, (0, 0, 255)))


def test_newest_request_wins_when_older_finishes_last(red, blue):
    delivered = []
    executor = ManualExecutor()
    worker = ExtractionWorker(executor=executor, on_result=delivered.append)

    older = worker.submit(red, 3)
    newer = worker.submit(blue, 3)
    executor.finish(1)
    executor.finish(0)

    assert worker.latest.colors == ["#0000ff"] * 3
    assert [p.colors for p in delivered] == [["#0000ff"] * 3]
    assert older.superseded
    assert older.result() is None
    assert newer.result().colors == ["#0000ff"] * 3


def test_stale_result_dropped_when_it_finishes_first(red, blue):
    delivered = []
    executor = ManualExecutor()
    worker = ExtractionWorker(executor=executor, on_result=delivered.append)

    worker.submit(red, 2)
    executor.finish(0)
    worker.submit(blue, 2)

    # The red palette was current when it finished, so it was delivered
    assert [p.colors for p in delivered] == [["#ff0000"] * 2]

    executor.finish(1)
    assert worker.latest.colors == ["#0000ff"] * 2
    assert worker.generation == 2


def test_queued_request_is_cancelled_by_newer_one(red, blue):
    executor = ManualExecutor(start=False)
    worker = ExtractionWorker(executor=executor)

    older = worker.submit(red, 2)
    worker.submit(blue, 2)

    assert older.future.cancelled()
    assert older.result() is None


def test_waiter_on_cancelled_request_gets_none(red, blue):
    executor = ManualExecutor(start=False)
    worker = ExtractionWorker(executor=executor)
    older = worker.submit(red, 2)
    waiting = threading.Event()
    outcome = {}

    def wait_for_older():
        waiting.set()
        try:
            outcome["palette"] = older.result(timeout=5)
        except Exception as e:
            outcome["error"] = e

    waiter = threading.Thread(target=wait_for_older)
    waiter.start()
    assert waiting.wait(timeout=2)
    time.sleep(0.05)

    worker.submit(blue, 2)
    waiter.join(timeout=5)

    assert older.future.cancelled()
    assert outcome == {"palette": None}


def test_errors_reach_the_current_request(red):
    executor = ManualExecutor()
    worker = ExtractionWorker(executor=executor)

    request = worker.submit(red, 1)
    executor.finish(0)

    with pytest.raises(ValueError):
        request.result()
    assert worker.latest is None


def test_thread_pool_matches_direct_quantize(red):
    with ExtractionWorker() as worker:
        request = worker.submit(red, 4)
        palette = request.result(timeout=5)

    assert palette == quantize(red, 4)
    assert worker.latest == palette
