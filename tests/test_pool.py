import threading

import pytest

from taskserver.pool import BUSY, IDLE, Request, WorkerPool


def test_start_creates_idle_workers_with_sequential_ids():
    pool = WorkerPool(3, lambda request: None)
    pool.start()
    try:
        assert [worker.id for worker in pool.workers] == [0, 1, 2]
        assert all(worker.status == IDLE for worker in pool.workers)
        assert all(worker.current is None for worker in pool.workers)
    finally:
        pool.shutdown()


def test_worker_status_words_match_the_status_report():
    entered = threading.Event()
    release = threading.Event()

    def handler(request):
        entered.set()
        release.wait(5)

    pool = WorkerPool(1, handler)
    pool.start()
    request = Request(3, "/sleep")
    try:
        assert pool.workers[0].status == "disponible"
        pool.submit(request)
        assert entered.wait(5)
        assert pool.workers[0].status == "ocupado"
        release.set()
        assert request.done.wait(5)
        assert pool.workers[0].status == "disponible"
    finally:
        release.set()
        pool.shutdown()


def test_size_must_be_positive():
    with pytest.raises(ValueError):
        WorkerPool(0, lambda request: None)


def test_submitted_requests_are_all_handled():
    seen = []
    lock = threading.Lock()

    def handler(request):
        with lock:
            seen.append(request.id)

    pool = WorkerPool(2, handler)
    pool.start()
    requests = [Request(number, "/help") for number in range(10)]
    for request in requests:
        pool.submit(request)
    try:
        assert all(request.done.wait(5) for request in requests)
    finally:
        pool.shutdown()
    assert sorted(seen) == list(range(10))


def test_submit_before_start_raises():
    pool = WorkerPool(1, lambda request: None)
    with pytest.raises(RuntimeError):
        pool.submit(Request(1, "/help"))


def test_submit_after_shutdown_raises():
    pool = WorkerPool(1, lambda request: None)
    pool.start()
    pool.shutdown()
    with pytest.raises(RuntimeError):
        pool.submit(Request(1, "/help"))


def test_start_twice_raises():
    pool = WorkerPool(1, lambda request: None)
    pool.start()
    try:
        with pytest.raises(RuntimeError):
            pool.start()
    finally:
        pool.shutdown()


def test_worker_reports_busy_while_handling():
    entered = threading.Event()
    release = threading.Event()

    def handler(request):
        entered.set()
        release.wait(5)

    pool = WorkerPool(1, handler)
    pool.start()
    request = Request(7, "/sleep")
    try:
        pool.submit(request)
        assert entered.wait(5)
        worker = pool.workers[0]
        assert worker.status == BUSY
        assert worker.current is request
        release.set()
        assert request.done.wait(5)
        assert worker.status == IDLE
        assert worker.current is None
    finally:
        release.set()
        pool.shutdown()


def test_workers_run_concurrently():
    barrier = threading.Barrier(3, timeout=5)
    results = []
    lock = threading.Lock()

    def handler(request):
        barrier.wait()
        with lock:
            results.append(True)

    pool = WorkerPool(3, handler)
    pool.start()
    requests = [Request(number, "/simulate") for number in range(3)]
    for request in requests:
        pool.submit(request)
    try:
        assert all(request.done.wait(10) for request in requests)
    finally:
        pool.shutdown()
    assert results == [True, True, True]


def test_failing_handler_does_not_stop_the_worker():
    handled = []

    def handler(request):
        if request.id == 1:
            raise RuntimeError("boom")
        handled.append(request.id)

    pool = WorkerPool(1, handler)
    pool.start()
    first, second = Request(1, "/hash"), Request(2, "/hash")
    pool.submit(first)
    pool.submit(second)
    try:
        assert first.done.wait(5)
        assert second.done.wait(5)
    finally:
        pool.shutdown()
    assert handled == [2]


def test_shutdown_finishes_queued_requests_first():
    handled = []
    pool = WorkerPool(1, lambda request: handled.append(request.id))
    pool.start()
    for number in range(5):
        pool.submit(Request(number, "/help"))
    pool.shutdown()
    assert handled == [0, 1, 2, 3, 4]
    assert not pool.running