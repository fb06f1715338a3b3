"""Fixed-size worker pools that process requests on background threads."""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable

logger = logging.getLogger(__name__)

IDLE = "disponible"
BUSY = "ocupado"

_STOP = object()


@dataclass
class Request:
    """A parsed request waiting to be processed by a worker."""

    id: int
    route: str
    params: dict[str, str] = field(default_factory=dict)
    conn: Any = None
    started_at: float = field(default_factory=time.monotonic)
    done: threading.Event = field(default_factory=threading.Event)


class Worker:
    """Takes requests from a shared queue and runs the handler on each."""

    def __init__(
        self,
        id: int,
        tasks: queue.Queue,
        handler: Callable[[Request], None],
    ) -> None:
        self.id = id
        self.status = IDLE
        self.current: Request | None = None
        self._tasks = tasks
        self._handler = handler

    def run(self) -> None:
        """Process requests until a stop signal arrives."""
        while True:
            item = self._tasks.get()
            if item is _STOP:
                return
            logger.info("Worker %d recibió solicitud %d", self.id, item.id)
            self.current = item
            self.status = BUSY
            try:
                self._handler(item)
            except Exception:
                logger.exception("Worker %d failed on request %d", self.id, item.id)
            finally:
                self.current = None
                self.status = IDLE
                item.done.set()


class WorkerPool:
    """A fixed number of workers sharing one queue of requests."""

    def __init__(self, size: int, handler: Callable[[Request], None]) -> None:
        if size < 1:
            raise ValueError("a worker pool needs at least one worker")
        self.size = size
        self.workers: list[Worker] = []
        self._handler = handler
        self._tasks: queue.Queue = queue.Queue()
        self._threads: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._running = False
        self._started = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Create the workers and start their threads."""
        with self._lock:
            if self._started:
                raise RuntimeError("worker pool already started")
            self._started = True
            self._running = True
            for worker_id in range(self.size):
                worker = Worker(worker_id, self._tasks, self._handler)
                thread = threading.Thread(
                    target=worker.run, name=f"worker-{worker_id}", daemon=True
                )
                self.workers.append(worker)
                self._threads.append(thread)
                thread.start()
        logger.info("WorkerPool iniciado con %d workers", self.size)

    def submit(self, request: Request) -> None:
        """Queue a request for the next free worker."""
        with self._lock:
            if not self._running:
                raise RuntimeError("worker pool is not running")
            self._tasks.put(request)

    def shutdown(self) -> None:
        """Stop every worker once queued requests are done, and wait for them."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            for _ in self._threads:
                self._tasks.put(_STOP)
        for thread in self._threads:
            thread.join()