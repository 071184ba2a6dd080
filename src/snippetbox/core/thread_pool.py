"""
=============================================================================
WORKER THREAD POOL
=============================================================================

Accepted connections are queued and served by a bounded set of worker
threads:

    accept loop ──► submit(conn) ──► ┌──────────────────┐
                                     │   task queue     │  (bounded)
                                     └────────┬─────────┘
                         ┌────────────────────┼────────────────────┐
                         ▼                    ▼                    ▼
                    Worker-0             Worker-1     ...     Worker-N

    min_workers  threads are started up front.
    max_workers  is the ceiling; a new worker is added when every worker
                 is busy and tasks are waiting.
    queue_size   bounds the backlog; a full queue makes submit() return
                 False and the server answers 503.

Shutdown pushes one None ("poison pill") per worker.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: func(*args, **kwargs)."""

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """
    Pulls tasks off the shared queue until it receives None or is told to
    stop. A failing task is logged and the worker carries on.
    """

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int, idle_timeout: float = 60.0):
        super().__init__(name=f"snippetbox-worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout
        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0
        self._stop_event = threading.Event()

    def run(self):
        while not self._stop_event.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                if task is None:
                    break
                self._execute(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED

    def _execute(self, task: Task):
        self.state = WorkerState.BUSY
        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
        except Exception:
            logger.exception("%s: task failed", self.name)
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def stop(self):
        self._stop_event.set()


class ThreadPool:
    """
    Fixed-floor, bounded-ceiling pool of Worker threads.

        pool = ThreadPool(min_workers=4, max_workers=16, queue_size=256)
        pool.start()
        if not pool.submit(serve, args=(conn,)):
            reject(conn)
        ...
        pool.shutdown(wait=True, timeout=30.0)
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        queue_size: int = 256,
        idle_timeout: float = 60.0,
    ):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        # Re-entrant: _maybe_scale_up holds it while calling _add_worker.
        self._lock = threading.RLock()
        self._started = False
        self._shutting_down = False
        self._next_worker_id = 0

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            logger.debug("starting thread pool with %d workers", self.min_workers)
            for _ in range(self.min_workers):
                self._add_worker()
            self._started = True
            self._shutting_down = False

    def _add_worker(self) -> Worker:
        with self._lock:
            worker = Worker(self._task_queue, self._next_worker_id, self.idle_timeout)
            self._next_worker_id += 1
            self._workers.append(worker)
            worker.start()
            return worker

    def submit(self, func: Callable[..., Any], args: tuple = (), kwargs: Optional[Dict[str, Any]] = None) -> bool:
        """
        Queue func(*args, **kwargs) without blocking.

        Returns:
            False when the queue is full.

        Raises:
            RuntimeError: The pool is not running.
        """
        if not self._started or self._shutting_down:
            raise RuntimeError("thread pool is not running")

        try:
            self._task_queue.put_nowait(Task(func, args, kwargs or {}))
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self) -> None:
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return
            if self.busy_workers == len(self._workers) and not self._task_queue.empty():
                logger.debug("scaling up to %d workers", len(self._workers) + 1)
                self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop every worker.

        Args:
            wait: Let queued tasks finish first.
            timeout: Give up waiting for the queue after this many seconds.
        """
        with self._lock:
            if not self._started:
                return
            self._shutting_down = True
            workers = list(self._workers)

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.monotonic() > deadline:
                    logger.warning("thread pool shutdown timed out with %d tasks queued", self.queue_size)
                    break
                time.sleep(0.05)

        for worker in workers:
            worker.stop()
        for _ in workers:
            try:
                self._task_queue.put_nowait(None)
            except queue.Full:
                break
        for worker in workers:
            worker.join(timeout=2.0)

        with self._lock:
            self._workers.clear()
            self._started = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutting_down

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def queue_size(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> Dict[str, Dict[str, int]]:
        """Worker and task counters."""
        with self._lock:
            workers = list(self._workers)
        return {
            "workers": {
                "total": len(workers),
                "busy": sum(1 for w in workers if w.state == WorkerState.BUSY),
                "idle": sum(1 for w in workers if w.state == WorkerState.IDLE),
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in workers),
                "failed": sum(w.tasks_failed for w in workers),
            },
        }
