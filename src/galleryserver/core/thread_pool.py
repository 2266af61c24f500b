"""
=============================================================================
BOUNDED THREAD POOL
=============================================================================

Runs one task per accepted connection on a bounded set of threads.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   acceptor ──submit()──►  ┌───────────────────────┐                 │
    │                           │ Queue(maxsize=N)      │                 │
    │                           │ [task][task][task]... │                 │
    │                           └───────────┬───────────┘                 │
    │                                       │ get()                        │
    │                 ┌─────────────────────┼─────────────────────┐       │
    │                 ▼                     ▼                     ▼       │
    │            Worker-0              Worker-1      ...     Worker-M     │
    │                                                                      │
    │   min_workers threads start with the pool; more are added up to    │
    │   max_workers while every worker is busy and tasks are waiting.     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

BACKPRESSURE: submit(block=False) returns False when the queue is full.
The acceptor answers 503 on the spot, so a burst of uploads costs at most
max_workers threads plus a fixed queue of waiting sockets.

SHUTDOWN: stop taking tasks, give queued tasks until the deadline to
finish, then stop workers with one poison pill (None) each. Tasks still
queued at the deadline are discarded through their on_discard callback,
which lets the server close sockets nobody will ever serve.
=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging
import queue
import threading
import time


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call plus what to do if it never runs."""

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    on_discard: Optional[Callable[[], None]] = None
    submitted_at: float = field(default_factory=time.time)

    def discard(self) -> None:
        if self.on_discard is None:
            return
        try:
            self.on_discard()
        except Exception:
            logger.exception("Discard callback failed")


class Worker(threading.Thread):
    """
    Pulls tasks off the shared queue until it receives None.

    A failing task is logged and counted; the worker keeps going.
    """

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int):
        super().__init__(name=f"gallery-worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.state = WorkerState.IDLE
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in {time.time() - start_time:.3f}s"
            )
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(
                f"Worker {self.worker_id} task failed after {time.time() - start_time:.3f}s: {e}"
            )
        finally:
            self.state = WorkerState.IDLE


class ThreadPool:
    """
    Bounded pool of worker threads.

    Example:
        pool = ThreadPool(min_workers=2, max_workers=8, queue_size=32)
        pool.start()
        if not pool.submit(handle, args=(conn,), on_discard=conn.close):
            reject(conn)
        ...
        pool.shutdown(timeout=10)
    """

    def __init__(
        self,
        min_workers: int = 2,
        max_workers: int = 16,
        queue_size: int = 64,
    ):
        if min_workers < 1 or max_workers < min_workers:
            raise ValueError("Need 1 <= min_workers <= max_workers")
        if queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        self.min_workers = min_workers
        self.max_workers = max_workers
        self.max_queue = queue_size

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: List[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutting_down = False
        self._next_worker_id = 0
        self.tasks_rejected = 0

    @property
    def running(self) -> bool:
        return self._started and not self._shutting_down

    def start(self):
        """Start min_workers threads. Calling start() on a running pool does nothing."""
        with self._lock:
            if self._started:
                return
            self._task_queue = queue.Queue(maxsize=self.max_queue)
            self._shutting_down = False
            for _ in range(self.min_workers):
                self._spawn_worker()
            self._started = True

        logger.info(f"Thread pool started with {self.min_workers} workers")

    def _spawn_worker(self) -> Worker:
        # caller holds self._lock
        worker = Worker(self._task_queue, self._next_worker_id)
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[Dict[str, Any]] = None,
        on_discard: Optional[Callable[[], None]] = None,
        block: bool = False,
        queue_timeout: Optional[float] = None,
    ) -> bool:
        """
        Queue func(*args, **kwargs) for a worker.

        Returns:
            True if queued, False if the queue was full.

        Raises:
            RuntimeError: The pool is not running.
        """
        if not self.running:
            raise RuntimeError("Thread pool is not running")

        task = Task(func=func, args=args, kwargs=kwargs or {}, on_discard=on_discard)
        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
        except queue.Full:
            self.tasks_rejected += 1
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        """Add a worker while all are busy and work is waiting, up to max_workers."""
        with self._lock:
            if len(self._workers) >= self.max_workers or self._shutting_down:
                return
            idle = sum(1 for w in self._workers if w.state == WorkerState.IDLE)
            if idle < self._task_queue.qsize():
                logger.debug(
                    f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers"
                )
                self._spawn_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> int:
        """
        Stop the pool.

        Args:
            wait: Let queued tasks run (until timeout) before stopping.
            timeout: Upper bound in seconds for the whole shutdown.

        Returns:
            Number of queued tasks that were discarded without running.
        """
        with self._lock:
            if not self._started or self._shutting_down:
                return 0
            self._shutting_down = True
            workers = list(self._workers)

        logger.info("Shutting down thread pool...")
        deadline = time.time() + timeout if timeout is not None else None

        if wait:
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Thread pool shutdown timed out with tasks pending")
                    break
                time.sleep(0.05)

        discarded = 0
        while True:
            try:
                task = self._task_queue.get_nowait()
            except queue.Empty:
                break
            self._task_queue.task_done()
            if task is not None:
                task.discard()
                discarded += 1

        for _ in workers:
            remaining = None
            if deadline is not None:
                remaining = max(0.1, deadline - time.time())
            try:
                self._task_queue.put(None, timeout=remaining)
            except queue.Full:
                logger.warning("Workers still busy, leaving them to finish as daemons")
                break

        for worker in workers:
            remaining = None
            if deadline is not None:
                remaining = max(0.1, deadline - time.time())
            worker.join(timeout=remaining)

        with self._lock:
            self._workers.clear()
            self._started = False

        if discarded:
            logger.warning(f"Discarded {discarded} queued tasks at shutdown")
        logger.info("Thread pool shutdown complete")
        return discarded

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def pending(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self.pending,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
                "rejected": self.tasks_rejected,
            },
        }
