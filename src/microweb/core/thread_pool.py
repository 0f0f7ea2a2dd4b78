"""
=============================================================================
FIXED-SIZE THREAD POOL
=============================================================================

Every accepted connection becomes a task on a shared queue; a fixed set of
worker threads pull tasks off the queue and run them to completion.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Thread Pool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   acceptor ──submit()──►  ┌─────────────────────────┐               │
    │                           │  Task Queue (unbounded)  │               │
    │                           │  [T5] [T4] [T3] ...      │               │
    │                           └───────────┬─────────────┘               │
    │                                       │ get()                       │
    │                     ┌─────────────────┼─────────────────┐           │
    │                     ▼                 ▼                 ▼           │
    │               ┌──────────┐      ┌──────────┐      ┌──────────┐     │
    │               │ Worker 0 │      │ Worker 1 │ ...  │ Worker 9 │     │
    │               │  (T1)    │      │  (T2)    │      │  (idle)  │     │
    │               └──────────┘      └──────────┘      └──────────┘     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
NO ADMISSION CONTROL
=============================================================================

The queue has no size limit. When all workers are busy, new connections
wait in FIFO order; nobody is turned away with a 503. Memory grows with
the backlog, so worker_count must be sized for the expected load.

=============================================================================
SHUTDOWN: GRACE PERIOD, THEN FORCE
=============================================================================

    shutdown(grace=10.0)
        │
        ├──► 1. Reject new submissions
        │
        ├──► 2. Queue one poison pill (None) per worker, BEHIND any
        │       pending tasks, so queued work still gets served
        │
        ├──► 3. Join workers until the grace deadline
        │
        └──► 4. Workers still alive? FORCE:
                  ├── drain the queue, calling each pending task's
                  │   on_cancel hook (closes its connection)
                  ├── call on_cancel for each running task (aborts the
                  │   socket so a blocked read returns)
                  └── re-queue pills and join briefly

Python cannot kill a thread. Forced cancellation therefore works by
breaking the I/O a worker is blocked on. A handler stuck in pure
computation keeps running; the workers are daemon threads, so they never
keep the process alive.

=============================================================================
INTERVIEW QUESTIONS
=============================================================================

Q: Why not concurrent.futures.ThreadPoolExecutor?
A: Its shutdown() has no grace period and cancel_futures only cancels work
   that has not started. We need a hook to interrupt RUNNING tasks too.

Q: What happens when the queue is full?
A: It never is. A bounded queue would need a rejection policy (block the
   acceptor, or answer 503). This pool trades memory for never rejecting.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Any, Callable, List, Optional
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)

# How long stragglers get to exit after their I/O has been aborted
FORCE_JOIN_TIMEOUT = 1.0


class WorkerState(Enum):
    """Worker thread states, used for monitoring."""
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred function call plus an optional cancellation hook.

    Attributes:
        func: The function to execute.
        args: Positional arguments for the function.
        on_cancel: Called when the task is force-cancelled, whether it is
                   still queued or already running. Must be safe to call
                   from another thread.
        submitted_at: Time the task was submitted.
    """
    func: Callable[..., Any]
    args: tuple = ()
    on_cancel: Optional[Callable[[], None]] = None
    submitted_at: float = field(default_factory=time.time)

    def run(self) -> None:
        self.func(*self.args)

    def cancel(self) -> None:
        if self.on_cancel is None:
            return
        try:
            self.on_cancel()
        except Exception as e:
            logger.warning(f"Task cancel hook failed: {e}")


class Worker(threading.Thread):
    """
    Worker thread that runs tasks from the shared queue until it receives
    a poison pill.
    """

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int):
        # daemon=True: a stuck worker never blocks interpreter exit
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id

        self.state = WorkerState.IDLE
        self._current_task: Optional[Task] = None

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
        """Run one task; a failing task never kills the worker."""
        self.state = WorkerState.BUSY
        self._current_task = task
        start_time = time.time()

        try:
            task.run()
            self.tasks_completed += 1
            logger.debug(
                f"Worker {self.worker_id} completed task in {time.time() - start_time:.3f}s"
            )
        except Exception as e:
            logger.exception(
                f"Worker {self.worker_id} task failed after {time.time() - start_time:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE
            self._current_task = None

    def cancel_current(self) -> None:
        """Invoke the cancel hook of the task this worker is running, if any."""
        task = self._current_task
        if task is not None:
            task.cancel()


class ThreadPool:
    """
    Fixed-size thread pool with an unbounded queue.

    Usage:
        pool = ThreadPool(worker_count=10)
        pool.start()
        pool.submit(handle, args=(conn,), on_cancel=conn.abort)
        ...
        clean = pool.shutdown(grace=10.0)
    """

    def __init__(self, worker_count: int = 10):
        if worker_count < 1:
            raise ValueError("worker_count must be >= 1")

        self.worker_count = worker_count

        # maxsize=0 means unbounded
        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue()

        self._workers: List[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    def start(self):
        """Create and start all workers. Calling it twice is a no-op."""
        with self._lock:
            if self._started:
                return

            logger.debug(f"Starting thread pool with {self.worker_count} workers")

            for worker_id in range(self.worker_count):
                worker = Worker(self._task_queue, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        on_cancel: Optional[Callable[[], None]] = None,
    ) -> Task:
        """
        Queue a task. Never blocks and never rejects while running.

        Returns:
            The queued Task.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, on_cancel=on_cancel)
        self._task_queue.put(task)
        return task

    def shutdown(self, grace: float = 10.0) -> bool:
        """
        Stop the pool: let work finish for up to ``grace`` seconds, then
        force-cancel whatever is left.

        Args:
            grace: Seconds to wait for queued and running tasks.

        Returns:
            True if every worker exited within the grace period, False if
            forced cancellation was needed.
        """
        with self._lock:
            if not self._started or self._shutdown:
                return True
            self._shutdown = True
            # A handler that stops the server runs on a worker; never join ourselves
            workers = [w for w in self._workers if w is not threading.current_thread()]

        logger.debug("Shutting down thread pool...")

        # ─────────────────────────────────────────────────────────────────
        # PHASE 1: ORDERLY
        # ─────────────────────────────────────────────────────────────────
        for _ in self._workers:
            self._task_queue.put(None)

        deadline = time.monotonic() + grace
        for worker in workers:
            worker.join(timeout=max(0.0, deadline - time.monotonic()))

        stragglers = [w for w in workers if w.is_alive()]

        # ─────────────────────────────────────────────────────────────────
        # PHASE 2: FORCED
        # ─────────────────────────────────────────────────────────────────
        if stragglers:
            logger.warning(
                f"{len(stragglers)} worker(s) still busy after {grace}s, forcing cancellation"
            )
            cancelled = self._cancel_pending()
            if cancelled:
                logger.warning(f"Cancelled {cancelled} queued task(s)")

            for worker in stragglers:
                worker.cancel_current()
            for _ in stragglers:
                self._task_queue.put(None)
            for worker in stragglers:
                worker.join(timeout=FORCE_JOIN_TIMEOUT)

            still_alive = sum(1 for w in stragglers if w.is_alive())
            if still_alive:
                logger.error(f"{still_alive} worker(s) did not exit after cancellation")

        with self._lock:
            self._workers.clear()
            self._started = False

        logger.debug("Thread pool shutdown complete")
        return not stragglers

    def _cancel_pending(self) -> int:
        """Remove every queued item, cancelling real tasks. Returns the count."""
        cancelled = 0
        while True:
            try:
                item = self._task_queue.get_nowait()
            except queue.Empty:
                return cancelled
            try:
                if item is not None:
                    item.cancel()
                    cancelled += 1
            finally:
                self._task_queue.task_done()

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def queue_size(self) -> int:
        """Pending items in the queue (includes poison pills during shutdown)."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """
        Get thread pool statistics.

        Counters are read without locking, so the numbers are a best-effort
        snapshot.
        """
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
                "idle": sum(1 for w in self._workers if w.state == WorkerState.IDLE),
            },
            "tasks": {
                "queued": self.queue_size,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
