"""
orbit_sync/camunda/processor.py

External-task processor: leases tasks per topic and runs their handlers
on a bounded thread pool.

Each handler receives an ``ExternalTaskContext``. The context's lease flag
is set once the lock duration has elapsed; handlers are expected to check
``is_cancelled()`` between units of work.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Mapping

from orbit_sync.camunda.client import CamundaClient, ExternalTask
from orbit_sync.config import CamundaSettings
from orbit_sync.connectors.base import ConnectorRequestError

logger = logging.getLogger(__name__)


class ExternalTaskContext:
    """
    One delivered task plus the calls to report its outcome.
    """

    def __init__(
        self,
        *,
        task: ExternalTask,
        client: CamundaClient,
        lock_duration_seconds: float,
        failure_retries: int = 0,
        failure_retry_timeout_ms: int = 0,
    ) -> None:
        self.task = task
        self._client = client
        self._failure_retries = failure_retries
        self._failure_retry_timeout_ms = failure_retry_timeout_ms
        self._lease_expired = threading.Event()
        self._lease_timer = threading.Timer(lock_duration_seconds, self._lease_expired.set)
        self._lease_timer.daemon = True

    @property
    def task_id(self) -> str:
        return self.task.id

    @property
    def variables(self) -> Mapping[str, Any]:
        return self.task.variables

    def start_lease(self) -> None:
        self._lease_timer.start()

    def release(self) -> None:
        self._lease_timer.cancel()

    def is_cancelled(self) -> bool:
        return self._lease_expired.is_set()

    def complete(self, variables: Mapping[str, Any]) -> None:
        self._client.complete(self.task.id, variables)

    def fail(self, error_message: str, error_details: str | None = None) -> None:
        self._client.handle_failure(
            self.task.id,
            error_message=error_message,
            error_details=error_details,
            retries=self._failure_retries,
            retry_timeout_ms=self._failure_retry_timeout_ms,
        )


TaskHandler = Callable[[ExternalTaskContext], Any]


class TaskProcessor:
    """
    Polls Camunda for registered topics and dispatches tasks to handlers.

    At most ``max_parallel_tasks`` handlers run at once; a poll never leases
    more tasks than there are free slots.
    """

    def __init__(
        self,
        *,
        client: CamundaClient,
        settings: CamundaSettings,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._client = client
        self._settings = settings
        self._executor = executor or ThreadPoolExecutor(
            max_workers=settings.max_parallel_tasks,
            thread_name_prefix=f"{settings.worker_id}-task",
        )
        self._handlers: dict[str, TaskHandler] = {}
        self._active = 0
        self._lock = threading.Lock()

    @property
    def active_tasks(self) -> int:
        with self._lock:
            return self._active

    def add_handler(self, topic: str, handler: TaskHandler) -> None:
        self._handlers[topic] = handler
        logger.info("Registered external-task handler topic=%s worker_id=%s", topic, self._settings.worker_id)

    def poll_once(self) -> int:
        """
        Run one fetch-and-lock round per topic. Returns the number of tasks dispatched.
        """

        dispatched = 0
        for topic, handler in self._handlers.items():
            free_slots = self._settings.max_parallel_tasks - self.active_tasks
            if free_slots <= 0:
                logger.debug("All task slots busy; skipping poll topic=%s", topic)
                break

            try:
                tasks = self._client.fetch_and_lock(
                    topic=topic,
                    max_tasks=min(self._settings.max_tasks, free_slots),
                    lock_duration_ms=int(self._settings.lock_duration_seconds * 1000),
                    async_response_timeout_ms=self._settings.async_response_timeout_ms,
                )
            except ConnectorRequestError as exc:
                logger.error("fetchAndLock failed topic=%s error=%s", topic, exc)
                continue

            for task in tasks:
                self._dispatch(task, handler)
                dispatched += 1
        return dispatched

    def _dispatch(self, task: ExternalTask, handler: TaskHandler) -> None:
        context = ExternalTaskContext(
            task=task,
            client=self._client,
            lock_duration_seconds=self._settings.lock_duration_seconds,
            failure_retries=self._settings.failure_retries,
            failure_retry_timeout_ms=self._settings.failure_retry_timeout_ms,
        )
        with self._lock:
            self._active += 1
        context.start_lease()
        logger.info("Dispatching task task_id=%s topic=%s", task.id, task.topic_name)
        self._executor.submit(self._execute, handler, context)

    def _execute(self, handler: TaskHandler, context: ExternalTaskContext) -> None:
        try:
            handler(context)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Task handler failed task_id=%s error=%s", context.task_id, exc)
        finally:
            context.release()
            with self._lock:
                self._active -= 1

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
        self._client.close()
