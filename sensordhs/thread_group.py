"""Groups of threads sharing data, and a manager that waits for groups to finish."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from sensordhs.thread import CondVar, Mutex
from sensordhs.timeutil import NS_PER_S, TIMEOUT_MAX, time_s

log = logging.getLogger(__name__)

Task = Callable[[Any], Any]
Init = Callable[[], Any]
Cleanup = Callable[[Any], Any]

# How long the manager sleeps between checks for a shutdown request.
_POLL_INTERVAL = time_s(1.0)


class ThreadGroup:
    """A set of tasks run on their own threads, all given the same shared data.

    When every task has returned, the optional cleanup is called with the
    shared data and the group is marked completed. If the group belongs to a
    GroupManager, the manager is notified.
    """

    def __init__(
        self,
        group_id: int,
        tasks: Iterable[Task],
        shared_data: Any = None,
        init: Init | None = None,
        cleanup: Cleanup | None = None,
    ) -> None:
        self.group_id = group_id
        self.tasks: tuple[Task, ...] = tuple(tasks)
        if shared_data is None and init is not None:
            shared_data = init()
        self.shared_data = shared_data
        self.cleanup = cleanup
        self.manager: GroupManager | None = None
        self.completed = False
        self._threads: list[threading.Thread] = []
        self._done = threading.Event()
        self._started = False

    @property
    def thread_count(self) -> int:
        return len(self.tasks)

    def start(self) -> None:
        """Start every task and a monitor that waits for them to finish.

        If a thread cannot be started, the threads already running are
        joined, the cleanup is run and the error is raised again.
        """
        if self._started:
            raise RuntimeError(f"thread group {self.group_id} has already been started")
        self._started = True

        for index, task in enumerate(self.tasks):
            thread = threading.Thread(
                target=self._run_task,
                args=(index, task),
                name=f"group-{self.group_id}-task-{index}",
                daemon=True,
            )
            try:
                thread.start()
            except RuntimeError:
                log.error(
                    "Failed to start thread for task #%d in thread group %s",
                    index,
                    self.group_id,
                )
                for started in self._threads:
                    started.join()
                self._run_cleanup()
                raise
            self._threads.append(thread)

        monitor = threading.Thread(
            target=self._monitor, name=f"group-{self.group_id}-monitor", daemon=True
        )
        monitor.start()

    def join(self, timeout: int = TIMEOUT_MAX) -> None:
        """Wait up to ``timeout`` nanoseconds for the group to complete."""
        if not self._started:
            raise RuntimeError(f"thread group {self.group_id} has not been started")
        if timeout < 0:
            raise ValueError("timeout must not be negative")
        seconds = None if timeout == TIMEOUT_MAX else timeout / NS_PER_S
        if not self._done.wait(seconds):
            raise TimeoutError(f"thread group {self.group_id} did not complete in time")

    def _run_task(self, index: int, task: Task) -> None:
        try:
            task(self.shared_data)
        except Exception:
            log.exception("Task #%d in thread group %s raised", index, self.group_id)

    def _run_cleanup(self) -> None:
        if self.cleanup is None:
            return
        try:
            self.cleanup(self.shared_data)
        except Exception:
            log.exception("Cleanup of thread group %s raised", self.group_id)
        else:
            log.info("Successfully cleaned up after thread group %s", self.group_id)

    def _monitor(self) -> None:
        for thread in self._threads:
            thread.join()

        log.info(
            "All threads in group %s have completed. Cleaning up, if needed", self.group_id
        )
        self._run_cleanup()

        manager = self.manager
        if manager is None:
            self.completed = True
        else:
            with manager._mutex:
                self.completed = True
                manager.completed_count += 1
                manager._cond.signal()
            log.info("Manager has been notified that thread group %s has completed", self.group_id)
        self._done.set()


class GroupManager:
    """Starts a collection of thread groups and waits for all of them."""

    def __init__(self, groups: Sequence[ThreadGroup]) -> None:
        self.groups: tuple[ThreadGroup, ...] = tuple(groups)
        self.completed_count = 0
        self._mutex = Mutex()
        self._cond = CondVar(self._mutex)
        for group in self.groups:
            group.manager = self

    @property
    def group_count(self) -> int:
        return len(self.groups)

    def start_all(self) -> None:
        """Start every group in order; stop at and re-raise the first failure."""
        with self._mutex:
            for group in self.groups:
                try:
                    group.start()
                except RuntimeError:
                    log.error("Manager failed to start group %s", group.group_id)
                    raise

    def wait_for_all(self, should_shutdown: Callable[[], bool] | None = None) -> None:
        """Block until every group has completed or ``should_shutdown()`` is true.

        On a shutdown request the remaining groups are counted as completed.
        """
        if should_shutdown is None:
            def should_shutdown() -> bool:
                return False

        with self._mutex:
            reported: set[int] = set()
            while self.completed_count < self.group_count and not should_shutdown():
                try:
                    self._cond.wait(_POLL_INTERVAL)
                except TimeoutError:
                    pass
                for index, group in enumerate(self.groups):
                    if index not in reported and group.completed:
                        log.info("Group %s completed", group.group_id)
                        reported.add(index)

            if should_shutdown():
                log.info("Shutdown requested, marking remaining groups as completed")
                self.completed_count = self.group_count

            log.info("All groups have completed or shutdown requested")