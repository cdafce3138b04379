"""
Task Worker Module.
Runs gateway calls and exports off the UI thread so the canvas stays
responsive. Results are delivered back on the thread that owns the executor.
"""

import logging
import traceback
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from PySide6.QtCore import QCoreApplication, QObject, QThread, Signal, Slot

from healthmap.commands.base_command import CommandResult

logger = logging.getLogger(__name__)


@dataclass
class Task:
    """
    A unit of background work.

    Attributes:
        fn: Callable performing the work. Returns a CommandResult.
        on_done: Receives the result on the executor's thread.
        description: Short label for logs.
    """

    fn: Callable[[], CommandResult]
    on_done: Callable[[CommandResult], None]
    description: str = ""


class TaskExecutor(Protocol):
    """Anything that can run a Task and hand back its result."""

    def submit(
        self,
        fn: Callable[[], CommandResult],
        on_done: Callable[[CommandResult], None],
        description: str = "",
    ) -> None: ...


def run_task(task: Task) -> CommandResult:
    """
    Executes a task, converting unexpected exceptions into a failed result.
    """
    try:
        return task.fn()
    except Exception as e:
        logger.error(f"Task '{task.description}' failed: {traceback.format_exc()}")
        return CommandResult(success=False, message=str(e))


class InlineExecutor:
    """
    Runs tasks synchronously on the caller's thread.
    Used by the CLI and by tests.
    """

    def submit(
        self,
        fn: Callable[[], CommandResult],
        on_done: Callable[[CommandResult], None],
        description: str = "",
    ) -> None:
        task = Task(fn, on_done, description)
        on_done(run_task(task))


class TaskWorker(QObject):
    """
    Worker object that executes tasks in a separate thread.
    """

    task_finished = Signal(object, object)  # Task, CommandResult

    @Slot(object)
    def run(self, task: Task) -> None:
        """Runs one task and reports its result."""
        logger.debug(f"Worker running task: {task.description}")
        result = run_task(task)
        self.task_finished.emit(task, result)

    @Slot()
    def stop(self) -> None:
        """
        Ends the worker's event loop. Queued behind the submitted tasks,
        so everything submitted earlier has already run.
        """
        logger.debug("Worker queue drained, stopping thread.")
        QThread.currentThread().quit()


class ThreadedExecutor(QObject):
    """
    Executes tasks on a dedicated QThread.

    Tasks run in submission order on the worker thread; completion callbacks
    are invoked on the thread that owns this executor (the UI thread).
    """

    _task_submitted = Signal(object)
    _stop_requested = Signal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._thread = QThread()
        self._thread.setObjectName("HealthMapWorker")
        self._worker = TaskWorker()
        self._worker.moveToThread(self._thread)

        self._task_submitted.connect(self._worker.run)
        self._stop_requested.connect(self._worker.stop)
        self._worker.task_finished.connect(self._on_task_finished)
        self._thread.start()
        logger.debug("ThreadedExecutor started.")

    def submit(
        self,
        fn: Callable[[], CommandResult],
        on_done: Callable[[CommandResult], None],
        description: str = "",
    ) -> None:
        if not self._thread.isRunning():
            logger.error(f"Task '{description}' submitted after shutdown.")
            on_done(CommandResult(success=False, message="Worker is stopped."))
            return
        self._task_submitted.emit(Task(fn, on_done, description))

    @Slot(object, object)
    def _on_task_finished(self, task: Task, result: Any) -> None:
        try:
            task.on_done(result)
        except Exception:
            logger.error(
                f"Completion handler for '{task.description}' failed: "
                f"{traceback.format_exc()}"
            )

    def shutdown(self, timeout_ms: int = 15000) -> None:
        """
        Stops the worker thread after every queued task has run, then
        delivers the outstanding completion callbacks.

        Args:
            timeout_ms: Maximum time to wait for the queue to drain.
        """
        if self._thread.isRunning():
            self._stop_requested.emit()
            if not self._thread.wait(timeout_ms):
                logger.warning("Worker thread did not stop in time.")
        # Results posted by the worker are still waiting in this thread's queue
        QCoreApplication.sendPostedEvents(self)
        logger.debug("ThreadedExecutor stopped.")
