"""
Execution queue for cell execution.

Provides FIFO queue semantics per notebook, allowing users to queue
several runs while one is in flight. ``submit`` returns a message id
immediately and the queue is processed in the background, delivering
output, reply and error callbacks as messages arrive.
"""
import asyncio
import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set

from .kernel_service import KernelService
from .messages import (
    ClearOutputMessage, ExecuteOptions, ExecuteReply, ExecutionCallbacks, OutputMessage
)

logger = logging.getLogger(__name__)

ABORTED = "aborted"


@dataclass
class QueuedExecution:
    """A run request waiting in the queue."""
    notebook_id: str
    msg_id: str
    source: str
    options: ExecuteOptions
    callbacks: ExecutionCallbacks
    queued_at: datetime = field(default_factory=datetime.now)


@dataclass
class QueueStatus:
    """Current status of an execution queue."""
    queued_count: int
    is_processing: bool
    current_msg_id: Optional[str]
    queued_msg_ids: List[str]


class NotebookChannel:
    """``ExecutionChannel`` bound to one notebook's queue."""

    def __init__(self, queue: 'ExecutionQueue', notebook_id: str):
        self.queue = queue
        self.notebook_id = notebook_id

    def submit(self, source: str, callbacks: ExecutionCallbacks,
               options: ExecuteOptions) -> str:
        return self.queue.submit(self.notebook_id, source, callbacks, options)

    def clear_callbacks_for_msg(self, msg_id: str) -> None:
        self.queue.clear_callbacks_for_msg(msg_id)


class ExecutionQueue:
    """
    FIFO execution queue for notebook runs.

    Features:
    - Queue runs while one is in flight (FIFO order)
    - UI stays responsive (async background processing)
    - Callbacks detachable per message id
    - An error reply with ``stop_on_error`` aborts the rest of the queue
    """

    def __init__(self, kernel_service: KernelService):
        """
        Initialize the execution queue.

        Args:
            kernel_service: KernelService instance for code execution
        """
        self.kernel = kernel_service
        self._queues: Dict[str, deque] = {}
        self._processing: Dict[str, bool] = {}
        self._current: Dict[str, Optional[QueuedExecution]] = {}
        self._detached: Set[str] = set()

    def channel(self, notebook_id: str) -> NotebookChannel:
        """Return the execution channel for a notebook."""
        return NotebookChannel(self, notebook_id)

    def submit(
        self,
        notebook_id: str,
        source: str,
        callbacks: ExecutionCallbacks,
        options: ExecuteOptions
    ) -> str:
        """
        Add a run to the notebook's queue.

        Returns immediately - execution happens in background.

        Args:
            notebook_id: Notebook identifier
            source: Code to run
            callbacks: Callbacks for this run
            options: Identity, snapshots and run flags

        Returns:
            The message id of the run
        """
        if notebook_id not in self._queues:
            self._queues[notebook_id] = deque()
            self._processing[notebook_id] = False
            self._current[notebook_id] = None

        execution = QueuedExecution(
            notebook_id=notebook_id,
            msg_id=uuid.uuid4().hex,
            source=source,
            options=options,
            callbacks=callbacks,
        )
        self._queues[notebook_id].append(execution)

        if not self._processing.get(notebook_id):
            self._processing[notebook_id] = True
            asyncio.get_running_loop().create_task(self._process_queue(notebook_id))

        return execution.msg_id

    def clear_callbacks_for_msg(self, msg_id: str):
        """Stop delivering callbacks for a run. The run itself continues."""
        self._detached.add(msg_id)

    def cancel_all(self, notebook_id: str):
        """
        Abort all queued runs and interrupt the running one.

        Args:
            notebook_id: Notebook identifier
        """
        self._abort_queued(notebook_id)
        self.kernel.interrupt(notebook_id)

    def get_status(self, notebook_id: str) -> QueueStatus:
        """Get current queue status for a notebook."""
        queue = self._queues.get(notebook_id, deque())
        current = self._current.get(notebook_id)
        return QueueStatus(
            queued_count=len(queue),
            is_processing=self._processing.get(notebook_id, False),
            current_msg_id=current.msg_id if current else None,
            queued_msg_ids=[e.msg_id for e in queue]
        )

    def _abort_queued(self, notebook_id: str):
        queue = self._queues.get(notebook_id)
        while queue:
            execution = queue.popleft()
            logger.info(f"Aborting queued run {execution.msg_id}")
            self._deliver(execution, 'on_error', ABORTED)
            self._detached.discard(execution.msg_id)

    async def _process_queue(self, notebook_id: str):
        """
        Process execution queue for a notebook.

        This runs as a background task, processing runs one at a time.
        """
        try:
            queue = self._queues.get(notebook_id, deque())

            while queue:
                execution = queue.popleft()
                self._current[notebook_id] = execution
                reply = await self._run(execution)
                self._current[notebook_id] = None

                if reply is not None and reply.status == 'error' and execution.options.stop_on_error:
                    self._abort_queued(notebook_id)

        finally:
            self._processing[notebook_id] = False
            self._current[notebook_id] = None

    async def _run(self, execution: QueuedExecution) -> Optional[ExecuteReply]:
        reply = None
        try:
            async for message in self.kernel.execute(
                execution.notebook_id, execution.source, execution.options, execution.msg_id
            ):
                if isinstance(message, OutputMessage):
                    self._deliver(execution, 'on_output', message)
                elif isinstance(message, ClearOutputMessage):
                    self._deliver(execution, 'on_clear_output', message)
                elif isinstance(message, ExecuteReply):
                    reply = message
                    self._deliver_reply(execution, message)
        except RuntimeError as e:
            logger.warning(f"Run {execution.msg_id} failed: {e}")
            self._deliver(execution, 'on_error', str(e))
        finally:
            self._detached.discard(execution.msg_id)
        return reply

    def _deliver_reply(self, execution: QueuedExecution, reply: ExecuteReply):
        for payload in reply.payload:
            if payload.source == 'set_next_input':
                self._deliver(execution, 'on_set_next_input', payload)
            elif payload.source == 'page':
                self._deliver(execution, 'on_page', payload)
        self._deliver(execution, 'on_reply', reply)

    def _deliver(self, execution: QueuedExecution, name: str, arg):
        if execution.msg_id in self._detached:
            return
        callback = getattr(execution.callbacks, name)
        if callback is None:
            return
        try:
            callback(arg)
        except Exception:
            logger.exception(f"Callback {name} failed for run {execution.msg_id}")
