"""
Subprocess kernel manager.

This module manages the kernel subprocess and provides an async interface
for code execution with streaming output and hard interrupt support.
"""
import os
import signal
import asyncio
import logging
from multiprocessing import Process, Queue
from queue import Empty
from typing import AsyncIterator, Optional, Union
from dataclasses import dataclass

from document.cell import CellOutput
from .messages import (
    ClearOutputMessage, ExecuteOptions, ExecuteReply, OutputMessage, PayloadMessage
)

logger = logging.getLogger(__name__)

KernelMessage = Union[OutputMessage, ClearOutputMessage, ExecuteReply]


class KernelDied(RuntimeError):
    """The kernel subprocess terminated while a run was in flight."""


@dataclass
class KernelStatus:
    """Current status of the kernel."""
    is_alive: bool
    is_busy: bool
    execution_count: int
    pid: Optional[int] = None


def _to_message(msg: dict) -> Optional[KernelMessage]:
    """Convert a raw worker message into a channel message."""
    msg_type = msg.get('type')
    identity = msg.get('identity')

    if msg_type == 'stream':
        return OutputMessage(identity, CellOutput(
            output_type='stream',
            content=msg.get('text', ''),
            stream_name=msg.get('name', 'stdout')
        ))
    if msg_type in ('display_data', 'execute_result'):
        return OutputMessage(identity, CellOutput(
            output_type=msg_type,
            content=msg.get('data', {}),
            metadata=msg.get('metadata') or None
        ))
    if msg_type == 'error':
        return OutputMessage(identity, CellOutput(
            output_type='error',
            ename=msg.get('ename', 'Error'),
            evalue=msg.get('evalue', ''),
            traceback=msg.get('traceback', [])
        ))
    if msg_type == 'clear_output':
        return ClearOutputMessage(identity, wait=msg.get('wait', False))
    if msg_type == 'execute_reply':
        payload = [
            PayloadMessage(source=p.get('source', ''),
                           data={k: v for k, v in p.items() if k != 'source'})
            for p in msg.get('payload', [])
        ]
        return ExecuteReply(
            execution_count=msg.get('execution_count'),
            identity=identity,
            upstream=list(msg.get('upstream', [])),
            downstream=list(msg.get('downstream', [])),
            status=msg.get('status', 'ok'),
            payload=payload,
        )
    return None


class SubprocessKernel:
    """
    Kernel running in a subprocess with streaming output.

    Key features:
    - Hard interrupt via SIGINT to subprocess
    - Streaming output via multiprocessing Queue
    - Persistent namespace across cells (until restart)
    - Dependency hints in every execute reply
    """

    def __init__(self, start_immediately: bool = True, start_timeout: float = 10):
        self.process: Optional[Process] = None
        self.input_queue: Optional[Queue] = None
        self.output_queue: Optional[Queue] = None
        self.start_timeout = start_timeout
        self._execution_count: int = 0
        self._is_busy: bool = False

        if start_immediately:
            self._start_process()

    def _start_process(self):
        """Start the kernel subprocess."""
        # Imported here so the parent process never loads IPython
        from .kernel_worker import kernel_worker_main

        self.input_queue = Queue()
        self.output_queue = Queue()

        self.process = Process(
            target=kernel_worker_main,
            args=(self.input_queue, self.output_queue),
            daemon=True  # Die with parent process
        )
        self.process.start()

        try:
            msg = self.output_queue.get(timeout=self.start_timeout)
            if msg.get('type') == 'status' and msg.get('status') == 'ready':
                logger.info(f"Kernel subprocess {self.process.pid} ready")
                return True
        except Empty:
            pass

        raise RuntimeError("Kernel subprocess failed to start")

    @property
    def is_alive(self) -> bool:
        """Check if kernel subprocess is running."""
        return self.process is not None and self.process.is_alive()

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    def get_status(self) -> KernelStatus:
        return KernelStatus(
            is_alive=self.is_alive,
            is_busy=self._is_busy,
            execution_count=self._execution_count,
            pid=self.pid
        )

    async def execute_streaming(
        self,
        code: str,
        options: ExecuteOptions,
        msg_id: str = ""
    ) -> AsyncIterator[KernelMessage]:
        """
        Execute code and yield channel messages as they stream.

        The last message yielded is always an ``ExecuteReply``. If the
        subprocess dies first, ``KernelDied`` is raised instead.
        """
        if not self.is_alive:
            self._start_process()

        # Pinned: after a restart this run ends instead of reading the new kernel
        process, output_queue = self.process, self.output_queue

        self.input_queue.put({
            'type': 'execute',
            'msg_id': msg_id,
            'code': code,
            'identity': options.identity,
            'cell_snapshots': options.cell_snapshots,
            'stop_on_error': options.stop_on_error,
            'silent': options.silent,
            'store_history': options.store_history,
        })
        self._is_busy = True

        loop = asyncio.get_running_loop()

        try:
            while True:
                try:
                    msg = await loop.run_in_executor(
                        None,
                        lambda: output_queue.get(timeout=0.05)
                    )
                except Empty:
                    if self.process is not process:
                        raise KernelDied("Kernel restarted before the run finished")
                    if not process.is_alive():
                        raise KernelDied("Kernel subprocess died unexpectedly")
                    continue

                if msg.get('type') == 'status':
                    if self.process is process:
                        self._is_busy = msg.get('status') == 'busy'
                    continue

                message = _to_message(msg)
                if message is None:
                    logger.debug(f"Ignoring kernel message {msg.get('type')!r}")
                    continue

                if isinstance(message, ExecuteReply):
                    if message.execution_count is not None:
                        self._execution_count = message.execution_count
                    yield message
                    break

                yield message

        finally:
            if self.process is process:
                self._is_busy = False

    def interrupt(self) -> bool:
        """
        Send SIGINT to kernel subprocess - hard interrupt.

        Returns:
            True if interrupt signal was sent, False if no kernel running
        """
        if self.process and self.process.is_alive():
            try:
                os.kill(self.process.pid, signal.SIGINT)
                return True
            except (ProcessLookupError, PermissionError):
                return False
        return False

    def restart(self) -> bool:
        """Kill and restart the kernel subprocess, clearing all namespace state."""
        self.shutdown()
        try:
            self._start_process()
            self._execution_count = 0
            return True
        except RuntimeError:
            logger.exception("Kernel restart failed")
            return False

    def shutdown(self):
        """Shutdown the kernel subprocess cleanly."""
        if self.process is None:
            return

        if self.input_queue:
            try:
                self.input_queue.put({'type': 'shutdown'})
                self.process.join(timeout=2)
            except (OSError, ValueError):
                pass

        if self.process.is_alive():
            self.process.terminate()
            self.process.join(timeout=1)

        if self.process.is_alive():
            self.process.kill()

        self.process = None
        self.input_queue = None
        self.output_queue = None

    def __del__(self):
        self.shutdown()
