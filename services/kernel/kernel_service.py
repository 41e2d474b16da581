"""
Kernel service - manages kernels per notebook.

Provides a high-level interface for streaming execution,
managing one kernel per notebook.
"""
from typing import AsyncIterator, Dict

from .messages import ExecuteOptions
from .subprocess_kernel import KernelMessage, SubprocessKernel


class KernelService:
    """
    Service managing kernels per notebook.

    Each notebook gets its own kernel subprocess, providing
    isolated namespaces between notebooks while maintaining
    state within a notebook's cells.
    """

    def __init__(self, lazy_start: bool = True, start_timeout: float = 10):
        """
        Initialize the kernel service.

        Args:
            lazy_start: If True, kernels are started on first use.
                       If False, kernels must be explicitly started.
            start_timeout: Seconds to wait for a kernel subprocess to report ready
        """
        self._kernels: Dict[str, SubprocessKernel] = {}
        self._lazy_start = lazy_start
        self._start_timeout = start_timeout

    def get_kernel(self, notebook_id: str) -> SubprocessKernel:
        """
        Get or create kernel for a notebook.

        Args:
            notebook_id: Unique identifier for the notebook

        Returns:
            SubprocessKernel instance for the notebook
        """
        if notebook_id not in self._kernels:
            self._kernels[notebook_id] = SubprocessKernel(
                start_immediately=self._lazy_start,
                start_timeout=self._start_timeout
            )
        return self._kernels[notebook_id]

    def has_kernel(self, notebook_id: str) -> bool:
        """Check if a kernel exists for the notebook."""
        return notebook_id in self._kernels

    def kernel_is_alive(self, notebook_id: str) -> bool:
        """Check if the notebook's kernel is running."""
        if notebook_id not in self._kernels:
            return False
        return self._kernels[notebook_id].is_alive

    def kernel_is_busy(self, notebook_id: str) -> bool:
        """Check if the notebook's kernel is busy executing."""
        if notebook_id not in self._kernels:
            return False
        return self._kernels[notebook_id].get_status().is_busy

    async def execute(
        self,
        notebook_id: str,
        source: str,
        options: ExecuteOptions,
        msg_id: str = ""
    ) -> AsyncIterator[KernelMessage]:
        """
        Run source in the notebook's kernel.

        Args:
            notebook_id: Notebook identifier
            source: Code to run
            options: Identity, cell snapshots and run flags
            msg_id: Id of the request, echoed by the worker

        Yields:
            Output and clear-output messages, then one ExecuteReply
        """
        kernel = self.get_kernel(notebook_id)
        async for message in kernel.execute_streaming(source, options, msg_id):
            yield message

    def interrupt(self, notebook_id: str) -> bool:
        """
        Interrupt the kernel for a notebook.

        Sends SIGINT to the kernel subprocess, which will
        raise KeyboardInterrupt in the running code.

        Returns:
            True if interrupt was sent, False if no kernel/not running
        """
        if notebook_id not in self._kernels:
            return False
        return self._kernels[notebook_id].interrupt()

    def restart(self, notebook_id: str) -> bool:
        """
        Restart the kernel for a notebook.

        This kills the subprocess and starts a new one,
        clearing all namespace state and dependency hints.

        Returns:
            True if restart succeeded
        """
        if notebook_id not in self._kernels:
            self._kernels[notebook_id] = SubprocessKernel(start_timeout=self._start_timeout)
            return True
        return self._kernels[notebook_id].restart()

    def shutdown(self, notebook_id: str):
        """Shutdown the kernel for a notebook."""
        if notebook_id in self._kernels:
            self._kernels[notebook_id].shutdown()
            del self._kernels[notebook_id]

    def shutdown_all(self):
        """Shutdown all kernels."""
        for notebook_id in list(self._kernels.keys()):
            self.shutdown(notebook_id)

    def __del__(self):
        """Cleanup on garbage collection."""
        self.shutdown_all()
