"""Kernel services - Code execution with streaming, queue and dependency hints."""
from .kernel_service import KernelService
from .execution_queue import ExecutionQueue, NotebookChannel
from .messages import (
    ExecuteOptions, ExecuteReply, ExecutionCallbacks, ExecutionChannel,
    OutputMessage, ClearOutputMessage, PayloadMessage,
)

__all__ = [
    'KernelService', 'ExecutionQueue', 'NotebookChannel',
    'ExecuteOptions', 'ExecuteReply', 'ExecutionCallbacks', 'ExecutionChannel',
    'OutputMessage', 'ClearOutputMessage', 'PayloadMessage',
]
