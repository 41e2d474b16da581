"""
Execution channel messages.

The dependency engine talks to the backend only through an
``ExecutionChannel``: submit a run, receive streamed output tagged with a
cell identity, then exactly one reply or one terminal error.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from document.cell import CellOutput


@dataclass
class ExecuteOptions:
    """Options sent alongside the source text of a run."""
    identity: Optional[str] = None
    cell_snapshots: List[Dict[str, Any]] = field(default_factory=list)
    stop_on_error: bool = True
    silent: bool = False
    store_history: bool = True


@dataclass
class OutputMessage:
    """One streamed output for the cell carrying ``identity``."""
    identity: Optional[str]
    output: CellOutput


@dataclass
class ClearOutputMessage:
    """Backend request to clear the output of the cell carrying ``identity``."""
    identity: Optional[str]
    wait: bool = False


@dataclass
class PayloadMessage:
    """Reply payload: ``set_next_input`` or ``page``."""
    source: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExecuteReply:
    """
    Terminal reply of a run.

    ``downstream`` lists cells whose earlier output consumed this cell's
    result; ``upstream`` lists cells this run consumed. Both are hints from
    the backend and may name cells that no longer exist.
    """
    execution_count: Optional[int]
    identity: Optional[str]
    upstream: List[str] = field(default_factory=list)
    downstream: List[str] = field(default_factory=list)
    status: str = "ok"
    payload: List[PayloadMessage] = field(default_factory=list)


@dataclass
class ExecutionCallbacks:
    """Callbacks a submitter registers for one run."""
    on_output: Optional[Callable[[OutputMessage], None]] = None
    on_clear_output: Optional[Callable[[ClearOutputMessage], None]] = None
    on_reply: Optional[Callable[[ExecuteReply], None]] = None
    on_error: Optional[Callable[[str], None]] = None
    on_set_next_input: Optional[Callable[[PayloadMessage], None]] = None
    on_page: Optional[Callable[[PayloadMessage], None]] = None


class ExecutionChannel(Protocol):
    """Opaque request/stream/reply channel to an execution backend."""

    def submit(self, source: str, callbacks: ExecutionCallbacks,
               options: ExecuteOptions) -> str:
        """Start a run and return its message id without waiting."""
        ...

    def clear_callbacks_for_msg(self, msg_id: str) -> None:
        """Stop delivering callbacks for ``msg_id``; the backend is not told."""
        ...
