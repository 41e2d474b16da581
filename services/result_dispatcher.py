"""
Run cells and route their results back into the notebook.

Each run is tracked as a ``PendingRun`` owned by the dispatcher of one
notebook. Streamed outputs carry the identity of the cell that produced
them; every cell carrying that identity receives the output, and each
identity's previous output is cleared once per run.
"""
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, Optional, Set

from document.cell import Cell, RUNNING_PROMPT
from document.events import CELL_EXECUTED, CELL_UPDATED, OPEN_PAGER, SET_NEXT_INPUT
from document.notebook import Notebook
from .dependency_view import DependencyGraphView, DEFAULT_MAX_VISIBLE_DOWNSTREAM
from .execution_request import build_request
from .kernel.messages import (
    ClearOutputMessage, ExecuteReply, ExecutionCallbacks, ExecutionChannel,
    OutputMessage, PayloadMessage,
)

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class PendingRun:
    """One in-flight run of ``cell``."""
    cell: Cell
    msg_id: Optional[str] = None
    cleared_identities: Set[str] = field(default_factory=set)


class ResultDispatcher:
    """
    Submits runs for one notebook and applies what comes back.

    Args:
        notebook: The notebook whose cells are run and updated
        channel: Execution channel; runs are refused while it is None
        stop_on_error: Default for runs that do not say otherwise
        max_visible_downstream: Passed to the dependency view
    """

    def __init__(self, notebook: Notebook, channel: Optional[ExecutionChannel] = None,
                 stop_on_error: bool = True,
                 max_visible_downstream: int = DEFAULT_MAX_VISIBLE_DOWNSTREAM):
        self.notebook = notebook
        self.channel = channel
        self.stop_on_error = stop_on_error
        self.view = DependencyGraphView(notebook, self.execute, max_visible_downstream)
        self._runs: Dict[str, PendingRun] = {}

    def attach(self, channel: Optional[ExecutionChannel]):
        """Attach (or with None, detach) the execution channel."""
        self.channel = channel

    def pending_for(self, cell: Cell) -> Optional[PendingRun]:
        return next((run for run in self._runs.values() if run.cell is cell), None)

    def detach(self, cell: Cell) -> bool:
        """Stop listening to the cell's in-flight run. The backend keeps computing."""
        run = self.pending_for(cell)
        if run is None:
            return False
        del self._runs[run.msg_id]
        if self.channel is not None:
            self.channel.clear_callbacks_for_msg(run.msg_id)
        return True

    def execute(self, cell: Cell, stop_on_error: Optional[bool] = None) -> Optional[str]:
        """
        Run ``cell``.

        Returns:
            The message id of the run, or None when nothing was submitted
            (no channel, not a code cell, empty source or a failed submit).
        """
        if not cell.is_code:
            return None
        if self.channel is None:
            logger.warning("No execution backend attached, refusing to run cell")
            return None

        cell.clear_outputs()
        self.detach(cell)

        stop = self.stop_on_error if stop_on_error is None else stop_on_error
        request = build_request(cell, self.notebook.cells, self.notebook.registry, stop)
        if request is None:
            cell.running = False
            cell.execution_count = None
            self._updated(cell)
            return None

        previous_count = cell.execution_count
        cell.execution_count = RUNNING_PROMPT
        cell.running = True

        run = PendingRun(cell=cell)
        callbacks = ExecutionCallbacks(
            on_output=partial(self._on_output, run),
            on_clear_output=partial(self._on_clear_output, run),
            on_reply=partial(self._on_reply, run),
            on_error=partial(self._on_error, run),
            on_set_next_input=partial(self._on_set_next_input, run),
            on_page=partial(self._on_page, run),
        )

        try:
            msg_id = self.channel.submit(request.source, callbacks, request.options())
        except Exception:
            logger.exception(f"Failed to submit cell {request.requesting_identity}")
            cell.running = False
            cell.execution_count = previous_count
            self._updated(cell)
            return None

        cell.edited = False
        run.msg_id = msg_id
        self._runs[msg_id] = run
        self.notebook.events.trigger(CELL_EXECUTED, {'cell': cell})
        self._updated(cell)
        return msg_id

    def _live(self, run: PendingRun) -> bool:
        return run.msg_id is not None and self._runs.get(run.msg_id) is run

    def _updated(self, cell: Cell, **extra):
        self.notebook.events.trigger(CELL_UPDATED, {'cell': cell, **extra})

    def _on_output(self, run: PendingRun, msg: OutputMessage):
        if not self._live(run) or msg.identity is None:
            return
        targets = self.notebook.cells_with_identity(msg.identity)
        if msg.identity not in run.cleared_identities:
            run.cleared_identities.add(msg.identity)
            for target in targets:
                target.clear_outputs()
        for target in targets:
            target.append_output(msg.output)
            self._updated(target)

    def _on_clear_output(self, run: PendingRun, msg: ClearOutputMessage):
        if not self._live(run) or msg.identity is None:
            return
        for target in self.notebook.cells_with_identity(msg.identity):
            target.clear_outputs()
            self._updated(target)

    def _on_reply(self, run: PendingRun, reply: ExecuteReply):
        if not self._live(run):
            return
        if not isinstance(reply, ExecuteReply):
            logger.warning(f"Malformed reply for run {run.msg_id}: {reply!r}")
            return

        cell = run.cell
        del self._runs[run.msg_id]
        if reply.identity is not None and reply.identity != cell.identity:
            logger.warning(f"Reply for {reply.identity} arrived on cell {cell.identity}")

        cell.execution_count = reply.execution_count
        affordance = self.view.update(cell, reply.upstream, reply.downstream)
        cell.running = False
        self.notebook.set_dirty()
        self._updated(cell, affordance=affordance)

    def _on_error(self, run: PendingRun, reason: str):
        if not self._live(run):
            return
        del self._runs[run.msg_id]
        cell = run.cell
        logger.warning(f"Run {run.msg_id} of cell {cell.identity} ended without a reply: {reason}")
        cell.running = False
        cell.execution_count = None
        self._updated(cell)

    def _on_set_next_input(self, run: PendingRun, payload: PayloadMessage):
        if not self._live(run):
            return
        self.notebook.events.trigger(SET_NEXT_INPUT, {
            'cell': run.cell,
            'text': payload.data.get('text', ''),
            'replace': payload.data.get('replace', False),
        })

    def _on_page(self, run: PendingRun, payload: PayloadMessage):
        if not self._live(run):
            return
        self.notebook.events.trigger(OPEN_PAGER, {
            'cell': run.cell,
            'data': payload.data.get('data', {}),
            'start': payload.data.get('start', 0),
        })
