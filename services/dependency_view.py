"""
Dependency affordances and bulk actions.

After a run, the backend reports which cells consumed the cell's result
(downstream) and which cells the run consumed (upstream). Downstream
identities accumulate on ``Cell.parent_identities``; upstream identities are
kept only for display. Both are untrusted hints: identities without a live
cell are skipped and cycles are harmless.
"""
import logging
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from document.cell import Cell, Highlight
from document.events import HIGHLIGHT_CHANGED
from document.notebook import Notebook

logger = logging.getLogger(__name__)

DEFAULT_MAX_VISIBLE_DOWNSTREAM = 3


class DependencyAction(str, Enum):
    SELECT_ALL = "select_all"
    EXECUTE_ALL = "execute_all"
    EXECUTE_ONE = "execute_one"
    SHOW_UPSTREAM = "show_upstream"


@dataclass
class DependencyCommand:
    """A user action on a cell's dependency panel."""
    action: DependencyAction
    cell: Cell
    identity: Optional[str] = None


@dataclass
class DependencyAffordance:
    """What the dependency panel of one cell shows."""
    downstream: List[str] = field(default_factory=list)
    upstream: List[str] = field(default_factory=list)
    max_visible: int = DEFAULT_MAX_VISIBLE_DOWNSTREAM

    @property
    def visible_downstream(self) -> List[str]:
        """Downstream identities offered as individual actions."""
        return self.downstream[:self.max_visible]

    @property
    def hidden_count(self) -> int:
        return max(len(self.downstream) - self.max_visible, 0)

    @property
    def has_downstream(self) -> bool:
        return bool(self.downstream)

    @property
    def has_upstream(self) -> bool:
        return bool(self.upstream)


class DependencyGraphView:
    """
    Per-notebook view over backend-reported dependency edges.

    Args:
        notebook: Notebook whose cells are resolved and highlighted
        execute: Callable that runs one cell (usually ``ResultDispatcher.execute``)
        max_visible_downstream: How many downstream identities get their own entry
    """

    def __init__(self, notebook: Notebook, execute: Callable[[Cell], object],
                 max_visible_downstream: int = DEFAULT_MAX_VISIBLE_DOWNSTREAM):
        self.notebook = notebook
        self.execute = execute
        self.max_visible_downstream = max_visible_downstream
        self._upstream: "weakref.WeakKeyDictionary[Cell, List[str]]" = weakref.WeakKeyDictionary()

    def update(self, cell: Cell, upstream: List[str],
               downstream: List[str]) -> Optional[DependencyAffordance]:
        """
        Record the edges of a finished run of ``cell``.

        An empty downstream list never erases what the cell already knows.
        Returns the affordance to show, or None when there is nothing to show.
        """
        if downstream:
            cell.parent_identities = list(downstream)
        self._upstream[cell] = list(upstream or [])
        return self.affordance_for(cell)

    def affordance_for(self, cell: Cell) -> Optional[DependencyAffordance]:
        upstream = self._upstream.get(cell, [])
        if not cell.parent_identities and not upstream:
            return None
        return DependencyAffordance(
            downstream=list(cell.parent_identities),
            upstream=list(upstream),
            max_visible=self.max_visible_downstream,
        )

    def upstream_of(self, cell: Cell) -> List[str]:
        return list(self._upstream.get(cell, []))

    def _cells_in(self, identities: List[str]) -> List[Cell]:
        # Document order, not the order of the identity list
        wanted = set(identities)
        return [c for c in self.notebook.cells if c.identity is not None and c.identity in wanted]

    def _mark(self, cells: List[Cell], highlight: Highlight):
        if not cells:
            return
        for other in self.notebook.cells:
            other.focused = any(other is c for c in cells)
        for other in cells:
            other.highlight = highlight
        self.notebook.events.trigger(HIGHLIGHT_CHANGED, {'notebook': self.notebook, 'cells': cells})

    def select_all_downstream(self, cell: Cell) -> List[Cell]:
        """Focus and highlight every live downstream cell, marking the notebook dirty."""
        self.notebook.clear_highlights()
        targets = self._cells_in(cell.parent_identities)
        self._mark(targets, Highlight.DOWNSTREAM)
        if targets:
            self.notebook.set_dirty()
        return targets

    def execute_all_downstream(self, cell: Cell) -> List[Cell]:
        """Select every live downstream cell and run each in document order."""
        targets = self.select_all_downstream(cell)
        for target in targets:
            self.execute(target)
        return targets

    def execute_one_downstream(self, cell: Cell, identity: str) -> List[Cell]:
        """Run the cell carrying ``identity`` when it is one of ``cell``'s downstream cells."""
        self.notebook.clear_highlights()
        if identity not in cell.parent_identities:
            logger.info(f"{identity} is not downstream of {cell.identity}")
            return []
        targets = self._cells_in([identity])
        self._mark(targets, Highlight.DOWNSTREAM)
        if targets:
            self.notebook.set_dirty()
        for target in targets:
            self.execute(target)
        return targets

    def show_upstream(self, cell: Cell) -> List[Cell]:
        """Highlight the cells the last run consumed. Nothing runs and the notebook stays clean."""
        self.notebook.clear_highlights()
        targets = self._cells_in(self.upstream_of(cell))
        self._mark(targets, Highlight.UPSTREAM)
        return targets

    def handle(self, command: DependencyCommand) -> List[Cell]:
        """Dispatch a panel command to its action."""
        if command.action == DependencyAction.EXECUTE_ONE:
            return self.execute_one_downstream(command.cell, command.identity)
        handler = {
            DependencyAction.SELECT_ALL: self.select_all_downstream,
            DependencyAction.EXECUTE_ALL: self.execute_all_downstream,
            DependencyAction.SHOW_UPSTREAM: self.show_upstream,
        }[command.action]
        return handler(command.cell)
