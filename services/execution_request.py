"""Build the payload sent to the execution backend for one run."""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from document.cell import Cell, CellType
from document.identity import IdentityRegistry
from .kernel.messages import ExecuteOptions


def snapshot_cells(cells: Iterable[Cell]) -> List[Dict[str, Any]]:
    """Reduced state of every code cell, in document order."""
    return [
        {'identity': c.identity, 'source': c.source, 'edited': c.edited}
        for c in cells if c.cell_type == CellType.CODE
    ]


@dataclass
class ExecutionRequest:
    source: str
    requesting_identity: str
    cell_snapshots: List[Dict[str, Any]] = field(default_factory=list)
    stop_on_error: bool = True

    def options(self) -> ExecuteOptions:
        return ExecuteOptions(
            identity=self.requesting_identity,
            cell_snapshots=self.cell_snapshots,
            stop_on_error=self.stop_on_error,
        )


def build_request(cell: Cell, cells: Iterable[Cell], registry: IdentityRegistry,
                  stop_on_error: bool = True) -> Optional[ExecutionRequest]:
    """
    Build the request for running ``cell``.

    Returns None for empty or whitespace-only source. A cell without an
    identity gets one before the request is built, so its first run always
    has an identity even if the run later fails.
    """
    if not cell.source.strip():
        return None

    identity = registry.ensure(cell)
    return ExecutionRequest(
        source=cell.source,
        requesting_identity=identity,
        cell_snapshots=snapshot_cells(cells),
        stop_on_error=stop_on_error,
    )
