"""
Cellflow UI - OOB (Out-of-Band) Components

Components with hx-swap-oob for WebSocket broadcasting.
HTMX will automatically swap these elements by ID when received via WebSocket.
"""

from fasthtml.common import *
from .cells import CellView
from .layout import _cell_items


def AllCellsOOB(nb, view=None):
    """Returns AllCells with hx-swap-oob for WebSocket broadcasting."""
    return Div(*_cell_items(nb, view), id="cells", hx_swap_oob="true")


def CellViewOOB(cell, notebook_id: str, view=None):
    """Returns CellView with hx-swap-oob for WebSocket broadcasting.

    Args:
        cell: Cell dataclass instance
        notebook_id: Parent notebook ID
        view: DependencyGraphView of the notebook

    Returns:
        Cell Div with hx-swap-oob="true" for automatic OOB swapping
    """
    cell_div = CellView(cell, notebook_id, view)
    # Recreate with OOB attribute since CellView returns a complete Div
    return Div(
        *cell_div.children,
        id=f"cell-{cell.key}",
        cls=cell_div.attrs.get('class', ''),
        hx_swap_oob="true",
        **{k: v for k, v in cell_div.attrs.items() if k not in ('id', 'class')}
    )


def DirtyFlagOOB(dirty: bool):
    """Unsaved-changes marker in the page header."""
    return Span("●", cls="dirty-flag", id="dirty-flag", hx_swap_oob="true",
                style="" if dirty else "display: none;", title="Unsaved changes")
