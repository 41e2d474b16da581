"""
Cellflow UI - Cell Base Components

Contains CellView dispatcher and shared CellHeader component.
"""

from fasthtml.common import *

from document.cell import CellType
from ..controls import TypeSelect


def CellHeader(cell, notebook_id: str):
    """Shared header component for all cell types.

    Args:
        cell: Cell dataclass instance
        notebook_id: Parent notebook ID

    Returns:
        Div containing the cell header with badge, identity and actions
    """
    return Div(
        Div(
            Span(cell.cell_type.value.upper(), cls=f"cell-badge {cell.cell_type.value}"),
            Span(cell.identity, cls="cell-identity", title="Cell identity") if cell.identity else None,
            Span("edited", cls="cell-edited") if cell.is_code and cell.edited and cell.identity else None,
        ),
        Div(
            TypeSelect(cell.key, cell.cell_type, notebook_id),
            _run_button(cell, notebook_id),
            Button("↶", cls="btn btn-sm btn-icon",
                   hx_post=f"/notebook/{notebook_id}/cell/{cell.key}/undo",
                   hx_target=f"#cell-{cell.key}", hx_swap="outerHTML", title="Undo edit"),
            Button("↑", cls="btn btn-sm btn-icon",
                   hx_post=f"/notebook/{notebook_id}/cell/{cell.key}/move/up",
                   hx_target="#cells", hx_swap="outerHTML", title="Move up"),
            Button("↓", cls="btn btn-sm btn-icon",
                   hx_post=f"/notebook/{notebook_id}/cell/{cell.key}/move/down",
                   hx_target="#cells", hx_swap="outerHTML", title="Move down"),
            Button("×", cls="btn btn-sm btn-icon",
                   hx_delete=f"/notebook/{notebook_id}/cell/{cell.key}",
                   hx_target="#cells", hx_swap="outerHTML", title="Delete"),
            cls="cell-actions"
        ),
        cls="cell-header"
    )


def _run_button(cell, notebook_id: str):
    if not cell.is_code:
        return None
    return Button("▶", cls="btn btn-sm btn-run",
                  hx_post=f"/notebook/{notebook_id}/cell/{cell.key}/run",
                  hx_swap="none",
                  hx_vals=f"js:{{source: document.getElementById('source-{cell.key}')?.value || ''}}",
                  title="Run (Shift+Enter)")


def cell_classes(cell, *extra) -> str:
    """Class list shared by every cell variant."""
    parts = ["cell"]
    if cell.collapsed:
        parts.append("collapsed")
    if cell.focused:
        parts.append("focused")
    parts.extend(e for e in extra if e)
    return " ".join(parts)


def CellView(cell, notebook_id: str, view=None):
    """Dispatch to appropriate cell view based on cell type.

    Args:
        cell: Cell dataclass instance
        notebook_id: Parent notebook ID
        view: DependencyGraphView used to build code-cell dependency panels

    Returns:
        Complete cell Div with header and body
    """
    from .code_cell import CodeCellView
    from .markdown_cell import MarkdownCellView
    from .raw_cell import RawCellView

    views = {
        CellType.CODE: lambda c, nb: CodeCellView(c, nb, view.affordance_for(c) if view else None),
        CellType.MARKDOWN: MarkdownCellView,
        CellType.RAW: RawCellView,
    }
    return views[cell.cell_type](cell, notebook_id)
