"""
Cellflow UI - Markdown Cell Component

Renders markdown cells with preview/edit toggle.
"""

from fasthtml.common import *
from .base import CellHeader, cell_classes


def MarkdownCellView(cell, notebook_id: str):
    """Render a markdown cell with preview.

    Args:
        cell: Cell dataclass instance with cell_type MARKDOWN
        notebook_id: Parent notebook ID

    Returns:
        Complete markdown cell Div with header and preview
    """
    header = CellHeader(cell, notebook_id)

    body = Div(
        # Hidden textarea for editing (shown on double-click)
        Textarea(cell.source, cls="source", name="source", id=f"source-{cell.key}",
                 placeholder="# Markdown notes...",
                 hx_post=f"/notebook/{notebook_id}/cell/{cell.key}/source",
                 hx_trigger="blur changed", hx_swap="none",
                 style="display: none;",
                 onblur=f"switchToPreview('{cell.key}')"),
        Div(
            Div(id=f"preview-{cell.key}", cls="md-preview", data_cell_key=cell.key),
            cls="cell-input"
        ),
        Div("Double-click to edit | Escape to finish", cls="edit-hint"),
        cls="cell-body"
    )

    return Div(header, body, id=f"cell-{cell.key}", cls=cell_classes(cell),
               data_type=cell.cell_type.value)
