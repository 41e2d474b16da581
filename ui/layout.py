"""
Cellflow UI - Layout Components

Page layout and container components.
"""

from fasthtml.common import *
from typing import List
from .cells import CellView
from .controls import AddButtons


def _cell_items(nb, view=None) -> list:
    items = [AddButtons(0, nb.id)]
    for i, c in enumerate(nb.cells):
        items.extend([CellView(c, nb.id, view), AddButtons(i + 1, nb.id)])
    return items


def AllCells(nb, view=None):
    """Returns all cells wrapped in a container with ID.

    Args:
        nb: Notebook instance
        view: DependencyGraphView of the notebook, for dependency panels

    Returns:
        Div with id="cells" containing all cells
    """
    return Div(*_cell_items(nb, view), id="cells")


def NotebookPage(nb, notebook_list: List[str], view=None):
    """Render the complete notebook page.

    Args:
        nb: Notebook instance
        notebook_list: List of notebook IDs for the file list
        view: DependencyGraphView of the notebook

    Returns:
        Complete page with Titled wrapper
    """
    return Titled(
        f"{nb.title} - Cellflow",
        Div(
            Div(
                Div(Span(nb.title, cls="title"),
                    Span("●", cls="dirty-flag", id="dirty-flag",
                         style="" if nb.dirty else "display: none;", title="Unsaved changes")),
                Div(
                    Button("Restart", cls="btn btn-sm",
                           hx_post=f"/notebook/{nb.id}/kernel/restart", hx_target="#status", title="Restart kernel"),
                    Button("Interrupt", cls="btn btn-sm",
                           hx_post=f"/notebook/{nb.id}/kernel/interrupt", hx_target="#status",
                           title="Interrupt the running cell and abort queued runs"),
                    Button("Save", cls="btn btn-sm btn-save", id="save-btn",
                           hx_post=f"/notebook/{nb.id}/save", hx_target="#status", title="Save (Ctrl+S)"),
                    A("Export", cls="btn btn-sm", href=f"/notebook/{nb.id}/export", title="Download .ipynb"),
                    cls="toolbar"
                ),
                cls="header"
            ),
            Div(id="status"),
            Div(
                *[A(name, href=f"/notebook/{name}",
                    cls=f"file-item{' active' if name == nb.id else ''}")
                  for name in notebook_list],
                A("+ New", href="/notebook/new", cls="file-item"),
                cls="file-list"
            ) if notebook_list else None,
            AllCells(nb, view),
            Div(id="pager", cls="pager"),
            Script(f"window.NOTEBOOK_ID = '{nb.id}';"),
            Script(f"document.addEventListener('DOMContentLoaded', () => connectWebSocket('{nb.id}'));"),
            cls="container"
        )
    )
