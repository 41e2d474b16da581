"""Cellflow UI - Raw Cell Component"""

from fasthtml.common import *
from .base import CellHeader, cell_classes


def RawCellView(cell, notebook_id: str):
    """Raw cells are shown and edited verbatim; they never run."""
    return Div(
        CellHeader(cell, notebook_id),
        Div(
            Textarea(cell.source, cls="source raw-source", name="source", id=f"source-{cell.key}",
                     hx_post=f"/notebook/{notebook_id}/cell/{cell.key}/source",
                     hx_trigger="blur changed", hx_swap="none"),
            cls="cell-body"
        ),
        id=f"cell-{cell.key}", cls=cell_classes(cell), data_type=cell.cell_type.value
    )
