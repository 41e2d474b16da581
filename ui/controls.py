"""
Cellflow UI - Control Components

Button, select, and interactive control components.
"""

from fasthtml.common import *

from document.cell import CellType


def TypeSelect(cell_key: str, current: CellType, nb_id: str):
    """Cell type selector dropdown.

    Args:
        cell_key: The cell's view key
        current: Current cell type
        nb_id: Parent notebook ID

    Returns:
        Select element that changes cell type on selection
    """
    return Select(
        *[Option(t.value, value=t.value, selected=current == t) for t in CellType],
        cls="type-select",
        name="cell_type",
        hx_post=f"/notebook/{nb_id}/cell/{cell_key}/type",
        hx_target=f"#cell-{cell_key}",
        hx_swap="outerHTML"
    )


def AddButtons(pos: int, nb_id: str):
    """Buttons for adding new cells at a position.

    Args:
        pos: Position index for the new cell
        nb_id: Parent notebook ID

    Returns:
        Div containing add cell buttons
    """
    return Div(
        *[Button(f"+ {t.value.capitalize()}", cls="btn btn-sm",
                 hx_post=f"/notebook/{nb_id}/cell/add?pos={pos}&type={t.value}",
                 hx_target="#cells", hx_swap="outerHTML")
          for t in CellType],
        cls="add-row"
    )
