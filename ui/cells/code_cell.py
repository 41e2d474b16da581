"""
Cellflow UI - Code Cell Component

Renders code cells with an input prompt, editor, output and dependency panel.
"""

from fasthtml.common import *
from ..base import input_prompt, highlight_class, render_output
from .base import CellHeader, cell_classes
from .dependency import DependencyPanel


def CodeCellView(cell, notebook_id: str, affordance=None):
    """Render a code cell.

    Args:
        cell: Cell dataclass instance with cell_type CODE
        notebook_id: Parent notebook ID
        affordance: DependencyAffordance from the last run, if any

    Returns:
        Complete code cell Div with header, editor, output and dependencies
    """
    header = CellHeader(cell, notebook_id)

    outputs = [NotStr(render_output(o)) for o in cell.outputs]
    has_error = any(o.output_type == 'error' for o in cell.outputs)

    body = Div(
        Div(
            Pre(input_prompt(cell), cls="input-prompt"),
            Textarea(cell.source, name="source", id=f"source-{cell.key}",
                     cls="source code-source", spellcheck="false",
                     data_cell_key=cell.key,
                     hx_post=f"/notebook/{notebook_id}/cell/{cell.key}/source",
                     hx_trigger="blur changed", hx_swap="none"),
            cls="cell-input"
        ),
        Div(*outputs,
            id=f"output-{cell.key}",
            cls=f"cell-output{' error' if has_error else ''}"),
        DependencyPanel(cell, notebook_id, affordance),
        cls="cell-body"
    )

    running_cls = "running" if cell.running else ""
    return Div(header, body, id=f"cell-{cell.key}",
               cls=cell_classes(cell, running_cls, highlight_class(cell)),
               data_type=cell.cell_type.value)
