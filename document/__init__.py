"""Document layer - Data models for notebook, cells and identities."""
from .cell import Cell, CellType, CellOutput, Highlight, RUNNING_PROMPT
from .events import NotebookEvents
from .identity import IdentityRegistry, NEW_IDENTITY
from .notebook import Notebook
from .serialization import (
    to_record, from_record, load_notebook, save_notebook, create_new_notebook
)

__all__ = [
    'Cell', 'CellType', 'CellOutput', 'Highlight', 'RUNNING_PROMPT',
    'NotebookEvents',
    'IdentityRegistry', 'NEW_IDENTITY',
    'Notebook',
    'to_record', 'from_record', 'load_notebook', 'save_notebook', 'create_new_notebook'
]
