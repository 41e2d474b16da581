"""Notebook data model."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List
import uuid

from .cell import Cell, CellType, Highlight
from .events import NotebookEvents, SET_DIRTY, HIGHLIGHT_CHANGED
from .identity import IdentityRegistry


@dataclass
class Notebook:
    """
    A notebook document containing cells.

    Owns the identity registry and event hub for its cells; both live exactly
    as long as the document does.
    """
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    title: str = "Untitled"
    cells: List[Cell] = field(default_factory=list)

    # File info
    path: Optional[Path] = None
    dirty: bool = False

    registry: IdentityRegistry = field(default_factory=IdentityRegistry, repr=False)
    events: NotebookEvents = field(default_factory=NotebookEvents, repr=False)

    def __post_init__(self):
        for cell in self.cells:
            if cell.identity is not None:
                self.registry.set(cell, cell.identity)

    def get_cell_index(self, cell: Cell) -> int:
        """Get index of cell, -1 if not found."""
        return next((i for i, c in enumerate(self.cells) if c is cell), -1)

    def get_cell(self, key: str) -> Optional[Cell]:
        """Find a cell by its view key."""
        return next((c for c in self.cells if c.key == key), None)

    def cells_with_identity(self, identity: str) -> List[Cell]:
        """Every cell carrying ``identity``, in document order."""
        return [c for c in self.cells if c.identity is not None and c.identity == identity]

    def identities(self) -> List[str]:
        """Identity pool used for completion and dependency resolution."""
        return self.registry.list_all(self.cells)

    def code_cells(self) -> List[Cell]:
        """Get all code cells."""
        return [c for c in self.cells if c.cell_type == CellType.CODE]

    def add_cell(self, cell_type: CellType = CellType.CODE, pos: Optional[int] = None) -> Cell:
        """Insert a new cell at ``pos`` (appended when omitted or out of range)."""
        cell = Cell(cell_type=cell_type)
        if pos is None or not 0 <= pos <= len(self.cells):
            self.cells.append(cell)
        else:
            self.cells.insert(pos, cell)
        self.set_dirty()
        return cell

    def delete_cell(self, cell: Cell) -> bool:
        """Remove a cell and its registry entry."""
        idx = self.get_cell_index(cell)
        if idx < 0:
            return False
        self.cells.pop(idx)
        self.registry.forget(cell)
        self.set_dirty()
        return True

    def move_cell(self, cell: Cell, direction: int) -> bool:
        """Move cell up (-1) or down (+1)."""
        idx = self.get_cell_index(cell)
        new_idx = idx + direction
        if 0 <= idx < len(self.cells) and 0 <= new_idx < len(self.cells):
            self.cells[idx], self.cells[new_idx] = self.cells[new_idx], self.cells[idx]
            self.set_dirty()
            return True
        return False

    def edit_source(self, cell: Cell, source: str):
        """
        Apply a text edit to ``cell``.

        The cell and every cell recorded as depending on it are flagged as
        edited, and any dependency highlight is cleared.
        """
        cell.set_source(source)
        self._mark_edited(cell)

    def undo_edit(self, cell: Cell) -> bool:
        """Step ``cell`` back one edit. Returns False at the undo floor."""
        if not cell.undo():
            return False
        self._mark_edited(cell)
        self.set_dirty()
        return True

    def _mark_edited(self, cell: Cell):
        cell.edited = True
        if cell.parent_identities:
            for other in self.cells:
                if other.identity in cell.parent_identities:
                    other.edited = True
        self.clear_highlights()

    def clear_highlights(self):
        """Remove upstream/downstream highlighting from every cell."""
        changed = False
        for cell in self.cells:
            if cell.highlight != Highlight.NONE:
                cell.highlight = Highlight.NONE
                changed = True
        if changed:
            self.events.trigger(HIGHLIGHT_CHANGED, {'notebook': self})

    def focus(self, cell: Cell):
        """Move focus to ``cell``."""
        for other in self.cells:
            other.focused = other is cell

    def set_dirty(self, value: bool = True):
        self.dirty = value
        self.events.trigger(SET_DIRTY, {'value': value})
