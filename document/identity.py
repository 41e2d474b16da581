"""
Cell identity registry.

The registry is the only party allowed to mint identities. Identities are
version-4 UUID strings; once a cell holds one it never changes, which keeps
dependency edges meaningful across runs and save/reload.
"""
import logging
import random
import uuid
import weakref
from typing import Iterable, List, Optional

from .cell import Cell

logger = logging.getLogger(__name__)


class _NewIdentity:
    def __repr__(self):
        return "NEW_IDENTITY"


# Pass to IdentityRegistry.set to mint a fresh identity
NEW_IDENTITY = _NewIdentity()


class IdentityRegistry:
    """
    Maps identity -> owning cell for one notebook.

    Entries are weak: a cell dropped from the notebook disappears from the
    registry once nothing else references it, and ``forget`` removes it
    explicitly.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng: Random source for deterministic identities (tests). When
                 omitted, ``uuid.uuid4`` is used.
        """
        self._rng = rng
        self._cells: "weakref.WeakValueDictionary[str, Cell]" = weakref.WeakValueDictionary()

    def assign_new(self) -> str:
        """Generate a new random identity (lowercase, 8-4-4-4-12 grouping)."""
        if self._rng is None:
            return str(uuid.uuid4())
        return str(uuid.UUID(int=self._rng.getrandbits(128), version=4))

    def set(self, cell: Cell, identity=NEW_IDENTITY) -> str:
        """
        Give ``cell`` an identity.

        ``NEW_IDENTITY`` mints a fresh one; any other value is adopted
        verbatim (restoring from a persisted record). A cell that already
        has a different identity keeps it.
        """
        if identity is NEW_IDENTITY:
            identity = self.assign_new()
        if cell.identity is not None and cell.identity != identity:
            logger.warning(f"Refusing to change identity {cell.identity} to {identity}")
            return cell.identity
        cell.identity = identity
        self._cells[identity] = cell
        return identity

    def ensure(self, cell: Cell) -> str:
        """Return the cell's identity, minting one when it has none."""
        if cell.identity is None:
            return self.set(cell, NEW_IDENTITY)
        if cell.identity not in self._cells:
            self._cells[cell.identity] = cell
        return cell.identity

    def lookup(self, identity: str) -> Optional[Cell]:
        """Return the live cell registered under ``identity``, if any."""
        return self._cells.get(identity)

    def forget(self, cell: Cell):
        """Drop the registry entry owned by ``cell``."""
        if cell.identity is not None and self._cells.get(cell.identity) is cell:
            del self._cells[cell.identity]

    def __contains__(self, identity: str) -> bool:
        return identity in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    @staticmethod
    def list_all(cells: Iterable[Cell]) -> List[str]:
        """Identities of every cell that has one, in cell order."""
        return [c.identity for c in cells if c.identity is not None]
