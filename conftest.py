"""Shared fixtures for the cellflow tests."""
import random
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from document.cell import Cell, CellType
from document.identity import IdentityRegistry
from document.notebook import Notebook


class FakeChannel:
    """Execution channel that records submissions instead of running them."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.submitted = []
        self.cleared = []
        self._counter = 0

    def submit(self, source, callbacks, options):
        if self.fail:
            raise ConnectionError("backend gone")
        self._counter += 1
        msg_id = f"msg-{self._counter}"
        self.submitted.append((msg_id, source, callbacks, options))
        return msg_id

    def clear_callbacks_for_msg(self, msg_id):
        self.cleared.append(msg_id)

    def last(self):
        return self.submitted[-1]

    def callbacks_for(self, msg_id):
        return next(cb for mid, _, cb, _ in self.submitted if mid == msg_id)


@pytest.fixture
def registry():
    return IdentityRegistry(rng=random.Random(0))


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def make_notebook(registry):
    """Build a notebook from (cell_type, source) pairs or plain code sources."""
    def _make(*cells):
        built = []
        for item in cells:
            if isinstance(item, Cell):
                built.append(item)
            elif isinstance(item, tuple):
                built.append(Cell(cell_type=item[0], source=item[1]))
            else:
                built.append(Cell(cell_type=CellType.CODE, source=item))
        return Notebook(id="test", title="test", cells=built, registry=registry)
    return _make
