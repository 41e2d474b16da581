"""Cell data model with identity and dependency tracking."""
from dataclasses import dataclass, field
from enum import Enum
import math
import uuid
from typing import Optional, Any, List, Union


# Shown in the input prompt while a run is in flight; never persisted.
RUNNING_PROMPT = "*"


class CellType(str, Enum):
    """Closed set of cell variants."""
    CODE = "code"
    MARKDOWN = "markdown"
    RAW = "raw"


class Highlight(str, Enum):
    """Dependency highlight shown on a cell."""
    NONE = "none"
    UPSTREAM = "upstream"
    DOWNSTREAM = "downstream"


@dataclass
class CellOutput:
    """
    Represents a single output item from cell execution.

    Cells can have multiple outputs appended as execution progresses.
    """
    output_type: str  # 'stream', 'execute_result', 'error', 'display_data'
    content: Any = ""

    # Stream-specific
    stream_name: Optional[str] = None  # 'stdout' or 'stderr'

    # Error-specific
    ename: Optional[str] = None
    evalue: Optional[str] = None
    traceback: Optional[List[str]] = None

    # Display data metadata
    metadata: Optional[dict] = None

    @property
    def text(self) -> str:
        """Plain-text rendering of this output."""
        if self.output_type == 'error':
            if self.traceback:
                return ''.join(self.traceback)
            return f"{self.ename}: {self.evalue}"
        if isinstance(self.content, dict):
            return str(self.content.get('text/plain', ''))
        return str(self.content)


@dataclass(eq=False)
class Cell:
    """
    A single cell in a notebook.

    ``identity`` stays ``None`` until the cell is first executed (or restored
    from a record that carries one) and never changes afterwards.
    ``parent_identities`` lists the cells the backend reported as depending on
    this cell's last run.
    """
    cell_type: CellType = CellType.CODE
    source: str = ""
    identity: Optional[str] = None
    execution_count: Optional[Union[int, str]] = None
    edited: bool = True
    parent_identities: List[str] = field(default_factory=list)
    outputs: List[CellOutput] = field(default_factory=list)

    # Display flags (persisted, opaque to the dependency engine)
    trusted: bool = False
    collapsed: bool = False
    scroll_state: Union[bool, str] = "auto"

    # Runtime-only state
    key: str = field(default_factory=lambda: uuid.uuid4().hex[:8])  # DOM id, per session
    running: bool = False
    focused: bool = False
    highlight: Highlight = Highlight.NONE
    undo_history: List[str] = field(default_factory=list)

    @property
    def is_code(self) -> bool:
        return self.cell_type == CellType.CODE

    @property
    def has_finite_count(self) -> bool:
        """True when ``execution_count`` is a real counter, not a marker."""
        count = self.execution_count
        if isinstance(count, bool) or not isinstance(count, (int, float)):
            return False
        return math.isfinite(count)

    @property
    def output(self) -> str:
        """Concatenated text output for display."""
        return ''.join(out.text for out in self.outputs)

    def clear_outputs(self):
        """Drop every output of this cell."""
        self.outputs = []

    def append_output(self, output: CellOutput):
        """Append a new output (for streaming)."""
        self.outputs.append(output)

    def set_source(self, source: str, clear_history: bool = False):
        """Replace the source text.

        With ``clear_history`` the new text becomes the undo floor, otherwise
        the previous text is pushed onto the undo history.
        """
        if clear_history:
            self.undo_history = []
        elif source != self.source:
            self.undo_history.append(self.source)
        self.source = source

    def undo(self) -> bool:
        """Restore the previous source text. Returns False at the undo floor."""
        if not self.undo_history:
            return False
        self.source = self.undo_history.pop()
        self.edited = True
        return True
