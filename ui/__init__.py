"""
Cellflow UI Package

FastHTML UI components for the Cellflow notebook interface.

Usage:
    from ui import CellView, NotebookPage, AllCells, AddButtons

    # Or import specific components
    from ui.cells import CodeCellView, MarkdownCellView, RawCellView, DependencyPanel
    from ui.controls import TypeSelect
    from ui.layout import NotebookPage, AllCells
    from ui.oob import AllCellsOOB, CellViewOOB
"""

# Base utilities
from .base import input_prompt, render_output, render_mime_bundle, ansi_to_html

# Cell components
from .cells import CellView, CellHeader, CodeCellView, MarkdownCellView, RawCellView, DependencyPanel

# Controls
from .controls import TypeSelect, AddButtons

# Layout
from .layout import NotebookPage, AllCells

# OOB (Out-of-Band) components for WebSocket
from .oob import AllCellsOOB, CellViewOOB, DirtyFlagOOB

__all__ = [
    # Base
    'input_prompt',
    'render_output',
    'render_mime_bundle',
    'ansi_to_html',
    # Cells
    'CellView',
    'CellHeader',
    'CodeCellView',
    'MarkdownCellView',
    'RawCellView',
    'DependencyPanel',
    # Controls
    'TypeSelect',
    'AddButtons',
    # Layout
    'NotebookPage',
    'AllCells',
    # OOB
    'AllCellsOOB',
    'CellViewOOB',
    'DirtyFlagOOB',
]
