"""
Cellflow UI - Cell Components

Components for rendering different cell types (code, markdown, raw).
"""

from .base import CellView, CellHeader
from .code_cell import CodeCellView
from .markdown_cell import MarkdownCellView
from .raw_cell import RawCellView
from .dependency import DependencyPanel

__all__ = [
    'CellView',
    'CellHeader',
    'CodeCellView',
    'MarkdownCellView',
    'RawCellView',
    'DependencyPanel',
]
