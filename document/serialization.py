"""
Notebook serialization to/from .ipynb format.

Uses execnb.nbio for Jupyter notebook reading. Code cells carry their
identity at the top level of the cell record and the downstream identity
list in ``metadata.parent_identities``.
"""
from pathlib import Path
from typing import Optional, List, Dict, Any
import json
import logging

from execnb.nbio import read_nb

from .cell import Cell, CellType, CellOutput
from .notebook import Notebook

logger = logging.getLogger(__name__)


def _join(value) -> str:
    """nbformat allows multi-line strings stored as lists of lines."""
    return value if isinstance(value, str) else ''.join(value)


def _output_to_jupyter(out: CellOutput, execution_count) -> dict:
    """Convert a CellOutput to an nbformat output dict."""
    if out.output_type == 'stream':
        return {
            'output_type': 'stream',
            'name': out.stream_name or 'stdout',
            'text': out.content if isinstance(out.content, str) else ''.join(out.content)
        }
    if out.output_type == 'execute_result':
        data = out.content if isinstance(out.content, dict) else {'text/plain': str(out.content)}
        return {
            'output_type': 'execute_result',
            'data': data,
            'metadata': out.metadata or {},
            'execution_count': execution_count
        }
    if out.output_type == 'error':
        return {
            'output_type': 'error',
            'ename': out.ename or 'Error',
            'evalue': out.evalue or '',
            'traceback': out.traceback or []
        }
    return {
        'output_type': 'display_data',
        'data': out.content if isinstance(out.content, dict) else {'text/plain': str(out.content)},
        'metadata': out.metadata or {}
    }


def _jupyter_to_output(jout: dict) -> CellOutput:
    """Convert an nbformat output dict to a CellOutput."""
    out_type = jout.get('output_type', 'stream')

    if out_type == 'stream':
        return CellOutput(output_type='stream', content=_join(jout.get('text', '')),
                          stream_name=jout.get('name', 'stdout'))

    if out_type == 'error':
        return CellOutput(output_type='error',
                          ename=jout.get('ename', 'Error'),
                          evalue=jout.get('evalue', ''),
                          traceback=list(jout.get('traceback', [])))

    data = {mime: _join(value) if mime.startswith('text/') else value
            for mime, value in dict(jout.get('data', {})).items()}
    return CellOutput(output_type=out_type if out_type == 'execute_result' else 'display_data',
                      content=data,
                      metadata=dict(jout['metadata']) if jout.get('metadata') else None)


def _code_to_record(cell: Cell) -> dict:
    metadata: Dict[str, Any] = {
        'trusted': cell.trusted,
        'collapsed': cell.collapsed,
    }
    if cell.scroll_state != 'auto':
        metadata['scrolled'] = cell.scroll_state
    if cell.parent_identities:
        metadata['parent_identities'] = list(cell.parent_identities)

    # The running marker never reaches disk
    execution_count = cell.execution_count if cell.has_finite_count else None
    return {
        'cell_type': 'code',
        'source': cell.source,
        'execution_count': execution_count,
        'identity': cell.identity,
        'outputs': [_output_to_jupyter(o, execution_count) for o in cell.outputs],
        'metadata': metadata,
    }


def _text_to_record(cell: Cell) -> dict:
    record = {
        'cell_type': cell.cell_type.value,
        'source': cell.source,
        'metadata': {'collapsed': cell.collapsed} if cell.collapsed else {},
    }
    if cell.identity is not None:
        record['identity'] = cell.identity
    return record


_TO_RECORD = {
    CellType.CODE: _code_to_record,
    CellType.MARKDOWN: _text_to_record,
    CellType.RAW: _text_to_record,
}


def to_record(cell: Cell) -> dict:
    """Serialize a cell to its persisted record."""
    return _TO_RECORD[cell.cell_type](cell)


def from_record(record: dict, cell: Optional[Cell] = None) -> Cell:
    """
    Restore a cell from a persisted record.

    When ``cell`` is given it is updated in place. The code-cell fields are
    applied only for records of type ``code``; the identity is always adopted
    verbatim, never regenerated.
    """
    cell_type_str = record.get('cell_type', 'code')
    try:
        cell_type = CellType(cell_type_str)
    except ValueError:
        logger.warning(f"Unknown cell type {cell_type_str!r}, loading as raw")
        cell_type = CellType.RAW

    if cell is None:
        cell = Cell(cell_type=cell_type)

    source = _join(record.get('source', ''))
    metadata = record.get('metadata') or {}

    if cell_type != CellType.CODE:
        cell.set_source(source, clear_history=True)
        cell.identity = record.get('identity', cell.identity)
        cell.collapsed = metadata.get('collapsed', False)
        return cell

    # Restored text becomes the undo floor
    cell.set_source(source, clear_history=True)
    cell.identity = record.get('identity')
    cell.execution_count = record.get('execution_count')
    cell.trusted = metadata.get('trusted', False)
    cell.collapsed = metadata.get('collapsed', False)
    cell.scroll_state = metadata.get('scrolled', 'auto')
    cell.parent_identities = list(metadata.get('parent_identities', []))
    cell.outputs = [_jupyter_to_output(o) for o in record.get('outputs', [])]
    return cell


def notebook_to_dict(notebook: Notebook) -> dict:
    """Build the nbformat dictionary for a notebook."""
    return {
        'cells': [to_record(c) for c in notebook.cells],
        'metadata': {
            'title': notebook.title,
            'kernelspec': {
                'display_name': 'Python 3',
                'language': 'python',
                'name': 'python3'
            },
            'language_info': {
                'name': 'python',
            }
        },
        'nbformat': 4,
        'nbformat_minor': 5
    }


def load_notebook(path: Path) -> Notebook:
    """
    Load a .ipynb file into a Notebook object.

    Uses execnb.nbio.read_nb for parsing, then converts cells
    to internal format.
    """
    path = Path(path)

    if not path.exists():
        return Notebook(
            id=path.stem,
            title=path.stem,
            cells=[Cell(cell_type=CellType.CODE)],
            path=path
        )

    nb_data = read_nb(path)
    cells: List[Cell] = [from_record(jcell) for jcell in nb_data.cells]
    metadata = nb_data.metadata or {}

    logger.info(f"Loaded {len(cells)} cells from {path}")
    return Notebook(
        id=path.stem,
        title=metadata.get('title', path.stem),
        cells=cells,
        path=path,
    )


def save_notebook(notebook: Notebook, path: Optional[Path] = None):
    """Save a Notebook to .ipynb format."""
    path = Path(path or notebook.path)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(notebook_to_dict(notebook), f, indent=1, ensure_ascii=False)

    notebook.path = path
    notebook.set_dirty(False)


def create_new_notebook(path: Path) -> Notebook:
    """Create a new empty notebook."""
    notebook = Notebook(
        id=path.stem,
        title=path.stem,
        cells=[Cell(cell_type=CellType.CODE)],
        path=path
    )
    save_notebook(notebook, path)
    return notebook
