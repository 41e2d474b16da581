"""
Cellflow - dependency-aware notebook with FastHTML

Features:
- Three cell types: Code, Markdown, Raw
- Stable cell identities that survive save/reload
- Kernel-reported upstream/downstream dependencies with one-click re-execution
- Context completion from cell tokens and cell identities
- Python kernel in a subprocess with streaming output and hard interrupt
- WebSocket broadcast of cell updates to every open client
- .ipynb load/save
"""

from fasthtml.common import *
import uuid, json, asyncio, logging
from typing import Optional, List, Dict, Any
from pathlib import Path

from document import Cell, CellType, Notebook, load_notebook, create_new_notebook
from document import save_notebook as write_notebook
from document.events import CELL_UPDATED, SET_DIRTY, HIGHLIGHT_CHANGED, OPEN_PAGER, SET_NEXT_INPUT
from document.serialization import notebook_to_dict
from services import ResultDispatcher, DependencyAction, DependencyCommand, token_index
from services.kernel import KernelService, ExecutionQueue
from services.cellflow_config import load_config, print_config_status
from ui import (
    NotebookPage, AllCells, CellView, AllCellsOOB, CellViewOOB, DirtyFlagOOB,
    render_mime_bundle,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

# Load configuration (creates cellflow_config.json with defaults if it doesn't exist)
CELLFLOW_CONFIG = load_config()

NOTEBOOKS_DIR = CELLFLOW_CONFIG.notebooks_path
NOTEBOOKS_DIR.mkdir(parents=True, exist_ok=True)

# KernelService manages subprocess kernels per notebook with:
# - Real-time streaming output (stdout/stderr as they happen)
# - Hard interrupt via SIGINT (can stop tight loops, C extensions)
# - Dependency hints in every execute reply
kernel_service = KernelService(start_timeout=CELLFLOW_CONFIG.kernel_start_timeout)
execution_queue = ExecutionQueue(kernel_service)

notebooks: Dict[str, Notebook] = {}
dispatchers: Dict[str, ResultDispatcher] = {}
ws_connections: Dict[str, List[Any]] = {}

# Keeps broadcast tasks alive until they finish
_background_tasks: set = set()


# ============================================================================
# Notebook registry
# ============================================================================

def notebook_path(nb_id: str) -> Path:
    return NOTEBOOKS_DIR / f"{nb_id}.ipynb"


def get_notebook(nb_id: str) -> Notebook:
    """Get a notebook, loading it from disk (or starting an empty one) on first use."""
    if nb_id not in notebooks:
        nb = load_notebook(notebook_path(nb_id))
        notebooks[nb_id] = nb
        _wire_events(nb)
    return notebooks[nb_id]


def get_dispatcher(nb_id: str) -> ResultDispatcher:
    """Get or create the dispatcher running cells of a notebook."""
    if nb_id not in dispatchers:
        dispatchers[nb_id] = ResultDispatcher(
            get_notebook(nb_id),
            channel=execution_queue.channel(nb_id),
            stop_on_error=CELLFLOW_CONFIG.stop_on_error,
            max_visible_downstream=CELLFLOW_CONFIG.max_visible_downstream,
        )
    return dispatchers[nb_id]


def get_view(nb_id: str):
    return get_dispatcher(nb_id).view


def list_notebooks() -> List[str]:
    return sorted(p.stem for p in NOTEBOOKS_DIR.glob("*.ipynb"))


def find_cell(nb_id: str, key: str) -> Optional[Cell]:
    return get_notebook(nb_id).get_cell(key)


# ============================================================================
# Collaborative WebSocket Broadcasting
# ============================================================================

async def broadcast_to_notebook(nb_id: str, component):
    """Broadcast an HTML component to all WebSocket connections for a notebook.

    The JavaScript client processes hx-swap-oob attributes to update the DOM.
    Connections that fail to receive are dropped.
    """
    connections = ws_connections.get(nb_id)
    if not connections:
        return

    # FastHTML's str() on components returns the ID, not HTML
    html_str = to_xml(component)

    alive = []
    for send in connections:
        try:
            await send(html_str)
            alive.append(send)
        except Exception as e:
            logger.info(f"Dropping dead connection for {nb_id}: {e}")
    ws_connections[nb_id] = alive


def schedule_broadcast(nb_id: str, component):
    """Send a component from synchronous code running on the event loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug(f"No event loop, skipping broadcast for {nb_id}")
        return
    task = loop.create_task(broadcast_to_notebook(nb_id, component))
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)


def _wire_events(nb: Notebook):
    """Turn notebook events into OOB swaps for connected clients."""
    def on_cell_updated(data):
        cell = data.get('cell')
        if cell is not None and nb.get_cell_index(cell) >= 0:
            schedule_broadcast(nb.id, CellViewOOB(cell, nb.id, get_view(nb.id)))

    def on_dirty(data):
        schedule_broadcast(nb.id, DirtyFlagOOB(data.get('value', True)))

    def on_highlight(data):
        schedule_broadcast(nb.id, AllCellsOOB(nb, get_view(nb.id)))

    def on_pager(data):
        html = render_mime_bundle(data.get('data', {}))
        schedule_broadcast(nb.id, Div(NotStr(html), id="pager", cls="pager open", hx_swap_oob="true"))

    def on_next_input(data):
        cell = data.get('cell')
        text = data.get('text', '')
        if data.get('replace') and cell is not None:
            nb.edit_source(cell, text)
        else:
            pos = nb.get_cell_index(cell) + 1 if cell is not None else None
            new_cell = nb.add_cell(CellType.CODE, pos)
            new_cell.set_source(text, clear_history=True)
        schedule_broadcast(nb.id, AllCellsOOB(nb, get_view(nb.id)))

    nb.events.on(CELL_UPDATED, on_cell_updated)
    nb.events.on(SET_DIRTY, on_dirty)
    nb.events.on(HIGHLIGHT_CHANGED, on_highlight)
    nb.events.on(OPEN_PAGER, on_pager)
    nb.events.on(SET_NEXT_INPUT, on_next_input)


# ============================================================================
# CSS
# ============================================================================

css = """
:root {
    --bg-primary: #0d1117;
    --bg-secondary: #161b22;
    --bg-cell: #21262d;
    --bg-input: #0d1117;
    --text-primary: #c9d1d9;
    --text-muted: #8b949e;
    --accent-blue: #58a6ff;
    --accent-green: #3fb950;
    --accent-purple: #bc8cff;
    --accent-orange: #d29922;
    --accent-red: #f85149;
    --border: #30363d;
}

* { box-sizing: border-box; margin: 0; padding: 0; }

body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    background: var(--bg-primary);
    color: var(--text-primary);
    line-height: 1.6;
}

.container { max-width: 960px; margin: 0 auto; padding: 20px; }

.header {
    display: flex; justify-content: space-between; align-items: center;
    padding: 12px 0; border-bottom: 1px solid var(--border); margin-bottom: 20px;
}
.title { font-size: 1.3rem; font-weight: 600; }
.dirty-flag { color: var(--accent-orange); margin-left: 8px; }
.toolbar { display: flex; gap: 8px; align-items: center; flex-wrap: wrap; }

.btn {
    padding: 6px 12px; border: 1px solid var(--border); border-radius: 6px;
    background: var(--bg-secondary); color: var(--text-primary);
    cursor: pointer; font-size: 0.85rem; text-decoration: none;
    display: inline-flex; align-items: center; gap: 4px;
}
.btn:hover { background: var(--bg-cell); border-color: var(--accent-blue); }
.btn-sm { padding: 4px 8px; font-size: 0.75rem; }
.btn-icon { padding: 4px 6px; font-size: 0.9rem; }
.btn-run { background: var(--accent-green); border-color: var(--accent-green); color: #000; }
.btn-save { background: var(--accent-blue); border-color: var(--accent-blue); }

.file-list { display: flex; gap: 8px; flex-wrap: wrap; margin-bottom: 16px; }
.file-item { color: var(--text-muted); text-decoration: none; font-size: 0.85rem; }
.file-item.active { color: var(--accent-blue); }

.add-row { display: flex; gap: 6px; justify-content: center; opacity: 0.3; margin: 4px 0; }
.add-row:hover { opacity: 1; }

.cell {
    background: var(--bg-cell); border: 1px solid var(--border);
    border-left: 3px solid transparent; border-radius: 8px; margin: 6px 0;
}
.cell.focused { border-color: var(--accent-blue); }
.cell.running { border-left-color: var(--accent-orange); }
.cell.downstream { border-left-color: var(--accent-purple); box-shadow: 0 0 0 1px var(--accent-purple); }
.cell.upstream { border-left-color: var(--accent-green); box-shadow: 0 0 0 1px var(--accent-green); }
.cell.collapsed .cell-body { display: none; }

.cell-header {
    display: flex; justify-content: space-between; align-items: center;
    padding: 4px 10px; border-bottom: 1px solid var(--border); font-size: 0.75rem;
}
.cell-badge { font-weight: 600; margin-right: 8px; }
.cell-badge.code { color: var(--accent-green); }
.cell-badge.markdown { color: var(--accent-blue); }
.cell-badge.raw { color: var(--text-muted); }
.cell-identity { font-family: monospace; color: var(--text-muted); }
.cell-edited { color: var(--accent-orange); margin-left: 6px; }
.cell-actions { display: flex; gap: 4px; }
.type-select {
    padding: 2px 6px; background: var(--bg-secondary); border: 1px solid var(--border);
    border-radius: 4px; color: var(--text-primary); font-size: 0.75rem;
}

.cell-body { padding: 8px 10px; }
.cell-input { display: flex; gap: 8px; }
.input-prompt { color: var(--accent-blue); font-family: monospace; font-size: 0.85rem; user-select: none; }
.source {
    width: 100%; min-height: 2.5em; resize: vertical; padding: 6px;
    background: var(--bg-input); color: var(--text-primary);
    border: 1px solid var(--border); border-radius: 4px;
    font-family: 'SF Mono', Menlo, Consolas, monospace; font-size: 0.85rem;
}
.cell-output { margin-top: 6px; font-family: monospace; font-size: 0.85rem; }
.cell-output pre { white-space: pre-wrap; }
.cell-output .stderr, .error-output { color: var(--accent-red); }
.edit-hint { color: var(--text-muted); font-size: 0.7rem; }

.dependency-panel {
    margin-top: 8px; padding: 6px 8px; border-top: 1px dashed var(--border); font-size: 0.8rem;
}
.dep-title { color: var(--text-muted); }
.dep-list { list-style: none; }
.dep-list li { display: flex; gap: 6px; align-items: center; }
.dep-identity { font-family: monospace; }
.dep-more { color: var(--text-muted); }
.dep-actions { display: flex; gap: 6px; margin-top: 4px; }
.upstream-dep { margin-top: 4px; }

.completions {
    position: absolute; z-index: 10; list-style: none; max-height: 200px; overflow-y: auto;
    background: var(--bg-secondary); border: 1px solid var(--border); border-radius: 4px;
    font-family: monospace; font-size: 0.8rem;
}
.completions li { padding: 2px 8px; cursor: pointer; }
.completions li.active, .completions li:hover { background: var(--accent-blue); color: #000; }

.pager { display: none; margin-top: 16px; padding: 10px; border: 1px solid var(--border); border-radius: 8px; }
.pager.open { display: block; }
.status.success { color: var(--accent-green); }
.status.error { color: var(--accent-red); }
"""

# ============================================================================
# JavaScript
# ============================================================================

js = """
let ws = null;

function connectWebSocket(notebookId) {
    const protocol = window.location.protocol === 'https:' ? 'wss:' : 'ws:';
    ws = new WebSocket(`${protocol}//${window.location.host}/ws/${notebookId}`);
    ws.onmessage = function(event) {
        const msg = event.data;
        if (msg && typeof msg === 'string' && msg.startsWith('<')) {
            processOOBSwap(msg);
        }
    };
    ws.onclose = function() {
        setTimeout(() => connectWebSocket(notebookId), 1000);
    };
    renderAllPreviews();
}

function processOOBSwap(html) {
    const template = document.createElement('template');
    template.innerHTML = html.trim();
    for (const element of Array.from(template.content.children)) {
        const existing = element.id ? document.getElementById(element.id) : null;
        if (!existing) continue;
        element.removeAttribute('hx-swap-oob');
        // Keep in-progress edits of the focused editor
        const active = document.activeElement;
        if (active && existing.contains(active) && active.tagName === 'TEXTAREA') {
            const replacement = element.querySelector(`#${active.id}`);
            if (replacement) replacement.value = active.value;
        }
        existing.replaceWith(element);
        htmx.process(element);
    }
    renderAllPreviews();
}

function renderMarkdown(text) {
    if (!text) return '<p style="color: var(--text-muted);">Double-click to edit...</p>';
    const escaped = text.replace(/&/g, '&amp;').replace(/</g, '&lt;').replace(/>/g, '&gt;');
    return escaped
        .replace(/^### (.*)$/gm, '<h3>$1</h3>')
        .replace(/^## (.*)$/gm, '<h2>$1</h2>')
        .replace(/^# (.*)$/gm, '<h1>$1</h1>')
        .replace(/[*][*](.+?)[*][*]/g, '<strong>$1</strong>')
        .replace(/`([^`]+)`/g, '<code>$1</code>')
        .split(/\\n\\n+/).map(p => `<p>${p}</p>`).join('');
}

function renderAllPreviews() {
    document.querySelectorAll('.md-preview').forEach(preview => {
        const textarea = document.getElementById(`source-${preview.dataset.cellKey}`);
        if (textarea) preview.innerHTML = renderMarkdown(textarea.value);
        if (!preview.dataset.hasEditListener) {
            preview.dataset.hasEditListener = 'true';
            preview.addEventListener('dblclick', () => switchToEdit(preview.dataset.cellKey));
        }
    });
}

function switchToEdit(key) {
    const preview = document.getElementById(`preview-${key}`);
    const textarea = document.getElementById(`source-${key}`);
    if (preview && textarea) {
        preview.style.display = 'none';
        textarea.style.display = 'block';
        textarea.focus();
    }
}

function switchToPreview(key) {
    const preview = document.getElementById(`preview-${key}`);
    const textarea = document.getElementById(`source-${key}`);
    if (preview && textarea) {
        preview.innerHTML = renderMarkdown(textarea.value);
        preview.style.display = 'block';
        textarea.style.display = 'none';
    }
}

// ==================== Completion ====================
let completionBox = null;

function closeCompletions() {
    if (completionBox) { completionBox.remove(); completionBox = null; }
}

async function requestCompletions(textarea) {
    const key = textarea.dataset.cellKey;
    const body = new URLSearchParams({source: textarea.value, cursor: textarea.selectionStart});
    const resp = await fetch(`/notebook/${window.NOTEBOOK_ID}/cell/${key}/complete`, {method: 'POST', body});
    const suggestions = await resp.json();
    closeCompletions();
    if (!suggestions.length) return;
    completionBox = document.createElement('ul');
    completionBox.className = 'completions';
    suggestions.forEach((s, i) => {
        const li = document.createElement('li');
        li.textContent = s.text;
        if (i === 0) li.classList.add('active');
        li.onmousedown = (e) => { e.preventDefault(); applyCompletion(textarea, s); };
        completionBox.appendChild(li);
    });
    completionBox._suggestions = suggestions;
    textarea.parentElement.style.position = 'relative';
    textarea.parentElement.appendChild(completionBox);
}

function applyCompletion(textarea, s) {
    textarea.value = textarea.value.slice(0, s.start) + s.text + textarea.value.slice(s.end);
    const pos = s.start + s.text.length;
    textarea.setSelectionRange(pos, pos);
    closeCompletions();
    textarea.focus();
}

document.addEventListener('keydown', function(e) {
    const target = e.target;
    if (target.tagName !== 'TEXTAREA' || !target.classList.contains('code-source')) {
        if ((e.ctrlKey || e.metaKey) && e.key === 's') {
            e.preventDefault();
            document.getElementById('save-btn')?.click();
        }
        return;
    }
    if (completionBox) {
        const items = Array.from(completionBox.children);
        const idx = items.findIndex(li => li.classList.contains('active'));
        if (e.key === 'ArrowDown' || e.key === 'ArrowUp') {
            e.preventDefault();
            const next = (idx + (e.key === 'ArrowDown' ? 1 : items.length - 1)) % items.length;
            items[idx]?.classList.remove('active');
            items[next].classList.add('active');
            return;
        }
        if (e.key === 'Enter' || e.key === 'Tab') {
            e.preventDefault();
            applyCompletion(target, completionBox._suggestions[Math.max(idx, 0)]);
            return;
        }
        if (e.key === 'Escape') { closeCompletions(); return; }
    }
    if (e.key === 'Enter' && e.shiftKey) {
        e.preventDefault();
        closeCompletions();
        target.closest('.cell')?.querySelector('.btn-run')?.click();
    } else if (e.key === 'Tab' || (e.key === ' ' && e.ctrlKey)) {
        e.preventDefault();
        requestCompletions(target);
    }
});

document.addEventListener('focusout', function(e) {
    if (e.target.classList && e.target.classList.contains('code-source')) closeCompletions();
});
"""

# ============================================================================
# FastHTML App with WebSocket
# ============================================================================

app, rt = fast_app(
    pico=False,
    exts='ws',
    hdrs=(
        Style(css),
        Script(js),
    )
)


def _status(message: str, ok: bool = True):
    return Div(message, cls=f"status {'success' if ok else 'error'}")


@rt("/")
def get():
    return RedirectResponse("/notebook/default", status_code=302)


@rt("/notebook/new")
def get():
    new_id = uuid.uuid4().hex[:8]
    nb = create_new_notebook(notebook_path(new_id))
    notebooks[new_id] = nb
    _wire_events(nb)
    return RedirectResponse(f"/notebook/{new_id}", status_code=302)


@rt("/notebook/{nb_id}")
def get(nb_id: str):
    nb = get_notebook(nb_id)
    nb_list = list_notebooks() or [nb_id]
    return NotebookPage(nb, nb_list, get_view(nb_id))


@rt("/notebook/{nb_id}/save")
async def post(nb_id: str):
    nb = get_notebook(nb_id)
    try:
        write_notebook(nb, notebook_path(nb_id))
    except OSError as e:
        logger.error(f"Failed to save {nb_id}: {e}")
        return _status(f"Save failed: {e}", ok=False)
    return _status("✓ Saved")


@rt("/notebook/{nb_id}/export")
def get(nb_id: str):
    nb = get_notebook(nb_id)
    content = json.dumps(notebook_to_dict(nb), indent=1)
    return Response(content=content, media_type="application/json",
                    headers={"Content-Disposition": f'attachment; filename="{nb_id}.ipynb"'})


# ============================================================================
# Cell operations
# ============================================================================

@rt("/notebook/{nb_id}/cell/add")
async def post(nb_id: str, pos: int = -1, type: str = "code"):
    nb = get_notebook(nb_id)
    try:
        cell_type = CellType(type)
    except ValueError:
        cell_type = CellType.CODE
    nb.add_cell(cell_type, pos if pos >= 0 else None)
    schedule_broadcast(nb_id, AllCellsOOB(nb, get_view(nb_id)))
    return AllCells(nb, get_view(nb_id))


@rt("/notebook/{nb_id}/cell/{key}")
async def delete(nb_id: str, key: str):
    nb = get_notebook(nb_id)
    cell = nb.get_cell(key)
    if cell is not None:
        get_dispatcher(nb_id).detach(cell)
        nb.delete_cell(cell)
    schedule_broadcast(nb_id, AllCellsOOB(nb, get_view(nb_id)))
    return AllCells(nb, get_view(nb_id))


@rt("/notebook/{nb_id}/cell/{key}/source")
async def post(nb_id: str, key: str, source: str = ""):
    nb = get_notebook(nb_id)
    cell = nb.get_cell(key)
    if cell is None or cell.source == source:
        return ""
    nb.edit_source(cell, source)
    nb.set_dirty()
    return ""


@rt("/notebook/{nb_id}/cell/{key}/undo")
async def post(nb_id: str, key: str):
    nb = get_notebook(nb_id)
    cell = nb.get_cell(key)
    if cell is None:
        return ""
    if nb.undo_edit(cell):
        schedule_broadcast(nb_id, AllCellsOOB(nb, get_view(nb_id)))
    return CellView(cell, nb_id, get_view(nb_id))


@rt("/notebook/{nb_id}/cell/{key}/type")
async def post(nb_id: str, key: str, cell_type: str):
    nb = get_notebook(nb_id)
    cell = nb.get_cell(key)
    if cell is None:
        return ""
    try:
        new_type = CellType(cell_type)
    except ValueError:
        return CellView(cell, nb_id, get_view(nb_id))
    if cell.is_code and new_type != CellType.CODE:
        get_dispatcher(nb_id).detach(cell)
        cell.running = False
    cell.cell_type = new_type
    nb.set_dirty()
    return CellView(cell, nb_id, get_view(nb_id))


@rt("/notebook/{nb_id}/cell/{key}/move/{direction}")
async def post(nb_id: str, key: str, direction: str):
    nb = get_notebook(nb_id)
    cell = nb.get_cell(key)
    if cell is not None:
        nb.move_cell(cell, -1 if direction == "up" else 1)
    schedule_broadcast(nb_id, AllCellsOOB(nb, get_view(nb_id)))
    return AllCells(nb, get_view(nb_id))


@rt("/notebook/{nb_id}/cell/{key}/run")
async def post(nb_id: str, key: str, source: str = None):
    nb = get_notebook(nb_id)
    cell = nb.get_cell(key)
    if cell is None:
        return ""
    if source is not None and source != cell.source:
        nb.edit_source(cell, source)
    nb.focus(cell)
    get_dispatcher(nb_id).execute(cell)
    return ""


@rt("/notebook/{nb_id}/cell/{key}/complete")
async def post(nb_id: str, key: str, source: str = "", cursor: int = -1):
    nb = get_notebook(nb_id)
    suggestions = token_index.complete(source, cursor if cursor >= 0 else None, nb.identities())
    content = json.dumps([{"text": s.text, "start": s.start, "end": s.end, "kind": s.kind}
                          for s in suggestions])
    return Response(content=content, media_type="application/json")


# ============================================================================
# Dependency actions
# ============================================================================

def _dependency_action(nb_id: str, key: str, action: DependencyAction, identity: str = None):
    cell = find_cell(nb_id, key)
    if cell is None:
        return ""
    get_view(nb_id).handle(DependencyCommand(action=action, cell=cell, identity=identity))
    return ""


@rt("/notebook/{nb_id}/cell/{key}/deps/select")
async def post(nb_id: str, key: str):
    return _dependency_action(nb_id, key, DependencyAction.SELECT_ALL)


@rt("/notebook/{nb_id}/cell/{key}/deps/execute")
async def post(nb_id: str, key: str):
    return _dependency_action(nb_id, key, DependencyAction.EXECUTE_ALL)


@rt("/notebook/{nb_id}/cell/{key}/deps/execute/{identity}")
async def post(nb_id: str, key: str, identity: str):
    return _dependency_action(nb_id, key, DependencyAction.EXECUTE_ONE, identity)


@rt("/notebook/{nb_id}/cell/{key}/deps/upstream")
async def post(nb_id: str, key: str):
    return _dependency_action(nb_id, key, DependencyAction.SHOW_UPSTREAM)


# ============================================================================
# Kernel control
# ============================================================================

@rt("/notebook/{nb_id}/kernel/restart")
async def post(nb_id: str):
    execution_queue.cancel_all(nb_id)
    ok = kernel_service.restart(nb_id)
    return _status("Kernel restarted" if ok else "Kernel restart failed", ok=ok)


@rt("/notebook/{nb_id}/kernel/interrupt")
async def post(nb_id: str):
    execution_queue.cancel_all(nb_id)
    return _status("Interrupted")


# ============================================================================
# WebSocket
# ============================================================================

def _ws_notebook_id(scope) -> str:
    # Path is like /ws/notebook_id
    parts = scope.get('path', '').strip('/').split('/')
    return parts[1] if len(parts) > 1 else 'default'


async def ws_on_connect(send, scope):
    """Called when WebSocket connection is established."""
    nb_id = _ws_notebook_id(scope)
    ws_connections.setdefault(nb_id, []).append(send)
    print(f"[WS] Client connected to {nb_id}. Total: {len(ws_connections[nb_id])}", flush=True)


async def ws_on_disconnect(send, scope):
    """Called when WebSocket connection is closed."""
    nb_id = _ws_notebook_id(scope)
    if send in ws_connections.get(nb_id, []):
        ws_connections[nb_id].remove(send)
        print(f"[WS] Client disconnected from {nb_id}. Total: {len(ws_connections[nb_id])}", flush=True)


@app.ws('/ws/{nb_id}', conn=ws_on_connect, disconn=ws_on_disconnect)
async def ws(msg, send, nb_id: str):
    """Clients only listen; incoming messages are ignored."""
    return


# ============================================================================
# Run
# ============================================================================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print(f"🚀 Cellflow starting at http://localhost:{CELLFLOW_CONFIG.port}")
    print(f"   Notebooks saved to: ./{CELLFLOW_CONFIG.notebooks_dir}/")
    print("")
    print_config_status(CELLFLOW_CONFIG)
    print("")
    print("   Keyboard shortcuts:")
    print("   • Shift+Enter       - Run cell")
    print("   • Tab / Ctrl+Space  - Complete from cell tokens and identities")
    print("   • Ctrl/Cmd+S        - Save notebook")
    print("   • Double-click      - Edit markdown")
    serve(port=CELLFLOW_CONFIG.port)
