"""
Cellflow UI - Base Utilities

Common rendering helpers shared across UI components.
"""

import html as html_module
import json
import re

from fasthtml.common import *

from document.cell import Cell, CellOutput, Highlight, RUNNING_PROMPT


def input_prompt(cell: Cell) -> str:
    """Jupyter-style input prompt for a code cell.

    ``In [n]:`` after a run, ``In [*]:`` while running and ``In [ ]:`` before
    the first run. Every further source line gets a ``...:`` continuation
    marker aligned under the colon.
    """
    if cell.execution_count == RUNNING_PROMPT:
        label = RUNNING_PROMPT
    elif cell.has_finite_count:
        label = str(cell.execution_count)
    else:
        label = " "
    prompt = f"In [{label}]:"
    n_lines = max(cell.source.count("\n") + 1, 1)
    continuation = "...:".rjust(len(prompt))
    return "\n".join([prompt] + [continuation] * (n_lines - 1))


def highlight_class(cell: Cell) -> str:
    """CSS class for the dependency highlight of a cell."""
    if cell.highlight == Highlight.NONE:
        return ""
    return cell.highlight.value


def render_mime_bundle(data: dict, metadata: dict = None) -> str:
    """
    Convert Jupyter MIME bundle to HTML.
    Priority: text/html > image/svg+xml > image/png > image/jpeg > text/markdown > text/plain
    """
    metadata = metadata or {}

    if 'text/html' in data:
        return f'<div class="mime-html">{data["text/html"]}</div>'

    if 'image/svg+xml' in data:
        return f'<div class="mime-svg">{data["image/svg+xml"]}</div>'

    if 'image/png' in data:
        style_parts = []
        if metadata.get('width'):
            style_parts.append(f'width:{metadata["width"]}px')
        if metadata.get('height'):
            style_parts.append(f'height:{metadata["height"]}px')
        style_attr = f' style="{";".join(style_parts)}"' if style_parts else ''
        return f'<img class="mime-image" src="data:image/png;base64,{data["image/png"]}"{style_attr} />'

    if 'image/jpeg' in data:
        return f'<img class="mime-image" src="data:image/jpeg;base64,{data["image/jpeg"]}" />'

    if 'text/markdown' in data:
        return f'<div class="mime-markdown">{data["text/markdown"]}</div>'

    if 'application/json' in data:
        json_str = json.dumps(data['application/json'], indent=2)
        return f'<pre class="mime-json">{html_module.escape(json_str)}</pre>'

    if 'text/plain' in data:
        return f'<pre class="mime-text">{html_module.escape(data["text/plain"])}</pre>'

    return f'<pre class="mime-unknown">{html_module.escape(str(data))}</pre>'


_ANSI_COLORS = {
    '30': '#000', '31': '#c00', '32': '#0a0', '33': '#a50',
    '34': '#00a', '35': '#a0a', '36': '#0aa', '37': '#aaa',
    '90': '#555', '91': '#f55', '92': '#5f5', '93': '#ff5',
    '94': '#55f', '95': '#f5f', '96': '#5ff', '97': '#fff',
}
_ANSI_RE = re.compile(r'(\x1b\[[0-9;]*m)')


def ansi_to_html(text: str) -> str:
    """Convert ANSI color and bold codes to HTML spans; reset closes them all."""
    result = []
    open_spans = 0
    for part in _ANSI_RE.split(text):
        match = re.match(r'\x1b\[([0-9;]*)m', part)
        if not match:
            result.append(html_module.escape(part))
            continue
        for code in match.group(1).split(';'):
            if code in ('0', ''):
                result.append('</span>' * open_spans)
                open_spans = 0
            elif code == '1':
                result.append('<span style="font-weight:bold">')
                open_spans += 1
            elif code in _ANSI_COLORS:
                result.append(f'<span style="color:{_ANSI_COLORS[code]}">')
                open_spans += 1
    result.append('</span>' * open_spans)
    return ''.join(result)


def render_output(output: CellOutput) -> str:
    """HTML for one output record."""
    if output.output_type == 'stream':
        return f'<pre class="stream-output {output.stream_name or "stdout"}">{ansi_to_html(output.text)}</pre>'
    if output.output_type == 'error':
        return f'<pre class="error-output">{ansi_to_html(output.text)}</pre>'
    if isinstance(output.content, dict):
        return render_mime_bundle(output.content, output.metadata)
    return f'<pre class="mime-text">{html_module.escape(output.text)}</pre>'
