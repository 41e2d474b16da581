"""
Backend-side dependency hints.

Runs inside the kernel subprocess. After a cell executes, the kernel reports
which previously executed cells it read names from (upstream) and which
previously executed cells read names it defines (downstream). The notebook
side treats both lists as hints only.
"""
import ast
import builtins
from typing import Dict, Iterable, List, Set, Tuple

from IPython.core.inputtransformer2 import TransformerManager

_BUILTINS = frozenset(dir(builtins))
_transformer = TransformerManager()


def _parse(source: str):
    try:
        return ast.parse(_transformer.transform_cell(source))
    except SyntaxError:
        return None


def defined_and_used(source: str) -> Tuple[Set[str], Set[str]]:
    """Top-level names a cell binds and free names it reads."""
    tree = _parse(source)
    if tree is None:
        return set(), set()

    defined: Set[str] = set()
    used: Set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Name):
            if isinstance(node.ctx, ast.Load):
                used.add(node.id)
            else:
                defined.add(node.id)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            defined.add(node.name)
        elif isinstance(node, (ast.Import, ast.ImportFrom)):
            for alias in node.names:
                defined.add((alias.asname or alias.name).split('.')[0])
    return defined, used - _BUILTINS


class DependencyHints:
    """Remembers which identities ran in this kernel and derives edges."""

    def __init__(self):
        self._executed: Set[str] = set()

    def reset(self):
        self._executed.clear()

    def resolve(self, identity: str, source: str,
                snapshots: Iterable[Dict]) -> Tuple[List[str], List[str]]:
        """
        Return ``(upstream, downstream)`` identities for a finished run.

        Only cells that executed in this kernel session take part, in the
        order of ``snapshots``.
        """
        defined, used = defined_and_used(source)
        upstream: List[str] = []
        downstream: List[str] = []
        for snap in snapshots or []:
            other = snap.get('identity')
            if not other or other == identity or other not in self._executed:
                continue
            other_defined, other_used = defined_and_used(snap.get('source', ''))
            if other_defined & used and other not in upstream:
                upstream.append(other)
            if other_used & defined and other not in downstream:
                downstream.append(other)
        if identity:
            self._executed.add(identity)
        return upstream, downstream
