"""
Cellflow UI - Dependency Panel

Shown under a code cell after a run reported dependency edges.
"""

from fasthtml.common import *

from services.dependency_view import DependencyAffordance


def DependencyPanel(cell, notebook_id: str, affordance: DependencyAffordance = None):
    """Forward dependencies with per-cell run links, plus bulk and upstream actions.

    Returns None when there is nothing to show.
    """
    if affordance is None:
        return None

    base = f"/notebook/{notebook_id}/cell/{cell.key}/deps"
    sections = []

    if affordance.has_downstream:
        entries = [
            Li(Span(identity, cls="dep-identity"),
               Button("▶", cls="btn btn-sm dep-execute-one",
                      hx_post=f"{base}/execute/{identity}", hx_swap="none",
                      title="Run this cell"))
            for identity in affordance.visible_downstream
        ]
        more = Span(f"+{affordance.hidden_count} more", cls="dep-more") if affordance.hidden_count else None
        sections.append(Div(
            Div("Forward dependencies:", cls="dep-title"),
            Ul(*entries, cls="dep-list"),
            more,
            Div(
                Button("Select All", cls="btn btn-sm dep-select-all",
                       hx_post=f"{base}/select", hx_swap="none"),
                Button("Execute All", cls="btn btn-sm dep-execute-all",
                       hx_post=f"{base}/execute", hx_swap="none"),
                cls="dep-actions"
            ),
            cls="downstream-dep"
        ))

    if affordance.has_upstream:
        sections.append(Div(
            Button("Show upstream dependencies", cls="btn btn-sm dep-upstream",
                   hx_post=f"{base}/upstream", hx_swap="none"),
            cls="upstream-dep"
        ))

    return Div(*sections, id=f"deps-{cell.key}", cls="dependency-panel")
