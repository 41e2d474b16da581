"""Tests for building run requests."""
from document.cell import Cell, CellType
from services.execution_request import build_request, snapshot_cells


def test_whitespace_source_builds_nothing(registry):
    cell = Cell(source="   \n\t")
    assert build_request(cell, [cell], registry) is None
    assert cell.identity is None


def test_first_run_mints_identity(registry):
    cell = Cell(source="x = 1")
    request = build_request(cell, [cell], registry)
    assert cell.identity is not None
    assert request.requesting_identity == cell.identity
    assert request.source == "x = 1"


def test_existing_identity_is_reused(registry):
    cell = Cell(source="x = 1")
    registry.set(cell, "fixed")
    assert build_request(cell, [cell], registry).requesting_identity == "fixed"


def test_snapshots_cover_code_cells_in_order_with_reduced_fields(registry):
    a = Cell(source="a = 1", identity="A", edited=False, execution_count=3)
    md = Cell(cell_type=CellType.MARKDOWN, source="# title")
    b = Cell(source="b = a")
    raw = Cell(cell_type=CellType.RAW, source="raw")
    request = build_request(b, [a, md, b, raw], registry)
    assert request.cell_snapshots == [
        {'identity': 'A', 'source': 'a = 1', 'edited': False},
        {'identity': b.identity, 'source': 'b = a', 'edited': True},
    ]


def test_snapshots_are_rebuilt_every_time():
    cell = Cell(source="x = 1")
    first = snapshot_cells([cell])
    cell.source = "x = 2"
    assert snapshot_cells([cell])[0]['source'] == "x = 2"
    assert first[0]['source'] == "x = 1"


def test_options_carry_identity_snapshots_and_stop_on_error(registry):
    cell = Cell(source="x = 1")
    options = build_request(cell, [cell], registry, stop_on_error=False).options()
    assert options.identity == cell.identity
    assert options.stop_on_error is False
    assert options.cell_snapshots[0]['identity'] == cell.identity
