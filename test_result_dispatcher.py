"""Tests for running cells and routing their results."""
from conftest import FakeChannel
from document.cell import Cell, CellOutput, RUNNING_PROMPT
from document.events import CELL_EXECUTED, SET_DIRTY, OPEN_PAGER, SET_NEXT_INPUT
from services.kernel.messages import (
    ClearOutputMessage, ExecuteReply, OutputMessage, PayloadMessage
)
from services.result_dispatcher import ResultDispatcher


def stream(identity, text):
    return OutputMessage(identity, CellOutput(output_type='stream', content=text, stream_name='stdout'))


def record(nb, event):
    seen = []
    nb.events.on(event, seen.append)
    return seen


def test_no_channel_refuses_and_leaves_cell_unchanged(make_notebook):
    nb = make_notebook("x = 1")
    cell = nb.cells[0]
    cell.outputs = [CellOutput('stream', 'old')]
    dispatcher = ResultDispatcher(nb)
    assert dispatcher.execute(cell) is None
    assert cell.identity is None
    assert cell.edited is True
    assert cell.outputs[0].content == 'old'
    assert cell.execution_count is None


def test_empty_source_is_a_noop(make_notebook, channel):
    nb = make_notebook("   ")
    cell = nb.cells[0]
    cell.edited = False
    dispatcher = ResultDispatcher(nb, channel)
    assert dispatcher.execute(cell) is None
    assert channel.submitted == []
    assert cell.execution_count is None
    assert cell.edited is False


def test_clearing_source_of_running_cell_stops_running(make_notebook, channel):
    nb = make_notebook("import time; time.sleep(10)")
    cell = nb.cells[0]
    dispatcher = ResultDispatcher(nb, channel)
    first = dispatcher.execute(cell)
    assert cell.running is True

    nb.edit_source(cell, "   ")
    assert dispatcher.execute(cell) is None
    assert channel.cleared == [first]
    assert dispatcher.pending_for(cell) is None
    assert cell.running is False
    assert cell.execution_count is None


def test_execute_submits_and_marks_running(make_notebook, channel):
    nb = make_notebook("x = 1", "y = 2")
    cell = nb.cells[0]
    executed = record(nb, CELL_EXECUTED)
    msg_id = ResultDispatcher(nb, channel).execute(cell)

    assert msg_id == "msg-1"
    _, source, _, options = channel.last()
    assert source == "x = 1"
    assert options.identity == cell.identity
    assert options.stop_on_error is True
    assert [s['source'] for s in options.cell_snapshots] == ["x = 1", "y = 2"]
    assert cell.execution_count == RUNNING_PROMPT
    assert cell.running is True
    assert cell.edited is False
    assert executed == [{'cell': cell}]


def test_failed_submit_keeps_edited_and_rolls_back(make_notebook):
    nb = make_notebook("x = 1")
    cell = nb.cells[0]
    cell.execution_count = 4
    dispatcher = ResultDispatcher(nb, FakeChannel(fail=True))
    assert dispatcher.execute(cell) is None
    assert cell.edited is True
    assert cell.running is False
    assert cell.execution_count == 4
    assert cell.identity is not None


def test_output_cleared_once_per_run(make_notebook, channel):
    nb = make_notebook("print(1)")
    cell = nb.cells[0]
    dispatcher = ResultDispatcher(nb, channel)
    msg_id = dispatcher.execute(cell)
    callbacks = channel.callbacks_for(msg_id)

    for text in ("a", "b", "c"):
        callbacks.on_output(stream(cell.identity, text))

    assert [o.content for o in cell.outputs] == ["a", "b", "c"]


def test_output_fans_out_to_every_cell_with_the_identity(make_notebook, channel):
    first = Cell(source="show()", identity="abc")
    second = Cell(source="show()", identity="abc")
    other = Cell(source="z = 0", identity="zzz", outputs=[CellOutput('stream', 'keep')])
    second.outputs = [CellOutput('stream', 'stale')]
    nb = make_notebook(first, second, other)
    dispatcher = ResultDispatcher(nb, channel)
    callbacks = channel.callbacks_for(dispatcher.execute(first))

    callbacks.on_output(stream("abc", "one"))
    callbacks.on_output(stream("abc", "two"))

    assert [o.content for o in first.outputs] == ["one", "two"]
    assert [o.content for o in second.outputs] == ["one", "two"]
    assert [o.content for o in other.outputs] == ["keep"]


def test_output_for_other_identity_clears_that_cell_once(make_notebook, channel):
    a = Cell(source="a()", identity="A")
    b = Cell(source="b = 1", identity="B", outputs=[CellOutput('stream', 'old')])
    nb = make_notebook(a, b)
    callbacks = channel.callbacks_for(ResultDispatcher(nb, channel).execute(a))

    callbacks.on_output(stream("B", "new"))
    callbacks.on_output(stream("B", "newer"))
    callbacks.on_output(stream("missing", "dropped"))

    assert [o.content for o in b.outputs] == ["new", "newer"]
    assert a.outputs == []


def test_clear_output_message_clears_matching_cells(make_notebook, channel):
    nb = make_notebook("x")
    cell = nb.cells[0]
    callbacks = channel.callbacks_for(ResultDispatcher(nb, channel).execute(cell))
    callbacks.on_output(stream(cell.identity, "frame 1"))
    callbacks.on_clear_output(ClearOutputMessage(cell.identity, wait=True))
    assert cell.outputs == []


def test_reply_records_count_and_dependencies(make_notebook, channel):
    nb = make_notebook("a = 1", "b = a", "c = a")
    a, b, c = nb.cells
    b.identity, c.identity = "B_id", "C_id"
    nb.dirty = False
    dirty = record(nb, SET_DIRTY)
    dispatcher = ResultDispatcher(nb, channel)
    callbacks = channel.callbacks_for(dispatcher.execute(a))

    callbacks.on_reply(ExecuteReply(execution_count=7, identity=a.identity,
                                    upstream=[], downstream=["B_id", "C_id"]))

    assert a.execution_count == 7
    assert a.running is False
    assert a.parent_identities == ["B_id", "C_id"]
    assert nb.dirty is True
    assert dirty[-1] == {'value': True}
    assert dispatcher.pending_for(a) is None
    affordance = dispatcher.view.affordance_for(a)
    assert affordance.visible_downstream == ["B_id", "C_id"]


def test_reply_with_empty_downstream_keeps_known_dependents(make_notebook, channel):
    nb = make_notebook("a = 1")
    cell = nb.cells[0]
    cell.parent_identities = ["x", "y"]
    dispatcher = ResultDispatcher(nb, channel)

    callbacks = channel.callbacks_for(dispatcher.execute(cell))
    callbacks.on_reply(ExecuteReply(execution_count=1, identity=cell.identity, downstream=[]))
    assert cell.parent_identities == ["x", "y"]

    callbacks = channel.callbacks_for(dispatcher.execute(cell))
    callbacks.on_reply(ExecuteReply(execution_count=2, identity=cell.identity, downstream=["z"]))
    assert cell.parent_identities == ["z"]


def test_reply_without_dependencies_shows_no_affordance(make_notebook, channel):
    nb = make_notebook("a = 1")
    cell = nb.cells[0]
    dispatcher = ResultDispatcher(nb, channel)
    channel.callbacks_for(dispatcher.execute(cell)).on_reply(
        ExecuteReply(execution_count=1, identity=cell.identity))
    assert dispatcher.view.affordance_for(cell) is None


def test_malformed_reply_leaves_cell_running(make_notebook, channel):
    nb = make_notebook("a = 1")
    cell = nb.cells[0]
    dispatcher = ResultDispatcher(nb, channel)
    callbacks = channel.callbacks_for(dispatcher.execute(cell))
    callbacks.on_reply({'execution_count': 1})
    assert cell.running is True
    assert cell.execution_count == RUNNING_PROMPT
    assert dispatcher.pending_for(cell) is not None


def test_new_run_detaches_previous_run(make_notebook, channel):
    nb = make_notebook("a = 1")
    cell = nb.cells[0]
    dispatcher = ResultDispatcher(nb, channel)
    first = dispatcher.execute(cell)
    old_callbacks = channel.callbacks_for(first)
    second = dispatcher.execute(cell)

    assert channel.cleared == [first]
    assert dispatcher.pending_for(cell).msg_id == second

    # Late messages for the detached run are ignored
    old_callbacks.on_output(stream(cell.identity, "late"))
    old_callbacks.on_reply(ExecuteReply(execution_count=99, identity=cell.identity))
    assert cell.outputs == []
    assert cell.execution_count == RUNNING_PROMPT


def test_explicit_detach(make_notebook, channel):
    nb = make_notebook("a = 1")
    cell = nb.cells[0]
    dispatcher = ResultDispatcher(nb, channel)
    msg_id = dispatcher.execute(cell)
    assert dispatcher.detach(cell) is True
    assert channel.cleared == [msg_id]
    assert dispatcher.detach(cell) is False


def test_terminal_error_stops_running_state(make_notebook, channel):
    nb = make_notebook("a = 1")
    cell = nb.cells[0]
    dispatcher = ResultDispatcher(nb, channel)
    channel.callbacks_for(dispatcher.execute(cell)).on_error("aborted")
    assert cell.running is False
    assert cell.execution_count is None
    assert dispatcher.pending_for(cell) is None


def test_payloads_raise_ui_events(make_notebook, channel):
    nb = make_notebook("a?")
    cell = nb.cells[0]
    pager = record(nb, OPEN_PAGER)
    next_input = record(nb, SET_NEXT_INPUT)
    callbacks = channel.callbacks_for(ResultDispatcher(nb, channel).execute(cell))

    callbacks.on_page(PayloadMessage('page', {'data': {'text/plain': 'docs'}, 'start': 0}))
    callbacks.on_set_next_input(PayloadMessage('set_next_input', {'text': 'b = 2', 'replace': False}))

    assert pager == [{'cell': cell, 'data': {'text/plain': 'docs'}, 'start': 0}]
    assert next_input == [{'cell': cell, 'text': 'b = 2', 'replace': False}]


def test_markdown_cells_do_not_run(make_notebook, channel):
    from document.cell import CellType
    nb = make_notebook((CellType.MARKDOWN, "# hi"))
    assert ResultDispatcher(nb, channel).execute(nb.cells[0]) is None
    assert channel.submitted == []
