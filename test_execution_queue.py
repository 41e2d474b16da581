"""Tests for the FIFO execution queue with a scripted kernel service."""
import asyncio

from document.cell import CellOutput
from services.kernel.execution_queue import ExecutionQueue, ABORTED
from services.kernel.messages import (
    ExecuteOptions, ExecuteReply, ExecutionCallbacks, OutputMessage, PayloadMessage
)
from services.kernel.subprocess_kernel import KernelDied


class ScriptedKernelService:
    """Replays canned messages per source instead of running code."""

    def __init__(self, scripts):
        self.scripts = scripts
        self.ran = []
        self.interrupted = []

    async def execute(self, notebook_id, source, options, msg_id=""):
        self.ran.append(source)
        for message in self.scripts[source]:
            await asyncio.sleep(0)
            if isinstance(message, Exception):
                raise message
            yield message

    def interrupt(self, notebook_id):
        self.interrupted.append(notebook_id)
        return True


def out(identity, text):
    return OutputMessage(identity, CellOutput('stream', text, stream_name='stdout'))


def recorder():
    events = []
    callbacks = ExecutionCallbacks(
        on_output=lambda m: events.append(('output', m.output.content)),
        on_reply=lambda r: events.append(('reply', r.execution_count)),
        on_error=lambda e: events.append(('error', e)),
        on_set_next_input=lambda p: events.append(('next', p.data['text'])),
    )
    return events, callbacks


async def drain(queue, nb_id="nb"):
    for _ in range(200):
        await asyncio.sleep(0)
        if not queue.get_status(nb_id).is_processing:
            return


def test_runs_in_fifo_order_and_delivers_callbacks():
    service = ScriptedKernelService({
        "a": [out("A", "1"), ExecuteReply(1, "A")],
        "b": [out("B", "2"), ExecuteReply(2, "B")],
    })
    queue = ExecutionQueue(service)
    ev_a, cb_a = recorder()
    ev_b, cb_b = recorder()

    async def main():
        channel = queue.channel("nb")
        first = channel.submit("a", cb_a, ExecuteOptions(identity="A"))
        second = channel.submit("b", cb_b, ExecuteOptions(identity="B"))
        assert first != second
        await drain(queue)

    asyncio.run(main())
    assert service.ran == ["a", "b"]
    assert ev_a == [('output', '1'), ('reply', 1)]
    assert ev_b == [('output', '2'), ('reply', 2)]


def test_cleared_callbacks_are_not_called():
    service = ScriptedKernelService({"a": [out("A", "1"), ExecuteReply(1, "A")]})
    queue = ExecutionQueue(service)
    events, callbacks = recorder()

    async def main():
        msg_id = queue.submit("nb", "a", callbacks, ExecuteOptions())
        queue.clear_callbacks_for_msg(msg_id)
        await drain(queue)

    asyncio.run(main())
    assert service.ran == ["a"]
    assert events == []


def test_error_reply_aborts_queued_runs_when_stop_on_error():
    service = ScriptedKernelService({
        "bad": [ExecuteReply(1, "A", status="error")],
        "next": [ExecuteReply(2, "B")],
    })
    queue = ExecutionQueue(service)
    ev_bad, cb_bad = recorder()
    ev_next, cb_next = recorder()

    async def main():
        queue.submit("nb", "bad", cb_bad, ExecuteOptions(stop_on_error=True))
        queue.submit("nb", "next", cb_next, ExecuteOptions())
        await drain(queue)

    asyncio.run(main())
    assert service.ran == ["bad"]
    assert ev_bad == [('reply', 1)]
    assert ev_next == [('error', ABORTED)]


def test_error_reply_continues_without_stop_on_error():
    service = ScriptedKernelService({
        "bad": [ExecuteReply(1, "A", status="error")],
        "next": [ExecuteReply(2, "B")],
    })
    queue = ExecutionQueue(service)
    ev_next, cb_next = recorder()

    async def main():
        queue.submit("nb", "bad", ExecutionCallbacks(), ExecuteOptions(stop_on_error=False))
        queue.submit("nb", "next", cb_next, ExecuteOptions())
        await drain(queue)

    asyncio.run(main())
    assert service.ran == ["bad", "next"]
    assert ev_next == [('reply', 2)]


def test_kernel_death_is_a_terminal_error():
    service = ScriptedKernelService({"a": [out("A", "1"), KernelDied("gone")]})
    queue = ExecutionQueue(service)
    events, callbacks = recorder()

    async def main():
        queue.submit("nb", "a", callbacks, ExecuteOptions())
        await drain(queue)

    asyncio.run(main())
    assert events == [('output', '1'), ('error', 'gone')]


def test_payloads_are_delivered_before_reply():
    reply = ExecuteReply(1, "A", payload=[PayloadMessage('set_next_input', {'text': 'x = 1'})])
    service = ScriptedKernelService({"a": [reply]})
    queue = ExecutionQueue(service)
    events, callbacks = recorder()

    async def main():
        queue.submit("nb", "a", callbacks, ExecuteOptions())
        await drain(queue)

    asyncio.run(main())
    assert events == [('next', 'x = 1'), ('reply', 1)]


def test_cancel_all_aborts_queue_and_interrupts():
    service = ScriptedKernelService({"a": [ExecuteReply(1, "A")], "b": [ExecuteReply(2, "B")]})
    queue = ExecutionQueue(service)
    ev_b, cb_b = recorder()

    async def main():
        queue.submit("nb", "a", ExecutionCallbacks(), ExecuteOptions())
        queue.submit("nb", "b", cb_b, ExecuteOptions())
        queue.cancel_all("nb")
        await drain(queue)

    asyncio.run(main())
    assert service.interrupted == ["nb"]
    assert ev_b == [('error', ABORTED)]
    assert "b" not in service.ran
