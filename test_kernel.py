"""
Integration tests for the subprocess kernel with streaming output.

These start real kernel subprocesses. Run with: pytest -m kernel
"""
import asyncio

import pytest

from services.kernel.execution_queue import ExecutionQueue
from services.kernel.messages import ExecuteOptions, ExecuteReply, ExecutionCallbacks, OutputMessage
from services.kernel.kernel_service import KernelService
from services.kernel.subprocess_kernel import SubprocessKernel

pytestmark = pytest.mark.kernel


async def collect(kernel, code, identity, snapshots=()):
    messages = []
    async for message in kernel.execute_streaming(
        code, ExecuteOptions(identity=identity, cell_snapshots=list(snapshots))
    ):
        messages.append(message)
    return messages


def test_basic_streaming():
    """Outputs stream tagged with the cell identity and end with a reply."""
    kernel = SubprocessKernel()
    try:
        messages = asyncio.run(collect(kernel, 'print("hello")\n40 + 2', "cell-a"))
    finally:
        kernel.shutdown()

    outputs = [m for m in messages if isinstance(m, OutputMessage)]
    reply = messages[-1]
    assert isinstance(reply, ExecuteReply)
    assert reply.status == "ok"
    assert reply.identity == "cell-a"
    assert all(m.identity == "cell-a" for m in outputs)
    assert "hello" in "".join(m.output.text for m in outputs)
    assert any(m.output.output_type == "execute_result" and m.output.text == "42" for m in outputs)


def test_namespace_persistence_and_dependencies():
    """Variables persist between runs and the reply names dependent cells."""
    service = KernelService()
    snapshots = [
        {'identity': 'A', 'source': 'x = 10', 'edited': False},
        {'identity': 'B', 'source': 'y = x * 2\ny', 'edited': False},
    ]

    async def main():
        kernel = service.get_kernel("nb")
        await collect(kernel, "x = 10", "A", snapshots)
        second = await collect(kernel, "y = x * 2\ny", "B", snapshots)
        third = await collect(kernel, "x = 10", "A", snapshots)
        return second, third

    try:
        second, third = asyncio.run(main())
    finally:
        service.shutdown_all()

    assert second[-1].upstream == ["A"]
    assert any(isinstance(m, OutputMessage) and m.output.text == "20" for m in second)
    assert third[-1].downstream == ["B"]


def test_error_reply():
    """A raising cell streams an error and replies with status error."""
    kernel = SubprocessKernel()
    try:
        messages = asyncio.run(collect(kernel, "1 / 0", "E"))
    finally:
        kernel.shutdown()

    assert messages[-1].status == "error"
    errors = [m.output for m in messages if isinstance(m, OutputMessage) and m.output.output_type == "error"]
    assert errors and errors[0].ename == "ZeroDivisionError"


def test_restart_mid_run_ends_the_run_and_frees_the_queue():
    """A restart during a run delivers a terminal error and later runs still execute."""
    service = KernelService()
    queue = ExecutionQueue(service)
    first, second = [], []

    async def main():
        queue.submit("nb", "import time\ntime.sleep(30)", ExecutionCallbacks(
            on_reply=lambda r: first.append(('reply', r.status)),
            on_error=lambda e: first.append(('error', e)),
        ), ExecuteOptions(identity="A"))
        await asyncio.sleep(1.0)

        assert service.restart("nb")
        queue.submit("nb", "1 + 1", ExecutionCallbacks(
            on_output=lambda m: second.append(('output', m.output.text)),
            on_reply=lambda r: second.append(('reply', r.status)),
            on_error=lambda e: second.append(('error', e)),
        ), ExecuteOptions(identity="B"))

        for _ in range(200):
            await asyncio.sleep(0.05)
            if any(kind != 'output' for kind, _ in second):
                break

    try:
        asyncio.run(main())
    finally:
        service.shutdown_all()

    assert len(first) == 1 and first[0][0] == 'error'
    assert ('output', '2') in second
    assert second[-1] == ('reply', 'ok')
    assert not queue.get_status("nb").is_processing
