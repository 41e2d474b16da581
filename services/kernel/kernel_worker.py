"""
Kernel worker that runs in a subprocess.

This module provides streaming output by patching execnb's CaptureShell
to redirect stdout/stderr to a multiprocessing Queue instead of using
IPython's capture_output context manager. Every message it emits is tagged
with the identity of the cell that produced it, and each run ends with an
``execute_reply`` carrying the dependency hints for that cell.
"""
import sys
import traceback
from multiprocessing import Queue
from typing import Optional

from execnb.shell import CaptureShell
from fastcore.basics import patch

from .dependency_hints import DependencyHints


class StreamingStdout:
    """
    Custom stdout/stderr that sends output to a queue immediately.

    Each write() call sends a message to the queue, enabling real-time
    streaming of output to the main process.
    """

    def __init__(self, queue: Queue, stream_name: str = 'stdout', identity: Optional[str] = None):
        self.queue = queue
        self.stream_name = stream_name
        self.identity = identity
        self._original = sys.stdout if stream_name == 'stdout' else sys.stderr

    def write(self, text: str):
        if text:
            self.queue.put({
                'type': 'stream',
                'identity': self.identity,
                'name': self.stream_name,
                'text': text
            })

    def flush(self):
        pass

    def isatty(self):
        return True  # Report as TTY to enable tqdm progress bars

    def fileno(self):
        return self._original.fileno()


class StreamingDisplayPublisher:
    """
    Capture rich outputs (images, plots, HTML) and send to queue.

    Must implement attributes that IPython's internals check:
    - is_publishing: Flag checked by IPython's _tee mechanism
    """

    def __init__(self, queue: Queue, identity: Optional[str] = None):
        self.queue = queue
        self.identity = identity
        self.is_publishing = False  # Required by IPython's _tee

    def publish(self, data: dict, metadata: Optional[dict] = None,
                source: Optional[str] = None, **kwargs):
        self.is_publishing = True
        try:
            self.queue.put({
                'type': 'display_data',
                'identity': self.identity,
                'data': data,
                'metadata': metadata or {}
            })
        finally:
            self.is_publishing = False

    def clear_output(self, wait: bool = False):
        self.queue.put({
            'type': 'clear_output',
            'identity': self.identity,
            'wait': wait
        })


@patch
def _run_streaming(self: CaptureShell, raw_cell: str, output_queue: Queue,
                   identity: Optional[str] = None, store_history: bool = True,
                   silent: bool = False):
    """
    Run a cell streaming its output instead of capturing it.

    Returns the ExecutionResult of InteractiveShell.run_cell.
    """
    old_stdout, old_stderr = sys.stdout, sys.stderr
    old_display_pub = getattr(self, 'display_pub', None)

    try:
        sys.stdout = StreamingStdout(output_queue, 'stdout', identity)
        sys.stderr = StreamingStdout(output_queue, 'stderr', identity)
        self.display_pub = StreamingDisplayPublisher(output_queue, identity)

        # InteractiveShell.run_cell, bypassing CaptureShell's capture_output wrapper
        result = super(CaptureShell, self).run_cell(
            raw_cell,
            store_history=store_history,
            silent=silent,
            cell_id=identity
        )

        if result.result is not None and not silent:
            output_queue.put({
                'type': 'execute_result',
                'identity': identity,
                'data': {'text/plain': repr(result.result)},
                'metadata': {}
            })

        exc = result.error_before_exec or result.error_in_exec
        if exc is not None:
            tb_lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
            output_queue.put({
                'type': 'error',
                'identity': identity,
                'ename': type(exc).__name__,
                'evalue': str(exc),
                'traceback': tb_lines
            })

        return result

    finally:
        sys.stdout = old_stdout
        sys.stderr = old_stderr
        if old_display_pub is not None:
            self.display_pub = old_display_pub


def _read_payload(shell: CaptureShell) -> list:
    manager = getattr(shell, 'payload_manager', None)
    if manager is None:
        return []
    payload = list(manager.read_payload())
    manager.clear_payload()
    return payload


def _execute(shell: CaptureShell, hints: DependencyHints, msg: dict, output_queue: Queue):
    identity = msg.get('identity')
    status = 'ok'
    execution_count = None

    try:
        result = shell._run_streaming(
            msg['code'], output_queue,
            identity=identity,
            store_history=msg.get('store_history', True),
            silent=msg.get('silent', False),
        )
        execution_count = result.execution_count
        if not result.success:
            status = 'error'
    except KeyboardInterrupt:
        status = 'error'
        output_queue.put({
            'type': 'error',
            'identity': identity,
            'ename': 'KeyboardInterrupt',
            'evalue': 'Execution interrupted by user',
            'traceback': ['KeyboardInterrupt: Execution interrupted by user']
        })
    except Exception as e:
        status = 'error'
        output_queue.put({
            'type': 'error',
            'identity': identity,
            'ename': type(e).__name__,
            'evalue': str(e),
            'traceback': traceback.format_exception(type(e), e, e.__traceback__)
        })

    upstream, downstream = hints.resolve(identity, msg['code'], msg.get('cell_snapshots'))
    output_queue.put({
        'type': 'execute_reply',
        'msg_id': msg.get('msg_id'),
        'status': status,
        'execution_count': execution_count if execution_count is not None else shell.execution_count,
        'identity': identity,
        'upstream': upstream,
        'downstream': downstream,
        'payload': _read_payload(shell),
    })


def kernel_worker_main(input_queue: Queue, output_queue: Queue):
    """
    Main loop for the kernel subprocess.

    Waits for commands on input_queue and sends results to output_queue.
    The subprocess catches KeyboardInterrupt from SIGINT for hard interrupt.
    """
    import signal

    shell = CaptureShell()
    hints = DependencyHints()

    def sigint_handler(signum, frame):
        raise KeyboardInterrupt("Execution interrupted by user")

    signal.signal(signal.SIGINT, sigint_handler)

    output_queue.put({'type': 'status', 'status': 'ready'})

    while True:
        try:
            msg = input_queue.get()
        except KeyboardInterrupt:
            # SIGINT while waiting - ignore and continue
            continue

        if msg['type'] == 'execute':
            output_queue.put({'type': 'status', 'status': 'busy'})
            _execute(shell, hints, msg, output_queue)
            output_queue.put({'type': 'status', 'status': 'idle'})

        elif msg['type'] == 'shutdown':
            output_queue.put({'type': 'status', 'status': 'shutdown'})
            break

        elif msg['type'] == 'restart':
            shell = CaptureShell()
            hints.reset()
            output_queue.put({'type': 'status', 'status': 'restarted'})
