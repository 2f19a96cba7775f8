"""A fixed number of worker threads running queued tasks with live output.

Each task may report progress through ``send``; on a terminal every task owns
one line of a display that is redrawn in place, topped off with a progress
bar. Elsewhere each message is printed as it arrives. A task may call
``abort`` so that no further tasks are started.
"""

from __future__ import annotations

import queue
import sys
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TextIO

_BAR_LENGTH = 30
_STOP = object()


class Task(ABC):
    """A unit of work run by a Pool."""

    @abstractmethod
    def run(self, send: Callable[[str], None], abort: Callable[[], None]) -> None:
        """Do the work; ``send`` replaces this task's output line, ``abort`` stops the pool."""


def make_progress_bar(low: int, high: int) -> str:
    """Render ``low`` out of ``high`` as a 30-character bar."""
    dots = _BAR_LENGTH * low // high
    return f"[{'#' * dots}{'-' * (_BAR_LENGTH - dots)}] ({low} / {high})"


def _is_terminal(stream: TextIO) -> bool:
    try:
        return bool(stream.isatty())
    except (AttributeError, ValueError, OSError):
        return False


class Pool:
    """Runs added tasks on ``num_workers`` threads."""

    def __init__(
        self,
        num_workers: int,
        num_tasks: int,
        force_not_terminal: bool = False,
        stream: TextIO | None = None,
    ):
        self.num_workers = num_workers
        self.num_tasks = num_tasks
        self.force_not_terminal = force_not_terminal
        self.is_aborted = False
        self._stream = stream
        self._tasks: queue.Queue = queue.Queue()
        self._counter = 0
        self._done = threading.Event()
        self._done.set()

    def add(self, task: Task) -> None:
        """Queue a task."""
        self._tasks.put((self._counter, task))
        self._counter += 1

    def _abort(self) -> None:
        self.is_aborted = True

    def start(self) -> None:
        """Start the workers and the output thread; returns immediately."""
        stream = self._stream if self._stream is not None else sys.stdout
        live = not self.force_not_terminal and _is_terminal(stream)
        messages: queue.Queue = queue.Queue()
        lock = threading.Lock()
        finished = 0
        self._done.clear()

        if live:
            messages.put((self.num_tasks, make_progress_bar(0, self.num_tasks)))

        def worker() -> None:
            nonlocal finished
            while True:
                item = self._tasks.get()
                try:
                    if item is None:
                        return
                    index, task = item
                    if not self.is_aborted:
                        task.run(lambda body, index=index: messages.put((index, body)), self._abort)
                    if live:
                        with lock:
                            finished += 1
                            messages.put(
                                (self.num_tasks, make_progress_bar(finished, self.num_tasks))
                            )
                finally:
                    self._tasks.task_done()

        def supervise() -> None:
            self._tasks.join()
            for _ in range(self.num_workers):
                self._tasks.put(None)
            messages.put(_STOP)

        def output() -> None:
            lines: dict[int, str] = {}
            drawn = 0
            while True:
                item = messages.get()
                if item is _STOP:
                    break
                index, body = item
                if live:
                    lines[index] = body
                    drawn = self._redraw(stream, lines, drawn)
                else:
                    print(body, file=stream, flush=True)
            self._done.set()

        threading.Thread(target=output, daemon=True).start()
        for _ in range(self.num_workers):
            threading.Thread(target=worker, daemon=True).start()
        threading.Thread(target=supervise, daemon=True).start()

    @staticmethod
    def _redraw(stream: TextIO, lines: dict[int, str], drawn: int) -> int:
        text = "\n".join(lines[key] for key in sorted(lines) if lines[key])
        if drawn:
            stream.write(f"\x1b[{drawn}A\x1b[J")
        stream.write(text + "\n")
        stream.flush()
        return text.count("\n") + 1

    def wait(self) -> None:
        """Block until every added task has finished and all output is written."""
        self._done.wait()