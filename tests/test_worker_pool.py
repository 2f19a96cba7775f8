import io
import threading

from txcli.worker_pool import Pool, Task, make_progress_bar


class _Echo(Task):
    def __init__(self, index, ran=None, lock=None):
        self.index = index
        self.ran = ran
        self.lock = lock

    def run(self, send, abort):
        if self.ran is not None:
            with self.lock:
                self.ran.append(self.index)
        send(f"task {self.index}")


class _Aborting(Task):
    def __init__(self, ran):
        self.ran = ran

    def run(self, send, abort):
        self.ran.append("abort")
        abort()


class _TtyStream(io.StringIO):
    def isatty(self):
        return True


def test_plain_output_prints_every_message():
    stream = io.StringIO()
    pool = Pool(2, 3, force_not_terminal=True, stream=stream)
    for index in range(3):
        pool.add(_Echo(index))
    pool.start()
    pool.wait()
    assert sorted(stream.getvalue().splitlines()) == ["task 0", "task 1", "task 2"]
    assert pool.is_aborted is False


def test_abort_stops_later_tasks():
    ran = []
    lock = threading.Lock()
    stream = io.StringIO()
    pool = Pool(1, 3, force_not_terminal=True, stream=stream)
    pool.add(_Aborting(ran))
    pool.add(_Echo(1, ran, lock))
    pool.add(_Echo(2, ran, lock))
    pool.start()
    pool.wait()
    assert pool.is_aborted is True
    assert ran == ["abort"]
    assert stream.getvalue() == ""


def test_live_output_shows_progress_bar():
    stream = _TtyStream()
    pool = Pool(2, 2, stream=stream)
    pool.add(_Echo(0))
    pool.add(_Echo(1))
    pool.start()
    pool.wait()
    output = stream.getvalue()
    assert make_progress_bar(0, 2) in output
    assert make_progress_bar(2, 2) in output
    assert "task 0" in output and "task 1" in output


def test_force_not_terminal_skips_progress_bar():
    stream = _TtyStream()
    pool = Pool(1, 1, force_not_terminal=True, stream=stream)
    pool.add(_Echo(0))
    pool.start()
    pool.wait()
    assert stream.getvalue().splitlines() == ["task 0"]


def test_progress_bar_shape():
    previous = -1
    for low in range(11):
        bar = make_progress_bar(low, 10)
        assert bar.startswith("[")
        assert bar.endswith(f"] ({low} / 10)")
        assert bar.count("#") + bar.count("-") == 30
        assert bar.count("#") >= previous
        previous = bar.count("#")


def test_progress_bar_extremes():
    assert make_progress_bar(0, 4) == "[" + "-" * 30 + "] (0 / 4)"
    assert make_progress_bar(4, 4) == "[" + "#" * 30 + "] (4 / 4)"