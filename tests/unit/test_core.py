"""
Unit tests for the connection and thread pool primitives.
"""

import socket
import threading
import time

import pytest

from snippetbox.core import Connection, ConnectionState, ThreadPool
from snippetbox.errors import HTTPParseError


@pytest.fixture
def sockets():
    server_side, client_side = socket.socketpair()
    yield server_side, client_side
    for sock in (server_side, client_side):
        try:
            sock.close()
        except OSError:
            pass


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestConnection:
    def test_reads_headers_and_body(self, sockets):
        server_side, client_side = sockets
        conn = Connection(server_side, ("127.0.0.1", 1), timeout=2.0)

        client_side.sendall(b"POST / HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello")

        assert conn.read_request() == b"POST / HTTP/1.1\r\nContent-Length: 5\r\n\r\nhello"
        assert conn.requests_handled == 1

    def test_pipelined_requests(self, sockets):
        server_side, client_side = sockets
        conn = Connection(server_side, ("127.0.0.1", 1), timeout=2.0)

        client_side.sendall(b"GET /a HTTP/1.1\r\n\r\nGET /b HTTP/1.1\r\n\r\n")

        assert conn.read_request().startswith(b"GET /a ")
        assert conn.read_request().startswith(b"GET /b ")

    def test_peer_close_returns_none(self, sockets):
        server_side, client_side = sockets
        conn = Connection(server_side, ("127.0.0.1", 1), timeout=2.0)
        client_side.close()
        assert conn.read_request() is None

    def test_first_request_timeout(self, sockets):
        server_side, _ = sockets
        conn = Connection(server_side, ("127.0.0.1", 1), timeout=0.1)
        with pytest.raises(TimeoutError):
            conn.read_request()

    def test_keep_alive_timeout_returns_none(self, sockets):
        server_side, client_side = sockets
        conn = Connection(server_side, ("127.0.0.1", 1), timeout=2.0, keep_alive_timeout=0.1)

        client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")
        assert conn.read_request() is not None
        assert conn.read_request() is None

    def test_too_large(self, sockets):
        server_side, client_side = sockets
        conn = Connection(server_side, ("127.0.0.1", 1), timeout=2.0, max_request_size=64)

        client_side.sendall(b"GET / HTTP/1.1\r\nX-Pad: " + b"a" * 100 + b"\r\n\r\n")

        with pytest.raises(HTTPParseError) as exc_info:
            conn.read_request()
        assert exc_info.value.status_code == 413

    def test_send_and_close(self, sockets):
        server_side, client_side = sockets
        conn = Connection(server_side, ("127.0.0.1", 1), timeout=2.0)

        assert conn.send_response(b"HTTP/1.1 200 OK\r\n\r\n")
        conn.close()
        conn.close()

        assert client_side.recv(1024) == b"HTTP/1.1 200 OK\r\n\r\n"
        assert conn.state == ConnectionState.CLOSED

    def test_bad_content_length_means_no_body(self):
        assert Connection._parse_content_length(b"GET / HTTP/1.1\r\nContent-Length: abc") == 0
        assert Connection._parse_content_length(b"GET / HTTP/1.1\r\ncontent-length: 12") == 12


class TestThreadPool:
    def test_runs_tasks(self):
        pool = ThreadPool(min_workers=2, max_workers=2, queue_size=10)
        pool.start()
        done = threading.Event()
        results = []

        def task(value):
            results.append(value)
            if len(results) == 3:
                done.set()

        try:
            for n in range(3):
                assert pool.submit(task, args=(n,))
            assert done.wait(2.0)
        finally:
            pool.shutdown()

        assert sorted(results) == [0, 1, 2]
        assert not pool.is_running

    def test_submit_requires_running_pool(self):
        with pytest.raises(RuntimeError):
            ThreadPool().submit(print)

    def test_full_queue_rejects(self):
        pool = ThreadPool(min_workers=1, max_workers=1, queue_size=1)
        pool.start()
        release = threading.Event()
        try:
            assert pool.submit(release.wait, args=(2.0,))
            assert wait_for(lambda: pool.busy_workers == 1)
            assert pool.submit(release.wait, args=(2.0,))
            assert pool.submit(release.wait, args=(2.0,)) is False
        finally:
            release.set()
            pool.shutdown()

    def test_scales_up_when_busy(self):
        pool = ThreadPool(min_workers=1, max_workers=3, queue_size=10)
        pool.start()
        release = threading.Event()
        try:
            pool.submit(release.wait, args=(2.0,))
            assert wait_for(lambda: pool.busy_workers == 1)
            pool.submit(release.wait, args=(2.0,))
            assert pool.stats["workers"]["total"] == 2
        finally:
            release.set()
            pool.shutdown()

    def test_failing_task_does_not_kill_worker(self):
        pool = ThreadPool(min_workers=1, max_workers=1, queue_size=10)
        pool.start()
        done = threading.Event()

        def boom():
            raise RuntimeError("task failed")

        try:
            pool.submit(boom)
            pool.submit(done.set)
            assert done.wait(2.0)
        finally:
            pool.shutdown()

    def test_shutdown_waits_for_queued_tasks(self):
        pool = ThreadPool(min_workers=1, max_workers=1, queue_size=10)
        pool.start()
        results = []

        for n in range(5):
            pool.submit(lambda n=n: (time.sleep(0.01), results.append(n)))
        pool.shutdown(wait=True, timeout=5.0)

        assert results == [0, 1, 2, 3, 4]
