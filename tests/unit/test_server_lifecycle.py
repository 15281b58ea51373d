"""Unit tests for StreamingServer start/stop lifecycle and failure policy."""

from __future__ import annotations

import logging
import socket
import threading

import pytest

from deskview.common.config import ServerConfig
from deskview.common.errors import AlreadyRunningError, BindError
from deskview.common.types import ServerState
from deskview.server.log_sink import LoggerSink
from deskview.server.network import StreamingServer


class _FailingListener:
    """Listener whose accept() fails with a non-shutdown error."""

    def accept(self):
        raise OSError("accept exploded")


class _FailingSource:
    """Frame source that always raises."""

    def frame_next(self):
        raise RuntimeError("capture device gone")


class _CrashingEncoder:
    """Encoder that fails with something other than EncodeError."""

    def frame_encode(self, frame):
        raise RuntimeError("codec crashed")


class TestServerStart:
    """Tests for server_start state transitions."""

    def test_start_returns_bound_port(self, server_factory, small_config) -> None:
        lines: list[str] = []
        server = server_factory(small_config, log_sink=lines.append)

        port = server.server_start()

        assert port > 0
        assert server.port == port
        assert server.state is ServerState.RUNNING
        assert server.is_running
        assert lines == [f"Server started on port: {port}."]

    def test_start_twice_raises_without_side_effect(self, server_factory, small_config) -> None:
        server = server_factory(small_config)
        port = server.server_start()
        accept_thread = server._accept_thread
        tick_thread = server._tick_thread

        with pytest.raises(AlreadyRunningError):
            server.server_start()

        assert server.state is ServerState.RUNNING
        assert server.port == port
        assert server._accept_thread is accept_thread
        assert server._tick_thread is tick_thread
        assert accept_thread.is_alive() and tick_thread.is_alive()

    def test_bind_error_when_port_taken(self, server_factory, small_config) -> None:
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        taken_port = blocker.getsockname()[1]
        lines: list[str] = []
        server = server_factory(small_config, log_sink=lines.append)
        try:
            with pytest.raises(BindError) as excinfo:
                server.server_start(taken_port)
        finally:
            blocker.close()

        assert excinfo.value.port == taken_port
        assert isinstance(excinfo.value, OSError)
        assert server.state is ServerState.STOPPED
        assert lines and f"port {taken_port}" in lines[0]

    def test_restart_after_stop(self, server_factory, small_config) -> None:
        server = server_factory(small_config)
        server.server_start()
        server.server_stop()

        server.server_start()

        assert server.is_running


class TestServerStop:
    """Tests for server_stop idempotence and cleanup."""

    def test_stop_when_never_started(self, server_factory, small_config) -> None:
        server = server_factory(small_config)
        server.server_stop()
        assert server.state is ServerState.STOPPED

    def test_stop_twice(self, server_factory, small_config) -> None:
        lines: list[str] = []
        server = server_factory(small_config, log_sink=lines.append)
        server.server_start()

        server.server_stop()
        server.server_stop()

        assert server.state is ServerState.STOPPED
        assert server.clients_count() == 0
        assert lines.count("Server stopped.") == 1

    def test_stop_joins_loop_threads(self, server_factory, small_config) -> None:
        server = server_factory(small_config)
        server.server_start()
        accept_thread = server._accept_thread
        tick_thread = server._tick_thread

        server.server_stop()

        assert not accept_thread.is_alive()
        assert not tick_thread.is_alive()

    def test_context_manager_stops(self, small_config) -> None:
        with StreamingServer(small_config) as server:
            server.server_start()
            assert server.is_running
        assert server.state is ServerState.STOPPED

    def test_stop_from_other_thread(self, server_factory, small_config) -> None:
        server = server_factory(small_config)
        server.server_start()

        stopper = threading.Thread(target=server.server_stop)
        stopper.start()
        stopper.join(5.0)

        assert server.state is ServerState.STOPPED


class TestServerFailurePolicy:
    """Tests for fatal loop errors."""

    def test_accept_error_logs_and_stops(self, server_factory, small_config) -> None:
        lines: list[str] = []
        server = server_factory(small_config, log_sink=lines.append)
        server.server_start()

        server._accept_loop(_FailingListener(), server._stop_event)

        assert server.state is ServerState.STOPPED
        assert "Accept failed: accept exploded" in lines

    def test_frame_source_error_stops_server(
        self, server_factory, small_config, stream_client, wait_until
    ) -> None:
        lines: list[str] = []
        server = server_factory(small_config, frame_source=_FailingSource(), log_sink=lines.append)
        port = server.server_start()

        stream_client(port)

        assert wait_until(lambda: server.state is ServerState.STOPPED)
        assert "Frame source failed: capture device gone" in lines
        assert server.clients_count() == 0

    def test_unexpected_encoder_error_stops_server(
        self, server_factory, small_config, stream_client, wait_until
    ) -> None:
        lines: list[str] = []
        server = server_factory(small_config, frame_encoder=_CrashingEncoder(), log_sink=lines.append)
        port = server.server_start()
        tick_thread = server._tick_thread

        stream_client(port)

        assert wait_until(lambda: server.state is ServerState.STOPPED)
        assert "Frame encoder failed: codec crashed" in lines
        assert wait_until(lambda: "Server stopped." in lines)
        assert server.clients_count() == 0
        tick_thread.join(2.0)
        assert not tick_thread.is_alive()


class TestServerAccessors:
    """Tests for configuration accessors and logging."""

    def test_interval_setter_validates(self, small_config) -> None:
        server = StreamingServer(small_config)
        server.frame_interval_ms = 0
        assert server.frame_interval_ms == 0
        with pytest.raises(ValueError):
            server.frame_interval_ms = -1

    def test_frame_source_replaceable(self, small_config) -> None:
        server = StreamingServer(small_config)
        replacement = _FailingSource()
        server.frame_source = replacement
        assert server.frame_source is replacement

    def test_default_config(self) -> None:
        server = StreamingServer()
        assert server.config == ServerConfig(width=800, height=600)
        assert server.clients_count() == 0
        assert server.clients_snapshot() == []

    def test_log_sink_replaced(self, server_factory, small_config) -> None:
        first: list[str] = []
        second: list[str] = []
        server = server_factory(small_config, log_sink=first.append)
        server.server_start()

        server.logSink_set(second.append)
        server.server_stop()

        assert first == [f"Server started on port: {server.port}."]
        assert second == ["Server stopped."]

    def test_no_sink_uses_module_logger(self, small_config, caplog) -> None:
        server = StreamingServer(small_config)
        server._log_write("hello from server", logging.WARNING)
        assert ("deskview.server.network", logging.WARNING, "hello from server") in caplog.record_tuples

    def test_failing_sink_falls_back_to_logger(self, small_config, caplog) -> None:
        def broken_sink(line: str) -> None:
            raise RuntimeError("widget destroyed")

        server = StreamingServer(small_config, log_sink=broken_sink)
        server._log_write("status line")

        messages = [record.getMessage() for record in caplog.records]
        assert "Log sink failed: widget destroyed" in messages
        assert "status line" in messages

    def test_logger_sink_forwards(self, caplog) -> None:
        sink = LoggerSink(logging.getLogger("deskview.test"), level=logging.WARNING)
        sink("New client from: 127.0.0.1:5000")
        assert (
            "deskview.test",
            logging.WARNING,
            "New client from: 127.0.0.1:5000",
        ) in caplog.record_tuples
