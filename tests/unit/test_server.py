"""Unit tests for the server module."""

import errno
import socket
import threading
import urllib.request
from unittest.mock import MagicMock

import pytest
from prometheus_client import CollectorRegistry

from ceph_exporter.config import EXIT_CODE
from ceph_exporter.errors import ErrorCode
from ceph_exporter.exporter import CephExporter, MultiClusterCollector
from ceph_exporter.server import (
    FailFastHTTPServer,
    FailFastHTTPServer6,
    MetricsRequestHandler,
    make_server,
    set_keepalive,
)
from tests.fixtures.mock_connection import MockConnection
from tests.fixtures.mock_logger import MockLogger
from tests.fixtures.sample_data import create_standard_responses


@pytest.fixture
def accept_server():
    """Unbound server whose listening socket can be replaced by a mock."""
    logger = MockLogger()
    terminated = []
    server = FailFastHTTPServer(("127.0.0.1", 0), MetricsRequestHandler, logger,
                                terminate=terminated.append, bind_and_activate=False)
    real_socket = server.socket
    server.socket = MagicMock()
    yield server, logger, terminated
    real_socket.close()


class TestFailFastAccept:
    """Tests for FailFastHTTPServer.get_request."""

    @pytest.mark.parametrize("code", [errno.EMFILE, errno.ENFILE])
    def test_descriptor_exhaustion_terminates(self, accept_server, code):
        server, logger, terminated = accept_server
        server.socket.accept.side_effect = OSError(code, "Too many open files")

        with pytest.raises(OSError):
            server.get_request()

        assert terminated == [EXIT_CODE.RESOURCE_EXHAUSTED]
        logger.assert_logged('critical', 'running out of file descriptors')
        logger.assert_logged('critical', ErrorCode.DESCRIPTORS_EXHAUSTED.value)
        logger.assert_logged('critical', 'ulimit -n')

    def test_other_errors_are_reraised_without_terminating(self, accept_server):
        server, logger, terminated = accept_server
        server.socket.accept.side_effect = OSError(errno.ECONNABORTED, "Software caused connection abort")

        with pytest.raises(OSError) as exc_info:
            server.get_request()

        assert exc_info.value.errno == errno.ECONNABORTED
        assert terminated == []
        assert logger.call_count['critical'] == 0

    def test_accepted_connection_gets_keepalive(self, accept_server):
        server, logger, terminated = accept_server
        conn = MagicMock()
        server.socket.accept.return_value = (conn, ("127.0.0.1", 50000))

        assert server.get_request() == (conn, ("127.0.0.1", 50000))
        conn.setsockopt.assert_any_call(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        assert terminated == []

    def test_default_terminate_exits(self):
        server = FailFastHTTPServer(("127.0.0.1", 0), MetricsRequestHandler, MockLogger(),
                                    bind_and_activate=False)
        real_socket = server.socket
        server.socket = MagicMock()
        server.socket.accept.side_effect = OSError(errno.EMFILE, "Too many open files")
        try:
            with pytest.raises(SystemExit) as exc_info:
                server.get_request()
            assert exc_info.value.code == EXIT_CODE.RESOURCE_EXHAUSTED
        finally:
            real_socket.close()


class TestSetKeepalive:
    """Tests for set_keepalive function."""

    def test_sets_period_where_supported(self):
        conn = MagicMock()
        set_keepalive(conn, 180)

        if hasattr(socket, "TCP_KEEPIDLE"):
            conn.setsockopt.assert_any_call(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, 180)
        if hasattr(socket, "TCP_KEEPINTVL"):
            conn.setsockopt.assert_any_call(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, 180)

    def test_socket_errors_are_logged(self):
        conn = MagicMock()
        conn.setsockopt.side_effect = OSError(errno.EBADF, "Bad file descriptor")
        logger = MockLogger()

        set_keepalive(conn, 180, logger)

        logger.assert_logged('debug', 'keep-alive')


class TestMakeServer:
    """Tests for make_server and the metrics endpoint."""

    @pytest.fixture
    def running_server(self):
        logger = MockLogger()
        exporter = CephExporter(MockConnection(mon_responses=create_standard_responses()),
                                "ceph", "/etc/ceph/ceph.conf", "admin", 0, logger)
        registry = CollectorRegistry()
        registry.register(MultiClusterCollector([exporter]))

        server = make_server("127.0.0.1", 0, registry, "/metrics", logger)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        yield f"http://127.0.0.1:{server.server_address[1]}"
        server.shutdown()
        server.server_close()

    def test_serves_metrics(self, running_server):
        with urllib.request.urlopen(f"{running_server}/metrics", timeout=10) as response:
            body = response.read().decode("utf-8")
            content_type = response.headers["Content-Type"]

        assert response.status == 200
        assert content_type.startswith("text/plain")
        assert 'ceph_cluster_capacity_bytes{cluster="ceph"}' in body
        assert 'ceph_health_status{cluster="ceph"} 1.0' in body

    def test_other_paths_link_to_metrics(self, running_server):
        with urllib.request.urlopen(f"{running_server}/", timeout=10) as response:
            body = response.read().decode("utf-8")

        assert "<a href='/metrics'>Metrics</a>" in body

    def test_ipv6_address_selects_ipv6_server(self, monkeypatch):
        captured = {}

        def fake_init(self, server_address, handler, logger, terminate=None, **kwargs):
            captured["class"] = type(self)
            captured["address"] = server_address

        monkeypatch.setattr(FailFastHTTPServer, "__init__", fake_init)

        make_server("::1", 9128, CollectorRegistry(), "/metrics", MockLogger())

        assert captured["class"] is FailFastHTTPServer6
        assert captured["address"] == ("::1", 9128)

    def test_address_in_use_raises(self):
        blocker = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        blocker.bind(("127.0.0.1", 0))
        blocker.listen(1)
        try:
            with pytest.raises(OSError):
                make_server("127.0.0.1", blocker.getsockname()[1], CollectorRegistry(),
                            "/metrics", MockLogger())
        finally:
            blocker.close()
