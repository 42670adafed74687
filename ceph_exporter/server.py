"""
HTTP exposition server.

``FailFastHTTPServer`` is a threading HTTP server whose accept step stops
the process when the operating system runs out of file descriptors.
``socketserver`` would otherwise log the failed accept and try again
immediately, spinning until someone raises the descriptor limit. Any
other accept error is left to ``socketserver``'s own handling.
"""

import errno
import socket
import sys
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Optional
from urllib.parse import urlparse

from prometheus_client import CollectorRegistry
from prometheus_client.exposition import choose_encoder

from ceph_exporter.config import DEFAULT_TELEMETRY_PATH, EXIT_CODE, KEEPALIVE_SECONDS
from ceph_exporter.errors import ErrorCode, ListenerError


DESCRIPTOR_EXHAUSTION_ERRNOS = frozenset({errno.EMFILE, errno.ENFILE})

LANDING_PAGE = """<html>
<head><title>Ceph Exporter</title></head>
<body>
<h1>Ceph Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""


def set_keepalive(conn: socket.socket, period: int, logger=None) -> None:
    """Enable TCP keep-alive probes on an accepted connection."""
    try:
        conn.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        if hasattr(socket, "TCP_KEEPIDLE"):
            conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, period)
        elif hasattr(socket, "TCP_KEEPALIVE"):
            # macOS names the idle option TCP_KEEPALIVE
            conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPALIVE, period)
        if hasattr(socket, "TCP_KEEPINTVL"):
            conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, period)
    except OSError as e:
        if logger:
            logger.debug(f"unable to enable keep-alive on scrape connection: {e}")


class FailFastHTTPServer(ThreadingHTTPServer):
    """Threading HTTP server that terminates on descriptor exhaustion.

    Attributes:
        logger: Logger instance for output.
        terminate: Called with an exit code when accept fails with EMFILE or
            ENFILE. Defaults to ``sys.exit``.
        keepalive_seconds: Keep-alive probe period for accepted connections.
    """

    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, server_address, RequestHandlerClass, logger,
                 terminate: Optional[Callable[[int], None]] = None,
                 keepalive_seconds: int = KEEPALIVE_SECONDS,
                 bind_and_activate: bool = True):
        self.logger = logger
        self.terminate = terminate or sys.exit
        self.keepalive_seconds = keepalive_seconds
        super().__init__(server_address, RequestHandlerClass, bind_and_activate)

    def get_request(self):
        try:
            conn, addr = self.socket.accept()
        except OSError as e:
            if e.errno in DESCRIPTOR_EXHAUSTION_ERRNOS:
                error = ListenerError("running out of file descriptors",
                                      address=str(self.server_address), reason=str(e),
                                      code=ErrorCode.DESCRIPTORS_EXHAUSTED)
                self.logger.critical(str(error))
                self.terminate(EXIT_CODE.RESOURCE_EXHAUSTED)
            raise

        set_keepalive(conn, self.keepalive_seconds, self.logger)
        return conn, addr


class FailFastHTTPServer6(FailFastHTTPServer):
    address_family = socket.AF_INET6


class MetricsRequestHandler(BaseHTTPRequestHandler):
    """Serves the registry on the metrics path and a link page elsewhere."""

    registry: CollectorRegistry = None
    metrics_path: str = DEFAULT_TELEMETRY_PATH
    logger = None

    def do_GET(self):
        path = urlparse(self.path).path
        if path == self.metrics_path:
            encoder, content_type = choose_encoder(self.headers.get('Accept'))
            output = encoder(self.registry)
            self._send(200, content_type, output)
        else:
            body = LANDING_PAGE.format(metrics_path=self.metrics_path).encode('utf-8')
            self._send(200, 'text/html; charset=utf-8', body)

    def _send(self, status: int, content_type: str, body: bytes):
        self.send_response(status)
        self.send_header('Content-Type', content_type)
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        if self.logger:
            self.logger.debug(f"{self.address_string()} - {format % args}")

    @classmethod
    def factory(cls, registry: CollectorRegistry, metrics_path: str, logger) -> type:
        """Return a handler class bound to a registry, path and logger."""
        return type(cls.__name__, (cls, object), {
            'registry': registry,
            'metrics_path': metrics_path,
            'logger': logger,
        })


def make_server(host: str, port: int, registry: CollectorRegistry, metrics_path: str,
                logger, terminate: Optional[Callable[[int], None]] = None) -> FailFastHTTPServer:
    """Create and bind the exposition server.

    Raises:
        OSError: If the listening socket cannot be created or bound.
    """
    server_class = FailFastHTTPServer6 if ':' in host else FailFastHTTPServer
    handler = MetricsRequestHandler.factory(registry, metrics_path, logger)
    return server_class((host, port), handler, logger, terminate=terminate)
