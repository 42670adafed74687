#!/usr/bin/env python3
"""
Ceph Exporter - Main Entry Point

Builds one exporter per configured cluster, registers them with a
Prometheus registry and serves the registry over HTTP until interrupted.
"""

import signal
import sys
from typing import List

from prometheus_client import CollectorRegistry, PlatformCollector, ProcessCollector

from ceph_exporter import VERSION
from ceph_exporter.cli_parser import parse_arguments
from ceph_exporter.config import EXIT_CODE, load_cluster_configs, parse_duration, parse_listen_address
from ceph_exporter.connection import RadosConn
from ceph_exporter.errors import CephExporterException, ConfigurationError, ListenerError
from ceph_exporter.exporter import CephExporter, MultiClusterCollector
from ceph_exporter.exporter_logging import apply_logging_options, setup_logging
from ceph_exporter.server import make_server

logger = setup_logging("ceph_exporter")


def signal_handler(sig, frame):
    """Handle signals like SIGINT (Ctrl+C) and SIGTERM."""
    signal_name = signal.Signals(sig).name
    logger.warning(f"Received signal {signal_name} ({sig})")
    logger.info("Exiting due to signal")
    sys.exit(EXIT_CODE.INTERRUPTED)


def build_exporters(args, _logger) -> List[CephExporter]:
    """Create one CephExporter per configured cluster.

    Raises:
        ConfigurationError: If the exporter config file or an option is invalid.
    """
    timeout = parse_duration(args.ceph_rados_op_timeout)
    clusters = load_cluster_configs(args.exporter_config, args.ceph_cluster,
                                    args.ceph_user, args.ceph_config)

    exporters = []
    for cluster in clusters:
        _logger.info(f"exporting cluster: cluster={cluster.cluster_label} "
                     f"user={cluster.user} config={cluster.config_file}")
        conn = RadosConn(cluster.user, cluster.config_file, timeout, _logger)
        exporters.append(CephExporter(
            conn,
            cluster.cluster_label,
            cluster.config_file,
            cluster.user,
            args.rgw_mode,
            _logger,
            bucket_usage_workers=args.bucket_usage_workers,
        ))
    return exporters


def build_registry(collector) -> CollectorRegistry:
    """Return a registry holding the cluster collector and the process metrics."""
    registry = CollectorRegistry(auto_describe=True)
    registry.register(collector)
    ProcessCollector(registry=registry)
    PlatformCollector(registry=registry)
    return registry


def _main_impl(argv=None):
    """
    Internal main implementation.

    Raises:
        ConfigurationError: If the configuration is invalid.
        ListenerError: If the metrics listener cannot be created.
    """
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    args = parse_arguments(argv)
    apply_logging_options(logger, args)
    logger.info(f"ceph exporter {VERSION} starting")

    host, port = parse_listen_address(args.telemetry_addr)
    collector = MultiClusterCollector(build_exporters(args, logger))
    registry = build_registry(collector)

    try:
        server = make_server(host, port, registry, args.telemetry_path, logger)
    except OSError as e:
        collector.close()
        raise ListenerError(
            f"Unable to create listener on {args.telemetry_addr}",
            address=args.telemetry_addr,
            reason=str(e),
        ) from e

    logger.info(f"starting ceph exporter on {args.telemetry_addr}")
    try:
        server.serve_forever()
    except OSError as e:
        logger.critical(f"error serving requests: {e}")
        return EXIT_CODE.SERVE_ERROR
    finally:
        server.server_close()
        collector.close()

    return EXIT_CODE.SUCCESS


def main(argv=None):
    """
    Main entry point with error handling.

    Fatal errors are logged at critical level and turned into exit codes.
    """
    try:
        return _main_impl(argv)

    except ConfigurationError as e:
        logger.critical(f"cannot load configuration: {e}")
        return EXIT_CODE.CONFIG_ERROR

    except ListenerError as e:
        logger.critical(f"cannot create listener: {e}")
        return EXIT_CODE.LISTENER_ERROR

    except CephExporterException as e:
        logger.critical(str(e))
        return EXIT_CODE.FAILURE

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_CODE.INTERRUPTED

    except SystemExit:
        raise


if __name__ == "__main__":
    sys.exit(main())
