"""
CLI argument parsing for the Ceph exporter.

Every option can also be set through the environment variable named in
its help text; a command-line value takes precedence over the environment.
"""

import argparse

from ceph_exporter import VERSION
from ceph_exporter.config import (
    DEFAULT_BUCKET_USAGE_WORKERS,
    DEFAULT_CEPH_CLUSTER_LABEL,
    DEFAULT_CEPH_CONFIG_PATH,
    DEFAULT_CEPH_USER,
    DEFAULT_EXPORTER_CONFIG,
    DEFAULT_LOG_LEVEL,
    DEFAULT_RADOS_OP_TIMEOUT,
    DEFAULT_TELEMETRY_ADDR,
    DEFAULT_TELEMETRY_PATH,
    RGW_MODE,
    check_env,
)


HELP_MESSAGES = {
    'telemetry_addr': "Host:port for the exporter to listen on (env: TELEMETRY_ADDR).",
    'telemetry_path': "URL path for surfacing the collected metrics (env: TELEMETRY_PATH).",
    'exporter_config': (
        "Path to the YAML exporter config file listing the clusters to monitor. When the file "
        "does not exist, the single cluster given by the --ceph-* options is used "
        "(env: EXPORTER_CONFIG)."
    ),
    'rgw_mode': (
        "Enable collection of RADOS gateway stats (env: RGW_MODE). "
        f"\n    {RGW_MODE.DISABLED.value} = disabled, "
        f"\n    {RGW_MODE.FOREGROUND.value} = collect during the scrape, "
        f"\n    {RGW_MODE.BACKGROUND.value} = collect in the background"
    ),
    'log_level': (
        "Logging level: trace, debug, info, warn, error, fatal or panic (env: LOG_LEVEL)."
    ),
    'ceph_cluster': "Cluster label attached to every metric (env: CEPH_CLUSTER).",
    'ceph_config': "Path to the cluster's ceph.conf (env: CEPH_CONFIG).",
    'ceph_user': "Ceph client id used to connect, e.g. 'admin' for client.admin (env: CEPH_USER).",
    'ceph_rados_op_timeout': (
        "Timeout for each cluster command, e.g. 30s or 2m. 0 disables the timeout "
        "(env: CEPH_RADOS_OP_TIMEOUT)."
    ),
    'bucket_usage_workers': (
        "Maximum number of concurrent per-bucket usage lookups (env: BUCKET_USAGE_WORKERS)."
    ),
}


def add_exporter_arguments(parser):
    """Add the listener and logging options.

    Args:
        parser: Argparse parser to add arguments to.
    """
    exporter_args = parser.add_argument_group("Exporter")
    exporter_args.add_argument(
        '--telemetry-addr',
        type=str,
        default=check_env('TELEMETRY_ADDR', DEFAULT_TELEMETRY_ADDR),
        help=HELP_MESSAGES['telemetry_addr']
    )
    exporter_args.add_argument(
        '--telemetry-path',
        type=str,
        default=check_env('TELEMETRY_PATH', DEFAULT_TELEMETRY_PATH),
        help=HELP_MESSAGES['telemetry_path']
    )
    exporter_args.add_argument(
        '--exporter-config',
        type=str,
        default=check_env('EXPORTER_CONFIG', DEFAULT_EXPORTER_CONFIG),
        help=HELP_MESSAGES['exporter_config']
    )
    exporter_args.add_argument(
        '--rgw-mode',
        type=int,
        default=check_env('RGW_MODE', int(RGW_MODE.DISABLED)),
        help=HELP_MESSAGES['rgw_mode']
    )
    exporter_args.add_argument(
        '--bucket-usage-workers',
        type=int,
        default=check_env('BUCKET_USAGE_WORKERS', DEFAULT_BUCKET_USAGE_WORKERS),
        help=HELP_MESSAGES['bucket_usage_workers']
    )
    exporter_args.add_argument(
        '--log-level',
        type=str,
        default=check_env('LOG_LEVEL', DEFAULT_LOG_LEVEL),
        help=HELP_MESSAGES['log_level']
    )


def add_ceph_arguments(parser):
    """Add the options describing the single-cluster connection.

    Args:
        parser: Argparse parser to add arguments to.
    """
    ceph_args = parser.add_argument_group("Ceph Connection")
    ceph_args.add_argument(
        '--ceph-cluster',
        type=str,
        default=check_env('CEPH_CLUSTER', DEFAULT_CEPH_CLUSTER_LABEL),
        help=HELP_MESSAGES['ceph_cluster']
    )
    ceph_args.add_argument(
        '--ceph-config',
        type=str,
        default=check_env('CEPH_CONFIG', DEFAULT_CEPH_CONFIG_PATH),
        help=HELP_MESSAGES['ceph_config']
    )
    ceph_args.add_argument(
        '--ceph-user',
        type=str,
        default=check_env('CEPH_USER', DEFAULT_CEPH_USER),
        help=HELP_MESSAGES['ceph_user']
    )
    ceph_args.add_argument(
        '--ceph-rados-op-timeout',
        type=str,
        default=check_env('CEPH_RADOS_OP_TIMEOUT', DEFAULT_RADOS_OP_TIMEOUT),
        help=HELP_MESSAGES['ceph_rados_op_timeout']
    )


def parse_arguments(argv=None):
    """Parse command-line arguments for the exporter.

    Args:
        argv: Argument list to parse; defaults to ``sys.argv[1:]``.

    Returns:
        argparse.Namespace: Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Prometheus exporter for Ceph cluster, pool, health and RADOS gateway statistics",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")

    add_exporter_arguments(parser)
    add_ceph_arguments(parser)

    return parser.parse_args(argv)
