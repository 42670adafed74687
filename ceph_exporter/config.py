"""
Configuration constants and cluster list loading for the Ceph exporter.

Defaults can be overridden through environment variables (see ``check_env``)
and command-line options. The optional exporter config file is a YAML
document listing the clusters to monitor::

    cluster:
      - cluster_label: ceph
        user: admin
        config_file: /etc/ceph/ceph.conf
"""

import enum
import os
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

import yaml

from ceph_exporter.errors import ConfigurationError, ErrorCode


DEFAULT_TELEMETRY_ADDR = ":9128"
DEFAULT_TELEMETRY_PATH = "/metrics"
DEFAULT_EXPORTER_CONFIG = "/etc/ceph/exporter.yml"
DEFAULT_LOG_LEVEL = "info"

DEFAULT_CEPH_CLUSTER_LABEL = "ceph"
DEFAULT_CEPH_CONFIG_PATH = "/etc/ceph/ceph.conf"
DEFAULT_CEPH_USER = "admin"
DEFAULT_RADOS_OP_TIMEOUT = "30s"

DEFAULT_BUCKET_USAGE_WORKERS = 10

CEPH_NAMESPACE = "ceph"

CEPH_BIN = "ceph"
RADOSGW_ADMIN_BIN = "radosgw-admin"

# Keep-alive probe period for accepted scrape connections
KEEPALIVE_SECONDS = 180

# Interval between collections when the gateway collector runs in background
RGW_BACKGROUND_INTERVAL_SECONDS = 300


class EXIT_CODE(enum.IntEnum):
    SUCCESS = 0
    FAILURE = 1
    CONFIG_ERROR = 2
    LISTENER_ERROR = 3
    RESOURCE_EXHAUSTED = 4
    SERVE_ERROR = 5
    INTERRUPTED = 130

    def __str__(self):
        return f"{self.name} ({self.value})"


class RGW_MODE(enum.IntEnum):
    """How the RADOS gateway sub-collectors run."""
    DISABLED = 0
    FOREGROUND = 1
    BACKGROUND = 2


def check_env(setting, default_value=None):
    """
    Return the value of an environment variable, or a default.

    String values of ``true``/``false`` (any case) are converted to booleans.
    When the default is an ``int`` and the environment holds a numeric string,
    the value is converted to ``int`` as well.
    """
    value = os.environ.get(setting)
    if value is None:
        return default_value

    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    if isinstance(default_value, int) and not isinstance(default_value, bool):
        try:
            return int(value)
        except ValueError:
            return value

    return value


_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0, None: 1.0}


def parse_duration(value) -> float:
    """Parse a duration like ``30s``, ``5m``, ``250ms`` or ``12`` into seconds.

    Raises:
        ConfigurationError: If the value is not a recognised duration.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)

    match = _DURATION_RE.match(str(value))
    if not match:
        raise ConfigurationError(
            f"Invalid duration: {value!r}",
            parameter="duration",
            expected="a number followed by ms, s, m or h (e.g. 30s)",
            actual=value,
        )
    return float(match.group(1)) * _DURATION_UNITS[match.group(2)]


@dataclass(frozen=True)
class ClusterConfig:
    """Connection identity of one monitored cluster."""
    cluster_label: str
    user: str
    config_file: str


def file_exists(path: str) -> bool:
    return bool(path) and os.path.isfile(path)


def _require_str(entry: dict, key: str, index: int, path: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value:
        raise ConfigurationError(
            f"Cluster entry {index} in {path} is missing '{key}'",
            parameter=key,
            expected="non-empty string",
            actual=value,
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
        )
    return value


def parse_config(path: str) -> List[ClusterConfig]:
    """Load the list of clusters from a YAML exporter config file.

    Args:
        path: Path to the YAML file.

    Returns:
        One ClusterConfig per entry under the ``cluster`` key.

    Raises:
        ConfigurationError: If the file cannot be read or has the wrong shape.
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(
            f"Unable to read exporter config file: {path}",
            parameter="exporter_config",
            actual=str(e),
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in exporter config file: {path}",
            parameter="exporter_config",
            actual=str(e),
            code=ErrorCode.CONFIG_PARSE_ERROR,
        ) from e

    if not isinstance(data, dict) or not isinstance(data.get("cluster"), list):
        raise ConfigurationError(
            f"Exporter config file {path} must contain a 'cluster' list",
            parameter="cluster",
            expected="list of cluster entries",
            actual=type(data.get("cluster") if isinstance(data, dict) else data).__name__,
            code=ErrorCode.CONFIG_PARSE_ERROR,
        )

    clusters = []
    for index, entry in enumerate(data["cluster"]):
        if not isinstance(entry, dict):
            raise ConfigurationError(
                f"Cluster entry {index} in {path} is not a mapping",
                parameter="cluster",
                actual=entry,
                code=ErrorCode.CONFIG_PARSE_ERROR,
            )
        clusters.append(ClusterConfig(
            cluster_label=_require_str(entry, "cluster_label", index, path),
            user=_require_str(entry, "user", index, path),
            config_file=_require_str(entry, "config_file", index, path),
        ))
    return clusters


def load_cluster_configs(exporter_config: Optional[str], cluster_label: str,
                         user: str, config_file: str) -> List[ClusterConfig]:
    """Return the clusters to export.

    When ``exporter_config`` points to an existing file, the clusters listed
    there are used; otherwise a single cluster is built from the flat values.
    """
    if exporter_config and file_exists(exporter_config):
        return parse_config(exporter_config)

    return [ClusterConfig(cluster_label=cluster_label, user=user, config_file=config_file)]


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split a ``host:port`` listen address; an empty host binds all interfaces."""
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ConfigurationError(
            f"Invalid listen address: {address!r}",
            parameter="telemetry_addr",
            expected="host:port",
            actual=address,
        )
    try:
        port_num = int(port)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid port in listen address: {address!r}",
            parameter="telemetry_addr",
            expected="integer port",
            actual=port,
        ) from e

    return host.strip("[]"), port_num
