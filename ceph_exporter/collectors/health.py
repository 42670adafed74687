"""Cluster health from ``ceph health``."""

from typing import List

from prometheus_client.core import GaugeMetricFamily, Metric

from ceph_exporter.collectors.common import metric_name, mon_json, reading_payload
from ceph_exporter.errors import CephExporterException, DecodeError
from ceph_exporter.interfaces.collector import SubCollectorInterface
from ceph_exporter.interfaces.connection import ConnInterface
from ceph_exporter.version import VersionHolder


HEALTH_STATUS = {
    "HEALTH_OK": 0,
    "HEALTH_WARN": 1,
    "HEALTH_ERR": 2,
}


class ClusterHealthCollector(SubCollectorInterface):
    """Reports the overall health status and every active health check."""

    def __init__(self, conn: ConnInterface, cluster: str, version: VersionHolder, logger):
        self.conn = conn
        self.cluster = cluster
        self.version = version
        self.logger = logger

    def _families(self) -> List[GaugeMetricFamily]:
        return [
            GaugeMetricFamily(metric_name("", "health_status"),
                              "Health status of the cluster (0=OK, 1=WARN, 2=ERR)",
                              labels=['cluster']),
            GaugeMetricFamily(metric_name("", "health_check"),
                              "Active health checks, valued by severity (1=WARN, 2=ERR)",
                              labels=['cluster', 'check', 'severity']),
        ]

    def describe(self) -> List[Metric]:
        return self._families()

    def _build_families(self, health) -> List[Metric]:
        if not isinstance(health, dict) or "status" not in health:
            raise DecodeError("ceph health response has no 'status'", reason="missing field: status")

        status_family, check_family = self._families()
        with reading_payload("ceph health detail"):
            status = health["status"]
            if status not in HEALTH_STATUS:
                self.logger.warning(f"unknown health status: cluster={self.cluster} status={status}")
            else:
                status_family.add_metric([self.cluster], HEALTH_STATUS[status])

            checks = health.get("checks") or {}
            for check_name in sorted(checks):
                severity = str((checks[check_name] or {}).get("severity", ""))
                check_family.add_metric([self.cluster, check_name, severity],
                                        HEALTH_STATUS.get(severity, 0))

        return [status_family, check_family]

    def collect(self) -> List[Metric]:
        self.logger.debug("collecting cluster health metrics")
        try:
            return self._build_families(mon_json(self.conn, {"prefix": "health", "detail": "detail"}))
        except CephExporterException as e:
            self.logger.error(f"error collecting cluster health metrics: cluster={self.cluster}: {e}")
            return []
