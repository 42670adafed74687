"""Cluster-wide capacity statistics from ``ceph df``."""

from typing import List

from prometheus_client.core import GaugeMetricFamily, Metric

from ceph_exporter.collectors.common import metric_name, mon_json, reading_payload
from ceph_exporter.errors import CephExporterException, DecodeError
from ceph_exporter.interfaces.collector import SubCollectorInterface
from ceph_exporter.interfaces.connection import ConnInterface
from ceph_exporter.version import VersionHolder


class ClusterUsageCollector(SubCollectorInterface):
    """Reports total, used and available raw capacity of the cluster."""

    LABELS = ['cluster']

    def __init__(self, conn: ConnInterface, cluster: str, version: VersionHolder, logger):
        self.conn = conn
        self.cluster = cluster
        self.version = version
        self.logger = logger

    def _families(self) -> List[GaugeMetricFamily]:
        return [
            GaugeMetricFamily(metric_name("cluster", "capacity_bytes"),
                              "Total capacity of the cluster", labels=self.LABELS),
            GaugeMetricFamily(metric_name("cluster", "used_bytes"),
                              "Capacity of the cluster currently in use", labels=self.LABELS),
            GaugeMetricFamily(metric_name("cluster", "available_bytes"),
                              "Available space within the cluster", labels=self.LABELS),
        ]

    def describe(self) -> List[Metric]:
        return self._families()

    def collect(self) -> List[Metric]:
        self.logger.debug("collecting cluster usage metrics")
        try:
            stats = mon_json(self.conn, {"prefix": "df"})
            if not isinstance(stats, dict) or not isinstance(stats.get("stats"), dict):
                raise DecodeError("ceph df response has no 'stats' object", reason="missing field: stats")
            totals = stats["stats"]

            capacity, used, available = self._families()
            with reading_payload("ceph df"):
                capacity.add_metric([self.cluster], float(totals.get("total_bytes", 0)))
                used.add_metric([self.cluster], float(totals.get("total_used_bytes", 0)))
                available.add_metric([self.cluster], float(totals.get("total_avail_bytes", 0)))
        except CephExporterException as e:
            self.logger.error(f"error collecting cluster usage metrics: cluster={self.cluster}: {e}")
            return []

        return [capacity, used, available]
