"""Per-pool usage statistics from ``ceph df detail``."""

from typing import List

from prometheus_client.core import GaugeMetricFamily, Metric

from ceph_exporter.collectors.common import metric_name, mon_json, reading_payload
from ceph_exporter.errors import CephExporterException, DecodeError
from ceph_exporter.interfaces.collector import SubCollectorInterface
from ceph_exporter.interfaces.connection import ConnInterface
from ceph_exporter.version import NAUTILUS, VersionHolder


class PoolUsageCollector(SubCollectorInterface):
    """Reports stored bytes, raw bytes used, objects and free space per pool.

    Nautilus introduced the ``stored`` field for the logical amount of data in
    a pool; older releases report it as ``bytes_used``. The running version
    decides which field is read.
    """

    LABELS = ['cluster', 'pool']

    def __init__(self, conn: ConnInterface, cluster: str, version: VersionHolder, logger):
        self.conn = conn
        self.cluster = cluster
        self.version = version
        self.logger = logger

    def _families(self) -> List[GaugeMetricFamily]:
        return [
            GaugeMetricFamily(metric_name("pool", "stored_bytes"),
                              "Logical amount of data stored in the pool", labels=self.LABELS),
            GaugeMetricFamily(metric_name("pool", "raw_used_bytes"),
                              "Raw capacity consumed by the pool including replication", labels=self.LABELS),
            GaugeMetricFamily(metric_name("pool", "objects"),
                              "Number of objects in the pool", labels=self.LABELS),
            GaugeMetricFamily(metric_name("pool", "available_bytes"),
                              "Free space available to the pool", labels=self.LABELS),
        ]

    def describe(self) -> List[Metric]:
        return self._families()

    def _build_families(self, stats) -> List[Metric]:
        if not isinstance(stats, dict) or not isinstance(stats.get("pools"), list):
            raise DecodeError("ceph df response has no 'pools' list", reason="missing field: pools")

        version = self.version.get()
        has_stored = version is not None and version.is_at_least(NAUTILUS)

        stored, raw_used, objects, available = self._families()
        with reading_payload("ceph df detail"):
            for pool in stats["pools"]:
                name = pool.get("name")
                pool_stats = pool.get("stats") or {}
                if not name:
                    continue
                labels = [self.cluster, str(name)]
                if has_stored:
                    stored.add_metric(labels, float(pool_stats.get("stored", 0)))
                    raw_used.add_metric(labels, float(pool_stats.get("bytes_used", 0)))
                else:
                    stored.add_metric(labels, float(pool_stats.get("bytes_used", 0)))
                    raw_used.add_metric(labels, float(pool_stats.get("raw_bytes_used", 0)))
                objects.add_metric(labels, float(pool_stats.get("objects", 0)))
                available.add_metric(labels, float(pool_stats.get("max_avail", 0)))

        return [stored, raw_used, objects, available]

    def collect(self) -> List[Metric]:
        self.logger.debug("collecting pool usage metrics")
        try:
            return self._build_families(mon_json(self.conn, {"prefix": "df", "detail": "detail"}))
        except CephExporterException as e:
            self.logger.error(f"error collecting pool usage metrics: cluster={self.cluster}: {e}")
            return []
