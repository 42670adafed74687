"""
Scrape-cycle orchestration.

``CephExporter`` wraps all sub-collectors of one cluster and is what the
``prometheus_client`` registry calls on every scrape. It refreshes the
cluster version, then runs each sub-collector in a fixed order. Collection
is serialized by a per-exporter lock because the connection and the
version holder are shared by every sub-collector.

``MultiClusterCollector`` puts several exporters behind one registry entry
and merges their metric families by name, so each metric appears once in
the exposition with samples for every cluster.
"""

import threading
from typing import Iterable, List

from prometheus_client.core import Metric

from ceph_exporter.collectors import (
    BucketUsageCollector,
    ClusterHealthCollector,
    ClusterUsageCollector,
    PoolUsageCollector,
    RGWCollector,
)
from ceph_exporter.config import DEFAULT_BUCKET_USAGE_WORKERS, RGW_MODE
from ceph_exporter.errors import CephExporterException
from ceph_exporter.interfaces.collector import SubCollectorInterface
from ceph_exporter.interfaces.connection import ConnInterface
from ceph_exporter.version import VersionGate, VersionHolder


def build_collectors(conn: ConnInterface, cluster: str, version: VersionHolder,
                     rgw_mode, logger,
                     bucket_usage_workers: int = DEFAULT_BUCKET_USAGE_WORKERS) -> List[SubCollectorInterface]:
    """Return the active sub-collectors for a cluster, in collection order.

    Args:
        conn: Connection shared by all sub-collectors.
        cluster: Cluster label attached to every sample.
        version: Version holder refreshed by the exporter each cycle.
        rgw_mode: One of RGW_MODE (0 disabled, 1 foreground, 2 background).
            Any other value disables the gateway collectors with a warning.
        logger: Logger instance for output.
        bucket_usage_workers: Concurrency limit of the bucket usage fan-out.

    Returns:
        List of sub-collectors; the standard ones always come first.
    """
    collectors: List[SubCollectorInterface] = [
        ClusterUsageCollector(conn, cluster, version, logger),
        PoolUsageCollector(conn, cluster, version, logger),
        ClusterHealthCollector(conn, cluster, version, logger),
    ]

    try:
        mode = RGW_MODE(rgw_mode)
    except (ValueError, TypeError):
        logger.warning(f"RGW collector disabled due to invalid mode: rgwMode={rgw_mode}")
        return collectors

    if mode == RGW_MODE.DISABLED:
        return collectors

    collectors.append(RGWCollector(conn, cluster, version, logger,
                                   background=(mode == RGW_MODE.BACKGROUND)))
    collectors.append(BucketUsageCollector(conn, cluster, version, logger,
                                           max_workers=bucket_usage_workers))
    return collectors


class CephExporter:
    """Collects every enabled statistic family of one cluster.

    Attributes:
        conn: Connection to the cluster.
        cluster: Cluster label.
        config: Path to the cluster's ceph.conf.
        user: Ceph client id used for the connection.
        rgw_mode: Gateway collection mode.
        version: Holder of the version detected in the current cycle.
    """

    def __init__(self, conn: ConnInterface, cluster: str, config: str, user: str,
                 rgw_mode, logger,
                 bucket_usage_workers: int = DEFAULT_BUCKET_USAGE_WORKERS):
        self.conn = conn
        self.cluster = cluster
        self.config = config
        self.user = user
        self.rgw_mode = rgw_mode
        self.logger = logger
        self.bucket_usage_workers = bucket_usage_workers

        self.version = VersionHolder()
        self.version_gate = VersionGate(conn, self.version)

        self._cycle_lock = threading.Lock()
        self._collectors = build_collectors(
            conn, cluster, self.version, rgw_mode, logger,
            bucket_usage_workers=bucket_usage_workers,
        )
        self._start_background_collectors()

    def _start_background_collectors(self) -> None:
        for cc in self._collectors:
            if isinstance(cc, RGWCollector) and cc.background:
                cc.start()

    def get_collectors(self) -> List[SubCollectorInterface]:
        """Return the active sub-collectors."""
        return list(self._collectors)

    def _refresh_version(self) -> bool:
        try:
            version = self.version_gate.refresh()
        except CephExporterException as e:
            self.logger.error(f"failed to set ceph version: cluster={self.cluster}: {e}")
            return False
        self.logger.trace(f"ceph version: cluster={self.cluster} version={version}")
        return True

    def describe(self) -> List[Metric]:
        """Return the metric families of every active sub-collector.

        Returns nothing when the cluster version cannot be determined.
        """
        if not self._refresh_version():
            return []

        families: List[Metric] = []
        for cc in self.get_collectors():
            families.extend(cc.describe())
        return families

    def collect(self) -> List[Metric]:
        """Run one collection pass.

        Concurrent calls run one at a time. A failed version refresh ends
        the pass with no samples; sub-collector failures only reduce the
        samples of that sub-collector.
        """
        with self._cycle_lock:
            if not self._refresh_version():
                return []

            families: List[Metric] = []
            for cc in self.get_collectors():
                families.extend(cc.collect())
            return families

    def close(self) -> None:
        """Stop background work started by sub-collectors."""
        for cc in self._collectors:
            if isinstance(cc, RGWCollector):
                cc.stop()


def merge_families(family_lists: Iterable[Iterable[Metric]]) -> List[Metric]:
    """Merge families with the same name into one family per name.

    New Metric objects are built so that families cached by a sub-collector
    are never modified.
    """
    merged = {}
    for families in family_lists:
        for family in families:
            existing = merged.get(family.name)
            if existing is None:
                existing = Metric(family.name, family.documentation, family.type, family.unit)
                merged[family.name] = existing
            existing.samples.extend(family.samples)
    return list(merged.values())


class MultiClusterCollector:
    """Registry entry exposing several CephExporter instances as one collector."""

    def __init__(self, exporters: List[CephExporter]):
        self.exporters = list(exporters)

    def describe(self) -> List[Metric]:
        return merge_families(exporter.describe() for exporter in self.exporters)

    def collect(self) -> List[Metric]:
        return merge_families(exporter.collect() for exporter in self.exporters)

    def close(self) -> None:
        for exporter in self.exporters:
            exporter.close()
