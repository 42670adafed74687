"""
Per-bucket usage statistics from the RADOS gateway.

Collection runs in two steps:

1. One ``radosgw-admin bucket stats`` call lists every bucket and its owner.
2. One ``radosgw-admin usage show`` call per bucket, run on a bounded
   thread pool, returns the per-category byte and operation counters.

A bucket whose usage lookup fails is logged and skipped; samples of the
other buckets are still reported. Every failure is kept in the
``CollectionResult`` of the cycle, none of them is retried.
"""

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Any, Dict, List

from prometheus_client.core import GaugeMetricFamily, Metric

from ceph_exporter.collectors.common import decode_json, metric_name, reading_payload
from ceph_exporter.config import DEFAULT_BUCKET_USAGE_WORKERS
from ceph_exporter.errors import CephExporterException, DecodeError
from ceph_exporter.interfaces.collector import CollectionResult, SubCollectorInterface
from ceph_exporter.interfaces.connection import ConnInterface
from ceph_exporter.version import VersionHolder


USAGE_CATEGORIES = "put_obj,get_obj"


@dataclass
class BucketStats:
    """One entry of ``radosgw-admin bucket stats``."""
    bucket: str
    owner: str
    id: str = ""
    num_shards: int = 0
    mtime: str = ""
    creation_time: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BucketStats':
        """Create instance from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


@dataclass
class CategoryUsage:
    """Usage counters of one user and category within a bucket."""
    user: str
    category: str
    bytes_sent: int = 0
    bytes_received: int = 0
    ops: int = 0
    successful_ops: int = 0


def parse_bucket_stats(buf: bytes) -> List[BucketStats]:
    """Parse the JSON array returned by ``radosgw-admin bucket stats``.

    Raises:
        DecodeError: If the payload is not a list of bucket objects.
    """
    data = decode_json(buf, "bucket stats")
    if not isinstance(data, list):
        raise DecodeError("bucket stats response is not a list", payload=buf,
                          reason=f"got {type(data).__name__}")

    buckets = []
    for entry in data:
        if not isinstance(entry, dict) or not entry.get("bucket"):
            raise DecodeError("bucket stats entry has no 'bucket'", payload=buf,
                              reason="missing field: bucket")
        entry = dict(entry)
        entry["bucket"] = str(entry["bucket"])
        entry["owner"] = str(entry.get("owner") or "")
        buckets.append(BucketStats.from_dict(entry))
    return buckets


def parse_bucket_usage(buf: bytes) -> List[CategoryUsage]:
    """Parse the ``summary`` section of ``radosgw-admin usage show``.

    Raises:
        DecodeError: If the payload is not an object with a summary list.
    """
    data = decode_json(buf, "bucket usage")
    if not isinstance(data, dict):
        raise DecodeError("bucket usage response is not an object", payload=buf,
                          reason=f"got {type(data).__name__}")

    usage = []
    with reading_payload("bucket usage"):
        for summary in data.get("summary") or []:
            user = str(summary.get("user", ""))
            for category in summary.get("categories") or []:
                usage.append(CategoryUsage(
                    user=user,
                    category=str(category.get("category", "")),
                    bytes_sent=int(category.get("bytes_sent", 0)),
                    bytes_received=int(category.get("bytes_received", 0)),
                    ops=int(category.get("ops", 0)),
                    successful_ops=int(category.get("successful_ops", 0)),
                ))
    return usage


class BucketUsageCollector(SubCollectorInterface):
    """Collects gateway usage counters for every bucket in parallel.

    Attributes:
        conn: Connection used for the ``radosgw-admin`` calls.
        cluster: Cluster label attached to every sample.
        logger: Logger instance for output.
        max_workers: Maximum number of concurrent usage lookups.
    """

    LABELS = ['cluster', 'bucket', 'user', 'category']

    def __init__(self, conn: ConnInterface, cluster: str, version: VersionHolder, logger,
                 max_workers: int = DEFAULT_BUCKET_USAGE_WORKERS):
        self.conn = conn
        self.cluster = cluster
        self.version = version
        self.logger = logger
        self.max_workers = max(1, int(max_workers))

    def _families(self) -> List[GaugeMetricFamily]:
        subsystem = "bucket_usage"
        return [
            GaugeMetricFamily(metric_name(subsystem, "bytes_sent"),
                              "Number of bytes sent by the RADOS Gateway.", labels=self.LABELS),
            GaugeMetricFamily(metric_name(subsystem, "bytes_received"),
                              "Number of bytes received by the RADOS Gateway.", labels=self.LABELS),
            GaugeMetricFamily(metric_name(subsystem, "ops"),
                              "Number of operations.", labels=self.LABELS),
            GaugeMetricFamily(metric_name(subsystem, "successful_ops"),
                              "Number of successful operations.", labels=self.LABELS),
        ]

    def list_buckets(self) -> List[BucketStats]:
        return parse_bucket_stats(self.conn.radosgw_admin("bucket", "stats"))

    def _collect_from_single_bucket(self, bucket: BucketStats) -> List[CategoryUsage]:
        self.logger.trace(f'Collecting usage for bucket {bucket.bucket}')
        buf = self.conn.radosgw_admin(
            "usage", "show",
            "--bucket", bucket.bucket,
            "--categories", USAGE_CATEGORIES,
            "--show-log-entries", "false",
            "--uid", bucket.owner,
        )
        return parse_bucket_usage(buf)

    def collect_usage(self) -> CollectionResult:
        """List buckets, then look up each bucket's usage in parallel.

        Returns:
            CollectionResult whose ``data`` maps bucket name to its list of
            CategoryUsage. Failed buckets are absent from ``data`` and have
            one entry each in ``errors``.

        Raises:
            CommandError: If the bucket list cannot be fetched.
            DecodeError: If the bucket list cannot be decoded.
        """
        buckets = self.list_buckets()
        self.logger.debug(f'Starting bucket usage collection on {len(buckets)} buckets')

        results = {}
        errors = []

        if buckets:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(buckets)),
                                    thread_name_prefix="bucket-usage") as executor:
                future_to_bucket = {
                    executor.submit(self._collect_from_single_bucket, bucket): bucket
                    for bucket in buckets
                }

                for future in as_completed(future_to_bucket):
                    bucket = future_to_bucket[future]
                    try:
                        results[bucket.bucket] = future.result()
                    except Exception as e:
                        self.logger.error(f'error getting bucket usage: bucket={bucket.bucket}: {e}')
                        errors.append(f"{bucket.bucket}: {e}")

        return CollectionResult(
            success=not errors,
            data=results,
            errors=errors,
            collection_method='bucket_usage',
            timestamp=time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime())
        )

    def describe(self) -> List[Metric]:
        return self._families()

    def collect(self) -> List[Metric]:
        self.logger.debug("collecting bucket usage metrics")
        try:
            result = self.collect_usage()
        except CephExporterException as e:
            self.logger.error(f"error collecting bucket usage metrics: cluster={self.cluster}: {e}")
            return []

        if not result.success:
            self.logger.error(
                f"error collecting bucket usage metrics: {len(result.errors)} of "
                f"{len(result.errors) + len(result.data)} buckets failed"
            )

        bytes_sent, bytes_received, ops, successful_ops = self._families()
        for bucket_name, usage in result.data.items():
            for category in usage:
                labels = [self.cluster, bucket_name, category.user, category.category]
                bytes_sent.add_metric(labels, float(category.bytes_sent))
                bytes_received.add_metric(labels, float(category.bytes_received))
                ops.add_metric(labels, float(category.ops))
                successful_ops.add_metric(labels, float(category.successful_ops))

        return [bytes_sent, bytes_received, ops, successful_ops]
