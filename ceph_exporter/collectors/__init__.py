"""
Sub-collectors for the Ceph exporter.

Standard collectors run for every cluster:
    - ClusterUsageCollector: raw capacity from ``ceph df``
    - PoolUsageCollector: per-pool usage from ``ceph df detail``
    - ClusterHealthCollector: health status and active checks

Gateway collectors run when the RGW mode enables them:
    - RGWCollector: garbage-collection queue statistics
    - BucketUsageCollector: per-bucket usage, one lookup per bucket
"""

from ceph_exporter.collectors.cluster_usage import ClusterUsageCollector
from ceph_exporter.collectors.pool_usage import PoolUsageCollector
from ceph_exporter.collectors.health import ClusterHealthCollector
from ceph_exporter.collectors.rgw import RGWCollector
from ceph_exporter.collectors.bucket_usage import BucketUsageCollector

__all__ = [
    'ClusterUsageCollector',
    'PoolUsageCollector',
    'ClusterHealthCollector',
    'RGWCollector',
    'BucketUsageCollector',
]
