"""
Prometheus exporter for Ceph clusters.

The exporter runs one collection pass per scrape: it refreshes the cluster
version, walks an ordered list of sub-collectors and hands the resulting
metric families to ``prometheus_client`` for encoding.
"""

VERSION = "3.0.0"
__version__ = VERSION
