"""
Interface definitions for the Ceph exporter.

Connection Interfaces:
    - ConnInterface: Monitor command and gateway admin primitives

Collector Interfaces:
    - SubCollectorInterface: describe()/collect() contract for sub-collectors
    - CollectionResult: Result container for fan-out collections
"""

from ceph_exporter.interfaces.connection import ConnInterface

from ceph_exporter.interfaces.collector import (
    SubCollectorInterface,
    CollectionResult,
)

__all__ = [
    'ConnInterface',
    'SubCollectorInterface',
    'CollectionResult',
]
