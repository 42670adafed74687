"""
Sub-collector interface definitions.

A sub-collector produces one family of statistics (cluster usage, pool
usage, bucket usage, ...). The exporter calls ``describe()`` when it is
registered and ``collect()`` once per scrape. Both return
``prometheus_client`` metric families; ``describe()`` returns them without
samples.

Sub-collectors own their error handling: a failed command is logged and
results in fewer samples, never in an exception escaping ``collect()``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from prometheus_client.core import Metric


@dataclass
class CollectionResult:
    """Result of a fan-out collection.

    Attributes:
        success: True when every entity was collected.
        data: Collected values keyed by entity identifier.
        errors: One message per failed entity, in completion order.
        collection_method: Name of the collector that produced the result.
        timestamp: ISO timestamp when collection finished.
    """
    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)
    collection_method: str = "unknown"
    timestamp: Optional[str] = None


class SubCollectorInterface(ABC):
    """Interface for exporter sub-collectors.

    Example:
        class PoolCountCollector(SubCollectorInterface):
            def describe(self):
                return [GaugeMetricFamily('ceph_pool_count', 'Number of pools.',
                                          labels=['cluster'])]

            def collect(self):
                family = self.describe()[0]
                family.add_metric([self.cluster], len(list_pools(self.conn)))
                return [family]
    """

    @abstractmethod
    def describe(self) -> List[Metric]:
        """Return the metric families this collector produces, without samples."""
        pass

    @abstractmethod
    def collect(self) -> List[Metric]:
        """Collect current values.

        Returns:
            Metric families holding this cycle's samples. Errors are logged
            by the collector and reduce the returned samples.
        """
        pass
