"""
RADOS gateway garbage-collection statistics.

``radosgw-admin gc list --include-all`` can be slow on large clusters. In
foreground mode it runs inside the scrape; in background mode a worker
thread refreshes the statistics on a fixed interval and the scrape returns
the latest completed result.
"""

import threading
from datetime import datetime
from typing import Any, List, Optional, Tuple

from prometheus_client.core import GaugeMetricFamily, Metric

from ceph_exporter.collectors.common import decode_json, metric_name, reading_payload
from ceph_exporter.config import RGW_BACKGROUND_INTERVAL_SECONDS
from ceph_exporter.errors import CephExporterException, DecodeError
from ceph_exporter.interfaces.collector import SubCollectorInterface
from ceph_exporter.interfaces.connection import ConnInterface
from ceph_exporter.version import VersionHolder


GC_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_gc_time(value: str) -> Optional[datetime]:
    """Parse a gc task time like ``2017-09-27 15:33:13.0.270152s``.

    Only the second-resolution prefix is used. Returns None if unparsable.
    """
    if not isinstance(value, str) or len(value) < 19:
        return None
    try:
        return datetime.strptime(value[:19], GC_TIME_FORMAT)
    except ValueError:
        return None


def summarize_gc_tasks(tasks: Any, now: datetime, logger=None) -> Tuple[int, int, int, int]:
    """Count active and pending gc tasks and their objects.

    A task whose time has passed is active (eligible for processing); a task
    with a future time is pending. Tasks with unparsable times are skipped.

    Returns:
        (active_tasks, active_objects, pending_tasks, pending_objects)

    Raises:
        DecodeError: If ``tasks`` is not a list.
    """
    if not isinstance(tasks, list):
        raise DecodeError("gc list response is not a list", reason=f"got {type(tasks).__name__}")

    active_tasks = active_objs = pending_tasks = pending_objs = 0
    for task in tasks:
        task_time = parse_gc_time(task.get("time") if isinstance(task, dict) else None)
        if task_time is None:
            if logger:
                logger.debug(f"skipping gc task with unparsable time: {task!r}")
            continue
        objs = len(task.get("objs") or [])
        if task_time < now:
            active_tasks += 1
            active_objs += objs
        else:
            pending_tasks += 1
            pending_objs += objs

    return active_tasks, active_objs, pending_tasks, pending_objs


class RGWCollector(SubCollectorInterface):
    """Collects gateway gc queue statistics in the foreground or background.

    Attributes:
        background: Run collection on a worker thread instead of in the scrape.
        interval_seconds: Time between background collections.
    """

    LABELS = ['cluster']

    def __init__(self, conn: ConnInterface, cluster: str, version: VersionHolder, logger,
                 background: bool = False,
                 interval_seconds: float = RGW_BACKGROUND_INTERVAL_SECONDS):
        self.conn = conn
        self.cluster = cluster
        self.version = version
        self.logger = logger
        self.background = background
        self.interval_seconds = interval_seconds

        self._lock = threading.Lock()
        self._latest: List[Metric] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _families(self) -> List[GaugeMetricFamily]:
        subsystem = "rgw"
        return [
            GaugeMetricFamily(metric_name(subsystem, "gc_active_tasks"),
                              "RGW GC active task count", labels=self.LABELS),
            GaugeMetricFamily(metric_name(subsystem, "gc_active_objs"),
                              "RGW GC active object count", labels=self.LABELS),
            GaugeMetricFamily(metric_name(subsystem, "gc_pending_tasks"),
                              "RGW GC pending task count", labels=self.LABELS),
            GaugeMetricFamily(metric_name(subsystem, "gc_pending_objs"),
                              "RGW GC pending object count", labels=self.LABELS),
        ]

    def _collect_once(self) -> List[Metric]:
        try:
            buf = self.conn.radosgw_admin("gc", "list", "--include-all")
            with reading_payload("gc list"):
                counts = summarize_gc_tasks(decode_json(buf, "gc list"), datetime.now(), self.logger)
        except CephExporterException as e:
            self.logger.error(f"error collecting rgw gc metrics: cluster={self.cluster}: {e}")
            return []

        families = self._families()
        for family, value in zip(families, counts):
            family.add_metric([self.cluster], value)
        return families

    def _collection_loop(self):
        while not self._stop_event.is_set():
            families = self._collect_once()
            if families:
                with self._lock:
                    self._latest = families
            self._stop_event.wait(timeout=self.interval_seconds)

    def start(self) -> None:
        """Start the background worker if it is not running yet."""
        with self._lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(
                target=self._collection_loop,
                daemon=True,
                name=f"RGWCollector-{self.cluster}"
            )
            self._thread.start()
        self.logger.debug(
            f'RGW background collection started (cluster={self.cluster}, '
            f'interval={self.interval_seconds}s)'
        )

    def stop(self) -> None:
        """Signal the background worker to stop and wait for it."""
        self._stop_event.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout=5)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def describe(self) -> List[Metric]:
        return self._families()

    def collect(self) -> List[Metric]:
        if not self.background:
            self.logger.debug("collecting rgw gc metrics")
            return self._collect_once()

        self.start()
        with self._lock:
            return list(self._latest)
