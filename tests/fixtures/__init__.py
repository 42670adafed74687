"""
Test fixtures package for ceph_exporter tests.

This package provides a mock connection, a capturing logger and sample
command payloads for testing collectors and the exporter.
"""

from tests.fixtures.mock_logger import MockLogger, create_mock_logger
from tests.fixtures.mock_connection import MockConnection
from tests.fixtures.sample_data import (
    VERSION_PACIFIC,
    VERSION_LUMINOUS,
    DF,
    DF_DETAIL_NAUTILUS,
    DF_DETAIL_LUMINOUS,
    HEALTH_WARN,
    create_standard_responses,
    bucket_stats_payload,
    bucket_usage_payload,
    gc_list_payload,
)

__all__ = [
    # Mock classes
    'MockLogger',
    'create_mock_logger',
    'MockConnection',
    # Sample data
    'VERSION_PACIFIC',
    'VERSION_LUMINOUS',
    'DF',
    'DF_DETAIL_NAUTILUS',
    'DF_DETAIL_LUMINOUS',
    'HEALTH_WARN',
    'create_standard_responses',
    'bucket_stats_payload',
    'bucket_usage_payload',
    'gc_list_payload',
]
