"""
Shared pytest fixtures for ceph_exporter tests.

These fixtures provide mock loggers, connections and environment handling
so collectors can be exercised without a running Ceph cluster.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tests.fixtures.mock_connection import MockConnection
from tests.fixtures.mock_logger import MockLogger
from tests.fixtures.sample_data import create_standard_responses


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


# =============================================================================
# Logger Fixtures
# =============================================================================

@pytest.fixture
def mock_logger():
    """
    Create a mock logger that accepts all log calls.

    Usage:
        def test_something(mock_logger):
            some_function(logger=mock_logger)
            mock_logger.error.assert_called()
    """
    logger = MagicMock()
    for level in ['trace', 'debug', 'info', 'warning', 'error', 'critical', 'fatal']:
        setattr(logger, level, MagicMock())
    return logger


@pytest.fixture
def capturing_logger():
    """
    Create a logger that records messages per level.

    Usage:
        def test_something(capturing_logger):
            some_function(logger=capturing_logger)
            capturing_logger.assert_logged('warning', 'expected')
    """
    return MockLogger()


# =============================================================================
# Connection Fixtures
# =============================================================================

@pytest.fixture
def standard_conn() -> MockConnection:
    """Connection answering the version, df and health commands of a Pacific cluster."""
    return MockConnection(mon_responses=create_standard_responses())


# =============================================================================
# Environment Fixtures
# =============================================================================

@pytest.fixture
def clean_env(monkeypatch):
    """
    Remove exporter-related environment variables.

    Usage:
        def test_check_env_default(clean_env):
            result = check_env('RGW_MODE', 0)
            assert result == 0
    """
    env_vars = [
        'TELEMETRY_ADDR', 'TELEMETRY_PATH', 'EXPORTER_CONFIG', 'RGW_MODE',
        'LOG_LEVEL', 'CEPH_CLUSTER', 'CEPH_CONFIG', 'CEPH_USER',
        'CEPH_RADOS_OP_TIMEOUT', 'BUCKET_USAGE_WORKERS',
    ]
    for var in env_vars:
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
