"""
Tests for ceph_exporter.config module.

Tests cover:
- Environment variable handling (check_env)
- Duration and listen address parsing
- Exporter config file loading
"""

import pytest

from ceph_exporter.config import (
    EXIT_CODE,
    RGW_MODE,
    ClusterConfig,
    check_env,
    load_cluster_configs,
    parse_config,
    parse_duration,
    parse_listen_address,
)
from ceph_exporter.errors import ConfigurationError, ErrorCode


class TestCheckEnv:
    """Tests for check_env function."""

    def test_returns_default_when_env_not_set(self, clean_env):
        assert check_env('CEPH_USER', 'admin') == 'admin'

    def test_returns_env_value_when_set(self, clean_env):
        clean_env.setenv('CEPH_USER', 'exporter')
        assert check_env('CEPH_USER', 'admin') == 'exporter'

    def test_converts_to_int_for_int_default(self, clean_env):
        clean_env.setenv('RGW_MODE', '2')
        assert check_env('RGW_MODE', 0) == 2

    def test_keeps_non_numeric_string_for_int_default(self, clean_env):
        clean_env.setenv('RGW_MODE', 'two')
        assert check_env('RGW_MODE', 0) == 'two'

    @pytest.mark.parametrize("value,expected", [("true", True), ("FALSE", False), ("True", True)])
    def test_converts_booleans(self, clean_env, value, expected):
        clean_env.setenv('SOME_FLAG', value)
        assert check_env('SOME_FLAG', None) is expected


class TestEnums:
    """Tests for exit code and gateway mode enums."""

    def test_exit_codes(self):
        assert EXIT_CODE.SUCCESS == 0
        assert EXIT_CODE.INTERRUPTED == 130
        assert str(EXIT_CODE.CONFIG_ERROR) == "CONFIG_ERROR (2)"

    def test_rgw_modes(self):
        assert [m.value for m in RGW_MODE] == [0, 1, 2]


class TestParseDuration:
    """Tests for parse_duration function."""

    @pytest.mark.parametrize("value,expected", [
        ("30s", 30.0),
        ("5m", 300.0),
        ("1h", 3600.0),
        ("250ms", 0.25),
        ("12", 12.0),
        ("1.5s", 1.5),
        (45, 45.0),
        ("0", 0.0),
    ])
    def test_valid_durations(self, value, expected):
        assert parse_duration(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["", "soon", "30x", "-5s"])
    def test_invalid_durations(self, value):
        with pytest.raises(ConfigurationError):
            parse_duration(value)


class TestParseListenAddress:
    """Tests for parse_listen_address function."""

    def test_port_only(self):
        assert parse_listen_address(":9128") == ("", 9128)

    def test_host_and_port(self):
        assert parse_listen_address("127.0.0.1:9128") == ("127.0.0.1", 9128)

    def test_bracketed_ipv6(self):
        assert parse_listen_address("[::1]:9128") == ("::1", 9128)

    @pytest.mark.parametrize("address", ["9128", "localhost:http"])
    def test_invalid_addresses(self, address):
        with pytest.raises(ConfigurationError):
            parse_listen_address(address)


class TestParseConfig:
    """Tests for parse_config and load_cluster_configs."""

    def test_parses_cluster_list(self, tmp_path):
        config = tmp_path / "exporter.yml"
        config.write_text(
            "cluster:\n"
            "  - cluster_label: east\n"
            "    user: admin\n"
            "    config_file: /etc/ceph/east.conf\n"
            "  - cluster_label: west\n"
            "    user: exporter\n"
            "    config_file: /etc/ceph/west.conf\n"
        )

        assert parse_config(str(config)) == [
            ClusterConfig("east", "admin", "/etc/ceph/east.conf"),
            ClusterConfig("west", "exporter", "/etc/ceph/west.conf"),
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(str(tmp_path / "missing.yml"))
        assert exc_info.value.code == ErrorCode.CONFIG_FILE_NOT_FOUND

    def test_invalid_yaml(self, tmp_path):
        config = tmp_path / "exporter.yml"
        config.write_text("cluster: [unclosed\n")

        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(str(config))
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_missing_cluster_key(self, tmp_path):
        config = tmp_path / "exporter.yml"
        config.write_text("clusters: []\n")

        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(str(config))
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_missing_field(self, tmp_path):
        config = tmp_path / "exporter.yml"
        config.write_text("cluster:\n  - cluster_label: east\n    user: admin\n")

        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(str(config))
        assert exc_info.value.code == ErrorCode.CONFIG_MISSING_REQUIRED
        assert "config_file" in str(exc_info.value)

    def test_load_uses_file_when_present(self, tmp_path):
        config = tmp_path / "exporter.yml"
        config.write_text("cluster:\n  - cluster_label: east\n    user: u\n    config_file: /c\n")

        clusters = load_cluster_configs(str(config), "ceph", "admin", "/etc/ceph/ceph.conf")

        assert clusters == [ClusterConfig("east", "u", "/c")]

    def test_load_falls_back_to_single_cluster(self, tmp_path):
        clusters = load_cluster_configs(str(tmp_path / "missing.yml"), "ceph", "admin",
                                        "/etc/ceph/ceph.conf")

        assert clusters == [ClusterConfig("ceph", "admin", "/etc/ceph/ceph.conf")]
