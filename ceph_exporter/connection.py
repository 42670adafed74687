"""
Cluster connection backed by the Ceph command-line tools.

``RadosConn`` turns monitor commands into ``ceph`` invocations and gateway
queries into ``radosgw-admin`` invocations. Every call is an independent
subprocess, so one connection can be shared by all sub-collectors and by
the bucket usage fan-out threads.
"""

import json
import subprocess
from typing import List, Optional, Tuple

from ceph_exporter.config import CEPH_BIN, RADOSGW_ADMIN_BIN
from ceph_exporter.errors import CommandError, DecodeError, ErrorCode
from ceph_exporter.interfaces.connection import ConnInterface


def mon_command_args(cmd: bytes) -> List[str]:
    """Translate a JSON monitor command into ``ceph`` CLI arguments.

    The ``prefix`` is split into words; remaining values (other than
    ``format``) are appended in insertion order as positional arguments,
    and the output format is passed with ``--format``::

        {"prefix": "df", "detail": "detail", "format": "json"}
        -> ["df", "detail", "--format", "json"]

    Raises:
        DecodeError: If ``cmd`` is not a JSON object with a ``prefix``.
    """
    try:
        command = json.loads(cmd)
    except (ValueError, TypeError) as e:
        raise DecodeError("Monitor command is not valid JSON", payload=cmd, reason=str(e)) from e

    if not isinstance(command, dict) or not command.get("prefix"):
        raise DecodeError("Monitor command has no 'prefix'", payload=cmd, reason="missing field: prefix")

    args = str(command["prefix"]).split()
    for key, value in command.items():
        if key in ("prefix", "format"):
            continue
        if isinstance(value, (list, tuple)):
            args.extend(str(v) for v in value)
        else:
            args.append(str(value))

    args.extend(["--format", str(command.get("format", "json"))])
    return args


class RadosConn(ConnInterface):
    """Connection to one cluster through the ``ceph`` and ``radosgw-admin`` binaries.

    Attributes:
        user: Ceph client id (``admin`` for ``client.admin``).
        config_file: Path to the cluster's ceph.conf.
        timeout: Per-command timeout in seconds; 0 or None disables it.
        logger: Logger instance for output.
    """

    def __init__(self, user: str, config_file: str, timeout: Optional[float], logger,
                 ceph_bin: str = CEPH_BIN, radosgw_admin_bin: str = RADOSGW_ADMIN_BIN):
        self.user = user
        self.config_file = config_file
        self.timeout = timeout or None
        self.logger = logger
        self.ceph_bin = ceph_bin
        self.radosgw_admin_bin = radosgw_admin_bin

    def _base_args(self, binary: str) -> List[str]:
        return [binary, '--conf', self.config_file, '--id', self.user]

    def _run(self, cmd: List[str]) -> Tuple[bytes, str]:
        self.logger.trace(f'Running cluster command: {" ".join(cmd)}')
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                f'Command timed out after {self.timeout}s',
                command=cmd,
                code=ErrorCode.COMMAND_TIMEOUT,
            ) from e
        except FileNotFoundError as e:
            raise CommandError(
                f'Command not found: {cmd[0]}',
                command=cmd,
                code=ErrorCode.COMMAND_NOT_FOUND,
            ) from e
        except OSError as e:
            raise CommandError(f'Failed to run command: {e}', command=cmd) from e

        stderr = result.stderr.decode('utf-8', errors='replace').strip()
        if result.returncode != 0:
            raise CommandError(
                f'Command failed with code {result.returncode}',
                command=cmd,
                exit_code=result.returncode,
                stderr=stderr,
            )

        return result.stdout, stderr

    def mon_command(self, cmd: bytes) -> Tuple[bytes, str]:
        args = self._base_args(self.ceph_bin)
        if self.timeout:
            args.extend(['--connect-timeout', str(max(1, int(self.timeout)))])
        args.extend(mon_command_args(cmd))
        return self._run(args)

    def radosgw_admin(self, *args: str) -> bytes:
        cmd = self._base_args(self.radosgw_admin_bin) + list(args) + ['--format', 'json']
        out, _ = self._run(cmd)
        return out
