"""
Cluster connection interface definitions.

A connection is the only path from the exporter to the cluster. It offers
two primitives:

- ``mon_command``: send a JSON-encoded administrative command to the
  monitors and return the raw JSON response.
- ``radosgw_admin``: run a gateway administration command scoped to one
  entity (bucket, user, ...) and return its JSON output.

Implementations must be safe to call from several threads at once; the
bucket usage collector fans out one call per bucket.
"""

from abc import ABC, abstractmethod
from typing import Tuple


class ConnInterface(ABC):
    """Interface for cluster connections."""

    @abstractmethod
    def mon_command(self, cmd: bytes) -> Tuple[bytes, str]:
        """Send a monitor command.

        Args:
            cmd: JSON document with at least a ``prefix`` key, e.g.
                ``{"prefix": "df", "format": "json"}``.

        Returns:
            Tuple of (response body, status string).

        Raises:
            CommandError: If the command could not be run or failed.
        """
        pass

    @abstractmethod
    def radosgw_admin(self, *args: str) -> bytes:
        """Run a ``radosgw-admin`` sub-command and return its JSON output.

        Args:
            args: Sub-command words and options, e.g. ``("bucket", "stats")``.

        Raises:
            CommandError: If the command could not be run or failed.
        """
        pass
