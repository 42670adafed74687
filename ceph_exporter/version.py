"""
Ceph version detection.

The exporter asks the monitors for the running version once per scrape
cycle and stores the parsed result in a ``VersionHolder`` owned by the
exporter instance. Sub-collectors receive the same holder and read it to
decide which fields or commands apply to the running release.
"""

import json
import re
import threading
from dataclasses import dataclass, field
from typing import Optional, Tuple

from ceph_exporter.errors import DecodeError, VersionParseError
from ceph_exporter.interfaces.connection import ConnInterface


_VERSION_RE = re.compile(
    r"^ceph version (?P<major>\d+)\.(?P<minor>\d+)\.(?P<patch>\d+)"
    r"(?:-(?P<revision>\d+)(?:-g(?P<build>[0-9a-f]+))?)?"
    r"(?:\s+\((?P<commit>[0-9a-f]+)\))?"
)

# Fixed at import time; a failure to encode this is a packaging defect.
VERSION_COMMAND = json.dumps({"prefix": "version", "format": "json"}).encode("utf-8")


@dataclass(frozen=True)
class CephVersion:
    """Parsed ceph release identifier.

    Versions compare by ``(major, minor, patch, revision)``; the commit and
    raw string are informational only.
    """
    major: int
    minor: int
    patch: int
    revision: int = 0
    commit: str = field(default="", compare=False)
    raw: str = field(default="", compare=False)

    def _key(self) -> Tuple[int, int, int, int]:
        return (self.major, self.minor, self.patch, self.revision)

    def __lt__(self, other: "CephVersion") -> bool:
        return self._key() < other._key()

    def __le__(self, other: "CephVersion") -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: "CephVersion") -> bool:
        return self._key() > other._key()

    def __ge__(self, other: "CephVersion") -> bool:
        return self._key() >= other._key()

    def is_at_least(self, other: "CephVersion") -> bool:
        return self >= other

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision:
            text = f"{text}-{self.revision}"
        return text


LUMINOUS = CephVersion(12, 0, 0)
MIMIC = CephVersion(13, 0, 0)
NAUTILUS = CephVersion(14, 0, 0)
OCTOPUS = CephVersion(15, 0, 0)
PACIFIC = CephVersion(16, 0, 0)
QUINCY = CephVersion(17, 0, 0)
REEF = CephVersion(18, 0, 0)


def parse_ceph_version(version_string: str) -> CephVersion:
    """Parse the output of ``ceph version``.

    Accepts strings such as
    ``ceph version 16.2.7 (dd0603118f56ab514f133c8d2e3adfc983942503) pacific (stable)``
    and development builds like ``ceph version 17.0.0-8051-g15b54dc9 (15b54dc9...) quincy (dev)``.

    Raises:
        VersionParseError: If the string does not start with a ceph version.
    """
    if not isinstance(version_string, str):
        raise VersionParseError(repr(version_string))

    match = _VERSION_RE.match(version_string.strip())
    if not match:
        raise VersionParseError(version_string)

    return CephVersion(
        major=int(match.group("major")),
        minor=int(match.group("minor")),
        patch=int(match.group("patch")),
        revision=int(match.group("revision") or 0),
        commit=match.group("commit") or match.group("build") or "",
        raw=version_string,
    )


class VersionHolder:
    """Last-write-wins slot for the cluster version, guarded by a lock."""

    def __init__(self, version: Optional[CephVersion] = None):
        self._lock = threading.Lock()
        self._version = version

    def set(self, version: CephVersion) -> None:
        with self._lock:
            self._version = version

    def get(self) -> Optional[CephVersion]:
        with self._lock:
            return self._version


class VersionGate:
    """Refreshes a VersionHolder from the cluster monitors."""

    def __init__(self, conn: ConnInterface, holder: VersionHolder):
        self.conn = conn
        self.holder = holder

    def refresh(self) -> CephVersion:
        """Query the cluster version and store it.

        The holder keeps its previous value when any step fails.

        Returns:
            The freshly parsed version.

        Raises:
            CommandError: If the command could not be sent.
            DecodeError: If the response is not a JSON object with a version string.
            VersionParseError: If the version string is malformed.
        """
        buf, _ = self.conn.mon_command(VERSION_COMMAND)

        try:
            payload = json.loads(buf)
        except (ValueError, TypeError) as e:
            raise DecodeError("Failed to decode ceph version response",
                              payload=buf, reason=str(e)) from e

        if not isinstance(payload, dict) or not isinstance(payload.get("version"), str):
            raise DecodeError("Ceph version response has no 'version' string",
                              payload=buf, reason="missing field: version")

        version = parse_ceph_version(payload["version"])
        self.holder.set(version)
        return version
