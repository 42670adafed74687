"""Helpers shared by the sub-collectors."""

import json
from contextlib import contextmanager
from typing import Any, Dict

from ceph_exporter.config import CEPH_NAMESPACE
from ceph_exporter.errors import DecodeError
from ceph_exporter.interfaces.connection import ConnInterface


def metric_name(subsystem: str, name: str) -> str:
    """Build a fully-qualified metric name, e.g. ``ceph_pool_stored_bytes``."""
    if subsystem:
        return f"{CEPH_NAMESPACE}_{subsystem}_{name}"
    return f"{CEPH_NAMESPACE}_{name}"


def decode_json(buf: bytes, what: str) -> Any:
    """Decode a JSON command response.

    Raises:
        DecodeError: If ``buf`` is not valid JSON.
    """
    try:
        return json.loads(buf)
    except (ValueError, TypeError) as e:
        raise DecodeError(f"Failed to decode {what} response", payload=buf, reason=str(e)) from e


def mon_json(conn: ConnInterface, command: Dict[str, Any]) -> Any:
    """Send a monitor command and decode its JSON response.

    Raises:
        CommandError: If the command fails.
        DecodeError: If the response is not JSON.
    """
    command = dict(command)
    command.setdefault("format", "json")
    buf, _ = conn.mon_command(json.dumps(command).encode("utf-8"))
    return decode_json(buf, command["prefix"])


@contextmanager
def reading_payload(what: str):
    """Turn errors raised while reading a decoded response into DecodeError.

    A field that is missing, null or of the wrong type surfaces as a
    TypeError, ValueError, AttributeError or KeyError from the code walking
    the payload.
    """
    try:
        yield
    except (TypeError, ValueError, AttributeError, KeyError) as e:
        raise DecodeError(f"Unexpected {what} response", reason=f"{type(e).__name__}: {e}") from e
