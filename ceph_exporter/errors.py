"""
Custom exceptions for the Ceph exporter.

Every exception carries a machine-readable error code, a human-readable
message, technical details and a suggestion, so failures surface in the log
with enough context to act on.

Only configuration and listener errors are fatal. Command, decode and
version errors are raised inside a scrape cycle, caught by the sub-collector
(or the exporter) that triggered them and logged; the scrape then returns a
smaller metric set.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class ErrorCode(Enum):
    """Machine-readable error codes for exporter errors."""
    # Configuration errors (1xx)
    CONFIG_MISSING_REQUIRED = "E101"
    CONFIG_INVALID_VALUE = "E102"
    CONFIG_FILE_NOT_FOUND = "E103"
    CONFIG_PARSE_ERROR = "E104"

    # Cluster command errors (2xx)
    COMMAND_FAILED = "E201"
    COMMAND_TIMEOUT = "E202"
    COMMAND_NOT_FOUND = "E203"

    # Payload errors (3xx)
    DECODE_FAILED = "E301"
    VERSION_UNPARSABLE = "E302"

    # Listener errors (4xx)
    LISTENER_CREATE_FAILED = "E401"
    DESCRIPTORS_EXHAUSTED = "E402"

    # Internal errors (9xx)
    INTERNAL_ERROR = "E901"


@dataclass
class ExporterError:
    """
    Structured error information.

    Attributes:
        code: Machine-readable error code.
        message: User-facing error message.
        details: Technical details for debugging.
        suggestion: How to fix the issue.
        context: Additional context information.
    """
    code: ErrorCode
    message: str
    details: str = ""
    suggestion: str = ""
    context: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"[{self.code.value}] {self.message}"]
        if self.details:
            lines.append(f"  Details: {self.details}")
        if self.suggestion:
            lines.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(lines)


class CephExporterException(Exception):
    """
    Base exception class for the exporter.

    All custom exceptions inherit from this class and provide
    structured error information.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR,
                 details: str = "", suggestion: str = "", **context):
        self.error = ExporterError(
            code=code,
            message=message,
            details=details,
            suggestion=suggestion,
            context=context
        )
        super().__init__(str(self.error))

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def suggestion(self) -> str:
        return self.error.suggestion


class ConfigurationError(CephExporterException):
    """
    Raised when configuration is invalid or missing.

    Examples:
        - Exporter config file cannot be parsed
        - Cluster entry is missing a field
        - Invalid duration or listen address
    """

    def __init__(self, message: str, parameter: str = None,
                 expected: Any = None, actual: Any = None,
                 suggestion: str = None,
                 code: ErrorCode = ErrorCode.CONFIG_INVALID_VALUE):
        details_parts = []
        if parameter:
            details_parts.append(f"Parameter: {parameter}")
        if expected is not None:
            details_parts.append(f"Expected: {expected}")
        if actual is not None:
            details_parts.append(f"Actual: {actual}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts) if details_parts else "",
            suggestion=suggestion or self._default_suggestion(code),
            parameter=parameter,
            expected=expected,
            actual=actual
        )

    @staticmethod
    def _default_suggestion(code: ErrorCode) -> str:
        suggestions = {
            ErrorCode.CONFIG_MISSING_REQUIRED: "Add the missing field to the exporter config file",
            ErrorCode.CONFIG_INVALID_VALUE: "Check the option value and correct it",
            ErrorCode.CONFIG_FILE_NOT_FOUND: "Verify the exporter config file path exists and is readable",
            ErrorCode.CONFIG_PARSE_ERROR: "Check exporter config file syntax (YAML format)",
        }
        return suggestions.get(code, "Check the configuration and try again")


class CommandError(CephExporterException):
    """
    Raised when a command sent to the cluster fails.

    Examples:
        - ``ceph`` or ``radosgw-admin`` returns a non-zero exit code
        - The command exceeds the configured operation timeout
        - The binary is not installed
    """

    def __init__(self, message: str, command: List[str] = None,
                 exit_code: int = None, stderr: str = None,
                 suggestion: str = None,
                 code: ErrorCode = ErrorCode.COMMAND_FAILED):
        details_parts = []
        if command:
            cmd_display = " ".join(command)
            if len(cmd_display) > 200:
                cmd_display = cmd_display[:200] + "..."
            details_parts.append(f"Command: {cmd_display}")
        if exit_code is not None:
            details_parts.append(f"Exit code: {exit_code}")
        if stderr:
            stderr_display = stderr[:500] + "..." if len(stderr) > 500 else stderr
            details_parts.append(f"Error output: {stderr_display}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts) if details_parts else "",
            suggestion=suggestion or self._default_suggestion(code),
            command=command,
            exit_code=exit_code,
            stderr=stderr
        )

    @staticmethod
    def _default_suggestion(code: ErrorCode) -> str:
        suggestions = {
            ErrorCode.COMMAND_FAILED: "Check that the cluster is reachable with the configured user and keyring",
            ErrorCode.COMMAND_TIMEOUT: "Increase --ceph-rados-op-timeout or check cluster health",
            ErrorCode.COMMAND_NOT_FOUND: "Install the Ceph client tools (ceph-common, radosgw)",
        }
        return suggestions.get(code, "Check the command output for details")


class DecodeError(CephExporterException):
    """Raised when a command response is not the JSON document we expect."""

    def __init__(self, message: str, payload: Optional[bytes] = None,
                 reason: str = None,
                 code: ErrorCode = ErrorCode.DECODE_FAILED):
        details_parts = []
        if reason:
            details_parts.append(f"Reason: {reason}")
        if payload:
            preview = payload[:200].decode("utf-8", errors="replace")
            details_parts.append(f"Payload: {preview}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts) if details_parts else "",
            suggestion="Check that the cluster tools emit JSON for this command",
            reason=reason
        )


class VersionParseError(CephExporterException):
    """Raised when the cluster version string cannot be parsed."""

    def __init__(self, version_string: str):
        super().__init__(
            message=f"Unable to parse ceph version: {version_string!r}",
            code=ErrorCode.VERSION_UNPARSABLE,
            details="Expected 'ceph version <major>.<minor>.<patch> ...'",
            suggestion="Check the output of 'ceph version --format json'",
            version_string=version_string
        )


class ListenerError(CephExporterException):
    """
    Raised when the metrics listener cannot be created or can no longer accept.

    Examples:
        - Address already in use
        - Permission denied binding a privileged port
        - The process ran out of file descriptors while accepting
    """

    def __init__(self, message: str, address: str = None, reason: str = None,
                 code: ErrorCode = ErrorCode.LISTENER_CREATE_FAILED):
        details_parts = []
        if address:
            details_parts.append(f"Address: {address}")
        if reason:
            details_parts.append(f"Reason: {reason}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts) if details_parts else "",
            suggestion=self._default_suggestion(code),
            address=address,
            reason=reason
        )

    @staticmethod
    def _default_suggestion(code: ErrorCode) -> str:
        suggestions = {
            ErrorCode.LISTENER_CREATE_FAILED: "Choose a free address with --telemetry-addr",
            ErrorCode.DESCRIPTORS_EXHAUSTED: "Raise the open file limit (ulimit -n) and restart the exporter",
        }
        return suggestions.get(code, "Check the listener configuration")
