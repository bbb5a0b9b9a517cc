"""Error taxonomy and sanitization utilities."""

from __future__ import annotations

import re

from kubernetes.client.exceptions import ApiException


class OperatorError(Exception):
    """Base class for errors raised by the operator."""


class NotFoundError(OperatorError):
    """A referenced Secret, Service or ACM certificate does not exist."""


class MalformedInputError(OperatorError):
    """Certificate material in a Secret cannot be used."""


class ConflictError(OperatorError):
    """A write referred to a stale resourceVersion."""


class TransientError(OperatorError):
    """Any other failure talking to the Kubernetes API or ACM."""


class AggregateError(OperatorError):
    """Several independent operations failed.

    Args:
        failures: (item name, error) pairs, one per failed item
    """

    def __init__(self, failures: list[tuple[str, Exception]]):
        self.failures = list(failures)
        if len(self.failures) == 1:
            name, error = self.failures[0]
            message = f"{name}: {error}"
        else:
            joined = ", ".join(f"{name}: {error}" for name, error in self.failures)
            message = f"[{joined}]"
        super().__init__(message)

    @property
    def names(self) -> list[str]:
        """Names of the failed items in the order they were attempted."""
        return [name for name, _ in self.failures]


def translate_api_exception(error: ApiException, what: str) -> OperatorError:
    """Map a Kubernetes API exception onto the operator's error taxonomy.

    Args:
        error: Exception raised by the kubernetes client
        what: Human readable description of the object involved

    Returns:
        NotFoundError for 404, ConflictError for 409, TransientError otherwise
    """
    if error.status == 404:
        return NotFoundError(f"{what} not found")
    if error.status == 409:
        return ConflictError(f"conflict writing {what}: {error.reason}")
    return TransientError(f"could not access {what}: {error.status} {error.reason}")


# PEM blocks must never reach logs or events
PEM_BLOCK_PATTERN = re.compile(
    r"-----BEGIN ([A-Z0-9 ]+)-----.*?-----END \1-----",
    re.DOTALL,
)

# Fields to redact completely
SENSITIVE_FIELDS = {
    "private_key",
    "privatekey",
    "secret_access_key",
    "session_token",
    "password",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = PEM_BLOCK_PATTERN.sub(r"[REDACTED \1]", message)

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"{field}[:=\s]+([^\s,;\)]+)",
            rf"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(str(error))

