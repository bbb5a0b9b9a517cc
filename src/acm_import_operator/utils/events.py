"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_ANNOTATION_APPLIED,
    EVENT_REASON_ANNOTATION_CONFLICT,
    EVENT_REASON_ANNOTATION_REMOVED,
    EVENT_REASON_CERTIFICATE_DELETED,
    EVENT_REASON_CERTIFICATE_IMPORTED,
    EVENT_REASON_FINALIZER_RELEASED,
    EVENT_REASON_RECONCILE_FAILED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Full resource body the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_certificate_imported(body: dict[str, Any], arn: str, serial_number: str) -> None:
    """Emit certificate imported event."""
    emit_event(body, EVENT_REASON_CERTIFICATE_IMPORTED, f"Certificate {serial_number} imported as {arn}")


def emit_certificate_deleted(body: dict[str, Any], arn: str) -> None:
    """Emit certificate deleted event."""
    emit_event(body, EVENT_REASON_CERTIFICATE_DELETED, f"Certificate {arn} deleted")


def emit_annotation_applied(body: dict[str, Any], service_name: str) -> None:
    """Emit annotation applied event."""
    emit_event(body, EVENT_REASON_ANNOTATION_APPLIED, f"Service {service_name} annotated")


def emit_annotation_removed(body: dict[str, Any], service_name: str) -> None:
    """Emit annotation removed event."""
    emit_event(body, EVENT_REASON_ANNOTATION_REMOVED, f"Annotation removed from service {service_name}")


def emit_annotation_conflict(body: dict[str, Any], service_name: str, current: str) -> None:
    """Emit annotation conflict event."""
    emit_event(
        body,
        EVENT_REASON_ANNOTATION_CONFLICT,
        f"Service {service_name} already references {current}, leaving it in place",
        type_="Warning",
    )


def emit_finalizer_released(body: dict[str, Any]) -> None:
    """Emit finalizer released event."""
    emit_event(body, EVENT_REASON_FINALIZER_RELEASED, "Cleanup complete, finalizer released")
