"""Single-key annotation management on Services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from .. import metrics
from ..constants import FIELD_MANAGER
from ..services.kube.base import ResourceStore
from .errors import AggregateError, NotFoundError

logger = logging.getLogger(__name__)


def escape_json_pointer(token: str) -> str:
    """Escape a JSON pointer reference token (RFC 6901)."""
    return token.replace("~", "~0").replace("/", "~1")


def annotation_path(key: str) -> str:
    return f"/metadata/annotations/{escape_json_pointer(key)}"


@dataclass
class SyncResult:
    """Outcome of an annotation pass over a set of Services."""

    changed: list[str] = field(default_factory=list)
    conflicts: dict[str, str] = field(default_factory=dict)
    failures: list[tuple[str, Exception]] = field(default_factory=list)

    def raise_for_failures(self) -> None:
        """Raise an AggregateError naming every Service that failed."""
        if self.failures:
            raise AggregateError(self.failures)


class AnnotationSynchronizer:
    """Sets and clears one annotation key on Services with scoped JSON patches.

    Every patch touches exactly one annotation path so concurrent edits to
    other parts of a Service are never overwritten. Failures on one Service
    do not stop the others from being processed.
    """

    def __init__(self, store: ResourceStore, field_manager: str = FIELD_MANAGER):
        self.store = store
        self.field_manager = field_manager

    def apply(self, namespace: str, names: Iterable[str], key: str, value: str) -> SyncResult:
        """Set the annotation on every Service that does not have it yet.

        An existing value is never overwritten, even when it differs from
        value; such Services are reported in SyncResult.conflicts.
        """
        result = SyncResult()

        for name in names:
            try:
                service_meta = self.store.get_service_metadata(namespace, name)
            except Exception as e:
                result.failures.append((name, e))
                continue

            annotations = service_meta.get("annotations")

            if annotations is not None and key in annotations:
                if annotations[key] != value:
                    logger.debug(
                        f"Service {namespace}/{name} annotation {key} is already set to "
                        f"{annotations[key]}, not overwriting"
                    )
                    result.conflicts[name] = annotations[key]
                continue

            if annotations is None:
                # Creating the map must not clobber one added since the read
                operations: list[dict[str, Any]] = [
                    {"op": "test", "path": "/metadata/resourceVersion", "value": service_meta.get("resourceVersion")},
                    {"op": "add", "path": "/metadata/annotations", "value": {key: value}},
                ]
            else:
                operations = [{"op": "add", "path": annotation_path(key), "value": value}]

            try:
                self.store.patch_service(namespace, name, operations, self.field_manager)
            except Exception as e:
                metrics.annotation_operations_total.labels(operation="apply", result="failed").inc()
                result.failures.append((name, e))
                continue

            metrics.annotation_operations_total.labels(operation="apply", result="success").inc()
            logger.info(f"Set annotation {key} on service {namespace}/{name}")
            result.changed.append(name)

        return result

    def remove(self, namespace: str, names: Iterable[str], key: str, expected: str) -> SyncResult:
        """Remove the annotation from every Service where it equals expected.

        Missing Services are skipped. The patch carries a test operation so
        the value is only removed if it still matches at write time.
        """
        result = SyncResult()

        for name in names:
            try:
                service_meta = self.store.get_service_metadata(namespace, name)
            except NotFoundError:
                continue
            except Exception as e:
                result.failures.append((name, e))
                continue

            if (service_meta.get("annotations") or {}).get(key) != expected:
                continue

            path = annotation_path(key)
            operations = [
                {"op": "test", "path": path, "value": expected},
                {"op": "remove", "path": path},
            ]

            try:
                self.store.patch_service(namespace, name, operations, self.field_manager)
            except NotFoundError:
                continue
            except Exception as e:
                metrics.annotation_operations_total.labels(operation="remove", result="failed").inc()
                result.failures.append((name, e))
                continue

            metrics.annotation_operations_total.labels(operation="remove", result="success").inc()
            logger.info(f"Removed annotation {key} from service {namespace}/{name}")
            result.changed.append(name)

        return result
