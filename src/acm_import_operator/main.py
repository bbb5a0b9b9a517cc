"""Main entry point for the ACM Import Operator."""

from __future__ import annotations

import os
import random
import threading
from typing import Any

import kopf

from . import health
from . import logging as structured_logging
from . import metrics, tracing
from .builders import create_gateway_from_env, create_store_from_env
from .constants import API_GROUP_VERSION, FINALIZER, KIND_CERTIFICATE_IMPORT, SECRET_KEY_CERTIFICATE
from .handlers import CertificateImportReconciler
from .utils.errors import ConflictError, MalformedInputError, sanitize_exception

# Exponential backoff: 1s, 2s, 4s, 8s, 16s, 32s, 60s (max)
RETRY_MIN_DELAY_SECONDS = float(os.getenv("RETRY_MIN_DELAY_SECONDS", "1.0"))
RETRY_MAX_DELAY_SECONDS = float(os.getenv("RETRY_MAX_DELAY_SECONDS", "60.0"))
RETRY_BACKOFF_FACTOR = float(os.getenv("RETRY_BACKOFF_FACTOR", "2.0"))
RETRY_BACKOFF_JITTER = 0.1  # 10% jitter to prevent thundering herd

RESYNC_INTERVAL_SECONDS = float(os.getenv("RESYNC_INTERVAL_SECONDS", "300"))  # Default 5 minutes


def retry_delay(retry: int) -> float:
    """Delay before the next attempt of a handler that has failed retry times."""
    delay = min(RETRY_MIN_DELAY_SECONDS * (RETRY_BACKOFF_FACTOR ** retry), RETRY_MAX_DELAY_SECONDS)
    return delay + random.uniform(0, delay * RETRY_BACKOFF_JITTER)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure the operator."""
    # Set up structured JSON logging
    structured_logging.setup_structured_logging()
    tracing.initialize_tracing()

    # Configure persistence
    # Use AnnotationsProgressStorage to avoid conflicts with status updates
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()
    # kopf guards deletion with the same finalizer the reconciler manages
    settings.persistence.finalizer = FINALIZER

    settings.posting.level = 0
    settings.networking.request_timeout = float(os.getenv("K8S_REQUEST_TIMEOUT_SECONDS", "30"))
    settings.execution.max_workers = int(os.getenv("WORKER_COUNT", "4"))

    memo.reconciler = CertificateImportReconciler(create_store_from_env(), create_gateway_from_env())

    # Start metrics HTTP server with health check endpoints (default port 8080)
    metrics_port = int(os.getenv("METRICS_PORT", "8080"))
    memo.health_server = health.start_health_server(metrics_port)


@kopf.on.cleanup()
def shutdown(memo: kopf.Memo, logger: Any, **_: Any) -> None:
    """Stop the health server."""
    server = memo.get("health_server")
    if server is not None:
        server.shutdown()
    logger.info("ACM Import Operator stopped")


def run_reconcile(namespace: str, name: str, memo: kopf.Memo, retry: int) -> None:
    """Run one reconcile pass and translate its result for kopf.

    Passes for one object never overlap, whichever handler starts them.
    Write conflicts and cleanup progress ask kopf for an immediate retry,
    other failures are retried with backoff. Malformed input is not
    retried until the object changes again.
    """
    lock = memo.setdefault("reconcile_lock", threading.Lock())
    with lock:
        memo.malformed = False
        try:
            outcome = memo.reconciler.reconcile(namespace, name)
        except ConflictError as e:
            metrics.reconcile_retries_total.labels(reason="conflict").inc()
            raise kopf.TemporaryError(f"Write conflict: {e}", delay=0) from e
        except MalformedInputError as e:
            memo.malformed = True
            metrics.reconcile_retries_total.labels(reason="malformed").inc()
            raise kopf.PermanentError(f"Invalid certificate input: {sanitize_exception(e)}") from e
        except Exception as e:
            delay = retry_delay(retry)
            metrics.reconcile_retries_total.labels(reason="error").inc()
            raise kopf.TemporaryError(
                f"Reconcile failed ({type(e).__name__}: {sanitize_exception(e)}), retrying in {delay:.1f}s",
                delay=delay,
            ) from e

    if outcome.requeue:
        metrics.reconcile_retries_total.labels(reason="progress").inc()
        raise kopf.TemporaryError("Certificate removed, releasing finalizer", delay=0)


@kopf.on.create(API_GROUP_VERSION, KIND_CERTIFICATE_IMPORT)
@kopf.on.update(API_GROUP_VERSION, KIND_CERTIFICATE_IMPORT)
@kopf.on.resume(API_GROUP_VERSION, KIND_CERTIFICATE_IMPORT)
def handle_certificate_import(name: str, namespace: str, memo: kopf.Memo, retry: int = 0, **_: Any) -> None:
    """Handle ACMCertificateImport reconciliation."""
    run_reconcile(namespace, name, memo, retry)


@kopf.on.delete(API_GROUP_VERSION, KIND_CERTIFICATE_IMPORT)
def handle_certificate_import_delete(name: str, namespace: str, memo: kopf.Memo, retry: int = 0, **_: Any) -> None:
    """Unwind Service annotations and the ACM certificate, then release the finalizer."""
    run_reconcile(namespace, name, memo, retry)


@kopf.timer(API_GROUP_VERSION, KIND_CERTIFICATE_IMPORT, interval=RESYNC_INTERVAL_SECONDS)
def resync_certificate_import(
    name: str,
    namespace: str,
    memo: kopf.Memo,
    logger: Any,
    retry: int = 0,
    **_: Any,
) -> None:
    """Periodically correct drift in ACM and on Services."""
    if memo.get("malformed"):
        # Waits for a change to the object or its Secret
        return
    try:
        run_reconcile(namespace, name, memo, retry)
    except kopf.PermanentError as e:
        logger.warning(str(e))


@kopf.on.event("", "v1", "secrets")
def handle_secret_event(
    event: dict[str, Any],
    body: dict[str, Any],
    name: str,
    namespace: str,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Trigger a reconcile of every ACMCertificateImport using a changed Secret."""
    if event.get("type") not in ("ADDED", "MODIFIED"):
        return
    if SECRET_KEY_CERTIFICATE not in (body.get("data") or {}):
        return

    version = (body.get("metadata") or {}).get("resourceVersion")
    if not version:
        return
    memo.reconciler.secret_changed(namespace, name, version)
