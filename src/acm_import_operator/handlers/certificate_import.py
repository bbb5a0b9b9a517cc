"""Reconciler for ACMCertificateImport CRD."""

from __future__ import annotations

import enum
import threading

from .. import metrics
from ..constants import ANNOTATION_SECRET_VERSION, ANNOTATION_SERVICE_SSL_CERT, KIND_CERTIFICATE_IMPORT
from ..models import CertificateImport, ResourceState
from ..services.acm.base import CertificateGateway
from ..services.kube.base import ResourceStore
from ..tracing import add_span_attribute, trace_span
from ..utils.annotations import AnnotationSynchronizer
from ..utils.certificates import CertificateBundle, load_certificate_bundle
from ..utils.errors import MalformedInputError, NotFoundError
from ..utils.events import (
    emit_annotation_applied,
    emit_annotation_conflict,
    emit_annotation_removed,
    emit_certificate_deleted,
    emit_certificate_imported,
    emit_finalizer_released,
)
from ..utils.finalizers import ensure_finalizer, release_finalizer
from .base import BaseHandler


class ReconcileOutcome(enum.Enum):
    """Result of a single reconcile pass."""

    NOT_FOUND = "NotFound"
    SYNCED = "Synced"
    CLEANED_UP = "CleanedUp"
    RELEASED = "Released"

    @property
    def requeue(self) -> bool:
        """Whether another pass is needed right away to make progress."""
        return self is ReconcileOutcome.CLEANED_UP


class CertificateImportReconciler(BaseHandler):
    """Reconciles ACMCertificateImport resources against ACM and Services.

    Each call to reconcile() reads the resource fresh and performs at most
    one step of each kind, persisting every change as a single write:

    * active resources get the finalizer, then the certificate is imported
      into ACM when the serial number in the secret differs from the one in
      status (unless frozen), then referenced Services are annotated with
      the ARN;
    * deleting resources have their Service annotations and ACM certificate
      removed and status.arn cleared (unless frozen); the next pass then
      releases the finalizer.

    Every step is idempotent, so a pass interrupted at any point can simply
    be repeated.
    """

    def __init__(
        self,
        store: ResourceStore,
        gateway: CertificateGateway,
        annotation_key: str = ANNOTATION_SERVICE_SSL_CERT,
    ):
        """Initialize the reconciler.

        Args:
            store: Kubernetes resource store
            gateway: Remote certificate store
            annotation_key: Service annotation that receives the ARN
        """
        super().__init__(KIND_CERTIFICATE_IMPORT)
        self.store = store
        self.gateway = gateway
        self.annotation_key = annotation_key
        self.annotations = AnnotationSynchronizer(store)
        # (namespace, name) -> {(service, current arn)} already reported
        self._reported_conflicts: dict[tuple[str, str], set[tuple[str, str]]] = {}
        self._conflicts_lock = threading.Lock()

    def reconcile(self, namespace: str, name: str) -> ReconcileOutcome:
        """Reconcile the ACMCertificateImport identified by namespace and name."""
        body = self.store.get_certificate_import(namespace, name)
        if body is None:
            self.logger.debug(f"ACMCertificateImport {namespace}/{name} no longer exists")
            self._forget_conflicts(namespace, name)
            return ReconcileOutcome.NOT_FOUND

        resource = CertificateImport.from_dict(body)
        attributes = {"certificateimport.name": name, "certificateimport.namespace": namespace}
        with trace_span("reconcile_certificate_import", kind=self.kind, attributes=attributes):
            return self.reconcile_with_metrics(body, lambda: self._reconcile(resource))

    def _reconcile(self, resource: CertificateImport) -> ReconcileOutcome:
        state = resource.state

        if state is ResourceState.ACTIVE:
            resource = self._ensure_finalizer(resource)
            resource = self._ensure_certificate(resource)
            self._ensure_annotations(resource)
            return ReconcileOutcome.SYNCED

        if state is ResourceState.ACTIVE_FROZEN:
            resource = self._ensure_finalizer(resource)
            self._ensure_annotations(resource)
            return ReconcileOutcome.SYNCED

        if state is ResourceState.DELETING_FROZEN:
            return self._release(resource)

        if state is ResourceState.DELETING:
            if resource.arn is None:
                return self._release(resource)
            self._cleanup(resource, resource.arn)
            return ReconcileOutcome.CLEANED_UP

        raise AssertionError(f"unhandled resource state {state}")

    def _ensure_finalizer(self, resource: CertificateImport) -> CertificateImport:
        if not ensure_finalizer(resource):
            return resource

        written = self.store.update_certificate_import(resource.to_body())
        self.log_info(resource.meta, "Added finalizer", reason="FinalizerAdded")
        return CertificateImport.from_dict(written)

    def _ensure_certificate(self, resource: CertificateImport) -> CertificateImport:
        """Import the certificate into ACM when the secret holds a different one."""
        if not resource.secret_name:
            raise MalformedInputError("spec.secretRef.name is required")

        bundle = load_certificate_bundle(self.store, resource.namespace, resource.secret_name)

        # Plain equality: any difference, older or newer, is re-imported
        if resource.arn is not None and resource.serial_number == bundle.fingerprint:
            return resource

        self.log_info(
            resource.meta,
            "Importing certificate into ACM",
            reason="ImportingCertificate",
            arn=resource.arn,
            serial_number=bundle.fingerprint,
        )
        with trace_span("import_certificate", kind=self.kind):
            try:
                arn = self._import(resource, bundle)
            except Exception:
                metrics.certificate_operations_total.labels(operation="import", result="failed").inc()
                raise
        metrics.certificate_operations_total.labels(operation="import", result="success").inc()
        add_span_attribute("certificate.arn", arn)

        resource.arn = arn
        resource.serial_number = bundle.fingerprint
        written = CertificateImport.from_dict(self.store.update_certificate_import_status(resource.to_body()))

        emit_certificate_imported(written.body, arn, bundle.fingerprint)
        self.log_info(written.meta, f"Imported certificate as {arn}", reason="CertificateImported", arn=arn)
        return written

    def _import(self, resource: CertificateImport, bundle: CertificateBundle) -> str:
        """Import in place, or as a new certificate when the recorded one is gone from ACM."""
        try:
            return self.gateway.import_certificate(
                resource.arn, bundle.leaf_pem(), bundle.chain_pem(), bundle.private_key
            )
        except NotFoundError:
            if resource.arn is None:
                raise
        self.log_warning(
            resource.meta,
            f"Certificate {resource.arn} no longer exists in ACM, importing a new one",
            reason="CertificateNotFound",
            arn=resource.arn,
        )
        # Services still pointing at the vanished certificate are ours to repoint
        removed = self.annotations.remove(
            resource.namespace, resource.service_names, self.annotation_key, resource.arn
        )
        removed.raise_for_failures()
        return self.gateway.import_certificate(None, bundle.leaf_pem(), bundle.chain_pem(), bundle.private_key)

    def _ensure_annotations(self, resource: CertificateImport) -> None:
        if resource.arn is None or not resource.service_names:
            return

        result = self.annotations.apply(
            resource.namespace, resource.service_names, self.annotation_key, resource.arn
        )
        for service_name in result.changed:
            emit_annotation_applied(resource.body, service_name)

        key = (resource.namespace, resource.name)
        conflicts = set(result.conflicts.items())
        with self._conflicts_lock:
            reported = self._reported_conflicts.get(key, set())
            self._reported_conflicts[key] = conflicts
        for service_name, current in sorted(conflicts):
            if (service_name, current) in reported:
                self.logger.debug(f"Service {service_name} still references {current}")
                continue
            self.log_warning(
                resource.meta,
                f"Service {service_name} already references a different certificate",
                reason="AnnotationConflict",
                service=service_name,
                current=current,
            )
            emit_annotation_conflict(resource.body, service_name, current)
        result.raise_for_failures()

    def _forget_conflicts(self, namespace: str, name: str) -> None:
        with self._conflicts_lock:
            self._reported_conflicts.pop((namespace, name), None)

    def _cleanup(self, resource: CertificateImport, arn: str) -> None:
        """Unwind Service annotations and the ACM certificate, then clear status.arn."""
        result = self.annotations.remove(
            resource.namespace, resource.service_names, self.annotation_key, arn
        )
        for service_name in result.changed:
            emit_annotation_removed(resource.body, service_name)
        result.raise_for_failures()

        with trace_span("delete_certificate", kind=self.kind):
            try:
                self.gateway.delete_certificate(arn)
                metrics.certificate_operations_total.labels(operation="delete", result="success").inc()
            except NotFoundError:
                metrics.certificate_operations_total.labels(operation="delete", result="not_found").inc()
                self.log_info(resource.meta, f"Certificate {arn} already deleted", reason="CertificateNotFound")
            except Exception:
                metrics.certificate_operations_total.labels(operation="delete", result="failed").inc()
                raise

        resource.arn = None
        written = self.store.update_certificate_import_status(resource.to_body())
        emit_certificate_deleted(written, arn)
        self.log_info(resource.meta, f"Deleted certificate {arn}", reason="CertificateDeleted", arn=arn)

    def _release(self, resource: CertificateImport) -> ReconcileOutcome:
        self._forget_conflicts(resource.namespace, resource.name)
        if release_finalizer(resource):
            self.store.update_certificate_import(resource.to_body())
            emit_finalizer_released(resource.body)
            self.log_info(resource.meta, "Released finalizer", reason="FinalizerReleased")
        return ReconcileOutcome.RELEASED

    def secret_changed(self, namespace: str, secret_name: str, version: str) -> list[str]:
        """Mark every ACMCertificateImport using a Secret so its next pass sees the change.

        The Secret's resourceVersion is recorded as an annotation, which is
        a change to the import itself and so triggers a new reconcile.
        Imports that already carry this version are left alone.

        Returns:
            Names of the imports that were marked
        """
        marked = []
        for body in self.store.list_certificate_imports(namespace):
            resource = CertificateImport.from_dict(body)
            if resource.secret_name != secret_name or resource.deletion_requested:
                continue
            if (resource.meta.get("annotations") or {}).get(ANNOTATION_SECRET_VERSION) == version:
                continue
            self.store.annotate_certificate_import(
                namespace, resource.name, {ANNOTATION_SECRET_VERSION: version}
            )
            self.logger.info(
                f"Secret {namespace}/{secret_name} changed, marked ACMCertificateImport {resource.name}"
            )
            marked.append(resource.name)
        return marked
