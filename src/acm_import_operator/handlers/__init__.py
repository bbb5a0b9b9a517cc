"""Reconcilers for CRD resources."""

from .certificate_import import CertificateImportReconciler, ReconcileOutcome

__all__ = ["CertificateImportReconciler", "ReconcileOutcome"]
