"""Finalizer management for ACMCertificateImport resources."""

from __future__ import annotations

from ..constants import FINALIZER
from ..models import CertificateImport


def ensure_finalizer(resource: CertificateImport, finalizer: str = FINALIZER) -> bool:
    """Add the finalizer if absent. Returns True if the resource must be persisted."""
    if finalizer in resource.finalizers:
        return False
    resource.finalizers.append(finalizer)
    return True


def release_finalizer(resource: CertificateImport, finalizer: str = FINALIZER) -> bool:
    """Remove the finalizer if present. Returns True if the resource must be persisted."""
    if finalizer not in resource.finalizers:
        return False
    resource.finalizers = [f for f in resource.finalizers if f != finalizer]
    return True
