"""Utility functions for the ACM Import Operator."""

from .annotations import AnnotationSynchronizer, SyncResult
from .certificates import CertificateBundle, load_certificate_bundle, parse_certificate_bundle
from .errors import (
    AggregateError,
    ConflictError,
    MalformedInputError,
    NotFoundError,
    OperatorError,
    TransientError,
)
from .events import emit_event
from .finalizers import ensure_finalizer, release_finalizer
from .rate_limit import rate_limit_acm, rate_limit_k8s

__all__ = [
    "AnnotationSynchronizer",
    "SyncResult",
    "CertificateBundle",
    "load_certificate_bundle",
    "parse_certificate_bundle",
    "OperatorError",
    "NotFoundError",
    "MalformedInputError",
    "ConflictError",
    "TransientError",
    "AggregateError",
    "emit_event",
    "ensure_finalizer",
    "release_finalizer",
    "rate_limit_k8s",
    "rate_limit_acm",
]
