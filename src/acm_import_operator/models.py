"""Models for ACMCertificateImport resources."""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from typing import Any


class ResourceState(enum.Enum):
    """Lifecycle state of an ACMCertificateImport."""

    ACTIVE = "Active"
    ACTIVE_FROZEN = "ActiveFrozen"
    DELETING = "Deleting"
    DELETING_FROZEN = "DeletingFrozen"

    @classmethod
    def from_flags(cls, deletion_requested: bool, frozen: bool) -> ResourceState:
        if deletion_requested:
            return cls.DELETING_FROZEN if frozen else cls.DELETING
        return cls.ACTIVE_FROZEN if frozen else cls.ACTIVE

    @property
    def deleting(self) -> bool:
        return self in (ResourceState.DELETING, ResourceState.DELETING_FROZEN)

    @property
    def frozen(self) -> bool:
        return self in (ResourceState.ACTIVE_FROZEN, ResourceState.DELETING_FROZEN)


@dataclass
class CertificateImport:
    """Typed view over an ACMCertificateImport custom object.

    The raw body is kept so writes can send the object back with its
    resourceVersion, which makes every write conditional on the version
    that was read.
    """

    name: str
    namespace: str
    uid: str
    resource_version: str | None
    frozen: bool
    secret_name: str
    service_names: list[str]
    arn: str | None
    serial_number: str
    finalizers: list[str]
    deletion_requested: bool
    body: dict[str, Any] = field(repr=False)

    @classmethod
    def from_dict(cls, body: dict[str, Any]) -> CertificateImport:
        """Build a CertificateImport from a custom object body."""
        meta = body.get("metadata") or {}
        spec = body.get("spec") or {}
        status = body.get("status") or {}

        return cls(
            name=meta.get("name", "unknown"),
            namespace=meta.get("namespace", "default"),
            uid=meta.get("uid", "unknown"),
            resource_version=meta.get("resourceVersion"),
            frozen=bool(spec.get("frozen", False)),
            secret_name=(spec.get("secretRef") or {}).get("name", ""),
            service_names=[ref.get("name", "") for ref in spec.get("serviceRefs") or []],
            arn=status.get("arn") or None,
            serial_number=status.get("serialNumber", ""),
            finalizers=list(meta.get("finalizers") or []),
            deletion_requested=meta.get("deletionTimestamp") is not None,
            body=body,
        )

    @property
    def state(self) -> ResourceState:
        return ResourceState.from_flags(self.deletion_requested, self.frozen)

    @property
    def meta(self) -> dict[str, Any]:
        return self.body.get("metadata") or {}

    def to_body(self) -> dict[str, Any]:
        """Render the object for a write, carrying the observed resourceVersion."""
        body = copy.deepcopy(self.body)
        meta = body.setdefault("metadata", {})
        meta["finalizers"] = list(self.finalizers)
        if self.resource_version is not None:
            meta["resourceVersion"] = self.resource_version

        status: dict[str, Any] = {"serialNumber": self.serial_number}
        if self.arn is not None:
            status["arn"] = self.arn
        body["status"] = status
        return body
