"""Base resource store interface."""

from __future__ import annotations

from typing import Any, Protocol


class ResourceStore(Protocol):
    """Protocol defining the Kubernetes operations the reconciler needs."""

    def get_certificate_import(self, namespace: str, name: str) -> dict[str, Any] | None:
        """Read an ACMCertificateImport, or None if it no longer exists."""
        ...

    def list_certificate_imports(self, namespace: str) -> list[dict[str, Any]]:
        """List the ACMCertificateImports of a namespace."""
        ...

    def annotate_certificate_import(self, namespace: str, name: str, annotations: dict[str, str]) -> None:
        """Merge annotations into an ACMCertificateImport without a version check."""
        ...

    def update_certificate_import(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace an ACMCertificateImport (metadata and spec).

        The body carries metadata.resourceVersion; a stale version raises
        ConflictError. Returns the object as written.
        """
        ...

    def update_certificate_import_status(self, body: dict[str, Any]) -> dict[str, Any]:
        """Replace the status subresource of an ACMCertificateImport.

        Same concurrency contract as update_certificate_import.
        """
        ...

    def get_secret_data(self, namespace: str, name: str) -> dict[str, bytes]:
        """Read the decoded data of a Secret.

        Raises:
            NotFoundError: If the Secret does not exist
        """
        ...

    def get_service_metadata(self, namespace: str, name: str) -> dict[str, Any]:
        """Read the annotations and resourceVersion of a Service.

        Returns a dict with "annotations" (None when the Service has no
        annotations map at all) and "resourceVersion".

        Raises:
            NotFoundError: If the Service does not exist
        """
        ...

    def patch_service(
        self,
        namespace: str,
        name: str,
        operations: list[dict[str, Any]],
        field_manager: str,
    ) -> None:
        """Apply a JSON patch to a Service, tagged with a field manager."""
        ...
